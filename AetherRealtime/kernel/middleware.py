"""
中间件链 - Express 风格的消息处理中间件系统
Middleware Chain - Express-style message processing middleware system.

每个中间件可以在调用 next 前后执行逻辑，也可以不调用 next 以短路处理链。
Each middleware may run logic before and after calling next, or skip calling
next to short-circuit the chain.
"""

from __future__ import annotations

import inspect
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING, Union

from AetherRealtime.kernel.errors import ConfigurationError, DoubleContinuationError

if TYPE_CHECKING:
    from AetherRealtime.message.context import EventContext

logger = logging.getLogger(__name__)


# 下一个中间件的调用类型
NextFunction = Callable[[], Awaitable[None]]
MiddlewareFunction = Callable[["EventContext", NextFunction], Union[Awaitable[None], None]]


class Middleware(ABC):
    """
    中间件基类 - 所有消息处理中间件的抽象基类
    Middleware base - abstract base class for all message processing middlewares.
    """

    @abstractmethod
    async def handle(self, ctx: EventContext, next_fn: NextFunction) -> None:
        """
        处理消息事件
        Handle a message event.

        调用 next_fn() 将控制权传递给下一个中间件。
        不调用则短路处理链。
        Call next_fn() to pass control to the next middleware.
        Not calling it short-circuits the chain.
        """
        ...

    @property
    def name(self) -> str:
        """中间件名称 / Middleware name."""
        return self.__class__.__name__


class FunctionMiddleware(Middleware):
    """
    函数式中间件 - 用普通函数（同步或异步）创建中间件
    Function middleware - create middleware from a plain sync or async function.
    """

    def __init__(self, handler: MiddlewareFunction, middleware_name: str | None = None):
        self._handler = handler
        self._name = middleware_name or getattr(handler, "__name__", "FunctionMiddleware")

    async def handle(self, ctx: EventContext, next_fn: NextFunction) -> None:
        result = self._handler(ctx, next_fn)
        if inspect.isawaitable(result):
            await result

    @property
    def name(self) -> str:
        return self._name


def as_middleware(candidate: Middleware | MiddlewareFunction) -> Middleware:
    """
    把可调用对象包装为中间件
    Wrap a callable as a middleware.
    """
    if isinstance(candidate, Middleware):
        return candidate
    if callable(candidate):
        return FunctionMiddleware(candidate)
    raise ConfigurationError(f"middleware must be callable, got {type(candidate).__name__}")


class MiddlewareChain:
    """
    中间件链 - 管理和执行中间件序列
    Middleware chain - manages and executes a sequence of middlewares.

    执行顺序就是插入顺序。每一步的 next 只能调用一次，
    内部以“已到达的最高索引”检测重复调用。
    Execution order is insertion order. Each step's next may be called once;
    repeated calls are detected through the highest index reached.
    """

    def __init__(self, middlewares: Iterable[Middleware | MiddlewareFunction] = ()) -> None:
        self._middlewares: list[Middleware] = [as_middleware(mw) for mw in middlewares]

    def use(self, middleware: Middleware | MiddlewareFunction) -> MiddlewareChain:
        """
        添加中间件到链尾
        Append a middleware to the chain.
        """
        mw = as_middleware(middleware)
        self._middlewares.append(mw)
        logger.debug("已添加中间件: %s", mw.name)
        return self

    def extend(self, middlewares: Iterable[Middleware | MiddlewareFunction]) -> MiddlewareChain:
        for middleware in middlewares:
            self.use(middleware)
        return self

    async def execute(self, ctx: EventContext) -> bool:
        """
        执行整个中间件链
        Execute the entire middleware chain.

        返回 False 表示消息被拒绝（上下文已停止或某一步抛出异常）。
        Returns False when the message is rejected (context stopped or a step raised).
        DoubleContinuationError 会继续向上抛出。
        DoubleContinuationError is propagated to the caller.
        """
        # 快照：执行期间的注册不影响本条消息
        active = tuple(self._middlewares)
        reached = -1

        async def run_step(index: int) -> None:
            nonlocal reached
            if index <= reached:
                raise DoubleContinuationError(index, reached)
            reached = index

            if ctx.is_stopped() or index >= len(active):
                return

            current = active[index]

            async def next_fn() -> None:
                await run_step(index + 1)

            await current.handle(ctx, next_fn)

        try:
            await run_step(0)
        except DoubleContinuationError:
            raise
        except Exception:
            logger.exception("中间件链在处理事件 %s 时抛出了错误", ctx.type)
            return False

        return not ctx.is_stopped()

    def clear(self) -> None:
        self._middlewares.clear()

    def remove(self, middleware_name: str) -> bool:
        """
        按名称移除中间件
        Remove a middleware by name.
        """
        for i, mw in enumerate(self._middlewares):
            if mw.name == middleware_name:
                self._middlewares.pop(i)
                logger.debug("已移除中间件: %s", middleware_name)
                return True
        return False

    @property
    def middlewares(self) -> tuple[Middleware, ...]:
        return tuple(self._middlewares)

    @property
    def count(self) -> int:
        """中间件数量 / Number of middlewares."""
        return len(self._middlewares)

    def __len__(self) -> int:
        return len(self._middlewares)
