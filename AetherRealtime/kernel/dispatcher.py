"""
调度器 - 驱动一条消息走完整个处理管道
Dispatcher - drives one message through the whole processing pipeline.

管道顺序：
    全局中间件 -> 路由查找 -> 守卫 -> 路由中间件 -> 处理器
Pipeline order:
    global middleware -> route lookup -> guards -> route middleware -> handler

任何异常都不会逃出 process()/dispatch()，调度器处理完一条消息后总能继续处理下一条。
No exception escapes process()/dispatch(); after one message the dispatcher is
always ready for the next.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from AetherRealtime.kernel.guards import GuardEvaluator
from AetherRealtime.kernel.lifecycle import HookName, LifecycleHooks
from AetherRealtime.kernel.middleware import MiddlewareChain
from AetherRealtime.kernel.routes import RouteTable
from AetherRealtime.message.context import ContextFactory, EventContext

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[BaseException, Union[EventContext, None]], Union[Awaitable[None], None]]


class DispatchState(str, Enum):
    """单条消息的处理状态 / Processing state of one message."""

    CREATED = "created"
    GLOBAL_MIDDLEWARE = "global_middleware"
    ROUTE_LOOKUP = "route_lookup"
    GUARDS = "guards"
    ROUTE_MIDDLEWARE = "route_middleware"
    HANDLING = "handling"
    DONE = "done"
    REJECTED = "rejected"
    ERRORED = "errored"


@dataclass(frozen=True)
class DispatchOutcome:
    """
    调度结果 - 终止状态以及被拒绝/出错的原因
    Dispatch outcome - terminal state and why a message was rejected or errored.
    """

    state: DispatchState
    event_type: str
    # 被拒绝时所在的阶段
    stage: DispatchState | None = None
    reason: str | None = None
    error: BaseException | None = None

    @property
    def handled(self) -> bool:
        return self.state is DispatchState.DONE


async def default_error_handler(error: BaseException, ctx: EventContext | None) -> None:
    """
    默认错误处理器：向消息来源方发送 error 事件
    Default error handler: send an ``error`` event back to the sender.
    """
    if ctx is None:
        logger.error("构建上下文失败，无法回复错误: %s", error)
        return
    logger.debug("事件 [%s] 出错: %s", ctx.type, error)
    await ctx.send("error", {"message": str(error)})


class Dispatcher:
    """
    调度器
    Dispatcher.

    调度器本身不保存消息状态，多条消息可以在各自的任务中交错执行。
    The dispatcher keeps no per-message state, so several messages may
    interleave in their own tasks.
    """

    def __init__(
        self,
        context_factory: ContextFactory,
        global_middleware: MiddlewareChain,
        routes: RouteTable,
        hooks: LifecycleHooks,
        error_handler_provider: Callable[[], ErrorHandler],
        app_context_provider: Callable[[], Any],
        guard_evaluator: GuardEvaluator | None = None,
    ) -> None:
        self._context_factory = context_factory
        self._global_middleware = global_middleware
        self._routes = routes
        self._hooks = hooks
        self._error_handler_provider = error_handler_provider
        self._app_context_provider = app_context_provider
        self._guards = guard_evaluator or GuardEvaluator()

    async def process(self, event_type: str, raw: Any) -> DispatchOutcome:
        """
        处理一条入站原始消息：构建上下文并调度
        Process one inbound raw message: build the context and dispatch it.
        """
        try:
            ctx = self._context_factory.create(event_type, raw, self._app_context_provider())
        except Exception as exc:
            logger.exception("为事件 %s 构建上下文失败", event_type)
            return await self._fail(exc, None, event_type)

        return await self.dispatch(ctx)

    async def dispatch(self, ctx: EventContext) -> DispatchOutcome:
        """
        驱动上下文走完整个管道
        Drive a context through the whole pipeline.
        """
        await self._hooks.run(HookName.BEFORE_MESSAGE, ctx)

        try:
            outcome = await self._run_pipeline(ctx)
        except Exception as exc:
            return await self._fail(exc, ctx, ctx.type)

        await self._hooks.run(HookName.AFTER_MESSAGE, ctx)
        return outcome

    async def _run_pipeline(self, ctx: EventContext) -> DispatchOutcome:
        # 全局中间件
        if not await self._global_middleware.execute(ctx):
            return self._reject(ctx, DispatchState.GLOBAL_MIDDLEWARE, "stopped by global middleware")

        # 路由查找
        route = self._routes.lookup(ctx.type)
        if route is None:
            return self._reject(ctx, DispatchState.ROUTE_LOOKUP, "no route registered")

        # 守卫
        verdict = await self._guards.evaluate(route.guards, ctx)
        if not verdict:
            return self._reject(ctx, DispatchState.GUARDS, verdict.reason)

        # 路由中间件
        if not await route.middleware.execute(ctx):
            return self._reject(ctx, DispatchState.ROUTE_MIDDLEWARE, "stopped by route middleware")

        # 处理器
        result = route.handler(ctx)
        if inspect.isawaitable(result):
            await result

        logger.debug("事件 %s 处理完成，耗时 %.2fms", ctx.type, ctx.elapsed_ms)
        return DispatchOutcome(state=DispatchState.DONE, event_type=ctx.type)

    def _reject(self, ctx: EventContext, stage: DispatchState, reason: str | None) -> DispatchOutcome:
        logger.debug("事件 %s 在阶段 %s 被拒绝: %s", ctx.type, stage.value, reason)
        return DispatchOutcome(
            state=DispatchState.REJECTED,
            event_type=ctx.type,
            stage=stage,
            reason=reason,
        )

    async def _fail(
        self,
        error: BaseException,
        ctx: EventContext | None,
        event_type: str,
    ) -> DispatchOutcome:
        """
        进入 ERRORED：先执行 on_error 钩子，再调用错误处理器
        Enter ERRORED: run on_error hooks, then the error handler.
        """
        if ctx is not None:
            logger.debug("事件 %s 处理出错: %r", event_type, error)

        await self._hooks.run(HookName.ON_ERROR, error, ctx)

        try:
            result = self._error_handler_provider()(error, ctx)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("错误处理器在处理事件 %s 时抛出了错误", event_type)

        return DispatchOutcome(
            state=DispatchState.ERRORED,
            event_type=event_type,
            reason=str(error),
            error=error,
        )
