"""
错误类型 - 实时调度核心的异常体系
Error types - exception hierarchy of the realtime dispatch core.

配置类错误在注册调用时同步抛出；运行时错误在管道边界被捕获。
Configuration errors are raised synchronously at the registration call;
runtime errors are caught at the pipeline boundary.
"""

from __future__ import annotations


class RealtimeError(Exception):
    """所有框架错误的基类 / Base class of all framework errors."""


class ConfigurationError(RealtimeError):
    """
    配置错误 - 注册或绑定时的非法输入
    Configuration error - invalid input at registration or binding time.
    """


class NotConfiguredError(ConfigurationError):
    """未绑定传输适配器 / No transport adapter is bound."""

    def __init__(self, message: str = "no transport adapter bound, call adapter() first") -> None:
        super().__init__(message)


class InvalidAdapterError(ConfigurationError):
    """
    适配器不满足最小契约
    Adapter does not satisfy the minimal contract.
    """

    def __init__(self, missing: str) -> None:
        super().__init__(f"invalid adapter: method {missing!r} is required")
        self.missing = missing


class InvalidRouteError(ConfigurationError):
    """路由缺少事件名或处理器 / Route lacks an event name or handler."""


class UnknownHookError(ConfigurationError):
    """未知的生命周期钩子名 / Unknown lifecycle hook name."""

    def __init__(self, name: str, available: list[str]) -> None:
        super().__init__(
            f"hook {name!r} does not exist. Available: {', '.join(available)}"
        )
        self.name = name
        self.available = available


class InvalidPluginError(ConfigurationError):
    """插件既不是可调用对象也没有 install 方法 / Plugin is neither callable nor has install()."""


class DoubleContinuationError(RealtimeError):
    """
    同一个中间件步骤多次调用 next()
    next() was called more than once for the same middleware step.

    表示中间件作者的 bug，只中止当前消息的处理链。
    Indicates a middleware author bug; aborts only the current message chain.
    """

    def __init__(self, index: int, reached: int) -> None:
        super().__init__(
            f"next() called multiple times (step {index}, already reached {reached})"
        )
        self.index = index
        self.reached = reached
