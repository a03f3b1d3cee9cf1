"""
生命周期钩子 - 调度器在固定扩展点调用的回调
Lifecycle hooks - callbacks the dispatcher invokes at fixed extension points.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

from AetherRealtime.kernel.errors import UnknownHookError

logger = logging.getLogger(__name__)

HookCallback = Callable[..., Any]


class HookName(str, Enum):
    """钩子名称 / Hook name."""

    BEFORE_START = "before_start"
    AFTER_START = "after_start"
    BEFORE_MESSAGE = "before_message"
    AFTER_MESSAGE = "after_message"
    ON_ERROR = "on_error"

    @classmethod
    def names(cls) -> list[str]:
        return [member.value for member in cls]

    @classmethod
    def parse(cls, name: HookName | str) -> HookName:
        """
        解析钩子名，未知名称抛出 UnknownHookError
        Parse a hook name; unknown names raise UnknownHookError.
        """
        if isinstance(name, HookName):
            return name
        try:
            return cls(name)
        except ValueError:
            raise UnknownHookError(str(name), cls.names()) from None


class LifecycleHooks:
    """
    生命周期钩子注册表
    Lifecycle hook registry.

    每个钩子名相互独立，按注册顺序执行；单个钩子出错只记录日志，
    不影响同名的其他钩子，也不中止触发它的阶段。
    Each name is independent and runs in registration order; a failing hook is
    logged without stopping its siblings or the triggering phase.
    """

    def __init__(self) -> None:
        self._hooks: dict[HookName, list[HookCallback]] = {name: [] for name in HookName}

    def register(self, name: HookName | str, callback: HookCallback) -> None:
        hook_name = HookName.parse(name)
        self._hooks[hook_name].append(callback)
        logger.debug("已注册钩子 %s: %s", hook_name.value, getattr(callback, "__name__", callback))

    async def run(self, name: HookName | str, *args: Any) -> None:
        hook_name = HookName.parse(name)
        for callback in list(self._hooks[hook_name]):
            try:
                result = callback(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("钩子 %s 执行出错", hook_name.value)

    def count(self, name: HookName | str | None = None) -> int:
        if name is None:
            return sum(len(callbacks) for callbacks in self._hooks.values())
        return len(self._hooks[HookName.parse(name)])

    def clear(self) -> None:
        for callbacks in self._hooks.values():
            callbacks.clear()
