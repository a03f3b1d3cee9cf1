"""
信号中枢 - 进程内的发布/订阅事件总线
Signal Hub - in-process publish/subscribe event bus.

处理器通过它通知应用监听者，而不必经过传输层往返。
Handlers use it to notify application listeners without a round trip through
the transport.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

Listener = Callable[[Any], Any]


@runtime_checkable
class EventEmitter(Protocol):
    """
    自定义事件发射器契约，可整体替换本地总线
    Custom event emitter contract; may replace the local bus wholesale.
    """

    def on(self, event: str, callback: Listener) -> Any: ...

    def off(self, event: str, callback: Listener) -> Any: ...

    def emit(self, event: str, data: Any = None) -> Any: ...


@dataclass(eq=False)
class SlotBinding:
    """
    槽绑定 - 将监听者绑定到事件上
    Slot binding - binds a listener to an event.
    """

    event: str
    callback: Listener
    # 是否只触发一次
    once: bool = False
    # 被 off() 移除后置为 False，正在进行的发射会跳过它
    active: bool = True


class LocalEventBus:
    """
    本地事件总线
    Local event bus.

    - 同步发射，按注册顺序调用
    - 单个监听者出错只记录日志，不影响其他监听者
    - 发射过程中被移除的监听者不会收到本次事件
    - 发射过程中新增的监听者从下一次事件开始生效
    """

    def __init__(self) -> None:
        # 事件名 -> 槽绑定列表
        self._slots: dict[str, list[SlotBinding]] = {}
        self._pending: set[asyncio.Task[Any]] = set()

    def on(self, event: str, callback: Listener) -> LocalEventBus:
        """
        注册监听者（允许重复注册）
        Register a listener (duplicates permitted).
        """
        self._slots.setdefault(event, []).append(SlotBinding(event=event, callback=callback))
        logger.debug("已连接监听者到事件 %s", event)
        return self

    def once(self, event: str, callback: Listener) -> LocalEventBus:
        """注册只触发一次的监听者 / Register a listener that fires once."""
        self._slots.setdefault(event, []).append(
            SlotBinding(event=event, callback=callback, once=True)
        )
        return self

    def off(self, event: str, callback: Listener) -> bool:
        """
        移除第一个匹配的监听者
        Remove the first matching listener.
        """
        bindings = self._slots.get(event)
        if not bindings:
            return False

        for binding in bindings:
            if binding.callback == callback:
                self._detach(binding)
                logger.debug("已断开事件 %s 的监听者", event)
                return True
        return False

    def _detach(self, binding: SlotBinding) -> None:
        binding.active = False
        bindings = self._slots.get(binding.event, [])
        if binding in bindings:
            bindings.remove(binding)
        if not bindings:
            self._slots.pop(binding.event, None)

    def emit(self, event: str, data: Any = None) -> None:
        """
        发射事件，同步调用所有匹配的监听者
        Emit an event, synchronously invoking every matching listener.
        """
        for binding in list(self._slots.get(event, ())):
            if not binding.active:
                continue
            if binding.once:
                self._detach(binding)

            try:
                result = binding.callback(data)
            except Exception:
                logger.exception("监听者处理事件 %s 时出错", event)
                continue

            if asyncio.iscoroutine(result):
                self._schedule(event, result)

    def _schedule(self, event: str, coro: Any) -> None:
        """把异步监听者的协程交给事件循环 / Hand an async listener's coroutine to the loop."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("事件 %s 的异步监听者在没有事件循环时被调用，已丢弃", event)
            coro.close()
            return

        task = loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(lambda t: self._on_task_done(event, t))

    def _on_task_done(self, event: str, task: asyncio.Task[Any]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("异步监听者处理事件 %s 时出错", event, exc_info=exc)

    async def drain(self) -> None:
        """等待所有已调度的异步监听者完成 / Await all scheduled async listeners."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def listener_count(self, event: str | None = None) -> int:
        """获取监听者数量 / Get the number of listeners."""
        if event is None:
            return sum(len(bindings) for bindings in self._slots.values())
        return len(self._slots.get(event, ()))

    def clear(self) -> None:
        """清除所有监听者 / Clear all listeners."""
        for bindings in self._slots.values():
            for binding in bindings:
                binding.active = False
        self._slots.clear()
