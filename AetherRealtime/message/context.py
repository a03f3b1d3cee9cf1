"""
事件上下文 - 每条入站消息对应一个独立上下文
Event context - one independent context per inbound message.

上下文在中间件、守卫和处理器之间传递，携带事件数据、传输绑定和可变的暂存空间。
The context travels through middleware, guards and handler, carrying event
data, transport bindings and mutable scratch space.
"""

from __future__ import annotations

import inspect
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from AetherRealtime.kernel.errors import NotConfiguredError
from AetherRealtime.message.payload import NormalizedPayload


# 发送函数类型：send(event_type, payload, *args)
SendFunction = Callable[..., Any]
EmitFunction = Callable[[str, Any], None]


async def _resolve(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


@dataclass
class EventContext:
    """
    事件上下文
    Event context.

    每条消息创建一次，由正在进行的调度独占，处理完成后丢弃。
    Created once per message, owned by the in-flight dispatch, discarded after.
    """

    # 事件类型
    type: str
    # 消息数据
    payload: Any = None
    # 发送方客户端 ID
    remote_client: str | None = None
    # 本地客户端 ID
    local_client_id: str = ""
    # 频道
    channel: str | None = None
    # 应用 ID
    application_id: str | None = None
    # 原始发送方客户端 ID
    emitter_client_id: str | None = None
    # 创建时的应用上下文引用
    app_context: Any = None
    # 中间件之间共享的暂存空间
    meta: dict[str, Any] = field(default_factory=dict)
    # 计时
    start_time: float = field(default_factory=time.time)

    _send: SendFunction | None = field(default=None, repr=False)
    _broadcast: SendFunction | None = field(default=None, repr=False)
    _emit: EmitFunction | None = field(default=None, repr=False)
    _stopped: bool = field(default=False, repr=False)

    async def send(self, event_type: str, payload: Any = None, *args: Any) -> Any:
        """单播给消息来源方 / Unicast to the originating party."""
        if self._send is None:
            raise NotConfiguredError()
        return await _resolve(self._send(event_type, payload, *args))

    async def broadcast(self, event_type: str, payload: Any = None, *args: Any) -> Any:
        """广播给所有可达方 / Fan out to all reachable parties."""
        if self._broadcast is None:
            raise NotConfiguredError()
        return await _resolve(self._broadcast(event_type, payload, *args))

    def emit(self, event: str, data: Any = None) -> None:
        """在本地事件总线上发布 / Publish on the local event bus."""
        if self._emit is not None:
            self._emit(event, data)

    def stop(self) -> None:
        """停止后续中间件和处理器 / Stop subsequent middleware and the handler."""
        self._stopped = True

    def is_stopped(self) -> bool:
        return self._stopped

    @property
    def elapsed_ms(self) -> float:
        """获取已经过的毫秒数 / Get elapsed milliseconds."""
        return (time.time() - self.start_time) * 1000


class ContextFactory:
    """
    上下文工厂 - 由原始消息和应用状态构建上下文
    Context factory - builds a context from a raw message and application state.

    传输层和发射函数通过提供者获取，始终使用当前绑定的对象。
    Transport and emitter are fetched through providers so the currently bound
    objects are always used.
    """

    def __init__(
        self,
        transport_provider: Callable[[], Any],
        emit: EmitFunction,
        local_client_id: str,
    ) -> None:
        self._transport_provider = transport_provider
        self._emit = emit
        self._local_client_id = local_client_id

    def create(self, event_type: str, raw: Any, app_context: Any = None) -> EventContext:
        """
        创建上下文
        Create a context.

        如果传输层提供 normalize_payload，原始消息先经过它。
        If the transport exposes normalize_payload, the raw message goes through it first.
        """
        transport = self._transport_provider()
        if transport is None:
            raise NotConfiguredError()

        normalize = getattr(transport, "normalize_payload", None)
        normalized = normalize(raw) if callable(normalize) else raw
        message = NormalizedPayload.coerce(normalized)

        return EventContext(
            type=event_type,
            payload=message.payload,
            remote_client=message.client_id,
            local_client_id=self._local_client_id,
            channel=message.channel,
            application_id=message.application_id,
            emitter_client_id=message.emitter_client_id,
            app_context=app_context,
            _send=transport.send,
            _broadcast=transport.broadcast,
            _emit=self._emit,
        )
