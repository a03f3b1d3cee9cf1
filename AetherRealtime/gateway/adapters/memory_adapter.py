"""
内存传输适配器 - 不经过网络，用于测试和本地回放
Memory transport adapter - no network, used for tests and local replay.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from AetherRealtime.gateway.base import InboundCallback

logger = logging.getLogger(__name__)


@dataclass
class SentMessage:
    """一条出站消息记录 / A recorded outbound message."""

    # "send" 或 "broadcast"
    kind: str
    type: str
    payload: Any
    args: tuple[Any, ...] = field(default_factory=tuple)


class MemoryTransport:
    """
    内存传输
    Memory transport.

    simulate_incoming() 模拟一条入站消息，出站消息被记录到 sent 中。
    simulate_incoming() fakes an inbound message; outbound messages are recorded in sent.
    """

    def __init__(self, default_channel: str = "default") -> None:
        self._default_channel = default_channel
        self._message_handler: InboundCallback | None = None
        self.sent: list[SentMessage] = []
        # channel -> event -> callbacks
        self._listeners: dict[str, dict[str, list[Callable[[dict[str, Any]], Any]]]] = {}
        self.connected = True

    async def simulate_incoming(
        self,
        event_type: str,
        payload: Any = None,
        channel: str | None = None,
        application_id: str | None = None,
        client_id: str | None = None,
        emitter_client_id: str | None = None,
    ) -> Any:
        """
        模拟入站消息，并等待调度完成（如果回调返回可等待对象）
        Simulate an inbound message and await its dispatch when the callback
        returns an awaitable.
        """
        message = {
            "client_id": client_id,
            "application_id": application_id,
            "channel": channel or self._default_channel,
            "payload": payload,
            "emitter_client_id": emitter_client_id,
        }

        result = None
        if self._message_handler is not None:
            result = self._message_handler(event_type, message)
            if inspect.isawaitable(result):
                result = await result
        else:
            logger.warning("内存传输未设置消息处理器，事件 %s 被丢弃", event_type)

        for callback in list(self._listeners.get(message["channel"], {}).get(event_type, ())):
            try:
                callback(message)
            except Exception:
                logger.exception("内存传输订阅回调处理 %s 时出错", event_type)

        return result

    def on_message(self, callback: InboundCallback) -> None:
        self._message_handler = callback

    def send(self, event_type: str, payload: Any, *args: Any) -> None:
        self.sent.append(SentMessage(kind="send", type=event_type, payload=payload, args=args))

    def broadcast(self, event_type: str, payload: Any, *args: Any) -> None:
        self.sent.append(SentMessage(kind="broadcast", type=event_type, payload=payload, args=args))

    def subscribe(self, event_type: str, callback: Callable[[dict[str, Any]], Any], channel: str) -> None:
        callbacks = self._listeners.setdefault(channel, {}).setdefault(event_type, [])
        if callback not in callbacks:
            callbacks.append(callback)

    def off(self, event_type: str, callback: Callable[..., Any], channel: str | None = None) -> None:
        channels = [channel] if channel is not None else list(self._listeners)
        for name in channels:
            channel_listeners = self._listeners.get(name)
            if not channel_listeners:
                continue
            callbacks = channel_listeners.get(event_type, [])
            if callback in callbacks:
                callbacks.remove(callback)
            if not callbacks:
                channel_listeners.pop(event_type, None)
            if not channel_listeners:
                self._listeners.pop(name, None)

    def disconnect(self) -> None:
        self.connected = False

    def get_sent_messages(self) -> list[SentMessage]:
        return list(self.sent)

    def reset(self) -> None:
        self.sent.clear()
        self._listeners.clear()
        self._message_handler = None
