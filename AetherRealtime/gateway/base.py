"""
传输层契约 - 所有传输适配器需要满足的接口
Transport contract - the interface every transport adapter must satisfy.

具体的 WebSocket / SSE / 发布订阅提供方在本包之外实现。
Concrete WebSocket / SSE / pub-sub providers live outside this package.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from AetherRealtime.gateway.serializer import Serializer
from AetherRealtime.kernel.errors import ConfigurationError, InvalidAdapterError

logger = logging.getLogger(__name__)

# 入站回调：callback(event_type, raw_payload)
InboundCallback = Callable[[str, Any], Any]

REQUIRED_METHODS = ("on_message", "send", "broadcast")


@runtime_checkable
class TransportAdapter(Protocol):
    """
    传输适配器
    Transport adapter.

    可选方法：normalize_payload(raw)、disconnect()、off(event, callback, *args)。
    Optional methods: normalize_payload(raw), disconnect(), off(event, callback, *args).
    每个方法都可以是同步或异步的。
    Every method may be sync or async.
    """

    def on_message(self, callback: InboundCallback) -> Any: ...

    def send(self, event_type: str, payload: Any, *args: Any) -> Any: ...

    def broadcast(self, event_type: str, payload: Any, *args: Any) -> Any: ...


def validate_adapter(instance: Any, strict: bool = True) -> None:
    """
    校验适配器是否满足最小契约
    Validate that an adapter satisfies the minimal contract.
    """
    if instance is None:
        raise ConfigurationError("adapter must not be None")
    if not strict:
        return
    for method in REQUIRED_METHODS:
        if not callable(getattr(instance, method, None)):
            raise InvalidAdapterError(method)


class SerializingTransport:
    """
    序列化包装 - 出站 send/broadcast 编码，入站载荷解码
    Serializing wrapper - encodes outbound send/broadcast, decodes inbound payloads.

    序列化器通过提供者获取，之后替换序列化器对已绑定的适配器同样生效。
    The serializer comes from a provider so replacing it later also applies to
    the already bound adapter.
    """

    def __init__(self, inner: Any, serializer_provider: Callable[[], Serializer]) -> None:
        self._inner = inner
        self._serializer_provider = serializer_provider

    @property
    def inner(self) -> Any:
        """被包装的原始适配器 / The wrapped adapter."""
        return self._inner

    def send(self, event_type: str, payload: Any, *args: Any) -> Any:
        encoded = self._serializer_provider().encode(payload)
        return self._inner.send(event_type, encoded, *args)

    def broadcast(self, event_type: str, payload: Any, *args: Any) -> Any:
        encoded = self._serializer_provider().encode(payload)
        return self._inner.broadcast(event_type, encoded, *args)

    def on_message(self, callback: InboundCallback) -> Any:
        def decoding_callback(event_type: str, payload: Any) -> Any:
            decoded = self._serializer_provider().decode(payload)
            return callback(event_type, decoded)

        return self._inner.on_message(decoding_callback)

    def __getattr__(self, name: str) -> Any:
        # normalize_payload / disconnect / off 等可选方法直接透传
        return getattr(self._inner, name)
