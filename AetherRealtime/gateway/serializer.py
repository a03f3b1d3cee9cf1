"""
序列化器契约 - 出站编码、入站解码
Serializer contract - outbound encoding, inbound decoding.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from AetherRealtime.kernel.errors import ConfigurationError


@runtime_checkable
class Serializer(Protocol):
    def encode(self, data: Any) -> Any: ...

    def decode(self, data: Any) -> Any: ...


class IdentitySerializer:
    """默认序列化器，原样传递 / Default serializer, passes values through."""

    def encode(self, data: Any) -> Any:
        return data

    def decode(self, data: Any) -> Any:
        return data


def validate_serializer(candidate: Any) -> Serializer:
    if not callable(getattr(candidate, "encode", None)) or not callable(
        getattr(candidate, "decode", None)
    ):
        raise ConfigurationError("serializer must provide encode and decode methods")
    return candidate
