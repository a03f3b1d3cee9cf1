"""
网关模块 - 传输适配器契约与序列化
Gateway module - transport adapter contract and serialization.
"""

from AetherRealtime.gateway.base import SerializingTransport, TransportAdapter, validate_adapter
from AetherRealtime.gateway.serializer import IdentitySerializer, Serializer

__all__ = [
    "IdentitySerializer",
    "SerializingTransport",
    "Serializer",
    "TransportAdapter",
    "validate_adapter",
]
