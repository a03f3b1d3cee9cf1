"""消息模块 / Message module."""

from AetherRealtime.message.context import ContextFactory, EventContext
from AetherRealtime.message.payload import NormalizedPayload

__all__ = ["ContextFactory", "EventContext", "NormalizedPayload"]
