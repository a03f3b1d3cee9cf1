"""
AetherRealtime - 传输无关的实时消息调度核心
AetherRealtime - transport-agnostic event dispatch core for real-time messaging.
"""

from AetherRealtime.config.defaults import VERSION
from AetherRealtime.gateway.adapters.memory_adapter import MemoryTransport
from AetherRealtime.kernel.app import Realtime, create_realtime
from AetherRealtime.kernel.dispatcher import DispatchOutcome, DispatchState
from AetherRealtime.kernel.errors import (
    ConfigurationError,
    DoubleContinuationError,
    InvalidAdapterError,
    InvalidPluginError,
    InvalidRouteError,
    NotConfiguredError,
    RealtimeError,
    UnknownHookError,
)
from AetherRealtime.kernel.guards import GuardResult
from AetherRealtime.kernel.lifecycle import HookName
from AetherRealtime.kernel.middleware import Middleware
from AetherRealtime.kernel.routes import Route
from AetherRealtime.message.context import EventContext
from AetherRealtime.pack.base import Plugin

__version__ = VERSION

__all__ = [
    "ConfigurationError",
    "DispatchOutcome",
    "DispatchState",
    "DoubleContinuationError",
    "EventContext",
    "GuardResult",
    "HookName",
    "InvalidAdapterError",
    "InvalidPluginError",
    "InvalidRouteError",
    "MemoryTransport",
    "Middleware",
    "NotConfiguredError",
    "Plugin",
    "Realtime",
    "RealtimeError",
    "Route",
    "UnknownHookError",
    "create_realtime",
]
