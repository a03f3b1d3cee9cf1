"""
调度内核 - 中间件链、守卫、路由表、调度器、事件总线和生命周期钩子
Dispatch kernel - middleware chain, guards, route table, dispatcher, event bus
and lifecycle hooks.
"""

from AetherRealtime.kernel.dispatcher import Dispatcher
from AetherRealtime.kernel.guards import GuardEvaluator
from AetherRealtime.kernel.lifecycle import LifecycleHooks
from AetherRealtime.kernel.middleware import MiddlewareChain
from AetherRealtime.kernel.routes import RouteTable
from AetherRealtime.kernel.signal_hub import LocalEventBus

__all__ = [
    "Dispatcher",
    "GuardEvaluator",
    "LifecycleHooks",
    "LocalEventBus",
    "MiddlewareChain",
    "RouteTable",
]
