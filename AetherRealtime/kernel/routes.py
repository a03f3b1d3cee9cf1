"""
路由表 - 事件类型到路由的映射
Route table - maps event types to routes.

同一事件类型只有一个有效路由，后注册的覆盖先注册的。
One active route per event type; the last registration wins.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from AetherRealtime.kernel.errors import InvalidRouteError
from AetherRealtime.kernel.guards import Guard
from AetherRealtime.kernel.middleware import Middleware, MiddlewareChain, MiddlewareFunction

if TYPE_CHECKING:
    from AetherRealtime.message.context import EventContext

logger = logging.getLogger(__name__)

Handler = Callable[["EventContext"], Any]


@dataclass(frozen=True)
class Route:
    """
    路由 - 事件类型与其守卫、中间件、处理器的绑定
    Route - binds an event type to its guards, middleware and handler.
    """

    event: str
    handler: Handler
    guards: tuple[Guard, ...] = ()
    middleware: MiddlewareChain = field(default_factory=MiddlewareChain, compare=False)

    @classmethod
    def build(
        cls,
        event: str,
        handler: Handler,
        guards: Iterable[Guard] | None = None,
        middleware: Iterable[Middleware | MiddlewareFunction] | None = None,
    ) -> Route:
        """
        校验并构建路由
        Validate and build a route.
        """
        if not event or not isinstance(event, str):
            raise InvalidRouteError('invalid route: "event" and "handler" are required')
        if handler is None:
            raise InvalidRouteError('invalid route: "event" and "handler" are required')
        if not callable(handler):
            raise InvalidRouteError(f'handler for event "{event}" must be callable')

        guard_list = tuple(guards or ())
        for guard in guard_list:
            if not callable(guard):
                raise InvalidRouteError(f'guards for event "{event}" must be callable')

        return cls(
            event=event,
            handler=handler,
            guards=guard_list,
            middleware=MiddlewareChain(middleware or ()),
        )

    @classmethod
    def from_definition(cls, definition: Route | Mapping[str, Any]) -> Route:
        """
        从 {event, guards?, middleware?, handler} 定义构建路由
        Build a route from an {event, guards?, middleware?, handler} definition.
        """
        if isinstance(definition, Route):
            return definition
        if not isinstance(definition, Mapping):
            raise InvalidRouteError(
                f"route definition must be a mapping, got {type(definition).__name__}"
            )
        return cls.build(
            event=definition.get("event", ""),
            handler=definition.get("handler"),
            guards=definition.get("guards"),
            middleware=definition.get("middleware"),
        )


class RouteTable:
    """
    路由表
    Route table.
    """

    def __init__(self) -> None:
        self._routes: dict[str, Route] = {}

    def register(self, route: Route) -> None:
        if not route.event:
            raise InvalidRouteError('invalid route: "event" and "handler" are required')
        if not callable(route.handler):
            raise InvalidRouteError(f'handler for event "{route.event}" must be callable')

        if route.event in self._routes:
            logger.debug("路由 %s 被重新注册，覆盖旧的处理器", route.event)
        self._routes[route.event] = route

    def lookup(self, event: str) -> Route | None:
        return self._routes.get(event)

    def clear(self) -> None:
        self._routes.clear()

    def events(self) -> list[str]:
        return list(self._routes)

    def view(self) -> Mapping[str, Route]:
        """只读视图（供插件使用） / Read-only view, handed to plugins."""
        return MappingProxyType(self._routes)

    def __contains__(self, event: object) -> bool:
        return event in self._routes

    def __len__(self) -> int:
        return len(self._routes)
