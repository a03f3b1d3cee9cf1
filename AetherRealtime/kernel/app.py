"""
实时应用 - 调度核心的公开 API
Realtime app - the public API of the dispatch core.

每个 Realtime 实例独立拥有自己的路由表、监听者表和钩子表，
没有全局单例，同一进程中可以并存多个互不影响的调度器。
Each Realtime instance owns its route table, listener registry and hook
registry; there is no global singleton, so several isolated dispatchers can
coexist in one process.

注册调用应在进入稳定调度之前完成，并且只能在事件循环线程中进行。
Registration calls are expected before steady-state dispatch and must happen
on the event loop thread.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import secrets
from collections.abc import Iterable, Mapping
from typing import Any

from AetherRealtime.config.manager import ConfigManager
from AetherRealtime.gateway.base import SerializingTransport, validate_adapter
from AetherRealtime.gateway.serializer import IdentitySerializer, Serializer, validate_serializer
from AetherRealtime.kernel.dispatcher import (
    DispatchOutcome,
    Dispatcher,
    ErrorHandler,
    default_error_handler,
)
from AetherRealtime.kernel.errors import ConfigurationError, NotConfiguredError
from AetherRealtime.kernel.lifecycle import HookCallback, HookName, LifecycleHooks
from AetherRealtime.kernel.logging import get_log_manager
from AetherRealtime.kernel.middleware import Middleware, MiddlewareChain, MiddlewareFunction
from AetherRealtime.kernel.routes import Route, RouteTable
from AetherRealtime.kernel.signal_hub import EventEmitter, Listener, LocalEventBus
from AetherRealtime.message.context import ContextFactory
from AetherRealtime.pack.host import PluginHost, PluginUtils

logger = logging.getLogger(__name__)


class Realtime:
    """
    实时调度器实例
    Realtime dispatcher instance.

    除了 start/stop/reset/dispatch/wait_idle 之外，所有注册方法都返回 self，可链式调用。
    Apart from start/stop/reset/dispatch/wait_idle, every registration method
    returns self for chaining.
    """

    def __init__(self, options: Mapping[str, Any] | None = None, *, load_env: bool = False) -> None:
        self._config = ConfigManager()
        if load_env:
            self._config.load_env()
        if options:
            self._config.update(options)

        self._client_id = secrets.token_hex(4)
        self._global_middleware = MiddlewareChain()
        self._routes = RouteTable()
        self._hooks = LifecycleHooks()
        self._bus = LocalEventBus()
        self._custom_emitter: EventEmitter | None = None
        self._serializer: Serializer = IdentitySerializer()
        self._error_handler: ErrorHandler = default_error_handler
        self._transport: SerializingTransport | None = None
        self._app_context: Any = {}
        self._active = False
        self._inflight: set[asyncio.Task[DispatchOutcome]] = set()

        self._context_factory = ContextFactory(
            transport_provider=lambda: self._transport,
            emit=self.emit,
            local_client_id=self._client_id,
        )
        self._dispatcher = Dispatcher(
            context_factory=self._context_factory,
            global_middleware=self._global_middleware,
            routes=self._routes,
            hooks=self._hooks,
            error_handler_provider=lambda: self._error_handler,
            app_context_provider=lambda: self._app_context,
        )
        self._plugins = PluginHost(
            self,
            PluginUtils(
                get_transport=lambda: self._transport,
                get_routes=self._routes.view,
                get_app_context=lambda: self._app_context,
                get_config=self._config.to_dict,
            ),
        )
        self._apply_debug()

    # ==================== 注册 / Registration ====================

    def register_global_middleware(
        self, middleware_list: Iterable[Middleware | MiddlewareFunction]
    ) -> Realtime:
        """
        注册对所有消息生效的全局中间件
        Register global middleware that runs for every message.
        """
        if not isinstance(middleware_list, (list, tuple)):
            raise ConfigurationError("middleware_list must be a list")
        self._global_middleware.extend(middleware_list)
        return self

    def register_routes(self, route_list: Iterable[Route | Mapping[str, Any]]) -> Realtime:
        """
        注册路由：[{event, guards?, middleware?, handler}, ...]
        Register routes: [{event, guards?, middleware?, handler}, ...].
        """
        if not isinstance(route_list, (list, tuple)):
            raise ConfigurationError("route_list must be a list")
        for definition in route_list:
            route = Route.from_definition(definition)
            self._routes.register(route)
            logger.debug("已注册路由: %s", route.event)
        return self

    def adapter(self, instance: Any) -> Realtime:
        """
        绑定传输适配器（WebSocket、SSE、内存等）
        Bind the transport adapter (WebSocket, SSE, memory, ...).
        """
        validate_adapter(instance, strict=self._config.strict_mode)
        self._transport = SerializingTransport(instance, lambda: self._serializer)
        logger.debug("已绑定传输适配器: %s", type(instance).__name__)
        return self

    def set_app_context(self, value: Any) -> Realtime:
        """
        替换应用上下文，只影响之后创建的消息上下文
        Replace the application context; only contexts created afterwards see it.
        """
        self._app_context = value if value is not None else {}
        return self

    def hook(self, name: HookName | str, callback: HookCallback) -> Realtime:
        self._hooks.register(name, callback)
        return self

    def use(self, plugin: Any) -> Realtime:
        self._plugins.install(plugin)
        return self

    def configure(self, **options: Any) -> Realtime:
        self._config.update(options)
        self._apply_debug(explicit="debug" in options)
        return self

    def set_error_handler(self, handler: ErrorHandler) -> Realtime:
        if not callable(handler):
            raise ConfigurationError("error handler must be callable")
        self._error_handler = handler
        return self

    def set_serializer(self, serializer: Serializer) -> Realtime:
        self._serializer = validate_serializer(serializer)
        return self

    def set_event_emitter(self, emitter: EventEmitter) -> Realtime:
        """
        用自定义发射器整体替换本地事件总线
        Replace the local event bus wholesale with a custom emitter.
        """
        for method in ("on", "off", "emit"):
            if not callable(getattr(emitter, method, None)):
                raise ConfigurationError("event emitter must implement on, off and emit")
        self._custom_emitter = emitter
        return self

    # ==================== 本地事件 / Local events ====================

    def on(self, event: str, callback: Listener) -> Realtime:
        if self._custom_emitter is not None:
            self._custom_emitter.on(event, callback)
        else:
            self._bus.on(event, callback)
        return self

    def off(self, event: str, callback: Listener) -> Realtime:
        if self._custom_emitter is not None:
            self._custom_emitter.off(event, callback)
        else:
            self._bus.off(event, callback)

        # 通知传输层清理（如果支持）
        transport_off = getattr(self._transport, "off", None)
        if callable(transport_off):
            transport_off(event, callback)
        return self

    def emit(self, event: str, data: Any = None) -> None:
        if self._custom_emitter is not None:
            self._custom_emitter.emit(event, data)
        else:
            self._bus.emit(event, data)

    # ==================== 生命周期 / Lifecycle ====================

    async def start(self) -> Realtime:
        """
        启动：执行 before_start 钩子，绑定入站回调，执行 after_start 钩子
        Start: run before_start hooks, bind the inbound callback, run after_start hooks.
        """
        if self._transport is None:
            raise NotConfiguredError("adapter not defined, call adapter() first")

        if self._active:
            logger.warning("Realtime 已经启动")
            return self

        await self._hooks.run(HookName.BEFORE_START)

        result = self._transport.on_message(self._on_inbound)
        if inspect.isawaitable(result):
            await result

        self._active = True
        await self._hooks.run(HookName.AFTER_START)
        logger.debug("Realtime 已启动 (client_id=%s)", self._client_id)
        return self

    async def stop(self) -> Realtime:
        """
        停止：清除监听者，断开传输层（如果支持）
        Stop: clear listeners and disconnect the transport when supported.
        """
        if not self._active:
            return self

        self._bus.clear()

        disconnect = getattr(self._transport, "disconnect", None)
        if callable(disconnect):
            try:
                result = disconnect()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("断开传输层时出错")

        self._active = False
        logger.debug("Realtime 已停止")
        return self

    async def reset(self) -> Realtime:
        """
        完全重置：停止并清空路由、中间件、上下文、传输层、插件和钩子
        Full reset: stop, then clear routes, middleware, context, transport,
        plugins and hooks.
        """
        await self.stop()
        self._routes.clear()
        self._global_middleware.clear()
        self._app_context = {}
        self._transport = None
        self._plugins.clear()
        self._hooks.clear()
        logger.debug("Realtime 已重置")
        return self

    def _on_inbound(self, event_type: str, raw: Any) -> asyncio.Task[DispatchOutcome]:
        """
        传输层入站回调：每条消息一个任务
        Inbound transport callback: one task per message.

        必须在事件循环线程中调用；返回的任务可以被适配器等待。
        Must be called on the event loop thread; adapters may await the returned task.
        """
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._dispatcher.process(event_type, raw))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def dispatch(self, event_type: str, raw: Any) -> DispatchOutcome:
        """
        直接调度一条消息（不经过传输层的入站回调，也不做解码）
        Dispatch one message directly, bypassing the inbound callback and decoding.
        """
        return await self._dispatcher.process(event_type, raw)

    async def wait_idle(self) -> None:
        """等待所有进行中的消息和异步监听者完成 / Await in-flight messages and async listeners."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)
        await self._bus.drain()

    # ==================== 工具 / Utilities ====================

    def get_transport(self) -> SerializingTransport | None:
        return self._transport

    @property
    def client_id(self) -> str:
        return self._client_id

    def get_client_id(self) -> str:
        return self._client_id

    def is_started(self) -> bool:
        return self._active

    def get_config(self) -> dict[str, Any]:
        return self._config.to_dict()

    @property
    def config(self) -> ConfigManager:
        return self._config

    @property
    def routes(self) -> RouteTable:
        return self._routes

    @property
    def hooks(self) -> LifecycleHooks:
        return self._hooks

    @property
    def bus(self) -> LocalEventBus:
        return self._bus

    @property
    def plugins(self) -> PluginHost:
        return self._plugins

    def _apply_debug(self, explicit: bool = False) -> None:
        """
        debug 为真时调高包日志级别；显式关闭时恢复 INFO
        Raise the package log level when debug is on; restore INFO when it is
        switched off explicitly. The level is shared by every instance.
        """
        if self._config.debug:
            get_log_manager().set_level("DEBUG")
        elif explicit:
            get_log_manager().set_level("INFO")


def create_realtime(options: Mapping[str, Any] | None = None, **kwargs: Any) -> Realtime:
    """
    创建一个独立的调度器实例
    Create an independent dispatcher instance.
    """
    merged = dict(options or {})
    merged.update(kwargs)
    return Realtime(merged)
