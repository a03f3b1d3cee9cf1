"""
插件宿主 - 安装第三方扩展
Plugin host - installs third-party extensions.

插件在进程生命周期内永久有效，没有卸载机制。
Plugins are permanent for the process lifetime; there is no removal.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from AetherRealtime.kernel.errors import InvalidPluginError

if TYPE_CHECKING:
    from AetherRealtime.kernel.app import Realtime
    from AetherRealtime.kernel.routes import Route

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PluginUtils:
    """
    插件工具 - 对内部状态的只读访问
    Plugin utilities - read-only accessors to internal state.
    """

    get_transport: Callable[[], Any]
    get_routes: Callable[[], Mapping[str, Route]]
    get_app_context: Callable[[], Any]
    get_config: Callable[[], dict[str, Any]]


def _plugin_name(plugin: Any) -> str:
    return getattr(plugin, "name", None) or getattr(plugin, "__name__", None) or type(plugin).__name__


class PluginHost:
    """
    插件宿主
    Plugin host.
    """

    def __init__(self, api: Realtime, utils: PluginUtils) -> None:
        self._api = api
        self._utils = utils
        self._installed: list[Any] = []

    def install(self, plugin: Any) -> bool:
        """
        安装插件：可调用对象，或带有 install 方法的对象
        Install a plugin: a callable, or an object with an install method.

        同一个插件对象只会被安装一次，重复安装返回 False。
        A plugin object is installed at most once; repeats return False.
        """
        if any(existing is plugin for existing in self._installed):
            logger.warning("插件 %s 已安装，跳过", _plugin_name(plugin))
            return False

        install = getattr(plugin, "install", None)
        if not callable(install):
            if not callable(plugin):
                raise InvalidPluginError("plugin must be a callable or expose an install method")
            install = plugin

        # 先登记再调用，插件在安装过程中再次 use 自身时会被跳过
        self._installed.append(plugin)
        try:
            install(self._api, self._utils)
        except Exception:
            self._installed.remove(plugin)
            raise

        logger.info("插件已安装: %s", _plugin_name(plugin))
        return True

    @property
    def installed(self) -> list[Any]:
        return list(self._installed)

    def clear(self) -> None:
        self._installed.clear()
