"""
插件基类 - 以类的形式编写插件
Plugin base - write plugins as classes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from AetherRealtime.kernel.app import Realtime
    from AetherRealtime.pack.host import PluginUtils


class Plugin(ABC):
    """
    插件基类
    Plugin base.

    install() 在 use() 时被同步调用一次，可以注册中间件、钩子或路由。
    install() is called once, synchronously, from use(); it may register
    middleware, hooks or routes.
    """

    #: 插件名称，默认使用类名
    plugin_name: str = ""

    @property
    def name(self) -> str:
        """插件名 / Plugin name."""
        return self.plugin_name or self.__class__.__name__

    @abstractmethod
    def install(self, api: Realtime, utils: PluginUtils) -> None:
        ...
