"""
插件模块
Plugin module.
"""

from AetherRealtime.pack.base import Plugin
from AetherRealtime.pack.host import PluginHost, PluginUtils

__all__ = ["Plugin", "PluginHost", "PluginUtils"]
