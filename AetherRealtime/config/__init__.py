"""配置模块 / Configuration module."""

from AetherRealtime.config.defaults import build_default_config
from AetherRealtime.config.manager import ConfigManager

__all__ = ["ConfigManager", "build_default_config"]
