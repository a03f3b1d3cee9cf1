"""
Configuration Manager - runtime options of a dispatcher instance.

Defaults are merged with user options, JSON files and environment variables.
Keys unknown to the core are kept and forwarded to the transport adapter.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from AetherRealtime.config.defaults import build_default_config

logger = logging.getLogger(__name__)

ENV_PREFIX = "AETHER_REALTIME_"


def _to_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


# 环境变量 -> (配置键, 转换函数)
ENV_MAPPINGS: dict[str, tuple[str, Callable[[str], Any]]] = {
    f"{ENV_PREFIX}DEBUG": ("debug", _to_bool),
    f"{ENV_PREFIX}STRICT_MODE": ("strict_mode", _to_bool),
    f"{ENV_PREFIX}AUTO_RECONNECT": ("auto_reconnect", _to_bool),
    f"{ENV_PREFIX}MAX_RECONNECT_ATTEMPTS": ("max_reconnect_attempts", int),
    f"{ENV_PREFIX}RECONNECT_DELAY": ("reconnect_delay", int),
}


@dataclass
class ReconnectConfig:
    """Reconnection options, interpreted only by transport adapters."""

    auto_reconnect: bool = True
    max_reconnect_attempts: int = 5
    reconnect_delay: int = 1000


class ConfigManager:
    """
    Manages the configuration of one dispatcher instance.

    Supports dot-notation keys, deep-merged option updates, JSON files and
    environment overrides.
    """

    def __init__(self, options: Mapping[str, Any] | None = None) -> None:
        self._config: dict[str, Any] = build_default_config()
        if options:
            self.update(options)

    def update(self, options: Mapping[str, Any]) -> None:
        """Merge options over the current configuration."""
        self._deep_merge(self._config, dict(options))

    def load_file(self, path: str | Path) -> None:
        """Merge a JSON configuration file over the current configuration."""
        config_path = Path(path)
        try:
            with open(config_path, encoding="utf-8") as f:
                file_config = json.load(f)
        except (json.JSONDecodeError, OSError):
            logger.warning("Failed to load config file %s, keeping current values", config_path)
            return

        if not isinstance(file_config, dict):
            logger.warning("Config file %s does not hold an object, ignored", config_path)
            return

        self.update(file_config)
        logger.info("Configuration loaded from %s", config_path)

    def load_env(self, environ: Mapping[str, str] | None = None) -> None:
        """Override config values from environment variables."""
        environ = os.environ if environ is None else environ
        for env_var, (config_key, converter) in ENV_MAPPINGS.items():
            value = environ.get(env_var)
            if value is None:
                continue
            try:
                self.set(config_key, converter(value))
                logger.debug("Config override from env: %s", config_key)
            except ValueError:
                logger.warning("Invalid env value for %s", env_var)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value by dot-notation key.

        Example:
            config.get("debug", False)
        """
        value: Any = self._config
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value by dot-notation key."""
        keys = key.split(".")
        target = self._config
        for k in keys[:-1]:
            if k not in target or not isinstance(target[k], dict):
                target[k] = {}
            target = target[k]
        target[keys[-1]] = value

    def to_dict(self) -> dict[str, Any]:
        """Get a deep copy of the full configuration."""
        return self._deep_copy(self._config)

    @property
    def debug(self) -> bool:
        return bool(self._config.get("debug", False))

    @property
    def strict_mode(self) -> bool:
        return bool(self._config.get("strict_mode", True))

    @property
    def reconnect(self) -> ReconnectConfig:
        """Get reconnection options for the transport adapter."""
        return ReconnectConfig(
            **{k: v for k, v in self._config.items() if k in ReconnectConfig.__dataclass_fields__}
        )

    def _deep_merge(self, base: dict, updates: dict) -> None:
        """Deep merge updates into base dict."""
        for key, value in updates.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _deep_copy(self, obj: Any) -> Any:
        if isinstance(obj, dict):
            return {k: self._deep_copy(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [self._deep_copy(item) for item in obj]
        return obj
