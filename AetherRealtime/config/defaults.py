"""
默认配置 - 调度核心的所有默认配置值
Default configuration - all default configuration values of the dispatch core.
"""

from __future__ import annotations

from typing import Any

# 框架版本
VERSION = "0.1.0"


def build_default_config() -> dict[str, Any]:
    """
    构建默认配置
    Build the default configuration.
    """
    return {
        # 详细诊断日志
        "debug": False,
        # 绑定适配器时校验最小契约
        "strict_mode": True,
        # 以下三项只转发给传输适配器，核心不做重连
        "auto_reconnect": True,
        "max_reconnect_attempts": 5,
        # 毫秒
        "reconnect_delay": 1000,
    }
