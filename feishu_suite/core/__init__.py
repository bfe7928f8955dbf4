"""
核心模块
包含插件配置管理
"""

from .config import ConfigManager, resolve_tools_config

__all__ = [
    "ConfigManager",
    "resolve_tools_config",
]
