"""
飞书平台集成模块

本模块包含与飞书开放平台交互的组件，
包括客户端管理、原生 API 调用和机器人探测。
"""

from .api import LarkApi, LarkApiError
from .client import LarkClientManager
from .probe import ProbeCache, probe_feishu

__all__ = [
    "LarkApi",
    "LarkApiError",
    "LarkClientManager",
    "ProbeCache",
    "probe_feishu",
]
