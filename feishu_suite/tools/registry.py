"""
工具注册模块

按第一个启用账号的工具开关，创建各领域工具实例。
"""

from typing import Dict, List, Optional
from astrbot.api import logger

from ..core.config import ConfigManager, resolve_tools_config
from ..lark.api import LarkApi
from ..lark.client import LarkClientManager
from ..lark.probe import ProbeCache
from .base import FeishuTool
from .calendar import CalendarTool
from .feed import FeedTool
from .meeting import MeetingTool
from .probe import ProbeTool
from .urgent import UrgentTool


TOOL_CLASSES = {
    "calendar": CalendarTool,
    "meeting": MeetingTool,
    "feed": FeedTool,
    "urgent": UrgentTool,
}


class ToolRegistry:
    """
    工具注册表

    Attributes:
        _client_manager: 飞书客户端管理器
        _config_manager: 配置管理器
        probe_cache: 探测结果缓存
        _tools: 工具名称 → 工具实例
    """

    def __init__(
        self,
        client_manager: LarkClientManager,
        config_manager: Optional[ConfigManager],
        probe_cache: Optional[ProbeCache] = None,
    ):
        self._client_manager = client_manager
        self._config_manager = config_manager
        if probe_cache is None:
            ttl = config_manager.get_probe_cache_ttl() if config_manager else 600
            probe_cache = ProbeCache(ttl)
        self.probe_cache = probe_cache
        self._tools: Dict[str, FeishuTool] = {}

    def register_all(self) -> List[str]:
        """
        注册所有启用的工具

        没有配置、没有可用账号或开关关闭时跳过对应工具。
        没有配置凭证但存在飞书平台适配器时，使用顶层 tools 开关。

        Returns:
            已注册的工具名称列表
        """
        self._tools.clear()

        if self._config_manager is None:
            logger.debug("飞书工具: 没有可用配置，跳过注册")
            return []

        account = self._client_manager.get_account()
        if account is not None:
            tools_config = account.tools
        elif self._client_manager.is_available():
            tools_config = resolve_tools_config(self._config_manager.config.get("tools"))
        else:
            logger.debug("飞书工具: 没有配置飞书账号，跳过注册")
            return []

        api = LarkApi.from_manager(self._client_manager)
        for domain, tool_class in TOOL_CLASSES.items():
            if not tools_config.is_enabled(domain):
                logger.debug(f"飞书工具: {tool_class.name} 已在配置中禁用")
                continue
            self._register(tool_class(api))

        if tools_config.is_enabled("probe"):
            self._register(ProbeTool(self._client_manager, self.probe_cache))
        else:
            logger.debug(f"飞书工具: {ProbeTool.name} 已在配置中禁用")

        return self.names()

    def _register(self, tool: FeishuTool):
        self._tools[tool.name] = tool
        logger.info(f"{tool.name}: 已注册 {tool.label} 工具 ({len(tool.actions)} 个操作)")

    def get(self, name: str) -> Optional[FeishuTool]:
        return self._tools.get(name)

    def names(self) -> List[str]:
        return list(self._tools)

    def labels(self) -> List[str]:
        """已注册工具的显示名称"""
        return [tool.label for tool in self._tools.values()]
