"""
飞书机器人探测工具
"""

from typing import Any, Dict

from ..lark.probe import ProbeCache, probe_feishu
from .base import FeishuTool


class ProbeTool(FeishuTool):
    """检查工具绑定账号的机器人凭证是否可用"""

    name = "feishu_probe"
    label = "Feishu Bot Probe"

    def __init__(self, client_manager, cache: ProbeCache):
        self._client_manager = client_manager
        self._cache = cache
        super().__init__(api=None)

    def _build_actions(self):
        return {"probe": self.probe, "clear_cache": self.clear_cache}

    async def probe(self, p: Dict[str, Any]):
        account = self._client_manager.get_account()
        result = await probe_feishu(account, self._client_manager, self._cache)
        return result.to_dict()

    async def clear_cache(self, p: Dict[str, Any]):
        self._cache.clear()
        return {"success": True}
