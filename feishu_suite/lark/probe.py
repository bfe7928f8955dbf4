"""
机器人探测模块

调用 bot/v3/info 接口确认账号凭证可用，并缓存最近一次探测结果。
"""

import time
from typing import Optional
from lark_oapi.core.http import HttpMethod
from astrbot.api import logger

from ..models import LarkAccount, ProbeResult
from .api import LarkApi, LarkApiError


BOT_INFO_URI = "/open-apis/bot/v3/info"


class ProbeCache:
    """
    单条目的探测结果缓存

    只保留最近一次探测的结果，写入新结果会替换旧结果。

    Attributes:
        ttl: 缓存有效期（秒）
    """

    def __init__(self, ttl: int = 600):
        self.ttl = ttl
        self._app_id: Optional[str] = None
        self._result: Optional[ProbeResult] = None
        self._expires_at = 0.0

    def get(self, app_id: str) -> Optional[ProbeResult]:
        if self._result is None or self._app_id != app_id:
            return None
        if time.monotonic() >= self._expires_at:
            return None
        return self._result

    def set(self, result: ProbeResult, app_id: str):
        self._app_id = app_id
        self._result = result
        self._expires_at = time.monotonic() + self.ttl

    def clear(self):
        self._app_id = None
        self._result = None
        self._expires_at = 0.0


async def probe_feishu(account: Optional[LarkAccount], client_manager, cache: ProbeCache) -> ProbeResult:
    """
    探测账号的机器人信息

    Args:
        account: 待探测的账号
        client_manager: 用于创建 SDK 客户端的 LarkClientManager
        cache: 探测结果缓存

    Returns:
        ProbeResult，凭证缺失时不写缓存
    """
    if account is None or not account.has_credentials():
        return ProbeResult(ok=False, error="missing credentials (app_id, app_secret)")

    cached = cache.get(account.app_id)
    if cached is not None:
        logger.debug(f"使用缓存的探测结果: {account.app_id}")
        return cached

    try:
        api = LarkApi(client_manager.create_client(account))
        payload = await api.call_raw(HttpMethod.GET, BOT_INFO_URI)
        data = payload.get("data")
        bot = payload.get("bot") or (data.get("bot") if isinstance(data, dict) else None) or {}
        result = ProbeResult(
            ok=True,
            app_id=account.app_id,
            bot_name=bot.get("bot_name") or bot.get("app_name"),
            bot_open_id=bot.get("open_id"),
        )
        logger.info(f"飞书机器人探测成功: {result.bot_name} ({account.app_id})")
    except LarkApiError as e:
        result = ProbeResult(
            ok=False,
            app_id=account.app_id,
            error=f"API error: {e.msg or f'code {e.code}'}",
        )
        logger.warning(f"飞书机器人探测失败: {account.app_id}: {result.error}")
    except Exception as e:
        result = ProbeResult(ok=False, app_id=account.app_id, error=str(e))
        logger.error(f"飞书机器人探测异常: {account.app_id}: {e}", exc_info=True)

    cache.set(result, account.app_id)
    return result
