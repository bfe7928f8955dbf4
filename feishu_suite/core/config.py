"""
配置管理模块
负责读取飞书账号、工具开关和探测缓存等插件配置
"""

from typing import Any, Dict, List, Optional
from astrbot.api import logger, AstrBotConfig

from ..models import LarkAccount, ToolsConfig


TOOL_DOMAINS = ("calendar", "meeting", "feed", "urgent", "probe")


def resolve_tools_config(raw: Optional[Dict[str, Any]]) -> ToolsConfig:
    """
    解析工具开关配置

    未配置的开关默认启用；非布尔值会被忽略并记录警告。
    """
    tools = ToolsConfig()
    if raw is None:
        return tools
    if not isinstance(raw, dict):
        logger.warning(f"tools配置无效: {raw!r}，全部工具使用默认开关")
        return tools

    for domain in TOOL_DOMAINS:
        if domain not in raw:
            continue
        value = raw[domain]
        if isinstance(value, bool):
            setattr(tools, domain, value)
        else:
            logger.warning(f"tools.{domain}配置无效: {value!r}，使用默认值: True")
    return tools


class ConfigManager:
    """配置管理器"""

    def __init__(self, config: AstrBotConfig):
        self.config = config

    def get_default_account(self) -> LarkAccount:
        """获取顶层配置的默认账号"""
        return LarkAccount(
            account_id=self.config.get("account_id", "default") or "default",
            app_id=self.config.get("app_id", "") or "",
            app_secret=self.config.get("app_secret", "") or "",
            domain=self.get_domain(self.config.get("domain", "feishu")),
            enabled=True,
            tools=resolve_tools_config(self.config.get("tools")),
        )

    def get_domain(self, domain: Any) -> str:
        """校验域名配置"""
        if domain in ("feishu", "lark"):
            return domain
        if isinstance(domain, str) and domain.startswith("http"):
            return domain.rstrip("/")
        logger.warning(f"domain配置无效: {domain}，使用默认值: feishu")
        return "feishu"

    def get_extra_accounts(self) -> List[LarkAccount]:
        """获取 accounts 列表中配置的账号"""
        raw_accounts = self.config.get("accounts", [])
        if not isinstance(raw_accounts, list):
            logger.warning(f"accounts配置格式无效: {type(raw_accounts)}，忽略")
            return []

        accounts = []
        for index, raw in enumerate(raw_accounts):
            if not isinstance(raw, dict):
                logger.warning(f"accounts[{index}]不是对象，已跳过")
                continue
            accounts.append(
                LarkAccount(
                    account_id=raw.get("account_id") or f"account_{index}",
                    app_id=raw.get("app_id", "") or "",
                    app_secret=raw.get("app_secret", "") or "",
                    domain=self.get_domain(raw.get("domain", "feishu")),
                    enabled=raw.get("enabled", True) is not False,
                    tools=resolve_tools_config(raw.get("tools")),
                )
            )
        return accounts

    def list_enabled_accounts(self) -> List[LarkAccount]:
        """
        获取所有启用且凭证完整的账号

        顶层默认账号（如果配置了凭证）排在最前面，
        工具只会绑定到第一个账号。
        """
        accounts = []
        default_account = self.get_default_account()
        if default_account.has_credentials():
            accounts.append(default_account)

        for account in self.get_extra_accounts():
            if not account.enabled:
                logger.debug(f"账号 {account.account_id} 已禁用，跳过")
                continue
            if not account.has_credentials():
                logger.warning(f"账号 {account.account_id} 缺少 app_id 或 app_secret，跳过")
                continue
            accounts.append(account)
        return accounts

    def get_probe_cache_ttl(self) -> int:
        """获取探测结果缓存时间（秒）"""
        ttl = self.config.get("probe_cache_ttl", 600)
        if not isinstance(ttl, int) or isinstance(ttl, bool) or ttl <= 0:
            logger.warning(f"probe_cache_ttl配置无效: {ttl}，使用默认值: 600")
            return 600
        return ttl

    def get_request_timeout(self) -> int:
        """获取飞书API请求超时时间（秒）"""
        timeout = self.config.get("request_timeout", 30)
        if not isinstance(timeout, int) or isinstance(timeout, bool) or timeout <= 0:
            logger.warning(f"request_timeout配置无效: {timeout}，使用默认值: 30")
            return 30
        return timeout
