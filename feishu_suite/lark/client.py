"""
飞书客户端管理器

本模块提供对飞书 SDK 客户端的统一访问接口。
优先使用插件配置中的应用凭证创建客户端；未配置凭证时，
从 AstrBot 上下文中提取飞书平台适配器已有的 SDK 客户端。
"""

from typing import Dict, Optional
import lark_oapi as lark
from astrbot.api.star import Context
from astrbot.api import logger

from ..core.config import ConfigManager
from ..models import LarkAccount


def resolve_domain(domain: str) -> str:
    """把 feishu / lark / 自定义地址转换为 SDK 使用的域名"""
    if domain == "lark":
        return lark.LARK_DOMAIN
    if domain and domain.startswith("http"):
        return domain
    return lark.FEISHU_DOMAIN


class LarkClientManager:
    """
    飞书客户端管理器

    工具只绑定到第一个启用的账号，账号在首次使用时解析并缓存到 reset()。
    没有任何账号配置凭证时，回退到 AstrBot 飞书适配器的客户端；
    适配器未找到时不缓存结果，下次使用时重新查找。

    Attributes:
        _context: AstrBot 上下文对象
        _config_manager: 配置管理器
        _clients: 按 app_id 缓存的 SDK 客户端
        _adapter_client: 从平台适配器中提取的客户端
        _account: 已解析的绑定账号
        _account_loaded: 是否已经解析过账号
    """

    def __init__(self, context: Context, config_manager: ConfigManager):
        self._context = context
        self._config_manager = config_manager
        self._clients: Dict[str, lark.Client] = {}
        self._adapter_client = None
        self._account: Optional[LarkAccount] = None
        self._account_loaded = False

    def get_account(self) -> Optional[LarkAccount]:
        """获取工具绑定的账号（第一个启用的账号）"""
        if not self._account_loaded:
            accounts = self._config_manager.list_enabled_accounts()
            self._account = accounts[0] if accounts else None
            self._account_loaded = True
        return self._account

    def create_client(self, account: LarkAccount) -> lark.Client:
        """
        使用账号凭证创建飞书 SDK 客户端

        同一个 app_id 只会创建一次客户端。
        """
        cached = self._clients.get(account.app_id)
        if cached is not None:
            return cached

        client = (
            lark.Client.builder()
            .app_id(account.app_id)
            .app_secret(account.app_secret)
            .domain(resolve_domain(account.domain))
            .timeout(self._config_manager.get_request_timeout())
            .log_level(lark.LogLevel.INFO)
            .build()
        )
        self._clients[account.app_id] = client
        logger.info(f"已为账号 {account.account_id} 创建飞书客户端 (app_id={account.app_id})")
        return client

    def _find_adapter_client(self):
        """
        从平台管理器中提取飞书 SDK 客户端

        通过类名查找飞书适配器，避免与 lark 模块名冲突导致的导入问题。
        """
        try:
            platforms = self._context.platform_manager.get_insts()
        except Exception as e:
            logger.error(f"读取平台实例失败: {e}", exc_info=True)
            return None

        logger.debug(f"Found {len(platforms)} platform instances")
        for platform in platforms:
            if type(platform).__name__ != "LarkPlatformAdapter":
                continue
            logger.info("找到飞书平台适配器，使用其 SDK 客户端")
            if getattr(platform, "lark_api", None) is not None:
                return platform.lark_api
            if getattr(platform, "client", None) is not None:
                return platform.client
            logger.warning("飞书平台适配器上没有可用的 SDK 客户端")
            return None

        available_platforms = [type(p).__name__ for p in platforms]
        logger.warning(f"未找到飞书平台适配器，可用平台: {available_platforms}")
        return None

    def _get_adapter_client(self):
        """获取适配器客户端，未找到时下次调用会重新查找"""
        if self._adapter_client is None:
            self._adapter_client = self._find_adapter_client()
        return self._adapter_client

    def is_available(self) -> bool:
        """检查飞书客户端是否可用"""
        if self.get_account() is not None:
            return True
        return self._get_adapter_client() is not None

    def get_client(self):
        """
        获取工具使用的飞书 SDK 客户端

        Returns:
            飞书 SDK 客户端（lark.Client 或兼容实例）

        Raises:
            RuntimeError: 如果没有可用的客户端
        """
        account = self.get_account()
        if account is not None:
            return self.create_client(account)

        adapter_client = self._get_adapter_client()
        if adapter_client is None:
            error_msg = (
                "Feishu client is not available. Configure app_id/app_secret "
                "or enable the Lark platform adapter."
            )
            logger.error(error_msg)
            raise RuntimeError(error_msg)
        return adapter_client

    def reset(self):
        """清空客户端和账号缓存"""
        self._clients.clear()
        self._adapter_client = None
        self._account = None
        self._account_loaded = False
