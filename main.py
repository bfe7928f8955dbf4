"""
飞书协作套件工具插件
把飞书日历、视频会议、消息流卡片、消息加急和机器人探测注册为大模型工具
"""

import json
from typing import Any, Optional

from astrbot.api.event import filter, AstrMessageEvent
from astrbot.api.star import Context, Star
from astrbot.api import logger, AstrBotConfig

from .feishu_suite.core.config import ConfigManager
from .feishu_suite.lark.client import LarkClientManager
from .feishu_suite.lark.probe import ProbeCache, probe_feishu
from .feishu_suite.tools.base import ToolError, parse_params
from .feishu_suite.tools.registry import ToolRegistry


# 全局变量
config_manager = None
lark_client_manager = None
probe_cache = None
tool_registry = None


class FeishuSuiteTools(Star):
    def __init__(self, context: Context, config: AstrBotConfig):
        super().__init__(context)
        self.config = config

        global config_manager, lark_client_manager, probe_cache, tool_registry

        try:
            config_manager = ConfigManager(config)

            # 客户端在首次调用工具时才会创建
            lark_client_manager = LarkClientManager(context, config_manager)
            logger.info("飞书客户端管理器已创建（将在首次使用时初始化）")

            probe_cache = ProbeCache(config_manager.get_probe_cache_ttl())
            tool_registry = ToolRegistry(lark_client_manager, config_manager, probe_cache)
            registered = tool_registry.register_all()
            logger.info(f"飞书协作套件工具插件已初始化，已注册工具: {registered}")

        except Exception as e:
            logger.error(f"插件初始化失败: {e}", exc_info=True)
            raise

    async def _run_tool(self, name: str, action: str, params: Optional[Any]) -> str:
        """执行已注册的工具，返回 JSON 文本"""
        if tool_registry is None:
            return json.dumps({"error": "Feishu tools are not initialized"}, ensure_ascii=False)

        tool = tool_registry.get(name)
        if tool is None:
            # 平台适配器可能晚于插件加载，重新注册一次
            tool_registry.register_all()
            tool = tool_registry.get(name)
        if tool is None:
            logger.warning(f"{name}: 工具未启用或没有可用的飞书账号")
            return json.dumps(
                {"error": f"{name} is disabled or no Feishu account is configured"},
                ensure_ascii=False,
            )

        try:
            payload = parse_params(params)
        except ToolError as e:
            return json.dumps({"error": str(e)}, ensure_ascii=False)
        if action:
            payload["action"] = action

        result = await tool.execute(payload)
        return result.text

    @filter.llm_tool(name="feishu_calendar")
    async def feishu_calendar(
        self, event: AstrMessageEvent, action: str, params: Optional[dict] = None
    ):
        """飞书日历工具。管理日历、日程、参会人，查询忙闲，创建日程会议群。

        时间使用 Unix 秒级时间戳字符串。参会人格式：{"type": "user|chat|resource|third_party", "user_id"/"chat_id"/"room_id"/"third_party_email": "..."}。

        Args:
            action(string): 操作名称：list_calendars, get_calendar, get_primary_calendar, create_calendar, delete_calendar, list_events, get_event, create_event, update_event, delete_event, list_attendees, add_attendees, remove_attendees, query_freebusy, create_meeting_chat, delete_meeting_chat
            params(object): 操作参数，例如 {"calendar_id": "...", "summary": "周会", "start_time": "1700000000", "end_time": "1700003600"}
        """
        return await self._run_tool("feishu_calendar", action, params)

    @filter.llm_tool(name="feishu_meeting")
    async def feishu_meeting(
        self, event: AstrMessageEvent, action: str, params: Optional[dict] = None
    ):
        """飞书视频会议工具。查询和管理会议、会议预约与会议录制。

        参与者格式：{"id": "ou_xxx", "user_type": 1}。

        Args:
            action(string): 操作名称：get_meeting, invite, end_meeting, kickout, set_host, list_by_no, create_reserve, get_reserve, update_reserve, delete_reserve, get_active_meeting, get_recording, start_recording, stop_recording, set_recording_permission
            params(object): 操作参数，例如 {"meeting_id": "...", "invitees": [{"id": "ou_xxx"}]}
        """
        return await self._run_tool("feishu_meeting", action, params)

    @filter.llm_tool(name="feishu_feed")
    async def feishu_feed(
        self, event: AstrMessageEvent, action: str, params: Optional[dict] = None
    ):
        """飞书消息流卡片工具。创建、更新、删除应用消息流卡片，设置机器人或群聊的即时提醒，更新群聊按钮。

        Args:
            action(string): 操作名称：create_app_feed_card, update_app_feed_card, delete_app_feed_card, set_bot_time_sensitive, set_chat_time_sensitive, update_chat_button
            params(object): 操作参数，例如 {"user_ids": ["ou_xxx"], "title": "待办提醒", "link": "https://..."}
        """
        return await self._run_tool("feishu_feed", action, params)

    @filter.llm_tool(name="feishu_urgent")
    async def feishu_urgent(
        self, event: AstrMessageEvent, action: str, params: Optional[dict] = None
    ):
        """飞书消息加急工具。只能加急机器人自己发送的消息，短信和电话加急会消耗企业额度。

        Args:
            action(string): 操作名称：urgent（需要 urgent_type: app/sms/phone）, urgent_app, urgent_sms, urgent_phone
            params(object): 操作参数，例如 {"message_id": "om_xxx", "user_ids": ["ou_xxx"]}
        """
        return await self._run_tool("feishu_urgent", action, params)

    @filter.llm_tool(name="feishu_probe")
    async def feishu_probe(self, event: AstrMessageEvent, action: str = "probe"):
        """检查飞书机器人凭证是否可用，返回机器人名称和 open_id。

        Args:
            action(string): probe（默认）或 clear_cache
        """
        return await self._run_tool("feishu_probe", action, None)

    @filter.command("飞书探测")
    async def probe_command(self, event: AstrMessageEvent):
        """探测当前绑定的飞书机器人"""
        if lark_client_manager is None or probe_cache is None:
            yield event.plain_result("❌ 插件尚未初始化")
            return

        account = lark_client_manager.get_account()
        if account is None:
            yield event.plain_result("❌ 未配置飞书应用凭证 (app_id, app_secret)")
            return

        result = await probe_feishu(account, lark_client_manager, probe_cache)
        if result.ok:
            yield event.plain_result(
                f"✅ 飞书机器人可用\n"
                f"• 账号: {account.account_id}\n"
                f"• App ID: {result.app_id}\n"
                f"• 机器人: {result.bot_name or '未知'}\n"
                f"• open_id: {result.bot_open_id or '未知'}\n"
                f"• 已注册工具: {', '.join(tool_registry.labels()) if tool_registry else '无'}"
            )
        else:
            yield event.plain_result(f"❌ 飞书机器人探测失败: {result.error}")

    async def terminate(self):
        """插件被卸载/停用时调用，清理资源"""
        try:
            logger.info("开始清理飞书协作套件工具插件资源...")

            global config_manager, lark_client_manager, probe_cache, tool_registry

            if probe_cache:
                probe_cache.clear()
                logger.info("探测结果缓存已清理")

            if lark_client_manager:
                lark_client_manager.reset()
                logger.info("飞书客户端缓存已清理")

            config_manager = None
            lark_client_manager = None
            probe_cache = None
            tool_registry = None

            logger.info("飞书协作套件工具插件资源清理完成")

        except Exception as e:
            logger.error(f"插件资源清理失败: {e}", exc_info=True)
