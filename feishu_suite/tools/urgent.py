"""
飞书消息加急工具

对机器人自己发送的消息发起应用内、短信或电话加急。
短信和电话加急会消耗企业额度。
"""

from typing import Any, Dict
from lark_oapi.core.http import HttpMethod

from .base import FeishuTool, ToolError, normalize_id_list, require, resolve_user_id_type


URGENT_URI = "/open-apis/im/v1/messages/:message_id/urgent_{kind}"
URGENT_TYPES = ("app", "sms", "phone")
MAX_URGENT_USERS = 200


class UrgentTool(FeishuTool):
    """飞书消息加急操作"""

    name = "feishu_urgent"
    label = "Feishu Urgent Message"

    def _build_actions(self):
        return {
            "urgent": self.urgent,
            "urgent_app": self.urgent_app,
            "urgent_sms": self.urgent_sms,
            "urgent_phone": self.urgent_phone,
        }

    async def urgent(self, p: Dict[str, Any]):
        urgent_type = p.get("urgent_type")
        if urgent_type not in URGENT_TYPES:
            raise ToolError(f"Unknown urgent_type: {urgent_type}")
        return await self._send(p, urgent_type)

    async def urgent_app(self, p: Dict[str, Any]):
        return await self._send(p, "app")

    async def urgent_sms(self, p: Dict[str, Any]):
        return await self._send(p, "sms")

    async def urgent_phone(self, p: Dict[str, Any]):
        return await self._send(p, "phone")

    async def _send(self, p: Dict[str, Any], kind: str) -> Dict[str, Any]:
        """
        发送加急请求

        Args:
            p: 工具参数（message_id、user_id/user_ids、user_id_type）
            kind: app / sms / phone
        """
        message_id = require(p, "message_id")
        if not isinstance(message_id, str) or not message_id.startswith("om_"):
            raise ToolError(
                f"Invalid message_id format: {message_id}. Expected format: om_xxx. "
                "Batch messages (bm_xxx) are not supported."
            )

        user_ids = normalize_id_list(p.get("user_id"), p.get("user_ids"))
        if not user_ids:
            raise ToolError("Missing required parameter: user_ids (provide user_id or user_ids)")
        if len(user_ids) > MAX_URGENT_USERS:
            raise ToolError("Too many users: maximum 200 users per request")

        data = await self._api.call(
            HttpMethod.PATCH,
            URGENT_URI.format(kind=kind),
            paths={"message_id": message_id},
            queries={"user_id_type": resolve_user_id_type(p.get("user_id_type"))},
            body={"user_id_list": user_ids},
        )
        return {"success": True, "invalid_user_id_list": data.get("invalid_user_id_list")}
