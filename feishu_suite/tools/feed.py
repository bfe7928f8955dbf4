"""
飞书消息流卡片工具

封装 IM v2 接口：应用消息流卡片的创建、更新、删除，
机器人/群聊的即时提醒（置顶），以及群聊按钮。
"""

from typing import Any, Dict, List, Optional
from lark_oapi.core.http import HttpMethod

from ..models import build_buttons
from .base import (
    FeishuTool,
    ToolError,
    check_choice,
    normalize_id_list,
    normalize_single_id,
    require,
    resolve_user_id_type,
)


APP_FEED_CARD_URI = "/open-apis/im/v2/app_feed_card"
APP_FEED_CARD_BATCH_URI = APP_FEED_CARD_URI + "/batch"
BOT_TIME_SENSITIVE_URI = "/open-apis/im/v2/feed_cards/bot_time_sentive"
FEED_CARD_URI = "/open-apis/im/v2/feed_cards/:feed_card_id"
CHAT_BUTTON_URI = "/open-apis/im/v2/chat_button"

LABEL_TYPES = ("primary", "secondary", "success", "danger")

# 1=title 2=avatar_key 3=preview 10=status_label 11=buttons 12=link
# 13=time_sensitive 101=display_time 102=sort_time 103=notify
UPDATE_FIELDS = ("1", "2", "3", "10", "11", "12", "13", "101", "102", "103")

MAX_CARD_USERS = 20
MAX_TIME_SENSITIVE_USERS = 50


def build_status_label(raw: Any) -> Optional[Dict[str, Any]]:
    if not raw:
        return None
    if not isinstance(raw, dict) or not raw.get("text"):
        raise ToolError("Invalid status_label: 'text' is required")
    label_type = check_choice(raw.get("type"), LABEL_TYPES, "status_label type") or "primary"
    return {"text": raw["text"], "type": label_type}


def build_app_feed_card(p: Dict[str, Any]) -> Dict[str, Any]:
    """从工具参数组装 app_feed_card 对象，未提供的字段由请求层剔除"""
    return {
        "biz_id": p.get("biz_id"),
        "title": p.get("title"),
        "preview": p.get("preview"),
        "avatar_key": p.get("avatar_key"),
        "status_label": build_status_label(p.get("status_label")),
        "buttons": build_buttons(p.get("buttons")),
        "link": {"link": p["link"]} if p.get("link") else None,
        "time_sensitive": p.get("time_sensitive"),
        "notify": p.get("notify"),
    }


def _missing_users() -> ToolError:
    return ToolError("Missing required parameter: user_ids (provide user_id or user_ids)")


def _require_bool(p: Dict[str, Any], name: str) -> bool:
    value = p.get(name)
    if not isinstance(value, bool):
        raise ToolError(f"Missing required parameter: {name} (true or false)")
    return value


def _update_fields(raw: Any) -> List[str]:
    if not raw:
        raise ToolError("Missing required parameter: update_fields")
    if not isinstance(raw, list):
        raw = [raw]
    fields = [str(f) for f in raw]
    for f in fields:
        check_choice(f, UPDATE_FIELDS, "update_fields value")
    return fields


class FeedTool(FeishuTool):
    """飞书消息流卡片操作"""

    name = "feishu_feed"
    label = "Feishu Feed Card"

    def _build_actions(self):
        return {
            "create_app_feed_card": self.create_app_feed_card,
            "update_app_feed_card": self.update_app_feed_card,
            "delete_app_feed_card": self.delete_app_feed_card,
            "set_bot_time_sensitive": self.set_bot_time_sensitive,
            "set_chat_time_sensitive": self.set_chat_time_sensitive,
            "update_chat_button": self.update_chat_button,
        }

    # ============ 应用消息流卡片 ============

    async def create_app_feed_card(self, p: Dict[str, Any]):
        user_ids = normalize_id_list(p.get("user_id"), p.get("user_ids"))
        if not user_ids:
            raise _missing_users()
        if len(user_ids) > MAX_CARD_USERS:
            raise ToolError("Too many users: maximum 20 users per request")
        require(p, "title")
        require(p, "link")

        data = await self._api.call(
            HttpMethod.POST,
            APP_FEED_CARD_URI,
            queries={"user_id_type": resolve_user_id_type(p.get("user_id_type"))},
            body={"app_feed_card": build_app_feed_card(p), "user_ids": user_ids},
        )
        return {"biz_id": data.get("biz_id"), "failed_cards": data.get("failed_cards")}

    async def update_app_feed_card(self, p: Dict[str, Any]):
        require(p, "biz_id")
        user_id = normalize_single_id(p.get("user_id"), p.get("user_ids"), "user_id")
        update_fields = _update_fields(p.get("update_fields"))

        data = await self._api.call(
            HttpMethod.PUT,
            APP_FEED_CARD_BATCH_URI,
            queries={"user_id_type": resolve_user_id_type(p.get("user_id_type"))},
            body={
                "feed_cards": [
                    {
                        "app_feed_card": build_app_feed_card(p),
                        "user_id": user_id,
                        "update_fields": update_fields,
                    }
                ]
            },
        )
        return {"success": True, "failed_cards": data.get("failed_cards")}

    async def delete_app_feed_card(self, p: Dict[str, Any]):
        biz_id = require(p, "biz_id")
        user_id = normalize_single_id(p.get("user_id"), p.get("user_ids"), "user_id")

        data = await self._api.call(
            HttpMethod.DELETE,
            APP_FEED_CARD_BATCH_URI,
            queries={"user_id_type": resolve_user_id_type(p.get("user_id_type"))},
            body={"feed_cards": [{"biz_id": biz_id, "user_id": user_id}]},
        )
        return {"success": True, "failed_cards": data.get("failed_cards")}

    # ============ 即时提醒 ============

    async def set_bot_time_sensitive(self, p: Dict[str, Any]):
        user_ids = normalize_id_list(p.get("user_id"), p.get("user_ids"))
        if not user_ids:
            raise _missing_users()
        if len(user_ids) > MAX_TIME_SENSITIVE_USERS:
            raise ToolError("Too many users: maximum 50 users per request")
        time_sensitive = _require_bool(p, "time_sensitive")

        data = await self._api.call(
            HttpMethod.PATCH,
            BOT_TIME_SENSITIVE_URI,
            queries={"user_id_type": resolve_user_id_type(p.get("user_id_type"))},
            body={"time_sensitive": time_sensitive, "user_ids": user_ids},
        )
        return {"success": True, "failed_user_reasons": data.get("failed_user_reasons")}

    async def set_chat_time_sensitive(self, p: Dict[str, Any]):
        chat_id = require(p, "chat_id")
        user_ids = normalize_id_list(p.get("user_id"), p.get("user_ids"))
        if not user_ids:
            raise _missing_users()
        time_sensitive = _require_bool(p, "time_sensitive")

        data = await self._api.call(
            HttpMethod.PATCH,
            FEED_CARD_URI,
            paths={"feed_card_id": chat_id},
            queries={"user_id_type": resolve_user_id_type(p.get("user_id_type"))},
            body={"time_sensitive": time_sensitive, "user_ids": user_ids},
        )
        return {"success": True, "failed_user_reasons": data.get("failed_user_reasons")}

    # ============ 群聊按钮 ============

    async def update_chat_button(self, p: Dict[str, Any]):
        chat_id = require(p, "chat_id")
        user_ids = normalize_id_list(p.get("user_id"), p.get("user_ids"))
        buttons = build_buttons(p.get("buttons"))
        if buttons is None:
            raise ToolError("Missing required parameter: buttons")

        data = await self._api.call(
            HttpMethod.PUT,
            CHAT_BUTTON_URI,
            queries={"user_id_type": resolve_user_id_type(p.get("user_id_type"))},
            body={
                "chat_id": chat_id,
                "user_ids": user_ids or None,
                "buttons": buttons,
            },
        )
        return {"success": True, "failed_user_reasons": data.get("failed_user_reasons")}
