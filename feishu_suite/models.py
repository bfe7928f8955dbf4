"""
飞书协作套件工具的核心数据模型

本模块定义了插件中使用的数据结构，
包括账号配置、工具开关、探测结果，以及日历参会人、会议参与者、
录制授权对象和消息流卡片按钮等请求参数模型。
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional


USER_ID_TYPES = ("open_id", "user_id", "union_id")


@dataclass
class ToolsConfig:
    """
    各领域工具的启用开关

    Attributes:
        calendar: 是否启用日历工具
        meeting: 是否启用视频会议工具
        feed: 是否启用消息流卡片工具
        urgent: 是否启用消息加急工具
        probe: 是否启用机器人探测工具
    """

    calendar: bool = True
    meeting: bool = True
    feed: bool = True
    urgent: bool = True
    probe: bool = True

    def is_enabled(self, domain: str) -> bool:
        return bool(getattr(self, domain, False))


@dataclass
class LarkAccount:
    """
    飞书应用账号

    Attributes:
        account_id: 账号名称（配置中自定义）
        app_id: 应用 App ID
        app_secret: 应用 App Secret
        domain: feishu、lark 或完整的 https 地址
        enabled: 是否启用
        tools: 该账号的工具开关
    """

    account_id: str
    app_id: str
    app_secret: str
    domain: str = "feishu"
    enabled: bool = True
    tools: ToolsConfig = field(default_factory=ToolsConfig)

    def has_credentials(self) -> bool:
        return bool(self.app_id) and bool(self.app_secret)


@dataclass
class ProbeResult:
    """
    机器人探测结果

    Attributes:
        ok: 凭证是否可用
        app_id: 被探测的 App ID
        bot_name: 机器人名称
        bot_open_id: 机器人的 open_id
        error: 失败原因
    """

    ok: bool
    app_id: Optional[str] = None
    bot_name: Optional[str] = None
    bot_open_id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


ATTENDEE_ID_FIELDS = {
    "user": "user_id",
    "chat": "chat_id",
    "resource": "room_id",
    "third_party": "third_party_email",
}


@dataclass
class Attendee:
    """日程参会人，只有与 type 对应的 ID 字段会被发送"""

    type: str
    user_id: Optional[str] = None
    chat_id: Optional[str] = None
    room_id: Optional[str] = None
    third_party_email: Optional[str] = None
    is_optional: Optional[bool] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Attendee":
        if not isinstance(raw, dict):
            raise ValueError(f"Invalid attendee: {raw!r}")
        attendee_type = raw.get("type")
        if attendee_type not in ATTENDEE_ID_FIELDS:
            raise ValueError(
                f"Invalid attendee type: {attendee_type}. "
                f"Valid values: {', '.join(ATTENDEE_ID_FIELDS)}"
            )
        return cls(
            type=attendee_type,
            user_id=raw.get("user_id"),
            chat_id=raw.get("chat_id"),
            room_id=raw.get("room_id"),
            third_party_email=raw.get("third_party_email"),
            is_optional=raw.get("is_optional"),
        )

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.type}
        id_field = ATTENDEE_ID_FIELDS[self.type]
        id_value = getattr(self, id_field)
        if id_value is not None:
            payload[id_field] = id_value
        if self.is_optional is not None:
            payload["is_optional"] = self.is_optional
        return payload


MEETING_USER_TYPES = (1, 2, 3, 4, 5, 6, 7)


@dataclass
class Participant:
    """
    会议参与者（邀请、移出、设置主持人时使用）

    user_type: 1=飞书用户 2=会议室 3=文档用户 4=Neo 单品用户
    5=Neo 单品游客 6=PSTN 用户 7=SIP 用户
    """

    id: str
    user_type: Optional[int] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Participant":
        if not isinstance(raw, dict) or not raw.get("id"):
            raise ValueError(f"Invalid participant, 'id' is required: {raw!r}")
        user_type = raw.get("user_type")
        if user_type is not None and user_type not in MEETING_USER_TYPES:
            raise ValueError(f"Invalid user_type: {user_type}. Valid values: 1-7")
        return cls(id=str(raw["id"]), user_type=user_type)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"id": self.id}
        if self.user_type is not None:
            payload["user_type"] = self.user_type
        return payload


@dataclass
class PermissionObject:
    """
    录制文件授权对象

    type: 1=用户 2=群组 3=租户（无 id） 4=公开（无 id）；permission: 1=查看
    """

    type: int
    permission: int
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "PermissionObject":
        if not isinstance(raw, dict):
            raise ValueError(f"Invalid permission object: {raw!r}")
        if raw.get("type") is None or raw.get("permission") is None:
            raise ValueError("Permission object requires 'type' and 'permission'")
        return cls(type=raw["type"], permission=raw["permission"], id=raw.get("id"))

    def to_payload(self) -> Dict[str, Any]:
        return {"id": self.id, "type": self.type, "permission": self.permission}


BUTTON_ACTION_TYPES = ("url_page", "webhook")
BUTTON_TYPES = ("default", "primary", "success")


@dataclass
class FeedButton:
    """消息流卡片 / 群聊按钮"""

    action_type: str
    text: str
    button_type: str = "default"
    url: Optional[str] = None
    action_map: Optional[Dict[str, str]] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "FeedButton":
        if not isinstance(raw, dict):
            raise ValueError(f"Invalid button: {raw!r}")
        if raw.get("action_type") not in BUTTON_ACTION_TYPES:
            raise ValueError(
                f"Invalid button action_type: {raw.get('action_type')}. "
                f"Valid values: {', '.join(BUTTON_ACTION_TYPES)}"
            )
        if not raw.get("text"):
            raise ValueError("Button text is required")
        return cls(
            action_type=raw["action_type"],
            text=raw["text"],
            button_type=raw.get("button_type") or "default",
            url=raw.get("url"),
            action_map=raw.get("action_map"),
        )

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "action_type": self.action_type,
            "text": {"text": self.text},
            "button_type": self.button_type,
        }
        if self.url:
            payload["multi_url"] = {"url": self.url}
        if self.action_map is not None:
            payload["action_map"] = self.action_map
        return payload


def build_buttons(buttons: Optional[List[Dict[str, Any]]]) -> Optional[Dict[str, Any]]:
    """把按钮列表包装成 {"buttons": [...]}，空列表返回 None"""
    if not buttons:
        return None
    if not isinstance(buttons, list):
        buttons = [buttons]
    if len(buttons) > 2:
        raise ValueError("Too many buttons: maximum 2 buttons")
    return {"buttons": [FeedButton.from_dict(b).to_payload() for b in buttons]}
