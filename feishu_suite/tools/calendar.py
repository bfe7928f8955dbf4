"""
飞书日历工具

封装日历 v4 接口：日历管理、日程管理、参会人管理、忙闲查询和会议群。
"""

from typing import Any, Dict, List, Optional
from lark_oapi.core.http import HttpMethod

from ..lark.api import LarkApiError
from ..models import Attendee
from .base import FeishuTool, ToolError, check_choice, require, resolve_user_id_type


CALENDARS_URI = "/open-apis/calendar/v4/calendars"
CALENDAR_URI = "/open-apis/calendar/v4/calendars/:calendar_id"
EVENTS_URI = "/open-apis/calendar/v4/calendars/:calendar_id/events"
EVENT_URI = "/open-apis/calendar/v4/calendars/:calendar_id/events/:event_id"
ATTENDEES_URI = EVENT_URI + "/attendees"
MEETING_CHAT_URI = EVENT_URI + "/meeting_chat"

VISIBILITY_TYPES = ("default", "public", "private")
CALENDAR_PERMISSIONS = ("private", "show_only_free_busy", "public")


def build_attendees(attendees: Any) -> Optional[List[Dict[str, Any]]]:
    if not attendees:
        return None
    if not isinstance(attendees, list):
        attendees = [attendees]
    return [Attendee.from_dict(a).to_payload() for a in attendees]


def _time_info(timestamp: Optional[str], timezone: Optional[str]) -> Optional[Dict[str, Any]]:
    if not timestamp:
        return None
    return {"timestamp": str(timestamp), "timezone": timezone}


def _location(name: Optional[str]) -> Optional[Dict[str, Any]]:
    return {"name": name} if name else None


class CalendarTool(FeishuTool):
    """飞书日历操作"""

    name = "feishu_calendar"
    label = "Feishu Calendar"

    def _build_actions(self):
        return {
            "list_calendars": self.list_calendars,
            "get_calendar": self.get_calendar,
            "get_primary_calendar": self.get_primary_calendar,
            "create_calendar": self.create_calendar,
            "delete_calendar": self.delete_calendar,
            "list_events": self.list_events,
            "get_event": self.get_event,
            "create_event": self.create_event,
            "update_event": self.update_event,
            "delete_event": self.delete_event,
            "list_attendees": self.list_attendees,
            "add_attendees": self.add_attendees,
            "remove_attendees": self.remove_attendees,
            "query_freebusy": self.query_freebusy,
            "create_meeting_chat": self.create_meeting_chat,
            "delete_meeting_chat": self.delete_meeting_chat,
        }

    # ============ 日历管理 ============

    async def list_calendars(self, p: Dict[str, Any]):
        data = await self._api.call(
            HttpMethod.GET,
            CALENDARS_URI,
            queries={
                "page_size": p.get("page_size"),
                "page_token": p.get("page_token"),
                "sync_token": p.get("sync_token"),
            },
        )
        return {
            "calendars": data.get("calendar_list") or [],
            "page_token": data.get("page_token"),
            "sync_token": data.get("sync_token"),
            "has_more": data.get("has_more"),
        }

    async def get_calendar(self, p: Dict[str, Any]):
        calendar_id = require(p, "calendar_id")
        data = await self._api.call(
            HttpMethod.GET, CALENDAR_URI, paths={"calendar_id": calendar_id}
        )
        return {"calendar": data}

    async def get_primary_calendar(self, p: Dict[str, Any]):
        data = await self._api.call(
            HttpMethod.POST,
            CALENDARS_URI + "/primary",
            queries={"user_id_type": resolve_user_id_type(p.get("user_id_type"), None)},
        )
        return {"calendars": data.get("calendars") or []}

    async def create_calendar(self, p: Dict[str, Any]):
        summary = require(p, "summary")
        permissions = check_choice(p.get("permissions"), CALENDAR_PERMISSIONS, "permissions")
        data = await self._api.call(
            HttpMethod.POST,
            CALENDARS_URI,
            body={
                "summary": summary,
                "description": p.get("description"),
                "permissions": permissions,
            },
        )
        return {"calendar": data.get("calendar")}

    async def delete_calendar(self, p: Dict[str, Any]):
        calendar_id = require(p, "calendar_id")
        await self._api.call(
            HttpMethod.DELETE, CALENDAR_URI, paths={"calendar_id": calendar_id}
        )
        return {"success": True, "calendar_id": calendar_id}

    # ============ 日程管理 ============

    async def list_events(self, p: Dict[str, Any]):
        calendar_id = require(p, "calendar_id")
        data = await self._api.call(
            HttpMethod.GET,
            EVENTS_URI,
            paths={"calendar_id": calendar_id},
            queries={
                "start_time": p.get("start_time"),
                "end_time": p.get("end_time"),
                "page_size": p.get("page_size"),
                "page_token": p.get("page_token"),
                "sync_token": p.get("sync_token"),
                "user_id_type": resolve_user_id_type(p.get("user_id_type"), None),
            },
        )
        return {
            "events": data.get("items") or [],
            "page_token": data.get("page_token"),
            "sync_token": data.get("sync_token"),
            "has_more": data.get("has_more"),
        }

    async def get_event(self, p: Dict[str, Any]):
        calendar_id = require(p, "calendar_id")
        event_id = require(p, "event_id")
        data = await self._api.call(
            HttpMethod.GET,
            EVENT_URI,
            paths={"calendar_id": calendar_id, "event_id": event_id},
            queries={"user_id_type": resolve_user_id_type(p.get("user_id_type"), None)},
        )
        return {"event": data.get("event")}

    async def create_event(self, p: Dict[str, Any]):
        """
        创建日程；如果传入了参会人，在日程创建成功后再单独添加参会人。

        参会人添加失败不会回滚日程，而是在结果中附带 warning。
        """
        calendar_id = require(p, "calendar_id")
        summary = require(p, "summary")
        start_time = require(p, "start_time")
        end_time = require(p, "end_time")
        visibility = check_choice(p.get("visibility"), VISIBILITY_TYPES, "visibility")
        user_id_type = resolve_user_id_type(p.get("user_id_type"), None)
        attendees = build_attendees(p.get("attendees"))
        timezone = p.get("timezone")

        data = await self._api.call(
            HttpMethod.POST,
            EVENTS_URI,
            paths={"calendar_id": calendar_id},
            queries={"user_id_type": user_id_type},
            body={
                "summary": summary,
                "description": p.get("description"),
                "start_time": _time_info(start_time, timezone),
                "end_time": _time_info(end_time, timezone),
                "location": _location(p.get("location")),
                "visibility": visibility,
                "recurrence": p.get("recurrence"),
                "need_notification": p.get("need_notification"),
                "attendee_ability": "can_see_others",
            },
        )
        event = data.get("event")
        event_id = event.get("event_id") if isinstance(event, dict) else None

        if not event_id or not attendees:
            return {"event": event}

        try:
            attendee_data = await self._api.call(
                HttpMethod.POST,
                ATTENDEES_URI,
                paths={"calendar_id": calendar_id, "event_id": event_id},
                queries={"user_id_type": user_id_type},
                body={
                    "attendees": attendees,
                    "need_notification": p.get("need_notification"),
                },
            )
        except LarkApiError as e:
            return {
                "event": event,
                "warning": f"Event created but failed to add attendees: {e.msg}",
            }
        return {
            "event": event,
            "attendees_added": len(attendee_data.get("attendees") or []),
        }

    async def update_event(self, p: Dict[str, Any]):
        calendar_id = require(p, "calendar_id")
        event_id = require(p, "event_id")
        visibility = check_choice(p.get("visibility"), VISIBILITY_TYPES, "visibility")
        timezone = p.get("timezone")
        data = await self._api.call(
            HttpMethod.PATCH,
            EVENT_URI,
            paths={"calendar_id": calendar_id, "event_id": event_id},
            queries={"user_id_type": resolve_user_id_type(p.get("user_id_type"), None)},
            body={
                "summary": p.get("summary"),
                "description": p.get("description"),
                "start_time": _time_info(p.get("start_time"), timezone),
                "end_time": _time_info(p.get("end_time"), timezone),
                "location": _location(p.get("location")),
                "visibility": visibility,
                "recurrence": p.get("recurrence"),
                "need_notification": p.get("need_notification"),
            },
        )
        return {"event": data.get("event")}

    async def delete_event(self, p: Dict[str, Any]):
        calendar_id = require(p, "calendar_id")
        event_id = require(p, "event_id")
        await self._api.call(
            HttpMethod.DELETE,
            EVENT_URI,
            paths={"calendar_id": calendar_id, "event_id": event_id},
            queries={"need_notification": p.get("need_notification")},
        )
        return {"success": True, "calendar_id": calendar_id, "event_id": event_id}

    # ============ 参会人管理 ============

    async def list_attendees(self, p: Dict[str, Any]):
        calendar_id = require(p, "calendar_id")
        event_id = require(p, "event_id")
        data = await self._api.call(
            HttpMethod.GET,
            ATTENDEES_URI,
            paths={"calendar_id": calendar_id, "event_id": event_id},
            queries={
                "page_size": p.get("page_size"),
                "page_token": p.get("page_token"),
                "user_id_type": resolve_user_id_type(p.get("user_id_type"), None),
            },
        )
        return {
            "attendees": data.get("items") or [],
            "page_token": data.get("page_token"),
            "has_more": data.get("has_more"),
        }

    async def add_attendees(self, p: Dict[str, Any]):
        calendar_id = require(p, "calendar_id")
        event_id = require(p, "event_id")
        attendees = build_attendees(p.get("attendees"))
        if not attendees:
            raise ToolError("Missing required parameter: attendees")
        data = await self._api.call(
            HttpMethod.POST,
            ATTENDEES_URI,
            paths={"calendar_id": calendar_id, "event_id": event_id},
            queries={"user_id_type": resolve_user_id_type(p.get("user_id_type"), None)},
            body={
                "attendees": attendees,
                "need_notification": p.get("need_notification"),
            },
        )
        return {"attendees": data.get("attendees") or []}

    async def remove_attendees(self, p: Dict[str, Any]):
        calendar_id = require(p, "calendar_id")
        event_id = require(p, "event_id")
        attendee_ids = p.get("attendee_ids")
        if isinstance(attendee_ids, str):
            attendee_ids = [attendee_ids]
        if not attendee_ids:
            raise ToolError("Missing required parameter: attendee_ids")
        await self._api.call(
            HttpMethod.POST,
            ATTENDEES_URI + "/batch_delete",
            paths={"calendar_id": calendar_id, "event_id": event_id},
            body={
                "attendee_ids": attendee_ids,
                "need_notification": p.get("need_notification"),
            },
        )
        return {"success": True, "removed_count": len(attendee_ids)}

    # ============ 忙闲查询 ============

    async def query_freebusy(self, p: Dict[str, Any]):
        """多个用户走批量接口，否则按单个会议室查询"""
        time_min = require(p, "time_min")
        time_max = require(p, "time_max")
        user_id_type = resolve_user_id_type(p.get("user_id_type"), None)
        user_ids = p.get("user_ids")
        if isinstance(user_ids, str):
            user_ids = [user_ids]

        if user_ids:
            data = await self._api.call(
                HttpMethod.POST,
                "/open-apis/calendar/v4/freebusy/batch",
                queries={"user_id_type": user_id_type},
                body={"time_min": time_min, "time_max": time_max, "user_ids": user_ids},
            )
            return {"freebusy_lists": data.get("freebusy_lists") or []}

        data = await self._api.call(
            HttpMethod.POST,
            "/open-apis/calendar/v4/freebusy/list",
            queries={"user_id_type": user_id_type},
            body={"time_min": time_min, "time_max": time_max, "room_id": p.get("room_id")},
        )
        return {"freebusy_list": data.get("freebusy_list") or []}

    # ============ 会议群 ============

    async def create_meeting_chat(self, p: Dict[str, Any]):
        calendar_id = require(p, "calendar_id")
        event_id = require(p, "event_id")
        data = await self._api.call(
            HttpMethod.POST,
            MEETING_CHAT_URI,
            paths={"calendar_id": calendar_id, "event_id": event_id},
        )
        return {
            "meeting_chat_id": data.get("meeting_chat_id"),
            "applink": data.get("applink"),
        }

    async def delete_meeting_chat(self, p: Dict[str, Any]):
        calendar_id = require(p, "calendar_id")
        event_id = require(p, "event_id")
        meeting_chat_id = require(p, "meeting_chat_id")
        await self._api.call(
            HttpMethod.DELETE,
            MEETING_CHAT_URI,
            paths={"calendar_id": calendar_id, "event_id": event_id},
            queries={"meeting_chat_id": meeting_chat_id},
        )
        return {"success": True, "calendar_id": calendar_id, "event_id": event_id}
