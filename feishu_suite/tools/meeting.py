"""
飞书视频会议工具

封装视频会议 v1 接口：会议管理、预约管理和录制管理。
邀请、移出和录制授权参数同时接受单数和复数形式。
"""

from typing import Any, Dict, List
from lark_oapi.core.http import HttpMethod

from ..lark.api import LarkApiError
from ..models import Participant, PermissionObject
from .base import FeishuTool, ToolError, normalize_objects, require, resolve_user_id_type


MEETING_URI = "/open-apis/vc/v1/meetings/:meeting_id"
RECORDING_URI = MEETING_URI + "/recording"
RESERVES_URI = "/open-apis/vc/v1/reserves"
RESERVE_URI = RESERVES_URI + "/:reserve_id"

MAX_PARTICIPANTS = 10


def _participants(raw: List[Any]) -> List[Dict[str, Any]]:
    return [Participant.from_dict(item).to_payload() for item in raw]


def _meeting_settings(raw: Any):
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ToolError("Invalid meeting_settings: expected an object")
    return raw


class MeetingTool(FeishuTool):
    """飞书视频会议操作"""

    name = "feishu_meeting"
    label = "Feishu Meeting"

    def _build_actions(self):
        return {
            "get_meeting": self.get_meeting,
            "invite": self.invite,
            "end_meeting": self.end_meeting,
            "kickout": self.kickout,
            "set_host": self.set_host,
            "list_by_no": self.list_by_no,
            "create_reserve": self.create_reserve,
            "get_reserve": self.get_reserve,
            "update_reserve": self.update_reserve,
            "delete_reserve": self.delete_reserve,
            "get_active_meeting": self.get_active_meeting,
            "get_recording": self.get_recording,
            "start_recording": self.start_recording,
            "stop_recording": self.stop_recording,
            "set_recording_permission": self.set_recording_permission,
        }

    def describe_api_error(self, error: LarkApiError) -> str:
        return f"{error.msg or 'Unknown error'} (code: {error.code})"

    # ============ 会议 ============

    async def get_meeting(self, p: Dict[str, Any]):
        meeting_id = require(p, "meeting_id")
        data = await self._api.call(
            HttpMethod.GET,
            MEETING_URI,
            paths={"meeting_id": meeting_id},
            queries={
                "with_participants": p.get("with_participants"),
                "user_id_type": resolve_user_id_type(p.get("user_id_type"), None),
            },
        )
        return {"meeting": data.get("meeting")}

    async def invite(self, p: Dict[str, Any]):
        meeting_id = require(p, "meeting_id")
        invitees = normalize_objects(p.get("invitee"), p.get("invitees"))
        if not invitees:
            raise ToolError("No invitees provided. Use invitee or invitees parameter.")
        if len(invitees) > MAX_PARTICIPANTS:
            raise ToolError("Maximum 10 invitees per request.")

        data = await self._api.call(
            HttpMethod.PATCH,
            MEETING_URI + "/invite",
            paths={"meeting_id": meeting_id},
            queries={"user_id_type": resolve_user_id_type(p.get("user_id_type"), None)},
            body={"invitees": _participants(invitees)},
        )
        return {"success": True, "invite_results": data.get("invite_results")}

    async def end_meeting(self, p: Dict[str, Any]):
        meeting_id = require(p, "meeting_id")
        await self._api.call(
            HttpMethod.PATCH, MEETING_URI + "/end", paths={"meeting_id": meeting_id}
        )
        return {"success": True, "meeting_id": meeting_id}

    async def kickout(self, p: Dict[str, Any]):
        meeting_id = require(p, "meeting_id")
        users = normalize_objects(p.get("user"), p.get("users"))
        if not users:
            raise ToolError("No users provided. Use user or users parameter.")
        if len(users) > MAX_PARTICIPANTS:
            raise ToolError("Maximum 10 users per kickout request.")

        data = await self._api.call(
            HttpMethod.POST,
            MEETING_URI + "/kickout",
            paths={"meeting_id": meeting_id},
            queries={"user_id_type": resolve_user_id_type(p.get("user_id_type"), None)},
            body={"kickout_users": _participants(users)},
        )
        return {"success": True, "kickout_results": data.get("kickout_results")}

    async def set_host(self, p: Dict[str, Any]):
        meeting_id = require(p, "meeting_id")
        if not p.get("host_user"):
            raise ToolError("Missing required parameter: host_user")
        body = {"host_user": Participant.from_dict(p["host_user"]).to_payload()}
        if p.get("old_host_user"):
            body["old_host_user"] = Participant.from_dict(p["old_host_user"]).to_payload()

        data = await self._api.call(
            HttpMethod.PATCH,
            MEETING_URI + "/set_host",
            paths={"meeting_id": meeting_id},
            queries={"user_id_type": resolve_user_id_type(p.get("user_id_type"), None)},
            body=body,
        )
        return {"success": True, "host_user": data.get("host_user")}

    async def list_by_no(self, p: Dict[str, Any]):
        meeting_no = require(p, "meeting_no")
        data = await self._api.call(
            HttpMethod.GET,
            "/open-apis/vc/v1/meetings/list_by_no",
            queries={
                "meeting_no": meeting_no,
                "start_time": p.get("start_time"),
                "end_time": p.get("end_time"),
                "page_token": p.get("page_token"),
                "page_size": p.get("page_size"),
            },
        )
        return {
            "meetings": data.get("meeting_briefs") or [],
            "page_token": data.get("page_token"),
            "has_more": data.get("has_more"),
        }

    # ============ 预约 ============

    async def create_reserve(self, p: Dict[str, Any]):
        end_time = require(p, "end_time")
        owner_id = require(p, "owner_id")
        meeting_settings = _meeting_settings(p.get("meeting_settings"))
        if meeting_settings is None:
            raise ToolError("Missing required parameter: meeting_settings")

        data = await self._api.call(
            HttpMethod.POST,
            RESERVES_URI + "/apply",
            queries={"user_id_type": resolve_user_id_type(p.get("user_id_type"), None)},
            body={
                "end_time": str(end_time),
                "owner_id": owner_id,
                "meeting_settings": meeting_settings,
            },
        )
        return {
            "reserve": data.get("reserve"),
            "reserve_correction_check_info": data.get("reserve_correction_check_info"),
        }

    async def get_reserve(self, p: Dict[str, Any]):
        reserve_id = require(p, "reserve_id")
        data = await self._api.call(
            HttpMethod.GET,
            RESERVE_URI,
            paths={"reserve_id": reserve_id},
            queries={"user_id_type": resolve_user_id_type(p.get("user_id_type"), None)},
        )
        return {"reserve": data.get("reserve")}

    async def update_reserve(self, p: Dict[str, Any]):
        reserve_id = require(p, "reserve_id")
        end_time = p.get("end_time")
        data = await self._api.call(
            HttpMethod.PUT,
            RESERVE_URI,
            paths={"reserve_id": reserve_id},
            queries={"user_id_type": resolve_user_id_type(p.get("user_id_type"), None)},
            body={
                "end_time": str(end_time) if end_time is not None else None,
                "meeting_settings": _meeting_settings(p.get("meeting_settings")),
            },
        )
        return {
            "reserve": data.get("reserve"),
            "reserve_correction_check_info": data.get("reserve_correction_check_info"),
        }

    async def delete_reserve(self, p: Dict[str, Any]):
        reserve_id = require(p, "reserve_id")
        await self._api.call(
            HttpMethod.DELETE, RESERVE_URI, paths={"reserve_id": reserve_id}
        )
        return {"success": True, "reserve_id": reserve_id}

    async def get_active_meeting(self, p: Dict[str, Any]):
        reserve_id = require(p, "reserve_id")
        data = await self._api.call(
            HttpMethod.GET,
            RESERVE_URI + "/get_active_meeting",
            paths={"reserve_id": reserve_id},
            queries={
                "with_participants": p.get("with_participants"),
                "user_id_type": resolve_user_id_type(p.get("user_id_type"), None),
            },
        )
        return {"meeting": data.get("meeting")}

    # ============ 录制 ============

    async def get_recording(self, p: Dict[str, Any]):
        meeting_id = require(p, "meeting_id")
        data = await self._api.call(
            HttpMethod.GET, RECORDING_URI, paths={"meeting_id": meeting_id}
        )
        return {"recording": data.get("recording")}

    async def start_recording(self, p: Dict[str, Any]):
        meeting_id = require(p, "meeting_id")
        timezone = p.get("timezone")
        if timezone is None:
            timezone = 8
        if not isinstance(timezone, int) or isinstance(timezone, bool) or not -12 <= timezone <= 12:
            raise ToolError(f"Invalid timezone: {timezone}. Expected an integer from -12 to 12")

        await self._api.call(
            HttpMethod.PATCH,
            RECORDING_URI + "/start",
            paths={"meeting_id": meeting_id},
            body={"timezone": timezone},
        )
        return {"success": True, "meeting_id": meeting_id}

    async def stop_recording(self, p: Dict[str, Any]):
        meeting_id = require(p, "meeting_id")
        await self._api.call(
            HttpMethod.PATCH, RECORDING_URI + "/stop", paths={"meeting_id": meeting_id}
        )
        return {"success": True, "meeting_id": meeting_id}

    async def set_recording_permission(self, p: Dict[str, Any]):
        meeting_id = require(p, "meeting_id")
        permission_objects = normalize_objects(
            p.get("permission_object"), p.get("permission_objects"), key=None
        )
        if not permission_objects:
            raise ToolError(
                "No permission objects provided. "
                "Use permission_object or permission_objects parameter."
            )

        await self._api.call(
            HttpMethod.PATCH,
            RECORDING_URI + "/set_permission",
            paths={"meeting_id": meeting_id},
            queries={"user_id_type": resolve_user_id_type(p.get("user_id_type"), None)},
            body={
                "permission_objects": [
                    PermissionObject.from_dict(obj).to_payload() for obj in permission_objects
                ]
            },
        )
        return {"success": True, "meeting_id": meeting_id}
