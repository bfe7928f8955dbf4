"""
日历工具测试
"""

import pytest
from lark_oapi.core.http import HttpMethod

from feishu_suite.tools.calendar import CalendarTool


@pytest.fixture
def tool(lark_api):
    return CalendarTool(lark_api)


class TestCalendars:
    @pytest.mark.asyncio
    async def test_list_calendars(self, tool, mock_client, make_response, sent_requests):
        mock_client.arequest.return_value = make_response({
            "code": 0,
            "data": {
                "calendar_list": [{"calendar_id": "cal_1"}],
                "page_token": "p2",
                "sync_token": "s1",
                "has_more": True,
            },
        })

        result = await tool.execute({"action": "list_calendars", "page_size": 50})

        assert result.details == {
            "calendars": [{"calendar_id": "cal_1"}],
            "page_token": "p2",
            "sync_token": "s1",
            "has_more": True,
        }
        request = sent_requests()[0]
        assert request.http_method == HttpMethod.GET
        assert request.uri == "/open-apis/calendar/v4/calendars"
        assert request.queries == [("page_size", "50")]

    @pytest.mark.asyncio
    async def test_get_calendar_returns_data(self, tool, mock_client, make_response):
        mock_client.arequest.return_value = make_response(
            {"code": 0, "data": {"calendar_id": "cal_1", "summary": "团队"}}
        )

        result = await tool.execute({"action": "get_calendar", "calendar_id": "cal_1"})

        assert result.details == {"calendar": {"calendar_id": "cal_1", "summary": "团队"}}

    @pytest.mark.asyncio
    async def test_create_calendar(self, tool, mock_client, make_response, sent_requests):
        mock_client.arequest.return_value = make_response(
            {"code": 0, "data": {"calendar": {"calendar_id": "cal_new", "summary": "项目"}}}
        )

        result = await tool.execute({"action": "create_calendar", "summary": "项目", "permissions": "public"})

        assert result.details == {"calendar": {"calendar_id": "cal_new", "summary": "项目"}}
        request = sent_requests()[0]
        assert request.http_method == HttpMethod.POST
        assert request.uri == "/open-apis/calendar/v4/calendars"
        assert request.body == {"summary": "项目", "permissions": "public"}

    @pytest.mark.asyncio
    async def test_create_calendar_invalid_permissions(self, tool, mock_client):
        result = await tool.execute({"action": "create_calendar", "summary": "x", "permissions": "open"})

        assert "Invalid permissions: open" in result.details["error"]
        mock_client.arequest.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_calendar(self, tool, sent_requests):
        result = await tool.execute({"action": "delete_calendar", "calendar_id": "cal_1"})

        assert result.details == {"success": True, "calendar_id": "cal_1"}
        assert sent_requests()[0].http_method == HttpMethod.DELETE

    @pytest.mark.asyncio
    async def test_get_primary_calendar(self, tool, mock_client, make_response, sent_requests):
        mock_client.arequest.return_value = make_response(
            {"code": 0, "data": {"calendars": [{"calendar": {"calendar_id": "cal_primary"}}]}}
        )

        result = await tool.execute({"action": "get_primary_calendar", "user_id_type": "user_id"})

        assert result.details == {"calendars": [{"calendar": {"calendar_id": "cal_primary"}}]}
        request = sent_requests()[0]
        assert request.http_method == HttpMethod.POST
        assert request.uri == "/open-apis/calendar/v4/calendars/primary"
        assert request.queries == [("user_id_type", "user_id")]

    @pytest.mark.asyncio
    async def test_get_primary_calendar_empty(self, tool, sent_requests):
        result = await tool.execute({"action": "get_primary_calendar"})

        assert result.details == {"calendars": []}
        assert sent_requests()[0].queries == []


class TestEvents:
    @pytest.mark.asyncio
    async def test_create_event_body(self, tool, mock_client, make_response, sent_requests):
        mock_client.arequest.return_value = make_response(
            {"code": 0, "data": {"event": {"event_id": "evt_1", "summary": "周会"}}}
        )

        result = await tool.execute({
            "action": "create_event",
            "calendar_id": "cal_1",
            "summary": "周会",
            "start_time": "1700000000",
            "end_time": "1700003600",
            "timezone": "Asia/Shanghai",
            "location": "3F",
        })

        assert result.details == {"event": {"event_id": "evt_1", "summary": "周会"}}
        requests = sent_requests()
        assert len(requests) == 1
        body = requests[0].body
        assert body["start_time"] == {"timestamp": "1700000000", "timezone": "Asia/Shanghai"}
        assert body["location"] == {"name": "3F"}
        assert body["attendee_ability"] == "can_see_others"
        assert "description" not in body

    @pytest.mark.asyncio
    async def test_create_event_with_attendees(self, tool, mock_client, make_response, sent_requests):
        mock_client.arequest.side_effect = [
            make_response({"code": 0, "data": {"event": {"event_id": "evt_1"}}}),
            make_response({"code": 0, "data": {"attendees": [{"attendee_id": "a1"}, {"attendee_id": "a2"}]}}),
        ]

        result = await tool.execute({
            "action": "create_event",
            "calendar_id": "cal_1",
            "summary": "评审",
            "start_time": "1700000000",
            "end_time": "1700003600",
            "attendees": [
                {"type": "user", "user_id": "ou_a", "chat_id": "oc_ignored"},
                {"type": "resource", "room_id": "omm_room"},
            ],
        })

        assert result.details == {"event": {"event_id": "evt_1"}, "attendees_added": 2}
        attendee_request = sent_requests()[1]
        assert attendee_request.paths == {"calendar_id": "cal_1", "event_id": "evt_1"}
        assert attendee_request.body["attendees"] == [
            {"type": "user", "user_id": "ou_a"},
            {"type": "resource", "room_id": "omm_room"},
        ]

    @pytest.mark.asyncio
    async def test_create_event_attendee_failure_keeps_event(self, tool, mock_client, make_response):
        mock_client.arequest.side_effect = [
            make_response({"code": 0, "data": {"event": {"event_id": "evt_1"}}}),
            make_response({"code": 193002, "msg": "no permission"}),
        ]

        result = await tool.execute({
            "action": "create_event",
            "calendar_id": "cal_1",
            "summary": "评审",
            "start_time": "1",
            "end_time": "2",
            "attendees": [{"type": "chat", "chat_id": "oc_1"}],
        })

        assert result.details == {
            "event": {"event_id": "evt_1"},
            "warning": "Event created but failed to add attendees: no permission",
        }

    @pytest.mark.asyncio
    async def test_create_event_missing_summary(self, tool):
        result = await tool.execute({"action": "create_event", "calendar_id": "cal_1"})
        assert result.details == {"error": "Missing required parameter: summary"}

    @pytest.mark.asyncio
    async def test_invalid_attendee_type(self, tool, mock_client):
        result = await tool.execute({
            "action": "add_attendees",
            "calendar_id": "cal_1",
            "event_id": "evt_1",
            "attendees": [{"type": "group", "chat_id": "oc_1"}],
        })

        assert result.details["error"].startswith("Invalid attendee type: group")
        mock_client.arequest.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_event_notification_query(self, tool, sent_requests):
        result = await tool.execute({
            "action": "delete_event",
            "calendar_id": "cal_1",
            "event_id": "evt_1",
            "need_notification": False,
        })

        assert result.details == {"success": True, "calendar_id": "cal_1", "event_id": "evt_1"}
        assert sent_requests()[0].queries == [("need_notification", "false")]

    @pytest.mark.asyncio
    async def test_api_error_message(self, tool, mock_client, make_response):
        mock_client.arequest.return_value = make_response({"code": 190002, "msg": "invalid parameters"})

        result = await tool.execute({"action": "get_event", "calendar_id": "c", "event_id": "e"})

        assert result.details == {"error": "invalid parameters"}

    @pytest.mark.asyncio
    async def test_list_events(self, tool, mock_client, make_response, sent_requests):
        mock_client.arequest.return_value = make_response({
            "code": 0,
            "data": {
                "items": [{"event_id": "evt_1"}, {"event_id": "evt_2"}],
                "page_token": "p2",
                "sync_token": "s1",
                "has_more": False,
            },
        })

        result = await tool.execute({
            "action": "list_events",
            "calendar_id": "cal_1",
            "start_time": "1700000000",
            "page_size": 20,
        })

        assert result.details == {
            "events": [{"event_id": "evt_1"}, {"event_id": "evt_2"}],
            "page_token": "p2",
            "sync_token": "s1",
            "has_more": False,
        }
        request = sent_requests()[0]
        assert request.http_method == HttpMethod.GET
        assert request.uri == "/open-apis/calendar/v4/calendars/:calendar_id/events"
        assert request.paths == {"calendar_id": "cal_1"}
        assert request.queries == [("start_time", "1700000000"), ("page_size", "20")]

    @pytest.mark.asyncio
    async def test_list_events_without_items(self, tool):
        result = await tool.execute({"action": "list_events", "calendar_id": "cal_1"})

        assert result.details["events"] == []

    @pytest.mark.asyncio
    async def test_get_event(self, tool, mock_client, make_response, sent_requests):
        mock_client.arequest.return_value = make_response(
            {"code": 0, "data": {"event": {"event_id": "evt_1", "summary": "周会"}}}
        )

        result = await tool.execute({"action": "get_event", "calendar_id": "cal_1", "event_id": "evt_1"})

        assert result.details == {"event": {"event_id": "evt_1", "summary": "周会"}}
        request = sent_requests()[0]
        assert request.http_method == HttpMethod.GET
        assert request.paths == {"calendar_id": "cal_1", "event_id": "evt_1"}

    @pytest.mark.asyncio
    async def test_update_event(self, tool, mock_client, make_response, sent_requests):
        mock_client.arequest.return_value = make_response(
            {"code": 0, "data": {"event": {"event_id": "evt_1", "summary": "改期"}}}
        )

        result = await tool.execute({
            "action": "update_event",
            "calendar_id": "cal_1",
            "event_id": "evt_1",
            "summary": "改期",
            "start_time": 1700007200,
            "end_time": "1700010800",
            "timezone": "Asia/Shanghai",
            "need_notification": False,
        })

        assert result.details == {"event": {"event_id": "evt_1", "summary": "改期"}}
        request = sent_requests()[0]
        assert request.http_method == HttpMethod.PATCH
        assert request.uri == "/open-apis/calendar/v4/calendars/:calendar_id/events/:event_id"
        assert request.body == {
            "summary": "改期",
            "start_time": {"timestamp": "1700007200", "timezone": "Asia/Shanghai"},
            "end_time": {"timestamp": "1700010800", "timezone": "Asia/Shanghai"},
            "need_notification": False,
        }

    @pytest.mark.asyncio
    async def test_update_event_invalid_visibility(self, tool, mock_client):
        result = await tool.execute({
            "action": "update_event",
            "calendar_id": "cal_1",
            "event_id": "evt_1",
            "visibility": "secret",
        })

        assert result.details["error"].startswith("Invalid visibility: secret")
        mock_client.arequest.assert_not_called()


class TestAttendeesAndFreebusy:
    @pytest.mark.asyncio
    async def test_list_attendees(self, tool, mock_client, make_response, sent_requests):
        mock_client.arequest.return_value = make_response({
            "code": 0,
            "data": {"items": [{"attendee_id": "a1", "type": "user"}], "page_token": "p2", "has_more": True},
        })

        result = await tool.execute({
            "action": "list_attendees",
            "calendar_id": "cal_1",
            "event_id": "evt_1",
            "page_size": 10,
        })

        assert result.details == {
            "attendees": [{"attendee_id": "a1", "type": "user"}],
            "page_token": "p2",
            "has_more": True,
        }
        request = sent_requests()[0]
        assert request.http_method == HttpMethod.GET
        assert request.uri == "/open-apis/calendar/v4/calendars/:calendar_id/events/:event_id/attendees"
        assert request.queries == [("page_size", "10")]

    @pytest.mark.asyncio
    async def test_add_attendees(self, tool, mock_client, make_response, sent_requests):
        mock_client.arequest.return_value = make_response(
            {"code": 0, "data": {"attendees": [{"attendee_id": "a1"}]}}
        )

        result = await tool.execute({
            "action": "add_attendees",
            "calendar_id": "cal_1",
            "event_id": "evt_1",
            "attendees": {"type": "third_party", "third_party_email": "guest@example.com"},
            "need_notification": True,
        })

        assert result.details == {"attendees": [{"attendee_id": "a1"}]}
        request = sent_requests()[0]
        assert request.http_method == HttpMethod.POST
        assert request.paths == {"calendar_id": "cal_1", "event_id": "evt_1"}
        assert request.body == {
            "attendees": [{"type": "third_party", "third_party_email": "guest@example.com"}],
            "need_notification": True,
        }

    @pytest.mark.asyncio
    async def test_add_attendees_requires_attendees(self, tool, mock_client):
        result = await tool.execute({
            "action": "add_attendees",
            "calendar_id": "cal_1",
            "event_id": "evt_1",
            "attendees": [],
        })

        assert result.details == {"error": "Missing required parameter: attendees"}
        mock_client.arequest.assert_not_called()

    @pytest.mark.asyncio
    async def test_remove_attendees(self, tool, sent_requests):
        result = await tool.execute({
            "action": "remove_attendees",
            "calendar_id": "cal_1",
            "event_id": "evt_1",
            "attendee_ids": ["a1", "a2"],
        })

        assert result.details == {"success": True, "removed_count": 2}
        assert sent_requests()[0].uri.endswith("/attendees/batch_delete")

    @pytest.mark.asyncio
    async def test_freebusy_for_users(self, tool, mock_client, make_response, sent_requests):
        mock_client.arequest.return_value = make_response(
            {"code": 0, "data": {"freebusy_lists": [{"user_id": "ou_a", "freebusy_items": []}]}}
        )

        result = await tool.execute({
            "action": "query_freebusy",
            "time_min": "2024-01-01T00:00:00+08:00",
            "time_max": "2024-01-02T00:00:00+08:00",
            "user_ids": ["ou_a"],
        })

        assert result.details == {"freebusy_lists": [{"user_id": "ou_a", "freebusy_items": []}]}
        assert sent_requests()[0].uri == "/open-apis/calendar/v4/freebusy/batch"

    @pytest.mark.asyncio
    async def test_freebusy_for_room(self, tool, mock_client, make_response, sent_requests):
        mock_client.arequest.return_value = make_response(
            {"code": 0, "data": {"freebusy_list": [{"start_time": "a", "end_time": "b"}]}}
        )

        result = await tool.execute({
            "action": "query_freebusy",
            "time_min": "t1",
            "time_max": "t2",
            "room_id": "omm_room",
        })

        assert result.details == {"freebusy_list": [{"start_time": "a", "end_time": "b"}]}
        request = sent_requests()[0]
        assert request.uri == "/open-apis/calendar/v4/freebusy/list"
        assert request.body["room_id"] == "omm_room"

    @pytest.mark.asyncio
    async def test_meeting_chat(self, tool, mock_client, make_response):
        mock_client.arequest.return_value = make_response(
            {"code": 0, "data": {"meeting_chat_id": "oc_chat", "applink": "https://applink"}}
        )

        result = await tool.execute({"action": "create_meeting_chat", "calendar_id": "c", "event_id": "e"})

        assert result.details == {"meeting_chat_id": "oc_chat", "applink": "https://applink"}

    @pytest.mark.asyncio
    async def test_delete_meeting_chat(self, tool, sent_requests):
        result = await tool.execute({
            "action": "delete_meeting_chat",
            "calendar_id": "c",
            "event_id": "e",
            "meeting_chat_id": "oc_chat",
        })

        assert result.details == {"success": True, "calendar_id": "c", "event_id": "e"}
        request = sent_requests()[0]
        assert request.http_method == HttpMethod.DELETE
        assert request.uri.endswith("/meeting_chat")
        assert request.queries == [("meeting_chat_id", "oc_chat")]

    def test_all_actions_registered(self, tool):
        assert len(tool.actions) == 16
