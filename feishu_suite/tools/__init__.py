"""
工具模块
包含日历、视频会议、消息流卡片、消息加急和探测工具
"""

from .base import FeishuTool, ToolError, ToolResult
from .calendar import CalendarTool
from .feed import FeedTool
from .meeting import MeetingTool
from .probe import ProbeTool
from .registry import ToolRegistry
from .urgent import UrgentTool

__all__ = [
    "FeishuTool",
    "ToolError",
    "ToolResult",
    "CalendarTool",
    "FeedTool",
    "MeetingTool",
    "ProbeTool",
    "ToolRegistry",
    "UrgentTool",
]
