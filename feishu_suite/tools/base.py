"""
工具基础设施

提供工具结果封装、参数校验错误、单数/复数参数归一化，
以及每个领域工具共用的动作分发逻辑。
"""

import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional
from astrbot.api import logger

from ..lark.api import LarkApi, LarkApiError
from ..models import USER_ID_TYPES


class ToolError(Exception):
    """参数校验失败"""


@dataclass
class ToolResult:
    """
    工具执行结果

    Attributes:
        details: 可 JSON 序列化的结果对象
    """

    details: Any

    @property
    def text(self) -> str:
        return json.dumps(self.details, ensure_ascii=False, indent=2)


def parse_params(params: Any) -> Dict[str, Any]:
    """接受字典或 JSON 字符串形式的参数"""
    if params is None:
        return {}
    if isinstance(params, str):
        text = params.strip()
        if not text:
            return {}
        try:
            params = json.loads(text)
        except ValueError as e:
            raise ToolError(f"Invalid params: not a JSON object ({e})")
    if not isinstance(params, dict):
        raise ToolError("Invalid params: expected an object")
    return dict(params)


def require(params: Dict[str, Any], name: str) -> str:
    """读取必填的字符串参数"""
    value = params.get(name)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ToolError(f"Missing required parameter: {name}")
    return value


def normalize_id_list(single: Optional[str], plural: Any) -> List[str]:
    """
    合并 user_id / user_ids 形式的参数

    plural 可以是字符串或列表；single 不在列表中时插入到最前面。
    """
    ids: List[str] = []
    if plural:
        if isinstance(plural, list):
            ids.extend(plural)
        else:
            ids.append(plural)

    if single and single not in ids:
        ids.insert(0, single)
    return ids


def normalize_single_id(single: Optional[str], plural: Any, field_name: str = "user_id") -> str:
    """优先使用单数参数，否则取复数参数的第一个"""
    if single:
        return single
    if plural:
        if isinstance(plural, list):
            if plural:
                return plural[0]
        else:
            return plural
    raise ToolError(f"Missing required parameter: {field_name}")


def normalize_objects(single: Any, plural: Any, key: Optional[str] = "id") -> List[Any]:
    """
    合并 invitee / invitees 形式的对象参数

    key 不为 None 时，单数对象的 key 已经出现在列表中则不再插入。
    """
    result: List[Any] = []
    if plural:
        if isinstance(plural, list):
            result.extend(plural)
        else:
            result.append(plural)

    if single:
        if key is None:
            result.insert(0, single)
        else:
            single_key = single.get(key) if isinstance(single, dict) else None
            exists = any(
                isinstance(item, dict) and item.get(key) == single_key for item in result
            )
            if not exists:
                result.insert(0, single)
    return result


def resolve_user_id_type(value: Optional[str], default: Optional[str] = "open_id") -> Optional[str]:
    """校验 user_id_type，未提供时使用默认值"""
    if value is None or value == "":
        return default
    if value not in USER_ID_TYPES:
        raise ToolError(
            f"Invalid user_id_type: {value}. Valid values: {', '.join(USER_ID_TYPES)}"
        )
    return value


def check_choice(value: Optional[str], choices, name: str) -> Optional[str]:
    """校验枚举参数（None 表示未提供）"""
    if value is None:
        return None
    if value not in choices:
        raise ToolError(f"Invalid {name}: {value}. Valid values: {', '.join(map(str, choices))}")
    return value


ActionHandler = Callable[[Dict[str, Any]], Awaitable[Any]]


class FeishuTool:
    """
    领域工具基类

    每个子类在 _build_actions 中注册一张 action → 处理协程 的分发表。
    execute 不会向调用方抛出异常，所有失败都以 {"error": ...} 返回。
    """

    name = ""
    label = ""

    def __init__(self, api: LarkApi):
        self._api = api
        self._actions: Dict[str, ActionHandler] = self._build_actions()

    def _build_actions(self) -> Dict[str, ActionHandler]:
        raise NotImplementedError

    @property
    def actions(self) -> List[str]:
        return list(self._actions)

    def describe_api_error(self, error: LarkApiError) -> str:
        return str(error)

    async def execute(self, params: Any) -> ToolResult:
        action = None
        try:
            p = parse_params(params)
            action = p.get("action")
            handler = self._actions.get(action)
            if handler is None:
                return ToolResult({"error": f"Unknown action: {action}"})
            logger.info(f"{self.name}: 执行 {action}")
            return ToolResult(await handler(p))
        except (ToolError, ValueError) as e:
            logger.warning(f"{self.name}: {action} 参数错误: {e}")
            return ToolResult({"error": str(e)})
        except LarkApiError as e:
            return ToolResult({"error": self.describe_api_error(e)})
        except Exception as e:
            logger.error(f"{self.name}: {action} 执行失败: {e}", exc_info=True)
            return ToolResult({"error": str(e)})
