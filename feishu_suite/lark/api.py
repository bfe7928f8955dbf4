"""
飞书开放平台调用封装

所有工具都通过这里发起单次原生 API 请求：
拼装路径参数、查询参数和 JSON 请求体，使用租户令牌调用，
并把响应中的 data 对象解码为普通字典直接透传给工具。
"""

import json
from typing import Any, Dict, Optional
import lark_oapi as lark
from lark_oapi.core.http import HttpMethod
from lark_oapi.core.model.base_request import BaseRequest
from astrbot.api import logger


class LarkApiError(Exception):
    """飞书接口返回非零 code 时抛出"""

    def __init__(self, code: Any, msg: Optional[str] = None):
        self.code = code
        self.msg = msg or ""
        super().__init__(self.msg or f"Error code: {code}")


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def strip_none(value: Any) -> Any:
    """递归移除字典中值为 None 的字段"""
    if isinstance(value, dict):
        return {k: strip_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [strip_none(v) for v in value]
    return value


class LarkApi:
    """
    基于 SDK 客户端的原生请求调用器

    Attributes:
        _client: 飞书 SDK 客户端（需要提供 arequest 方法）
        _client_manager: 未直接提供客户端时，每次调用前从管理器获取
    """

    def __init__(self, client=None, client_manager=None):
        self._client = client
        self._client_manager = client_manager

    @classmethod
    def from_manager(cls, client_manager) -> "LarkApi":
        """创建延迟获取客户端的调用器"""
        return cls(client_manager=client_manager)

    @property
    def client(self):
        if self._client is not None:
            return self._client
        if self._client_manager is None:
            raise RuntimeError("Feishu client is not available")
        return self._client_manager.get_client()

    def build_request(
        self,
        method: HttpMethod,
        uri: str,
        paths: Optional[Dict[str, Any]] = None,
        queries: Optional[Dict[str, Any]] = None,
        body: Optional[Any] = None,
    ) -> BaseRequest:
        """构建使用租户令牌的原生请求"""
        request = BaseRequest()
        request.http_method = method
        request.uri = uri
        request.token_types = {lark.AccessTokenType.TENANT}
        if paths:
            request.paths = {k: str(v) for k, v in paths.items()}
        if queries:
            request.queries = [
                (k, _query_value(v)) for k, v in queries.items() if v is not None
            ]
        if body is not None:
            request.body = strip_none(body)
        return request

    async def call_raw(
        self,
        method: HttpMethod,
        uri: str,
        paths: Optional[Dict[str, Any]] = None,
        queries: Optional[Dict[str, Any]] = None,
        body: Optional[Any] = None,
    ) -> Dict[str, Any]:
        """
        发起请求并返回完整的响应体

        Raises:
            LarkApiError: 响应 code 不为 0
        """
        request = self.build_request(method, uri, paths, queries, body)
        logger.debug(f"飞书API请求: {method.name} {uri} paths={paths} queries={queries}")

        response = await self.client.arequest(request)

        payload: Dict[str, Any] = {}
        raw = getattr(response, "raw", None)
        content = getattr(raw, "content", None) if raw is not None else None
        if content:
            try:
                payload = json.loads(content)
            except (ValueError, TypeError) as e:
                logger.warning(f"飞书API响应不是合法JSON: {uri}: {e}")
                payload = {}

        if not isinstance(payload, dict):
            payload = {}
        if "code" not in payload:
            payload["code"] = getattr(response, "code", None)
            payload["msg"] = getattr(response, "msg", None)

        code = payload.get("code")
        if code != 0:
            logger.warning(f"飞书API调用失败: {uri}: code={code}, msg={payload.get('msg')}")
            raise LarkApiError(code, payload.get("msg"))
        return payload

    async def call(
        self,
        method: HttpMethod,
        uri: str,
        paths: Optional[Dict[str, Any]] = None,
        queries: Optional[Dict[str, Any]] = None,
        body: Optional[Any] = None,
    ) -> Dict[str, Any]:
        """发起请求并返回响应中的 data 对象（缺失时为空字典）"""
        payload = await self.call_raw(method, uri, paths, queries, body)
        data = payload.get("data")
        return data if isinstance(data, dict) else {}
