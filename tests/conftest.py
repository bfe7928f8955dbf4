"""
Pytest 配置和测试固件
"""

import json
import pytest
import sys
import os
from unittest.mock import Mock, AsyncMock

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))


def _response(payload):
    return Mock(
        raw=Mock(content=json.dumps(payload).encode("utf-8")),
        code=payload.get("code"),
        msg=payload.get("msg"),
    )


@pytest.fixture
def make_response():
    """把响应体字典包装成 SDK 原生响应对象"""
    return _response


@pytest.fixture
def mock_client():
    """创建 arequest 默认返回成功空响应的模拟 SDK 客户端"""
    client = Mock()
    client.arequest = AsyncMock(return_value=_response({"code": 0, "msg": "success", "data": {}}))
    return client


@pytest.fixture
def lark_api(mock_client):
    from feishu_suite.lark.api import LarkApi

    return LarkApi(mock_client)


@pytest.fixture
def sent_requests(mock_client):
    """返回已经发出的请求列表"""

    def _requests():
        return [call.args[0] for call in mock_client.arequest.call_args_list]

    return _requests


@pytest.fixture
def base_config():
    """只配置了默认账号的插件配置"""
    return {
        "app_id": "cli_test_app",
        "app_secret": "secret_123",
        "domain": "feishu",
    }


@pytest.fixture
def mock_lark_context():
    """创建带有飞书适配器的模拟 AstrBot 上下文"""

    class LarkPlatformAdapter:
        def __init__(self, client):
            self.lark_api = client

    mock_context = Mock()
    mock_context.adapter_client = Mock()
    mock_context.platform_manager.get_insts.return_value = [
        Mock(),
        LarkPlatformAdapter(mock_context.adapter_client),
    ]
    return mock_context
