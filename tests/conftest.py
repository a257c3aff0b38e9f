# tests/conftest.py
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# 确保 src 目录在 sys.path 中
src_path = Path(__file__).resolve().parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from rcon_core.config import RconConfig
from rcon_core.network import NetworkClient


@pytest.fixture
def valid_config():
    """
    [Fixture] 返回一个默认 (非严格模式) 的 RconConfig 对象。
    """
    return RconConfig(
        host="127.0.0.1",
        port=25575,
        password="test_password",
        timeout=1.0,
    )


@pytest.fixture
def strict_config(valid_config):
    return RconConfig(
        host=valid_config.host,
        port=valid_config.port,
        password=valid_config.password,
        timeout=valid_config.timeout,
        strict=True,
    )


@pytest.fixture
def mock_net_client(valid_config):
    """
    模拟 NetworkClient。
    使用 spec 确保只模拟 NetworkClient 真实存在的方法。
    """
    net = MagicMock(spec=NetworkClient)
    net.config = valid_config
    net.is_connected = True
    net.connect = AsyncMock()
    net.send = AsyncMock()
    net.receive = AsyncMock()
    net.close = AsyncMock()
    return net

