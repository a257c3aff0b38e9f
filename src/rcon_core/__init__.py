"""
RCON-Core v1.0.0
基于 asyncio 的 RCON (Remote Console) 协议客户端核心库。
"""

# 暴露核心配置
from .config import (
    RconConfig,
    create_config_from_dict,
    load_config_from_env,
    load_config_from_toml,
    read_env_values,
    read_toml_profile,
)

# 暴露异常体系 (方便上层 try-except)
from .exceptions import (
    AuthError,
    ConfigError,
    DecodeError,
    NetworkError,
    ProtocolError,
    RconError,
    SendError,
    StateError,
)
from .network import NetworkClient
from .protocol import Message, PacketType, decode, encode

# 暴露会话与状态
from .session import RconSession
from .state import SessionState, SessionStatus

__version__ = "1.0.0"

__all__ = [
    "RconSession",
    "RconConfig",
    "NetworkClient",
    "SessionState",
    "SessionStatus",
    "Message",
    "PacketType",
    "encode",
    "decode",
    "create_config_from_dict",
    "load_config_from_env",
    "load_config_from_toml",
    "read_env_values",
    "read_toml_profile",
    "RconError",
    "ConfigError",
    "NetworkError",
    "DecodeError",
    "AuthError",
    "SendError",
    "StateError",
    "ProtocolError",
]
