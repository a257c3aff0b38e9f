# File: src/rcon_core/protocol/constants.py
"""
RCON 协议常量表 (Constants)

仅定义协议的结构性常量（如包类型、偏移量、长度）。
不包含任何默认策略值（如超时、端口），这些应由 Config 注入。
"""

from enum import IntEnum


# =========================================================================
# 包类型 (Packet Types)
# =========================================================================
class PacketType(IntEnum):
    """包头部的 Type 字段定义。值 1 为保留值，协议中未使用。"""

    RESPONSE = 0  # 响应 (Server -> Client)
    COMMAND = 2  # 执行命令 (Client -> Server)
    AUTH = 3  # 认证请求 (Client -> Server)


# =========================================================================
# 结构偏移量 (Offsets & Structure)
# =========================================================================
# 包头: Length(4) + ID(4) + Type(4)，全部为小端序 int32
LENGTH_OFFSET = 0
BODY_OFFSET = 12

HEADER_STRUCT = "<iii"
HEADER_SIZE = 12
LENGTH_FIELD_SIZE = 4

# 包尾: 两个 0x00
TERMINATOR = b"\x00\x00"

# declared_length 中除包体外的固定部分: ID(4) + Type(4) + Terminator(2)
LENGTH_OVERHEAD = 10

# 整包的固定开销: Length(4) + ID(4) + Type(4) + Terminator(2)
PACKET_OVERHEAD = 14

# 单包最大负载与单次接收上限
MAX_PAYLOAD_SIZE = 4096
MAX_PACKET_SIZE = MAX_PAYLOAD_SIZE + PACKET_OVERHEAD  # 4110

# 服务器在认证失败时回复的 ID
AUTH_FAILED_ID = -1
