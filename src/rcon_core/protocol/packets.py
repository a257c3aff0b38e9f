# File: src/rcon_core/protocol/packets.py
"""
RCON 协议封包构建与解析 (Packets)

负责将 Python 数据结构与符合协议规范的二进制字节流 (bytes) 互相转换。
本模块是无状态的 (Stateless)，不持有任何配置或会话信息，也不做任何 I/O。

线格式 (全部小端序):

    +-----------+----------+----------+------------------+------------+
    |  Length   |    ID    |   Type   |   Body (UTF-8)   | Terminator |
    |  int32    |  int32   |  int32   |  N bytes         |  0x00 0x00 |
    +-----------+----------+----------+------------------+------------+

- Length: 其后所有字节的长度，即 10 + N (不包含 Length 字段自身)。
- 整包长度: 14 + N。
"""

import logging
import struct
from dataclasses import dataclass

from ..exceptions import DecodeError
from . import constants
from .constants import PacketType

logger = logging.getLogger(__name__)


def _coerce_type(value: int) -> int:
    """已知的类型值转换为 PacketType，未知值原样保留。"""
    try:
        return PacketType(value)
    except ValueError:
        return value


@dataclass(frozen=True)
class Message:
    """单个 RCON 数据包。

    请求与响应使用相同结构。ID 由客户端分配，服务器在响应中原样回显，
    仅作为一次交互的关联令牌 (Correlation Token)。

    Attributes:
        id: 包 ID (int32)。
        packet_type: 包类型，见 PacketType。未知类型以 int 形式保留。
        body: UTF-8 文本负载。
    """

    id: int
    packet_type: int
    body: str = ""

    @property
    def declared_length(self) -> int:
        """Length 字段的值: ID(4) + Type(4) + Body(N) + Terminator(2)。"""
        return constants.LENGTH_OVERHEAD + len(self.body.encode("utf-8"))

    @property
    def wire_size(self) -> int:
        """编码后的整包字节数 (14 + N)。"""
        return self.declared_length + constants.LENGTH_FIELD_SIZE

    def encode(self) -> bytes:
        return encode(self)

    @classmethod
    def decode(cls, data: bytes) -> "Message":
        return decode(data)


# =========================================================================
# 编码 / 解码 (Codec)
# =========================================================================


def encode(message: Message) -> bytes:
    """将 Message 编码为线格式字节流。

    确定性、无失败路径。Length 字段总是按包体实际字节数重新计算。

    Args:
        message: 待编码的数据包。

    Returns:
        bytes: 长度为 14 + N 的字节流。
    """
    body_bytes = message.body.encode("utf-8")
    header = struct.pack(
        constants.HEADER_STRUCT,
        constants.LENGTH_OVERHEAD + len(body_bytes),
        message.id,
        int(message.packet_type),
    )
    return header + body_bytes + constants.TERMINATOR


def decode(data: bytes) -> Message:
    """将接收到的字节流解码为 Message。

    只解析第一个包，缓冲区中多余的字节会被忽略。结尾的 2 字节终止符不做校验。

    Args:
        data: 接收到的原始字节流。

    Returns:
        Message: 解码后的数据包。

    Raises:
        DecodeError: 包头不完整、长度字段非法、包体越界或包体不是合法 UTF-8。
    """
    if data is None or len(data) < constants.HEADER_SIZE:
        size = 0 if data is None else len(data)
        raise DecodeError(f"包头不完整: 需要 {constants.HEADER_SIZE} 字节，实际 {size} 字节")

    declared_length, packet_id, packet_type = struct.unpack_from(
        constants.HEADER_STRUCT, data, constants.LENGTH_OFFSET
    )

    body_len = declared_length - constants.LENGTH_OVERHEAD
    if body_len < 0:
        raise DecodeError(f"长度字段非法: declared_length={declared_length}")

    body_end = constants.BODY_OFFSET + body_len
    if len(data) < body_end:
        raise DecodeError(f"数据包被截断: 需要 {body_end} 字节，实际 {len(data)} 字节")

    body = ""
    if body_len > 0:
        try:
            body = bytes(data[constants.BODY_OFFSET : body_end]).decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"包体不是合法的 UTF-8: {e}") from e

    return Message(id=packet_id, packet_type=_coerce_type(packet_type), body=body)


# =========================================================================
# 请求包构建器 (Builders)
# =========================================================================


def build_auth_packet(request_id: int, password: str) -> Message:
    """构建认证请求包 (Type=AUTH)。"""
    return Message(id=request_id, packet_type=PacketType.AUTH, body=password)


def build_command_packet(
    request_id: int,
    command: str,
    packet_type: PacketType = PacketType.COMMAND,
) -> Message:
    """构建命令请求包。

    Args:
        request_id: 会话分配的包 ID。
        command: 命令文本。
        packet_type: 包类型，默认 COMMAND。必须是 PacketType 成员。

    Returns:
        Message: 构建好的请求包。

    Raises:
        ValueError: packet_type 不是 PacketType 成员 (包括 None 与裸 int)。
    """
    if not isinstance(packet_type, PacketType):
        raise ValueError(f"packet_type 必须是 PacketType 成员，而不是 {packet_type!r}")
    message = Message(id=request_id, packet_type=packet_type, body=command)
    if message.declared_length - constants.LENGTH_OVERHEAD > constants.MAX_PAYLOAD_SIZE:
        logger.warning(
            "命令负载 %d 字节超过常规上限 %d 字节，服务器可能拒绝",
            message.declared_length - constants.LENGTH_OVERHEAD,
            constants.MAX_PAYLOAD_SIZE,
        )
    return message
