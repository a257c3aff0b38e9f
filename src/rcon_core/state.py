# File: src/rcon_core/state.py
"""
RCON 核心库 - 状态模块

负责定义和存储所有易变的会话状态。
本模块不包含业务逻辑，仅作为数据容器供 Session 读写。
"""

from dataclasses import dataclass
from enum import Enum, auto


class SessionStatus(Enum):
    """会话的生命周期状态枚举。

    状态流转示意:
    CREATED -> AUTHENTICATING -> READY -> CLOSED
                   |
                   v
                CREATED (认证失败)
    """

    CREATED = auto()
    """初始状态，会话已绑定到连接但尚未认证。"""

    AUTHENTICATING = auto()
    """正在执行认证握手。"""

    READY = auto()
    """认证成功，可以执行命令。"""

    CLOSED = auto()
    """连接已关闭，会话不可再用。"""


@dataclass
class SessionState:
    """存储 RCON 会话的易变状态数据。

    所有字段均为普通字段，没有任何原子操作或锁：会话约定同一时刻只有一个
    调用方在使用 (见 RconSession 的并发说明)。

    Attributes:
        next_id: 包 ID 计数器，从 0 开始，每次发送前先自增 (第一个 ID 为 1)。
        authenticated: 认证握手是否已成功完成。
        status: 当前会话状态。
        last_error: 最近一次发生的错误信息描述，用于 UI 显示。
        last_request_id: 最近一次发送的请求包 ID。
        last_response_id: 最近一次收到的响应包 ID。
    """

    next_id: int = 0
    authenticated: bool = False

    status: SessionStatus = SessionStatus.CREATED
    last_error: str = ""

    last_request_id: int | None = None
    last_response_id: int | None = None

    @property
    def is_ready(self) -> bool:
        """判断会话当前是否可以执行命令。"""
        return self.authenticated and self.status == SessionStatus.READY
