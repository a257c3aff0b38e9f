# File: src/rcon_core/session.py
"""
RCON 会话 (Session)

职责：
1. 资源组装：State + Network + Config。
2. 包 ID 分配与认证握手。
3. 同步语义的 请求 -> 响应 交互 (一次写入，一次读取)。
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from typing import Any

from .config import DEFAULT_PORT, RconConfig, create_config_from_dict
from .exceptions import (
    AuthError,
    DecodeError,
    NetworkError,
    ProtocolError,
    SendError,
    StateError,
)
from .network import NetworkClient
from .protocol import constants, packets
from .protocol.constants import PacketType
from .protocol.packets import Message
from .state import SessionState, SessionStatus

logger = logging.getLogger(__name__)

# 定义回调函数类型别名：支持同步或异步函数
StatusCallback = Callable[[SessionStatus, str], Any | Awaitable[Any]]

INT32_MAX = 2**31 - 1


class RconSession:
    """RCON 会话 (Async)。

    一个实例独占一条连接。使用流程:

        session = await RconSession.create("127.0.0.1", 25575)
        await session.authenticate("password")   # 必须是第一个操作
        text = await session.execute("list")

    认证必须是新会话上执行的第一个操作。默认情况下会话本身不强制这一顺序，
    认证前执行命令的结果取决于服务器；开启 strict 后会直接抛出 StateError。

    并发说明: 会话不是并发安全的。每次 authenticate/execute 都是一次写入紧跟
    一次读取，在上一次调用返回前发起下一次调用属于协议违规，响应将无法对应。
    多个调用方共享会话时必须在外部串行化 (例如 asyncio.Lock)。
    """

    def __init__(
        self,
        config: RconConfig,
        net_client: NetworkClient | None = None,
        status_callback: StatusCallback | None = None,
    ) -> None:
        """初始化会话。不会发起连接。

        Args:
            config: 全局配置对象。
            net_client: 传输层实例。为 None 时根据 config 创建。
            status_callback: 初始状态回调。也可以使用 add_listener 注册。
        """
        self.config = config
        self.net_client = net_client if net_client is not None else NetworkClient(config)
        self._state = SessionState()

        self._listeners: list[StatusCallback] = []
        if status_callback:
            self.add_listener(status_callback)

    @classmethod
    async def create(
        cls, host: str, port: int = DEFAULT_PORT, **options: Any
    ) -> "RconSession":
        """创建会话并建立连接。

        Args:
            host: 服务器地址。
            port: RCON 端口。
            **options: 其余 RconConfig 字段 (password, timeout, strict ...)。

        Returns:
            RconSession: 已连接、尚未认证的会话。

        Raises:
            ConfigError: 参数不合法。
            NetworkError: 连接无法建立。
        """
        config = create_config_from_dict({"host": host, "port": port, **options})
        session = cls(config)
        await session.connect()
        return session

    @property
    def state(self) -> SessionState:
        """获取当前会话状态的只读副本。

        返回的是一个副本 (Copy)，修改它不会影响会话内部状态。
        """
        return replace(self._state)

    @property
    def authenticated(self) -> bool:
        return self._state.authenticated

    def add_listener(self, callback: StatusCallback) -> None:
        """注册状态变更监听器。"""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: StatusCallback) -> None:
        """移除状态变更监听器。"""
        if callback in self._listeners:
            self._listeners.remove(callback)

    def next_id(self) -> int:
        """计数器先自增再返回，第一个 ID 为 1。超出 int32 后回绕到 1。"""
        new = self._state.next_id + 1
        if new > INT32_MAX:
            new = 1
        self._state.next_id = new
        return new

    async def connect(self) -> None:
        """建立连接 (如果尚未建立)。

        Raises:
            StateError: 会话已关闭。
            NetworkError: 连接无法建立。
        """
        self._ensure_open()
        if not self.net_client.is_connected:
            await self.net_client.connect()

    async def authenticate(self, password: str | None = None) -> None:
        """执行认证握手。

        发送一个 AUTH 包并读取恰好一个响应。读取并解码成功即视为认证成功。

        Args:
            password: RCON 密码。为 None 时使用 config.password。

        Raises:
            AuthError: 发送、接收或解码失败 (原始异常见 __cause__)；
                严格模式下服务器回复 ID -1 或 ID 不匹配。
            StateError: 会话已关闭。
        """
        self._ensure_open()
        if password is None:
            password = self.config.password

        request = packets.build_auth_packet(self.next_id(), password)
        self._state.authenticated = False
        self._update_status(SessionStatus.AUTHENTICATING, "正在认证...")

        try:
            if not self.net_client.is_connected:
                await self.net_client.connect()
            response = await self._exchange(request)
            if self.config.strict:
                if response.id == constants.AUTH_FAILED_ID:
                    raise AuthError("认证被拒绝: 密码错误", request_id=request.id)
                self._check_correlation(request, response)

        except AuthError as ae:
            self._auth_failed(str(ae))
            raise
        except (NetworkError, DecodeError, ProtocolError) as e:
            self._auth_failed(str(e))
            raise AuthError(f"认证失败: {e}", request_id=request.id) from e

        self._state.authenticated = True
        self._update_status(SessionStatus.READY, "认证成功")

    async def execute(
        self, command: str, packet_type: PacketType = PacketType.COMMAND
    ) -> str:
        """执行一条命令并返回响应正文。

        Args:
            command: 命令文本。
            packet_type: 包类型，默认 COMMAND。必须显式传入 PacketType 成员，
                None 或裸 int 会被拒绝，避免把认证包误当作命令发送。

        Returns:
            str: 响应包的正文。

        Raises:
            SendError: 写入、读取或解码失败 (原始异常见 __cause__)。
            StateError: 会话已关闭；或严格模式下尚未认证。
            ProtocolError: 严格模式下响应 ID 与请求 ID 不一致。
            ValueError: packet_type 不是 PacketType 成员。
        """
        self._ensure_open()
        if not isinstance(packet_type, PacketType):
            raise ValueError(f"packet_type 必须是 PacketType 成员，而不是 {packet_type!r}")
        if self.config.strict and not self._state.authenticated:
            raise StateError("尚未认证，拒绝执行命令 (strict 模式)")

        request = packets.build_command_packet(self.next_id(), command, packet_type)

        try:
            response = await self._exchange(request)
        except (NetworkError, DecodeError) as e:
            self._state.last_error = str(e)
            raise SendError(f"命令执行失败: {e}", request_id=request.id) from e

        if self.config.strict:
            try:
                self._check_correlation(request, response)
            except ProtocolError as pe:
                self._state.last_error = str(pe)
                raise

        return response.body

    async def close(self) -> None:
        """关闭连接，会话不可再用。"""
        if self._state.status == SessionStatus.CLOSED:
            return
        await self.net_client.close()
        self._state.authenticated = False
        self._update_status(SessionStatus.CLOSED, "连接已关闭")

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _exchange(self, request: Message) -> Message:
        """[Internal] 一次完整的往返: 编码 -> 写入 -> 读取 -> 解码。"""
        self._state.last_request_id = request.id
        self._state.last_response_id = None

        await self.net_client.send(packets.encode(request))
        logger.debug(
            f"-> id={request.id} type={PacketType(request.packet_type).name} "
            f"len={request.declared_length}"
        )

        data = await self.net_client.receive(self.config.max_packet_size)
        response = packets.decode(data)
        self._state.last_response_id = response.id
        logger.debug(f"<- id={response.id} type={response.packet_type} len={response.declared_length}")
        return response

    def _check_correlation(self, request: Message, response: Message) -> None:
        if response.id != request.id:
            raise ProtocolError(
                f"响应 ID 不匹配: 期望 {request.id}，实际 {response.id}",
                expected_id=request.id,
                received_id=response.id,
            )

    def _ensure_open(self) -> None:
        if self._state.status == SessionStatus.CLOSED:
            raise StateError("会话已关闭")

    def _auth_failed(self, reason: str) -> None:
        self._state.authenticated = False
        self._state.last_error = reason
        self._update_status(SessionStatus.CREATED, f"认证失败: {reason}")

    def _update_status(self, status: SessionStatus, msg: str) -> None:
        """更新内部状态并异步触发所有回调。"""
        self._state.status = status
        logger.info(f"[{status.name}] {msg}")

        for callback in self._listeners:
            try:
                # 智能识别回调类型
                if inspect.iscoroutinefunction(callback):
                    asyncio.create_task(callback(status, msg))  # type: ignore
                else:
                    loop = asyncio.get_running_loop()
                    loop.call_soon(callback, status, msg)
            except RuntimeError:
                # 应对 loop 尚未运行或已关闭的边缘情况
                pass
