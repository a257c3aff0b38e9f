# src/rcon_core/network.py
"""
RCON 核心库 - 网络模块 (Network) [Asyncio Edition]

封装 TCP 连接的建立、发送和接收逻辑。
该模块屏蔽了底层 StreamReader/StreamWriter 的复杂性，向会话层提供纯粹的 bytes 收发接口。
"""

import asyncio
import logging
from typing import Optional

from .config import RconConfig
from .exceptions import NetworkError
from .protocol.constants import LENGTH_FIELD_SIZE

logger = logging.getLogger(__name__)


class NetworkClient:
    """
    封装 asyncio TCP 流操作的客户端。

    一个实例只对应一条连接，由 RconSession 独占持有。
    """

    def __init__(self, config: RconConfig):
        self.config = config
        self.reader: Optional[asyncio.StreamReader] = None
        self.writer: Optional[asyncio.StreamWriter] = None

    @property
    def is_connected(self) -> bool:
        return self.writer is not None and not self.writer.is_closing()

    async def connect(self) -> None:
        """
        建立到 RCON 服务器的 TCP 连接。
        """
        target = (self.config.host, self.config.port)
        try:
            self.reader, self.writer = await asyncio.wait_for(
                asyncio.open_connection(*target), timeout=self.config.timeout
            )
            logger.debug(f"TCP 连接已建立: {target[0]}:{target[1]}")

        except asyncio.TimeoutError:
            await self.close()
            raise NetworkError(
                f"连接超时 {target[0]}:{target[1]} ({self.config.timeout}s)"
            ) from None
        except OSError as e:
            await self.close()
            raise NetworkError(f"连接失败 {target[0]}:{target[1]}: {e}") from e

    async def send(self, packet: bytes) -> None:
        """
        写入完整的数据包并等待缓冲区排空。
        """
        if not self.is_connected:
            raise NetworkError("连接未建立或已关闭")

        # 显式断言：此时 writer 绝不可能是 None
        assert self.writer is not None

        try:
            self.writer.write(packet)
            await asyncio.wait_for(self.writer.drain(), timeout=self.config.timeout)
        except asyncio.TimeoutError:
            raise NetworkError(f"发送超时 ({self.config.timeout}s)") from None
        except (OSError, RuntimeError) as e:
            raise NetworkError(f"发送失败: {e}") from e

    async def receive(self, max_size: int) -> bytes:
        """
        接收一个数据包 (Async)。

        先读取 4 字节长度前缀，再读取其声明的剩余字节。总读取量不超过 max_size；
        超出上限的包会被截断返回，由解码层拒绝；包的剩余部分会被读出并丢弃，
        保证流与下一个包的边界对齐。

        Args:
            max_size: 单包最大字节数 (含长度字段)。

        Returns:
            bytes: 读取到的原始字节。

        Raises:
            NetworkError: 连接未建立、超时、对端关闭或读取错误。
        """
        if not self.is_connected or self.reader is None:
            raise NetworkError("连接未建立或已关闭")

        try:
            prefix = await asyncio.wait_for(
                self.reader.readexactly(LENGTH_FIELD_SIZE), timeout=self.config.timeout
            )
            declared = int.from_bytes(prefix, "little", signed=True)
            if declared <= 0:
                # 长度非法，交给解码层报错
                return prefix

            remaining = min(declared, max_size - LENGTH_FIELD_SIZE)
            if remaining < declared:
                logger.warning(
                    f"响应长度 {declared + LENGTH_FIELD_SIZE} 超过接收上限 {max_size}，已截断并丢弃剩余部分"
                )

            rest = await asyncio.wait_for(
                self.reader.readexactly(remaining), timeout=self.config.timeout
            )
            await self._discard(declared - remaining, max_size)
            return prefix + rest

        except asyncio.TimeoutError:
            raise NetworkError(f"接收超时 ({self.config.timeout}s)") from None
        except asyncio.IncompleteReadError as e:
            raise NetworkError(
                f"连接已被对端关闭 (已读取 {len(e.partial)} 字节)"
            ) from e
        except OSError as e:
            raise NetworkError(f"接收错误: {e}") from e

    async def _discard(self, count: int, chunk_size: int) -> None:
        """[Internal] 按块读出并丢弃 count 字节。"""
        assert self.reader is not None
        while count > 0:
            chunk = min(count, chunk_size)
            await asyncio.wait_for(
                self.reader.readexactly(chunk), timeout=self.config.timeout
            )
            count -= chunk
        logger.debug("超长响应的剩余部分已丢弃")

    async def close(self) -> None:
        """关闭连接"""
        if self.writer:
            writer = self.writer
            self.writer = None
            self.reader = None
            writer.close()
            try:
                await writer.wait_closed()
            except OSError as e:
                logger.debug(f"关闭连接时出现异常 (已忽略): {e}")
            logger.debug("TCP 连接已关闭")

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
