# File: src/rcon_core/exceptions.py
"""
RCON 核心库 - 异常体系 (Exceptions)

定义库内统一使用的异常类，以便上层应用（如 CLI/GUI）能进行精细的错误处理。
"""


class RconError(Exception):
    """RCON 核心库的所有内部异常的基类。

    上层应用可以通过捕获此异常来处理所有由 rcon-core 抛出的已知错误。
    """

    pass


class ConfigError(RconError):
    """配置加载或校验失败。

    触发场景:
    1. 缺少必要字段 (如 host)。
    2. 字段格式错误 (如端口不是整数、超时为负数)。
    3. 找不到配置文件或环境变量。
    """

    pass


class NetworkError(RconError):
    """网络层面的错误 (I/O 级别)。

    触发场景:
    1. TCP 连接建立失败 (拒绝连接、DNS 解析失败)。
    2. 发送 (write) 或 接收 (read) 超时。
    3. 对端关闭连接 (EOF) 或连接被重置。
    """

    pass


class DecodeError(RconError):
    """数据包解码失败。仅由编解码层 (codec) 抛出。

    触发场景:
    1. 数据长度不足 12 字节，无法读取包头。
    2. 长度字段非法 (declared_length - 10 为负数)。
    3. 缓冲区长度不足以容纳声明的包体 (越界/截断)。
    4. 包体不是合法的 UTF-8。
    """

    pass


class AuthError(RconError):
    """认证握手失败。

    由 authenticate() 抛出。底层的发送、接收、解码失败都会被折叠为此异常，
    因为调用方唯一合理的反应都是“认证失败，不要继续”。
    原始异常可通过 __cause__ 获取。
    """

    def __init__(self, message: str, request_id: int | None = None) -> None:
        """初始化认证错误。

        Args:
            message: 错误描述信息。
            request_id: 本次认证请求所使用的包 ID。
        """
        super().__init__(message)
        self.request_id = request_id


class SendError(RconError):
    """命令交互失败。

    由 execute() 抛出，覆盖一次 写入 -> 读取 -> 解码 往返中的任何失败。
    """

    def __init__(self, message: str, request_id: int | None = None) -> None:
        super().__init__(message)
        self.request_id = request_id


class StateError(RconError):
    """会话状态错误。

    触发场景:
    1. 严格模式下，在认证完成前调用 execute()。
    2. 在已关闭的会话上继续收发。
    """

    pass


class ProtocolError(RconError):
    """协议交互错误 (逻辑级别)。

    仅在严格模式下抛出：响应包的 ID 与请求包的 ID 不一致。
    """

    def __init__(self, message: str, expected_id: int, received_id: int) -> None:
        super().__init__(message)
        self.expected_id = expected_id
        self.received_id = received_id
