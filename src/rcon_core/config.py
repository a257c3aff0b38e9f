"""
RCON 核心库 - 配置模块

负责配置的加载、解析与强类型转换。
支持从 TOML 文件、环境变量 (含 .env 文件) 或字典中加载配置。
"""

import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv

from .exceptions import ConfigError
from .protocol.constants import MAX_PACKET_SIZE, PACKET_OVERHEAD

logger = logging.getLogger(__name__)

DEFAULT_PORT = 25575
DEFAULT_TIMEOUT = 5.0


@dataclass(frozen=True)
class RconConfig:
    """RconSession 的强类型配置对象。

    所有字段均为只读 (frozen=True)，确保配置在运行时不可变。

    Attributes:
        host: 服务器地址 (IP 或域名)。
        port: RCON 端口 (通常为 25575)。
        password: RCON 密码。
        timeout: 连接与读写超时 (秒)。
        max_packet_size: 单次接收的最大字节数 (默认 4096 + 14)。
        strict: 严格模式。开启后禁止认证前执行命令，并校验响应 ID。
    """

    host: str
    port: int = DEFAULT_PORT
    password: str = ""
    timeout: float = DEFAULT_TIMEOUT
    max_packet_size: int = MAX_PACKET_SIZE
    strict: bool = False

    def __repr__(self) -> str:
        """
        覆盖默认的 repr，隐藏密码字段，防止日志泄露敏感信息。
        """
        return (
            f"<{self.__class__.__name__} "
            f"server={self.host}:{self.port}, "
            f"password='******', "
            f"timeout={self.timeout}, "
            f"max_packet_size={self.max_packet_size}, "
            f"strict={self.strict}>"
        )


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "t", "yes", "on")


def create_config_from_dict(raw_data: dict[str, Any]) -> RconConfig:
    """通用工厂：将字典转换为强类型配置对象。

    负责字段的清洗、默认值注入和类型转换。

    Args:
        raw_data: 原始配置字典 (来自 TOML、Env 或命令行)。

    Returns:
        RconConfig: 验证并转换后的配置对象。

    Raises:
        ConfigError: 当必要字段缺失或格式错误时抛出。
    """
    try:
        # --- 内部辅助函数 ---
        def _req(key: str) -> Any:
            """获取必要字段，缺失则报错"""
            if key not in raw_data or raw_data[key] in (None, ""):
                raise ConfigError(f"配置缺失: 缺少必要字段 '{key}'")
            return raw_data[key]

        def _get(key: str, default: Any) -> Any:
            """获取可选字段，缺失则使用默认值"""
            val = raw_data.get(key)
            return default if val is None else val

        def _to_int(key: str, default: int, minimum: int, maximum: int) -> int:
            val = _get(key, default)
            try:
                num = int(val)
            except (TypeError, ValueError):
                raise ConfigError(f"整数格式无效 '{key}': {val}")
            if not minimum <= num <= maximum:
                raise ConfigError(f"取值越界 '{key}': {num} (允许范围 {minimum}-{maximum})")
            return num

        timeout_raw = _get("timeout", DEFAULT_TIMEOUT)
        try:
            timeout = float(timeout_raw)
        except (TypeError, ValueError):
            raise ConfigError(f"超时格式无效 'timeout': {timeout_raw}")
        if timeout <= 0:
            raise ConfigError(f"超时必须为正数: {timeout}")

        # --- 构建对象 ---
        return RconConfig(
            host=str(_req("host")).strip(),
            port=_to_int("port", DEFAULT_PORT, 1, 65535),
            password=str(_get("password", "")),
            timeout=timeout,
            # 至少要能容纳一个空包体的完整包
            max_packet_size=_to_int(
                "max_packet_size", MAX_PACKET_SIZE, PACKET_OVERHEAD, 2**31 - 1
            ),
            strict=_to_bool(_get("strict", False)),
        )

    except Exception as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(f"配置生成失败: {e}") from e


def read_toml_profile(file_path: Path, profile: str = "default") -> dict[str, Any]:
    """从 TOML 文件读取原始配置字典 (不做校验)。

    支持多层级查找策略:
    1. [profile.xxx]: 优先查找指定的 profile 块。
    2. [rcon]: 单服务器配置块。
    3. Root: 兼容根目录直接配置。

    Args:
        file_path: TOML 文件路径。
        profile: 配置预设名。默认为 "default"。

    Returns:
        dict: 选中配置块的原始字段，由调用方合并后交给 create_config_from_dict。

    Raises:
        ConfigError: 文件读取失败或 Profile 不存在。
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise ConfigError(f"配置文件未找到: {file_path}")

    try:
        with open(file_path, "rb") as f:
            data = tomllib.load(f)
    except Exception as e:
        raise ConfigError(f"读取 TOML 失败: {e}") from e

    raw_config = {}

    # 优先查找 profile
    if "profile" in data:
        if profile not in data["profile"]:
            raise ConfigError(f"未找到预设: [profile.{profile}]")
        raw_config = data["profile"][profile]

    elif "rcon" in data:
        if profile != "default":
            logger.warning(f"配置仅包含 [rcon] 节，忽略 profile='{profile}'。")
        raw_config = data["rcon"]
    else:
        raw_config = data

    return dict(raw_config)


def load_config_from_toml(file_path: Path, profile: str = "default") -> RconConfig:
    """从 TOML 文件加载配置。查找规则见 read_toml_profile。

    Raises:
        ConfigError: 文件读取失败、Profile 不存在或字段校验失败。
    """
    return create_config_from_dict(read_toml_profile(file_path, profile))


def read_env_values(env_file: Path | None = None) -> dict[str, Any]:
    """读取 `RCON_` 前缀的环境变量为原始配置字典 (不做校验)。

    先尝试加载 .env 文件 (不覆盖已存在的环境变量)，然后读取所有以 `RCON_`
    开头的环境变量并映射到配置字段。例如: `RCON_PASSWORD` -> `password`。

    Args:
        env_file: .env 文件路径。为 None 时从当前工作目录向上查找。

    Returns:
        dict: 检测到的字段，可能为空。
    """
    if env_file is not None:
        if load_dotenv(dotenv_path=env_file):
            logger.debug(f"已加载配置文件: {env_file}")
    else:
        found = find_dotenv(usecwd=True)
        if found and load_dotenv(dotenv_path=found):
            logger.debug(f"已加载配置文件: {found}")

    # 字段映射表 (Config Field -> Env Suffix)
    env_map = {
        "host": "HOST",
        "port": "PORT",
        "password": "PASSWORD",
        "timeout": "TIMEOUT",
        "max_packet_size": "MAX_PACKET_SIZE",
        "strict": "STRICT",
    }

    raw_data = {}

    for cfg_key, env_suffix in env_map.items():
        env_key = f"RCON_{env_suffix}"
        val = os.environ.get(env_key)
        if val is not None:
            raw_data[cfg_key] = val

    return raw_data


def load_config_from_env(env_file: Path | None = None) -> RconConfig:
    """从环境变量加载配置 (Docker/Cloud Friendly)。

    Raises:
        ConfigError: 未检测到任何相关环境变量，或字段格式错误。
    """
    raw_data = read_env_values(env_file)
    if not raw_data:
        raise ConfigError("未检测到 RCON_ 前缀的环境变量")

    return create_config_from_dict(raw_data)
