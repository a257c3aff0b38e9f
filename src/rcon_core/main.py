# src/rcon_core/main.py
"""
RCON-Core 命令行入口 (CLI)

用法示例:
    rcon-core --host 127.0.0.1 --password secret "say hi" "list"
    echo "list" | rcon-core --config config.toml --profile survival
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

from . import __version__
from .config import RconConfig, create_config_from_dict, read_env_values, read_toml_profile
from .exceptions import AuthError, ConfigError, NetworkError, RconError
from .session import RconSession

logger = logging.getLogger("RconCLI")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rcon-core",
        description="通过 RCON 协议向游戏服务器发送管理命令。",
    )
    parser.add_argument("commands", nargs="*", help="要执行的命令；为空时从标准输入逐行读取")
    parser.add_argument("--host", help="服务器地址 (覆盖配置)")
    parser.add_argument("--port", type=int, help="RCON 端口 (覆盖配置)")
    parser.add_argument("--password", help="RCON 密码 (覆盖配置)")
    parser.add_argument("--config", type=Path, help="TOML 配置文件路径")
    parser.add_argument("--profile", default="default", help="TOML 中的 profile 名")
    parser.add_argument("--strict", action="store_true", help="开启严格模式")
    parser.add_argument("-v", "--verbose", action="store_true", help="输出调试日志")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def load_cli_config(args: argparse.Namespace) -> RconConfig:
    """
    为 CLI 工具加载配置。

    优先级: --config 指定的 TOML 文件 > 环境变量 (.env)。命令行参数最后覆盖。
    各来源先合并为原始字典，最后统一校验，因此文件中缺失的字段可由命令行补齐。
    """
    raw: dict[str, Any]

    if args.config is not None:
        raw = read_toml_profile(args.config, args.profile)
    else:
        raw = read_env_values()
        if not raw:
            logger.debug("未检测到 RCON_ 环境变量，完全依赖命令行参数")

    overrides = {
        "host": args.host,
        "port": args.port,
        "password": args.password,
    }
    raw.update({k: v for k, v in overrides.items() if v is not None})
    if args.strict:
        raw["strict"] = True

    return create_config_from_dict(raw)


async def _iter_commands(args: argparse.Namespace):
    if args.commands:
        for command in args.commands:
            yield command
        return
    # 阻塞读取放到工作线程中执行
    while True:
        line = await asyncio.to_thread(sys.stdin.readline)
        if not line:
            break
        line = line.strip()
        if line:
            yield line


async def run(config: RconConfig, commands) -> int:
    """连接、认证并依次执行命令。返回进程退出码。"""
    async with RconSession(config) as session:
        await session.authenticate()
        async for command in commands:
            response = await session.execute(command)
            print(response)
    return 0


def main(argv: list[str] | None = None) -> int:
    """
    程序主入口点。
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = load_cli_config(args)
        logger.debug(f"配置加载完成: {config!r}")
        return asyncio.run(run(config, _iter_commands(args)))

    except ConfigError as ce:
        logger.critical(f"配置错误: {ce}")
        return 1
    except AuthError as ae:
        logger.error(f"认证失败: {ae}")
        return 1
    except NetworkError as ne:
        logger.error(f"网络错误: {ne}")
        return 1
    except RconError as e:
        logger.error(f"命令执行失败: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("收到用户中断信号 (Ctrl+C)，准备退出...")
        return 130


# 程序入口
if __name__ == "__main__":
    sys.exit(main())
