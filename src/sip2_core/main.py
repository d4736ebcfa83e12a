# src/sip2_core/main.py
"""
命令行入口：加载配置 -> 连接 -> (可选) 授权读者并打印信息 -> 关闭。

配置来源优先级: --config 指定的 TOML 文件 > 环境变量 (SIP2_*，可写在 .env 中)。
"""

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from .config import Sip2Config, load_config_from_env, load_config_from_toml
from .core import SipConnection
from .exceptions import ConfigError, InvalidCredentials, Sip2Error

logger = logging.getLogger("Sip2CLI")


def load_cli_config(config_path: Path | None, profile: str) -> Sip2Config:
    """为 CLI 工具加载配置。"""
    if config_path is not None:
        logger.info(f"CLI: 使用配置文件 {config_path}")
        return load_config_from_toml(config_path, profile)

    # 优先从当前工作目录加载 .env
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=True)
        logger.debug(f"已加载配置文件: {env_path}")
    else:
        logger.debug(f"在 {Path.cwd()} 未找到 .env 文件，仅使用环境变量。")

    return load_config_from_env()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sip2-core", description="SIP2 连接测试与读者查询"
    )
    parser.add_argument("barcode", nargs="?", help="要授权的读者条码")
    parser.add_argument("-c", "--config", type=Path, help="TOML 配置文件")
    parser.add_argument("-p", "--profile", default="default", help="配置预设名")
    parser.add_argument("-v", "--verbose", action="store_true", help="输出调试日志")
    return parser


def main(argv: list[str] | None = None) -> int:
    """程序主入口点。返回进程退出码。"""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = load_cli_config(args.config, args.profile)
    except ConfigError as ce:
        logger.critical(f"启动失败: {ce}")
        return 2

    connection = SipConnection(config)
    try:
        connection.open()
        logger.info("连接成功。")

        if args.barcode:
            patron = connection.patron_information(args.barcode)
            print(f"姓名: {patron.name}")
            print(f"类型: {patron.type}")
            print(f"罚款: {patron.fines} / 上限 {patron.fine_limit}")
            print(f"消息: {patron.message}")
            ok = connection.authorize_barcode(args.barcode)
            print(f"授权: {'通过' if ok else '拒绝'}")
            if not ok:
                print(f"原因: {connection.state.last_failure}")
        return 0

    except InvalidCredentials as ae:
        logger.error(f"认证被拒绝: {ae}")
        return 1
    except Sip2Error as e:
        logger.error(f"运行失败: {e}")
        return 1
    finally:
        if connection.net_client is not None and connection.net_client.is_open:
            connection.close()
        logger.info("SIP2 客户端已停止。")


if __name__ == "__main__":
    sys.exit(main())
