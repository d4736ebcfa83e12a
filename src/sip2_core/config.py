"""
SIP2 核心库 - 配置模块

负责配置的加载、解析与强类型转换。
支持从 TOML 文件、环境变量或字典中加载配置。
"""

import codecs
import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 6001
DEFAULT_TIMEOUT = 10.0

_TRUE_STRINGS = ("true", "1", "yes", "on", "y", "t")
_FALSE_STRINGS = ("false", "0", "no", "off", "n", "f", "")


@dataclass(frozen=True)
class Sip2Config:
    """SipConnection 的强类型配置对象。

    所有字段均为只读 (frozen=True)，确保一次连接尝试期间参数不可变。

    Attributes:
        username: 登录用户名 (CN)。
        password: 登录密码 (CO)，同时作为终端密码 (AC) 随每条流通命令发送。
        server_address: ILS 服务器地址 (主机名或 IP)。
        server_port: ILS 服务器端口。
        extra_number: 额外终端号/位置码 (CP)，部分实现可留空。
        institution_id: 机构 ID (AO)。
        checksum_enabled: 是否对出站消息追加 AY/AZ 校验和封帧。
        verify_checksum: 是否校验入站消息的 AZ 校验和。
        timeout: 连接/发送/接收超时 (秒)。
        debug: 是否以 INFO 级别回显原始报文。
        encoding: 报文字符编码。
        protocol_version: 规则握手中声明的协议版本。
    """

    username: str
    password: str
    server_address: str
    server_port: int = DEFAULT_PORT
    extra_number: str = ""
    institution_id: str = "1"
    checksum_enabled: bool = False
    verify_checksum: bool = False
    timeout: float = DEFAULT_TIMEOUT
    debug: bool = False
    encoding: str = "ascii"
    protocol_version: str = "2.00"

    def __repr__(self) -> str:
        """隐藏密码字段的安全字符串表示，防止日志泄露敏感信息。"""
        return (
            f"<{self.__class__.__name__} "
            f"server={self.server_address}:{self.server_port}, "
            f"username='{self.username}', "
            f"password='******', "
            f"institution='{self.institution_id}', "
            f"checksum={self.checksum_enabled}>"
        )


def create_config_from_dict(raw_data: dict[str, Any]) -> Sip2Config:
    """通用工厂：将字典转换为强类型配置对象。

    负责字段的清洗、默认值注入和类型转换。

    Args:
        raw_data: 原始配置字典 (来自 TOML 或 Env)。

    Returns:
        Sip2Config: 验证并转换后的配置对象。

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
            return raw_data.get(key, default)

        def _to_bool(key: str, default: bool = False) -> bool:
            """兼容 TOML 布尔值与环境变量字符串。"""
            val = raw_data.get(key, default)
            if isinstance(val, bool):
                return val
            text = str(val).strip().lower()
            if text in _TRUE_STRINGS:
                return True
            if text in _FALSE_STRINGS:
                return False
            raise ConfigError(f"布尔值格式无效 '{key}': {val}")

        def _to_port(key: str, default: int) -> int:
            val = raw_data.get(key, default)
            try:
                port = int(val)
            except (TypeError, ValueError):
                raise ConfigError(f"端口格式无效 '{key}': {val}")
            if not 0 < port < 65536:
                raise ConfigError(f"端口超出范围 '{key}': {port}")
            return port

        def _to_timeout(key: str, default: float) -> float:
            val = raw_data.get(key, default)
            try:
                timeout = float(val)
            except (TypeError, ValueError):
                raise ConfigError(f"超时格式无效 '{key}': {val}")
            if timeout <= 0:
                raise ConfigError(f"超时必须为正数 '{key}': {timeout}")
            return timeout

        def _to_encoding(key: str, default: str) -> str:
            val = str(raw_data.get(key, default))
            try:
                return codecs.lookup(val).name
            except LookupError:
                raise ConfigError(f"未知的字符编码 '{key}': {val}")

        # --- 构建对象 ---
        return Sip2Config(
            # 连接与身份
            username=str(_req("username")),
            password=str(_req("password")),
            server_address=str(_req("server_ip")),
            server_port=_to_port("port", DEFAULT_PORT),
            extra_number=str(_get("extra_number", "")),
            institution_id=str(_get("institution_id", "1")),
            # 封帧
            checksum_enabled=_to_bool("checksum"),
            verify_checksum=_to_bool("verify_checksum"),
            # 传输
            timeout=_to_timeout("timeout", DEFAULT_TIMEOUT),
            debug=_to_bool("debug"),
            encoding=_to_encoding("encoding", "ascii"),
            protocol_version=str(_get("protocol_version", "2.00")),
        )

    except Exception as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(f"配置生成失败: {e}") from e


def load_config_from_toml(file_path: Path, profile: str = "default") -> Sip2Config:
    """从 TOML 文件加载配置。

    支持多层级查找策略:
    1. [profile.xxx]: 优先查找指定的 profile 块。
    2. [sip2]: 单服务器配置块。
    3. Root: 兼容根目录直接配置。

    Args:
        file_path: TOML 文件路径。
        profile: 配置预设名。默认为 "default"。

    Returns:
        Sip2Config: 配置对象。

    Raises:
        ConfigError: 文件读取失败或 Profile 不存在。
    """
    if not file_path.exists():
        raise ConfigError(f"配置文件未找到: {file_path}")

    try:
        with open(file_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"读取 TOML 失败: {e}") from e

    raw_config = {}

    if "profile" in data:
        if profile not in data["profile"]:
            raise ConfigError(f"未找到预设: [profile.{profile}]")
        raw_config = data["profile"][profile]
    elif "sip2" in data:
        if profile != "default":
            logger.warning(f"配置仅包含 [sip2] 节，忽略 profile='{profile}'。")
        raw_config = data["sip2"]
    else:
        raw_config = data

    return create_config_from_dict(raw_config)


def load_config_from_env() -> Sip2Config:
    """从环境变量加载配置 (Docker/Cloud Friendly)。

    自动读取所有以 `SIP2_` 开头的环境变量，并映射到配置字段。
    例如: `SIP2_USERNAME` -> `username`。

    Returns:
        Sip2Config: 配置对象。

    Raises:
        ConfigError: 未检测到任何相关环境变量。
    """
    # 字段映射表 (Config Field -> Env Suffix)
    env_map = {
        "username": "USERNAME",
        "password": "PASSWORD",
        "server_ip": "SERVER_IP",
        "port": "PORT",
        "extra_number": "EXTRA_NUMBER",
        "institution_id": "INSTITUTION_ID",
        "checksum": "CHECKSUM",
        "verify_checksum": "VERIFY_CHECKSUM",
        "timeout": "TIMEOUT",
        "debug": "DEBUG",
        "encoding": "ENCODING",
        "protocol_version": "PROTOCOL_VERSION",
    }

    raw_data = {}

    for cfg_key, env_suffix in env_map.items():
        val = os.environ.get(f"SIP2_{env_suffix}")
        if val is not None:
            raw_data[cfg_key] = val

    if not raw_data:
        raise ConfigError("未检测到 SIP2_ 前缀的环境变量")

    return create_config_from_dict(raw_data)
