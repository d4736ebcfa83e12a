# src/sip2_core/__init__.py
"""
SIP2-Core v0.1.0
图书馆流通系统 SIP2 协议的同步客户端核心库。
"""

# 暴露核心配置
from .config import (
    Sip2Config,
    create_config_from_dict,
    load_config_from_env,
    load_config_from_toml,
)

# 暴露连接与状态
from .core import SipConnection

# 暴露异常体系 (方便上层 try-except)
from .exceptions import (
    ChecksumMismatch,
    ChecksumRequired,
    ConfigError,
    ConnectionFailed,
    HandshakeFailed,
    InvalidCredentials,
    InvalidOperationParameter,
    MalformedResponse,
    NotConnectedOrAuthorized,
    ProtocolError,
    ResendRequested,
    Sip2Error,
    StatusCode,
    TransportUnavailable,
)
from .models import Item, Patron
from .state import ConnectionState, SipSession

__version__ = "0.1.0"

__all__ = [
    "SipConnection",
    "Sip2Config",
    "SipSession",
    "ConnectionState",
    "Patron",
    "Item",
    "create_config_from_dict",
    "load_config_from_env",
    "load_config_from_toml",
    "Sip2Error",
    "ConfigError",
    "TransportUnavailable",
    "ProtocolError",
    "MalformedResponse",
    "ChecksumMismatch",
    "ChecksumRequired",
    "HandshakeFailed",
    "ConnectionFailed",
    "ResendRequested",
    "InvalidCredentials",
    "NotConnectedOrAuthorized",
    "InvalidOperationParameter",
    "StatusCode",
]
