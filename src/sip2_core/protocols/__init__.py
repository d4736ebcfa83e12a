# src/sip2_core/protocols/__init__.py
"""
SIP2 协议层 (Protocol Layer)

本包负责报文的纯粹构建 (Build)、解析 (Parse)、封帧 (Framing) 与一次交换 (Exchange)。

- 不直接创建 socket，交换器只依赖抽象的字节收发能力。
- 不包含连接状态机。
"""

from . import constants
from .commands import (
    build_checkin,
    build_checkout,
    build_end_session,
    build_handshake,
    build_hold,
    build_login,
    build_patron_status,
    build_renew,
    build_renew_all,
)
from .exchange import MessageExchanger
from .fields import decode, decode_fixed_flags, encode_field, encode_message
from .framing import ChecksumFraming, NoChecksumFraming, create_framing, verify_checksum

# 公共 API
__all__ = [
    "constants",
    "decode",
    "decode_fixed_flags",
    "encode_field",
    "encode_message",
    "build_login",
    "build_handshake",
    "build_patron_status",
    "build_checkout",
    "build_checkin",
    "build_hold",
    "build_renew",
    "build_renew_all",
    "build_end_session",
    "ChecksumFraming",
    "NoChecksumFraming",
    "create_framing",
    "verify_checksum",
    "MessageExchanger",
]
