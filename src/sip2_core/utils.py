# File: src/sip2_core/utils.py
"""
SIP2 核心库 - 通用算法工具箱

本模块汇集了 SIP2 协议用到的校验和算法与时间戳格式化。
"""

from datetime import datetime


def sip_checksum(text: str, encoding: str = "ascii") -> str:
    """计算 SIP2 协议的 4 位十六进制校验和。

    校验和针对线路上实际传输的字节计算，因此必须使用与发送时相同的编码。

    算法逻辑:
    1. 按 encoding 编码后，累加每个字节的值 (包含末尾的 "AZ")。
    2. 取二进制补码 (即取负)。
    3. 截断为低 16 位。
    4. 格式化为 4 位大写十六进制字符串。

    Args:
        text: 需要计算校验和的报文 (必须以 "AZ" 结尾)。
        encoding: 报文的线路编码。

    Returns:
        str: 4 个字符的校验和，例如 "F3A1"。
    """
    total = sum(text.encode(encoding))
    return f"{(-total) & 0xFFFF:04X}"


def sip_timestamp(now: datetime | None = None) -> str:
    """生成 SIP2 协议规定的 18 字符时间戳。

    格式为 YYYYMMDD + 4 个空格 (时区占位，表示本地时间) + HHMMSS。

    Args:
        now: 指定时间，默认取本地当前时间。

    Returns:
        str: 形如 "20240131    235959" 的字符串。
    """
    now = now or datetime.now()
    return now.strftime("%Y%m%d    %H%M%S")
