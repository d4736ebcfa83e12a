# File: src/sip2_core/exceptions.py
"""
SIP2 核心库 - 异常体系 (Exceptions)

定义库内统一使用的异常类，以便上层应用（如 CLI/自助借还终端）能进行精细的错误处理。
任何异常都不会被静默降级为 False/None 返回值。
"""

from enum import Enum


class Sip2Error(Exception):
    """SIP2 核心库的所有内部异常的基类。

    上层应用可以通过捕获此异常来处理所有由 sip2-core 抛出的已知错误。
    """

    pass


class ConfigError(Sip2Error):
    """配置加载或校验失败。

    触发场景:
    1. 缺少必要字段 (如 username/password/server_ip)。
    2. 字段格式错误 (如端口越界、超时非正数、编码名无效)。
    3. 找不到配置文件或环境变量。
    """

    pass


class TransportUnavailable(Sip2Error):
    """传输层错误 (I/O 级别)。

    触发场景:
    1. TCP 连接建立失败 (拒绝连接、DNS 解析失败)。
    2. 发送 (send) 或 接收 (recv) 超时。
    3. 对端关闭连接。

    注意: 客户端从不自动重试，由上层决定是否重连并重发整条命令。
    """

    pass


class ProtocolError(Sip2Error):
    """协议交互错误 (逻辑级别) 的基类。"""

    pass


class MalformedResponse(ProtocolError):
    """响应结构损坏。

    触发场景:
    1. 首段定长前缀长度不足，无法读取协议规定位置的标志位。
    2. 数值字段 (如罚款 BV / 罚款上限 CC / 预约上限 BZ) 无法解析。
    3. 响应超过最大允许长度。
    """

    pass


class ChecksumMismatch(ProtocolError):
    """启用入站校验时，响应的 AZ 校验和缺失或不匹配。"""

    pass


class StatusCode(Enum):
    """客户端能够识别的 ACS 状态码。"""

    LOGIN_OK = "941"
    LOGIN_FAILED = "940"
    REQUEST_RESEND = "96"

    @property
    def description(self) -> str:
        """获取状态码对应的人类可读描述。"""
        _DESC_MAP = {
            "941": "登录成功",
            "940": "登录失败：用户名或密码错误",
            "96": "服务器要求重发 (通常意味着需要启用校验和)",
        }
        return _DESC_MAP[self.value]


class ChecksumRequired(ProtocolError):
    """服务器要求校验和封帧，但客户端未启用。"""

    def __init__(self, message: str, status_code: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class HandshakeFailed(ProtocolError):
    """规则握手 (99/98) 返回了空或为 "0" 的应答。"""

    pass


class ConnectionFailed(ProtocolError):
    """登录响应中没有任何可识别的状态码。"""

    pass


class ResendRequested(ProtocolError):
    """服务器对非登录请求回复了 96 (请求重发)。

    客户端不会自动重发，调用方可自行决定是否重试。
    """

    pass


class InvalidCredentials(Sip2Error):
    """认证被拒绝 (业务层面的失败)。

    当登录请求被服务器明确拒绝 (收到 940) 时抛出。
    这通常意味着不可恢复的配置错误，需要用户干预。
    """

    def __init__(self, message: str, status_code: str | None = None) -> None:
        """初始化认证错误。

        Args:
            message: 错误描述信息。
            status_code: 原始状态码。构造函数会尝试将其转换为
                StatusCode 枚举，并使用标准化描述覆盖 message。
        """
        self.status_code_enum: StatusCode | None = None

        if status_code is not None:
            try:
                self.status_code_enum = StatusCode(status_code)
                message = self.status_code_enum.description
            except ValueError:
                pass

        super().__init__(message)
        self.status_code = status_code


class NotConnectedOrAuthorized(Sip2Error):
    """状态机错误 (FSM Violation)。

    触发场景:
    1. 在 open 成功之前调用任何流通操作。
    2. 未经 authorize_barcode 授权就调用借书/续借/预约。
    3. 在没有打开传输的情况下调用 close。
    """

    pass


class InvalidOperationParameter(Sip2Error, ValueError):
    """调用参数越界 (如预约动作不是 add/remove)。"""

    pass


# 简称
NetworkError = TransportUnavailable
AuthError = InvalidCredentials
StateError = NotConnectedOrAuthorized
