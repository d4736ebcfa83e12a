"""
SIP2 核心库 - 状态模块

负责定义和存储所有易变的会话状态。
本模块不包含业务逻辑，仅作为数据容器供 Connection 和 Framing 共享读写。
"""

from dataclasses import dataclass
from enum import Enum, auto


class ConnectionState(Enum):
    """连接状态机的生命周期状态枚举。

    状态流转示意:
    DISCONNECTED -> CONNECTED <-> AUTHORIZED
          ^             |              |
          |             v              v
          +---------- CLOSED <---------+

    收发中途传输中断时，CONNECTED / AUTHORIZED 直接回到 DISCONNECTED。
    """

    DISCONNECTED = auto()
    """初始状态，尚未建立传输、登录失败或收发中途传输中断。"""

    CONNECTED = auto()
    """登录 (93/94) 与规则握手 (99/98) 均已完成。"""

    AUTHORIZED = auto()
    """在 CONNECTED 基础上，最近一次 authorize_barcode 成功。"""

    CLOSED = auto()
    """传输已释放。可以再次 open。"""


@dataclass
class SipSession:
    """存储 SIP2 会话的易变状态数据。

    每次 close 时序列号归零，以避免旧的序列号污染新会话。

    Attributes:
        state: 当前连接状态。
        sequence_number: 下一条校验和封帧消息使用的 AY 序列号。
        last_error: 最近一次发生的错误信息描述，用于 UI 显示。
        last_failure: 最近一次读者授权失败的原因。
        authorized_patron: 最近一次授权成功的读者条码。
    """

    state: ConnectionState = ConnectionState.DISCONNECTED
    sequence_number: int = 0
    last_error: str = ""
    last_failure: str = ""
    authorized_patron: str = ""

    @property
    def is_connected(self) -> bool:
        """是否已完成登录握手 (包括已授权状态)。"""
        return self.state in (ConnectionState.CONNECTED, ConnectionState.AUTHORIZED)

    @property
    def is_authorized(self) -> bool:
        return self.state is ConnectionState.AUTHORIZED

    def reset(self) -> None:
        """重置会话数据 (不改变 state)。"""
        self.sequence_number = 0
        self.last_failure = ""
        self.authorized_patron = ""
