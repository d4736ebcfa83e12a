# File: src/sip2_core/protocols/commands.py
"""
SIP2 命令构建器 (Command Builders)

负责将调用参数转换为符合协议规范的报文字符串 (未封帧)。
本模块是无状态的 (Stateless)：时间戳、机构号、终端密码均由调用方传入。
"""

from ..exceptions import InvalidOperationParameter
from . import constants
from .constants import Code, Tag
from .fields import encode_message

# =========================================================================
# Login (93) / Rules (99)
# =========================================================================


def build_login(username: str, password: str, extra_number: str = "") -> str:
    """构建登录报文 (93)。

    结构: 93 + UID算法(1) + PWD算法(1) + CN|CO|CP
    """
    return encode_message(
        Code.LOGIN,
        (constants.UID_ALGORITHM, constants.PWD_ALGORITHM),
        (
            (Tag.LOGIN_USER, username),
            (Tag.LOGIN_PASSWORD, password),
            (Tag.LOCATION_CODE, extra_number),
        ),
    )


def build_handshake(protocol_version: str) -> str:
    """构建规则握手报文 (SC Status, 99)。

    结构: 99 + 状态(1) + 最大打印宽度(3) + 协议版本(4)
    """
    return encode_message(
        Code.SC_STATUS,
        (constants.SC_STATUS_OK, constants.MAX_PRINT_WIDTH, protocol_version),
        (),
    )


# =========================================================================
# Patron (63)
# =========================================================================


def build_patron_status(
    patron_barcode: str, *, timestamp: str, institution_id: str, password: str
) -> str:
    """构建读者信息请求 (63)。

    结构: 63 + 语言(3) + 时间戳(18) + 摘要(10) + AO|AA|AC|AD|BP|BQ
    """
    return encode_message(
        Code.PATRON_INFO,
        (constants.LANGUAGE_UNKNOWN, timestamp, constants.SUMMARY_BLANK),
        (
            (Tag.INSTITUTION_ID, institution_id),
            (Tag.PATRON_ID, patron_barcode),
            (Tag.TERMINAL_PASSWORD, password),
            (Tag.PATRON_PASSWORD, ""),
            (Tag.PICKUP_LOCATION, ""),
            (Tag.HOLD_QUEUE, ""),
        ),
    )


# =========================================================================
# Circulation (11 / 09 / 15 / 29)
# =========================================================================


def build_checkout(
    patron_barcode: str,
    item_barcode: str,
    *,
    timestamp: str,
    institution_id: str,
    password: str,
) -> str:
    """构建借书报文 (11)。

    结构: 11 + 允许续借(Y) + 无阻断(N) + 时间戳(18) + 无阻断到期日(18) + AO|AA|AB|AC
    """
    return encode_message(
        Code.CHECKOUT,
        ("Y", "N", timestamp, constants.BLANK_DATE),
        (
            (Tag.INSTITUTION_ID, institution_id),
            (Tag.PATRON_ID, patron_barcode),
            (Tag.ITEM_ID, item_barcode),
            (Tag.TERMINAL_PASSWORD, password),
        ),
    )


def build_checkin(
    item_barcode: str,
    *,
    timestamp: str,
    institution_id: str,
    password: str,
    location: str = constants.DEFAULT_LOCATION,
) -> str:
    """构建还书报文 (09)。

    结构: 09 + 无阻断(Y) + 交易时间(18) + 归还时间(18) + AP|AO|AB|AC
    """
    return encode_message(
        Code.CHECKIN,
        ("Y", timestamp, timestamp),
        (
            (Tag.CURRENT_LOCATION, location or constants.DEFAULT_LOCATION),
            (Tag.INSTITUTION_ID, institution_id),
            (Tag.ITEM_ID, item_barcode),
            (Tag.TERMINAL_PASSWORD, password),
        ),
    )


def hold_sign(action: str | int) -> str:
    """将预约动作转换为协议的 +/- 标志。

    接受 "add"/"remove" (不区分大小写)、"+"/"-" 或整数 1/-1。

    Raises:
        InvalidOperationParameter: 动作不在 {add, remove} 之内。
    """
    if isinstance(action, str):
        key = action.strip().lower()
        if key in ("add", constants.HOLD_ADD):
            return constants.HOLD_ADD
        if key in ("remove", constants.HOLD_REMOVE):
            return constants.HOLD_REMOVE
    elif isinstance(action, int) and not isinstance(action, bool):
        if action == 1:
            return constants.HOLD_ADD
        if action == -1:
            return constants.HOLD_REMOVE
    raise InvalidOperationParameter(
        f"无法识别的预约动作: {action!r} (请使用 'add' / 'remove')"
    )


def build_hold(
    patron_barcode: str,
    item_barcode: str,
    action: str | int,
    *,
    timestamp: str,
    institution_id: str,
    password: str,
) -> str:
    """构建预约报文 (15)。

    结构: 15 + 预约方式(+/-) + 时间戳(18) + AO|AA|AB|AC
    """
    return encode_message(
        Code.HOLD,
        (hold_sign(action), timestamp),
        (
            (Tag.INSTITUTION_ID, institution_id),
            (Tag.PATRON_ID, patron_barcode),
            (Tag.ITEM_ID, item_barcode),
            (Tag.TERMINAL_PASSWORD, password),
        ),
    )


def build_renew(
    patron_barcode: str,
    item_barcode: str,
    *,
    timestamp: str,
    institution_id: str,
    password: str,
) -> str:
    """构建单册续借报文 (29)。

    结构: 29 + 允许第三方(Y) + 无阻断(Y) + 交易时间(18) + 无阻断到期日(18) + AO|AA|AB|AC
    """
    return encode_message(
        Code.RENEW,
        ("Y", "Y", timestamp, timestamp),
        (
            (Tag.INSTITUTION_ID, institution_id),
            (Tag.PATRON_ID, patron_barcode),
            (Tag.ITEM_ID, item_barcode),
            (Tag.TERMINAL_PASSWORD, password),
        ),
    )


# =========================================================================
# Patron session (65 / 35)
# =========================================================================


def build_renew_all(
    patron_barcode: str, *, timestamp: str, institution_id: str, password: str
) -> str:
    """构建全部续借报文 (65)。"""
    return encode_message(
        Code.RENEW_ALL,
        (timestamp,),
        (
            (Tag.INSTITUTION_ID, institution_id),
            (Tag.PATRON_ID, patron_barcode),
            (Tag.TERMINAL_PASSWORD, password),
        ),
    )


def build_end_session(
    patron_barcode: str, *, timestamp: str, institution_id: str, password: str
) -> str:
    """构建结束读者会话报文 (35)。"""
    return encode_message(
        Code.END_SESSION,
        (timestamp,),
        (
            (Tag.INSTITUTION_ID, institution_id),
            (Tag.PATRON_ID, patron_barcode),
            (Tag.TERMINAL_PASSWORD, password),
        ),
    )
