# src/sip2_core/protocols/constants.py
"""
SIP2 协议常量表 (Constants)

仅定义协议的结构性常量（命令码、字段标签、状态码、偏移量）。
不包含任何默认策略值（如机构号、协议版本），这些应由 Config 注入。
"""

# =========================================================================
# 报文分隔 (Framing)
# =========================================================================
FIELD_DELIMITER = "|"
TERMINATOR = "\r"
TAG_LENGTH = 2
MAX_RESPONSE_SIZE = 1024 * 1024


# =========================================================================
# 命令码 (Command Codes)
# =========================================================================
class Code:
    """报文头部两位命令码定义 (SC -> ACS 请求 / ACS -> SC 响应)"""

    LOGIN = "93"
    LOGIN_RESP = "94"
    SC_STATUS = "99"  # 规则握手请求
    ACS_STATUS = "98"  # 规则握手响应
    PATRON_INFO = "63"
    PATRON_INFO_RESP = "64"
    CHECKOUT = "11"
    CHECKOUT_RESP = "12"
    CHECKIN = "09"
    CHECKIN_RESP = "10"
    HOLD = "15"
    HOLD_RESP = "16"
    RENEW = "29"
    RENEW_RESP = "30"
    RENEW_ALL = "65"
    RENEW_ALL_RESP = "66"
    END_SESSION = "35"
    END_SESSION_RESP = "36"
    REQUEST_RESEND = "96"


# =========================================================================
# 字段标签 (Field Tags)
# =========================================================================
class Tag:
    """变长字段的两字母标签"""

    LOGIN_USER = "CN"
    LOGIN_PASSWORD = "CO"
    LOCATION_CODE = "CP"
    PATRON_ID = "AA"
    ITEM_ID = "AB"
    TERMINAL_PASSWORD = "AC"
    PATRON_PASSWORD = "AD"
    PERSONAL_NAME = "AE"
    SCREEN_MESSAGE = "AF"
    DUE_DATE = "AH"
    TITLE = "AJ"
    INSTITUTION_ID = "AO"
    CURRENT_LOCATION = "AP"
    ADDRESS = "BD"
    EMAIL = "BE"
    PHONE = "BF"
    VALID_PATRON = "BL"
    PICKUP_LOCATION = "BP"
    HOLD_QUEUE = "BQ"
    FINES = "BV"
    HOLD_ITEMS_LIMIT = "BZ"
    FEE_LIMIT = "CC"
    PIN = "CQ"
    PATRON_TYPE = "PT"
    SEQUENCE = "AY"
    CHECKSUM = "AZ"


# =========================================================================
# 登录状态码 (Login Status)
# =========================================================================
LOGIN_OK = "941"
LOGIN_INVALID = "940"
CHECKSUM_MISSING = "96"
STATUS_PREFIX_LEN = 3

HANDSHAKE_FAILED_REPLY = "0"


# =========================================================================
# 定长字段 (Fixed Fields)
# =========================================================================
TIMESTAMP_LEN = 18
BLANK_DATE = " " * TIMESTAMP_LEN
LANGUAGE_UNKNOWN = "001"
SUMMARY_BLANK = " " * 10
UID_ALGORITHM = "0"
PWD_ALGORITHM = "0"
SC_STATUS_OK = "0"
MAX_PRINT_WIDTH = "030"
DEFAULT_LOCATION = "0"

HOLD_ADD = "+"
HOLD_REMOVE = "-"


# =========================================================================
# 响应偏移量 (Offsets, zero-based, 相对整条响应)
# =========================================================================
# 物品类响应 (12/10/16/30)
ITEM_OK_OFFSET = 2
ITEM_RENEWAL_OK_OFFSET = 3
ITEM_MAGNETIC_OFFSET = 4
ITEM_DESENSITIZE_OFFSET = 5

# 读者信息响应 (64): 14 位读者状态位紧随命令码
PATRON_STATUS_OFFSET = 2
PATRON_STATUS_LEN = 14
PATRON_BLOCK_CHAR = "Y"

# 全部续借 (66) / 结束会话 (36)
RENEW_ALL_OK_OFFSET = 2
END_SESSION_OK_OFFSET = 2
