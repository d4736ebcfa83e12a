# File: src/sip2_core/models.py
"""
SIP2 核心库 - 响应模型

Patron / Item 是对解码后字段集合的结构化视图，每次响应都重新构建，不做缓存。
同名标签重复出现时，以最后一次出现的值为准。
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from .exceptions import MalformedResponse
from .protocols import constants, fields
from .protocols.constants import Tag

logger = logging.getLogger(__name__)


def _to_decimal(tag: str, value: str) -> Decimal:
    try:
        number = Decimal(value.strip())
    except InvalidOperation:
        raise MalformedResponse(f"字段 {tag} 不是有效的数值: {value!r}") from None
    if not number.is_finite():
        raise MalformedResponse(f"字段 {tag} 不是有限数值: {value!r}")
    return number


def _to_int(tag: str, value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        raise MalformedResponse(f"字段 {tag} 不是有效的整数: {value!r}") from None


@dataclass
class Patron:
    """读者信息响应 (64) 的结构化视图。

    Attributes:
        authorized: 默认为 True。以下任一信号会将其清除:
            1. 14 位读者状态位中出现阻断字符 `Y`。
            2. BL (有效读者) 字段值以 `N` 开头。
    """

    name: str = ""
    type: str = ""
    fines: Decimal = Decimal(0)
    fine_limit: Decimal = Decimal(0)
    message: str = ""
    hold_item_limit: int = 0
    pin: str = ""
    address: str = ""
    phone: str = ""
    email: str = ""
    authorized: bool = True

    @property
    def can_transact(self) -> bool:
        """授权有效且罚款低于上限。"""
        return self.authorized and self.fines < self.fine_limit

    @classmethod
    def from_response(cls, raw: str) -> "Patron":
        """解析读者信息响应。

        Raises:
            MalformedResponse: 首段不足以容纳读者状态位，或数值字段无法解析。
        """
        token = fields.first_token(raw)
        status_end = constants.PATRON_STATUS_OFFSET + constants.PATRON_STATUS_LEN
        if len(token) < status_end:
            raise MalformedResponse(
                f"读者响应前缀过短: 需要 {status_end} 字符，实际 {len(token)} ({raw!r})"
            )

        patron = cls()
        status = token[constants.PATRON_STATUS_OFFSET : status_end]
        if constants.PATRON_BLOCK_CHAR in status.upper():
            patron.authorized = False

        values = fields.last_values(fields.decode(raw))

        patron.name = values.get(Tag.PERSONAL_NAME, "")
        patron.pin = values.get(Tag.PIN, "")
        patron.address = values.get(Tag.ADDRESS, "")
        patron.email = values.get(Tag.EMAIL, "")
        patron.phone = values.get(Tag.PHONE, "")
        patron.message = values.get(Tag.SCREEN_MESSAGE, "")
        patron.type = values.get(Tag.PATRON_TYPE, "")

        # 空值视为字段缺失，保留默认值
        if values.get(Tag.FINES, "").strip():
            patron.fines = _to_decimal(Tag.FINES, values[Tag.FINES])
        if values.get(Tag.FEE_LIMIT, "").strip():
            patron.fine_limit = _to_decimal(Tag.FEE_LIMIT, values[Tag.FEE_LIMIT])
        if values.get(Tag.HOLD_ITEMS_LIMIT, "").strip():
            patron.hold_item_limit = _to_int(
                Tag.HOLD_ITEMS_LIMIT, values[Tag.HOLD_ITEMS_LIMIT]
            )

        valid = values.get(Tag.VALID_PATRON, "")
        if valid[:1].upper().strip() == "N":
            patron.authorized = False

        logger.debug(
            f"读者解析完成: authorized={patron.authorized} "
            f"fines={patron.fines} limit={patron.fine_limit}"
        )
        return patron


@dataclass
class Item:
    """物品类响应 (12/10/16/30) 的结构化视图。

    四个布尔值分别读取首段偏移 2/3/4/5 处的字符。
    """

    due_date: str = ""
    title: str = ""
    barcode: str = ""
    patron_id: str = ""
    institution_id: str = ""
    message: str = ""
    successful_transaction: bool = False
    successful_renewal: bool = False
    magnetic_media: bool = False
    desensitize: bool = False

    @classmethod
    def from_response(cls, raw: str) -> "Item":
        flags = fields.decode_fixed_flags(
            raw,
            (
                (constants.ITEM_OK_OFFSET, "1"),
                (constants.ITEM_RENEWAL_OK_OFFSET, "Y"),
                (constants.ITEM_MAGNETIC_OFFSET, "Y"),
                (constants.ITEM_DESENSITIZE_OFFSET, "Y"),
            ),
        )
        values = fields.last_values(fields.decode(raw))
        return cls(
            due_date=values.get(Tag.DUE_DATE, ""),
            title=values.get(Tag.TITLE, ""),
            barcode=values.get(Tag.ITEM_ID, ""),
            patron_id=values.get(Tag.PATRON_ID, ""),
            institution_id=values.get(Tag.INSTITUTION_ID, ""),
            message=values.get(Tag.SCREEN_MESSAGE, ""),
            successful_transaction=flags[constants.ITEM_OK_OFFSET],
            successful_renewal=flags[constants.ITEM_RENEWAL_OK_OFFSET],
            magnetic_media=flags[constants.ITEM_MAGNETIC_OFFSET],
            desensitize=flags[constants.ITEM_DESENSITIZE_OFFSET],
        )
