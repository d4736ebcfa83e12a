# File: src/sip2_core/protocols/fields.py
"""
SIP2 字段编解码器 (Field Codec)

报文由两部分组成:
- 首段: 命令码 + 定长标志位 (按位置解读，不带标签)。
- 其后: 以分隔符 `|` 连接的 "两字母标签 + 变长值" 字段。

本模块是无状态的 (Stateless)。字段值中不得包含分隔符，
协议本身没有转义机制，这是调用方的前置条件，编解码器不做校验。
"""

import logging
from collections.abc import Iterable, Sequence

from ..exceptions import MalformedResponse
from . import constants

logger = logging.getLogger(__name__)

Field = tuple[str, str]


def decode(raw: str) -> list[Field]:
    """将报文拆分为有序的 (标签, 值) 列表。

    标签取每段前两个字符并统一转为大写，剩余部分为值。
    长度不足两个字符的段无法携带标签，直接跳过。

    Args:
        raw: 原始报文文本 (不含结束符)。

    Returns:
        list[Field]: 保持原始顺序的字段列表，重复标签会全部保留。
    """
    fields: list[Field] = []
    for element in raw.split(constants.FIELD_DELIMITER):
        if len(element) < constants.TAG_LENGTH:
            continue
        fields.append(
            (element[: constants.TAG_LENGTH].upper(), element[constants.TAG_LENGTH :])
        )
    return fields


def last_values(fields: Iterable[Field]) -> dict[str, str]:
    """按顺序遍历字段，同名标签后出现者覆盖先出现者。"""
    values: dict[str, str] = {}
    for tag, value in fields:
        values[tag] = value
    return values


def first_token(raw: str) -> str:
    """返回第一个分隔符之前的定长前缀。"""
    return raw.split(constants.FIELD_DELIMITER, 1)[0]


def decode_fixed_flags(
    raw: str, positions: Sequence[tuple[int, str]]
) -> dict[int, bool]:
    """读取首段中指定偏移处的单字符标志位。

    Args:
        raw: 原始报文文本。
        positions: (偏移量, 代表 True 的字符) 列表，偏移量从 0 开始。
            比较区分大小写。

    Returns:
        dict[int, bool]: 偏移量 -> 标志位。

    Raises:
        MalformedResponse: 首段长度不足以读取某个偏移。
    """
    token = first_token(raw)
    flags: dict[int, bool] = {}
    for index, true_char in positions:
        if index >= len(token):
            raise MalformedResponse(
                f"响应前缀过短: 需要读取偏移 {index}，实际长度 {len(token)} ({raw!r})"
            )
        flags[index] = token[index] == true_char
    return flags


def encode_field(tag: str, value: str) -> str:
    return f"{tag}{value}"


def encode_message(
    command_code: str, fixed_flags: Iterable[str], fields: Iterable[Field]
) -> str:
    """拼装一条出站报文。

    结构: 命令码 + 定长部分 (按位置顺序) + 以分隔符连接的标签字段。
    不追加尾部分隔符；启用校验和时由封帧策略负责追加 `|AY..AZ..`。

    Args:
        command_code: 两位命令码，如 "11"。
        fixed_flags: 定长部分，如 ("Y", "N", 时间戳, 空白日期)。
        fields: (标签, 值) 序列，空值字段同样会被编码 (如 "AD")。

    Returns:
        str: 未封帧的报文。
    """
    head = command_code + "".join(fixed_flags)
    body = constants.FIELD_DELIMITER.join(
        encode_field(tag, value) for tag, value in fields
    )
    return head + body
