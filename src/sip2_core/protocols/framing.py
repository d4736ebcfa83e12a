"""
SIP2 校验和封帧策略 (Checksum Framing)

两种可互换的策略，在连接构造时根据配置选定一次，之后整个连接生命周期内不变:
- NoChecksumFraming: 报文原样透传。
- ChecksumFraming: 追加 `|AY<序列号>AZ<校验和>`，并递增会话序列号。
"""

import abc
import logging
from typing import TYPE_CHECKING

from .. import utils
from ..exceptions import ChecksumMismatch, InvalidOperationParameter
from . import constants

if TYPE_CHECKING:
    from ..state import SipSession

logger = logging.getLogger(__name__)

_CHECKSUM_LEN = 4


class BaseFraming(abc.ABC):
    """封帧策略抽象基类。"""

    checksum_enabled: bool = False

    def __init__(self, session: "SipSession", encoding: str = "ascii") -> None:
        """初始化封帧策略。

        Args:
            session: 共享会话对象，序列号保存在其中。
            encoding: 线路编码，校验和按编码后的字节计算。
        """
        self.session = session
        self.encoding = encoding

    @abc.abstractmethod
    def frame(self, message: str) -> str:
        """[Abstract] 对一条未封帧的报文进行封帧。"""
        raise NotImplementedError


class NoChecksumFraming(BaseFraming):
    """不带校验和的封帧：原样返回。"""

    def frame(self, message: str) -> str:
        return message


class ChecksumFraming(BaseFraming):
    """带序列号与校验和的封帧。

    序列号以连接为作用域，从 0 开始严格递增，只在 close 时归零，
    同一会话内不会复用。
    """

    checksum_enabled = True

    def frame(self, message: str) -> str:
        seq = self.session.sequence_number
        text = (
            f"{message}{constants.FIELD_DELIMITER}"
            f"{constants.Tag.SEQUENCE}{seq}{constants.Tag.CHECKSUM}"
        )
        try:
            text += utils.sip_checksum(text, self.encoding)
        except UnicodeEncodeError as e:
            raise InvalidOperationParameter(
                f"报文包含 {self.encoding} 无法编码的字符: {e.object[e.start : e.end]!r}"
            ) from e
        self.session.sequence_number = seq + 1
        return text


def create_framing(
    checksum_enabled: bool, session: "SipSession", encoding: str = "ascii"
) -> BaseFraming:
    """根据配置选择封帧策略。"""
    if checksum_enabled:
        return ChecksumFraming(session, encoding)
    return NoChecksumFraming(session, encoding)


def verify_checksum(response: str, encoding: str = "ascii") -> None:
    """校验入站报文末尾的 AZ 校验和。

    并非所有旧版服务器都会回送校验和，因此该步骤仅在
    `Sip2Config.verify_checksum` 启用时由连接调用。

    Raises:
        ChecksumMismatch: 缺少 AZ 字段或校验和不一致。
    """
    idx = response.rfind(constants.Tag.CHECKSUM)
    if idx < 0 or len(response) - idx != len(constants.Tag.CHECKSUM) + _CHECKSUM_LEN:
        raise ChecksumMismatch(f"响应缺少校验和字段: {response!r}")

    split_at = idx + len(constants.Tag.CHECKSUM)
    received = response[split_at:].upper()
    try:
        expected = utils.sip_checksum(response[:split_at], encoding)
    except UnicodeEncodeError as e:
        # 解码时被替换的字节无法还原
        raise ChecksumMismatch(f"响应包含无法还原的字节: {response!r}") from e
    if received != expected:
        raise ChecksumMismatch(f"校验和不匹配: 期望 {expected}，收到 {received}")
    logger.debug(f"入站校验和通过: {received}")
