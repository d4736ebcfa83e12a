"""
SIP2 报文交换器 (Transport Framer)

驱动一次阻塞的 请求/响应 交换:
写入 报文 + CR -> 循环读取直到 CR -> 去除 NUL 填充 -> 返回响应文本。
"""

import logging
from typing import Protocol

from ..exceptions import InvalidOperationParameter, MalformedResponse
from . import constants

logger = logging.getLogger(__name__)


class ByteTransport(Protocol):
    """交换器所需的最小传输能力 (NetworkClient 或测试替身)。"""

    def send(self, data: bytes) -> None: ...

    def receive(self) -> bytes: ...


class MessageExchanger:
    """在字节传输之上完成一次完整的报文交换。"""

    def __init__(
        self,
        transport: ByteTransport,
        encoding: str = "ascii",
        debug: bool = False,
        max_size: int = constants.MAX_RESPONSE_SIZE,
    ) -> None:
        self.transport = transport
        self.encoding = encoding
        self.debug = debug
        self.max_size = max_size

    def exchange(self, message: str) -> str:
        """发送一条报文并阻塞等待完整响应。

        响应可能被拆分在多次读取中，这里循环累积直到出现结束符，
        绝不返回不完整的数据。结束符及其之后的内容全部丢弃。

        Args:
            message: 已封帧的报文 (不含结束符)。

        Returns:
            str: 去除 NUL 与结束符后的响应文本。

        Raises:
            TransportUnavailable: 发送或接收失败 (原样向上传播)。
            MalformedResponse: 响应超过最大长度。
            InvalidOperationParameter: 报文包含无法编码的字符。
        """
        try:
            payload = (message + constants.TERMINATOR).encode(self.encoding)
        except UnicodeEncodeError as e:
            raise InvalidOperationParameter(
                f"报文包含 {self.encoding} 无法编码的字符: {e.object[e.start : e.end]!r}"
            ) from e

        self._echo(">>>", message)
        self.transport.send(payload)

        terminator = constants.TERMINATOR.encode(self.encoding)
        buffer = bytearray()
        while True:
            chunk = self.transport.receive()
            buffer.extend(chunk.replace(b"\x00", b""))
            end = buffer.find(terminator)
            if end >= 0:
                del buffer[end:]
                break
            if len(buffer) > self.max_size:
                raise MalformedResponse(f"响应过大 (>{self.max_size} 字节)")

        # 上一条响应若以 CRLF 结尾，残留的 LF 会出现在本条开头
        response = buffer.decode(self.encoding, errors="replace").lstrip("\n")
        self._echo("<<<", response)
        return response

    def _echo(self, direction: str, text: str) -> None:
        if self.debug:
            logger.info(f"{direction} {text}")
        else:
            logger.debug(f"{direction} {text}")
