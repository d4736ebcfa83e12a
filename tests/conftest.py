# tests/conftest.py
import sys
from pathlib import Path

import pytest

# 确保 src 目录在 sys.path 中
src_path = Path(__file__).resolve().parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from sip2_core.config import Sip2Config
from sip2_core.core import SipConnection
from sip2_core.exceptions import TransportUnavailable

TIMESTAMP = "20240131    120000"

LOGIN_OK = "941"
LOGIN_BAD = "940"
ACS_STATUS = "98YYYYNN60000320240131    1200002.00AOMAIN|BXYYYYYYYYYYYYYYYY"


def patron_response(status: str = " " * 14, tail: str = "") -> str:
    """构造读者信息响应 (64)。

    结构: 64 + 状态位(14) + 语言(3) + 时间戳(18) + 6 组计数(24) + 字段
    """
    return (
        "64"
        + status
        + "001"
        + TIMESTAMP
        + "0000" * 6
        + "|AOMAIN|AAP001|AEJane Doe"
        + tail
    )


def item_response(flags: str = "1NNY", tail: str = "") -> str:
    """构造物品类响应 (12 借书响应)。"""
    return (
        "12"
        + flags
        + TIMESTAMP
        + "|AOMAIN|AAP001|AB30000012345|AJThe Title|AH20240228    235900"
        + tail
    )


class FakeTransport:
    """替代 NetworkClient 的内存传输，按队列回放响应。"""

    def __init__(self, config=None):
        self.config = config
        self.chunks: list[bytes] = []
        self.sent: list[bytes] = []
        self.is_open = False
        self.connect_error: Exception | None = None
        self.connect_count = 0

    def queue(self, *responses: str) -> None:
        for resp in responses:
            self.chunks.append((resp + "\r").encode("ascii"))

    def connect(self) -> None:
        self.connect_count += 1
        if self.connect_error:
            raise self.connect_error
        self.is_open = True

    def send(self, data: bytes) -> None:
        self.sent.append(data)

    def receive(self) -> bytes:
        if not self.chunks:
            raise TransportUnavailable("没有更多模拟数据")
        return self.chunks.pop(0)

    def close(self) -> None:
        self.is_open = False

    @property
    def messages(self) -> list[str]:
        """已发送报文 (去掉结束符)。"""
        return [m.decode("ascii").rstrip("\r") for m in self.sent]


@pytest.fixture
def valid_config() -> Sip2Config:
    """[Fixture] 返回一个不带校验和的最小配置。"""
    return Sip2Config(
        username="sipuser",
        password="sippass",
        server_address="10.10.10.1",
        server_port=6001,
        extra_number="LOC1",
        institution_id="MAIN",
        timeout=2.0,
    )


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def make_connection(fake_transport):
    """[Fixture] 以注入的 FakeTransport 与固定时钟创建连接。"""

    def _make(config: Sip2Config, **kwargs) -> SipConnection:
        return SipConnection(
            config,
            transport_factory=lambda cfg: fake_transport,
            clock=lambda: TIMESTAMP,
            **kwargs,
        )

    return _make


@pytest.fixture
def connected(make_connection, valid_config, fake_transport) -> SipConnection:
    """[Fixture] 已完成登录握手的连接。"""
    conn = make_connection(valid_config)
    fake_transport.queue(LOGIN_OK, ACS_STATUS)
    conn.open()
    fake_transport.sent.clear()
    return conn
