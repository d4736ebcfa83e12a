# src/sip2_core/network.py
"""
SIP2 核心库 - 网络模块 (Network)

封装 TCP Socket 的创建、发送和接收逻辑。
该模块屏蔽了底层 Socket 的复杂性，向上层提供纯粹的 bytes 收发接口。
整个客户端是同步阻塞的：一个线程、一个连接、同一时刻一次交换。
"""

import logging
import socket

from .config import Sip2Config
from .exceptions import NetworkError

logger = logging.getLogger(__name__)

RECV_BUFFER_SIZE = 4096


class NetworkClient:
    """封装阻塞式 TCP 操作的客户端。"""

    def __init__(self, config: Sip2Config):
        self.config = config
        self.sock: socket.socket | None = None

    @property
    def is_open(self) -> bool:
        return self.sock is not None

    def connect(self) -> None:
        """建立 TCP 连接，并为后续收发设置超时。"""
        target = (self.config.server_address, self.config.server_port)
        try:
            self.sock = socket.create_connection(target, timeout=self.config.timeout)
            self.sock.settimeout(self.config.timeout)
            logger.debug(f"TCP 连接已建立: {target}")
        except OSError as e:
            self.close()
            raise NetworkError(f"连接服务器失败 {target}: {e}") from e

    def send(self, data: bytes) -> None:
        """发送全部数据。"""
        if self.sock is None:
            raise NetworkError("Socket 未连接")
        try:
            self.sock.sendall(data)
        except socket.timeout:
            raise NetworkError(f"发送超时 ({self.config.timeout}s)") from None
        except OSError as e:
            raise NetworkError(f"发送失败: {e}") from e

    def receive(self, bufsize: int = RECV_BUFFER_SIZE) -> bytes:
        """接收一个数据块。

        Raises:
            NetworkError: 超时、连接错误，或对端已关闭连接 (收到空数据)。
        """
        if self.sock is None:
            raise NetworkError("Socket 未连接")
        try:
            chunk = self.sock.recv(bufsize)
        except socket.timeout:
            raise NetworkError(f"接收超时 ({self.config.timeout}s)") from None
        except OSError as e:
            raise NetworkError(f"接收错误: {e}") from e

        if not chunk:
            raise NetworkError("连接已被服务器关闭")
        return chunk

    def close(self) -> None:
        """关闭 Socket"""
        if self.sock:
            try:
                self.sock.close()
            except OSError as e:
                logger.warning(f"关闭 Socket 时出错: {e}")
            self.sock = None
            logger.debug("TCP 连接已关闭")

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
