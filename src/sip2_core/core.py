"""
SIP2 连接状态机 (Connection Engine)

职责：
1. 资源组装：Session + NetworkClient + Framing + Exchanger。
2. 生命周期：Open(Login -> Handshake) -> Authorize -> Circulation -> Close。
3. 顺序约束：未连接时拒绝一切流通操作；借书/续借/预约还需先授权读者。
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import replace
from typing import Any

from . import utils
from .config import Sip2Config
from .exceptions import (
    ChecksumRequired,
    ConfigError,
    ConnectionFailed,
    HandshakeFailed,
    InvalidCredentials,
    MalformedResponse,
    NotConnectedOrAuthorized,
    ResendRequested,
    Sip2Error,
    TransportUnavailable,
)
from .models import Item, Patron
from .network import NetworkClient
from .protocols import commands, constants, fields
from .protocols.exchange import MessageExchanger
from .protocols.framing import BaseFraming, create_framing, verify_checksum
from .state import ConnectionState, SipSession

logger = logging.getLogger(__name__)

# 状态回调函数类型别名
StatusCallback = Callable[[ConnectionState, str], Any]
TransportFactory = Callable[[Sip2Config], NetworkClient]


class SipConnection:
    """SIP2 客户端连接 (同步阻塞)。

    同一实例不能被多个线程并发使用：序列号与传输缓冲区都是无锁的可变状态。
    需要并发时请为每个线程创建独立连接，各自完成登录握手。
    """

    def __init__(
        self,
        config: Sip2Config | None = None,
        status_callback: StatusCallback | None = None,
        transport_factory: TransportFactory = NetworkClient,
        clock: Callable[[], str] = utils.sip_timestamp,
    ) -> None:
        """初始化连接对象 (不发起网络连接)。

        Args:
            config: 服务器参数。也可以推迟到 open(config) 时提供。
            status_callback: 初始状态回调，等价于 add_listener。
            transport_factory: 根据配置创建字节传输，测试中可注入替身。
            clock: 生成 18 字符时间戳的函数。
        """
        self.config: Sip2Config | None = None
        self._listeners: list[StatusCallback] = []
        if status_callback:
            self.add_listener(status_callback)

        self._session = SipSession()
        self._transport_factory = transport_factory
        self._clock = clock
        self.net_client: NetworkClient | None = None
        self.framing: BaseFraming
        self._exchanger: MessageExchanger | None = None

        if config is not None:
            self._configure(config)

    # =========================================================================
    # 状态
    # =========================================================================

    @property
    def state(self) -> SipSession:
        """获取当前会话状态的只读副本。"""
        return replace(self._session)

    @property
    def connection_state(self) -> ConnectionState:
        return self._session.state

    def add_listener(self, callback: StatusCallback) -> None:
        """注册状态变更监听器。"""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: StatusCallback) -> None:
        """移除状态变更监听器。"""
        if callback in self._listeners:
            self._listeners.remove(callback)

    # =========================================================================
    # 生命周期
    # =========================================================================

    def open(self, config: Sip2Config | None = None) -> None:
        """建立连接并完成登录与规则握手。

        Args:
            config: 可选的新服务器参数，覆盖构造时提供的参数。

        Raises:
            ConfigError: 未提供任何服务器参数。
            TransportUnavailable: TCP 连接或收发失败。
            ChecksumRequired: 服务器要求校验和封帧。
            InvalidCredentials: 服务器拒绝登录 (940)。
            HandshakeFailed: 规则握手应答为空或为 "0"。
            ConnectionFailed: 登录应答中没有可识别的状态码。
        """
        if self._session.is_connected:
            logger.warning("当前已连接，跳过登录")
            return

        if config is not None:
            self._configure(config)
        if self.config is None:
            raise ConfigError("未提供 SIP2 服务器参数")

        cfg = self.config
        logger.info(f"正在连接 {cfg.server_address}:{cfg.server_port} ...")

        self._session.reset()
        self.net_client = self._transport_factory(cfg)
        self._exchanger = MessageExchanger(
            self.net_client, encoding=cfg.encoding, debug=cfg.debug
        )

        try:
            self.net_client.connect()
            self._login()
            self._handshake()
        except Sip2Error as e:
            self._release_transport()
            self._session.last_error = str(e)
            self._update_status(ConnectionState.DISCONNECTED, f"连接失败: {e}")
            raise

        self._update_status(ConnectionState.CONNECTED, "登录与握手完成")

    def test_connection(self, config: Sip2Config | None = None) -> bool:
        """测试服务器参数是否可用。

        Returns:
            bool: 达到 CONNECTED 返回 True；任何 Sip2Error 返回 False
            (错误详情保存在 state.last_error)。
        """
        try:
            self.open(config)
        except Sip2Error as e:
            logger.warning(f"连接测试失败: {e}")
            return False
        return self._session.is_connected

    def close(self) -> None:
        """释放传输并重置序列号。

        Raises:
            NotConnectedOrAuthorized: 当前没有打开的传输。
        """
        if self.net_client is None or not self.net_client.is_open:
            raise NotConnectedOrAuthorized("无法关闭连接：连接尚未建立")

        self._release_transport()
        self._session.reset()
        self._update_status(ConnectionState.CLOSED, "连接已关闭")

    def __enter__(self) -> "SipConnection":
        if not self._session.is_connected:
            self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.net_client is not None and self.net_client.is_open:
            self.close()

    # =========================================================================
    # 读者
    # =========================================================================

    def patron_information(self, barcode: str) -> Patron:
        """查询读者信息 (63/64)，不改变授权状态。"""
        self._require_connected("查询读者信息")
        cfg = self._cfg
        message = commands.build_patron_status(
            barcode,
            timestamp=self._clock(),
            institution_id=cfg.institution_id,
            password=cfg.password,
        )
        return Patron.from_response(self._request(message))

    def authorize_barcode(self, barcode: str) -> bool:
        """授权读者条码。

        当且仅当读者有效 (authorized) 且 罚款 < 罚款上限 时进入 AUTHORIZED 状态。
        授权失败时原因写入 state.last_failure。

        Returns:
            bool: 授权结果。
        """
        self._require_connected("授权读者")
        if self._session.is_authorized:
            self._update_status(ConnectionState.CONNECTED, "重新授权读者")
        self._session.authorized_patron = ""

        patron = self.patron_information(barcode)

        if patron.can_transact:
            self._session.last_failure = ""
            self._session.authorized_patron = barcode
            self._update_status(ConnectionState.AUTHORIZED, f"读者 {barcode} 授权成功")
            return True

        if not patron.authorized:
            reason = patron.message or "读者证被阻断或无效"
        else:
            reason = f"罚款 {patron.fines} 已达到上限 {patron.fine_limit}"
        self._session.last_failure = reason
        logger.info(f"读者 {barcode} 授权失败: {reason}")
        return False

    def end_patron_session(self, patron_barcode: str) -> bool:
        """结束读者会话 (35/36)。成功后清除授权。"""
        self._require_connected("结束读者会话")
        cfg = self._cfg
        message = commands.build_end_session(
            patron_barcode,
            timestamp=self._clock(),
            institution_id=cfg.institution_id,
            password=cfg.password,
        )
        response = self._request(message)
        ended = fields.decode_fixed_flags(
            response, ((constants.END_SESSION_OK_OFFSET, "Y"),)
        )[constants.END_SESSION_OK_OFFSET]

        if ended and self._session.is_authorized:
            self._session.authorized_patron = ""
            self._update_status(ConnectionState.CONNECTED, "读者会话已结束")
        return ended

    # =========================================================================
    # 流通
    # =========================================================================

    def checkout(self, patron_barcode: str, item_barcode: str) -> Item:
        """借出单册 (11/12)。需要先授权同一读者。"""
        self._require_authorized("借书", patron_barcode)
        cfg = self._cfg
        message = commands.build_checkout(
            patron_barcode,
            item_barcode,
            timestamp=self._clock(),
            institution_id=cfg.institution_id,
            password=cfg.password,
        )
        return Item.from_response(self._request(message))

    def checkout_items(
        self, patron_barcode: str, item_barcodes: Iterable[str]
    ) -> list[Item]:
        return [self.checkout(patron_barcode, item) for item in item_barcodes]

    def checkin(self, item_barcode: str) -> Item:
        """归还单册 (09/10)。只需已连接。"""
        self._require_connected("还书")
        cfg = self._cfg
        message = commands.build_checkin(
            item_barcode,
            timestamp=self._clock(),
            institution_id=cfg.institution_id,
            password=cfg.password,
            location=cfg.extra_number,
        )
        return Item.from_response(self._request(message))

    def checkin_items(self, item_barcodes: Iterable[str]) -> list[Item]:
        return [self.checkin(item) for item in item_barcodes]

    def hold(self, patron_barcode: str, item_barcode: str, action: str | int) -> Item:
        """添加或取消预约 (15/16)。

        Args:
            action: "add" / "remove" (也接受 1 / -1)。

        Raises:
            InvalidOperationParameter: 动作无法识别 (在任何 I/O 之前)。
        """
        self._require_authorized("预约", patron_barcode)
        cfg = self._cfg
        message = commands.build_hold(
            patron_barcode,
            item_barcode,
            action,
            timestamp=self._clock(),
            institution_id=cfg.institution_id,
            password=cfg.password,
        )
        return Item.from_response(self._request(message))

    def renew(self, patron_barcode: str, item_barcode: str) -> Item:
        """续借单册 (29/30)。需要先授权同一读者。"""
        self._require_authorized("续借", patron_barcode)
        cfg = self._cfg
        message = commands.build_renew(
            patron_barcode,
            item_barcode,
            timestamp=self._clock(),
            institution_id=cfg.institution_id,
            password=cfg.password,
        )
        return Item.from_response(self._request(message))

    def renew_items(
        self, patron_barcode: str, item_barcodes: Iterable[str]
    ) -> list[Item]:
        return [self.renew(patron_barcode, item) for item in item_barcodes]

    def renew_all(self, patron_barcode: str) -> bool:
        """续借读者名下全部在借物品 (65/66)。"""
        self._require_connected("全部续借")
        cfg = self._cfg
        message = commands.build_renew_all(
            patron_barcode,
            timestamp=self._clock(),
            institution_id=cfg.institution_id,
            password=cfg.password,
        )
        response = self._request(message)
        return fields.decode_fixed_flags(
            response, ((constants.RENEW_ALL_OK_OFFSET, "1"),)
        )[constants.RENEW_ALL_OK_OFFSET]

    # =========================================================================
    # 内部实现
    # =========================================================================

    @property
    def _cfg(self) -> Sip2Config:
        if self.config is None:
            raise ConfigError("未提供 SIP2 服务器参数")
        return self.config

    def _configure(self, config: Sip2Config) -> None:
        """绑定配置并选定封帧策略。连接期间不可更换。"""
        self.config = config
        self.framing = create_framing(
            config.checksum_enabled, self._session, config.encoding
        )
        logger.debug(f"已加载配置: {config!r}")

    def _login(self) -> None:
        cfg = self._cfg
        message = commands.build_login(cfg.username, cfg.password, cfg.extra_number)
        response = self._request(message, allow_resend=True)
        status = response[: constants.STATUS_PREFIX_LEN]

        if status.startswith(constants.CHECKSUM_MISSING):
            raise ChecksumRequired(
                "服务器要求校验和封帧，请启用 checksum", constants.CHECKSUM_MISSING
            )
        if constants.LOGIN_INVALID in status:
            raise InvalidCredentials("登录被拒绝", constants.LOGIN_INVALID)
        if constants.LOGIN_OK not in status:
            raise ConnectionFailed(
                f"无法连接到服务器，登录应答无法识别: {response!r}"
            )

    def _handshake(self) -> None:
        response = self._request(commands.build_handshake(self._cfg.protocol_version))
        if response.strip() in ("", constants.HANDSHAKE_FAILED_REPLY):
            raise HandshakeFailed("规则握手失败：服务器应答为空")
        logger.debug(f"规则握手完成: {response[:2]}")

    def _request(self, message: str, allow_resend: bool = False) -> str:
        """封帧 -> 交换 -> (可选) 入站校验。"""
        if self._exchanger is None:
            raise NotConnectedOrAuthorized("无法发送报文：SIP 连接尚未建立")
        framed = self.framing.frame(message)
        try:
            response = self._exchanger.exchange(framed)
        except (TransportUnavailable, MalformedResponse) as e:
            # 流已失步，迟到的应答会被下一条命令误读
            logger.error(f"报文交换失败: {e}")
            if self._session.is_connected:
                self._drop_connection(f"传输中断: {e}")
            self._session.last_error = str(e)
            raise
        except Sip2Error as e:
            self._session.last_error = str(e)
            logger.error(f"报文交换失败: {e}")
            raise

        if response.startswith(constants.Code.REQUEST_RESEND):
            if allow_resend:
                return response
            raise ResendRequested(f"服务器请求重发: {message[:2]}")
        if self._cfg.verify_checksum:
            verify_checksum(response, self._cfg.encoding)
        return response

    def _require_connected(self, operation: str) -> None:
        if not self._session.is_connected:
            raise NotConnectedOrAuthorized(f"无法{operation}：SIP 连接尚未建立")

    def _require_authorized(self, operation: str, patron_barcode: str) -> None:
        self._require_connected(operation)
        if not self._session.is_authorized:
            raise NotConnectedOrAuthorized(f"无法{operation}：读者尚未授权")
        if patron_barcode != self._session.authorized_patron:
            raise NotConnectedOrAuthorized(
                f"无法{operation}：读者 {patron_barcode} 不是当前授权读者 "
                f"{self._session.authorized_patron}"
            )

    def _drop_connection(self, msg: str) -> None:
        """释放失步的传输并回到 DISCONNECTED，调用方可重新 open。"""
        self._release_transport()
        self._session.reset()
        self._update_status(ConnectionState.DISCONNECTED, msg)

    def _release_transport(self) -> None:
        if self.net_client is not None:
            self.net_client.close()

    def _update_status(self, status: ConnectionState, msg: str) -> None:
        """更新内部状态并同步触发所有回调。"""
        self._session.state = status
        logger.info(f"[{status.name}] {msg}")

        for callback in self._listeners:
            try:
                callback(status, msg)
            except Exception as e:
                logger.error(f"回调执行异常: {e}")
