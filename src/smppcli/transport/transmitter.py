"""
SMPP Transmitter Session

This module provides the transmitter session descriptor used by the client. A
``Transmitter`` holds the address, credentials and optional TLS settings of one
session. ``bind()`` starts the connect and bind_transmitter handshake in a
background task and immediately returns a one-shot future that is settled
exactly once with a ``BindResult``.
"""

import asyncio
import logging
import ssl
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..exceptions import (
    SMPPBindException,
    SMPPConnectionException,
    SMPPException,
    SMPPInvalidStateException,
    SMPPPDUException,
)
from ..protocol import BindTransmitter, CommandStatus, Unbind, get_error_message
from ..utils import split_host_port
from .connection import SMPPConnection

logger = logging.getLogger(__name__)


class ConnStatus(Enum):
    """Status of a transmitter session"""

    CONNECTED = 'Connected'
    DISCONNECTED = 'Disconnected'
    CONNECTION_FAILED = 'Connection failed'
    BIND_FAILED = 'Bind failed'


@dataclass(frozen=True)
class BindResult:
    """Settled value of a bind future: the session status and, on failure, why."""

    status: ConnStatus
    error: Optional[Exception] = None

    @property
    def is_connected(self) -> bool:
        return self.status is ConnStatus.CONNECTED


class Transmitter:
    """
    SMPP session bound in the transmitter role.

    Example:
        tx = Transmitter('localhost:2775', user='client', passwd='secret')
        result = await tx.bind()
        try:
            ...
        finally:
            await tx.close()
    """

    def __init__(
        self,
        addr: str,
        user: str = '',
        passwd: str = '',
        ssl_context: Optional[ssl.SSLContext] = None,
        server_hostname: Optional[str] = None,
        system_type: str = '',
        bind_timeout: Optional[float] = None,
        response_timeout: float = 30.0,
        enquire_link_interval: float = 10.0,
    ):
        """
        Initialize the session descriptor. No network activity happens here.

        Args:
            addr: SMSC address as host:port
            user: system_id sent in bind_transmitter
            passwd: password sent in bind_transmitter
            ssl_context: TLS context; plain TCP when None
            server_hostname: Expected server certificate name
            system_type: system_type sent in bind_transmitter
            bind_timeout: Seconds to wait for connect and bind_transmitter_resp,
                None waits indefinitely
            response_timeout: Timeout for unbind and enquire_link responses
            enquire_link_interval: Seconds between enquire_link requests once bound
        """
        self.addr = addr
        self.user = user
        self.passwd = passwd
        self.ssl_context = ssl_context
        self.server_hostname = server_hostname
        self.system_type = system_type
        self.bind_timeout = bind_timeout
        self.response_timeout = response_timeout
        self.enquire_link_interval = enquire_link_interval

        self._connection: Optional[SMPPConnection] = None
        self._bind_future: Optional[asyncio.Future] = None
        self._bind_task: Optional[asyncio.Task] = None
        self._status = ConnStatus.DISCONNECTED

    @property
    def status(self) -> ConnStatus:
        """Current session status"""
        if self._status is ConnStatus.CONNECTED and not self.is_bound:
            return ConnStatus.DISCONNECTED
        return self._status

    @property
    def is_bound(self) -> bool:
        return self._connection is not None and self._connection.is_bound

    def bind(self) -> 'asyncio.Future[BindResult]':
        """
        Start the bind handshake without blocking.

        Returns:
            Future settled exactly once with the BindResult of the attempt

        Raises:
            SMPPInvalidStateException: If bind was already started on this session
        """
        if self._bind_future is not None:
            raise SMPPInvalidStateException(
                'Bind already initiated', current_state=self._status.value
            )

        loop = asyncio.get_running_loop()
        future: 'asyncio.Future[BindResult]' = loop.create_future()
        self._bind_future = future
        self._bind_task = loop.create_task(self._run_bind(future))
        return future

    async def _run_bind(self, future: 'asyncio.Future[BindResult]') -> None:
        """Connect, send bind_transmitter and settle the future with the outcome"""
        result = BindResult(ConnStatus.DISCONNECTED)
        try:
            result = await asyncio.wait_for(self._bind(), timeout=self.bind_timeout)
        except asyncio.TimeoutError:
            result = BindResult(
                ConnStatus.CONNECTION_FAILED,
                SMPPBindException(
                    f'Bind timeout after {self.bind_timeout} seconds', addr=self.addr
                ),
            )
            await self._drop_connection()
        except Exception as e:
            logger.exception(f'Unexpected error while binding to {self.addr}')
            result = BindResult(ConnStatus.CONNECTION_FAILED, e)
            await self._drop_connection()
        finally:
            self._status = result.status
            if not future.done():
                future.set_result(result)

    async def _bind(self) -> BindResult:
        try:
            host, port_text = split_host_port(self.addr)
            port = int(port_text)
        except ValueError as e:
            return BindResult(
                ConnStatus.CONNECTION_FAILED,
                SMPPConnectionException(
                    f'Invalid address {self.addr!r}: {e}', original_error=e
                ),
            )

        bind_pdu = BindTransmitter(
            system_id=self.user,
            password=self.passwd,
            system_type=self.system_type,
        )
        try:
            # credentials must fit the C-octet string limits before a socket opens
            bind_pdu.encode()
        except SMPPPDUException as e:
            return BindResult(
                ConnStatus.BIND_FAILED,
                SMPPBindException(
                    f'Bind failed: invalid credentials: {e.message}',
                    addr=self.addr,
                    system_id=self.user,
                    original_error=e,
                ),
            )

        self._connection = SMPPConnection(
            host=host,
            port=port,
            ssl_context=self.ssl_context,
            server_hostname=self.server_hostname,
            read_timeout=self.response_timeout,
            write_timeout=self.response_timeout,
            enquire_link_interval=self.enquire_link_interval,
        )
        self._connection.on_connection_lost = self._handle_connection_lost
        self._connection.on_unbind = self._handle_peer_unbind

        try:
            await self._connection.connect()
        except SMPPException as e:
            return BindResult(ConnStatus.CONNECTION_FAILED, e)

        try:
            # bind_timeout is enforced around the whole handshake by _run_bind
            response = await self._connection.send_pdu(bind_pdu, timeout=None)
        except SMPPException as e:
            await self._drop_connection()
            return BindResult(ConnStatus.CONNECTION_FAILED, e)

        if response is None or response.command_status != CommandStatus.ESME_ROK:
            status = response.command_status if response else None
            reason = get_error_message(status) if status is not None else 'no response'
            await self._drop_connection()
            return BindResult(
                ConnStatus.BIND_FAILED,
                SMPPBindException(
                    f'Bind failed: {reason}',
                    addr=self.addr,
                    system_id=self.user,
                    command_status=status,
                ),
            )

        self._connection.set_bound_state()
        logger.debug(f'Bound as transmitter to {self.addr} (system_id={self.user!r})')
        return BindResult(ConnStatus.CONNECTED)

    async def _drop_connection(self) -> None:
        if self._connection is not None:
            await self._connection.disconnect()

    def _handle_connection_lost(self, error: Exception) -> None:
        logger.warning(f'Connection to {self.addr} lost: {error}')
        self._status = ConnStatus.DISCONNECTED

    def _handle_peer_unbind(self) -> None:
        logger.warning(f'SMSC at {self.addr} unbound the session')
        self._status = ConnStatus.DISCONNECTED

    async def close(self) -> None:
        """Unbind if bound and close the connection. Safe to call more than once."""
        if self._bind_task is not None and not self._bind_task.done():
            self._bind_task.cancel()
            await asyncio.gather(self._bind_task, return_exceptions=True)

        connection = self._connection
        if connection is None:
            return

        if connection.is_bound:
            logger.debug('Unbinding from SMSC')
            try:
                response = await connection.send_pdu(
                    Unbind(), timeout=self.response_timeout
                )
                if (
                    response is not None
                    and response.command_status != CommandStatus.ESME_ROK
                ):
                    logger.warning(
                        f'Unbind response error: '
                        f'{get_error_message(response.command_status)}'
                    )
            except SMPPException as e:
                logger.warning(f'Error during unbind: {e}')

        await connection.disconnect()
        self._status = ConnStatus.DISCONNECTED

    async def __aenter__(self) -> 'Transmitter':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return (
            f'Transmitter(addr={self.addr}, user={self.user}, '
            f'tls={self.ssl_context is not None}, status={self.status.value})'
        )
