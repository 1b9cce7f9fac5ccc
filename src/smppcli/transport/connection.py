"""
SMPP Connection Handling

This module provides async TCP (optionally TLS) connection handling for the SMPP
protocol, including PDU sending/receiving, request/response matching, automatic
answers to SMSC-initiated session PDUs and the enquire_link keep-alive.
"""

import asyncio
import logging
import ssl
import struct
from enum import Enum
from typing import Callable, Dict, Optional

from ..exceptions import (
    SMPPConnectionException,
    SMPPPDUException,
    SMPPTimeoutException,
)
from ..protocol import (
    PDU,
    PDU_HEADER_SIZE,
    CommandId,
    CommandStatus,
    EnquireLink,
    EnquireLinkResp,
    GenericNack,
    UnbindResp,
    decode_pdu,
    is_response_command,
)
from ..protocol.constants import MAX_PDU_SIZE, MAX_SEQUENCE_NUMBER
from ..utils import describe_error

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """SMPP Connection States"""

    CLOSED = 'CLOSED'
    OPEN = 'OPEN'
    BOUND_TX = 'BOUND_TX'


class SMPPConnection:
    """
    Async SMPP Connection Handler

    Manages the TCP/TLS stream, PDU encoding/decoding and connection state.
    Outgoing requests are matched to their responses by sequence number through
    per-request futures.
    """

    def __init__(
        self,
        host: str,
        port: int,
        ssl_context: Optional[ssl.SSLContext] = None,
        server_hostname: Optional[str] = None,
        read_timeout: float = 30.0,
        write_timeout: float = 30.0,
        enquire_link_interval: float = 10.0,
    ):
        """
        Initialize SMPP connection

        Args:
            host: Remote host address
            port: Remote port number
            ssl_context: TLS context; plain TCP when None
            server_hostname: Name checked against the server certificate;
                defaults to host when None
            read_timeout: Timeout for reading a PDU body and enquire_link responses
            write_timeout: Timeout for write operations in seconds
            enquire_link_interval: Interval for enquire_link keepalive in seconds
        """
        self.host = host
        self.port = port
        self.ssl_context = ssl_context
        self.server_hostname = server_hostname
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout
        self.enquire_link_interval = enquire_link_interval

        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._state = ConnectionState.CLOSED
        self._connected = False
        self._sequence_counter = 1
        self._pending_pdus: Dict[int, asyncio.Future] = {}
        self._receive_task: Optional[asyncio.Task] = None
        self._enquire_link_task: Optional[asyncio.Task] = None

        # Event handlers
        self.on_connection_lost: Optional[Callable[[Exception], None]] = None
        self.on_unbind: Optional[Callable[[], None]] = None

    @property
    def state(self) -> ConnectionState:
        """Get current connection state"""
        return self._state

    @property
    def is_connected(self) -> bool:
        """Check if connection is established"""
        return self._connected and self._writer is not None

    @property
    def is_bound(self) -> bool:
        """Check if connection is bound"""
        return self._state is ConnectionState.BOUND_TX

    def _set_state(self, new_state: ConnectionState) -> None:
        old_state = self._state
        if old_state != new_state:
            self._state = new_state
            logger.debug(
                f'Connection state changed: {old_state.value} -> {new_state.value}'
            )

    def _get_next_sequence(self) -> int:
        current = self._sequence_counter
        self._sequence_counter += 1
        if self._sequence_counter > MAX_SEQUENCE_NUMBER:
            self._sequence_counter = 1
        return current

    async def connect(self) -> None:
        """Establish the TCP stream, negotiating TLS when an SSL context is set"""
        if self.is_connected:
            raise SMPPConnectionException('Already connected')

        scheme = 'tls' if self.ssl_context else 'tcp'
        kwargs = {}
        if self.ssl_context is not None:
            kwargs['ssl'] = self.ssl_context
            if self.server_hostname:
                kwargs['server_hostname'] = self.server_hostname

        try:
            logger.debug(f'Opening {scheme} stream to {self.host}:{self.port}')
            self._reader, self._writer = await asyncio.open_connection(
                self.host, self.port, **kwargs
            )
        except (OSError, ssl.SSLError, ValueError) as e:
            raise SMPPConnectionException(
                f'Failed to connect to {self.host}:{self.port}: {describe_error(e)}',
                host=self.host,
                port=self.port,
                original_error=e,
            ) from e

        self._connected = True
        self._set_state(ConnectionState.OPEN)
        self._receive_task = asyncio.create_task(self._receive_loop())

        logger.debug(f'Stream open to {self.host}:{self.port} ({scheme})')

    async def disconnect(self) -> None:
        """Close the stream and fail every outstanding request"""
        if not self.is_connected:
            return

        logger.debug('Disconnecting...')

        writer, self._writer = self._writer, None
        self._reader = None
        self._connected = False
        self._set_state(ConnectionState.CLOSED)

        tasks_to_cancel = [
            task
            for task in (self._receive_task, self._enquire_link_task)
            if task is not None
            and not task.done()
            and task is not asyncio.current_task()
        ]
        self._receive_task = None
        self._enquire_link_task = None

        for task in tasks_to_cancel:
            task.cancel()
        if tasks_to_cancel:
            await asyncio.gather(*tasks_to_cancel, return_exceptions=True)

        if writer is not None:
            try:
                writer.close()
                await writer.wait_closed()
            except (OSError, ssl.SSLError) as e:
                logger.warning(f'Error closing writer: {e}')

        for future in self._pending_pdus.values():
            if not future.done():
                future.set_exception(SMPPConnectionException('Connection closed'))
        self._pending_pdus.clear()

        logger.debug('Disconnected')

    async def send_pdu(
        self, pdu: PDU, wait_response: bool = True, timeout: Optional[float] = None
    ) -> Optional[PDU]:
        """
        Send PDU and optionally wait for response

        Args:
            pdu: PDU to send
            wait_response: Whether to wait for response PDU
            timeout: Seconds to wait for the response, None waits indefinitely

        Returns:
            Response PDU if wait_response=True, None otherwise
        """
        if not self.is_connected:
            raise SMPPConnectionException('Not connected')

        if pdu.sequence_number == 0:
            pdu.sequence_number = self._get_next_sequence()

        response_future: Optional[asyncio.Future] = None
        if wait_response:
            response_future = asyncio.get_running_loop().create_future()
            self._pending_pdus[pdu.sequence_number] = response_future

        try:
            data = pdu.encode()
            logger.debug(
                f'Sending PDU: {pdu.__class__.__name__} '
                f'(seq={pdu.sequence_number}, len={len(data)})'
            )
            await asyncio.wait_for(self._send_data(data), timeout=self.write_timeout)

            if response_future is None:
                return None

            try:
                return await asyncio.wait_for(response_future, timeout=timeout)
            except asyncio.TimeoutError:
                raise SMPPTimeoutException(
                    f'Response timeout for PDU {pdu.__class__.__name__}',
                    timeout_duration=timeout,
                    operation=pdu.__class__.__name__,
                )
        except asyncio.TimeoutError:
            raise SMPPTimeoutException(
                f'Write timeout for PDU {pdu.__class__.__name__}',
                timeout_duration=self.write_timeout,
                operation=pdu.__class__.__name__,
            )
        finally:
            if wait_response:
                self._pending_pdus.pop(pdu.sequence_number, None)

    async def _send_data(self, data: bytes) -> None:
        if not self._writer:
            raise SMPPConnectionException('Writer not available')

        try:
            self._writer.write(data)
            await self._writer.drain()
        except (OSError, ssl.SSLError) as e:
            raise SMPPConnectionException(
                f'Failed to send PDU: {describe_error(e)}',
                host=self.host,
                port=self.port,
            ) from e

    async def _receive_loop(self) -> None:
        """Background task to receive and dispatch PDUs"""
        logger.debug('Starting receive loop')

        try:
            while self.is_connected:
                pdu = await self._receive_pdu()
                if pdu is not None:
                    await self._handle_received_pdu(pdu)
        except asyncio.CancelledError:
            pass
        except (SMPPConnectionException, SMPPPDUException, SMPPTimeoutException) as e:
            logger.error(f'Error in receive loop: {e}')
            await self._handle_connection_error(e)
        finally:
            logger.debug('Receive loop ended')

    async def _receive_pdu(self) -> Optional[PDU]:
        """
        Receive a single PDU

        Returns None when the PDU carried an unsupported command that was
        answered with generic_nack.
        """
        if not self._reader:
            raise SMPPConnectionException('Reader not available')

        try:
            # Idle periods between PDUs are unbounded; enquire_link covers liveness
            header_data = await self._reader.readexactly(PDU_HEADER_SIZE)
            length, command_id, _, sequence_number = struct.unpack(
                '>LLLL', header_data
            )

            if length < PDU_HEADER_SIZE or length > MAX_PDU_SIZE:
                raise SMPPPDUException(
                    f'Invalid PDU length: {length}', command_id=command_id
                )

            body_data = b''
            if length > PDU_HEADER_SIZE:
                body_data = await asyncio.wait_for(
                    self._reader.readexactly(length - PDU_HEADER_SIZE),
                    timeout=self.read_timeout,
                )
        except asyncio.IncompleteReadError as e:
            raise SMPPConnectionException('Connection closed by peer') from e
        except asyncio.TimeoutError:
            raise SMPPTimeoutException(
                'PDU receive timeout', timeout_duration=self.read_timeout
            )
        except (OSError, ssl.SSLError) as e:
            raise SMPPConnectionException(
                f'Failed to receive PDU: {describe_error(e)}'
            ) from e

        try:
            pdu = decode_pdu(header_data + body_data)
        except SMPPPDUException as e:
            if is_response_command(command_id):
                raise
            logger.warning(f'Rejecting undecodable PDU: {e}')
            await self.send_pdu(
                GenericNack(
                    command_status=CommandStatus.ESME_RINVCMDID,
                    sequence_number=sequence_number,
                ),
                wait_response=False,
            )
            return None

        logger.debug(
            f'Received PDU: {pdu.__class__.__name__} '
            f'(seq={pdu.sequence_number}, len={length})'
        )
        return pdu

    async def _handle_received_pdu(self, pdu: PDU) -> None:
        """Resolve pending requests and answer SMSC-initiated session PDUs"""
        pending = self._pending_pdus.get(pdu.sequence_number)
        if pdu.is_response() and pending is not None:
            if not pending.done():
                pending.set_result(pdu)
            return

        if pdu.command_id == CommandId.ENQUIRE_LINK:
            await self.send_pdu(
                EnquireLinkResp(sequence_number=pdu.sequence_number),
                wait_response=False,
            )
        elif pdu.command_id == CommandId.UNBIND:
            logger.info('Received unbind request from SMSC')
            await self.send_pdu(
                UnbindResp(sequence_number=pdu.sequence_number), wait_response=False
            )
            self._set_state(ConnectionState.OPEN)
            if self.on_unbind:
                try:
                    self.on_unbind()
                except Exception as e:
                    logger.exception(f'Error in unbind handler: {e}')
        else:
            logger.debug(f'Received unhandled PDU: {pdu.__class__.__name__}')

    async def _enquire_link_loop(self) -> None:
        """Background task to send periodic enquire_link PDUs"""
        logger.debug('Starting enquire_link loop')

        try:
            while self.is_connected:
                await asyncio.sleep(self.enquire_link_interval)

                if not self.is_connected:
                    break

                try:
                    logger.debug('Sending enquire_link')
                    await self.send_pdu(EnquireLink(), timeout=self.read_timeout)
                except (SMPPConnectionException, SMPPTimeoutException) as e:
                    logger.error(f'Enquire_link failed: {e}')
                    await self._handle_connection_error(e)
                    break
        except asyncio.CancelledError:
            pass
        finally:
            logger.debug('Enquire_link loop ended')

    async def _handle_connection_error(self, error: Exception) -> None:
        """Report a lost connection and tear it down"""
        if self.on_connection_lost:
            try:
                self.on_connection_lost(error)
            except Exception as e:
                logger.exception(f'Error in connection lost handler: {e}')

        await self.disconnect()

    def set_bound_state(self) -> None:
        """Mark the connection bound as transmitter and start enquire_link"""
        self._set_state(ConnectionState.BOUND_TX)
        if self._enquire_link_task is None or self._enquire_link_task.done():
            self._enquire_link_task = asyncio.create_task(self._enquire_link_loop())

    def __repr__(self) -> str:
        return (
            f'SMPPConnection(host={self.host}, port={self.port}, '
            f'state={self._state.value})'
        )
