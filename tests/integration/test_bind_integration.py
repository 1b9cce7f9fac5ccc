"""
Integration tests for the bind bootstrap against an in-process SMSC

A minimal SMSC built on asyncio.start_server answers bind_transmitter, unbind
and enquire_link so the client runs over real sockets end to end.
"""

import asyncio
import contextlib
import logging
import ssl
import struct
from unittest.mock import patch

import pytest
import trustme

from smppcli.bootstrap import bootstrap
from smppcli.cli import run_client
from smppcli.config import resolve_configuration
from smppcli.exceptions import SMPPBindException
from smppcli.security import build_security_options
from smppcli.protocol import (
    BindTransmitter,
    BindTransmitterResp,
    CommandStatus,
    EnquireLink,
    EnquireLinkResp,
    Unbind,
    UnbindResp,
    decode_pdu,
)


class StubSMSC:
    """SMSC that accepts one password and records every PDU it receives"""

    def __init__(self, password: str = 'secret', ssl_context=None):
        self.password = password
        self.ssl_context = ssl_context
        self.received = []
        self.unbound = asyncio.Event()
        self.port = None
        self._server = None

    async def start(self):
        self._server = await asyncio.start_server(
            self._handle, '127.0.0.1', 0, ssl=self.ssl_context
        )
        self.port = self._server.sockets[0].getsockname()[1]

    async def stop(self):
        self._server.close()
        await self._server.wait_closed()

    @property
    def addr(self) -> str:
        return f'127.0.0.1:{self.port}'

    async def _handle(self, reader, writer):
        try:
            while True:
                header = await reader.readexactly(16)
                length = struct.unpack('>L', header[:4])[0]
                body = await reader.readexactly(length - 16)
                pdu = decode_pdu(header + body)
                self.received.append(pdu)

                if isinstance(pdu, BindTransmitter):
                    ok = pdu.password == self.password
                    response = BindTransmitterResp(
                        system_id='STUB' if ok else '',
                        command_status=(
                            CommandStatus.ESME_ROK
                            if ok
                            else CommandStatus.ESME_RINVPASWD
                        ),
                        sequence_number=pdu.sequence_number,
                    )
                elif isinstance(pdu, Unbind):
                    response = UnbindResp(sequence_number=pdu.sequence_number)
                elif isinstance(pdu, EnquireLink):
                    response = EnquireLinkResp(sequence_number=pdu.sequence_number)
                else:
                    continue

                writer.write(response.encode())
                await writer.drain()
                if isinstance(pdu, Unbind):
                    self.unbound.set()
                    break
        except (asyncio.IncompleteReadError, ConnectionError):
            pass
        finally:
            writer.close()


@contextlib.asynccontextmanager
async def running_smsc(password: str = 'secret', ssl_context=None):
    smsc = StubSMSC(password, ssl_context)
    await smsc.start()
    try:
        yield smsc
    finally:
        await smsc.stop()


@pytest.mark.integration
class TestBindIntegration:
    """Bootstrap against a live socket"""

    @pytest.mark.asyncio
    async def test_bind_then_close_unbinds(self, caplog):
        caplog.set_level(logging.INFO)

        async with running_smsc() as smsc:
            config = resolve_configuration(
                env={}, addr=smsc.addr, user='alice', passwd='secret'
            )

            transmitter = await bootstrap(config)
            assert transmitter.is_bound

            await transmitter.close()
            await asyncio.wait_for(smsc.unbound.wait(), timeout=1.0)

        bind_pdu, unbind_pdu = smsc.received
        assert isinstance(bind_pdu, BindTransmitter)
        assert bind_pdu.system_id == 'alice'
        assert bind_pdu.interface_version == 0x34
        assert isinstance(unbind_pdu, Unbind)
        assert 'Connecting...' in caplog.text
        assert f'Connected to {smsc.addr}' in caplog.text

    @pytest.mark.asyncio
    async def test_rejected_bind(self, caplog):
        async with running_smsc(password='secret') as smsc:
            config = resolve_configuration(
                env={}, addr=smsc.addr, user='alice', passwd='wrong'
            )

            with pytest.raises(SMPPBindException, match='Invalid Password'):
                await bootstrap(config)

        assert 'Connection failed: Bind failed: Invalid Password' in caplog.text
        assert [type(pdu) for pdu in smsc.received] == [BindTransmitter]

    @pytest.mark.asyncio
    async def test_connection_refused(self):
        async with running_smsc() as smsc:
            addr = smsc.addr

        config = resolve_configuration(env={}, addr=addr)

        with pytest.raises(SMPPBindException, match='Connection failed'):
            await bootstrap(config)

    @pytest.mark.asyncio
    async def test_run_client_heartbeats_and_unbinds_on_stop(self, caplog):
        caplog.set_level(logging.INFO)

        async with running_smsc() as smsc:
            config = resolve_configuration(
                env={'SMPP_USER': 'alice', 'SMPP_PASSWD': 'secret'}, addr=smsc.addr
            )

            with patch('smppcli.cli._install_signal_handlers'):
                with pytest.raises(asyncio.TimeoutError):
                    await asyncio.wait_for(run_client(config), timeout=0.5)

            await asyncio.wait_for(smsc.unbound.wait(), timeout=1.0)

        assert 'heartbeat' in caplog.text
        assert isinstance(smsc.received[-1], Unbind)


@pytest.fixture
def server_tls_context():
    """Server context whose certificate comes from a CA the client does not trust"""
    ca = trustme.CA()
    cert = ca.issue_cert('127.0.0.1', 'localhost')
    context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    cert.configure_cert(context)
    return context


@pytest.mark.integration
class TestTLSBindIntegration:
    """Bootstrap over a real TLS handshake"""

    @pytest.mark.asyncio
    async def test_precaire_accepts_untrusted_certificate(self, server_tls_context):
        async with running_smsc(ssl_context=server_tls_context) as smsc:
            config = resolve_configuration(
                env={},
                addr=smsc.addr,
                user='alice',
                passwd='secret',
                tls=True,
                precaire=True,
            )

            transmitter = await bootstrap(config, build_security_options(config))
            assert transmitter.is_bound

            await transmitter.close()
            await asyncio.wait_for(smsc.unbound.wait(), timeout=1.0)

        assert [type(pdu) for pdu in smsc.received] == [BindTransmitter, Unbind]

    @pytest.mark.asyncio
    async def test_verification_failure_is_fatal(self, server_tls_context, caplog):
        async with running_smsc(ssl_context=server_tls_context) as smsc:
            config = resolve_configuration(
                env={}, addr=smsc.addr, user='alice', passwd='secret', tls=True
            )

            with pytest.raises(SMPPBindException, match='certificate verify failed'):
                await bootstrap(config, build_security_options(config))

        assert smsc.received == []
        assert 'Connection failed: Failed to connect' in caplog.text

    @pytest.mark.asyncio
    async def test_handshake_reset_reports_a_reason(self):
        """A peer that drops the socket mid-handshake still yields a cause."""

        async def hang_up(reader, writer):
            writer.transport.abort()

        server = await asyncio.start_server(hang_up, '127.0.0.1', 0)
        port = server.sockets[0].getsockname()[1]
        try:
            config = resolve_configuration(
                env={}, addr=f'127.0.0.1:{port}', tls=True, precaire=True
            )
            with pytest.raises(SMPPBindException) as exc_info:
                await bootstrap(config, build_security_options(config))
        finally:
            server.close()
            await server.wait_closed()

        summary = exc_info.value.message.split(' | ')[0]
        assert summary.startswith('Connection failed: ')
        assert not summary.rstrip().endswith(':')
