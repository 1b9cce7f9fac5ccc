"""
Unit tests for the command-line entry point.

The transmitter factory is patched so no sockets are opened.
"""

import asyncio
import os
import signal
import sys
import logging
from unittest.mock import patch

import pytest

from smppcli import __version__
from smppcli.cli import (
    EXIT_BIND_FAILED,
    EXIT_INTERRUPTED,
    EXIT_USAGE,
    build_arg_parser,
    main,
    run_client,
)
from smppcli.config import resolve_configuration


class TestArgParser:
    """Tests for build_arg_parser."""

    def test_defaults(self):
        args = build_arg_parser().parse_args(['run-client'])

        assert args.addr == 'localhost:6200'
        assert args.user == ''
        assert args.passwd == ''
        assert args.tls is False
        assert args.precaire is False
        assert args.bind_timeout is None
        assert args.log_level == 'INFO'

    def test_global_flags(self):
        args = build_arg_parser().parse_args(
            [
                '--addr',
                'smsc.example.com:2775',
                '--user',
                'alice',
                '--passwd',
                'secret',
                '--tls',
                '--precaire',
                '--bind-timeout',
                '5',
                '--log-level',
                'debug',
                'run-client',
            ]
        )

        assert args.addr == 'smsc.example.com:2775'
        assert args.user == 'alice'
        assert args.passwd == 'secret'
        assert args.tls is True
        assert args.precaire is True
        assert args.bind_timeout == 5.0
        assert args.log_level == 'DEBUG'

    def test_legacy_subcommand_alias(self):
        args = build_arg_parser().parse_args(['runClient'])
        assert args.handler is not None

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            build_arg_parser().parse_args(['--version'])

        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out


class TestMain:
    """Tests for main."""

    def test_no_subcommand_prints_help(self, capsys):
        assert main([], env={}) == EXIT_USAGE
        assert 'run-client' in capsys.readouterr().out

    def test_bind_failure_exits_nonzero_without_heartbeat(
        self, rejected_transmitter, caplog
    ):
        """A rejected bind is fatal: reason logged, no keep-alive iteration."""
        caplog.set_level(logging.INFO)

        with patch(
            'smppcli.bootstrap.create_transmitter', return_value=rejected_transmitter
        ), patch('smppcli.cli.keep_alive') as keep_alive_mock:
            code = main(['--user', 'alice', 'run-client'], env={})

        assert code == EXIT_BIND_FAILED
        assert 'Connection failed: authentication failed' in caplog.text
        keep_alive_mock.assert_not_called()
        assert 'heartbeat' not in caplog.text

    def test_resolves_configuration_from_env_and_flags(self, connected_transmitter):
        """Flags and environment are merged before the transmitter is built."""
        with patch(
            'smppcli.bootstrap.create_transmitter', return_value=connected_transmitter
        ) as factory, patch(
            'smppcli.cli.keep_alive', side_effect=KeyboardInterrupt
        ):
            code = main(
                ['--addr', 'smsc.example.com:2775', '--tls', '--precaire', 'run-client'],
                env={'SMPP_USER': 'bob', 'SMPP_PASSWD': 'pw'},
            )

        assert code == EXIT_INTERRUPTED
        config, security = factory.call_args.args
        assert config.user == 'bob'
        assert config.passwd == 'pw'
        assert security.server_name == 'smsc.example.com'
        assert security.skip_verification is True
        assert connected_transmitter.closed is True


class TestRunClient:
    """Tests for run_client."""

    @pytest.mark.asyncio
    async def test_heartbeat_after_bind_and_cleanup(self, connected_transmitter, caplog):
        """Confirmation is logged, a heartbeat follows within 200 ms, and the
        session is closed when the loop is stopped."""
        caplog.set_level(logging.INFO)
        config = resolve_configuration(env={}, user='alice', passwd='secret')

        with patch(
            'smppcli.bootstrap.create_transmitter', return_value=connected_transmitter
        ), patch('smppcli.cli._install_signal_handlers'):
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(run_client(config), timeout=0.2)

        assert 'Connected to localhost:6200' in caplog.text
        assert 'heartbeat' in caplog.text
        assert connected_transmitter.closed is True

    @pytest.mark.asyncio
    @pytest.mark.skipif(sys.platform == 'win32', reason='POSIX signals only')
    async def test_sigterm_closes_session(self, connected_transmitter):
        config = resolve_configuration(env={}, user='alice', passwd='secret')

        with patch(
            'smppcli.bootstrap.create_transmitter', return_value=connected_transmitter
        ):
            task = asyncio.create_task(run_client(config))
            await asyncio.sleep(0.05)
            assert signal.getsignal(signal.SIGTERM) not in (signal.SIG_DFL, None)

            os.kill(os.getpid(), signal.SIGTERM)
            with pytest.raises(asyncio.CancelledError):
                await asyncio.wait_for(task, timeout=1.0)

        assert connected_transmitter.closed is True
        assert signal.getsignal(signal.SIGTERM) == signal.SIG_DFL
