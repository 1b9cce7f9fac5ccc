"""
Command-line entry point.

Global flags configure the session; the ``run-client`` subcommand binds a
transmitter and blocks until the process is stopped.
"""

import argparse
import asyncio
import logging
import signal
from typing import Mapping, Optional, Sequence

from . import __author__, __description__, __title__, __version__
from .bootstrap import bootstrap
from .config import DEFAULT_ADDR, ClientConfiguration, resolve_configuration
from .exceptions import SMPPBindException
from .keepalive import keep_alive
from .security import TransportSecurityOptions, build_security_options
from .utils import setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_BIND_FAILED = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=__title__, description=__description__)
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__} ({__author__})',
    )
    parser.add_argument(
        '--addr', default=DEFAULT_ADDR, help='Set SMPP server host:port'
    )
    parser.add_argument('--user', default='', help='Set SMPP username')
    parser.add_argument('--passwd', default='', help='Set SMPP password')
    parser.add_argument(
        '--tls', action='store_true', help='Use client TLS connection'
    )
    parser.add_argument(
        '--precaire', action='store_true', help='Accept invalid TLS certificate'
    )
    parser.add_argument(
        '--bind-timeout',
        type=float,
        default=None,
        metavar='SECONDS',
        help='Give up binding after this many seconds (default: wait forever)',
    )
    parser.add_argument(
        '--log-level',
        default='INFO',
        type=str.upper,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level (default: INFO)',
    )

    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')
    run_parser = subparsers.add_parser(
        'run-client', aliases=['runClient'], help='start SMPP Client'
    )
    run_parser.set_defaults(handler=run_client_command)
    return parser


def _install_signal_handlers(loop: asyncio.AbstractEventLoop) -> None:
    """Cancel the running session on SIGTERM so cleanup runs."""
    main_task = asyncio.current_task()
    if main_task is None:
        return
    try:
        loop.add_signal_handler(signal.SIGTERM, main_task.cancel)
        logger.debug('Signal handler registered for SIGTERM')
    except (NotImplementedError, RuntimeError, ValueError) as e:
        logger.debug(f'Could not register signal handler for SIGTERM: {e}')


def _remove_signal_handlers(loop: asyncio.AbstractEventLoop) -> None:
    try:
        loop.remove_signal_handler(signal.SIGTERM)
    except (NotImplementedError, RuntimeError, ValueError) as e:
        logger.debug(f'Could not remove signal handler for SIGTERM: {e}')


async def run_client(
    config: ClientConfiguration,
    security: Optional[TransportSecurityOptions] = None,
    bind_timeout: Optional[float] = None,
) -> None:
    """Bind a transmitter, then idle until cancelled. The session is always closed."""
    loop = asyncio.get_running_loop()
    _install_signal_handlers(loop)
    try:
        transmitter = await bootstrap(config, security, bind_timeout=bind_timeout)
        async with transmitter:
            await keep_alive()
    finally:
        _remove_signal_handlers(loop)


def run_client_command(
    args: argparse.Namespace, env: Optional[Mapping[str, str]] = None
) -> int:
    config = resolve_configuration(
        env=env,
        addr=args.addr,
        user=args.user,
        passwd=args.passwd,
        tls=args.tls,
        precaire=args.precaire,
    )
    logger.debug(f'Resolved configuration: {config.to_dict()}')
    security = build_security_options(config)

    try:
        asyncio.run(run_client(config, security, bind_timeout=args.bind_timeout))
    except SMPPBindException:
        return EXIT_BIND_FAILED
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info('Interrupted, session closed')
        return EXIT_INTERRUPTED
    return EXIT_OK


def main(
    argv: Optional[Sequence[str]] = None, env: Optional[Mapping[str, str]] = None
) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    handler = getattr(args, 'handler', None)
    if handler is None:
        parser.print_help()
        return EXIT_USAGE

    setup_logging(getattr(logging, args.log_level))
    return handler(args, env=env)
