"""
SMPP Connection Bootstrap

This module turns a resolved configuration into a bound transmitter session.
The bind handshake runs in the background and reports through a one-shot
future; the bootstrap awaits that future exactly once and classifies the
settled value into a ``BindOutcome``. Every non-connected outcome is fatal for
the invocation: it is logged and raised as ``SMPPBindException`` without retry.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .config import ClientConfiguration
from .exceptions import SMPPBindException
from .security import TransportSecurityOptions
from .transport import BindResult, Transmitter
from .utils import describe_error

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BindOutcome:
    """Result of one bootstrap attempt: connected, or failed with a reason."""

    connected: bool
    reason: str = ''

    @classmethod
    def success(cls) -> 'BindOutcome':
        return cls(connected=True)

    @classmethod
    def failure(cls, reason: str) -> 'BindOutcome':
        return cls(connected=False, reason=reason)

    @classmethod
    def from_result(cls, result: BindResult) -> 'BindOutcome':
        """Classify a settled bind future value."""
        if result.is_connected:
            return cls.success()
        if result.error is not None:
            return cls.failure(describe_error(result.error))
        return cls.failure(result.status.value)


def create_transmitter(
    config: ClientConfiguration,
    security: Optional[TransportSecurityOptions] = None,
    bind_timeout: Optional[float] = None,
) -> Transmitter:
    """Build the transmitter session descriptor for a configuration."""
    ssl_context = None
    server_hostname = None
    if security is not None:
        ssl_context = security.create_ssl_context()
        server_hostname = security.server_name or None

    return Transmitter(
        addr=config.addr,
        user=config.user,
        passwd=config.passwd,
        ssl_context=ssl_context,
        server_hostname=server_hostname,
        bind_timeout=bind_timeout,
    )


async def connect(transmitter: Transmitter) -> BindOutcome:
    """Start the bind and wait once for its future to settle."""
    bind_future = transmitter.bind()
    result = await bind_future
    return BindOutcome.from_result(result)


async def bootstrap(
    config: ClientConfiguration,
    security: Optional[TransportSecurityOptions] = None,
    bind_timeout: Optional[float] = None,
) -> Transmitter:
    """
    Bind a transmitter session for the configuration.

    Args:
        config: Resolved client configuration
        security: TLS options, None for plain TCP
        bind_timeout: Optional deadline for the handshake, None waits indefinitely

    Returns:
        The bound transmitter; the caller owns it and must close it

    Raises:
        SMPPBindException: If the handshake did not end in a bound session
    """
    logger.info('Connecting...')
    transmitter = create_transmitter(config, security, bind_timeout=bind_timeout)

    try:
        outcome = await connect(transmitter)
    except BaseException:
        await transmitter.close()
        raise

    if not outcome.connected:
        await transmitter.close()
        logger.error(f'Connection failed: {outcome.reason}')
        raise SMPPBindException(
            f'Connection failed: {outcome.reason}',
            addr=config.addr,
            system_id=config.user,
        )

    logger.info(f'Connected to {transmitter.addr}')
    return transmitter
