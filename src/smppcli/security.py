"""
Transport Security Options

Derives the optional TLS settings of a session from the resolved client
configuration. Building the options performs no network activity.
"""

import logging
import ssl
from dataclasses import dataclass
from typing import Optional

from .config import ClientConfiguration
from .utils import split_host_port

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportSecurityOptions:
    """
    TLS settings for the SMSC connection.

    Attributes:
        server_name: Expected name in the server certificate; empty when it
            could not be derived from the address
        skip_verification: Accept any certificate (INSECURE, testing only)
    """

    server_name: str = ''
    skip_verification: bool = False

    def create_ssl_context(self) -> ssl.SSLContext:
        """Build a client SSL context matching these options."""
        context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
        if self.skip_verification:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context


def build_security_options(
    config: ClientConfiguration,
) -> Optional[TransportSecurityOptions]:
    """
    Derive TLS options from the configuration.

    Returns:
        None when TLS is not requested, regardless of ``precaire``; otherwise
        options whose server name is the host part of ``config.addr``
    """
    if not config.tls:
        return None

    try:
        host, _ = split_host_port(config.addr)
    except ValueError:
        host = ''

    if config.precaire:
        logger.warning('Certificate validation disabled, accepting any certificate')

    return TransportSecurityOptions(
        server_name=host, skip_verification=config.precaire
    )
