"""
smppcli - SMPP transmitter client for the command line

Binds one SMPP v3.4 session in the transmitter role to an SMSC and keeps it
open until the process is stopped.

Quick Start:
    $ SMPP_USER=client SMPP_PASSWD=secret smpp-client --addr smsc:2775 run-client

Library use:
    from smppcli import bootstrap, build_security_options, resolve_configuration

    config = resolve_configuration(addr='smsc:2775', user='client', passwd='secret')
    transmitter = await bootstrap(config, build_security_options(config))
    try:
        ...
    finally:
        await transmitter.close()
"""

__title__ = 'smpp_client'
__version__ = '0.1.0'
__author__ = 'smpp-client-cli authors'
__description__ = 'SMPP client for SMSC'

from .bootstrap import BindOutcome, bootstrap, connect, create_transmitter
from .config import ClientConfiguration, resolve_configuration
from .exceptions import (
    SMPPBindException,
    SMPPConnectionException,
    SMPPException,
    SMPPInvalidStateException,
    SMPPPDUException,
    SMPPTimeoutException,
)
from .keepalive import keep_alive
from .security import TransportSecurityOptions, build_security_options
from .transport import BindResult, ConnStatus, Transmitter

__all__ = [
    # Bootstrap
    'BindOutcome',
    'bootstrap',
    'connect',
    'create_transmitter',
    'keep_alive',
    # Configuration
    'ClientConfiguration',
    'resolve_configuration',
    'TransportSecurityOptions',
    'build_security_options',
    # Transport
    'Transmitter',
    'BindResult',
    'ConnStatus',
    # Exceptions
    'SMPPException',
    'SMPPBindException',
    'SMPPConnectionException',
    'SMPPInvalidStateException',
    'SMPPPDUException',
    'SMPPTimeoutException',
]

import logging  # noqa: E402

logging.getLogger(__name__).addHandler(logging.NullHandler())
