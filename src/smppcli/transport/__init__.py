"""
SMPP Transport Module

Async TCP/TLS connection handling and the transmitter session descriptor.
"""

from .connection import ConnectionState, SMPPConnection
from .transmitter import BindResult, ConnStatus, Transmitter

__all__ = [
    'SMPPConnection',
    'ConnectionState',
    'Transmitter',
    'BindResult',
    'ConnStatus',
]
