"""
SMPP Client Utilities

Helper functions shared by the configuration, transport and command-line layers.
"""

import logging
from typing import Tuple

LOG_FORMAT = '%(asctime)s [%(levelname)-8s] [%(name)s] %(message)s'
LOG_DATE_FORMAT = '%H:%M:%S'


def split_host_port(addr: str) -> Tuple[str, str]:
    """
    Split a ``host:port`` or ``[host]:port`` address into host and port.

    The port is returned as text and is not validated. Bracketed hosts are
    required for IPv6 literals.

    Raises:
        ValueError: If the address has no port or an ambiguous colon
    """
    if addr.startswith('['):
        end = addr.find(']')
        if end < 0:
            raise ValueError(f'missing \']\' in address: {addr!r}')
        host, rest = addr[1:end], addr[end + 1 :]
        if not rest.startswith(':'):
            raise ValueError(f'missing port in address: {addr!r}')
        port = rest[1:]
        if ':' in port:
            raise ValueError(f'too many colons in address: {addr!r}')
        return host, port

    host, sep, port = addr.rpartition(':')
    if not sep:
        raise ValueError(f'missing port in address: {addr!r}')
    if ':' in host:
        raise ValueError(f'too many colons in address: {addr!r}')
    if '[' in host or ']' in host or '[' in port or ']' in port:
        raise ValueError(f'unexpected bracket in address: {addr!r}')
    return host, port


def mask_sensitive_data(text: str, field_name: str = '') -> str:
    """Mask sensitive data for logging."""
    if 'passw' in field_name.lower():
        return '*' * min(len(text), 8) if text else ''
    return text


def setup_logging(level: int = logging.INFO) -> None:
    """Set up basic logging configuration."""
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)


def describe_error(error: BaseException) -> str:
    """Error text for log and exception messages, never empty."""
    return str(error) or type(error).__name__


__all__ = [
    'split_host_port',
    'mask_sensitive_data',
    'setup_logging',
    'describe_error',
]
