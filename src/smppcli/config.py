"""
SMPP Client Configuration

This module resolves the effective client configuration from environment
variables and command-line flag values. Credentials come from ``SMPP_USER`` and
``SMPP_PASSWD`` unless the matching flag carries a non-empty value; the address
is taken from its flag or the default only.
"""

import os
from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional

from .utils import mask_sensitive_data

DEFAULT_ADDR = 'localhost:6200'
ENV_USER = 'SMPP_USER'
ENV_PASSWD = 'SMPP_PASSWD'


@dataclass(frozen=True)
class ClientConfiguration:
    """Effective configuration of one client invocation"""

    addr: str = DEFAULT_ADDR
    user: str = ''
    passwd: str = ''
    tls: bool = False
    precaire: bool = False

    @classmethod
    def from_sources(
        cls,
        env: Optional[Mapping[str, str]] = None,
        addr: Optional[str] = None,
        user: Optional[str] = None,
        passwd: Optional[str] = None,
        tls: bool = False,
        precaire: bool = False,
    ) -> 'ClientConfiguration':
        """
        Merge environment and flag values.

        Args:
            env: Environment mapping, defaults to ``os.environ``
            addr: ``--addr`` value, None for the default address
            user: ``--user`` value; overrides SMPP_USER when non-empty
            passwd: ``--passwd`` value; overrides SMPP_PASSWD when non-empty
            tls: ``--tls`` flag
            precaire: ``--precaire`` flag

        Returns:
            The resolved configuration. Missing credentials resolve to ''.
        """
        if env is None:
            env = os.environ

        resolved_user = env.get(ENV_USER, '')
        resolved_passwd = env.get(ENV_PASSWD, '')
        if user:
            resolved_user = user
        if passwd:
            resolved_passwd = passwd

        return cls(
            addr=DEFAULT_ADDR if addr is None else addr,
            user=resolved_user,
            passwd=resolved_passwd,
            tls=bool(tls),
            precaire=bool(precaire),
        )

    def to_dict(self, mask_secrets: bool = True) -> Dict[str, Any]:
        """Convert config to dictionary, masking the password by default."""
        data = asdict(self)
        if mask_secrets:
            data['passwd'] = mask_sensitive_data(self.passwd, 'passwd')
        return data


def resolve_configuration(
    env: Optional[Mapping[str, str]] = None,
    addr: Optional[str] = None,
    user: Optional[str] = None,
    passwd: Optional[str] = None,
    tls: bool = False,
    precaire: bool = False,
) -> ClientConfiguration:
    """Resolve the client configuration from environment and flag values."""
    return ClientConfiguration.from_sources(
        env=env, addr=addr, user=user, passwd=passwd, tls=tls, precaire=precaire
    )
