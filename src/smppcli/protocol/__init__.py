"""
SMPP Protocol Module

Constants, field codec and the session PDUs used by the transmitter client.
"""

from .constants import (
    DEFAULT_INTERFACE_VERSION,
    PDU_HEADER_SIZE,
    CommandId,
    CommandStatus,
    InterfaceVersion,
    get_error_message,
    is_response_command,
)
from .pdu import (
    PDU,
    BindTransmitter,
    BindTransmitterResp,
    EnquireLink,
    EnquireLinkResp,
    GenericNack,
    Unbind,
    UnbindResp,
    decode_pdu,
)

__all__ = [
    'DEFAULT_INTERFACE_VERSION',
    'PDU_HEADER_SIZE',
    'CommandId',
    'CommandStatus',
    'InterfaceVersion',
    'get_error_message',
    'is_response_command',
    'PDU',
    'BindTransmitter',
    'BindTransmitterResp',
    'EnquireLink',
    'EnquireLinkResp',
    'GenericNack',
    'Unbind',
    'UnbindResp',
    'decode_pdu',
]
