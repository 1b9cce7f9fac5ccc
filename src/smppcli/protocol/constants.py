"""
SMPP v3.4 Protocol Constants

Command IDs, command status codes and sizes needed by a transmitter session.
"""

from enum import IntEnum
from typing import Dict


class CommandId(IntEnum):
    """SMPP Command IDs used by the transmitter session"""

    BIND_TRANSMITTER = 0x00000002
    BIND_TRANSMITTER_RESP = 0x80000002
    UNBIND = 0x00000006
    UNBIND_RESP = 0x80000006
    ENQUIRE_LINK = 0x00000015
    ENQUIRE_LINK_RESP = 0x80000015
    GENERIC_NACK = 0x80000000


class CommandStatus(IntEnum):
    """SMPP Command Status codes relevant to session management"""

    ESME_ROK = 0x00000000  # No Error
    ESME_RINVMSGLEN = 0x00000001  # Message Length is invalid
    ESME_RINVCMDLEN = 0x00000002  # Command Length is invalid
    ESME_RINVCMDID = 0x00000003  # Invalid Command ID
    ESME_RINVBNDSTS = 0x00000004  # Incorrect BIND Status for given command
    ESME_RALYBND = 0x00000005  # ESME Already in Bound State
    ESME_RINVPASWD = 0x00000006  # Invalid Password
    ESME_RINVSYSID = 0x00000007  # Invalid System ID
    ESME_RSYSERR = 0x00000008  # System Error
    ESME_RBINDFAIL = 0x0000000D  # Bind Failed
    ESME_RTHROTTLED = 0x00000058  # Throttling error
    ESME_RUNKNOWNERR = 0x000000FF  # Unknown Error


class InterfaceVersion(IntEnum):
    """SMPP Interface Version values"""

    VERSION_3_3 = 0x33
    VERSION_3_4 = 0x34


DEFAULT_INTERFACE_VERSION = InterfaceVersion.VERSION_3_4

PDU_HEADER_SIZE = 16  # Size of PDU header in bytes
MAX_PDU_SIZE = 65536  # Maximum PDU size

# Field sizes include the NUL terminator
SYSTEM_ID_SIZE = 16
PASSWORD_SIZE = 9
SYSTEM_TYPE_SIZE = 13
ADDRESS_RANGE_SIZE = 41

MAX_SEQUENCE_NUMBER = 0x7FFFFFFF

ERROR_MESSAGES: Dict[int, str] = {
    CommandStatus.ESME_ROK: 'No Error',
    CommandStatus.ESME_RINVMSGLEN: 'Message Length is invalid',
    CommandStatus.ESME_RINVCMDLEN: 'Command Length is invalid',
    CommandStatus.ESME_RINVCMDID: 'Invalid Command ID',
    CommandStatus.ESME_RINVBNDSTS: 'Incorrect BIND Status for given command',
    CommandStatus.ESME_RALYBND: 'ESME Already in Bound State',
    CommandStatus.ESME_RINVPASWD: 'Invalid Password',
    CommandStatus.ESME_RINVSYSID: 'Invalid System ID',
    CommandStatus.ESME_RSYSERR: 'System Error',
    CommandStatus.ESME_RBINDFAIL: 'Bind Failed',
    CommandStatus.ESME_RTHROTTLED: 'Throttling error',
    CommandStatus.ESME_RUNKNOWNERR: 'Unknown Error',
}


def get_error_message(status_code: int) -> str:
    """Get human-readable error message for a status code"""
    return ERROR_MESSAGES.get(status_code, f'Unknown error code: 0x{status_code:08X}')


def is_response_command(command_id: int) -> bool:
    """Check if a command ID represents a response PDU"""
    return bool(command_id & 0x80000000)
