"""
SMPP Session PDUs

This module contains the PDU classes a transmitter session exchanges with an
SMSC: the bind_transmitter request/response pair, unbind, enquire_link and
generic_nack, together with the header encoding shared by all of them.
"""

import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Type

from ..exceptions import SMPPPDUException
from .codec import decode_cstring, encode_cstring
from .constants import (
    ADDRESS_RANGE_SIZE,
    DEFAULT_INTERFACE_VERSION,
    MAX_PDU_SIZE,
    PASSWORD_SIZE,
    PDU_HEADER_SIZE,
    SYSTEM_ID_SIZE,
    SYSTEM_TYPE_SIZE,
    CommandId,
    CommandStatus,
)


@dataclass
class PDU(ABC):
    """
    Abstract base class for SMPP PDUs.

    Attributes:
        command_id: The SMPP command identifier
        command_status: Status code (0 for requests, error code for responses)
        sequence_number: Sequence number for request/response matching; 0 means
            the connection assigns one when the PDU is sent
    """

    command_id: int = 0
    command_status: int = CommandStatus.ESME_ROK
    sequence_number: int = 0

    @abstractmethod
    def encode_body(self) -> bytes:
        """Encode PDU body to bytes."""

    @abstractmethod
    def decode_body(self, data: bytes, offset: int = 0) -> int:
        """Decode PDU body from bytes, returning the new offset."""

    def encode(self) -> bytes:
        """
        Encode complete PDU to bytes.

        Raises:
            SMPPPDUException: If the body cannot be encoded or is too large
        """
        try:
            body = self.encode_body()
        except SMPPPDUException:
            raise
        except Exception as e:
            raise SMPPPDUException(
                f'Failed to encode PDU body: {e}',
                command_id=self.command_id,
                original_error=e,
            ) from e

        total_length = PDU_HEADER_SIZE + len(body)
        if total_length > MAX_PDU_SIZE:
            raise SMPPPDUException(
                f'PDU too large: {total_length} bytes exceeds maximum {MAX_PDU_SIZE}',
                command_id=self.command_id,
            )

        header = struct.pack(
            '>LLLL',
            total_length,
            self.command_id,
            self.command_status,
            self.sequence_number,
        )
        return header + body

    def is_response(self) -> bool:
        """Check if this is a response PDU (command_id has high bit set)"""
        return bool(self.command_id & 0x80000000)


class EmptyBodyPDU(PDU):
    """Base class for PDUs that carry only the header."""

    def encode_body(self) -> bytes:
        return b''

    def decode_body(self, data: bytes, offset: int = 0) -> int:
        return offset


class BindTransmitter(PDU):
    """BIND_TRANSMITTER PDU - Request to bind as transmitter"""

    def __init__(
        self,
        system_id: str = '',
        password: str = '',
        system_type: str = '',
        interface_version: int = DEFAULT_INTERFACE_VERSION,
        addr_ton: int = 0,
        addr_npi: int = 0,
        address_range: str = '',
        **kwargs,
    ) -> None:
        kwargs.setdefault('command_id', CommandId.BIND_TRANSMITTER)
        super().__init__(**kwargs)
        self.system_id = system_id
        self.password = password
        self.system_type = system_type
        self.interface_version = interface_version
        self.addr_ton = addr_ton
        self.addr_npi = addr_npi
        self.address_range = address_range

    def encode_body(self) -> bytes:
        return (
            encode_cstring(self.system_id, SYSTEM_ID_SIZE)
            + encode_cstring(self.password, PASSWORD_SIZE)
            + encode_cstring(self.system_type, SYSTEM_TYPE_SIZE)
            + struct.pack('BBB', self.interface_version, self.addr_ton, self.addr_npi)
            + encode_cstring(self.address_range, ADDRESS_RANGE_SIZE)
        )

    def decode_body(self, data: bytes, offset: int = 0) -> int:
        self.system_id, offset = decode_cstring(data, offset, SYSTEM_ID_SIZE)
        self.password, offset = decode_cstring(data, offset, PASSWORD_SIZE)
        self.system_type, offset = decode_cstring(data, offset, SYSTEM_TYPE_SIZE)

        if offset + 3 > len(data):
            raise SMPPPDUException('Insufficient data for bind fields')

        self.interface_version, self.addr_ton, self.addr_npi = struct.unpack(
            'BBB', data[offset : offset + 3]
        )
        offset += 3

        self.address_range, offset = decode_cstring(data, offset, ADDRESS_RANGE_SIZE)
        return offset


class BindTransmitterResp(PDU):
    """BIND_TRANSMITTER_RESP PDU - Response to bind_transmitter"""

    def __init__(self, system_id: str = '', **kwargs) -> None:
        kwargs.setdefault('command_id', CommandId.BIND_TRANSMITTER_RESP)
        super().__init__(**kwargs)
        self.system_id = system_id

    def encode_body(self) -> bytes:
        return encode_cstring(self.system_id, SYSTEM_ID_SIZE)

    def decode_body(self, data: bytes, offset: int = 0) -> int:
        # An SMSC rejecting the bind may send a header-only response
        if offset >= len(data):
            return offset
        self.system_id, offset = decode_cstring(data, offset, SYSTEM_ID_SIZE)
        return offset


class Unbind(EmptyBodyPDU):
    """UNBIND PDU - Request to unbind from SMSC"""

    def __init__(self, **kwargs) -> None:
        kwargs.setdefault('command_id', CommandId.UNBIND)
        super().__init__(**kwargs)


class UnbindResp(EmptyBodyPDU):
    """UNBIND_RESP PDU - Response to unbind"""

    def __init__(self, **kwargs) -> None:
        kwargs.setdefault('command_id', CommandId.UNBIND_RESP)
        super().__init__(**kwargs)


class EnquireLink(EmptyBodyPDU):
    """ENQUIRE_LINK PDU - Link keep-alive request"""

    def __init__(self, **kwargs) -> None:
        kwargs.setdefault('command_id', CommandId.ENQUIRE_LINK)
        super().__init__(**kwargs)


class EnquireLinkResp(EmptyBodyPDU):
    """ENQUIRE_LINK_RESP PDU - Response to enquire_link"""

    def __init__(self, **kwargs) -> None:
        kwargs.setdefault('command_id', CommandId.ENQUIRE_LINK_RESP)
        super().__init__(**kwargs)


class GenericNack(EmptyBodyPDU):
    """GENERIC_NACK PDU - Negative acknowledgement of an unusable PDU"""

    def __init__(self, **kwargs) -> None:
        kwargs.setdefault('command_id', CommandId.GENERIC_NACK)
        super().__init__(**kwargs)


PDU_CLASSES: Dict[int, Type[PDU]] = {
    CommandId.BIND_TRANSMITTER: BindTransmitter,
    CommandId.BIND_TRANSMITTER_RESP: BindTransmitterResp,
    CommandId.UNBIND: Unbind,
    CommandId.UNBIND_RESP: UnbindResp,
    CommandId.ENQUIRE_LINK: EnquireLink,
    CommandId.ENQUIRE_LINK_RESP: EnquireLinkResp,
    CommandId.GENERIC_NACK: GenericNack,
}


def decode_pdu(data: bytes) -> PDU:
    """
    Decode a complete PDU from bytes.

    Args:
        data: Header and body of exactly one PDU

    Returns:
        The decoded PDU instance

    Raises:
        SMPPPDUException: If the data is truncated or the command is unsupported
    """
    if len(data) < PDU_HEADER_SIZE:
        raise SMPPPDUException(
            f'Insufficient data for PDU header: {len(data)} < {PDU_HEADER_SIZE}'
        )

    length, command_id, command_status, sequence_number = struct.unpack(
        '>LLLL', data[:PDU_HEADER_SIZE]
    )

    if length < PDU_HEADER_SIZE or length > MAX_PDU_SIZE:
        raise SMPPPDUException(f'Invalid PDU length: {length}', command_id=command_id)
    if len(data) < length:
        raise SMPPPDUException(
            f'PDU length mismatch: expected {length}, got {len(data)}',
            command_id=command_id,
        )

    pdu_class = PDU_CLASSES.get(command_id)
    if pdu_class is None:
        raise SMPPPDUException(
            f'Unknown command ID: 0x{command_id:08X}', command_id=command_id
        )

    pdu = pdu_class(
        command_id=command_id,
        command_status=command_status,
        sequence_number=sequence_number,
    )
    pdu.decode_body(data[:length], PDU_HEADER_SIZE)
    return pdu
