"""
SMPP Field Codec

C-octet string helpers for the fixed-size text fields of session PDUs.
"""

from typing import Tuple

from ..exceptions import SMPPPDUException


def encode_cstring(s: str, max_length: int, encoding: str = 'latin-1') -> bytes:
    """
    Encode a string as a NUL-terminated C-octet string.

    Args:
        s: String to encode
        max_length: Maximum allowed length including the NUL terminator
        encoding: Character encoding to use

    Returns:
        Encoded bytes with NUL terminator

    Raises:
        SMPPPDUException: If the encoded string does not fit
    """
    try:
        encoded = s.encode(encoding)
    except UnicodeEncodeError as e:
        raise SMPPPDUException(f'String encoding error: {e}', original_error=e) from e

    if len(encoded) >= max_length:
        raise SMPPPDUException(
            f'String too long: {len(encoded)} bytes, max {max_length - 1} allowed'
        )
    return encoded + b'\x00'


def decode_cstring(
    data: bytes, offset: int, max_length: int, encoding: str = 'latin-1'
) -> Tuple[str, int]:
    """
    Decode a NUL-terminated C-octet string.

    Returns:
        Tuple of (decoded_string, new_offset)

    Raises:
        SMPPPDUException: If no terminator is found within max_length bytes
    """
    if offset >= len(data):
        raise SMPPPDUException('Insufficient data for string field')

    end_offset = data.find(b'\x00', offset, min(len(data), offset + max_length))
    if end_offset < 0:
        raise SMPPPDUException(f'String not null-terminated within {max_length} bytes')

    return data[offset:end_offset].decode(encoding), end_offset + 1
