"""
SMPP Client Exception Classes

Errors raised by the transport layer and the connection bootstrap. Every error
carries a category code, an optional SMPP command_status and a small context
mapping that is rendered into the message.
"""

from enum import IntEnum
from typing import Any, Dict, Optional, Union


class SMPPErrorCode(IntEnum):
    """Error categories for client failures."""

    UNKNOWN = 0
    CONNECTION_FAILED = 1000
    BIND_FAILED = 1001
    INVALID_PDU = 1002
    TIMEOUT = 1003
    INVALID_STATE = 1009


def _context(**values: Any) -> Dict[str, str]:
    """Keep only the context values that were actually given."""
    return {key: str(value) for key, value in values.items() if value}


class SMPPException(Exception):
    """Base exception for all SMPP-related errors."""

    def __init__(
        self,
        message: str,
        command_status: Optional[int] = None,
        error_code: Optional[Union[str, SMPPErrorCode]] = None,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.command_status = command_status
        self.error_code = error_code
        self.context = context or {}
        self.original_error = original_error

    def __str__(self) -> str:
        parts = [self.message]

        if isinstance(self.error_code, SMPPErrorCode):
            code = self.error_code
            parts.append(f'Error Code: {code.name} ({code.value})')
        elif self.error_code:
            parts.append(f'Error Code: {self.error_code}')

        if self.command_status is not None:
            parts.append(f'Command Status: 0x{self.command_status:08X}')

        if self.context:
            rendered = ', '.join(f'{k}={v}' for k, v in self.context.items())
            parts.append(f'Context: {rendered}')

        return ' | '.join(parts)


class SMPPConnectionException(SMPPException):
    """TCP or TLS connection could not be opened, or was lost."""

    def __init__(
        self,
        message: str,
        host: Optional[str] = None,
        port: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            error_code=SMPPErrorCode.CONNECTION_FAILED,
            context=_context(host=host, port=port),
            original_error=original_error,
        )
        self.host = host
        self.port = port


class SMPPPDUException(SMPPException):
    """Malformed, truncated or unsupported PDU."""

    def __init__(
        self,
        message: str,
        command_id: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            error_code=SMPPErrorCode.INVALID_PDU,
            context=_context(
                command_id=f'0x{command_id:08X}' if command_id is not None else None
            ),
            original_error=original_error,
        )
        self.command_id = command_id


class SMPPTimeoutException(SMPPException):
    def __init__(
        self,
        message: str,
        timeout_duration: Optional[float] = None,
        operation: Optional[str] = None,
    ):
        super().__init__(
            message,
            error_code=SMPPErrorCode.TIMEOUT,
            context=_context(timeout_duration=timeout_duration, operation=operation),
        )
        self.timeout_duration = timeout_duration
        self.operation = operation


class SMPPBindException(SMPPException):
    """The bind handshake did not end in a bound session."""

    def __init__(
        self,
        message: str,
        addr: Optional[str] = None,
        system_id: Optional[str] = None,
        command_status: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            command_status=command_status,
            error_code=SMPPErrorCode.BIND_FAILED,
            context=_context(addr=addr, system_id=system_id),
            original_error=original_error,
        )
        self.addr = addr
        self.system_id = system_id


class SMPPInvalidStateException(SMPPException):
    """Operation attempted in the wrong session state."""

    def __init__(
        self,
        message: str,
        current_state: Optional[str] = None,
        operation: Optional[str] = None,
    ):
        super().__init__(
            message,
            error_code=SMPPErrorCode.INVALID_STATE,
            context=_context(current_state=current_state, operation=operation),
        )
        self.current_state = current_state
        self.operation = operation
