"""Error taxonomy for Modbus transactions.

Every failure raised by the client is a :class:`ModbusClientError` whose
``kind`` is one of a closed set of :class:`ErrorKind` values, so callers can
branch on the kind (or catch the concrete subclass) instead of matching
message text.

Only :class:`DisconnectedError` invalidates the session. The other kinds
leave the connection open and the same call may be issued again.
"""

from __future__ import annotations

from enum import Enum

from .protocol.exceptions import describe_exception, format_exception


class ErrorKind(Enum):
    """Closed set of failure classes."""

    DISCONNECTED = "disconnected"
    NO_RESPONSE = "no_response"
    EXCEPTION = "exception"
    DATA_LENGTH_MISMATCH = "data_length_mismatch"
    MODBUS_ERROR = "modbus_error"


class ModbusClientError(Exception):
    """Base class for all Modbus client failures."""

    kind: ErrorKind = ErrorKind.MODBUS_ERROR


class DisconnectedError(ModbusClientError):
    """Transport failure: dial, write, hard read error, or no open session."""

    kind = ErrorKind.DISCONNECTED


class NoResponseError(ModbusClientError):
    """The read deadline passed before the full response arrived."""

    kind = ErrorKind.NO_RESPONSE

    def __init__(self, message: str, received: bytes = b"") -> None:
        super().__init__(message)
        self.received = received


class ModbusExceptionError(ModbusClientError):
    """The server answered with a Modbus exception response."""

    kind = ErrorKind.EXCEPTION

    def __init__(self, function_code: int, exception_code: int, response: bytes = b"") -> None:
        super().__init__(f"ModbusError{format_exception(exception_code)}")
        self.function_code = function_code
        self.exception_code = exception_code
        self.response = response

    @property
    def description(self) -> str:
        return describe_exception(self.exception_code)


class DataLengthMismatchError(ModbusClientError):
    """The declared byte count disagrees with the payload or the request."""

    kind = ErrorKind.DATA_LENGTH_MISMATCH

    def __init__(self, declared: int, actual: int, expected: int) -> None:
        super().__init__(
            f"data length not match: declared {declared}, "
            f"received {actual}, expected {expected}"
        )
        self.declared = declared
        self.actual = actual
        self.expected = expected


class MalformedResponseError(ModbusClientError):
    """The response is too short, incomplete, or echoes the wrong function."""

    kind = ErrorKind.MODBUS_ERROR

    def __init__(self, message: str, received: bytes = b"") -> None:
        super().__init__(message)
        self.received = received
