"""Modbus exception codes returned by a server in place of a normal response.

An exception response sets the high bit of the echoed function code and
carries a single exception-code byte::

    +------+----------+-----------+
    | Unit | FC | 0x80| Exc. code |
    +------+----------+-----------+
"""

from __future__ import annotations

from enum import IntEnum

EXCEPTION_FLAG = 0x80


class ExceptionCode(IntEnum):
    """Standard Modbus exception codes."""

    ILLEGAL_FUNCTION = 0x01
    ILLEGAL_DATA_ADDRESS = 0x02
    ILLEGAL_DATA_VALUE = 0x03
    SLAVE_DEVICE_FAILURE = 0x04
    ACKNOWLEDGE = 0x05
    SLAVE_DEVICE_BUSY = 0x06
    NEGATIVE_ACKNOWLEDGE = 0x07
    MEMORY_PARITY_ERROR = 0x08
    GATEWAY_PATH_UNAVAILABLE = 0x10
    GATEWAY_TARGET_NO_RESPONSE = 0x11


EXCEPTION_DESCRIPTIONS: dict[int, str] = {
    ExceptionCode.ILLEGAL_FUNCTION: "illegal function",
    ExceptionCode.ILLEGAL_DATA_ADDRESS: "illegal data address",
    ExceptionCode.ILLEGAL_DATA_VALUE: "illegal data value",
    ExceptionCode.SLAVE_DEVICE_FAILURE: "slave device failure",
    ExceptionCode.ACKNOWLEDGE: "acknowledge",
    ExceptionCode.SLAVE_DEVICE_BUSY: "slave device busy",
    ExceptionCode.NEGATIVE_ACKNOWLEDGE: "negative acknowledge",
    ExceptionCode.MEMORY_PARITY_ERROR: "memory parity error",
    ExceptionCode.GATEWAY_PATH_UNAVAILABLE: "gateway path unavailable",
    ExceptionCode.GATEWAY_TARGET_NO_RESPONSE: "gateway target device failed to respond",
}

UNKNOWN_EXCEPTION = "error code not in list"


def is_exception_function(function_code: int) -> bool:
    """Return True if an echoed function code flags an exception response."""
    return bool(function_code & EXCEPTION_FLAG)


def describe_exception(code: int) -> str:
    """Human-readable description for a Modbus exception code."""
    return EXCEPTION_DESCRIPTIONS.get(code, UNKNOWN_EXCEPTION)


def format_exception(code: int) -> str:
    """Format an exception code with its description, e.g. ``(02 illegal data address)``."""
    return f"({code:02X} {describe_exception(code)})"
