"""Response validation and decoding.

The payloads handled here are what the transport returns after stripping
the MBAP header: ``unit id, function code, byte count, data...``. Write
responses are plain echoes and only their function code is checked.
"""

from __future__ import annotations

from ..errors import DataLengthMismatchError, MalformedResponseError
from ..utils.packing import bit_byte_count, unpack_bits, unpack_registers
from .framing import PAYLOAD_OFF_BYTE_COUNT, PAYLOAD_OFF_DATA, PAYLOAD_OFF_FUNCTION


def check_function(payload: bytes, function_code: int) -> None:
    """Ensure the response echoes the request's function code."""
    if len(payload) <= PAYLOAD_OFF_FUNCTION:
        raise MalformedResponseError("response too short to hold a function code", payload)
    echoed = payload[PAYLOAD_OFF_FUNCTION]
    if echoed != function_code:
        raise MalformedResponseError(
            f"function code mismatch: sent 0x{function_code:02X}, got 0x{echoed:02X}",
            payload,
        )


def _data_field(payload: bytes, expected_bytes: int) -> bytes:
    """Validate the declared byte count and return the data bytes."""
    if len(payload) < PAYLOAD_OFF_DATA:
        raise MalformedResponseError("response too short to hold a byte count", payload)
    declared = payload[PAYLOAD_OFF_BYTE_COUNT]
    actual = len(payload) - PAYLOAD_OFF_DATA
    if declared != actual or declared != expected_bytes:
        raise DataLengthMismatchError(declared, actual, expected_bytes)
    return payload[PAYLOAD_OFF_DATA:]


def parse_bits(payload: bytes, count: int) -> list[bool]:
    """Decode a Read Coils / Read Discrete Inputs response into ``count`` booleans.

    Raises:
        DataLengthMismatchError: If the byte count disagrees with the data
            received or with ``ceil(count / 8)``.
    """
    data = _data_field(payload, bit_byte_count(count))
    return unpack_bits(data, count)


def parse_registers(payload: bytes, count: int) -> list[int]:
    """Decode a Read Holding / Input Registers response into ``count`` values.

    Raises:
        DataLengthMismatchError: If the byte count disagrees with the data
            received or with ``2 * count``.
    """
    data = _data_field(payload, 2 * count)
    return unpack_registers(data)
