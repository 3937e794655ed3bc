"""Function code constants and request builders.

Each builder validates its arguments and returns an immutable
:class:`Request` holding the PDU fields together with the total response
length (MBAP header included) the transport should wait for.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from ..utils.packing import bit_byte_count, pack_bits, pack_registers
from .framing import MBAP_HEADER_SIZE

# Unit id + function code + byte count, following the MBAP header
READ_RESPONSE_OVERHEAD = MBAP_HEADER_SIZE + 3
# Unit id + function code + address + value/quantity
WRITE_RESPONSE_LENGTH = MBAP_HEADER_SIZE + 6

COIL_ON = b"\xFF\x00"
COIL_OFF = b"\x00\x00"
MAX_BYTE_COUNT = 0xFF


class FunctionCode(IntEnum):
    """Supported Modbus public function codes."""

    READ_COILS = 0x01
    READ_DISCRETE_INPUTS = 0x02
    READ_HOLDING_REGISTERS = 0x03
    READ_INPUT_REGISTERS = 0x04
    WRITE_SINGLE_COIL = 0x05
    WRITE_SINGLE_REGISTER = 0x06
    WRITE_MULTIPLE_COILS = 0x0F
    WRITE_MULTIPLE_REGISTERS = 0x10


BIT_READS = (FunctionCode.READ_COILS, FunctionCode.READ_DISCRETE_INPUTS)
REGISTER_READS = (FunctionCode.READ_HOLDING_REGISTERS, FunctionCode.READ_INPUT_REGISTERS)


@dataclass(frozen=True)
class Request:
    """A request PDU ready to be framed."""

    unit_id: int
    function_code: int
    payload: bytes
    expected_length: int

    @property
    def pdu(self) -> bytes:
        """Unit id, function code and payload as sent after the MBAP header."""
        return bytes([self.unit_id, self.function_code]) + self.payload

    def __repr__(self) -> str:
        return (
            f"Request(unit_id={self.unit_id}, function_code=0x{self.function_code:02X}, "
            f"payload={self.payload.hex(' ') if self.payload else '(empty)'}, "
            f"expected_length={self.expected_length})"
        )


def _check_unit_id(unit_id: int) -> None:
    if not 0 <= unit_id <= 0xFF:
        raise ValueError(f"Unit id must be 0-255, got {unit_id}")


def _check_address(address: int) -> None:
    if not 0 <= address <= 0xFFFF:
        raise ValueError(f"Address must be 0-65535, got {address}")


def _check_count(count: int) -> None:
    if not 1 <= count <= 0xFFFF:
        raise ValueError(f"Count must be 1-65535, got {count}")


def expected_bits_length(count: int) -> int:
    """Total response length for a coil or discrete input read."""
    return READ_RESPONSE_OVERHEAD + bit_byte_count(count)


def expected_registers_length(count: int) -> int:
    """Total response length for a holding or input register read."""
    return READ_RESPONSE_OVERHEAD + 2 * count


def build_read_request(
    unit_id: int, function_code: FunctionCode, address: int, count: int
) -> Request:
    """Build a read request for function 1, 2, 3 or 4.

    Args:
        unit_id: Target unit (0-255).
        function_code: One of the four read functions.
        address: First item address (0-65535).
        count: Number of coils, inputs or registers (1-65535).
    """
    _check_unit_id(unit_id)
    _check_address(address)
    _check_count(count)
    if function_code in BIT_READS:
        expected = expected_bits_length(count)
    elif function_code in REGISTER_READS:
        expected = expected_registers_length(count)
    else:
        raise ValueError(f"Not a read function: {function_code!r}")

    payload = address.to_bytes(2, "big") + count.to_bytes(2, "big")
    return Request(unit_id, function_code, payload, expected)


def build_read_coils(unit_id: int, address: int, count: int) -> Request:
    """Build a Read Coils (0x01) request."""
    return build_read_request(unit_id, FunctionCode.READ_COILS, address, count)


def build_read_discrete_inputs(unit_id: int, address: int, count: int) -> Request:
    """Build a Read Discrete Inputs (0x02) request."""
    return build_read_request(unit_id, FunctionCode.READ_DISCRETE_INPUTS, address, count)


def build_read_holding_registers(unit_id: int, address: int, count: int) -> Request:
    """Build a Read Holding Registers (0x03) request."""
    return build_read_request(unit_id, FunctionCode.READ_HOLDING_REGISTERS, address, count)


def build_read_input_registers(unit_id: int, address: int, count: int) -> Request:
    """Build a Read Input Registers (0x04) request."""
    return build_read_request(unit_id, FunctionCode.READ_INPUT_REGISTERS, address, count)


def build_write_single_coil(unit_id: int, address: int, value: bool) -> Request:
    """Build a Write Single Coil (0x05) request.

    ON is encoded as ``FF 00`` and OFF as ``00 00``.
    """
    _check_unit_id(unit_id)
    _check_address(address)
    payload = address.to_bytes(2, "big") + (COIL_ON if value else COIL_OFF)
    return Request(unit_id, FunctionCode.WRITE_SINGLE_COIL, payload, WRITE_RESPONSE_LENGTH)


def build_write_single_register(unit_id: int, address: int, value: int) -> Request:
    """Build a Write Single Register (0x06) request.

    Args:
        unit_id: Target unit (0-255).
        address: Register address (0-65535).
        value: Register value (0-65535).
    """
    _check_unit_id(unit_id)
    _check_address(address)
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"Register value must be 0-65535, got {value}")
    payload = address.to_bytes(2, "big") + value.to_bytes(2, "big")
    return Request(unit_id, FunctionCode.WRITE_SINGLE_REGISTER, payload, WRITE_RESPONSE_LENGTH)


def build_write_multiple_coils(unit_id: int, address: int, values: list[bool]) -> Request:
    """Build a Write Multiple Coils (0x0F) request.

    The coil states are packed LSB-first, so ``values[0]`` lands in bit 0
    of the first data byte.
    """
    _check_unit_id(unit_id)
    _check_address(address)
    if not values:
        raise ValueError("At least one coil value is required")
    byte_count = bit_byte_count(len(values))
    if byte_count > MAX_BYTE_COUNT:
        raise ValueError(
            f"Too many coils for one request: {len(values)} needs {byte_count} bytes"
        )
    payload = (
        address.to_bytes(2, "big")
        + len(values).to_bytes(2, "big")
        + bytes([byte_count])
        + pack_bits(values)
    )
    return Request(unit_id, FunctionCode.WRITE_MULTIPLE_COILS, payload, WRITE_RESPONSE_LENGTH)


def build_write_multiple_registers(unit_id: int, address: int, values: list[int]) -> Request:
    """Build a Write Multiple Registers (0x10) request."""
    _check_unit_id(unit_id)
    _check_address(address)
    if not values:
        raise ValueError("At least one register value is required")
    byte_count = 2 * len(values)
    if byte_count > MAX_BYTE_COUNT:
        raise ValueError(
            f"Too many registers for one request: {len(values)} needs {byte_count} bytes"
        )
    payload = (
        address.to_bytes(2, "big")
        + len(values).to_bytes(2, "big")
        + bytes([byte_count])
        + pack_registers(values)
    )
    return Request(
        unit_id, FunctionCode.WRITE_MULTIPLE_REGISTERS, payload, WRITE_RESPONSE_LENGTH
    )
