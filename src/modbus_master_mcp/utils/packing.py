"""Bit and register packing for Modbus data fields.

Coils and discrete inputs travel as bitfields packed least-significant bit
first: bit 0 of the first byte is the first item. Registers are 16-bit
big-endian words.
"""

from __future__ import annotations

import struct


def bit_byte_count(count: int) -> int:
    """Number of bytes needed to hold ``count`` packed bits."""
    return (count + 7) // 8


def pack_bits(values: list[bool]) -> bytes:
    """Pack booleans LSB-first; unused high bits of the last byte are zero."""
    packed = bytearray(bit_byte_count(len(values)))
    for i, value in enumerate(values):
        if value:
            packed[i // 8] |= 1 << (i % 8)
    return bytes(packed)


def unpack_bits(data: bytes, count: int | None = None) -> list[bool]:
    """Unpack an LSB-first bitfield, truncating to ``count`` items if given."""
    bits = [bool(byte & (1 << bit)) for byte in data for bit in range(8)]
    if count is not None:
        return bits[:count]
    return bits


def pack_registers(values: list[int]) -> bytes:
    """Encode 16-bit unsigned values as big-endian byte pairs."""
    for value in values:
        if not 0 <= value <= 0xFFFF:
            raise ValueError(f"Register value must be 0-65535, got {value}")
    return struct.pack(f">{len(values)}H", *values)


def unpack_registers(data: bytes) -> list[int]:
    """Decode big-endian byte pairs into 16-bit unsigned values."""
    if len(data) % 2:
        raise ValueError(f"Register data must have an even length, got {len(data)}")
    return list(struct.unpack(f">{len(data) // 2}H", data))
