"""Modbus TCP master operations.

Each public function takes the caller's open connection as its first
argument, builds the request, exchanges it through :func:`query`, then
validates and decodes the response. On :class:`DisconnectedError` the
connection is closed before the error propagates; it has to be reopened
before the next call. Every other error leaves it open.

Calls on one connection must not overlap; nothing here locks.
"""

from __future__ import annotations

import logging

from .errors import DisconnectedError
from .protocol.commands import (
    FunctionCode,
    Request,
    build_read_request,
    build_write_multiple_coils,
    build_write_multiple_registers,
    build_write_single_coil,
    build_write_single_register,
)
from .protocol.parser import check_function, parse_bits, parse_registers
from .transport.framer import query
from .transport.tcp_connection import ByteStream

logger = logging.getLogger(__name__)


def _execute(conn: ByteStream | None, request: Request) -> bytes:
    """Run one exchange, tearing the connection down on transport failure."""
    try:
        payload = query(conn, request)
    except DisconnectedError:
        if conn is not None:
            logger.warning("Transport failure, closing connection")
            conn.close()
        raise
    check_function(payload, request.function_code)
    return payload


def _read_bits(
    conn: ByteStream | None, unit_id: int, address: int, count: int, function_code: FunctionCode
) -> list[bool]:
    request = build_read_request(unit_id, function_code, address, count)
    return parse_bits(_execute(conn, request), count)


def _read_registers(
    conn: ByteStream | None, unit_id: int, address: int, count: int, function_code: FunctionCode
) -> list[int]:
    request = build_read_request(unit_id, function_code, address, count)
    return parse_registers(_execute(conn, request), count)


def read_coils(conn: ByteStream | None, unit_id: int, address: int, count: int) -> list[bool]:
    """Read ``count`` coils starting at ``address`` (function 0x01)."""
    return _read_bits(conn, unit_id, address, count, FunctionCode.READ_COILS)


def read_discrete_inputs(
    conn: ByteStream | None, unit_id: int, address: int, count: int
) -> list[bool]:
    """Read ``count`` discrete inputs starting at ``address`` (function 0x02)."""
    return _read_bits(conn, unit_id, address, count, FunctionCode.READ_DISCRETE_INPUTS)


def read_holding_registers(
    conn: ByteStream | None, unit_id: int, address: int, count: int
) -> list[int]:
    """Read ``count`` holding registers starting at ``address`` (function 0x03)."""
    return _read_registers(conn, unit_id, address, count, FunctionCode.READ_HOLDING_REGISTERS)


def read_input_registers(
    conn: ByteStream | None, unit_id: int, address: int, count: int
) -> list[int]:
    """Read ``count`` input registers starting at ``address`` (function 0x04)."""
    return _read_registers(conn, unit_id, address, count, FunctionCode.READ_INPUT_REGISTERS)


def write_single_coil(conn: ByteStream | None, unit_id: int, address: int, value: bool) -> None:
    """Switch one coil on or off (function 0x05)."""
    _execute(conn, build_write_single_coil(unit_id, address, value))


def write_single_register(
    conn: ByteStream | None, unit_id: int, address: int, value: int
) -> None:
    """Write one holding register (function 0x06)."""
    _execute(conn, build_write_single_register(unit_id, address, value))


def write_multiple_coils(
    conn: ByteStream | None, unit_id: int, address: int, values: list[bool]
) -> None:
    """Write consecutive coils starting at ``address`` (function 0x0F)."""
    _execute(conn, build_write_multiple_coils(unit_id, address, values))


def write_multiple_registers(
    conn: ByteStream | None, unit_id: int, address: int, values: list[int]
) -> None:
    """Write consecutive holding registers starting at ``address`` (function 0x10)."""
    _execute(conn, build_write_multiple_registers(unit_id, address, values))


class ModbusClient:
    """Convenience wrapper binding the operations to one connection.

    The connection stays owned by the caller; the client never reopens it.

    Usage::

        with TCPConnection("127.0.0.1", 502) as conn:
            client = ModbusClient(conn)
            client.write_multiple_registers(1, 1, [2, 3, 4])
            values = client.read_holding_registers(1, 0, 4)
    """

    def __init__(self, connection: ByteStream) -> None:
        self._connection = connection

    @property
    def connection(self) -> ByteStream:
        return self._connection

    @property
    def connected(self) -> bool:
        return self._connection.connected

    def read_coils(self, unit_id: int, address: int, count: int) -> list[bool]:
        return read_coils(self._connection, unit_id, address, count)

    def read_discrete_inputs(self, unit_id: int, address: int, count: int) -> list[bool]:
        return read_discrete_inputs(self._connection, unit_id, address, count)

    def read_holding_registers(self, unit_id: int, address: int, count: int) -> list[int]:
        return read_holding_registers(self._connection, unit_id, address, count)

    def read_input_registers(self, unit_id: int, address: int, count: int) -> list[int]:
        return read_input_registers(self._connection, unit_id, address, count)

    def write_single_coil(self, unit_id: int, address: int, value: bool) -> None:
        write_single_coil(self._connection, unit_id, address, value)

    def write_single_register(self, unit_id: int, address: int, value: int) -> None:
        write_single_register(self._connection, unit_id, address, value)

    def write_multiple_coils(self, unit_id: int, address: int, values: list[bool]) -> None:
        write_multiple_coils(self._connection, unit_id, address, values)

    def write_multiple_registers(self, unit_id: int, address: int, values: list[int]) -> None:
        write_multiple_registers(self._connection, unit_id, address, values)
