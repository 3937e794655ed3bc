"""Modbus TCP master with an MCP tool server."""

from .client import (
    ModbusClient,
    read_coils,
    read_discrete_inputs,
    read_holding_registers,
    read_input_registers,
    write_multiple_coils,
    write_multiple_registers,
    write_single_coil,
    write_single_register,
)
from .errors import (
    DataLengthMismatchError,
    DisconnectedError,
    ErrorKind,
    MalformedResponseError,
    ModbusClientError,
    ModbusExceptionError,
    NoResponseError,
)
from .transport.tcp_connection import TCPConnection
