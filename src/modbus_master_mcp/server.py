"""MCP server entry point for a Modbus TCP master.

Exposes the Modbus read/write operations as tools, plus connection status
and the exception-code catalog as resources, via the Model Context
Protocol using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from . import client
from .config import ConnectionSettings
from .errors import ModbusClientError, ModbusExceptionError
from .protocol.exceptions import EXCEPTION_DESCRIPTIONS
from .transport.tcp_connection import TCPConnection

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "modbus-master",
    instructions="MCP server for reading and writing Modbus TCP devices",
)

# The server is the single owner of this connection; tools run one at a time.
_connection: TCPConnection | None = None


def _get_connection() -> TCPConnection:
    """Get the active connection, raising if not connected."""
    if _connection is None or not _connection.connected:
        raise RuntimeError(
            "Not connected to a Modbus server. Use the 'connect' tool first."
        )
    return _connection


def _error_result(error: ModbusClientError) -> dict[str, Any]:
    result: dict[str, Any] = {"error": str(error), "kind": error.kind.value}
    if isinstance(error, ModbusExceptionError):
        result["exception_code"] = error.exception_code
        result["description"] = error.description
    if _connection is not None and not _connection.connected:
        result["connected"] = False
    return result


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(
    host: str | None = None,
    port: int | None = None,
    timeout: float | None = None,
) -> dict[str, Any]:
    """Open a TCP connection to a Modbus server.

    Omitted arguments fall back to MODBUS_HOST, MODBUS_PORT and
    MODBUS_TIMEOUT, then to 127.0.0.1:502 with a 1 second timeout.

    Args:
        host: Server hostname or IP address.
        port: TCP port (default 502).
        timeout: Dial and response timeout in seconds.
    """
    global _connection
    if _connection is not None and _connection.connected:
        return {
            "connected": True,
            "message": "Already connected",
            "host": _connection.host,
            "port": _connection.port,
        }

    if host is None or port is None or timeout is None:
        settings = ConnectionSettings.from_env()
    else:
        settings = ConnectionSettings(host, port, timeout)
    conn = TCPConnection(
        host or settings.host,
        port if port is not None else settings.port,
        timeout if timeout is not None else settings.timeout,
    )
    try:
        conn.open()
    except ModbusClientError as e:
        return _error_result(e)

    _connection = conn
    return {"connected": True, "host": conn.host, "port": conn.port}


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the connection to the Modbus server."""
    global _connection
    if _connection is None:
        return {"disconnected": True}
    _connection.close()
    _connection = None
    return {"disconnected": True}


# ─── READ TOOLS ──────────────────────────────────────────────────────

@mcp.tool()
def read_coils(unit_id: int, address: int, count: int) -> dict[str, Any]:
    """Read coil states (function 0x01).

    Args:
        unit_id: Target unit id (0-255).
        address: First coil address (0-65535).
        count: Number of coils to read.
    """
    conn = _get_connection()
    try:
        values = client.read_coils(conn, unit_id, address, count)
    except ModbusClientError as e:
        return _error_result(e)
    return {"address": address, "values": values}


@mcp.tool()
def read_discrete_inputs(unit_id: int, address: int, count: int) -> dict[str, Any]:
    """Read discrete input states (function 0x02).

    Args:
        unit_id: Target unit id (0-255).
        address: First input address (0-65535).
        count: Number of inputs to read.
    """
    conn = _get_connection()
    try:
        values = client.read_discrete_inputs(conn, unit_id, address, count)
    except ModbusClientError as e:
        return _error_result(e)
    return {"address": address, "values": values}


@mcp.tool()
def read_holding_registers(unit_id: int, address: int, count: int) -> dict[str, Any]:
    """Read 16-bit holding registers (function 0x03).

    Args:
        unit_id: Target unit id (0-255).
        address: First register address (0-65535).
        count: Number of registers to read.
    """
    conn = _get_connection()
    try:
        values = client.read_holding_registers(conn, unit_id, address, count)
    except ModbusClientError as e:
        return _error_result(e)
    return {"address": address, "values": values}


@mcp.tool()
def read_input_registers(unit_id: int, address: int, count: int) -> dict[str, Any]:
    """Read 16-bit input registers (function 0x04).

    Args:
        unit_id: Target unit id (0-255).
        address: First register address (0-65535).
        count: Number of registers to read.
    """
    conn = _get_connection()
    try:
        values = client.read_input_registers(conn, unit_id, address, count)
    except ModbusClientError as e:
        return _error_result(e)
    return {"address": address, "values": values}


# ─── WRITE TOOLS ─────────────────────────────────────────────────────

@mcp.tool()
def write_single_coil(unit_id: int, address: int, value: bool) -> dict[str, Any]:
    """Switch a single coil on or off (function 0x05).

    Args:
        unit_id: Target unit id (0-255).
        address: Coil address (0-65535).
        value: True for ON, False for OFF.
    """
    conn = _get_connection()
    try:
        client.write_single_coil(conn, unit_id, address, value)
    except ModbusClientError as e:
        return _error_result(e)
    return {"success": True, "address": address, "value": value}


@mcp.tool()
def write_single_register(unit_id: int, address: int, value: int) -> dict[str, Any]:
    """Write a single holding register (function 0x06).

    Args:
        unit_id: Target unit id (0-255).
        address: Register address (0-65535).
        value: Register value (0-65535).
    """
    conn = _get_connection()
    try:
        client.write_single_register(conn, unit_id, address, value)
    except ModbusClientError as e:
        return _error_result(e)
    return {"success": True, "address": address, "value": value}


@mcp.tool()
def write_multiple_coils(unit_id: int, address: int, values: list[bool]) -> dict[str, Any]:
    """Write consecutive coils (function 0x0F).

    Args:
        unit_id: Target unit id (0-255).
        address: First coil address (0-65535).
        values: Coil states, first entry written to ``address``.
    """
    conn = _get_connection()
    try:
        client.write_multiple_coils(conn, unit_id, address, values)
    except ModbusClientError as e:
        return _error_result(e)
    return {"success": True, "address": address, "count": len(values)}


@mcp.tool()
def write_multiple_registers(unit_id: int, address: int, values: list[int]) -> dict[str, Any]:
    """Write consecutive holding registers (function 0x10).

    Args:
        unit_id: Target unit id (0-255).
        address: First register address (0-65535).
        values: Register values (0-65535 each).
    """
    conn = _get_connection()
    try:
        client.write_multiple_registers(conn, unit_id, address, values)
    except ModbusClientError as e:
        return _error_result(e)
    return {"success": True, "address": address, "count": len(values)}


# ─── RESOURCES ───────────────────────────────────────────────────────

@mcp.resource("modbus://connection/status")
def resource_connection_status() -> str:
    """Current connection target and state."""
    if _connection is None:
        return json.dumps({"connected": False})
    return json.dumps({
        "connected": _connection.connected,
        "host": _connection.host,
        "port": _connection.port,
        "timeout": _connection.timeout,
    })


@mcp.resource("modbus://catalog/exception-codes")
def resource_exception_codes() -> str:
    """Standard Modbus exception codes and their meaning."""
    return json.dumps(
        {f"0x{code:02X}": text for code, text in EXCEPTION_DESCRIPTIONS.items()},
        indent=2,
    )


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
