"""Tests for the MCP tool layer."""

from __future__ import annotations

import json
import sys
from unittest.mock import MagicMock, patch

import pytest

from modbus_master_mcp.errors import DisconnectedError, ModbusExceptionError, NoResponseError


def _get_server_module():
    """Import server module with FastMCP mocked to avoid init issues."""
    mock_fastmcp_cls = MagicMock()
    mock_fastmcp_instance = MagicMock()
    # Make the @mcp.tool() decorator a no-op that returns the function unchanged
    mock_fastmcp_instance.tool.return_value = lambda fn: fn
    mock_fastmcp_instance.resource.return_value = lambda fn: fn
    mock_fastmcp_cls.return_value = mock_fastmcp_instance

    with patch("mcp.server.fastmcp.FastMCP", mock_fastmcp_cls):
        # Remove cached server module so it re-imports with our mock
        sys.modules.pop("modbus_master_mcp.server", None)
        import modbus_master_mcp.server as server_mod

    return server_mod


@pytest.fixture
def server():
    server_mod = _get_server_module()
    yield server_mod
    server_mod._connection = None


def _connected_mock() -> MagicMock:
    conn = MagicMock()
    conn.connected = True
    conn.host = "127.0.0.1"
    conn.port = 502
    conn.timeout = 1.0
    return conn


def test_tools_require_connection(server):
    with pytest.raises(RuntimeError):
        server.read_coils(1, 0, 8)


def test_connect_uses_env_defaults(server, monkeypatch):
    monkeypatch.setenv("MODBUS_HOST", "plc.local")
    monkeypatch.setenv("MODBUS_PORT", "1502")
    monkeypatch.delenv("MODBUS_TIMEOUT", raising=False)
    mock_conn = _connected_mock()
    mock_conn.host = "plc.local"
    mock_conn.port = 1502

    with patch.object(server, "TCPConnection", return_value=mock_conn) as conn_cls:
        result = server.connect()

    conn_cls.assert_called_once_with("plc.local", 1502, 1.0)
    mock_conn.open.assert_called_once()
    assert result == {"connected": True, "host": "plc.local", "port": 1502}


def test_connect_explicit_args_ignore_bad_env(server, monkeypatch):
    """A malformed environment does not block a fully specified connect."""
    monkeypatch.setenv("MODBUS_PORT", "not-a-port")
    monkeypatch.setenv("MODBUS_TIMEOUT", "soon")
    mock_conn = _connected_mock()
    mock_conn.port = 1502

    with patch.object(server, "TCPConnection", return_value=mock_conn) as conn_cls:
        result = server.connect("127.0.0.1", 1502, 1.0)

    conn_cls.assert_called_once_with("127.0.0.1", 1502, 1.0)
    assert result == {"connected": True, "host": "127.0.0.1", "port": 1502}


def test_connect_failure_reports_error(server):
    mock_conn = MagicMock()
    mock_conn.open.side_effect = DisconnectedError("refused")

    with patch.object(server, "TCPConnection", return_value=mock_conn):
        result = server.connect("10.0.0.1", 502, 0.5)

    assert result["kind"] == "disconnected"
    assert server._connection is None


def test_connect_when_already_connected(server):
    server._connection = _connected_mock()
    result = server.connect("10.0.0.1")
    assert result["message"] == "Already connected"


def test_disconnect(server):
    mock_conn = _connected_mock()
    server._connection = mock_conn
    assert server.disconnect() == {"disconnected": True}
    mock_conn.close.assert_called_once()
    assert server._connection is None


def test_read_holding_registers_tool(server):
    server._connection = _connected_mock()
    with patch.object(server.client, "read_holding_registers", return_value=[1, 2, 3, 4]) as op:
        result = server.read_holding_registers(1, 0, 4)
    op.assert_called_once_with(server._connection, 1, 0, 4)
    assert result == {"address": 0, "values": [1, 2, 3, 4]}


def test_exception_is_reported(server):
    server._connection = _connected_mock()
    error = ModbusExceptionError(0x83, 0x02)
    with patch.object(server.client, "read_input_registers", side_effect=error):
        result = server.read_input_registers(1, 0, 4)
    assert result["kind"] == "exception"
    assert result["exception_code"] == 2
    assert result["description"] == "illegal data address"


def test_no_response_is_reported(server):
    server._connection = _connected_mock()
    with patch.object(server.client, "write_single_coil", side_effect=NoResponseError("late")):
        result = server.write_single_coil(1, 0, True)
    assert result == {"error": "late", "kind": "no_response"}


def test_disconnect_error_marks_connection_lost(server):
    mock_conn = _connected_mock()
    server._connection = mock_conn

    def _fail(conn, *args):
        conn.connected = False
        raise DisconnectedError("reset")

    with patch.object(server.client, "write_multiple_registers", side_effect=_fail):
        result = server.write_multiple_registers(1, 0, [1, 2])
    assert result["kind"] == "disconnected"
    assert result["connected"] is False


def test_write_tools_report_success(server):
    server._connection = _connected_mock()
    with patch.object(server.client, "write_multiple_coils") as op:
        result = server.write_multiple_coils(1, 8, [True, False, True])
    op.assert_called_once()
    assert result == {"success": True, "address": 8, "count": 3}


def test_status_resource(server):
    assert json.loads(server.resource_connection_status()) == {"connected": False}
    server._connection = _connected_mock()
    status = json.loads(server.resource_connection_status())
    assert status["connected"] is True
    assert status["port"] == 502


def test_exception_catalog_resource(server):
    catalog = json.loads(server.resource_exception_codes())
    assert catalog["0x02"] == "illegal data address"
    assert catalog["0x11"] == "gateway target device failed to respond"
