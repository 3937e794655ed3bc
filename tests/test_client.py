"""End-to-end tests for the public Modbus operations over a fake stream."""

import pytest

from modbus_master_mcp.client import (
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
from modbus_master_mcp.errors import (
    DataLengthMismatchError,
    DisconnectedError,
    ErrorKind,
    MalformedResponseError,
    ModbusExceptionError,
    NoResponseError,
)


def _response(pdu_hex: str) -> bytes:
    """Prefix a unit id + PDU hex string with its MBAP header."""
    pdu = bytes.fromhex(pdu_hex)
    return bytes([0, 0, 0, 0]) + len(pdu).to_bytes(2, "big") + pdu


def test_read_holding_registers(make_stream):
    """Unit 1, addr 0, count 4 decodes to [1, 2, 3, 4]."""
    stream = make_stream([bytes.fromhex("00000000000b" "0103080001000200030004")])
    assert read_holding_registers(stream, 1, 0, 4) == [1, 2, 3, 4]
    assert stream.written == [bytes.fromhex("000000000006" "010300000004")]


def test_read_input_registers(make_stream):
    stream = make_stream([_response("010404ffff8000")])
    assert read_input_registers(stream, 1, 0x10, 2) == [0xFFFF, 0x8000]
    assert stream.written[0][7] == 0x04


def test_read_coils(make_stream):
    stream = make_stream([_response("010102ad01")])
    assert read_coils(stream, 1, 0, 9) == [True, False, True, True, False, True, False, True, True]


def test_read_discrete_inputs(make_stream):
    stream = make_stream([_response("01020105")])
    assert read_discrete_inputs(stream, 1, 0, 3) == [True, False, True]
    assert stream.written[0][7] == 0x02


def test_read_registers_length_mismatch(make_stream):
    """Declared byte count 8 with only 6 data bytes is rejected."""
    stream = make_stream([_response("010308000100020003")])
    with pytest.raises(DataLengthMismatchError):
        read_holding_registers(stream, 1, 0, 3)
    assert stream.connected


@pytest.mark.parametrize("function_code", ["01", "02"])
def test_read_bits_length_mismatch(make_stream, function_code):
    stream = make_stream([_response(f"01{function_code}03ff0101")])
    reader = read_coils if function_code == "01" else read_discrete_inputs
    with pytest.raises(DataLengthMismatchError):
        reader(stream, 1, 0, 9)


@pytest.mark.parametrize("reader", [read_holding_registers, read_input_registers])
def test_read_registers_count_mismatch(make_stream, reader):
    """A self-consistent frame carrying fewer registers than requested is rejected."""
    function_code = "03" if reader is read_holding_registers else "04"
    stream = make_stream([_response(f"01{function_code}080001000200030004")])
    with pytest.raises(DataLengthMismatchError):
        reader(stream, 1, 0, 3)


def test_exception_response(make_stream):
    """01 83 02 reports an illegal data address, not a length mismatch."""
    stream = make_stream([_response("018302")])
    with pytest.raises(ModbusExceptionError) as exc_info:
        read_holding_registers(stream, 1, 0, 4)
    assert exc_info.value.kind is ErrorKind.EXCEPTION
    assert exc_info.value.description == "illegal data address"
    assert stream.connected
    assert stream.close_calls == 0


def test_write_single_coil(make_stream):
    stream = make_stream([_response("01050003ff00")])
    write_single_coil(stream, 1, 3, True)
    assert stream.written == [_response("01050003ff00")]


def test_write_single_register(make_stream):
    stream = make_stream([_response("010600000001")])
    write_single_register(stream, 1, 0, 1)
    assert stream.written == [_response("010600000001")]


def test_write_multiple_coils(make_stream):
    """Nine coils encode byte count 2 and packed bytes AD 01."""
    stream = make_stream([_response("010f00000009")])
    write_multiple_coils(
        stream, 1, 0, [True, False, True, True, False, True, False, True, True]
    )
    assert stream.written == [_response("010f0000000902ad01")]


def test_write_multiple_registers(make_stream):
    stream = make_stream([_response("011000010003")])
    write_multiple_registers(stream, 1, 1, [2, 3, 4])
    assert stream.written == [_response("01100001000306000200030004")]


def test_write_echo_wrong_function(make_stream):
    stream = make_stream([_response("010500000001")])
    with pytest.raises(MalformedResponseError):
        write_single_register(stream, 1, 0, 1)


def test_write_exception(make_stream):
    stream = make_stream([_response("019003")])
    with pytest.raises(ModbusExceptionError) as exc_info:
        write_multiple_registers(stream, 1, 0, [1])
    assert exc_info.value.exception_code == 0x03


def test_disconnect_closes_connection(make_stream):
    """A transport failure tears the session down."""
    stream = make_stream([ConnectionResetError("reset")])
    with pytest.raises(DisconnectedError):
        read_coils(stream, 1, 0, 1)
    assert stream.close_calls == 1
    assert not stream.connected


def test_calls_fail_after_disconnect(make_stream):
    stream = make_stream([b"", _response("01010101")])
    with pytest.raises(DisconnectedError):
        read_coils(stream, 1, 0, 1)
    with pytest.raises(DisconnectedError):
        read_coils(stream, 1, 0, 1)
    assert len(stream.written) == 1


def test_no_response_keeps_connection(make_stream):
    stream = make_stream([])
    with pytest.raises(NoResponseError):
        read_input_registers(stream, 1, 0, 1)
    assert stream.connected
    assert stream.close_calls == 0


def test_none_connection():
    with pytest.raises(DisconnectedError):
        read_holding_registers(None, 1, 0, 1)


def test_invalid_input_sends_nothing(make_stream):
    stream = make_stream([])
    with pytest.raises(ValueError):
        write_single_register(stream, 1, 0, 70000)
    assert stream.written == []


def test_client_wrapper(make_stream):
    stream = make_stream([
        _response("010600000001"),
        _response("011000010003"),
        _response("0103080001000200030004"),
    ])
    mb = ModbusClient(stream)
    assert mb.connected
    assert mb.connection is stream
    mb.write_single_register(1, 0, 1)
    mb.write_multiple_registers(1, 1, [2, 3, 4])
    assert mb.read_holding_registers(1, 0, 4) == [1, 2, 3, 4]
