"""Request/response exchange over a byte stream.

:func:`query` frames a request, writes it, and reassembles the response
from as many reads as the stream needs, under one deadline that covers the
whole response.
"""

from __future__ import annotations

import logging
import time

from ..config import MAX_READ_ATTEMPTS, MIN_RESPONSE_LENGTH, READ_BUFFER_SIZE
from ..errors import (
    DisconnectedError,
    MalformedResponseError,
    ModbusExceptionError,
    NoResponseError,
)
from ..protocol.commands import Request
from ..protocol.exceptions import is_exception_function
from ..protocol.framing import (
    EXCEPTION_FRAME_SIZE,
    OFF_EXCEPTION_CODE,
    OFF_FUNCTION,
    build_frame,
    strip_header,
)
from .tcp_connection import ByteStream

logger = logging.getLogger(__name__)


def check_exception(frame: bytes) -> None:
    """Raise if ``frame`` (header included) is a Modbus exception response.

    Needs at least 9 bytes; shorter input is left for the caller to judge.

    Raises:
        ModbusExceptionError: If the echoed function code has its high bit set.
    """
    if len(frame) < EXCEPTION_FRAME_SIZE:
        return
    function_code = frame[OFF_FUNCTION]
    if is_exception_function(function_code):
        raise ModbusExceptionError(function_code, frame[OFF_EXCEPTION_CODE], bytes(frame))


def query(stream: ByteStream | None, request: Request, timeout: float | None = None) -> bytes:
    """Send ``request`` and return the response with its MBAP header removed.

    The returned bytes start with the unit id, then the function code and
    the function-specific fields.

    Args:
        stream: An open connection.
        request: The request to send.
        timeout: Seconds to wait for the complete response. Defaults to the
            stream's own timeout.

    Raises:
        DisconnectedError: Not connected, write failure, hard read error or
            the peer closed the connection.
        NoResponseError: The deadline passed before the response was complete.
        ModbusExceptionError: The server returned an exception response.
        MalformedResponseError: The response stayed short of the expected
            length, or is shorter than any valid response.
    """
    if stream is None or not stream.connected:
        raise DisconnectedError("Not connected to a Modbus server")
    if timeout is None:
        timeout = stream.timeout

    frame = build_frame(request.pdu)
    logger.debug("TX %s", frame.hex(" "))
    try:
        stream.write(frame)
    except OSError as e:
        raise DisconnectedError(f"Write failed: {e}") from e

    received = bytearray()
    exception_checked = False
    deadline = time.monotonic() + timeout

    for _ in range(MAX_READ_ATTEMPTS):
        try:
            chunk = stream.read(READ_BUFFER_SIZE, deadline)
        except TimeoutError as e:
            logger.debug("Read timed out after %d bytes", len(received))
            raise NoResponseError(
                f"No complete response within {timeout}s "
                f"({len(received)}/{request.expected_length} bytes)",
                bytes(received),
            ) from e
        except OSError as e:
            raise DisconnectedError(f"Read failed: {e}") from e
        if not chunk:
            raise DisconnectedError("Connection closed by the server")

        received += chunk
        logger.debug("RX %s", chunk.hex(" "))

        if not exception_checked and len(received) >= EXCEPTION_FRAME_SIZE:
            exception_checked = True
            check_exception(received)

        if len(received) >= request.expected_length:
            break
    else:
        raise MalformedResponseError(
            f"Response incomplete after {MAX_READ_ATTEMPTS} reads "
            f"({len(received)}/{request.expected_length} bytes)",
            bytes(received),
        )

    if len(received) < MIN_RESPONSE_LENGTH:
        raise MalformedResponseError(
            f"Response too short: {len(received)} bytes", bytes(received)
        )

    return strip_header(bytes(received))
