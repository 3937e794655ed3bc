"""TCP connection to a Modbus server.

The connection is a plain byte stream: it knows nothing about MBAP frames.
Reads take an absolute deadline (a ``time.monotonic()`` value) so that the
framer can bound the wait for a whole response across several reads.
"""

from __future__ import annotations

import logging
import socket
import time
from typing import Protocol

from ..config import DEFAULT_PORT, DEFAULT_TIMEOUT
from ..errors import DisconnectedError

logger = logging.getLogger(__name__)


class ByteStream(Protocol):
    """What the framer needs from a session."""

    @property
    def connected(self) -> bool: ...

    @property
    def timeout(self) -> float: ...

    def write(self, data: bytes) -> None: ...

    def read(self, size: int, deadline: float) -> bytes: ...

    def close(self) -> None: ...


class TCPConnection:
    """Manages one TCP connection to a Modbus server.

    Usage::

        conn = TCPConnection("192.168.1.10", 502, timeout=1.0)
        conn.open()
        conn.write(frame_bytes)
        chunk = conn.read(1024, time.monotonic() + conn.timeout)
        conn.close()
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._host = host
        self._port = port
        self._timeout = timeout
        self._sock: socket.socket | None = None

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def connected(self) -> bool:
        return self._sock is not None

    def __enter__(self) -> TCPConnection:
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def open(self) -> None:
        """Dial the server, waiting at most ``timeout`` seconds.

        Raises:
            DisconnectedError: If the connection cannot be established.
        """
        if self._sock is not None:
            return

        try:
            sock = socket.create_connection((self._host, self._port), timeout=self._timeout)
        except OSError as e:
            logger.debug("Dial %s:%d failed: %s", self._host, self._port, e)
            raise DisconnectedError(
                f"Could not connect to {self._host}:{self._port}: {e}"
            ) from e

        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        self._sock = sock
        logger.info("Connected to %s:%d", self._host, self._port)

    def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._sock is None:
            return

        try:
            self._sock.close()
        except OSError as e:
            logger.warning("Error closing socket: %s", e)
        finally:
            self._sock = None
            logger.info("Disconnected from %s:%d", self._host, self._port)

    def write(self, data: bytes) -> None:
        """Send all of ``data``.

        Raises:
            DisconnectedError: If not connected.
            OSError: If the send fails.
        """
        sock = self._require_socket()
        sock.settimeout(self._timeout)
        sock.sendall(data)

    def read(self, size: int, deadline: float) -> bytes:
        """Read up to ``size`` bytes, waiting no later than ``deadline``.

        Returns:
            The bytes read; ``b""`` if the peer closed the connection.

        Raises:
            DisconnectedError: If not connected.
            TimeoutError: If the deadline passes with nothing to read.
            OSError: On any other socket failure.
        """
        sock = self._require_socket()
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise TimeoutError("read deadline exceeded")
        sock.settimeout(remaining)
        return sock.recv(size)

    def _require_socket(self) -> socket.socket:
        if self._sock is None:
            raise DisconnectedError("Not connected to a Modbus server")
        return self._sock

    def __repr__(self) -> str:
        state = "open" if self.connected else "closed"
        return f"TCPConnection({self._host}:{self._port}, {state})"
