"""Shared test doubles."""

from __future__ import annotations

import pytest


class FakeStream:
    """In-memory stand-in for a TCP connection.

    ``chunks`` is replayed one item per read: bytes are returned, exceptions
    are raised. Once exhausted, reads time out.
    """

    def __init__(self, chunks=(), timeout: float = 0.5) -> None:
        self.chunks = list(chunks)
        self.timeout = timeout
        self.connected = True
        self.written: list[bytes] = []
        self.reads = 0
        self.deadlines: list[float] = []
        self.close_calls = 0
        self.write_error: Exception | None = None

    def write(self, data: bytes) -> None:
        if self.write_error is not None:
            raise self.write_error
        self.written.append(bytes(data))

    def read(self, size: int, deadline: float) -> bytes:
        self.reads += 1
        self.deadlines.append(deadline)
        if not self.chunks:
            raise TimeoutError("timed out")
        item = self.chunks.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item[:size]

    def close(self) -> None:
        self.close_calls += 1
        self.connected = False


@pytest.fixture
def make_stream():
    """Factory for a ``FakeStream`` replaying the given chunks."""
    return FakeStream
