"""Connection defaults and environment-driven settings."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 502
DEFAULT_TIMEOUT = 1.0  # seconds, used for both dial and response read

READ_BUFFER_SIZE = 1024
MAX_READ_ATTEMPTS = 10
MIN_RESPONSE_LENGTH = 10  # MBAP(6) + unit + function + 2 bytes


@dataclass
class ConnectionSettings:
    """Where and how to reach a Modbus TCP server."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls) -> ConnectionSettings:
        """Build settings from ``MODBUS_HOST``, ``MODBUS_PORT`` and ``MODBUS_TIMEOUT``.

        Unset variables fall back to the module defaults.

        Raises:
            ValueError: If a variable is set but cannot be parsed.
        """
        host = os.environ.get("MODBUS_HOST", DEFAULT_HOST)
        port_text = os.environ.get("MODBUS_PORT")
        timeout_text = os.environ.get("MODBUS_TIMEOUT")

        try:
            port = int(port_text) if port_text else DEFAULT_PORT
        except ValueError as e:
            raise ValueError(f"MODBUS_PORT must be an integer, got {port_text!r}") from e
        try:
            timeout = float(timeout_text) if timeout_text else DEFAULT_TIMEOUT
        except ValueError as e:
            raise ValueError(
                f"MODBUS_TIMEOUT must be a number of seconds, got {timeout_text!r}"
            ) from e

        if not 0 < port <= 65535:
            raise ValueError(f"MODBUS_PORT must be 1-65535, got {port}")
        if timeout <= 0:
            raise ValueError(f"MODBUS_TIMEOUT must be positive, got {timeout}")
        return cls(host=host, port=port, timeout=timeout)
