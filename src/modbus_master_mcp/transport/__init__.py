"""Transport layer: TCP connection and request/response exchange."""

from .tcp_connection import ByteStream, TCPConnection
from .framer import query
