"""MBAP frame builder and response header helpers.

Request layout::

    +----------------+-------------+--------+--------------+---------------------+
    | Transaction ID | Protocol ID | Length |   Unit ID    | Function + fields   |
    | 2 bytes (0)    | 2 bytes (0) | 2 bytes|   1 byte     | variable length     |
    +----------------+-------------+--------+--------------+---------------------+

- Length: big-endian byte count of everything after it (unit id + PDU)
- All multi-byte fields are big-endian

The transaction id is always zero: requests are strictly sequential on a
connection, so responses are not correlated by id.
"""

from __future__ import annotations

MBAP_HEADER_SIZE = 6
MAX_PDU_SIZE = 0xFFFF

# Offsets within a full response frame (header included)
OFF_FUNCTION = 7
OFF_EXCEPTION_CODE = 8
EXCEPTION_FRAME_SIZE = 9  # header + unit + function + exception code

# Offsets within the payload returned to the codecs (header stripped)
PAYLOAD_OFF_FUNCTION = 1
PAYLOAD_OFF_BYTE_COUNT = 2
PAYLOAD_OFF_DATA = 3


def build_header(pdu_length: int) -> bytes:
    """Build the 6-byte MBAP header for a PDU of ``pdu_length`` bytes."""
    if not 0 < pdu_length <= MAX_PDU_SIZE:
        raise ValueError(f"PDU length must be 1-{MAX_PDU_SIZE}, got {pdu_length}")
    return bytes([0, 0, 0, 0]) + pdu_length.to_bytes(2, "big")


def build_frame(pdu: bytes) -> bytes:
    """Prefix ``pdu`` (unit id + function + fields) with its MBAP header."""
    return build_header(len(pdu)) + pdu


def strip_header(frame: bytes) -> bytes:
    """Drop the MBAP header, leaving unit id, function code and data."""
    return frame[MBAP_HEADER_SIZE:]
