"""Protocol layer: MBAP framing, request builders, and response parsing."""

from .framing import build_frame, strip_header
from .commands import FunctionCode, Request
