"""
Wire-level package: packet types, frame codec, response models, broadcast filtering
and the error kinds shared by every layer of the client.
"""

from .commands import PacketType, is_request_type
from .constants import (
    AUTH_FAILED_ID,
    DEFAULT_HEARTBEAT_INTERVAL,
    DIAL_TIMEOUT,
    ENCODING,
    HEARTBEAT_COMMAND,
    MAX_PACKET_SIZE,
    TERMINATOR,
)
from .errors import ErrorKind, RconError
from .filters import classify, compile_pattern, compile_patterns, is_suppressed
from .framing import decode_packet, encode_packet, encode_payload, read_packet
from .messages import Payload, Response, trim_body

__all__ = [
    "PacketType",
    "is_request_type",
    "AUTH_FAILED_ID",
    "DEFAULT_HEARTBEAT_INTERVAL",
    "DIAL_TIMEOUT",
    "ENCODING",
    "HEARTBEAT_COMMAND",
    "MAX_PACKET_SIZE",
    "TERMINATOR",
    "ErrorKind",
    "RconError",
    "classify",
    "compile_pattern",
    "compile_patterns",
    "is_suppressed",
    "decode_packet",
    "encode_packet",
    "encode_payload",
    "read_packet",
    "Payload",
    "Response",
    "trim_body",
]
