"""Protocol-wide constants for the RCON wire format."""

ENCODING = "utf-8"
TERMINATOR = b"\x00\x00"
LENGTH_FORMAT = "<i"
HEADER_FORMAT = "<ii"
HEADER_SIZE = 8  # request id + type
MIN_PACKET_SIZE = HEADER_SIZE + len(TERMINATOR)
MAX_PACKET_SIZE = 4096  # largest length field a server is required to accept
AUTH_FAILED_ID = -1
HEARTBEAT_COMMAND = "Alive"
DEFAULT_HEARTBEAT_INTERVAL = 30.0  # seconds
DIAL_TIMEOUT = 10.0  # seconds

__all__ = [
    "ENCODING",
    "TERMINATOR",
    "LENGTH_FORMAT",
    "HEADER_FORMAT",
    "HEADER_SIZE",
    "MIN_PACKET_SIZE",
    "MAX_PACKET_SIZE",
    "AUTH_FAILED_ID",
    "HEARTBEAT_COMMAND",
    "DEFAULT_HEARTBEAT_INTERVAL",
    "DIAL_TIMEOUT",
]
