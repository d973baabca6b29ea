from __future__ import annotations

import asyncio
import struct
from typing import Optional

from .constants import (
    AUTH_FAILED_ID,
    HEADER_FORMAT,
    HEADER_SIZE,
    LENGTH_FORMAT,
    MAX_PACKET_SIZE,
    MIN_PACKET_SIZE,
    TERMINATOR,
)
from .errors import ErrorKind, RconError
from .messages import Payload, Response

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1
_LENGTH_SIZE = struct.calcsize(LENGTH_FORMAT)


def encode_packet(request_id: int, packet_type: int, body: bytes) -> bytes:
    """Encode one frame: length + request id + type + body + two NUL bytes, little-endian."""
    if not isinstance(body, (bytes, bytearray, memoryview)):
        raise RconError(ErrorKind.ENCODING_ERROR, f"Body must be bytes, got {type(body).__name__}")
    if not (_INT32_MIN <= request_id <= _INT32_MAX):
        raise RconError(ErrorKind.ENCODING_ERROR, f"Request id {request_id} does not fit int32")
    body = bytes(body)
    length = HEADER_SIZE + len(body) + len(TERMINATOR)
    if length > MAX_PACKET_SIZE:
        raise RconError(
            ErrorKind.ENCODING_ERROR,
            f"Packet length {length} exceeds maximum of {MAX_PACKET_SIZE} bytes",
        )
    return struct.pack(LENGTH_FORMAT, length) + struct.pack(HEADER_FORMAT, request_id, int(packet_type)) + body + TERMINATOR


def encode_payload(request_id: int, payload: Payload) -> bytes:
    return encode_packet(request_id, payload.type, payload.body)


def decode_packet(data: bytes) -> Optional[Response]:
    """
    Decode a frame that has already had its 4-byte length prefix removed.
    Returns None for an empty keep-alive ack; an auth failure frame is always returned.
    """
    if len(data) < MIN_PACKET_SIZE:
        raise RconError(ErrorKind.CONNECTION_ERROR, f"Malformed packet: {len(data)} bytes is below the minimum")
    request_id, packet_type = struct.unpack_from(HEADER_FORMAT, data, 0)
    body = data[HEADER_SIZE:-len(TERMINATOR)]
    if not body and request_id != AUTH_FAILED_ID:
        return None
    return Response(request_id=request_id, type=packet_type, body=body)


async def read_packet(reader: asyncio.StreamReader) -> Optional[Response]:
    """Read a single length-prefixed frame from the stream and decode it."""
    try:
        prefix = await reader.readexactly(_LENGTH_SIZE)
        (length,) = struct.unpack(LENGTH_FORMAT, prefix)
        if length < MIN_PACKET_SIZE:
            raise RconError(ErrorKind.CONNECTION_ERROR, f"Malformed packet length {length}")
        data = await reader.readexactly(length)
    except asyncio.IncompleteReadError as exc:
        raise RconError(ErrorKind.CONNECTION_CLOSED, "Stream ended before a complete packet was read") from exc
    except (ConnectionResetError, ConnectionAbortedError, BrokenPipeError) as exc:
        raise RconError(ErrorKind.CONNECTION_CLOSED, f"Connection lost: {exc}") from exc
    except OSError as exc:
        # the reader keeps a transport error and re-raises it on every later read
        if reader.exception() is not None or reader.at_eof():
            raise RconError(ErrorKind.CONNECTION_CLOSED, f"Connection lost: {exc}") from exc
        raise RconError(ErrorKind.CONNECTION_ERROR, f"Read failed: {exc}") from exc
    return decode_packet(data)


__all__ = ["encode_packet", "encode_payload", "decode_packet", "read_packet"]
