from __future__ import annotations

import asyncio
import itertools
import logging
import socket
from typing import Optional

from rcon_client.protocol import framing
from rcon_client.protocol.commands import is_request_type
from rcon_client.protocol.constants import DIAL_TIMEOUT
from rcon_client.protocol.errors import ErrorKind, RconError
from rcon_client.protocol.messages import Payload, Response

logger = logging.getLogger(__name__)


class Connection:
    """
    One TCP socket to the RCON server.

    Writes and request/response exchanges are serialised by ``_lock``; reads by
    ``_read_lock``. An exchange holds both, so no two exchanges are ever in flight
    and a background read loop never steals an exchange's reply.
    """

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter, label: str = "rcon") -> None:
        self.reader = reader
        self.writer = writer
        self.label = label
        self.peername = str(writer.get_extra_info("peername"))
        self._lock = asyncio.Lock()
        self._read_lock = asyncio.Lock()
        self._request_ids = itertools.count(1)
        self._closed = False

    @classmethod
    async def open(cls, host: str, port: int, *, timeout: float = DIAL_TIMEOUT, label: str = "rcon") -> "Connection":
        logger.debug("[%s] Dialing %s:%s", label, host, port)
        try:
            reader, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise RconError(ErrorKind.DIAL_ERROR, f"Timed out connecting to {host}:{port}") from exc
        except OSError as exc:
            raise RconError(ErrorKind.DIAL_ERROR, f"Could not connect to {host}:{port}: {exc}") from exc

        sock = writer.get_extra_info("socket")
        if sock is not None:
            try:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
            except OSError as exc:
                writer.close()
                raise RconError(ErrorKind.CONNECTION_ERROR, f"Could not enable keep-alive: {exc}") from exc
        logger.debug("[%s] Connected to %s:%s with keep-alive enabled", label, host, port)
        return cls(reader, writer, label=label)

    @property
    def closed(self) -> bool:
        return self._closed

    async def exchange(self, payload: Payload) -> Optional[Response]:
        """Write one request and read the frame that answers it."""
        async with self._lock:
            async with self._read_lock:
                await self._write(payload)
                return await self._read()

    async def send(self, payload: Payload) -> None:
        """Write without waiting for a reply; the reply is left for the read loop."""
        async with self._lock:
            await self._write(payload)

    async def receive(self) -> Optional[Response]:
        async with self._read_lock:
            return await self._read()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except (ConnectionError, OSError) as exc:
            logger.debug("[%s] Error while closing %s: %s", self.label, self.peername, exc)
        logger.debug("[%s] Closed connection to %s", self.label, self.peername)

    async def _write(self, payload: Payload) -> None:
        if not is_request_type(payload.type):
            raise RconError(ErrorKind.ENCODING_ERROR, f"Packet type {payload.type!r} cannot be sent by a client")
        if self._closed or self.writer.is_closing():
            raise RconError(ErrorKind.CONNECTION_CLOSED, "Connection already closed")
        data = framing.encode_payload(next(self._request_ids), payload)
        try:
            self.writer.write(data)
            await self.writer.drain()
        except (ConnectionResetError, BrokenPipeError, ConnectionAbortedError) as exc:
            raise RconError(ErrorKind.CONNECTION_CLOSED, f"Connection lost: {exc}") from exc
        except OSError as exc:
            raise RconError(ErrorKind.CONNECTION_ERROR, f"Send failed: {exc}") from exc
        logger.debug("[%s] Sent %s packet (%s bytes)", self.label, payload.type.name, len(data))

    async def _read(self) -> Optional[Response]:
        if self._closed:
            raise RconError(ErrorKind.CONNECTION_CLOSED, "Connection already closed")
        response = await framing.read_packet(self.reader)
        if response is not None:
            logger.debug("[%s] Received packet id=%s type=%s", self.label, response.request_id, response.type)
        return response


__all__ = ["Connection"]
