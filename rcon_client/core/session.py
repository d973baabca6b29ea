from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Optional

from rcon_client.config import ClientConfig, RuntimeOptions
from rcon_client.protocol.constants import HEARTBEAT_COMMAND
from rcon_client.protocol.errors import ErrorKind, RconError
from rcon_client.protocol.messages import Payload

from .auth import authenticate
from .connection import Connection
from .heartbeat import Heartbeat
from .reconnect import ReconnectPolicy

logger = logging.getLogger(__name__)

DisconnectCallback = Callable[[Optional[BaseException], bool], Awaitable[None]]
ErrorCallback = Callable[[RconError], None]


class SessionState(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    READY = "ready"
    RECONNECTING = "reconnecting"


class Session:
    """The main command connection: authenticate once, then run commands one at a time."""

    def __init__(
        self,
        config: ClientConfig,
        options: Callable[[], RuntimeOptions],
        *,
        on_disconnect: Optional[DisconnectCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        label: str = "main",
    ) -> None:
        self.config = config
        self.options = options
        self.on_disconnect = on_disconnect
        self.on_error = on_error
        self.label = label
        self.policy = ReconnectPolicy.from_config(config)
        self.state = SessionState.DISCONNECTED
        self._connection: Optional[Connection] = None
        self._last_reported: Optional[RconError] = None
        self._reconnect_lock = asyncio.Lock()
        self._heartbeat = Heartbeat(
            self._send_heartbeat,
            interval=lambda: self.options().heartbeat_interval,
            on_error=self._report,
            name=f"{label}-heartbeat",
        )

    @property
    def connected(self) -> bool:
        return self.state is SessionState.READY

    @property
    def heartbeat_running(self) -> bool:
        return self._heartbeat.running

    async def connect(self) -> None:
        await self._open()
        logger.info("[%s] Connected to %s", self.label, self.config.address)
        if self.options().send_heartbeat_command:
            self._heartbeat.start()
            logger.debug("[%s] Heartbeat started", self.label)

    async def execute(self, command: str) -> str:
        connection = self._require_connection()
        logger.debug("[%s] Executing command: %s", self.label, command)
        try:
            response = await connection.exchange(Payload.command(command))
        except RconError as exc:
            if not exc.is_connection_closed:
                raise
            await self._connection_lost(connection, exc)
            return ""
        return response.trimmed if response is not None else ""

    async def disconnect(self, notify: bool = True) -> bool:
        """Close the socket. Returns False when there was nothing to close."""
        await self._heartbeat.stop()
        connection, self._connection = self._connection, None
        self.state = SessionState.DISCONNECTED
        if connection is None:
            return False
        logger.info("[%s] Disconnecting from %s", self.label, self.config.address)
        await connection.close()
        if notify and self.on_disconnect:
            await self.on_disconnect(None, True)
        return True

    async def _open(self) -> None:
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
        self.state = SessionState.CONNECTING
        try:
            connection = await Connection.open(self.config.host, self.config.port, label=self.label)
        except RconError:
            self.state = SessionState.DISCONNECTED
            raise
        self._connection = connection
        self.state = SessionState.AUTHENTICATING
        await authenticate(connection, self.config.password)
        self.state = SessionState.READY

    async def _connection_lost(self, connection: Connection, exc: RconError) -> None:
        async with self._reconnect_lock:
            if connection is not self._connection:
                if self._connection is None:
                    raise exc
                return
            if self.state is not SessionState.DISCONNECTED and self.on_disconnect:
                await self.on_disconnect(exc, False)
            if not self.config.attempt_reconnect:
                self.state = SessionState.DISCONNECTED
                self._connection = None
                await connection.close()
                raise exc

            logger.info("[%s] Connection closed, attempting to reconnect...", self.label)
            self.state = SessionState.RECONNECTING
            try:
                await self.policy.run(self._open, label=self.label)
            except RconError as err:
                logger.error("[%s] Failed to reconnect: %s", self.label, err)
                self.state = SessionState.DISCONNECTED
                self._report(err)
                raise
            logger.info("[%s] Reconnected to %s", self.label, self.config.address)
            if self.options().send_heartbeat_command:
                self._heartbeat.start()

    async def _send_heartbeat(self) -> None:
        if not self.options().send_heartbeat_command:
            return
        await self.execute(HEARTBEAT_COMMAND)

    def _require_connection(self) -> Connection:
        if self._connection is None:
            raise RconError(ErrorKind.NOT_CONNECTED, f"Not connected to {self.config.address}")
        return self._connection

    def _report(self, exc: RconError) -> None:
        # a failed reconnect inside a heartbeat tick reaches here twice
        if exc is self._last_reported:
            return
        self._last_reported = exc
        if self.on_error:
            self.on_error(exc)


__all__ = ["Session", "SessionState"]
