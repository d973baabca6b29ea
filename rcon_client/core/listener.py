from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from typing import Iterable, Optional, Tuple

from rcon_client.config import ClientConfig, RuntimeOptions
from rcon_client.protocol.constants import HEARTBEAT_COMMAND
from rcon_client.protocol.errors import ErrorKind, RconError
from rcon_client.protocol.filters import classify
from rcon_client.protocol.messages import Payload, Response

from .auth import authenticate
from .callbacks import invoke
from .connection import Connection
from .heartbeat import Heartbeat
from .reconnect import ReconnectPolicy
from .session import DisconnectCallback, ErrorCallback

logger = logging.getLogger(__name__)


class BroadcastListener:
    """
    Second, independent connection that only receives pushed frames.

    Startup is dial, authenticate, subscribe, then (optionally) heartbeat. A background
    task reads frames forever, drops the ones matching a non-broadcast pattern and hands
    the rest to the broadcast handler. When the server closes the socket the same startup
    sequence is replayed on a fresh connection if reconnecting is enabled.
    """

    def __init__(
        self,
        config: ClientConfig,
        options: Callable[[], RuntimeOptions],
        *,
        on_disconnect: Optional[DisconnectCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        label: str = "broadcast",
    ) -> None:
        self.config = config
        self.options = options
        self.on_disconnect = on_disconnect
        self.on_error = on_error
        self.label = label
        self.policy = ReconnectPolicy.from_config(config)
        self.subscriptions: Tuple[str, ...] = ()
        self._connection: Optional[Connection] = None
        self._task: Optional[asyncio.Task] = None
        self._heartbeat = Heartbeat(
            self._send_heartbeat,
            interval=lambda: self.options().heartbeat_interval,
            on_error=self._report,
            name=f"{label}-heartbeat",
        )

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def heartbeat_running(self) -> bool:
        return self._heartbeat.running

    async def start(self, subscriptions: Iterable[str] = ()) -> None:
        if self.running:
            logger.debug("[%s] Listener already running", self.label)
            return
        self.subscriptions = tuple(subscriptions)
        await self._open()
        self._task = asyncio.create_task(self._read_loop(), name=f"{self.label}-reader")
        logger.info("[%s] Listening for broadcasts from %s", self.label, self.config.address)

    async def stop(self) -> bool:
        """Cancel the read loop and heartbeat and close the socket. Returns False if nothing was open."""
        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await self._heartbeat.stop()
        connection, self._connection = self._connection, None
        if connection is None:
            return False
        logger.info("[%s] Closing broadcast connection", self.label)
        await connection.close()
        return True

    async def _open(self) -> None:
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
        # No read timeout is ever applied here: broadcasts can be arbitrarily far apart.
        connection = await Connection.open(self.config.host, self.config.port, label=self.label)
        try:
            await authenticate(connection, self.config.password)
            for command in self.subscriptions:
                await self._subscribe(connection, command)
        except (RconError, asyncio.CancelledError):
            await connection.close()
            raise
        self._connection = connection
        if self.options().send_heartbeat_command:
            self._heartbeat.start()

    async def _subscribe(self, connection: Connection, command: str) -> None:
        logger.debug("[%s] Subscribing with %r", self.label, command)
        try:
            await connection.exchange(Payload.command(command))
        except RconError as exc:
            raise RconError(ErrorKind.SUBSCRIPTION_ERROR, f"Subscription command {command!r} failed: {exc}") from exc

    async def _read_loop(self) -> None:
        while True:
            connection = self._connection
            if connection is None:
                break
            try:
                response = await connection.receive()
            except RconError as exc:
                if exc.is_connection_closed:
                    if await self._recover(exc):
                        continue
                    break
                self._report(exc)
                await asyncio.sleep(0)
                continue
            if response is not None:
                await self._dispatch(response)

    async def _recover(self, exc: RconError) -> bool:
        logger.info("[%s] Broadcast listener closed: %s", self.label, exc)
        await self._heartbeat.stop()
        if self.config.attempt_reconnect:
            logger.info("[%s] Attempting to reconnect...", self.label)
            try:
                await self.policy.run(self._open, label=self.label)
                logger.info("[%s] Broadcast listener reconnected", self.label)
                return True
            except RconError as err:
                logger.error("[%s] Failed to reconnect: %s", self.label, err)
                self._report(err)

        connection, self._connection = self._connection, None
        if connection is not None:
            await connection.close()
        if self.on_disconnect:
            await self.on_disconnect(exc, False)
        return False

    async def _dispatch(self, response: Response) -> None:
        options = self.options()
        response = classify(response, options.non_broadcast_patterns)
        if response.suppressed:
            logger.debug("[%s] Suppressed non-broadcast frame: %r", self.label, response.text)
            return
        await invoke(options.broadcast_handler, response.text)

    async def _send_heartbeat(self) -> None:
        if not self.options().send_heartbeat_command:
            return
        if self._connection is None:
            raise RconError(ErrorKind.NOT_CONNECTED, "Broadcast connection is not open")
        await self._connection.send(Payload.command(HEARTBEAT_COMMAND))

    def _report(self, exc: RconError) -> None:
        if self.on_error:
            self.on_error(exc)


__all__ = ["BroadcastListener"]
