from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

from rcon_client.config import (
    BroadcastHandler,
    ClientConfig,
    DisconnectHandler,
    Interval,
    RuntimeOptions,
    interval_seconds,
)
from rcon_client.core import BroadcastListener, Session
from rcon_client.core.callbacks import invoke
from rcon_client.protocol.errors import RconError
from rcon_client.protocol.filters import PatternLike, compile_pattern

logger = logging.getLogger(__name__)


class RconClient:
    """
    RCON client with one command connection and an optional broadcast connection.

    Commands run on the main session. ``listen_for_broadcasts`` opens a second
    connection whose pushed frames are passed to the broadcast handler. Errors raised
    on background tasks (heartbeats, the broadcast reader) are logged and put on the
    error queue given to ``listen_for_broadcasts``.
    """

    def __init__(self, config: ClientConfig) -> None:
        self.config = config
        self._options: RuntimeOptions = config.runtime_options()
        self._errors: Optional[asyncio.Queue] = None
        if config.debug:
            logging.getLogger("rcon_client").setLevel(logging.DEBUG)
        self.session = Session(config, self.options, on_disconnect=self._handle_disconnect, on_error=self._report_error)
        self.listener = BroadcastListener(
            config, self.options, on_disconnect=self._handle_disconnect, on_error=self._report_error
        )

    @property
    def address(self) -> str:
        return self.config.address

    def options(self) -> RuntimeOptions:
        """Current runtime options snapshot."""
        return self._options

    async def connect(self) -> None:
        logger.debug("Beginning dial to %s", self.address)
        await self.session.connect()

    async def disconnect(self) -> None:
        closed_broadcast = await self.listener.stop()
        closed_main = await self.session.disconnect(notify=False)
        if closed_main or closed_broadcast:
            logger.debug("Calling disconnect handler")
            await self._handle_disconnect(None, True)

    async def exec_command(self, command: str) -> str:
        return await self.session.execute(command)

    async def listen_for_broadcasts(
        self, subscriptions: Iterable[str] = (), errors: Optional[asyncio.Queue] = None
    ) -> None:
        if errors is not None:
            self._errors = errors
        if not self.config.enable_broadcasts:
            logger.info("Broadcasts are disabled; not opening a broadcast connection")
            return
        logger.debug("Opening broadcast socket")
        await self.listener.start(subscriptions)

    def set_broadcast_handler(self, handler: Optional[BroadcastHandler]) -> None:
        """
        Replace the broadcast handler. Note that heartbeat echoes also arrive on the
        broadcast connection; add a non-broadcast pattern to keep them out of the handler.
        """
        self._options = self._options.with_changes(broadcast_handler=handler)
        logger.debug("Broadcast handler set")

    def set_disconnect_handler(self, handler: Optional[DisconnectHandler]) -> None:
        self._options = self._options.with_changes(disconnect_handler=handler)
        logger.debug("Disconnect handler set")

    def set_send_heartbeat_command(self, enabled: bool) -> None:
        self._options = self._options.with_changes(send_heartbeat_command=enabled)
        logger.debug("Heartbeat command set to %s", enabled)

    def set_heartbeat_interval(self, interval: Interval) -> None:
        self._options = self._options.with_changes(heartbeat_interval=interval_seconds(interval))
        logger.debug("Heartbeat interval set to %ss", self._options.heartbeat_interval)

    def add_non_broadcast_pattern(self, pattern: PatternLike) -> None:
        patterns = self._options.non_broadcast_patterns + (compile_pattern(pattern),)
        self._options = self._options.with_changes(non_broadcast_patterns=patterns)
        logger.debug("Non broadcast pattern added")

    async def _handle_disconnect(self, error: Optional[BaseException], expected: bool) -> None:
        await invoke(self._options.disconnect_handler, error, expected)

    def _report_error(self, exc: RconError) -> None:
        logger.warning("Background error: %s", exc)
        if self._errors is not None:
            self._errors.put_nowait(exc)

    async def __aenter__(self) -> "RconClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.disconnect()


__all__ = ["RconClient"]
