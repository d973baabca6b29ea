from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Optional

from rcon_client.protocol.errors import RconError

logger = logging.getLogger(__name__)


class Heartbeat:
    """Periodically runs a keep-alive coroutine so idle connections are not dropped."""

    def __init__(
        self,
        beat: Callable[[], Awaitable[Any]],
        *,
        interval: Callable[[], float],
        on_error: Optional[Callable[[RconError], None]] = None,
        name: str = "rcon-heartbeat",
    ) -> None:
        self.beat = beat
        self.interval = interval
        self.on_error = on_error
        self.name = name
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name=self.name)

    async def stop(self) -> None:
        task, self._task = self._task, None
        self._stop_event.set()
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        stop_event = self._stop_event
        while True:
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval())
                return
            except asyncio.TimeoutError:
                pass
            try:
                logger.debug("%s tick", self.name)
                await self.beat()
            except RconError as exc:
                logger.warning("%s failed: %s", self.name, exc)
                if self.on_error:
                    self.on_error(exc)
                return
            if stop_event.is_set():
                return


__all__ = ["Heartbeat"]
