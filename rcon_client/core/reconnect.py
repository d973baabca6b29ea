from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, TypeVar

from rcon_client.protocol.errors import RconError

if TYPE_CHECKING:
    from rcon_client.config import ClientConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ReconnectPolicy:
    """Retry count and exponential backoff used to recover a dropped connection."""

    max_retries: int = 3
    backoff: float = 1.0
    max_backoff: float = 30.0

    @classmethod
    def from_config(cls, config: "ClientConfig") -> "ReconnectPolicy":
        return cls(
            max_retries=config.max_reconnect_retries,
            backoff=config.reconnect_backoff,
            max_backoff=config.max_reconnect_backoff,
        )

    def delays(self):
        delay = self.backoff
        for _ in range(self.max_retries):
            yield delay
            delay = min(delay * 2, self.max_backoff)

    async def run(self, operation: Callable[[], Awaitable[T]], *, label: str = "rcon") -> T:
        """
        Run ``operation`` now, then once per backoff delay while it fails with a retryable error.
        Non-retryable errors (such as a rejected password) are raised immediately.
        """
        attempt = 1
        last_error: Optional[RconError] = None
        delays = self.delays()
        while True:
            try:
                logger.info("[%s] Reconnect attempt %s", label, attempt)
                return await operation()
            except RconError as exc:
                if not exc.is_retryable:
                    raise
                last_error = exc
                logger.warning("[%s] Reconnect attempt %s failed: %s", label, attempt, exc)
            delay = next(delays, None)
            if delay is None:
                break
            await asyncio.sleep(delay)
            attempt += 1
        assert last_error is not None
        raise last_error


__all__ = ["ReconnectPolicy"]
