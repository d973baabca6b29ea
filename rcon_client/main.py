from __future__ import annotations

import asyncio
import logging
import os
from typing import Optional

from rcon_client.client import RconClient
from rcon_client.config import load_config

logger = logging.getLogger(__name__)


def _log_broadcast(body: str) -> None:
    logger.info("Broadcast: %s", body)


def _log_disconnect(error: Optional[BaseException], expected: bool) -> None:
    if expected:
        logger.info("Disconnected")
    else:
        logger.warning("Connection lost: %s", error)


async def _drain_errors(errors: asyncio.Queue) -> None:
    while True:
        exc = await errors.get()
        logger.error("RCON error: %s", exc)


async def run_client() -> None:
    config = load_config(broadcast_handler=_log_broadcast, disconnect_handler=_log_disconnect)
    logging.basicConfig(level=os.getenv("RCON_LOG_LEVEL", "INFO"))
    subscriptions = [c.strip() for c in os.getenv("RCON_SUBSCRIPTIONS", "").split(",") if c.strip()]
    errors: asyncio.Queue = asyncio.Queue()

    async with RconClient(config) as client:
        command = os.getenv("RCON_COMMAND")
        if command:
            logger.info("%s", await client.exec_command(command))
        if not config.enable_broadcasts:
            return
        await client.listen_for_broadcasts(subscriptions, errors)
        await _drain_errors(errors)


def main() -> None:
    try:
        asyncio.run(run_client())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
