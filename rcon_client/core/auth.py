from __future__ import annotations

import logging

from rcon_client.protocol.errors import ErrorKind, RconError
from rcon_client.protocol.messages import Payload

from .connection import Connection

logger = logging.getLogger(__name__)


async def authenticate(connection: Connection, password: str) -> None:
    """
    Send the password and wait for the server's answer.
    Only a reply with request id -1 means rejection; the connection is left open either way.
    """
    response = await connection.exchange(Payload.auth(password))
    if response is not None and response.auth_failed:
        logger.warning("[%s] Authentication rejected by %s", connection.label, connection.peername)
        raise RconError(ErrorKind.AUTHENTICATION_FAILED, "Server rejected the RCON password")
    logger.debug("[%s] Authenticated with %s", connection.label, connection.peername)


__all__ = ["authenticate"]
