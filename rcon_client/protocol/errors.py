from __future__ import annotations

from enum import IntEnum


class ErrorKind(IntEnum):
    """Tagged failure kinds; callers branch on these instead of exception identity."""

    DIAL_ERROR = 1
    CONNECTION_CLOSED = 2
    CONNECTION_ERROR = 3
    AUTHENTICATION_FAILED = 4
    ENCODING_ERROR = 5
    SUBSCRIPTION_ERROR = 6
    NOT_CONNECTED = 7


RETRYABLE_KINDS = frozenset({ErrorKind.DIAL_ERROR, ErrorKind.CONNECTION_CLOSED, ErrorKind.CONNECTION_ERROR})


class RconError(Exception):
    """Structured RCON exception carrying a kind + message."""

    def __init__(self, kind: ErrorKind, message: str = "") -> None:
        self.kind = kind
        self.message = message
        super().__init__(f"{kind.name}: {message}" if message else kind.name)

    @property
    def is_retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS

    @property
    def is_connection_closed(self) -> bool:
        return self.kind is ErrorKind.CONNECTION_CLOSED


__all__ = ["ErrorKind", "RETRYABLE_KINDS", "RconError"]
