from __future__ import annotations

import string

from pydantic import BaseModel, ConfigDict, Field

from .commands import PacketType
from .constants import AUTH_FAILED_ID, ENCODING

_TRIM_CHARS = string.whitespace + "\x00"


def trim_body(text: str) -> str:
    """Strip surrounding whitespace and stray NUL padding from a response body."""
    return text.strip(_TRIM_CHARS)


class Payload(BaseModel):
    """Outbound logical request: a packet type plus a raw body."""

    model_config = ConfigDict(frozen=True)

    type: PacketType = Field(..., description="AUTH or EXEC_COMMAND")
    body: bytes = Field(default=b"", description="Raw body, sent without escaping")

    @classmethod
    def auth(cls, password: str) -> "Payload":
        return cls(type=PacketType.AUTH, body=password.encode(ENCODING))

    @classmethod
    def command(cls, text: str) -> "Payload":
        return cls(type=PacketType.EXEC_COMMAND, body=text.encode(ENCODING))


class Response(BaseModel):
    """A decoded inbound frame. Created per read and consumed immediately."""

    model_config = ConfigDict(frozen=True)

    request_id: int
    type: int
    body: bytes = b""
    suppressed: bool = Field(default=False, description="Body matched a non-broadcast pattern")

    @property
    def text(self) -> str:
        return self.body.decode(ENCODING, errors="replace")

    @property
    def trimmed(self) -> str:
        return trim_body(self.text)

    @property
    def auth_failed(self) -> bool:
        return self.request_id == AUTH_FAILED_ID


__all__ = ["Payload", "Response", "trim_body"]
