from __future__ import annotations

from enum import IntEnum
from typing import Union


class PacketType(IntEnum):
    """
    Packet types understood by the server.
    Auth responses come back with type 2 as well, so inbound types are kept as plain ints.
    """

    RESPONSE_VALUE = 0
    EXEC_COMMAND = 2
    AUTH = 3


REQUEST_TYPES = frozenset({PacketType.AUTH, PacketType.EXEC_COMMAND})


def is_request_type(value: Union[int, PacketType]) -> bool:
    """Return True when value is one of the two request types a client may send."""
    try:
        return PacketType(value) in REQUEST_TYPES
    except ValueError:
        return False


__all__ = ["PacketType", "REQUEST_TYPES", "is_request_type"]
