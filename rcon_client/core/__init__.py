from .connection import Connection
from .heartbeat import Heartbeat
from .listener import BroadcastListener
from .reconnect import ReconnectPolicy
from .session import Session, SessionState

__all__ = ["Connection", "Heartbeat", "BroadcastListener", "ReconnectPolicy", "Session", "SessionState"]
