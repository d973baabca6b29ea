"""
Asyncio client for the length-prefixed RCON protocol: authenticated command
execution on one connection and optional broadcast listening on a second one.
"""

from .client import RconClient
from .config import ClientConfig, ConfigError, RuntimeOptions, load_config
from .protocol import ErrorKind, RconError

__all__ = ["RconClient", "ClientConfig", "ConfigError", "RuntimeOptions", "load_config", "ErrorKind", "RconError"]
