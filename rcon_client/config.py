from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from datetime import timedelta
from typing import Any, Callable, Dict, Optional, Pattern, Tuple, Union

from dotenv import load_dotenv

from rcon_client.protocol.constants import DEFAULT_HEARTBEAT_INTERVAL
from rcon_client.protocol.filters import PatternLike, compile_patterns

BroadcastHandler = Callable[[str], Any]
DisconnectHandler = Callable[[Optional[BaseException], bool], Any]
Interval = Union[float, int, timedelta]

DEFAULT_CONFIG: Dict[str, Any] = {
    "host": "127.0.0.1",
    "port": 27015,
    "password": "",
    "send_heartbeat_command": False,
    "heartbeat_interval": DEFAULT_HEARTBEAT_INTERVAL,
    "attempt_reconnect": False,
    "enable_broadcasts": False,
    "non_broadcast_patterns": "",
    "debug": False,
    "log_level": "INFO",
    "reconnect_backoff": 1.0,
    "max_reconnect_backoff": 30.0,
    "max_reconnect_retries": 3,
}


class ConfigError(Exception):
    """Raised when configuration values are invalid."""

    pass


def interval_seconds(value: Optional[Interval]) -> float:
    """Normalise an interval to seconds; zero, negative or missing means the default."""
    if value is None:
        return DEFAULT_HEARTBEAT_INTERVAL
    seconds = value.total_seconds() if isinstance(value, timedelta) else float(value)
    return seconds if seconds > 0 else DEFAULT_HEARTBEAT_INTERVAL


@dataclass(frozen=True)
class RuntimeOptions:
    """
    The settings that may change after the client is built.
    Never mutated in place: setters swap in a new instance via ``with_changes``.
    """

    broadcast_handler: Optional[BroadcastHandler] = None
    disconnect_handler: Optional[DisconnectHandler] = None
    send_heartbeat_command: bool = False
    heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL
    non_broadcast_patterns: Tuple[Pattern[str], ...] = ()

    def with_changes(self, **changes: Any) -> "RuntimeOptions":
        return replace(self, **changes)


@dataclass(frozen=True)
class ClientConfig:
    """Immutable client configuration snapshot."""

    host: str
    port: int
    password: str
    send_heartbeat_command: bool = False
    heartbeat_interval: Interval = DEFAULT_HEARTBEAT_INTERVAL
    attempt_reconnect: bool = False
    enable_broadcasts: bool = False
    broadcast_handler: Optional[BroadcastHandler] = None
    disconnect_handler: Optional[DisconnectHandler] = None
    non_broadcast_patterns: Tuple[PatternLike, ...] = field(default_factory=tuple)
    debug: bool = False
    reconnect_backoff: float = 1.0
    max_reconnect_backoff: float = 30.0
    max_reconnect_retries: int = 3

    def __post_init__(self) -> None:
        if not self.host:
            raise ConfigError("host is required")
        try:
            port = int(self.port)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"port must be an integer, got {self.port!r}") from exc
        if not (1 <= port <= 65535):
            raise ConfigError("port must be between 1 and 65535")
        if self.reconnect_backoff < 0 or self.max_reconnect_backoff < 0:
            raise ConfigError("reconnect backoff must not be negative")
        if self.max_reconnect_retries < 0:
            raise ConfigError("max_reconnect_retries must not be negative")
        try:
            patterns = compile_patterns(self.non_broadcast_patterns)
        except Exception as exc:
            raise ConfigError(f"Invalid non-broadcast pattern: {exc}") from exc
        object.__setattr__(self, "port", port)
        object.__setattr__(self, "heartbeat_interval", interval_seconds(self.heartbeat_interval))
        object.__setattr__(self, "non_broadcast_patterns", patterns)

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def runtime_options(self) -> RuntimeOptions:
        return RuntimeOptions(
            broadcast_handler=self.broadcast_handler,
            disconnect_handler=self.disconnect_handler,
            send_heartbeat_command=self.send_heartbeat_command,
            heartbeat_interval=float(self.heartbeat_interval),
            non_broadcast_patterns=tuple(self.non_broadcast_patterns),
        )


def load_config(env_path: str = ".env", **overrides: Any) -> ClientConfig:
    """Build a ClientConfig from an env file, RCON_* environment variables and keyword overrides."""
    if os.path.exists(env_path):
        load_dotenv(env_path)

    values: Dict[str, Any] = {}
    for key, default_value in DEFAULT_CONFIG.items():
        env_key = f"RCON_{key.upper()}"
        value = os.getenv(env_key, default_value)
        values[key] = _coerce_type(value, type(default_value))

    log_level = values.pop("log_level")
    raw_patterns = values.pop("non_broadcast_patterns")
    values["non_broadcast_patterns"] = tuple(p.strip() for p in raw_patterns.split(",") if p.strip())
    values.update(overrides)

    config = ClientConfig(**values)
    logging.getLogger("rcon_client").setLevel("DEBUG" if config.debug else log_level)
    return config


def _coerce_type(value: Any, target_type: type) -> Any:
    if isinstance(value, target_type):
        return value
    try:
        if target_type is bool:
            return str(value).lower() in ("1", "true", "yes", "on")
        return target_type(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Cannot convert {value} to {target_type}") from exc


__all__ = [
    "BroadcastHandler",
    "DisconnectHandler",
    "ClientConfig",
    "RuntimeOptions",
    "DEFAULT_CONFIG",
    "ConfigError",
    "interval_seconds",
    "load_config",
]
