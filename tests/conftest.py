import pytest

ENV_KEYS = [
    "RCON_HOST",
    "RCON_PORT",
    "RCON_PASSWORD",
    "RCON_SEND_HEARTBEAT_COMMAND",
    "RCON_HEARTBEAT_INTERVAL",
    "RCON_ATTEMPT_RECONNECT",
    "RCON_ENABLE_BROADCASTS",
    "RCON_NON_BROADCAST_PATTERNS",
    "RCON_DEBUG",
    "RCON_LOG_LEVEL",
    "RCON_SUBSCRIPTIONS",
    "RCON_COMMAND",
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        # record the key so values loaded from .env files are undone afterwards
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return monkeypatch
