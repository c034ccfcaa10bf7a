"""Resolved server settings.

Precedence, highest first: explicit overrides (CLI flags, test arguments),
the persisted settings document, then the environment-driven defaults in
``mcp_server.config``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Any

from ..state.config_store import ConfigStore
from ..config import (
    MCP_HOST,
    MCP_PORT,
    MCP_AUTH_TOKEN,
    MCP_PLUGINS_DIR,
    MCP_AUTH_REQUIRED,
    MCP_ENABLE_PLUGINS,
    MCP_IDLE_TIMEOUT_MS,
    MCP_MAX_CONNECTIONS,
    MCP_PING_INTERVAL_MS,
    MCP_PROXY_TIMEOUT_MS,
    MCP_TOKEN_EXPIRATION_MS,
)

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off", ""}

# Settings-document path for each field
_STORE_KEYS = {
    "host": "server.host",
    "port": "server.port",
    "max_connections": "server.maxConnections",
    "idle_timeout_ms": "server.idleTimeout",
    "ping_interval_ms": "server.pingInterval",
    "auth_required": "security.authRequired",
    "auth_token": "security.authToken",
    "token_expiration_ms": "security.tokenExpiration",
    "plugins_dir": "plugins.directory",
    "plugins_enabled": "plugins.autoLoad",
    "proxy_timeout_ms": "proxy.timeout",
}


@dataclass(slots=True)
class ServerSettings:
    host: str = MCP_HOST
    port: int = MCP_PORT
    max_connections: int = MCP_MAX_CONNECTIONS
    idle_timeout_ms: int = MCP_IDLE_TIMEOUT_MS
    ping_interval_ms: int = MCP_PING_INTERVAL_MS
    auth_required: bool = MCP_AUTH_REQUIRED
    auth_token: str | None = MCP_AUTH_TOKEN
    token_expiration_ms: int = MCP_TOKEN_EXPIRATION_MS
    plugins_dir: str = MCP_PLUGINS_DIR
    plugins_enabled: bool = MCP_ENABLE_PLUGINS
    proxy_timeout_ms: int = MCP_PROXY_TIMEOUT_MS

    @classmethod
    def resolve(cls, store: ConfigStore | None = None, **overrides: Any) -> "ServerSettings":
        """Build settings from defaults, the settings document, then overrides.

        ``None`` overrides are ignored so unset CLI flags fall through.
        """
        settings = cls()
        for item in fields(cls):
            if store is not None:
                stored = store.get(_STORE_KEYS[item.name])
                if stored is not None:
                    try:
                        value = _coerce(getattr(settings, item.name), stored)
                    except (TypeError, ValueError):
                        logger.warning(
                            "ignoring invalid %s in settings file: %r", _STORE_KEYS[item.name], stored
                        )
                    else:
                        setattr(settings, item.name, value)
            value = overrides.get(item.name)
            if value is not None:
                setattr(settings, item.name, value)
        unknown = set(overrides) - {item.name for item in fields(cls)}
        if unknown:
            raise TypeError(f"unknown settings: {', '.join(sorted(unknown))}")
        return settings


def _coerce(current: Any, stored: Any) -> Any:
    """Convert a settings-file value to the type of the field default.

    Raises:
        ValueError: If the value cannot represent the field type.
    """
    if isinstance(current, bool):
        if isinstance(stored, bool):
            return stored
        if isinstance(stored, int):
            return stored != 0
        text = str(stored).strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        raise ValueError(f"not a boolean: {stored!r}")
    if isinstance(current, int):
        if isinstance(stored, bool):
            raise ValueError(f"not an integer: {stored!r}")
        return int(stored)
    return str(stored)


__all__ = ["ServerSettings"]
