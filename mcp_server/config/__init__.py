"""Aggregator of configuration modules.

This module re-exports the config API from smaller modules:
- server: identity, listener address, connection limits, liveness timing
- security: auth requirement and token expiry
- protocol: wire version, system message types, error codes
- websocket: close codes and mount paths
- plugins: plugin discovery settings
- proxy: outbound relay defaults
- store: persisted settings file
- logging: log level and format

Config modules are purely declarative; functions live in helpers/ and the
runtime packages.
"""

from .server import (
    SERVER_NAME,
    SERVER_VERSION,
    API_VERSION,
    MCP_HOST,
    MCP_PORT,
    MCP_MAX_CONNECTIONS,
    MCP_IDLE_TIMEOUT_MS,
    MCP_PING_INTERVAL_MS,
    MCP_RESTART_DELAY_S,
)
from .security import (
    MCP_AUTH_REQUIRED,
    MCP_AUTH_TOKEN,
    MCP_TOKEN_EXPIRATION_MS,
)
from .protocol import PROTOCOL_VERSION
from .plugins import (
    MCP_ENABLE_PLUGINS,
    MCP_PLUGINS_DIR,
)
from .proxy import MCP_PROXY_TIMEOUT_MS
from .store import MCP_CONFIG_PATH

__all__ = [
    "SERVER_NAME",
    "SERVER_VERSION",
    "API_VERSION",
    "MCP_HOST",
    "MCP_PORT",
    "MCP_MAX_CONNECTIONS",
    "MCP_IDLE_TIMEOUT_MS",
    "MCP_PING_INTERVAL_MS",
    "MCP_RESTART_DELAY_S",
    "MCP_AUTH_REQUIRED",
    "MCP_AUTH_TOKEN",
    "MCP_TOKEN_EXPIRATION_MS",
    "PROTOCOL_VERSION",
    "MCP_ENABLE_PLUGINS",
    "MCP_PLUGINS_DIR",
    "MCP_PROXY_TIMEOUT_MS",
    "MCP_CONFIG_PATH",
]
