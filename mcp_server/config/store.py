"""Persisted settings file location and defaults."""

import os


MCP_CONFIG_PATH = os.getenv(
    "MCP_CONFIG_PATH",
    os.path.join(os.path.expanduser("~"), ".mcp-server", "config.json"),
)

# Defaults the on-disk document is deep-merged over
DEFAULT_SETTINGS: dict = {
    "server": {},
    "security": {},
    "plugins": {"enabled": []},
    "proxy": {"routes": {}},
}


__all__ = [
    "MCP_CONFIG_PATH",
    "DEFAULT_SETTINGS",
]
