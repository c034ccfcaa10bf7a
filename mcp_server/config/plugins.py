"""Plugin discovery configuration."""

import os


MCP_ENABLE_PLUGINS = (os.getenv("MCP_ENABLE_PLUGINS", "1") or "1").strip().lower() in {"1", "true", "yes", "on"}
MCP_PLUGINS_DIR = os.getenv("MCP_PLUGINS_DIR", os.path.join(os.getcwd(), "plugins"))

PLUGIN_MANIFEST_FILE = "manifest.json"
PLUGIN_DEFAULT_ENTRY = "plugin.py"
PLUGIN_DEFAULT_VERSION = "0.1.0"

# Private namespace that loaded plugin modules are registered under
PLUGIN_MODULE_PREFIX = "mcp_plugins"

# Config-store path holding the persisted enabled list
PLUGINS_ENABLED_KEY = "plugins.enabled"


__all__ = [
    "MCP_ENABLE_PLUGINS",
    "MCP_PLUGINS_DIR",
    "PLUGIN_MANIFEST_FILE",
    "PLUGIN_DEFAULT_ENTRY",
    "PLUGIN_DEFAULT_VERSION",
    "PLUGIN_MODULE_PREFIX",
    "PLUGINS_ENABLED_KEY",
]
