"""Outbound proxy relay configuration."""

import os


MCP_PROXY_TIMEOUT_MS = int(os.getenv("MCP_PROXY_TIMEOUT_MS", "30000"))  # 30 seconds

# Config-store path holding route definitions registered at startup
PROXY_ROUTES_KEY = "proxy.routes"

PROXY_DEFAULT_CONTENT_TYPE = "application/json"


__all__ = [
    "MCP_PROXY_TIMEOUT_MS",
    "PROXY_ROUTES_KEY",
    "PROXY_DEFAULT_CONTENT_TYPE",
]
