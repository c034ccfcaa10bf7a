"""Server identity, listener, and connection-limit configuration.

Values are sourced from environment variables with defaults matching the
desktop build. Durations are in milliseconds because they are compared
against envelope timestamps, which are epoch milliseconds.
"""

import os


SERVER_NAME = os.getenv("MCP_SERVER_NAME", "MCP Control-Plane Server")
SERVER_VERSION = os.getenv("MCP_SERVER_VERSION", "0.1.0")
API_VERSION = os.getenv("MCP_API_VERSION", "1.0")

MCP_HOST = os.getenv("MCP_HOST", "localhost")
MCP_PORT = int(os.getenv("MCP_PORT", "3030"))

# Hard ceiling on simultaneously live connections
MCP_MAX_CONNECTIONS = int(os.getenv("MCP_MAX_CONNECTIONS", "50"))

MCP_IDLE_TIMEOUT_MS = int(os.getenv("MCP_IDLE_TIMEOUT_MS", "300000"))  # 5 minutes
MCP_PING_INTERVAL_MS = int(os.getenv("MCP_PING_INTERVAL_MS", "30000"))  # 30 seconds

# Delay between stop() and start() when restarting in place
MCP_RESTART_DELAY_S = float(os.getenv("MCP_RESTART_DELAY_S", "1.0"))


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
]
