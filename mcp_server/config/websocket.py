"""WebSocket-specific runtime configuration values.

Close Codes (RFC 6455):
    1000: Normal closure (explicit disconnect)
    1001: Going away (server shutdown)
    1013: Try again later (server at capacity)
    4000+: Application-defined (idle timeout)
"""

from __future__ import annotations

import os

# ============================================================================
# WebSocket Close Codes
# ============================================================================

WS_CLOSE_NORMAL_CODE = int(os.getenv("WS_CLOSE_NORMAL_CODE", "1000"))
WS_CLOSE_GOING_AWAY_CODE = int(os.getenv("WS_CLOSE_GOING_AWAY_CODE", "1001"))
WS_CLOSE_BUSY_CODE = int(os.getenv("WS_CLOSE_BUSY_CODE", "1013"))  # Try again later
WS_CLOSE_IDLE_CODE = int(os.getenv("WS_CLOSE_IDLE_CODE", "4000"))  # Application-defined
WS_CLOSE_IDLE_REASON = os.getenv("WS_CLOSE_IDLE_REASON", "idle_timeout")

# Paths the WebSocket endpoint is mounted on
WS_PATHS = ("/", "/ws")


__all__ = [
    "WS_CLOSE_NORMAL_CODE",
    "WS_CLOSE_GOING_AWAY_CODE",
    "WS_CLOSE_BUSY_CODE",
    "WS_CLOSE_IDLE_CODE",
    "WS_CLOSE_IDLE_REASON",
    "WS_PATHS",
]
