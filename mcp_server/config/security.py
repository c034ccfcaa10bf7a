"""Authentication configuration."""

import os


MCP_AUTH_REQUIRED = (os.getenv("MCP_AUTH_REQUIRED", "0") or "0").strip().lower() in {"1", "true", "yes", "on"}

# Shared token expected in system.auth data; unset accepts any auth envelope
MCP_AUTH_TOKEN = os.getenv("MCP_AUTH_TOKEN") or None

MCP_TOKEN_EXPIRATION_MS = int(os.getenv("MCP_TOKEN_EXPIRATION_MS", "86400000"))  # 24 hours


__all__ = [
    "MCP_AUTH_REQUIRED",
    "MCP_AUTH_TOKEN",
    "MCP_TOKEN_EXPIRATION_MS",
]
