"""Wire protocol constants.

Message types:
    system.*  - Handled inline by the dispatcher (never reach plugins)
    others    - Routed through plugins, then the handler registry

Error codes (carried in system.error data.code):
    100 invalid message    101 invalid type    102 invalid format
    200 unauthorized       201 forbidden
    300 not found
    500 server error
"""

import os


PROTOCOL_VERSION = os.getenv("MCP_PROTOCOL_VERSION", "1.0")

SYSTEM_NAMESPACE = "system"
SYSTEM_PREFIX = f"{SYSTEM_NAMESPACE}."

# ============================================================================
# System Message Types
# ============================================================================

SYSTEM_PING = "system.ping"
SYSTEM_PONG = "system.pong"
SYSTEM_INFO = "system.info"
SYSTEM_ERROR = "system.error"
SYSTEM_AUTH = "system.auth"
SYSTEM_AUTH_RESPONSE = "system.auth_response"
SYSTEM_REGISTER = "system.register"
SYSTEM_REGISTER_RESPONSE = "system.register_response"

# ============================================================================
# Error Codes
# ============================================================================

ERROR_INVALID_MESSAGE = 100
ERROR_INVALID_TYPE = 101
ERROR_INVALID_FORMAT = 102
ERROR_UNAUTHORIZED = 200
ERROR_FORBIDDEN = 201
ERROR_NOT_FOUND = 300
ERROR_SERVER_ERROR = 500


__all__ = [
    "PROTOCOL_VERSION",
    "SYSTEM_NAMESPACE",
    "SYSTEM_PREFIX",
    "SYSTEM_PING",
    "SYSTEM_PONG",
    "SYSTEM_INFO",
    "SYSTEM_ERROR",
    "SYSTEM_AUTH",
    "SYSTEM_AUTH_RESPONSE",
    "SYSTEM_REGISTER",
    "SYSTEM_REGISTER_RESPONSE",
    "ERROR_INVALID_MESSAGE",
    "ERROR_INVALID_TYPE",
    "ERROR_INVALID_FORMAT",
    "ERROR_UNAUTHORIZED",
    "ERROR_FORBIDDEN",
    "ERROR_NOT_FOUND",
    "ERROR_SERVER_ERROR",
]
