"""Dispatch-time exceptions.

These never escape the dispatcher: each is resolved into a ``system.error``
envelope for the originating connection.
"""

from ..config.protocol import ERROR_NOT_FOUND, ERROR_SERVER_ERROR, ERROR_UNAUTHORIZED


class AuthError(Exception):
    """Raised when an unauthenticated connection sends a non-auth envelope."""

    code = ERROR_UNAUTHORIZED


class RoutingError(Exception):
    """Raised when no plugin or handler accepts an envelope type."""

    code = ERROR_NOT_FOUND

    def __init__(self, message_type: str) -> None:
        super().__init__(f"No handler found for message type: {message_type}")
        self.message_type = message_type


class HandlerError(Exception):
    """Wraps an exception raised by a handler callback or plugin hook.

    Attributes:
        source: Handler key or plugin name that raised.
        original: The exception that was raised.
    """

    code = ERROR_SERVER_ERROR

    def __init__(self, source: str, original: BaseException) -> None:
        super().__init__(f"{source} failed: {original}")
        self.source = source
        self.original = original


__all__ = ["AuthError", "RoutingError", "HandlerError"]
