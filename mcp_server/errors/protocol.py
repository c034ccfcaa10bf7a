"""Wire protocol exceptions.

Both carry the numeric error code that is reported back to the client in a
``system.error`` envelope.
"""

from ..config.protocol import ERROR_INVALID_MESSAGE, ERROR_SERVER_ERROR


class ProtocolError(Exception):
    """Base class for envelope decoding and encoding failures.

    Attributes:
        code: Wire error code reported to the client.
        message: Human-readable error description.
    """

    default_code = ERROR_INVALID_MESSAGE

    def __init__(self, message: str, *, code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code if code is not None else self.default_code


class MalformedEnvelopeError(ProtocolError):
    """Raised when inbound data is not a valid envelope."""


class SerializationError(ProtocolError):
    """Raised when an outbound envelope cannot be encoded."""

    default_code = ERROR_SERVER_ERROR


__all__ = ["ProtocolError", "MalformedEnvelopeError", "SerializationError"]
