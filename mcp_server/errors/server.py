"""Server lifecycle exceptions."""


class ServerStartError(Exception):
    """Raised when the listener cannot be bound or the server fails to start.

    Attributes:
        host: Address the server attempted to bind.
        port: Port the server attempted to bind.
    """

    def __init__(self, host: str, port: int, reason: str) -> None:
        super().__init__(f"failed to start server on {host}:{port}: {reason}")
        self.host = host
        self.port = port
        self.reason = reason


__all__ = ["ServerStartError"]
