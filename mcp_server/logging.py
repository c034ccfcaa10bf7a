"""Logging context helpers for consistent structured fields.

Every record emitted while a connection's message is being dispatched carries
``connection_id`` and ``message_type`` attributes, so plugin and handler logs
can be correlated with the socket that triggered them.
"""

from __future__ import annotations

import logging
import contextlib
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import Token, ContextVar

_CONNECTION_ID: ContextVar[str] = ContextVar("connection_id", default="-")
_MESSAGE_TYPE: ContextVar[str] = ContextVar("message_type", default="-")


def set_log_context(
    *,
    connection_id: str | None = None,
    message_type: str | None = None,
) -> list[tuple[ContextVar[str], Token[str]]]:
    """Set log context values and return tokens for reset."""
    tokens: list[tuple[ContextVar[str], Token[str]]] = []
    if connection_id is not None:
        tokens.append((_CONNECTION_ID, _CONNECTION_ID.set(connection_id)))
    if message_type is not None:
        tokens.append((_MESSAGE_TYPE, _MESSAGE_TYPE.set(message_type)))
    return tokens


def reset_log_context(tokens: list[tuple[ContextVar[str], Token[str]]]) -> None:
    """Reset log context values using tokens returned by set_log_context."""
    for var, token in reversed(tokens):
        var.reset(token)


@contextmanager
def log_context(
    *,
    connection_id: str | None = None,
    message_type: str | None = None,
) -> Iterator[None]:
    """Context manager for applying log fields within a block."""
    tokens = set_log_context(connection_id=connection_id, message_type=message_type)
    try:
        yield
    finally:
        reset_log_context(tokens)


def install_log_context() -> None:
    """Install a LogRecord factory that injects context fields."""
    if getattr(install_log_context, "_installed", False):
        return

    old_factory = logging.getLogRecordFactory()

    def record_factory(*args, **kwargs):
        record = old_factory(*args, **kwargs)
        record.connection_id = _CONNECTION_ID.get()
        record.message_type = _MESSAGE_TYPE.get()
        return record

    logging.setLogRecordFactory(record_factory)
    install_log_context._installed = True  # type: ignore[attr-defined]


def configure_logging(level: str | None = None) -> None:
    """Initialize root logging configuration once per process."""
    from mcp_server.config.logging import APP_LOG_LEVEL, APP_LOG_FORMAT, APP_LOG_DATEFMT  # noqa: PLC0415

    resolved = (level or APP_LOG_LEVEL).upper()
    install_log_context()
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(level=resolved, format=APP_LOG_FORMAT, datefmt=APP_LOG_DATEFMT)
    else:
        root_logger.setLevel(resolved)
        for handler in root_logger.handlers:
            with contextlib.suppress(Exception):
                handler.setLevel(resolved)
                handler.setFormatter(logging.Formatter(APP_LOG_FORMAT, datefmt=APP_LOG_DATEFMT))

    logging.getLogger("mcp_server").setLevel(resolved)


__all__ = [
    "install_log_context",
    "log_context",
    "reset_log_context",
    "set_log_context",
    "configure_logging",
]
