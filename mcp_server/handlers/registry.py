"""Type and namespace handler table.

Keys are either an exact message type (``"server.info"``) or a bare
namespace (``"server"``). Resolution tries the exact type first, then the
namespace (the segment before the first dot), so an exact entry always
shadows its namespace entry.

Handlers receive ``(envelope, context)`` and may be sync or async. A handler
that returns ``{"type": ..., "data": ...}`` has that envelope sent back to the
originating connection; returning ``None`` means the handler replied itself
(or intends no reply).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from collections.abc import Awaitable, Callable

if TYPE_CHECKING:
    from ..protocol import Envelope
    from ..plugins.context import DispatchContext

logger = logging.getLogger(__name__)

HandlerResult = dict[str, Any] | None
MessageHandler = Callable[["Envelope", "DispatchContext"], HandlerResult | Awaitable[HandlerResult]]


class HandlerRegistry:
    """Maps exact message types and namespaces to handler callables."""

    def __init__(self) -> None:
        self._handlers: dict[str, MessageHandler] = {}

    def register(self, key: str, handler: MessageHandler) -> None:
        """Register ``handler`` for ``key``; an existing entry is replaced.

        Raises:
            TypeError: If ``handler`` is not callable.
            ValueError: If ``key`` is empty.
        """
        if not callable(handler):
            raise TypeError(f"handler for {key!r} must be callable")
        if not key:
            raise ValueError("handler key must be a non-empty string")
        if key in self._handlers:
            logger.warning("Replacing existing handler for %s", key)
        self._handlers[key] = handler
        logger.debug("Registered handler for %s", key)

    def unregister(self, key: str) -> bool:
        removed = self._handlers.pop(key, None) is not None
        if removed:
            logger.debug("Unregistered handler for %s", key)
        return removed

    def resolve(self, msg_type: str) -> MessageHandler | None:
        handler = self._handlers.get(msg_type)
        if handler is not None:
            return handler
        namespace = msg_type.split(".", 1)[0]
        return self._handlers.get(namespace)

    def keys(self) -> list[str]:
        return list(self._handlers)

    def __contains__(self, key: object) -> bool:
        return key in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)


__all__ = ["HandlerRegistry", "HandlerResult", "MessageHandler"]
