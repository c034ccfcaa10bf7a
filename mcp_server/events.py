"""Simple synchronous event bus shared by the server components.

Event names emitted by the core:

    connection       - a connection was admitted
    disconnection    - a connection was removed (exactly once per connection)
    authenticated    - a connection completed system.auth
    client_registered- a connection merged client info via system.register
    message          - an envelope finished dispatch
    unhandled        - no system handler, plugin, or registered handler matched
    error            - a handler or plugin hook raised
    plugin_loaded / plugin_unloaded / plugin_enabled / plugin_disabled
    started / stopped
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, DefaultDict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Event:
    """Lightweight event descriptor."""

    name: str
    payload: dict[str, Any]


EventHandler = Callable[[Event], None]


@dataclass(frozen=True)
class _EventSubscription:
    priority: int
    order: int
    handler: EventHandler


class EventBus:
    """Synchronous event bus with deterministic delivery.

    A failing subscriber is logged and skipped; it never prevents delivery to
    the remaining subscribers or aborts the emitting operation.
    """

    def __init__(self) -> None:
        self._handlers: DefaultDict[str, list[_EventSubscription]] = defaultdict(list)
        self._sequence: DefaultDict[str, int] = defaultdict(int)

    def on(self, event_name: str, handler: EventHandler, priority: int = 0) -> None:
        """Register a handler for `event_name` with optional priority."""
        order = self._sequence[event_name]
        self._sequence[event_name] = order + 1
        self._handlers[event_name].append(
            _EventSubscription(priority=priority, order=order, handler=handler)
        )

    def off(self, event_name: str, handler: EventHandler) -> bool:
        subscriptions = self._handlers.get(event_name, [])
        remaining = [item for item in subscriptions if item.handler is not handler]
        self._handlers[event_name] = remaining
        return len(remaining) != len(subscriptions)

    def emit(self, event_name: str, payload: dict[str, Any]) -> None:
        event = Event(event_name, payload)
        subscriptions = sorted(
            self._handlers[event_name],
            key=lambda item: (-item.priority, item.order),
        )
        for subscription in subscriptions:
            try:
                subscription.handler(event)
            except Exception:  # noqa: BLE001
                logger.exception("event subscriber for %s failed", event_name)


__all__ = ["Event", "EventHandler", "EventBus"]
