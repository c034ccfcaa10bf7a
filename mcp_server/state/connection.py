"""Per-connection state dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol


class Transport(Protocol):
    """Minimal socket surface the registry needs from a live connection."""

    @property
    def is_open(self) -> bool: ...

    async def send_text(self, text: str) -> None: ...

    async def close(self, code: int = 1000, reason: str = "") -> None: ...


class ConnectionState(Enum):
    """Lifecycle states for a connection (CLOSED is terminal)."""

    CONNECTED = "connected"
    AUTHENTICATED = "authenticated"
    CLOSED = "closed"


@dataclass(slots=True)
class ConnectionStats:
    received: int = 0
    sent: int = 0
    errors: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"received": self.received, "sent": self.sent, "errors": self.errors}


@dataclass(slots=True)
class PeerInfo:
    """Address details captured from the accepted transport."""

    ip_address: str = "unknown"
    user_agent: str = "unknown"


@dataclass(slots=True)
class Connection:
    """A live client connection and its metadata.

    Attributes:
        id: UUID4 string, unique among live connections.
        transport: Socket handle owned exclusively by the registry.
        connected_at: Admission time (epoch ms).
        last_activity_at: Latest activity time (epoch ms), never decreases.
        is_authenticated: Flips false -> true only through system.auth.
    """

    id: str
    transport: Transport
    ip_address: str
    user_agent: str
    connected_at: int
    last_activity_at: int
    is_authenticated: bool = False
    client_info: dict[str, Any] = field(default_factory=dict)
    stats: ConnectionStats = field(default_factory=ConnectionStats)
    closed: bool = False

    @property
    def state(self) -> ConnectionState:
        if self.closed:
            return ConnectionState.CLOSED
        if self.is_authenticated:
            return ConnectionState.AUTHENTICATED
        return ConnectionState.CONNECTED

    def touch(self, now: int) -> None:
        if now > self.last_activity_at:
            self.last_activity_at = now

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "ipAddress": self.ip_address,
            "userAgent": self.user_agent,
            "connectedAt": self.connected_at,
            "lastActivityAt": self.last_activity_at,
            "isAuthenticated": self.is_authenticated,
            "state": self.state.value,
            "clientInfo": dict(self.client_info),
            "stats": self.stats.to_dict(),
        }


__all__ = [
    "Transport",
    "ConnectionState",
    "ConnectionStats",
    "PeerInfo",
    "Connection",
]
