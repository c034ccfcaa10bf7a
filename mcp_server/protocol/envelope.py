"""Envelope dataclass exchanged over every connection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..config.protocol import SYSTEM_PREFIX


@dataclass(slots=True)
class Envelope:
    """One protocol message.

    Attributes:
        type: Dot-namespaced message type, e.g. ``system.ping``.
        version: Protocol version the sender speaks.
        timestamp: Creation time in epoch milliseconds.
        data: Opaque payload map.
    """

    type: str
    version: str
    timestamp: int
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def namespace(self) -> str:
        return self.type.split(".", 1)[0]

    @property
    def is_system(self) -> bool:
        return self.type.startswith(SYSTEM_PREFIX)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "version": self.version,
            "timestamp": self.timestamp,
            "data": self.data,
        }


__all__ = ["Envelope"]
