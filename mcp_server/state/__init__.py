"""Centralized state types for the control-plane server."""

from .config_store import ConfigStore
from .connection import (
    Transport,
    PeerInfo,
    Connection,
    ConnectionState,
    ConnectionStats,
)

__all__ = [
    "ConfigStore",
    "Connection",
    "ConnectionState",
    "ConnectionStats",
    "PeerInfo",
    "Transport",
]
