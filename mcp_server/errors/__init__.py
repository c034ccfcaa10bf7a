"""Centralized exception classes for the control-plane server.

This module re-exports all domain-specific exceptions from their respective
modules, providing a single import point for error handling.

Organization:
    - protocol.py: Envelope decode/encode failures (carry wire error codes)
    - dispatch.py: Auth gate, routing misses, handler/plugin faults
    - plugins.py: Manifest and entry-module loading failures
    - proxy.py: Outbound relay failures (timeout, network, upstream status)
    - server.py: Listener startup failures
"""

from .server import ServerStartError
from .dispatch import AuthError, HandlerError, RoutingError
from .protocol import ProtocolError, SerializationError, MalformedEnvelopeError
from .plugins import PluginError, PluginLoadError, PluginManifestError
from .proxy import (
    ProxyError,
    UnknownRouteError,
    ProxyTimeoutError,
    ProxyNetworkError,
    ProxyUpstreamError,
    InvalidRouteConfigError,
)

__all__ = [
    # Protocol
    "ProtocolError",
    "MalformedEnvelopeError",
    "SerializationError",
    # Dispatch
    "AuthError",
    "RoutingError",
    "HandlerError",
    # Plugins
    "PluginError",
    "PluginLoadError",
    "PluginManifestError",
    # Proxy
    "ProxyError",
    "InvalidRouteConfigError",
    "UnknownRouteError",
    "ProxyTimeoutError",
    "ProxyNetworkError",
    "ProxyUpstreamError",
    # Server
    "ServerStartError",
]
