"""Outbound HTTP relay to named upstream routes."""

from .relay import ProxyRelay
from .routes import AuthCallback, ProxyResponse, ProxyRoute, route_from_config

__all__ = ["ProxyRelay", "AuthCallback", "ProxyResponse", "ProxyRoute", "route_from_config"]
