"""Outbound proxy relay exceptions."""

from __future__ import annotations

from typing import Any


class ProxyError(Exception):
    """Base class for relay failures.

    Attributes:
        route: Name of the route the request was addressed to.
    """

    def __init__(self, message: str, *, route: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.route = route

    def to_dict(self) -> dict[str, Any]:
        return {"error": type(self).__name__, "message": self.message, "route": self.route}


class InvalidRouteConfigError(ProxyError):
    """Raised when a route is registered without a name or base URL."""


class UnknownRouteError(ProxyError):
    """Raised when forwarding to a route that was never registered."""


class ProxyTimeoutError(ProxyError):
    """Raised when the upstream does not answer within the route timeout."""

    def __init__(self, message: str, *, route: str | None = None, timeout_ms: int) -> None:
        super().__init__(message, route=route)
        self.timeout_ms = timeout_ms

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["timeout_ms"] = self.timeout_ms
        return payload


class ProxyNetworkError(ProxyError):
    """Raised on transport-level failures (DNS, refused, reset)."""


class ProxyUpstreamError(ProxyError):
    """Raised when the upstream answers with a non-2xx status.

    Attributes:
        status: HTTP status returned by the upstream.
        body: Response body, JSON-decoded when possible.
    """

    def __init__(self, status: int, body: Any, *, route: str | None = None) -> None:
        super().__init__(f"upstream returned HTTP {status}", route=route)
        self.status = status
        self.body = body

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["status"] = self.status
        payload["body"] = self.body
        return payload


__all__ = [
    "ProxyError",
    "InvalidRouteConfigError",
    "UnknownRouteError",
    "ProxyTimeoutError",
    "ProxyNetworkError",
    "ProxyUpstreamError",
]
