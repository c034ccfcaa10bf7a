"""Proxy route and response value types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from collections.abc import Awaitable, Callable, Mapping

from yarl import URL

from ..errors import InvalidRouteConfigError

AuthCallback = Callable[[str, str], Mapping[str, str] | Awaitable[Mapping[str, str]] | None]


@dataclass(slots=True)
class ProxyRoute:
    """A named upstream the relay can forward to.

    Attributes:
        endpoints: Alias map; a requested endpoint found here is replaced by
            its target path before the URL is built.
        auth_callback: Called as ``auth_callback(route_name, endpoint)`` per
            request; its headers win over every other source.
    """

    name: str
    base_url: str
    endpoints: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    timeout_ms: int = 0
    auth_callback: AuthCallback | None = None

    def resolve_endpoint(self, endpoint: str) -> str:
        return self.endpoints.get(endpoint, endpoint)

    def build_url(self, endpoint: str) -> URL:
        """Join the resolved endpoint onto the base URL (RFC 3986 reference resolution)."""
        return URL(self.base_url).join(URL(self.resolve_endpoint(endpoint)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "baseUrl": self.base_url,
            "endpoints": dict(self.endpoints),
            "headers": sorted(self.headers),
            "timeout": self.timeout_ms,
            "hasAuth": self.auth_callback is not None,
        }


@dataclass(slots=True)
class ProxyResponse:
    """Successful upstream reply; ``body`` is JSON-decoded when possible."""

    status: int
    headers: dict[str, str]
    body: Any

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status, "headers": dict(self.headers), "data": self.body}


def route_from_config(name: str, document: Any, default_timeout_ms: int) -> ProxyRoute:
    """Build a route from a persisted settings entry.

    Accepts ``baseUrl``/``base_url`` and ``timeout``/``timeout_ms`` spellings.

    Raises:
        InvalidRouteConfigError: If the entry is not an object or lacks a base URL.
    """
    if not isinstance(document, dict):
        raise InvalidRouteConfigError(f"route {name!r} must be an object", route=name)
    base_url = document.get("baseUrl") or document.get("base_url")
    if not name or not isinstance(base_url, str) or not base_url:
        raise InvalidRouteConfigError("Invalid route configuration", route=name or None)
    timeout = document.get("timeout_ms", document.get("timeout"))
    return ProxyRoute(
        name=name,
        base_url=base_url,
        endpoints={str(k): str(v) for k, v in (document.get("endpoints") or {}).items()},
        headers={str(k): str(v) for k, v in (document.get("headers") or {}).items()},
        timeout_ms=int(timeout) if timeout else default_timeout_ms,
    )


__all__ = ["AuthCallback", "ProxyRoute", "ProxyResponse", "route_from_config"]
