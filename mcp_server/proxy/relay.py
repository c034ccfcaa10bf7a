"""Outbound HTTP relay for named upstream routes.

Header precedence for a forwarded request, lowest to highest:

    Content-Type: application/json  <  route headers  <  caller headers  <  auth_callback

A timeout aborts only the outbound call; the caller's connection is
unaffected and receives a ``proxy.error`` through the built-in handler.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any
from collections.abc import Mapping

import aiohttp
import orjson

from .routes import AuthCallback, ProxyResponse, ProxyRoute, route_from_config
from ..errors import (
    ProxyError,
    UnknownRouteError,
    ProxyTimeoutError,
    ProxyNetworkError,
    ProxyUpstreamError,
    InvalidRouteConfigError,
)
from ..config.proxy import MCP_PROXY_TIMEOUT_MS, PROXY_DEFAULT_CONTENT_TYPE

logger = logging.getLogger(__name__)


def _decode_body(text: str) -> Any:
    try:
        return orjson.loads(text)
    except orjson.JSONDecodeError:
        return text


class ProxyRelay:
    """Registry of upstream routes plus the HTTP client that reaches them."""

    def __init__(self, default_timeout_ms: int = MCP_PROXY_TIMEOUT_MS) -> None:
        self.default_timeout_ms = default_timeout_ms
        self._routes: dict[str, ProxyRoute] = {}
        self._session: aiohttp.ClientSession | None = None

    # ------------------------------------------------------------------
    # Route table
    # ------------------------------------------------------------------

    def register_route(
        self,
        name: str,
        base_url: str,
        endpoints: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout_ms: int | None = None,
        auth_callback: AuthCallback | None = None,
    ) -> ProxyRoute:
        """Add or replace a route.

        Raises:
            InvalidRouteConfigError: If ``name`` or ``base_url`` is empty.
        """
        if not name or not base_url:
            raise InvalidRouteConfigError("Invalid route configuration", route=name or None)
        route = ProxyRoute(
            name=name,
            base_url=base_url,
            endpoints=dict(endpoints or {}),
            headers=dict(headers or {}),
            timeout_ms=timeout_ms or self.default_timeout_ms,
            auth_callback=auth_callback,
        )
        self._routes[name] = route
        logger.info("Registered proxy route: %s -> %s", name, base_url)
        return route

    def register_from_config(self, routes: Mapping[str, Any] | None) -> int:
        """Register every valid route from a ``proxy.routes`` settings object."""
        registered = 0
        for name, document in (routes or {}).items():
            try:
                route = route_from_config(name, document, self.default_timeout_ms)
            except InvalidRouteConfigError as exc:
                logger.warning("Skipping proxy route %s: %s", name, exc)
                continue
            self._routes[route.name] = route
            logger.info("Registered proxy route: %s -> %s", route.name, route.base_url)
            registered += 1
        return registered

    def unregister_route(self, name: str) -> bool:
        removed = self._routes.pop(name, None) is not None
        if removed:
            logger.info("Unregistered proxy route: %s", name)
        return removed

    def get_route(self, name: str) -> ProxyRoute | None:
        return self._routes.get(name)

    def routes(self) -> list[dict[str, Any]]:
        return [route.to_dict() for route in self._routes.values()]

    # ------------------------------------------------------------------
    # Forwarding
    # ------------------------------------------------------------------

    async def forward(
        self,
        route_name: str,
        endpoint: str,
        method: str = "GET",
        body: Any = None,
        extra_headers: Mapping[str, str] | None = None,
    ) -> ProxyResponse:
        """Send a request through ``route_name`` and return the upstream reply.

        Raises:
            UnknownRouteError: If the route is not registered.
            ProxyTimeoutError: If the upstream exceeds the route timeout.
            ProxyNetworkError: On connection-level failures.
            ProxyUpstreamError: If the upstream answers with a non-2xx status.
        """
        route = self._routes.get(route_name)
        if route is None:
            raise UnknownRouteError(f"Unknown proxy route: {route_name}", route=route_name)

        url = route.build_url(endpoint)
        headers = await self._build_headers(route, endpoint, extra_headers)
        data = self._encode_body(body)
        method = (method or "GET").upper()
        timeout = aiohttp.ClientTimeout(total=route.timeout_ms / 1000.0)

        logger.debug("proxy %s %s via %s", method, url, route_name)
        session = self._get_session()
        try:
            async with session.request(method, url, data=data, headers=headers, timeout=timeout) as resp:
                text = await resp.text()
                status = resp.status
                resp_headers = {key: value for key, value in resp.headers.items()}
        except TimeoutError as exc:
            raise ProxyTimeoutError(
                f"Request timed out after {route.timeout_ms}ms",
                route=route_name,
                timeout_ms=route.timeout_ms,
            ) from exc
        except aiohttp.ClientError as exc:
            raise ProxyNetworkError(f"Request error: {exc}", route=route_name) from exc

        parsed = _decode_body(text)
        if not 200 <= status < 300:
            logger.info("proxy %s %s returned HTTP %s", method, url, status)
            raise ProxyUpstreamError(status, parsed, route=route_name)
        return ProxyResponse(status=status, headers=resp_headers, body=parsed)

    async def _build_headers(
        self,
        route: ProxyRoute,
        endpoint: str,
        extra_headers: Mapping[str, str] | None,
    ) -> dict[str, str]:
        headers = {"Content-Type": PROXY_DEFAULT_CONTENT_TYPE}
        headers.update(route.headers)
        headers.update(extra_headers or {})
        if route.auth_callback is not None:
            try:
                auth_headers = route.auth_callback(route.name, endpoint)
                if inspect.isawaitable(auth_headers):
                    auth_headers = await auth_headers
            except Exception as exc:
                raise ProxyError(f"auth callback failed: {exc}", route=route.name) from exc
            headers.update(auth_headers or {})
        return headers

    @staticmethod
    def _encode_body(body: Any) -> bytes | str | None:
        if body is None:
            return None
        if isinstance(body, (str, bytes)):
            return body
        return orjson.dumps(body)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


__all__ = ["ProxyRelay"]
