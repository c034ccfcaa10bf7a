"""Unit tests for the outbound relay against a local aiohttp upstream."""

from __future__ import annotations

import socket
import asyncio
from typing import Any
from collections.abc import Awaitable, Callable

import pytest
from aiohttp import web
from aiohttp import test_utils

from mcp_server.proxy import ProxyRelay, route_from_config
from mcp_server.errors import (
    UnknownRouteError,
    ProxyTimeoutError,
    ProxyNetworkError,
    ProxyUpstreamError,
    InvalidRouteConfigError,
)


async def _echo_request(request: web.Request) -> web.Response:
    body = await request.text()
    return web.json_response(
        {
            "path": request.path,
            "method": request.method,
            "body": body,
            "headers": {key.lower(): value for key, value in request.headers.items()},
        }
    )


async def _plain(request: web.Request) -> web.Response:
    return web.Response(text="just text")


async def _missing(request: web.Request) -> web.Response:
    return web.json_response({"error": "nope"}, status=404)


async def _slow(request: web.Request) -> web.Response:
    await asyncio.sleep(0.5)
    return web.json_response({})


def _upstream() -> web.Application:
    app = web.Application()
    app.router.add_route("*", "/api/plain", _plain)
    app.router.add_route("*", "/api/missing", _missing)
    app.router.add_route("*", "/api/slow", _slow)
    app.router.add_route("*", "/api/{tail:.*}", _echo_request)
    return app


def _with_upstream(body: Callable[[ProxyRelay, str], Awaitable[None]]) -> None:
    async def _run() -> None:
        server = test_utils.TestServer(_upstream())
        await server.start_server()
        relay = ProxyRelay(default_timeout_ms=2_000)
        try:
            await body(relay, str(server.make_url("/api/")))
        finally:
            await relay.close()
            await server.close()

    asyncio.run(_run())


def _free_port() -> int:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def test_forward_resolves_aliases_and_decodes_json() -> None:
    async def body(relay: ProxyRelay, base_url: str) -> None:
        relay.register_route("svc", base_url, endpoints={"people": "v1/users"})

        response = await relay.forward("svc", "people", method="post", body={"n": 1})

        assert response.status == 200
        assert response.body["path"] == "/api/v1/users"
        assert response.body["method"] == "POST"
        assert response.body["body"] == '{"n":1}'
        assert response.to_dict()["data"] == response.body

    _with_upstream(body)


def test_header_precedence() -> None:
    seen: list[tuple[str, str]] = []

    def auth_callback(route: str, endpoint: str) -> dict[str, str]:
        seen.append((route, endpoint))
        return {"Authorization": "Bearer from-callback", "X-Layer": "auth"}

    async def body(relay: ProxyRelay, base_url: str) -> None:
        relay.register_route(
            "svc",
            base_url,
            headers={"X-Layer": "route", "X-Route": "r", "Content-Type": "text/plain"},
            auth_callback=auth_callback,
        )

        response = await relay.forward(
            "svc",
            "anything",
            extra_headers={"X-Layer": "caller", "X-Caller": "c", "Authorization": "Bearer caller"},
        )
        headers = response.body["headers"]

        assert headers["x-layer"] == "auth"
        assert headers["authorization"] == "Bearer from-callback"
        assert headers["x-route"] == "r"
        assert headers["x-caller"] == "c"
        assert headers["content-type"] == "text/plain"
        assert seen == [("svc", "anything")]

    _with_upstream(body)


def test_async_auth_callback_and_default_content_type() -> None:
    async def auth_callback(route: str, endpoint: str) -> dict[str, str]:
        return {"X-Token": "async"}

    async def body(relay: ProxyRelay, base_url: str) -> None:
        relay.register_route("svc", base_url, auth_callback=auth_callback)
        headers = (await relay.forward("svc", "x")).body["headers"]
        assert headers["x-token"] == "async"
        assert headers["content-type"] == "application/json"

    _with_upstream(body)


def test_non_json_body_is_returned_as_text() -> None:
    async def body(relay: ProxyRelay, base_url: str) -> None:
        relay.register_route("svc", base_url)
        response = await relay.forward("svc", "plain")
        assert response.body == "just text"

    _with_upstream(body)


def test_non_2xx_raises_upstream_error_with_body() -> None:
    async def body(relay: ProxyRelay, base_url: str) -> None:
        relay.register_route("svc", base_url)
        with pytest.raises(ProxyUpstreamError) as excinfo:
            await relay.forward("svc", "missing")
        assert excinfo.value.status == 404
        assert excinfo.value.body == {"error": "nope"}
        assert excinfo.value.to_dict()["route"] == "svc"

    _with_upstream(body)


def test_timeout_raises_proxy_timeout() -> None:
    async def body(relay: ProxyRelay, base_url: str) -> None:
        relay.register_route("svc", base_url, timeout_ms=50)
        with pytest.raises(ProxyTimeoutError) as excinfo:
            await relay.forward("svc", "slow")
        assert excinfo.value.timeout_ms == 50
        assert excinfo.value.message == "Request timed out after 50ms"

    _with_upstream(body)


def test_unknown_route() -> None:
    async def _run() -> None:
        relay = ProxyRelay()
        with pytest.raises(UnknownRouteError) as excinfo:
            await relay.forward("ghost", "x")
        assert excinfo.value.message == "Unknown proxy route: ghost"
        await relay.close()

    asyncio.run(_run())


def test_connection_refused_raises_network_error() -> None:
    async def _run() -> None:
        relay = ProxyRelay(default_timeout_ms=2_000)
        relay.register_route("down", f"http://127.0.0.1:{_free_port()}/")
        try:
            with pytest.raises(ProxyNetworkError):
                await relay.forward("down", "x")
        finally:
            await relay.close()

    asyncio.run(_run())


def test_register_route_validation_and_table() -> None:
    relay = ProxyRelay(default_timeout_ms=1_234)
    with pytest.raises(InvalidRouteConfigError):
        relay.register_route("", "http://example.invalid/")
    with pytest.raises(InvalidRouteConfigError):
        relay.register_route("svc", "")

    route = relay.register_route("svc", "http://example.invalid/", headers={"X-Secret": "s"})
    assert route.timeout_ms == 1_234
    assert relay.routes() == [
        {
            "name": "svc",
            "baseUrl": "http://example.invalid/",
            "endpoints": {},
            "headers": ["X-Secret"],
            "timeout": 1_234,
            "hasAuth": False,
        }
    ]
    assert relay.unregister_route("svc") is True
    assert relay.get_route("svc") is None


def test_register_from_config_skips_invalid_entries() -> None:
    relay = ProxyRelay(default_timeout_ms=500)
    routes: dict[str, Any] = {
        "good": {"baseUrl": "http://a.invalid/", "timeout": 900, "endpoints": {"u": "users"}},
        "snake": {"base_url": "http://b.invalid/"},
        "bad": {"headers": {}},
        "worse": "http://c.invalid/",
    }

    assert relay.register_from_config(routes) == 2
    assert relay.get_route("good").timeout_ms == 900
    assert relay.get_route("snake").timeout_ms == 500
    assert relay.get_route("bad") is None


def test_route_build_url_joins_relative_paths() -> None:
    route = route_from_config("svc", {"baseUrl": "http://h.invalid/api/", "endpoints": {"me": "v2/me"}}, 100)
    assert str(route.build_url("me")) == "http://h.invalid/api/v2/me"
    assert str(route.build_url("/root")) == "http://h.invalid/root"
