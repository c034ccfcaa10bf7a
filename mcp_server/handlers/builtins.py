"""Built-in type handlers registered at startup.

Handled types:
    echo             - echo.response {echo, timestamp}
    status           - status.response {status, timestamp, version, uptime}
    server.info      - server.info.response with connection/plugin summary
    server.echo      - server.echo.response {echo, server_timestamp, message_timestamp}
    proxy.request    - relay through ProxyRelay, proxy.response / proxy.error
    plugins.list     - plugins.list.response
    plugins.enable   - plugins.enable.response / plugins.error
    plugins.disable  - plugins.disable.response / plugins.error
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .registry import HandlerRegistry
from ..errors import ProxyError
from ..config.server import SERVER_NAME, SERVER_VERSION

if TYPE_CHECKING:
    from ..protocol import Envelope
    from ..plugins.context import DispatchContext

logger = logging.getLogger(__name__)


def handle_echo(envelope: Envelope, ctx: DispatchContext) -> dict[str, Any]:
    return {"type": "echo.response", "data": {"echo": envelope.data, "timestamp": ctx.server.now()}}


def handle_status(envelope: Envelope, ctx: DispatchContext) -> dict[str, Any]:
    return {
        "type": "status.response",
        "data": {
            "status": "online",
            "timestamp": ctx.server.now(),
            "version": SERVER_VERSION,
            "uptime": ctx.server.uptime_s(),
        },
    }


def handle_server_info(envelope: Envelope, ctx: DispatchContext) -> dict[str, Any]:
    summary = ctx.server.summary()
    return {
        "type": "server.info.response",
        "data": {
            "name": SERVER_NAME,
            "version": SERVER_VERSION,
            "uptime": summary["uptime"],
            "connections": summary["connections"],
            "config": summary["config"],
            "plugins": summary["plugins"],
            "timestamp": ctx.server.now(),
        },
    }


def handle_server_echo(envelope: Envelope, ctx: DispatchContext) -> dict[str, Any]:
    return {
        "type": "server.echo.response",
        "data": {
            "echo": envelope.data,
            "server_timestamp": ctx.server.now(),
            "message_timestamp": envelope.timestamp,
        },
    }


async def handle_proxy_request(envelope: Envelope, ctx: DispatchContext) -> dict[str, Any]:
    """Relay ``{route, endpoint, method?, data?, headers?}`` upstream."""
    data = envelope.data
    route = data.get("route")
    endpoint = data.get("endpoint")
    if not route or not endpoint:
        return {
            "type": "proxy.error",
            "data": {"error": "Missing required parameters: route, endpoint", "timestamp": ctx.server.now()},
        }

    headers = data.get("headers")
    try:
        response = await ctx.server.proxy.forward(
            str(route),
            str(endpoint),
            method=str(data.get("method") or "GET"),
            body=data.get("data"),
            extra_headers=headers if isinstance(headers, dict) else None,
        )
    except ProxyError as exc:
        logger.info("proxy.request %s %s failed: %s", route, endpoint, exc)
        return {
            "type": "proxy.error",
            "data": {
                "route": route,
                "endpoint": endpoint,
                "error": exc.message,
                "details": exc.to_dict(),
                "timestamp": ctx.server.now(),
            },
        }

    return {
        "type": "proxy.response",
        "data": {
            "route": route,
            "endpoint": endpoint,
            "response": response.to_dict(),
            "timestamp": ctx.server.now(),
        },
    }


def handle_plugins_list(envelope: Envelope, ctx: DispatchContext) -> dict[str, Any]:
    return {
        "type": "plugins.list.response",
        "data": {"plugins": ctx.server.plugins.list_plugins(), "timestamp": ctx.server.now()},
    }


def _toggle_plugin(envelope: Envelope, ctx: DispatchContext, *, enable: bool) -> dict[str, Any]:
    name = envelope.data.get("name")
    if not name or not isinstance(name, str):
        return {"type": "plugins.error", "data": {"error": "Missing plugin name", "timestamp": ctx.server.now()}}
    plugins = ctx.server.plugins
    success = plugins.enable(name) if enable else plugins.disable(name)
    action = "enable" if enable else "disable"
    return {
        "type": f"plugins.{action}.response",
        "data": {"name": name, "success": success, "timestamp": ctx.server.now()},
    }


def handle_plugins_enable(envelope: Envelope, ctx: DispatchContext) -> dict[str, Any]:
    return _toggle_plugin(envelope, ctx, enable=True)


def handle_plugins_disable(envelope: Envelope, ctx: DispatchContext) -> dict[str, Any]:
    return _toggle_plugin(envelope, ctx, enable=False)


BUILTIN_HANDLERS = {
    "echo": handle_echo,
    "status": handle_status,
    "server.info": handle_server_info,
    "server.echo": handle_server_echo,
    "proxy.request": handle_proxy_request,
    "plugins.list": handle_plugins_list,
    "plugins.enable": handle_plugins_enable,
    "plugins.disable": handle_plugins_disable,
}


def register_builtin_handlers(handlers: HandlerRegistry) -> None:
    for key, handler in BUILTIN_HANDLERS.items():
        handlers.register(key, handler)


__all__ = ["BUILTIN_HANDLERS", "register_builtin_handlers"]
