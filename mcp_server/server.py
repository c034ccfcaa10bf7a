"""FastAPI application and server lifecycle for the control plane.

This module provides:

- REST endpoints for health and version checks (/health, /api/version)
- The WebSocket endpoint, mounted at both / and /ws
- ControlPlaneServer: start / stop / restart around an embedded uvicorn server

Server Lifecycle:
    1. start(): bind the listening socket (bind failures raise
       ServerStartError), load plugins, serve, start the liveness sweep
    2. Accept WebSocket connections and dispatch their envelopes
    3. stop(): stop accepting, call ``on_server_shutdown`` on every enabled
       plugin, close every connection, then close the listening socket

Example:
    server = ControlPlaneServer(settings=ServerSettings.resolve(port=3030))
    await server.start()
    ...
    await server.stop()
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import socket
from collections.abc import Iterator
from typing import Any

import uvicorn
from fastapi import FastAPI, Request, WebSocket
from fastapi.responses import ORJSONResponse

from .errors import ServerStartError
from .runtime import RuntimeDeps, ServerSettings, build_runtime_deps
from .state.config_store import ConfigStore
from .handlers.websocket import handle_websocket_connection
from .config.server import API_VERSION, SERVER_NAME, SERVER_VERSION, MCP_RESTART_DELAY_S
from .config.websocket import WS_PATHS, WS_CLOSE_GOING_AWAY_CODE

logger = logging.getLogger(__name__)

# Seconds uvicorn waits for in-flight connections once the listener closes
_GRACEFUL_SHUTDOWN_S = 5
_STARTUP_POLL_S = 0.01


def create_app(runtime: RuntimeDeps) -> FastAPI:
    """Build the FastAPI app bound to one runtime container."""
    app = FastAPI(title=SERVER_NAME, version=SERVER_VERSION, default_response_class=ORJSONResponse)
    app.state.runtime = runtime

    @app.get("/health")
    async def health(request: Request) -> dict[str, Any]:
        """Liveness check (no authentication required)."""
        return {"status": "ok", "uptime": request.app.state.runtime.uptime_s()}

    @app.get("/api/version")
    async def version() -> dict[str, Any]:
        return {"name": SERVER_NAME, "version": SERVER_VERSION, "apiVersion": API_VERSION}

    async def websocket_endpoint(websocket: WebSocket) -> None:
        await handle_websocket_connection(websocket, websocket.app.state.runtime)

    for path in WS_PATHS:
        app.add_api_websocket_route(path, websocket_endpoint)

    return app


class _EmbeddedUvicorn(uvicorn.Server):
    """uvicorn server that leaves signal handling to the embedding process."""

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield

    def install_signal_handlers(self) -> None:
        return None


class ControlPlaneServer:
    """Owns the listening socket, the uvicorn server, and the runtime."""

    def __init__(
        self,
        runtime: RuntimeDeps | None = None,
        *,
        settings: ServerSettings | None = None,
        config: ConfigStore | None = None,
    ) -> None:
        self.runtime = runtime or build_runtime_deps(settings, config=config)
        self.app = create_app(self.runtime)
        self.host = self.runtime.host
        self.port = self.runtime.port
        self._uvicorn: _EmbeddedUvicorn | None = None
        self._serve_task: asyncio.Task | None = None
        self._plugins_loaded = False

    @property
    def running(self) -> bool:
        return self.runtime.running

    async def start(self) -> None:
        """Bind, load plugins, and begin serving.

        Raises:
            ServerStartError: If the socket cannot be bound or uvicorn exits
                before it finishes starting.
        """
        if self.running:
            logger.warning("Server is already running")
            return

        sock = self._bind_socket()
        self.port = sock.getsockname()[1]

        if self.runtime.plugins_enabled and not self._plugins_loaded:
            await self.runtime.plugins.load_all()
            self._plugins_loaded = True

        config = uvicorn.Config(
            self.app,
            host=self.host,
            port=self.port,
            lifespan="off",
            log_config=None,
            timeout_graceful_shutdown=_GRACEFUL_SHUTDOWN_S,
        )
        server = _EmbeddedUvicorn(config)
        self._uvicorn = server
        self._serve_task = asyncio.create_task(server.serve(sockets=[sock]))

        while not server.started:
            if self._serve_task.done():
                exc = self._serve_task.exception()
                self._reset_serve_state()
                with contextlib.suppress(OSError):
                    sock.close()
                raise ServerStartError(self.host, self.port, str(exc or "server exited during startup"))
            await asyncio.sleep(_STARTUP_POLL_S)

        runtime = self.runtime
        runtime.started_at = runtime.now()
        runtime.accepting = True
        runtime.liveness.start()
        logger.info("MCP server started on ws://%s:%s", self.host, self.port)
        runtime.events.emit("started", {"host": self.host, "port": self.port})

    async def stop(self) -> None:
        """Stop accepting, notify plugins, close connections, close the listener."""
        if not self.running:
            return

        runtime = self.runtime
        logger.info("Stopping MCP server...")
        runtime.accepting = False
        await runtime.liveness.stop()

        results = await runtime.plugins.call_hook("on_server_shutdown")
        failed = [result.plugin for result in results if not result.ok]
        if failed:
            logger.warning("on_server_shutdown failed for: %s", ", ".join(failed))

        closed = await runtime.connections.close_all(reason="shutdown", close_code=WS_CLOSE_GOING_AWAY_CODE)
        logger.info("Closed %s connection(s)", closed)

        if self._uvicorn is not None:
            self._uvicorn.should_exit = True
        if self._serve_task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._serve_task
        self._reset_serve_state()

        await runtime.shutdown()
        runtime.started_at = None
        logger.info("MCP server stopped")
        runtime.events.emit("stopped", {"host": self.host, "port": self.port})

    async def restart(self, delay_s: float = MCP_RESTART_DELAY_S) -> None:
        await self.stop()
        await asyncio.sleep(delay_s)
        await self.start()

    async def wait_closed(self) -> None:
        """Block until the serve task exits."""
        if self._serve_task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await asyncio.shield(self._serve_task)

    def status(self) -> dict[str, Any]:
        summary = self.runtime.summary()
        summary["config"]["port"] = self.port
        return {"name": SERVER_NAME, "version": SERVER_VERSION, **summary}

    def _bind_socket(self) -> socket.socket:
        try:
            sock = socket.create_server((self.host, self.port))
        except OSError as exc:
            logger.error("Failed to bind %s:%s: %s", self.host, self.port, exc)
            raise ServerStartError(self.host, self.port, str(exc)) from exc
        sock.setblocking(False)
        return sock

    def _reset_serve_state(self) -> None:
        self._uvicorn = None
        self._serve_task = None


__all__ = ["create_app", "ControlPlaneServer"]
