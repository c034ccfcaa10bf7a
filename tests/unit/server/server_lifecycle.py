"""End-to-end tests for ControlPlaneServer start/stop over a real socket."""

from __future__ import annotations

import json
import socket
import asyncio
from pathlib import Path

import pytest
import websockets

from mcp_server.server import ControlPlaneServer
from mcp_server.errors import ServerStartError
from tests.helpers.fakes import build_test_runtime, write_plugin

_SHUTDOWN_PLUGIN = """
from pathlib import Path

MARKER = Path(__file__).with_name("shutdown.marker")

def initialize(context):
    pass

def on_server_shutdown():
    MARKER.write_text("bye")
"""


def _server(tmp_path: Path, **overrides) -> ControlPlaneServer:
    overrides.setdefault("host", "127.0.0.1")
    overrides.setdefault("port", 0)
    runtime = build_test_runtime(tmp_path, **overrides)
    runtime.accepting = False
    runtime.started_at = None
    return ControlPlaneServer(runtime)


def test_start_serves_websocket_and_stop_closes_clients(tmp_path: Path) -> None:
    async def _run() -> None:
        server = _server(tmp_path)
        write_plugin(server.runtime.plugins.plugins_dir, "notifier", _SHUTDOWN_PLUGIN)
        events: list[str] = []
        for name in ("started", "stopped"):
            server.runtime.events.on(name, lambda event: events.append(event.name))

        await server.start()
        assert server.running
        assert server.port != 0
        assert server.status()["config"]["port"] == server.port
        assert [plugin["name"] for plugin in server.status()["plugins"]] == ["notifier"]

        async with websockets.connect(f"ws://127.0.0.1:{server.port}/ws") as ws:
            welcome = json.loads(await ws.recv())
            assert welcome["type"] == "system.info"
            await ws.send(json.dumps({"type": "server.info"}))
            info = json.loads(await ws.recv())
            assert info["data"]["connections"]["totalConnections"] == 1

            await server.stop()
            with pytest.raises(websockets.ConnectionClosed) as excinfo:
                await ws.recv()
            assert excinfo.value.rcvd is not None
            assert excinfo.value.rcvd.code == 1001

        assert not server.running
        assert len(server.runtime.connections) == 0
        assert (server.runtime.plugins.plugins_dir / "notifier" / "shutdown.marker").read_text() == "bye"
        assert events == ["started", "stopped"]

    asyncio.run(_run())


def test_start_on_occupied_port_raises(tmp_path: Path) -> None:
    async def _run() -> None:
        with socket.socket() as holder:
            holder.bind(("127.0.0.1", 0))
            holder.listen()
            port = holder.getsockname()[1]

            server = _server(tmp_path, port=port)
            with pytest.raises(ServerStartError) as excinfo:
                await server.start()
            assert excinfo.value.port == port
            assert not server.running

    asyncio.run(_run())


def test_stop_when_not_running_is_a_noop(tmp_path: Path) -> None:
    async def _run() -> None:
        server = _server(tmp_path)
        await server.stop()
        assert not server.running

    asyncio.run(_run())


def test_restart_serves_again(tmp_path: Path) -> None:
    async def _run() -> None:
        server = _server(tmp_path, plugins_enabled=False)
        await server.start()
        await server.restart(delay_s=0)
        try:
            assert server.running
            async with websockets.connect(f"ws://127.0.0.1:{server.port}/") as ws:
                assert json.loads(await ws.recv())["type"] == "system.info"
        finally:
            await server.stop()

    asyncio.run(_run())
