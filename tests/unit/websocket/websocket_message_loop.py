"""Unit tests for the per-connection receive loop."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from mcp_server.handlers.websocket.message_loop import run_message_loop
from tests.helpers.fakes import FakeTransport, build_test_runtime


class _ScriptedWebSocket:
    """Replays ASGI receive messages, then reports a disconnect."""

    def __init__(self, messages: list[dict[str, Any]]) -> None:
        self._messages = list(messages)

    async def receive(self) -> dict[str, Any]:
        if self._messages:
            return self._messages.pop(0)
        return {"type": "websocket.disconnect", "code": 1000}


def _text(payload: str) -> dict[str, Any]:
    return {"type": "websocket.receive", "text": payload}


def test_loop_dispatches_text_and_bytes_in_order(tmp_path: Path) -> None:
    async def _run() -> None:
        runtime = build_test_runtime(tmp_path)
        transport = FakeTransport()
        conn_id = await runtime.connections.add(transport)
        ws = _ScriptedWebSocket(
            [
                _text('{"type": "echo", "data": {"n": 1}}'),
                {"type": "websocket.receive", "bytes": b'{"type": "system.ping"}'},
                _text('{"type": "status"}'),
            ]
        )

        await run_message_loop(ws, conn_id, runtime)

        assert transport.types() == ["echo.response", "system.pong", "status.response"]
        assert runtime.connections.get(conn_id)["stats"]["received"] == 3

    asyncio.run(_run())


def test_malformed_frames_get_errors_and_loop_continues(tmp_path: Path) -> None:
    async def _run() -> None:
        runtime = build_test_runtime(tmp_path)
        transport = FakeTransport()
        conn_id = await runtime.connections.add(transport)
        ws = _ScriptedWebSocket(
            [
                _text("not json"),
                _text('{"data": {}}'),
                _text('{"type": ""}'),
                _text('{"type": "echo"}'),
            ]
        )

        await run_message_loop(ws, conn_id, runtime)

        codes = [frame["data"].get("code") for frame in transport.frames[:3]]
        assert codes == [102, 100, 101]
        assert transport.types()[-1] == "echo.response"
        assert conn_id in runtime.connections

    asyncio.run(_run())


def test_loop_stops_once_connection_is_removed(tmp_path: Path) -> None:
    async def _run() -> None:
        runtime = build_test_runtime(tmp_path)
        transport = FakeTransport()
        conn_id = await runtime.connections.add(transport)

        async def _leave(envelope, ctx):
            await ctx.server.connections.remove(ctx.connection_id, reason="kicked")

        runtime.handlers.register("leave", _leave)
        ws = _ScriptedWebSocket([_text('{"type": "leave"}'), _text('{"type": "echo"}')])

        await run_message_loop(ws, conn_id, runtime)

        assert transport.frames == []
        assert transport.close_calls == [(1000, "kicked")]

    asyncio.run(_run())


def test_next_frame_waits_for_previous_dispatch(tmp_path: Path) -> None:
    async def _run() -> None:
        runtime = build_test_runtime(tmp_path)
        transport = FakeTransport()
        conn_id = await runtime.connections.add(transport)
        timeline: list[str] = []

        async def _slow(envelope, ctx):
            timeline.append("slow-start")
            await asyncio.sleep(0.05)
            timeline.append("slow-end")
            return {"type": "slow.done", "data": {}}

        async def _fast(envelope, ctx):
            timeline.append("fast-start")
            return {"type": "fast.done", "data": {}}

        runtime.handlers.register("slow", _slow)
        runtime.handlers.register("fast", _fast)
        ws = _ScriptedWebSocket([_text('{"type": "slow"}'), _text('{"type": "fast"}')])

        await run_message_loop(ws, conn_id, runtime)

        assert timeline == ["slow-start", "slow-end", "fast-start"]
        assert transport.types() == ["slow.done", "fast.done"]

    asyncio.run(_run())
