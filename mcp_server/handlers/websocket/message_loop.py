"""WebSocket receive loop.

Frames from one connection are handled strictly in arrival order: each
envelope is fully dispatched (plugins, handlers, proxy calls included)
before the next frame is read. Connections run their loops concurrently.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import WebSocket

from .errors import send_protocol_error
from ...logging import log_context
from ...errors import MalformedEnvelopeError

if TYPE_CHECKING:
    from ...runtime.dependencies import RuntimeDeps

logger = logging.getLogger(__name__)

_DISCONNECT = "websocket.disconnect"


async def _receive_frame(ws: WebSocket) -> str | bytes | None:
    """Return the next text/bytes frame, or None once the peer has gone."""
    message = await ws.receive()
    if message.get("type") == _DISCONNECT:
        return None
    text = message.get("text")
    if text is not None:
        return text
    return message.get("bytes") or b""


async def run_message_loop(ws: WebSocket, conn_id: str, runtime: RuntimeDeps) -> None:
    """Receive, decode, and dispatch frames until the connection ends."""
    registry = runtime.connections
    codec = runtime.codec
    dispatcher = runtime.dispatcher

    with log_context(connection_id=conn_id):
        while conn_id in registry:
            raw = await _receive_frame(ws)
            if raw is None:
                logger.debug("peer closed connection %s", conn_id)
                break

            registry.touch(conn_id)
            try:
                envelope = codec.decode(raw)
            except MalformedEnvelopeError as exc:
                await send_protocol_error(registry, conn_id, exc)
                continue

            logger.debug("WS recv: %s", envelope.type)
            await dispatcher.dispatch(conn_id, envelope)


__all__ = ["run_message_loop"]
