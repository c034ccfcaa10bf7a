"""Primary WebSocket connection handler orchestration.

This module contains the entry point for every client connection. It:

1. Connection Setup:
   - Refuses new sockets while the server is stopping
   - Admission through the ConnectionRegistry (capacity check)
   - Sends the ``system.info`` welcome envelope

2. Message Routing:
   - Hands the socket to the receive loop, which decodes and dispatches

3. Cleanup:
   - Removes the connection from the registry exactly once, recording why
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import WebSocket

from .errors import reject_connection
from .message_loop import run_message_loop
from .disconnects import is_expected_disconnect
from .transport import WebSocketTransport, peer_info
from ...config.server import SERVER_NAME, SERVER_VERSION
from ...config.protocol import SYSTEM_INFO, ERROR_SERVER_ERROR
from ...config.websocket import WS_CLOSE_GOING_AWAY_CODE, WS_CLOSE_NORMAL_CODE

if TYPE_CHECKING:
    from ...runtime.dependencies import RuntimeDeps

logger = logging.getLogger(__name__)


async def _send_welcome(runtime: RuntimeDeps, conn_id: str) -> None:
    await runtime.connections.send(
        conn_id,
        SYSTEM_INFO,
        {
            "name": SERVER_NAME,
            "version": SERVER_VERSION,
            "timestamp": runtime.now(),
            "message": f"Welcome to {SERVER_NAME}",
        },
    )


async def handle_websocket_connection(ws: WebSocket, runtime: RuntimeDeps) -> None:
    """Handle one WebSocket connection from accept to removal.

    Args:
        ws: The incoming WebSocket connection from FastAPI.
        runtime: Process-wide runtime services.
    """
    if not runtime.accepting:
        logger.info("refusing connection: server is not accepting")
        await reject_connection(
            ws,
            runtime.codec,
            code=ERROR_SERVER_ERROR,
            message="Server is shutting down",
            close_code=WS_CLOSE_GOING_AWAY_CODE,
        )
        return

    await ws.accept()
    conn_id = await runtime.connections.add(WebSocketTransport(ws), peer_info(ws))
    if conn_id is None:
        return

    reason = "closed"
    close_code = WS_CLOSE_NORMAL_CODE
    try:
        await _send_welcome(runtime, conn_id)
        await run_message_loop(ws, conn_id, runtime)
    except Exception as exc:  # noqa: BLE001
        if is_expected_disconnect(exc):
            reason = "disconnected"
        else:
            logger.exception("WebSocket error on %s", conn_id)
            reason = "error"
            close_code = WS_CLOSE_GOING_AWAY_CODE
    finally:
        await runtime.connections.remove(conn_id, reason=reason, close_code=close_code)


__all__ = ["handle_websocket_connection"]
