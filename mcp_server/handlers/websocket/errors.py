"""Shared response helpers for WebSocket error handling.

All error responses use the protocol's ``system.error`` envelope:

    {
        "type": "system.error",
        "version": "1.0",
        "timestamp": 1700000000000,
        "data": {"code": 102, "message": "Message must be valid JSON.", "details": {}}
    }
"""

from __future__ import annotations

import logging
import contextlib

from fastapi import WebSocket

from ...errors import ProtocolError
from ...protocol import ProtocolCodec
from ..connections import ConnectionRegistry

logger = logging.getLogger(__name__)


async def send_protocol_error(registry: ConnectionRegistry, conn_id: str, exc: ProtocolError) -> bool:
    """Report an undecodable frame to its connection; the connection stays open."""
    registry.record_error(conn_id)
    logger.info("invalid message from %s: %s (code %s)", conn_id, exc.message, exc.code)
    return await registry.send_error(conn_id, exc.code, exc.message)


async def reject_connection(
    ws: WebSocket,
    codec: ProtocolCodec,
    *,
    code: int,
    message: str,
    close_code: int,
) -> None:
    """Accept briefly to deliver a system error, then close.

    This pattern ensures the client receives a meaningful error message
    rather than just a raw close code.
    """
    await ws.accept()
    with contextlib.suppress(Exception):
        await ws.send_text(codec.encode(codec.create_error(code, message)).decode("utf-8"))
    with contextlib.suppress(Exception):
        await ws.close(code=close_code)


__all__ = ["send_protocol_error", "reject_connection"]
