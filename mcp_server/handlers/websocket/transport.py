"""Adapter from a FastAPI WebSocket to the registry's Transport surface."""

from __future__ import annotations

import logging

from fastapi import WebSocket
from fastapi.websockets import WebSocketState

from ...state.connection import PeerInfo

logger = logging.getLogger(__name__)


class WebSocketTransport:
    """Owns one accepted FastAPI WebSocket on behalf of the registry."""

    def __init__(self, websocket: WebSocket) -> None:
        self._ws = websocket

    @property
    def websocket(self) -> WebSocket:
        return self._ws

    @property
    def is_open(self) -> bool:
        return (
            self._ws.client_state == WebSocketState.CONNECTED
            and self._ws.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, text: str) -> None:
        await self._ws.send_text(text)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if self._ws.application_state == WebSocketState.DISCONNECTED:
            return
        await self._ws.close(code=code, reason=reason)


def peer_info(websocket: WebSocket) -> PeerInfo:
    """Address and user agent of the remote end, ``unknown`` when absent."""
    client = websocket.client
    return PeerInfo(
        ip_address=client.host if client is not None and client.host else "unknown",
        user_agent=websocket.headers.get("user-agent", "unknown"),
    )


__all__ = ["WebSocketTransport", "peer_info"]
