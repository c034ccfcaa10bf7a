"""Connection registry: admission, bookkeeping, delivery, and liveness.

This module owns the set of live connections and enforces the configured
connection ceiling. It provides:

- Connection admission control (reject with a 500 system error at capacity)
- Idempotent removal with exactly-once disconnection events
- Envelope delivery with per-connection counters
- Broadcast with an optional predicate
- The liveness sweep used by the periodic monitor

Connection state machine:

    CONNECTED --system.auth (auth required)--> AUTHENTICATED
        |                                           |
        +------ close / error / idle / disconnect --+--> CLOSED (terminal)

All mutation happens on the event loop through the public methods below; the
connection map is never handed out.

Example:
    registry = ConnectionRegistry(codec, events, max_connections=50)

    conn_id = await registry.add(transport, PeerInfo(ip_address="10.0.0.5"))
    if conn_id is None:
        return  # rejected and already closed
    try:
        ...  # receive loop
    finally:
        await registry.remove(conn_id, reason="closed")
"""

from __future__ import annotations

import contextlib
import logging
import uuid
from collections.abc import Callable
from typing import Any

from ..events import EventBus
from ..errors import SerializationError
from ..protocol import Envelope, ProtocolCodec
from ..helpers.time import ClockFn, now_ms
from ..state.connection import Connection, PeerInfo, Transport
from ..config.protocol import ERROR_SERVER_ERROR, SYSTEM_ERROR, SYSTEM_PING
from ..config.server import MCP_IDLE_TIMEOUT_MS, MCP_MAX_CONNECTIONS
from ..config.websocket import (
    WS_CLOSE_BUSY_CODE,
    WS_CLOSE_IDLE_CODE,
    WS_CLOSE_IDLE_REASON,
    WS_CLOSE_NORMAL_CODE,
)

logger = logging.getLogger(__name__)

ConnectionPredicate = Callable[[Connection], bool]


class ConnectionRegistry:
    """Tracks live connections and delivers envelopes to them.

    Attributes:
        max_connections: Maximum simultaneously live connections.
        idle_timeout_ms: Inactivity after which the sweep removes a connection.
    """

    def __init__(
        self,
        codec: ProtocolCodec,
        events: EventBus,
        *,
        max_connections: int = MCP_MAX_CONNECTIONS,
        idle_timeout_ms: int = MCP_IDLE_TIMEOUT_MS,
        now_fn: ClockFn | None = None,
    ) -> None:
        self.codec = codec
        self.events = events
        self.max_connections = max_connections
        self.idle_timeout_ms = idle_timeout_ms
        self._now = now_fn or now_ms
        self._connections: dict[str, Connection] = {}

    # ------------------------------------------------------------------
    # Admission / removal
    # ------------------------------------------------------------------

    async def add(self, transport: Transport, peer: PeerInfo | None = None) -> str | None:
        """Admit a transport, or reject it when the registry is full.

        Returns:
            The new connection id, or None if the connection was rejected
            (a 500 system error was sent and the transport closed).
        """
        peer = peer or PeerInfo()
        if len(self._connections) >= self.max_connections:
            logger.warning(
                "Connection rejected: at capacity (%s/%s) from %s",
                len(self._connections),
                self.max_connections,
                peer.ip_address,
            )
            await self._reject(transport)
            return None

        conn_id = self._generate_id()
        now = self._now()
        connection = Connection(
            id=conn_id,
            transport=transport,
            ip_address=peer.ip_address,
            user_agent=peer.user_agent,
            connected_at=now,
            last_activity_at=now,
        )
        self._connections[conn_id] = connection
        logger.info(
            "Connection accepted: %s from %s (%s/%s active)",
            conn_id,
            peer.ip_address,
            len(self._connections),
            self.max_connections,
        )
        self.events.emit(
            "connection",
            {
                "id": conn_id,
                "ipAddress": connection.ip_address,
                "userAgent": connection.user_agent,
                "timestamp": now,
            },
        )
        return conn_id

    async def remove(
        self,
        conn_id: str,
        *,
        reason: str = "closed",
        close_code: int = WS_CLOSE_NORMAL_CODE,
    ) -> bool:
        """Remove a connection; a second call for the same id is a no-op.

        Returns:
            True if the connection was live and is now removed.
        """
        connection = self._connections.pop(conn_id, None)
        if connection is None:
            return False
        connection.closed = True

        if connection.transport.is_open:
            try:
                await connection.transport.close(code=close_code, reason=reason)
            except Exception as exc:  # noqa: BLE001
                logger.debug("error closing connection %s: %s", conn_id, exc)

        logger.info(
            "Connection removed: %s reason=%s (%s/%s active)",
            conn_id,
            reason,
            len(self._connections),
            self.max_connections,
        )
        self.events.emit("disconnection", {"id": conn_id, "reason": reason})
        return True

    async def close_all(self, *, reason: str = "shutdown", close_code: int = WS_CLOSE_NORMAL_CODE) -> int:
        """Remove every live connection and return how many were closed."""
        closed = 0
        for conn_id in list(self._connections):
            if await self.remove(conn_id, reason=reason, close_code=close_code):
                closed += 1
        return closed

    # ------------------------------------------------------------------
    # Per-connection state
    # ------------------------------------------------------------------

    def touch(self, conn_id: str) -> bool:
        """Record inbound client activity (received counter + last activity)."""
        connection = self._connections.get(conn_id)
        if connection is None:
            return False
        connection.stats.received += 1
        connection.touch(self._now())
        return True

    def record_error(self, conn_id: str) -> None:
        connection = self._connections.get(conn_id)
        if connection is not None:
            connection.stats.errors += 1

    def mark_authenticated(self, conn_id: str) -> bool:
        """Flip a connection to authenticated; returns False if unknown or already set."""
        connection = self._connections.get(conn_id)
        if connection is None or connection.is_authenticated:
            return False
        connection.is_authenticated = True
        logger.info("Connection %s authenticated", conn_id)
        self.events.emit("authenticated", {"connectionId": conn_id})
        return True

    def is_authenticated(self, conn_id: str) -> bool:
        connection = self._connections.get(conn_id)
        return connection is not None and connection.is_authenticated

    def merge_client_info(self, conn_id: str, info: dict[str, Any]) -> dict[str, Any] | None:
        connection = self._connections.get(conn_id)
        if connection is None:
            return None
        connection.client_info = {**connection.client_info, **info}
        logger.info("Client registered: %s %s", conn_id, connection.client_info)
        self.events.emit(
            "client_registered",
            {"connectionId": conn_id, "clientInfo": dict(connection.client_info)},
        )
        return dict(connection.client_info)

    def __contains__(self, conn_id: object) -> bool:
        return conn_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    async def send(
        self,
        conn_id: str,
        msg_type: str,
        data: dict[str, Any] | None = None,
        *,
        refresh_activity: bool = True,
    ) -> bool:
        """Build and deliver an envelope to one connection.

        A failed write only bumps the error counter; the connection is left
        in place for its receive loop or the sweep to retire.

        Returns:
            True if the frame was written to the transport.
        """
        connection = self._connections.get(conn_id)
        if connection is None:
            logger.warning("Attempted to send %s to unknown connection %s", msg_type, conn_id)
            return False

        envelope = self.codec.create_message(msg_type, data)
        return await self._deliver(connection, envelope, refresh_activity=refresh_activity)

    async def send_error(
        self,
        conn_id: str,
        code: int,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> bool:
        return await self.send(
            conn_id,
            SYSTEM_ERROR,
            {"code": code, "message": message, "details": dict(details or {})},
        )

    async def broadcast(
        self,
        msg_type: str,
        data: dict[str, Any] | None = None,
        predicate: ConnectionPredicate | None = None,
    ) -> int:
        """Send to every connection matching ``predicate``; return delivered count."""
        delivered = 0
        for conn_id, connection in list(self._connections.items()):
            if predicate is not None and not predicate(connection):
                continue
            if await self.send(conn_id, msg_type, data):
                delivered += 1
        return delivered

    async def _deliver(self, connection: Connection, envelope: Envelope, *, refresh_activity: bool) -> bool:
        try:
            frame = self.codec.encode(envelope)
        except SerializationError as exc:
            logger.error("Failed to serialize %s for %s: %s", envelope.type, connection.id, exc)
            connection.stats.errors += 1
            return False

        try:
            await connection.transport.send_text(frame.decode("utf-8"))
        except Exception as exc:  # noqa: BLE001
            logger.error("Error sending %s to %s: %s", envelope.type, connection.id, exc)
            connection.stats.errors += 1
            return False

        connection.stats.sent += 1
        if refresh_activity:
            connection.touch(self._now())
        return True

    # ------------------------------------------------------------------
    # Liveness
    # ------------------------------------------------------------------

    async def sweep(self, now: int | None = None) -> tuple[int, int]:
        """Remove idle connections and ping the rest.

        Pings do not refresh ``last_activity_at``; only inbound client
        traffic (and successful replies) moves it forward.

        Returns:
            Tuple of (timed_out_count, pinged_count).
        """
        now = self._now() if now is None else now
        timed_out = 0
        pinged = 0
        for conn_id, connection in list(self._connections.items()):
            idle_for = now - connection.last_activity_at
            if idle_for > self.idle_timeout_ms:
                logger.info(
                    "Connection %s timed out after %sms of inactivity",
                    conn_id,
                    self.idle_timeout_ms,
                )
                if await self.remove(conn_id, reason=WS_CLOSE_IDLE_REASON, close_code=WS_CLOSE_IDLE_CODE):
                    timed_out += 1
                continue
            if await self.send(conn_id, SYSTEM_PING, {"timestamp": now}, refresh_activity=False):
                pinged += 1
        return timed_out, pinged

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get(self, conn_id: str) -> dict[str, Any] | None:
        connection = self._connections.get(conn_id)
        return connection.to_dict() if connection is not None else None

    def list_connections(self) -> list[dict[str, Any]]:
        return [connection.to_dict() for connection in self._connections.values()]

    def status(self) -> dict[str, Any]:
        """Capacity summary for health and server.info responses."""
        active = len(self._connections)
        return {
            "totalConnections": active,
            "maxConnections": self.max_connections,
            "available": max(0, self.max_connections - active),
            "atCapacity": active >= self.max_connections,
            "authenticated": sum(1 for c in self._connections.values() if c.is_authenticated),
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _reject(self, transport: Transport) -> None:
        envelope = self.codec.create_error(ERROR_SERVER_ERROR, "Maximum connections reached")
        try:
            await transport.send_text(self.codec.encode(envelope).decode("utf-8"))
        except Exception as exc:  # noqa: BLE001
            logger.error("Error sending max connections message: %s", exc)
        with contextlib.suppress(Exception):
            await transport.close(code=WS_CLOSE_BUSY_CODE, reason="server_at_capacity")

    def _generate_id(self) -> str:
        conn_id = str(uuid.uuid4())
        while conn_id in self._connections:
            conn_id = str(uuid.uuid4())
        return conn_id


__all__ = ["ConnectionRegistry", "ConnectionPredicate"]
