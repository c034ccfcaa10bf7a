"""Inline handlers for the reserved ``system.*`` message types."""

from __future__ import annotations

import hmac
import logging
from typing import TYPE_CHECKING

from ..config.protocol import (
    SYSTEM_PING,
    SYSTEM_PONG,
    SYSTEM_AUTH,
    SYSTEM_REGISTER,
    SYSTEM_AUTH_RESPONSE,
    SYSTEM_REGISTER_RESPONSE,
)

if TYPE_CHECKING:
    from ..protocol import Envelope
    from ..plugins.context import DispatchContext

logger = logging.getLogger(__name__)


async def handle_ping(envelope: Envelope, ctx: DispatchContext) -> None:
    await ctx.reply(SYSTEM_PONG, {"timestamp": ctx.server.now(), "echo": envelope.data})


def _credentials_valid(envelope: Envelope, expected: str | None) -> bool:
    if not expected:
        return True
    token = envelope.data.get("token")
    if not isinstance(token, str):
        return False
    return hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8"))


async def handle_auth(envelope: Envelope, ctx: DispatchContext) -> None:
    """Authenticate the connection.

    With no server token configured any auth envelope is accepted. The
    connection is only flipped to authenticated when auth is required.
    """
    runtime = ctx.server
    now = runtime.now()
    if not _credentials_valid(envelope, runtime.auth_token):
        logger.warning("Authentication failed for %s", ctx.connection_id)
        await ctx.reply(
            SYSTEM_AUTH_RESPONSE,
            {"success": False, "timestamp": now, "message": "Invalid credentials"},
        )
        return

    if runtime.auth_required:
        runtime.connections.mark_authenticated(ctx.connection_id)
    await ctx.reply(
        SYSTEM_AUTH_RESPONSE,
        {"success": True, "timestamp": now, "expiresAt": now + runtime.token_expiration_ms},
    )


async def handle_register(envelope: Envelope, ctx: DispatchContext) -> None:
    ctx.server.connections.merge_client_info(ctx.connection_id, envelope.data)
    await ctx.reply(
        SYSTEM_REGISTER_RESPONSE,
        {"success": True, "id": ctx.connection_id, "timestamp": ctx.server.now()},
    )


SYSTEM_HANDLERS = {
    SYSTEM_PING: handle_ping,
    SYSTEM_AUTH: handle_auth,
    SYSTEM_REGISTER: handle_register,
}


__all__ = ["SYSTEM_HANDLERS", "handle_ping", "handle_auth", "handle_register"]
