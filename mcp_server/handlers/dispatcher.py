"""Route one decoded envelope to exactly one consumer.

Dispatch order for an envelope from connection C:

1. Auth gate: when auth is required and C is not authenticated, only
   ``system.auth`` passes; anything else gets a 200 system error.
2. ``system.*`` types run inline (ping, auth, register). Unknown system
   types emit ``unhandled`` and get no reply.
3. Enabled plugins in load order; the first ``handle_message`` returning
   True ends dispatch.
4. Registered handler: exact type, then namespace. A returned
   ``{"type", "data"}`` is sent back to C.
5. Nothing matched: emit ``unhandled`` and reply with a 300 system error.

Any handler or plugin exception is logged, emitted as ``error``, and
answered with a 500 system error; the connection stays open. None of the
dispatch errors escape this module.
"""

from __future__ import annotations

import enum
import inspect
import logging
from typing import TYPE_CHECKING, Any

from .system import SYSTEM_HANDLERS
from ..logging import log_context
from ..plugins.context import DispatchContext
from ..errors import AuthError, HandlerError, RoutingError
from ..config.protocol import SYSTEM_AUTH

if TYPE_CHECKING:
    from ..protocol import Envelope
    from ..runtime.dependencies import RuntimeDeps

logger = logging.getLogger(__name__)


class DispatchRoute(enum.Enum):
    """Which consumer (if any) took an envelope."""

    REJECTED = "rejected"
    SYSTEM = "system"
    PLUGIN = "plugin"
    HANDLER = "handler"
    UNHANDLED = "unhandled"
    FAILED = "failed"
    DROPPED = "dropped"


class MessageDispatcher:
    """Classifies envelopes and routes them through the runtime's components.

    The dispatcher is created before the runtime container that holds it, so
    the container is attached afterwards with ``bind``.
    """

    def __init__(self) -> None:
        self._runtime: RuntimeDeps | None = None

    def bind(self, runtime: RuntimeDeps) -> None:
        self._runtime = runtime

    @property
    def runtime(self) -> RuntimeDeps:
        if self._runtime is None:
            raise RuntimeError("MessageDispatcher used before bind()")
        return self._runtime

    async def dispatch(self, connection_id: str, envelope: Envelope) -> DispatchRoute:
        runtime = self.runtime
        if connection_id not in runtime.connections:
            logger.debug("dropping %s for closed connection %s", envelope.type, connection_id)
            return DispatchRoute.DROPPED

        ctx = DispatchContext(connection_id=connection_id, server=runtime, timestamp=runtime.now())
        with log_context(connection_id=connection_id, message_type=envelope.type):
            try:
                route = await self._route(envelope, ctx)
            except AuthError as exc:
                logger.info("rejecting %s from unauthenticated connection", envelope.type)
                await self._fail(connection_id, exc.code, str(exc))
                return DispatchRoute.REJECTED
            except RoutingError as exc:
                logger.info("no handler for %s", envelope.type)
                self._emit_unhandled(connection_id, envelope)
                await self._fail(connection_id, exc.code, str(exc), {"type": envelope.type})
                return DispatchRoute.UNHANDLED
            except HandlerError as exc:
                logger.error("error processing %s in %s: %s", envelope.type, exc.source, exc.original)
                runtime.events.emit(
                    "error",
                    {
                        "connectionId": connection_id,
                        "type": envelope.type,
                        "source": exc.source,
                        "error": str(exc.original),
                    },
                )
                await self._fail(
                    connection_id,
                    exc.code,
                    "Error processing message",
                    {"error": str(exc.original), "type": envelope.type},
                )
                return DispatchRoute.FAILED

        if route is not DispatchRoute.UNHANDLED:
            runtime.events.emit(
                "message",
                {"connectionId": connection_id, "type": envelope.type, "route": route.value},
            )
        return route

    async def _route(self, envelope: Envelope, ctx: DispatchContext) -> DispatchRoute:
        runtime = ctx.server
        if (
            runtime.auth_required
            and not runtime.connections.is_authenticated(ctx.connection_id)
            and envelope.type != SYSTEM_AUTH
        ):
            raise AuthError("Authentication required")

        if envelope.is_system:
            system_handler = SYSTEM_HANDLERS.get(envelope.type)
            if system_handler is None:
                logger.warning("Unknown system message type: %s", envelope.type)
                self._emit_unhandled(ctx.connection_id, envelope)
                return DispatchRoute.UNHANDLED
            await self._call(envelope.type, system_handler, envelope, ctx)
            return DispatchRoute.SYSTEM

        if await runtime.plugins.handle_message(envelope, ctx) is not None:
            return DispatchRoute.PLUGIN

        handler = runtime.handlers.resolve(envelope.type)
        if handler is None:
            raise RoutingError(envelope.type)

        result = await self._call(envelope.type, handler, envelope, ctx)
        await self._send_result(ctx, envelope, result)
        return DispatchRoute.HANDLER

    @staticmethod
    async def _call(source: str, handler: Any, envelope: Envelope, ctx: DispatchContext) -> Any:
        try:
            result = handler(envelope, ctx)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            raise HandlerError(source, exc) from exc
        return result

    async def _send_result(self, ctx: DispatchContext, envelope: Envelope, result: Any) -> None:
        if result is None:
            return
        if not isinstance(result, dict) or not isinstance(result.get("type"), str):
            logger.warning("handler for %s returned an invalid reply; ignoring", envelope.type)
            return
        data = result.get("data")
        await ctx.reply(result["type"], data if isinstance(data, dict) else {})

    def _emit_unhandled(self, connection_id: str, envelope: Envelope) -> None:
        self.runtime.events.emit(
            "unhandled",
            {"connectionId": connection_id, "type": envelope.type, "data": envelope.data},
        )

    async def _fail(
        self,
        connection_id: str,
        code: int,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        connections = self.runtime.connections
        connections.record_error(connection_id)
        await connections.send_error(connection_id, code, message, details)


__all__ = ["MessageDispatcher", "DispatchRoute"]
