"""Runtime dependency container.

All long-lived runtime services are assembled at startup and passed explicitly
through handlers (as ``DispatchContext.server``). This avoids module-level
singletons and lets tests build isolated runtimes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..helpers.time import ClockFn, now_ms

if TYPE_CHECKING:
    from ..events import EventBus
    from ..protocol import ProtocolCodec
    from ..proxy import ProxyRelay
    from ..plugins import PluginHost
    from ..state.config_store import ConfigStore
    from ..handlers.registry import HandlerRegistry
    from ..handlers.liveness import LivenessMonitor
    from ..handlers.dispatcher import MessageDispatcher
    from ..handlers.connections import ConnectionRegistry


@dataclass(slots=True)
class RuntimeDeps:
    """Process-wide runtime services initialized during startup."""

    codec: ProtocolCodec
    events: EventBus
    config: ConfigStore
    connections: ConnectionRegistry
    handlers: HandlerRegistry
    plugins: PluginHost
    proxy: ProxyRelay
    dispatcher: MessageDispatcher
    liveness: LivenessMonitor
    host: str
    port: int
    auth_required: bool = False
    auth_token: str | None = None
    token_expiration_ms: int = 86_400_000
    plugins_enabled: bool = True
    now_fn: ClockFn = now_ms
    started_at: int | None = None
    accepting: bool = False

    def now(self) -> int:
        return self.now_fn()

    @property
    def running(self) -> bool:
        return self.started_at is not None

    def uptime_s(self) -> int:
        if self.started_at is None:
            return 0
        return max(0, (self.now() - self.started_at) // 1000)

    def summary(self) -> dict[str, Any]:
        """Status block shared by server.info and the HTTP side channel."""
        return {
            "running": self.running,
            "uptime": self.uptime_s(),
            "connections": self.connections.status(),
            "config": {"host": self.host, "port": self.port, "authRequired": self.auth_required},
            "plugins": self.plugins.list_plugins(),
        }

    async def shutdown(self) -> None:
        await self.proxy.close()


__all__ = ["RuntimeDeps"]
