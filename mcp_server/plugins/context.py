"""Runtime contexts handed to plugins and message handlers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .manifest import PluginManifest

if TYPE_CHECKING:
    from .host import PluginHost
    from ..state.config_store import ConfigStore
    from ..runtime.dependencies import RuntimeDeps


@dataclass(frozen=True)
class PluginContext:
    """Passed to a plugin's ``initialize`` once, at load time."""

    manifest: PluginManifest
    plugin_root: Path
    logger: logging.Logger
    config: ConfigStore
    host: PluginHost


@dataclass(frozen=True)
class DispatchContext:
    """Per-envelope context for handlers and plugin ``handle_message`` hooks.

    Attributes:
        connection_id: Connection the envelope arrived on.
        server: Runtime container (connections, handlers, plugins, proxy, config).
        timestamp: Dispatch start time (epoch ms).
    """

    connection_id: str
    server: RuntimeDeps
    timestamp: int

    async def reply(self, msg_type: str, data: dict[str, Any] | None = None) -> bool:
        """Send an envelope back to the originating connection."""
        return await self.server.connections.send(self.connection_id, msg_type, data)

    async def reply_error(
        self,
        code: int,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> bool:
        return await self.server.connections.send_error(self.connection_id, code, message, details)


__all__ = ["PluginContext", "DispatchContext"]
