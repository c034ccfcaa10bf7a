"""Runtime dependency bootstrap.

This module eagerly builds all runtime services at startup. Handlers consume
these dependencies through ``DispatchContext.server`` instead of reaching for
module-level singletons.
"""

from __future__ import annotations

import logging

from ..events import EventBus
from ..proxy import ProxyRelay
from ..plugins import PluginHost
from ..protocol import ProtocolCodec
from ..helpers.time import ClockFn, now_ms
from ..state.config_store import ConfigStore
from ..config.proxy import PROXY_ROUTES_KEY
from ..handlers import (
    HandlerRegistry,
    LivenessMonitor,
    MessageDispatcher,
    ConnectionRegistry,
    register_builtin_handlers,
)

from .settings import ServerSettings
from .dependencies import RuntimeDeps

logger = logging.getLogger(__name__)


def build_runtime_deps(
    settings: ServerSettings | None = None,
    *,
    config: ConfigStore | None = None,
    now_fn: ClockFn | None = None,
) -> RuntimeDeps:
    """Assemble every runtime service and wire the dispatcher to them."""
    config = config if config is not None else ConfigStore()
    settings = settings or ServerSettings.resolve(config)
    clock = now_fn or now_ms

    events = EventBus()
    codec = ProtocolCodec(now_fn=clock)
    connections = ConnectionRegistry(
        codec,
        events,
        max_connections=settings.max_connections,
        idle_timeout_ms=settings.idle_timeout_ms,
        now_fn=clock,
    )
    handlers = HandlerRegistry()
    register_builtin_handlers(handlers)

    proxy = ProxyRelay(default_timeout_ms=settings.proxy_timeout_ms)
    proxy.register_from_config(config.get(PROXY_ROUTES_KEY, {}))

    dispatcher = MessageDispatcher()
    runtime = RuntimeDeps(
        codec=codec,
        events=events,
        config=config,
        connections=connections,
        handlers=handlers,
        plugins=PluginHost(config, events, settings.plugins_dir),
        proxy=proxy,
        dispatcher=dispatcher,
        liveness=LivenessMonitor(connections, settings.ping_interval_ms),
        host=settings.host,
        port=settings.port,
        auth_required=settings.auth_required,
        auth_token=settings.auth_token,
        token_expiration_ms=settings.token_expiration_ms,
        plugins_enabled=settings.plugins_enabled,
        now_fn=clock,
    )
    dispatcher.bind(runtime)
    logger.debug(
        "runtime built: max_connections=%s auth_required=%s plugins_dir=%s",
        settings.max_connections,
        settings.auth_required,
        settings.plugins_dir,
    )
    return runtime


__all__ = ["build_runtime_deps"]
