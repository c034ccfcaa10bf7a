"""Command-line entry point: ``python -m mcp_server``.

Runs the control-plane server until SIGINT/SIGTERM, then stops it
gracefully (plugins notified, connections closed, listener closed).
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from argparse import ArgumentParser, Namespace
from collections.abc import Sequence

from .errors import ServerStartError
from .logging import configure_logging
from .server import ControlPlaneServer
from .runtime import ServerSettings
from .state.config_store import ConfigStore

logger = logging.getLogger(__name__)


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(prog="mcp-server", description="Run the MCP control-plane WebSocket server.")
    parser.add_argument("--host", help="Address to bind (default env MCP_HOST or localhost)")
    parser.add_argument("--port", type=int, help="Port to bind (default env MCP_PORT or 3030)")
    parser.add_argument("--plugins-dir", dest="plugins_dir", help="Directory scanned for plugins")
    parser.add_argument(
        "--no-plugins",
        dest="plugins_enabled",
        action="store_const",
        const=False,
        default=None,
        help="Do not load plugins at startup",
    )
    parser.add_argument(
        "--auth-required",
        dest="auth_required",
        action="store_const",
        const=True,
        default=None,
        help="Require system.auth before any other message",
    )
    parser.add_argument("--config", dest="config_path", help="Settings file (default env MCP_CONFIG_PATH)")
    parser.add_argument("--log-level", dest="log_level", help="Log level (default env APP_LOG_LEVEL)")
    return parser


def settings_from_args(args: Namespace, store: ConfigStore) -> ServerSettings:
    return ServerSettings.resolve(
        store,
        host=args.host,
        port=args.port,
        plugins_dir=args.plugins_dir,
        plugins_enabled=args.plugins_enabled,
        auth_required=args.auth_required,
    )


async def _serve(server: ControlPlaneServer) -> None:
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(stop_event.set))

    await server.start()
    stop_waiter = asyncio.create_task(stop_event.wait())
    closed_waiter = asyncio.create_task(server.wait_closed())
    try:
        await asyncio.wait({stop_waiter, closed_waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        stop_waiter.cancel()
        closed_waiter.cancel()
        await server.stop()


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    store = ConfigStore(args.config_path)
    server = ControlPlaneServer(settings=settings_from_args(args, store), config=store)
    try:
        asyncio.run(_serve(server))
    except ServerStartError as exc:
        logger.error("%s", exc)
        return 1
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
