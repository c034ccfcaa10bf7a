"""Periodic liveness sweep over every live connection.

A single LivenessMonitor runs for the whole server. On each tick it asks the
ConnectionRegistry to:

1. Remove connections idle for longer than the idle timeout (close code 4000)
2. Send ``system.ping`` to every remaining connection

Pings do not count as client activity, so a client that only receives pings
and never speaks still times out.

Usage:
    monitor = LivenessMonitor(registry, interval_ms=30_000)
    monitor.start()
    ...
    await monitor.stop()
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from .connections import ConnectionRegistry
from ..config.server import MCP_PING_INTERVAL_MS

logger = logging.getLogger(__name__)


class LivenessMonitor:
    """Background task that drives ``ConnectionRegistry.sweep`` on an interval."""

    def __init__(self, registry: ConnectionRegistry, interval_ms: int | None = None):
        self._registry = registry
        self._interval_s = float(interval_ms or MCP_PING_INTERVAL_MS) / 1000.0
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Start the sweep task (idempotent)."""

        if self._task is None:
            self._stop_event = asyncio.Event()
            self._task = asyncio.create_task(self._sweep_loop())
        return self._task

    async def stop(self) -> None:
        """Stop the sweep task and wait for it to finish."""

        self._stop_event.set()
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError, Exception):
            await self._task
        self._task = None

    async def _sweep_loop(self) -> None:
        try:
            while not self._stop_event.is_set():
                await asyncio.sleep(self._interval_s)
                if self._stop_event.is_set():
                    break
                try:
                    timed_out, pinged = await self._registry.sweep()
                except Exception:  # noqa: BLE001
                    logger.exception("liveness sweep failed")
                    continue
                if timed_out:
                    logger.info("liveness sweep: timed_out=%s pinged=%s", timed_out, pinged)
                else:
                    logger.debug("liveness sweep: pinged=%s", pinged)
        except asyncio.CancelledError:
            pass


__all__ = ["LivenessMonitor"]
