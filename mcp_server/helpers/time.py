"""Clock helpers shared by the protocol and connection layers."""

from __future__ import annotations

import time
from collections.abc import Callable

# Injectable clock returning epoch milliseconds (tests pass a fake)
ClockFn = Callable[[], int]


def now_ms() -> int:
    """Current wall-clock time in integer milliseconds."""
    return int(time.time() * 1000)


__all__ = ["ClockFn", "now_ms"]
