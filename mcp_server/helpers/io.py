"""JSON file helpers backing the persisted settings store."""

from __future__ import annotations

import os
import logging
import contextlib
from typing import Any
from pathlib import Path

import orjson

logger = logging.getLogger(__name__)


def read_json_file(path: Path) -> Any | None:
    """Return the decoded document, or None when it is missing or unreadable."""
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        return None
    except OSError as exc:
        logger.warning("Failed to read %s: %s", path, exc)
        return None

    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError as exc:
        logger.warning("Failed to decode JSON from %s: %s", path, exc)
        return None


def write_json_file(path: Path, data: Any) -> bool:
    """Write ``data`` next to ``path`` then rename over it; False on failure."""
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        payload = orjson.dumps(data, option=orjson.OPT_INDENT_2 | orjson.OPT_APPEND_NEWLINE)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_bytes(payload)
        os.replace(tmp_path, path)
        return True
    except (OSError, TypeError) as exc:
        logger.error("Failed to write JSON to %s: %s", path, exc)
        with contextlib.suppress(OSError):
            os.remove(tmp_path)
        return False


__all__ = ["read_json_file", "write_json_file"]
