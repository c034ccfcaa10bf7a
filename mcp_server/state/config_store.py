"""Persisted settings store with dotted-path access.

The on-disk document is deep-merged over ``DEFAULT_SETTINGS`` on load, so a
partial file only overrides what it names. Paths are dot-separated keys:

    store.get("plugins.enabled", [])
    store.set("proxy.routes.billing", {"baseUrl": "https://..."})
    store.save()
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any

from ..config.store import DEFAULT_SETTINGS, MCP_CONFIG_PATH
from ..helpers.io import read_json_file, write_json_file

logger = logging.getLogger(__name__)

_MISSING = object()


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _merge(current, value)
        else:
            merged[key] = value
    return merged


class ConfigStore:
    """JSON-file-backed settings with defaults.

    Attributes:
        path: Location of the settings document.
        loaded: True once a file has been read successfully.
    """

    def __init__(
        self,
        path: str | Path | None = None,
        *,
        defaults: dict[str, Any] | None = None,
        autoload: bool = True,
    ) -> None:
        self.path = Path(path or MCP_CONFIG_PATH).expanduser()
        self._defaults = copy.deepcopy(defaults if defaults is not None else DEFAULT_SETTINGS)
        self._data: dict[str, Any] = copy.deepcopy(self._defaults)
        self.loaded = False
        if autoload:
            self.load()

    def load(self) -> dict[str, Any]:
        """Merge the on-disk document over defaults (missing file keeps defaults)."""
        document = read_json_file(self.path)
        if document is None:
            logger.info("no settings file at %s; using defaults", self.path)
            return self._data
        if not isinstance(document, dict):
            logger.warning("settings file %s is not a JSON object; ignoring", self.path)
            return self._data
        self._data = _merge(copy.deepcopy(self._defaults), document)
        self.loaded = True
        logger.info("settings loaded from %s", self.path)
        return self._data

    def save(self) -> bool:
        ok = write_json_file(self.path, self._data)
        if ok:
            logger.debug("settings saved to %s", self.path)
        return ok

    def get(self, path: str, default: Any = None) -> Any:
        node: Any = self._data
        for part in path.split("."):
            if not isinstance(node, dict):
                return default
            node = node.get(part, _MISSING)
            if node is _MISSING:
                return default
        return copy.deepcopy(node)

    def set(self, path: str, value: Any) -> None:
        parts = path.split(".")
        node = self._data
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = copy.deepcopy(value)


__all__ = ["ConfigStore"]
