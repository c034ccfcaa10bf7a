"""Plugin manifest parsing."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import orjson

from ..errors import PluginManifestError
from ..config.plugins import PLUGIN_DEFAULT_ENTRY, PLUGIN_DEFAULT_VERSION, PLUGIN_MANIFEST_FILE


@dataclass(frozen=True)
class PluginManifest:
    """Immutable view of a plugin's ``manifest.json``.

    Every field has a default so a plugin directory without a manifest still
    loads under its directory name.
    """

    name: str
    version: str = PLUGIN_DEFAULT_VERSION
    description: str = ""
    author: str = ""
    entry: str = PLUGIN_DEFAULT_ENTRY

    @staticmethod
    def _string_field(document: dict[str, Any], key: str, default: str) -> str:
        value = document.get(key)
        if value is None:
            return default
        if not isinstance(value, str):
            raise PluginManifestError(f"'{key}' must be a string")
        return value.strip() or default

    @classmethod
    def read_document(cls, plugin_root: Path) -> dict[str, Any] | None:
        """Return the raw manifest object, or None when the file is absent."""

        path = plugin_root / PLUGIN_MANIFEST_FILE
        if not path.is_file():
            return None
        try:
            document = orjson.loads(path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as exc:
            raise PluginManifestError(f"unable to read manifest at {path}") from exc
        if not isinstance(document, dict):
            raise PluginManifestError(f"manifest at {path} must be a JSON object")
        return document

    @classmethod
    def load(cls, plugin_root: Path) -> "PluginManifest":
        """Load ``manifest.json`` from ``plugin_root`` with directory-name defaults."""

        document = cls.read_document(plugin_root) or {}
        entry = cls._string_field(document, "entry", PLUGIN_DEFAULT_ENTRY)
        if Path(entry).is_absolute() or ".." in Path(entry).parts:
            raise PluginManifestError(f"entry {entry!r} must stay inside the plugin directory")
        return cls(
            name=cls._string_field(document, "name", plugin_root.name),
            version=cls._string_field(document, "version", PLUGIN_DEFAULT_VERSION),
            description=cls._string_field(document, "description", ""),
            author=cls._string_field(document, "author", ""),
            entry=entry,
        )


__all__ = ["PluginManifest"]
