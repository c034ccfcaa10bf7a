"""Import and evict plugin entry modules.

Each plugin's entry file is imported under a private module name
(``mcp_plugins.<name>``) so plugins never collide with installed packages or
with each other. The entry module is registered as a package rooted at the
plugin directory, so plugins can split code into sibling modules and use
relative imports. Unloading drops the module and its submodules from
``sys.modules`` so the next load re-executes the plugin from disk.
"""

from __future__ import annotations

import re
import sys
import hashlib
import logging
import importlib.util
from pathlib import Path
from types import ModuleType

from .manifest import PluginManifest
from ..errors import PluginLoadError
from ..config.plugins import PLUGIN_MODULE_PREFIX

logger = logging.getLogger(__name__)

_UNSAFE_MODULE_CHARS = re.compile(r"\W")


def module_name_for(plugin_name: str) -> str:
    """Private ``sys.modules`` key for a plugin's entry module.

    The name digest keeps keys distinct for names that sanitize alike
    (``a-b`` and ``a_b``).
    """
    safe = _UNSAFE_MODULE_CHARS.sub("_", plugin_name)
    if safe[:1].isdigit():
        safe = f"_{safe}"
    digest = hashlib.sha1(plugin_name.encode("utf-8")).hexdigest()[:8]
    return f"{PLUGIN_MODULE_PREFIX}.{safe}_{digest}"


def _ensure_namespace_package() -> None:
    """Register the shared parent package so relative imports resolve."""
    if PLUGIN_MODULE_PREFIX in sys.modules:
        return
    package = ModuleType(PLUGIN_MODULE_PREFIX)
    package.__path__ = []
    sys.modules[PLUGIN_MODULE_PREFIX] = package


class PluginLoader:
    """Responsible for importing a single plugin's entry module."""

    def __init__(self, manifest: PluginManifest, plugin_root: Path) -> None:
        self.manifest = manifest
        self.plugin_root = plugin_root
        self.module_name = module_name_for(manifest.name)

    @property
    def entry_path(self) -> Path:
        return self.plugin_root / self.manifest.entry

    def load(self) -> ModuleType:
        """Execute the entry module and check it exposes ``initialize``.

        Raises:
            PluginLoadError: If the entry file is missing, fails to import,
                or lacks a callable ``initialize``.
        """
        entry_path = self.entry_path
        if not entry_path.is_file():
            raise PluginLoadError(f"entry file not found for plugin {self.manifest.name}: {entry_path}")

        evict_module(self.module_name)
        _ensure_namespace_package()
        spec = importlib.util.spec_from_file_location(
            self.module_name,
            entry_path,
            submodule_search_locations=[str(self.plugin_root)],
        )
        if spec is None or spec.loader is None:
            raise PluginLoadError(f"unable to build import spec for {entry_path}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[self.module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as exc:
            evict_module(self.module_name)
            raise PluginLoadError(f"plugin {self.manifest.name} failed to import: {exc}") from exc

        if not callable(getattr(module, "initialize", None)):
            evict_module(self.module_name)
            raise PluginLoadError(f"plugin {self.manifest.name} does not define initialize()")

        return module


def evict_module(module_name: str) -> int:
    """Drop ``module_name`` and its submodules from the import cache."""
    prefix = f"{module_name}."
    doomed = [name for name in sys.modules if name == module_name or name.startswith(prefix)]
    for name in doomed:
        sys.modules.pop(name, None)
    if doomed:
        logger.debug("evicted %s module(s) for %s", len(doomed), module_name)
    return len(doomed)


__all__ = ["PluginLoader", "evict_module", "module_name_for"]
