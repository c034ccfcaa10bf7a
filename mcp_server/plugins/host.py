"""Plugin discovery, lifecycle, and message participation.

A plugin is a directory under the plugins root holding an optional
``manifest.json`` and an entry module (``plugin.py`` by default) that
exposes:

    initialize(context)                        required, sync or async
    handle_message(envelope, dispatch_context) optional, returns bool
    on_server_shutdown()                       optional
    shutdown()                                 optional, called on unload

Loaded plugins participate in dispatch in load order. The persisted
``plugins.enabled`` list controls which directories ``load_all`` picks up:
an empty list means every directory loads.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING, Any

from .context import PluginContext
from .loader import PluginLoader, evict_module
from .manifest import PluginManifest
from ..events import EventBus
from ..errors import HandlerError, PluginError, PluginLoadError, PluginManifestError
from ..state.config_store import ConfigStore
from ..config.plugins import MCP_PLUGINS_DIR, PLUGINS_ENABLED_KEY

if TYPE_CHECKING:
    from ..protocol import Envelope
    from .context import DispatchContext

logger = logging.getLogger(__name__)

HOOK_NAMES = ("initialize", "handle_message", "on_server_shutdown", "shutdown")


@dataclass
class PluginRecord:
    """A loaded plugin."""

    name: str
    version: str
    description: str
    author: str
    module: ModuleType
    source_path: Path
    module_name: str
    enabled: bool = True

    def hook(self, hook_name: str) -> Any | None:
        candidate = getattr(self.module, hook_name, None)
        return candidate if callable(candidate) else None

    def capabilities(self) -> list[str]:
        return [name for name in HOOK_NAMES if self.hook(name) is not None]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "author": self.author,
            "enabled": self.enabled,
        }


@dataclass(frozen=True)
class HookResult:
    """Outcome of one plugin's hook invocation."""

    plugin: str
    value: Any = None
    error: BaseException | None = field(default=None, compare=False)

    @property
    def ok(self) -> bool:
        return self.error is None


async def _invoke(fn: Any, *args: Any) -> Any:
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class PluginHost:
    """Owns the loaded plugin set.

    Attributes:
        plugins_dir: Root directory scanned for plugin directories.
    """

    def __init__(
        self,
        config: ConfigStore,
        events: EventBus,
        plugins_dir: str | Path | None = None,
    ) -> None:
        self.config = config
        self.events = events
        self.plugins_dir = Path(plugins_dir or MCP_PLUGINS_DIR).expanduser()
        self._plugins: dict[str, PluginRecord] = {}

    # ------------------------------------------------------------------
    # Discovery / loading
    # ------------------------------------------------------------------

    def enabled_list(self) -> list[str]:
        value = self.config.get(PLUGINS_ENABLED_KEY, [])
        if not isinstance(value, list):
            return []
        return [str(item) for item in value]

    def discover(self) -> list[str]:
        """Plugin directory names under the plugins root, sorted."""
        if not self.plugins_dir.is_dir():
            return []
        return sorted(child.name for child in self.plugins_dir.iterdir() if child.is_dir())

    async def load_all(self) -> list[PluginRecord]:
        """Load every discovered plugin allowed by the enabled list."""
        self.plugins_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Loading plugins from %s", self.plugins_dir)
        allowed = self.enabled_list()
        loaded: list[PluginRecord] = []
        for directory in self.discover():
            if allowed and directory not in allowed:
                logger.debug("Skipping disabled plugin: %s", directory)
                continue
            record = await self.load(directory)
            if record is not None:
                loaded.append(record)
        logger.info("Loaded %s plugin(s)", len(loaded))
        return loaded

    async def load(self, directory: str) -> PluginRecord | None:
        """Load the plugin in ``plugins_dir/directory``.

        Failures are logged and leave the plugin absent.
        """
        plugin_root = self.plugins_dir / directory
        if not plugin_root.is_dir():
            logger.warning("Plugin directory not found: %s", plugin_root)
            return None

        try:
            manifest = PluginManifest.load(plugin_root)
        except PluginManifestError as exc:
            logger.error("Failed to load plugin %s: %s", directory, exc)
            return None

        existing = self._plugins.get(manifest.name)
        if existing is not None:
            logger.warning("Plugin %s is already loaded from %s", manifest.name, existing.source_path)
            return existing

        loader = PluginLoader(manifest, plugin_root)
        try:
            module = loader.load()
        except PluginLoadError as exc:
            logger.error("Failed to load plugin %s: %s", directory, exc)
            return None

        context = PluginContext(
            manifest=manifest,
            plugin_root=plugin_root,
            logger=logging.getLogger(f"{__name__}.{manifest.name}"),
            config=self.config,
            host=self,
        )
        try:
            await _invoke(module.initialize, context)
        except Exception:  # noqa: BLE001
            logger.exception("Plugin %s failed to initialize", manifest.name)
            evict_module(loader.module_name)
            return None

        record = PluginRecord(
            name=manifest.name,
            version=manifest.version,
            description=manifest.description,
            author=manifest.author,
            module=module,
            source_path=plugin_root,
            module_name=loader.module_name,
        )
        self._plugins[record.name] = record
        logger.info("Loaded plugin: %s v%s", record.name, record.version)
        self.events.emit("plugin_loaded", record.to_dict())
        return record

    async def unload(self, name: str) -> bool:
        """Shut down and forget a plugin; its module is evicted from the import cache."""
        record = self._plugins.get(name)
        if record is None:
            logger.warning("Plugin not loaded: %s", name)
            return False

        shutdown = record.hook("shutdown")
        if shutdown is not None:
            try:
                await _invoke(shutdown)
            except Exception:  # noqa: BLE001
                logger.exception("Plugin %s raised during shutdown", name)

        del self._plugins[name]
        evict_module(record.module_name)
        logger.info("Unloaded plugin: %s", name)
        self.events.emit("plugin_unloaded", {"name": name})
        return True

    async def install(self, source_path: str | Path) -> PluginRecord | None:
        """Copy a plugin directory into the plugins root and load it.

        Raises:
            PluginError: If the source is missing, has no manifest name, or a
                plugin with that name is already installed.
        """
        source = Path(source_path).expanduser()
        if not source.is_dir():
            raise PluginError(f"Source path does not exist: {source}")
        document = PluginManifest.read_document(source)
        if document is None:
            raise PluginManifestError(f"Plugin manifest not found in {source}")
        name = document.get("name")
        if not isinstance(name, str) or not name.strip():
            raise PluginManifestError("Plugin manifest must include a name")

        name = name.strip()
        target = self.plugins_dir / name
        if target.exists():
            raise PluginError(f"Plugin already exists: {name}")

        self.plugins_dir.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(shutil.copytree, source, target)
        logger.info("Installed plugin: %s", name)
        self.events.emit("plugin_installed", {"name": name, "path": str(target)})
        return await self.load(name)

    # ------------------------------------------------------------------
    # Enable / disable
    # ------------------------------------------------------------------

    def enable(self, name: str) -> bool:
        record = self._plugins.get(name)
        if record is None:
            logger.warning("Plugin not loaded: %s", name)
            return False
        record.enabled = True
        enabled = self.enabled_list()
        if name not in enabled:
            enabled.append(name)
            self._persist_enabled(enabled)
        logger.info("Enabled plugin: %s", name)
        self.events.emit("plugin_enabled", {"name": name})
        return True

    def disable(self, name: str) -> bool:
        record = self._plugins.get(name)
        if record is None:
            logger.warning("Plugin not loaded: %s", name)
            return False
        record.enabled = False
        enabled = self.enabled_list()
        if name in enabled:
            enabled.remove(name)
            self._persist_enabled(enabled)
        logger.info("Disabled plugin: %s", name)
        self.events.emit("plugin_disabled", {"name": name})
        return True

    def _persist_enabled(self, enabled: list[str]) -> None:
        self.config.set(PLUGINS_ENABLED_KEY, enabled)
        if not self.config.save():
            logger.warning("Could not persist %s to %s", PLUGINS_ENABLED_KEY, self.config.path)

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    async def call_hook(self, hook_name: str, *args: Any) -> list[HookResult]:
        """Call ``hook_name`` on every enabled plugin that defines it.

        A failing plugin is logged and reported in its HookResult; the
        remaining plugins are still called.
        """
        results: list[HookResult] = []
        for record in list(self._plugins.values()):
            if not record.enabled:
                continue
            hook = record.hook(hook_name)
            if hook is None:
                continue
            try:
                value = await _invoke(hook, *args)
            except Exception as exc:  # noqa: BLE001
                logger.error("Error calling %s on plugin %s: %s", hook_name, record.name, exc)
                results.append(HookResult(plugin=record.name, error=exc))
            else:
                results.append(HookResult(plugin=record.name, value=value))
        return results

    async def handle_message(self, envelope: Envelope, context: DispatchContext) -> str | None:
        """Offer ``envelope`` to enabled plugins in load order.

        Returns:
            Name of the first plugin whose hook returned True, else None.

        Raises:
            HandlerError: If a plugin hook raises; later plugins are not tried.
        """
        for record in list(self._plugins.values()):
            if not record.enabled:
                continue
            hook = record.hook("handle_message")
            if hook is None:
                continue
            try:
                handled = await _invoke(hook, envelope, context)
            except Exception as exc:
                raise HandlerError(f"plugin:{record.name}", exc) from exc
            if handled is True:
                logger.debug("%s handled by plugin %s", envelope.type, record.name)
                return record.name
        return None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get(self, name: str) -> PluginRecord | None:
        return self._plugins.get(name)

    def list_plugins(self) -> list[dict[str, Any]]:
        return [record.to_dict() for record in self._plugins.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._plugins

    def __len__(self) -> int:
        return len(self._plugins)


__all__ = ["PluginHost", "PluginRecord", "HookResult"]
