"""Dynamically loaded plugins: manifest, loader, contexts, host."""

from .context import DispatchContext, PluginContext
from .host import HookResult, PluginHost, PluginRecord
from .loader import PluginLoader, evict_module, module_name_for
from .manifest import PluginManifest

__all__ = [
    "DispatchContext",
    "PluginContext",
    "HookResult",
    "PluginHost",
    "PluginRecord",
    "PluginLoader",
    "evict_module",
    "module_name_for",
    "PluginManifest",
]
