"""Plugin-specific error types."""


class PluginError(Exception):
    """Base type for plugin-related failures."""


class PluginManifestError(PluginError):
    """Raised when the plugin manifest cannot be read or validated."""


class PluginLoadError(PluginError):
    """Raised when a plugin entry module cannot be loaded or initialized."""


__all__ = ["PluginError", "PluginManifestError", "PluginLoadError"]
