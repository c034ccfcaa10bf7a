"""Runtime service container and bootstrap."""

from .settings import ServerSettings
from .bootstrap import build_runtime_deps
from .dependencies import RuntimeDeps

__all__ = ["ServerSettings", "build_runtime_deps", "RuntimeDeps"]
