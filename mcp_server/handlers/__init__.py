"""Connection, dispatch, and message handler components."""

from .registry import HandlerRegistry, HandlerResult, MessageHandler
from .liveness import LivenessMonitor
from .builtins import BUILTIN_HANDLERS, register_builtin_handlers
from .dispatcher import DispatchRoute, MessageDispatcher
from .connections import ConnectionRegistry

__all__ = [
    "HandlerRegistry",
    "HandlerResult",
    "MessageHandler",
    "LivenessMonitor",
    "BUILTIN_HANDLERS",
    "register_builtin_handlers",
    "DispatchRoute",
    "MessageDispatcher",
    "ConnectionRegistry",
]
