"""WebSocket handler exports."""

from .manager import handle_websocket_connection
from .message_loop import run_message_loop
from .transport import WebSocketTransport, peer_info
from .disconnects import is_expected_disconnect

__all__ = [
    "handle_websocket_connection",
    "run_message_loop",
    "WebSocketTransport",
    "peer_info",
    "is_expected_disconnect",
]
