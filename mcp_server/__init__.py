"""MCP Control-Plane Server Package.

This package provides a real-time control-plane server: persistent WebSocket
connections speaking a JSON envelope protocol, per-connection liveness and
authentication state, and dispatch of each envelope to exactly one consumer.

- Inline system handlers (ping, auth, register)
- A chain of dynamically loaded plugins
- Registered type / namespace handlers
- An outbound HTTP relay to named upstream routes

Architecture Overview:
    - server.py: FastAPI application and ControlPlaneServer lifecycle
    - cli.py: ``python -m mcp_server`` entry point
    - config/: Configuration modules (environment-based)
    - protocol/: Envelope type and codec
    - handlers/: Connection registry, liveness, dispatcher, built-ins, WebSocket
    - plugins/: Plugin manifest, loader and host
    - proxy/: Outbound relay
    - runtime/: Dependency container and bootstrap
    - state/: Connection state and the persisted settings store

Example:
    Start the server:

    $ python -m mcp_server --host 0.0.0.0 --port 3030

Environment Variables:
    - MCP_HOST / MCP_PORT: Listener address (default localhost:3030)
    - MCP_MAX_CONNECTIONS: Maximum live connections (default 50)
    - MCP_IDLE_TIMEOUT_MS / MCP_PING_INTERVAL_MS: Liveness timing
    - MCP_AUTH_REQUIRED / MCP_AUTH_TOKEN: Authentication gate
    - MCP_PLUGINS_DIR / MCP_ENABLE_PLUGINS: Plugin discovery
    - MCP_PROXY_TIMEOUT_MS: Default upstream timeout
    - MCP_CONFIG_PATH: Persisted settings file
"""
