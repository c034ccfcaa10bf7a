"""Test suite for the MCP control-plane server.

Unit tests live under unit/, grouped by component (protocol, connections,
dispatch, plugins, proxy, state, server). Shared fakes are in helpers/.
"""
