"""Unit tests for the type/namespace handler table."""

from __future__ import annotations

import logging

import pytest

from mcp_server.handlers import HandlerRegistry


def _first(envelope, ctx):
    return {"type": "first", "data": {}}


def _second(envelope, ctx):
    return {"type": "second", "data": {}}


def test_resolve_prefers_exact_type_then_namespace() -> None:
    handlers = HandlerRegistry()
    handlers.register("server", _first)
    handlers.register("server.info", _second)

    assert handlers.resolve("server.info") is _second
    assert handlers.resolve("server.other") is _first
    assert handlers.resolve("server") is _first
    assert handlers.resolve("client.info") is None


def test_register_replaces_existing_with_warning(caplog: pytest.LogCaptureFixture) -> None:
    handlers = HandlerRegistry()
    handlers.register("calc", _first)
    with caplog.at_level(logging.WARNING, logger="mcp_server.handlers.registry"):
        handlers.register("calc", _second)

    assert handlers.resolve("calc.add") is _second
    assert len(handlers) == 1
    assert "Replacing existing handler for calc" in caplog.text


def test_register_rejects_bad_input() -> None:
    handlers = HandlerRegistry()
    with pytest.raises(TypeError):
        handlers.register("calc", "not callable")  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        handlers.register("", _first)
    assert len(handlers) == 0


def test_unregister() -> None:
    handlers = HandlerRegistry()
    handlers.register("calc", _first)

    assert handlers.unregister("calc") is True
    assert handlers.unregister("calc") is False
    assert "calc" not in handlers
    assert handlers.keys() == []
