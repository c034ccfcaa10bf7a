"""Unit tests for command-line settings resolution."""

from __future__ import annotations

from pathlib import Path

from mcp_server.cli import build_parser, settings_from_args
from mcp_server.state.config_store import ConfigStore


def test_flags_override_settings_document(tmp_path: Path) -> None:
    store = ConfigStore(tmp_path / "config.json")
    store.set("server.port", 4000)
    store.set("server.host", "0.0.0.0")

    args = build_parser().parse_args(["--port", "5000", "--no-plugins", "--auth-required"])
    settings = settings_from_args(args, store)

    assert settings.port == 5000
    assert settings.host == "0.0.0.0"
    assert settings.plugins_enabled is False
    assert settings.auth_required is True


def test_unset_flags_fall_through(tmp_path: Path) -> None:
    store = ConfigStore(tmp_path / "config.json")
    store.set("plugins.autoLoad", False)
    store.set("plugins.directory", str(tmp_path / "custom"))

    args = build_parser().parse_args([])
    settings = settings_from_args(args, store)

    assert settings.plugins_enabled is False
    assert settings.plugins_dir == str(tmp_path / "custom")
    assert args.config_path is None
