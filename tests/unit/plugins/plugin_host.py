"""Unit tests for plugin discovery, loading, hooks, and persistence."""

from __future__ import annotations

import sys
import asyncio
from pathlib import Path

import pytest

from mcp_server.events import EventBus
from mcp_server.plugins import PluginHost
from mcp_server.errors import PluginError
from mcp_server.state.config_store import ConfigStore
from mcp_server.plugins.loader import module_name_for
from tests.helpers.fakes import write_plugin

_BASIC = """
STATE = {"initialized": 0, "shutdown": 0}

def initialize(context):
    STATE["initialized"] += 1
    STATE["name"] = context.manifest.name

def shutdown():
    STATE["shutdown"] += 1
"""


def _host(tmp_path: Path, events: EventBus | None = None) -> PluginHost:
    config = ConfigStore(tmp_path / "config.json")
    return PluginHost(config, events or EventBus(), tmp_path / "plugins")


def _plugins_dir(tmp_path: Path) -> Path:
    return tmp_path / "plugins"


def test_load_with_manifest(tmp_path: Path) -> None:
    async def _run() -> None:
        events = EventBus()
        loaded: list[dict] = []
        events.on("plugin_loaded", lambda event: loaded.append(event.payload))
        host = _host(tmp_path, events)
        write_plugin(
            _plugins_dir(tmp_path),
            "weather-dir",
            _BASIC,
            {"name": "weather", "version": "2.1.0", "description": "forecasts", "author": "ops"},
        )

        record = await host.load("weather-dir")

        assert record is not None
        assert record.name == "weather"
        assert record.module.STATE == {"initialized": 1, "shutdown": 0, "name": "weather"}
        assert host.list_plugins() == [
            {"name": "weather", "version": "2.1.0", "description": "forecasts", "author": "ops", "enabled": True}
        ]
        assert loaded[0]["name"] == "weather"
        assert "initialize" in record.capabilities()

    asyncio.run(_run())


def test_load_without_manifest_uses_directory_name(tmp_path: Path) -> None:
    async def _run() -> None:
        host = _host(tmp_path)
        write_plugin(_plugins_dir(tmp_path), "bare", _BASIC)

        record = await host.load("bare")
        assert record is not None
        assert record.name == "bare"
        assert record.version == "0.1.0"

    asyncio.run(_run())


def test_load_failures_leave_plugin_absent(tmp_path: Path) -> None:
    async def _run() -> None:
        host = _host(tmp_path)
        plugins = _plugins_dir(tmp_path)
        write_plugin(plugins, "no-init", "VALUE = 1\n")
        write_plugin(plugins, "init-raises", "def initialize(context):\n    raise RuntimeError('nope')\n")
        write_plugin(plugins, "syntax", "def initialize(context)\n")
        (plugins / "no-entry").mkdir()
        bad_manifest = plugins / "bad-manifest"
        bad_manifest.mkdir()
        (bad_manifest / "manifest.json").write_text("{not json", encoding="utf-8")

        for directory in ("no-init", "init-raises", "syntax", "no-entry", "bad-manifest", "missing"):
            assert await host.load(directory) is None

        assert len(host) == 0
        assert module_name_for("init-raises") not in sys.modules

    asyncio.run(_run())


def test_load_same_name_twice_returns_existing(tmp_path: Path) -> None:
    async def _run() -> None:
        host = _host(tmp_path)
        write_plugin(_plugins_dir(tmp_path), "twice", _BASIC)

        first = await host.load("twice")
        second = await host.load("twice")

        assert first is second
        assert first.module.STATE["initialized"] == 1

    asyncio.run(_run())


def test_unload_evicts_module_and_reload_picks_up_new_code(tmp_path: Path) -> None:
    async def _run() -> None:
        events = EventBus()
        unloaded: list[dict] = []
        events.on("plugin_unloaded", lambda event: unloaded.append(event.payload))
        host = _host(tmp_path, events)
        plugins = _plugins_dir(tmp_path)
        write_plugin(plugins, "reloadable", "VERSION = 1\n" + _BASIC)

        record = await host.load("reloadable")
        module_name = record.module_name
        assert await host.unload("reloadable") is True
        assert record.module.STATE["shutdown"] == 1
        assert module_name not in sys.modules
        assert unloaded == [{"name": "reloadable"}]
        assert await host.unload("reloadable") is False

        write_plugin(plugins, "reloadable", "VERSION = 22\n" + _BASIC)
        reloaded = await host.load("reloadable")
        assert reloaded.module.VERSION == 22
        assert reloaded.module is not record.module

    asyncio.run(_run())


def test_relative_imports_inside_plugin(tmp_path: Path) -> None:
    async def _run() -> None:
        host = _host(tmp_path)
        root = write_plugin(
            _plugins_dir(tmp_path),
            "split",
            "from .helpers import greet\n\ndef initialize(context):\n    pass\n",
        )
        (root / "helpers.py").write_text("def greet():\n    return 'hi'\n", encoding="utf-8")

        record = await host.load("split")
        assert record is not None
        assert record.module.greet() == "hi"

        await host.unload("split")
        assert f"{record.module_name}.helpers" not in sys.modules

    asyncio.run(_run())


def test_load_all_honours_enabled_list(tmp_path: Path) -> None:
    async def _run() -> None:
        host = _host(tmp_path)
        plugins = _plugins_dir(tmp_path)
        for name in ("alpha", "beta", "gamma"):
            write_plugin(plugins, name, _BASIC)

        host.config.set("plugins.enabled", ["beta", "gamma"])
        loaded = await host.load_all()
        assert [record.name for record in loaded] == ["beta", "gamma"]

    asyncio.run(_run())


def test_load_all_with_empty_enabled_list_loads_everything(tmp_path: Path) -> None:
    async def _run() -> None:
        host = _host(tmp_path)
        plugins = _plugins_dir(tmp_path)
        for name in ("alpha", "beta"):
            write_plugin(plugins, name, _BASIC)

        loaded = await host.load_all()
        assert [record.name for record in loaded] == ["alpha", "beta"]

    asyncio.run(_run())


def test_enable_disable_persist_enabled_list(tmp_path: Path) -> None:
    async def _run() -> None:
        host = _host(tmp_path)
        write_plugin(_plugins_dir(tmp_path), "toggle", _BASIC)
        await host.load("toggle")

        assert host.enable("toggle") is True
        assert ConfigStore(tmp_path / "config.json").get("plugins.enabled") == ["toggle"]

        assert host.disable("toggle") is True
        assert host.get("toggle").enabled is False
        assert ConfigStore(tmp_path / "config.json").get("plugins.enabled") == []

        assert host.enable("ghost") is False

    asyncio.run(_run())


def test_call_hook_isolates_failures(tmp_path: Path) -> None:
    async def _run() -> None:
        host = _host(tmp_path)
        plugins = _plugins_dir(tmp_path)
        write_plugin(plugins, "a-bad", "def initialize(c):\n    pass\n\ndef on_server_shutdown():\n    raise ValueError('x')\n")
        write_plugin(plugins, "b-good", "def initialize(c):\n    pass\n\nasync def on_server_shutdown():\n    return 'bye'\n")
        write_plugin(plugins, "c-silent", "def initialize(c):\n    pass\n")
        write_plugin(plugins, "d-off", "def initialize(c):\n    pass\n\ndef on_server_shutdown():\n    return 'off'\n")
        await host.load_all()
        host.disable("d-off")

        results = await host.call_hook("on_server_shutdown")

        assert [result.plugin for result in results] == ["a-bad", "b-good"]
        assert not results[0].ok
        assert results[1].ok and results[1].value == "bye"

    asyncio.run(_run())


def test_install_copies_and_loads(tmp_path: Path) -> None:
    async def _run() -> None:
        events = EventBus()
        installed: list[dict] = []
        events.on("plugin_installed", lambda event: installed.append(event.payload))
        host = _host(tmp_path, events)
        source = write_plugin(tmp_path / "incoming", "pkg", _BASIC, {"name": "fresh"})

        record = await host.install(source)

        assert record is not None and record.name == "fresh"
        assert (_plugins_dir(tmp_path) / "fresh" / "plugin.py").is_file()
        assert installed[0]["name"] == "fresh"

        with pytest.raises(PluginError):
            await host.install(source)
        with pytest.raises(PluginError):
            await host.install(tmp_path / "does-not-exist")

    asyncio.run(_run())


def test_package_relative_import_of_sibling_module(tmp_path: Path) -> None:
    async def _run() -> None:
        host = _host(tmp_path)
        root = write_plugin(
            _plugins_dir(tmp_path),
            "solo",
            "from . import helper\n\n"
            "def initialize(context):\n    pass\n\n"
            "def who():\n    from . import helper as late\n    return late.NAME\n",
        )
        (root / "helper.py").write_text("NAME = 'solo-helper'\n", encoding="utf-8")

        record = await host.load("solo")
        assert record is not None
        assert record.module.helper.NAME == "solo-helper"
        assert record.module.who() == "solo-helper"

    asyncio.run(_run())


def test_similar_names_get_separate_module_caches(tmp_path: Path) -> None:
    async def _run() -> None:
        host = _host(tmp_path)
        plugins = _plugins_dir(tmp_path)
        source = (
            "def initialize(context):\n    pass\n\n"
            "def who():\n    from .helpers import WHO\n    return WHO\n"
        )
        for name in ("a-b", "a_b"):
            root = write_plugin(plugins, name, source)
            (root / "helpers.py").write_text(f"WHO = {name!r}\n", encoding="utf-8")

        dashed = await host.load("a-b")
        assert dashed.module.who() == "a-b"
        underscored = await host.load("a_b")

        assert module_name_for("a-b") != module_name_for("a_b")
        assert dashed.module_name != underscored.module_name
        assert dashed.module.who() == "a-b"
        assert underscored.module.who() == "a_b"

        await host.unload("a_b")
        assert dashed.module_name in sys.modules
        assert f"{dashed.module_name}.helpers" in sys.modules

    asyncio.run(_run())
