"""Unit tests for module preferences and typed config helpers."""

from pathlib import Path

import pytest

from vehicle_tracker.modules.base import (
    ModulePreferences,
    get_pref_bool,
    get_pref_float,
    get_pref_int,
    get_pref_path,
    get_pref_str,
)


class TestModulePreferences:
    """Test the cached config view."""

    def test_reads_file_on_creation(self, tmp_path, config_manager):
        path = tmp_path / "tracking.txt"
        path.write_text("serial_port = /dev/ttyUSB0\n", encoding="utf-8")

        prefs = ModulePreferences(path, config_manager=config_manager)

        assert prefs.get("serial_port") == "/dev/ttyUSB0"
        assert prefs.path == path

    @pytest.mark.asyncio
    async def test_write_async_updates_cache(self, tmp_path, config_manager):
        prefs = ModulePreferences(tmp_path / "tracking.txt", config_manager=config_manager)

        assert await prefs.write_async({"baud_rate": 4800}) is True

        assert prefs.get("baud_rate") == "4800"
        assert prefs.reload() == {"baud_rate": "4800"}

    @pytest.mark.asyncio
    async def test_write_async_removes_keys(self, tmp_path, config_manager):
        path = tmp_path / "tracking.txt"
        path.write_text("a = 1\nb = 2\n", encoding="utf-8")
        prefs = ModulePreferences(path, config_manager=config_manager)

        await prefs.write_async({}, remove_keys=["a"])

        assert prefs.snapshot() == {"b": "2"}
        assert config_manager.read_config(path) == {"b": "2"}

    @pytest.mark.asyncio
    async def test_reload_async_sees_disk_changes(self, tmp_path, config_manager):
        path = tmp_path / "tracking.txt"
        prefs = ModulePreferences(path, config_manager=config_manager)
        path.write_text("serial_port = /dev/ttyACM0\n", encoding="utf-8")

        assert prefs.get("serial_port") is None
        assert await prefs.reload_async() == {"serial_port": "/dev/ttyACM0"}

    def test_initial_data_skips_disk(self, tmp_path, config_manager):
        path = tmp_path / "tracking.txt"
        path.write_text("a = disk\n", encoding="utf-8")

        prefs = ModulePreferences(path, config_manager=config_manager, initial_data={"a": "given"})

        assert prefs.get("a") == "given"


class TestTypedConfig:
    """Test get_pref_* coercion."""

    @pytest.fixture
    def prefs(self, tmp_path, config_manager):
        values = {
            "name": "BUS",
            "count": "3",
            "bad_count": "three",
            "ratio": "0.5",
            "flag": "Yes",
            "path": "~/tracker.log",
            "blank_path": "  ",
        }
        return ModulePreferences(tmp_path / "p.txt", config_manager=config_manager, initial_data=values)

    def test_coercion(self, prefs):
        assert get_pref_str(prefs, "name", "x") == "BUS"
        assert get_pref_int(prefs, "count", 0) == 3
        assert get_pref_int(prefs, "bad_count", 7) == 7
        assert get_pref_float(prefs, "ratio", 1.0) == 0.5
        assert get_pref_bool(prefs, "flag", False) is True
        assert get_pref_path(prefs, "path", None) == Path("~/tracker.log").expanduser()

    def test_defaults(self, prefs):
        assert get_pref_str(prefs, "missing", "x") == "x"
        assert get_pref_bool(prefs, "missing", True) is True
        assert get_pref_path(prefs, "blank_path", None) is None
