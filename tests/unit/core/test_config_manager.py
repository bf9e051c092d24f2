"""Unit tests for the key = value config manager."""

import asyncio

import pytest

from vehicle_tracker.core.config_manager import ConfigManager, get_config_manager


class TestReadConfig:
    """Test parsing."""

    def test_missing_file_is_empty(self, tmp_path, config_manager):
        assert config_manager.read_config(tmp_path / "nope.txt") == {}

    def test_parses_comments_and_quotes(self, tmp_path, config_manager):
        path = tmp_path / "config.txt"
        path.write_text(
            "# header\n"
            "\n"
            "serial_port = /dev/ttyUSB0   # trailing comment\n"
            "endpoint_url = \"http://collector/api\"\n"
            "not a setting\n"
            "baud_rate=4800\n",
            encoding="utf-8",
        )

        assert config_manager.read_config(path) == {
            "serial_port": "/dev/ttyUSB0",
            "endpoint_url": "http://collector/api",
            "baud_rate": "4800",
        }

    @pytest.mark.asyncio
    async def test_async_read_matches_sync(self, tmp_path, config_manager):
        path = tmp_path / "config.txt"
        path.write_text("a = 1\nb = two\n", encoding="utf-8")

        assert await config_manager.read_config_async(path) == config_manager.read_config(path)

    @pytest.mark.asyncio
    async def test_async_read_missing(self, tmp_path, config_manager):
        assert await config_manager.read_config_async(tmp_path / "nope.txt") == {}


class TestWriteConfig:
    """Test in-place updates."""

    @pytest.mark.asyncio
    async def test_creates_file_and_parent(self, tmp_path, config_manager):
        path = tmp_path / "nested" / "identity.txt"

        assert await config_manager.write_config_async(path, {"vehicle_id": "BUS-001"}) is True
        assert path.read_text(encoding="utf-8") == "vehicle_id = BUS-001\n"

    @pytest.mark.asyncio
    async def test_updates_in_place_and_keeps_comments(self, tmp_path, config_manager):
        path = tmp_path / "config.txt"
        path.write_text("# keep me\nbaud_rate = 9600\nserial_port = /dev/serial0\n", encoding="utf-8")

        await config_manager.write_config_async(path, {"baud_rate": 4800, "console_output": False})

        assert path.read_text(encoding="utf-8").splitlines() == [
            "# keep me",
            "baud_rate = 4800",
            "serial_port = /dev/serial0",
            "console_output = false",
        ]

    @pytest.mark.asyncio
    async def test_remove_keys(self, tmp_path, config_manager):
        path = tmp_path / "identity.txt"
        path.write_text("vehicle_id = BUS-001\nother = x\n", encoding="utf-8")

        await config_manager.write_config_async(path, {}, remove_keys=["vehicle_id"])

        assert config_manager.read_config(path) == {"other": "x"}

    @pytest.mark.asyncio
    async def test_no_changes_leaves_file_alone(self, tmp_path, config_manager):
        path = tmp_path / "identity.txt"

        assert await config_manager.write_config_async(path, {}) is True
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_unwritable_path_reports_failure(self, tmp_path, config_manager):
        blocker = tmp_path / "file"
        blocker.write_text("", encoding="utf-8")

        assert await config_manager.write_config_async(blocker / "config.txt", {"a": 1}) is False

    @pytest.mark.asyncio
    async def test_concurrent_writes_keep_both_keys(self, tmp_path, config_manager):
        path = tmp_path / "config.txt"

        await asyncio.gather(
            config_manager.write_config_async(path, {"a": 1}),
            config_manager.write_config_async(path, {"b": 2}),
        )

        assert config_manager.read_config(path) == {"a": "1", "b": "2"}


def test_singleton():
    assert get_config_manager() is get_config_manager()
    assert isinstance(get_config_manager(), ConfigManager)
