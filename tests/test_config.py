"""Tests for configuration and small utilities."""

from datetime import datetime
from pathlib import Path

import pytest
from pydantic import ValidationError

from droidlink.config import DroidLinkConfig, load_config, save_config
from droidlink.util import (
    format_duration,
    format_size,
    is_hidden_path,
    is_reserved_path,
    relative_remote_path,
    remove_empty_directory,
    timestamp_now,
)


class TestConfig:
    """Test configuration loading and saving."""

    def test_defaults(self):
        config = DroidLinkConfig()

        assert config.mount.remote_candidates[0] == "/storage/emulated/0"
        assert config.mount.transport.port == 8022
        assert config.mount.settle_delay == 0.3
        assert config.worlds.archive_suffix == ".mcworld"
        assert config.bridge.adb_path == "adb"

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config(tmp_path / "nope.yaml") == DroidLinkConfig()

    def test_save_load_round_trip(self, tmp_path):
        config = DroidLinkConfig()
        config.mount.transport.user = "u0_a499"
        config.worlds.backup_root = tmp_path / "bk"

        path = save_config(config, tmp_path / "cfg" / "config.yaml")
        loaded = load_config(path)

        assert loaded.mount.transport.user == "u0_a499"
        assert loaded.worlds.backup_root == tmp_path / "bk"

    def test_partial_file(self, tmp_path):
        """Keys not in the file keep their defaults."""
        path = tmp_path / "config.yaml"
        path.write_text("bridge:\n  serial: R58M\nmount:\n  transport:\n    port: 2222\n")

        config = load_config(path)

        assert config.bridge.serial == "R58M"
        assert config.mount.transport.port == 2222
        assert config.mount.transport.options[0] == "reconnect"

    def test_assignment_is_validated(self):
        with pytest.raises(ValidationError):
            DroidLinkConfig().storage_candidates = "not a list"


class TestPathUtils:
    """Test path helpers."""

    def test_relative_remote_path(self):
        assert relative_remote_path("/sdcard/Download/sub/a.txt", "/sdcard/Download/") == "sub/a.txt"
        assert relative_remote_path("/elsewhere/a.txt", "/sdcard/Download") == "a.txt"

    def test_hidden_segments(self):
        assert is_hidden_path(".nomedia")
        assert is_hidden_path("sub/.thumbs/a.jpg")
        assert not is_hidden_path("sub/a.b.jpg")

    def test_reserved(self):
        assert is_reserved_path(Path("/Volumes/Phone"), ["/Volumes/"])
        assert not is_reserved_path(Path("/home/me/Volumes"), ["/Volumes/"])

    def test_remove_empty_directory(self, tmp_path):
        full = tmp_path / "full"
        full.mkdir()
        (full / "x").write_text("x")

        assert not remove_empty_directory(full)
        assert remove_empty_directory(tmp_path / "empty") is False
        (tmp_path / "empty").mkdir()
        assert remove_empty_directory(tmp_path / "empty")

    def test_format_size(self):
        assert format_size(0) == "0 B"
        assert format_size(1536) == "1.5 KB"

    def test_timestamp(self):
        assert timestamp_now(now=datetime(2024, 5, 1, 15, 12, 45)) == "2024-05-01__03-12-45-PM"

    def test_format_duration(self):
        assert format_duration(12) == "12.0s"
        assert format_duration(90) == "1.5m"
