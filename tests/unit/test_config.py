"""Unit tests for configuration loading."""

from pathlib import Path

import pytest

from virality.core.config import AppConfig, StoreConfig, load_config


def test_defaults():
    config = AppConfig()
    assert config.store == StoreConfig()
    assert config.store.default_page_size == 10
    assert config.settings_table == "application"
    assert config.log_table == "location-log"
    assert config.duplicate_window_seconds == 86400


def test_load_config(tmp_path: Path):
    """Test [store] and [app] tables map onto the dataclasses."""
    path = tmp_path / "virality.toml"
    path.write_text(
        """
[store]
data_path = "/tmp/log.json"
default_page_size = 25

[app]
same_location_meters = 100.0
log_level = "DEBUG"
""",
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.store.data_path == "/tmp/log.json"
    assert config.store.default_page_size == 25
    assert config.store.fsync_writes is True
    assert config.same_location_meters == 100.0
    assert config.log_level == "DEBUG"


def test_load_config_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.toml")


def test_load_config_unknown_option(tmp_path: Path):
    """Test that typos in option names are reported."""
    path = tmp_path / "virality.toml"
    path.write_text("[store]\npage_size = 5\n", encoding="utf-8")
    with pytest.raises(ValueError, match="page_size"):
        load_config(path)
