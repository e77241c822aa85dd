"""Configuration for the location log.

Defines the tunable parameters of the store and the application, and
loads them from TOML.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any


@dataclass
class StoreConfig:
    """Configuration of the key/value backing store.

    Attributes:
        data_path: JSON file holding every key/value pair
        default_page_size: Page size used by listings when none is given
        fsync_writes: Whether to fsync after each rewrite of the data file
    """

    data_path: str = "virality-data.json"
    default_page_size: int = 10
    fsync_writes: bool = True


@dataclass
class AppConfig:
    """Configuration of the application state manager.

    Attributes:
        store: Backing store configuration
        settings_table: Table holding the settings record
        log_table: Table holding location log entries
        settings_id: Item id of the settings record
        duplicate_window_seconds: A repeat of the newest place is ignored within this window
        same_location_meters: Two fixes closer than this are the same place
        log_level: Root logging level
    """

    store: StoreConfig = field(default_factory=StoreConfig)
    settings_table: str = "application"
    log_table: str = "location-log"
    settings_id: str = "settings"
    duplicate_window_seconds: int = 24 * 60 * 60  # 1 day
    same_location_meters: float = 50.0
    log_level: str = "INFO"


def _known(cls: type, data: dict[str, Any]) -> dict[str, Any]:
    names = {f.name for f in fields(cls)}
    unknown = set(data) - names
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} option(s): {', '.join(sorted(unknown))}")
    return dict(data)


def load_config(path: Path) -> AppConfig:
    """Load an AppConfig from a TOML file with [store] and [app] tables."""
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    data = tomllib.loads(path.read_text(encoding="utf-8"))

    store = StoreConfig(**_known(StoreConfig, data.get("store", {})))
    app = _known(AppConfig, data.get("app", {}))
    app.pop("store", None)
    return AppConfig(store=store, **app)
