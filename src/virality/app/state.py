"""Application state manager.

Wires the settings table and the location log on top of the table store.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, TypedDict

from ..core.config import AppConfig
from ..core.types import IndexDef, Item, StorageResults, TableDef
from .location import CancelSubscription, LocationInfo, compare_locations, describe_address

if TYPE_CHECKING:
    from ..components.table_store import TableStore
    from .location import LocationTracker

logger = logging.getLogger(__name__)

TIMESTAMP_INDEX = "timestamp"


class ApplicationSettings(TypedDict, total=False):
    id: str
    tracking_enabled: bool


def now_ms() -> int:
    return int(time.time() * 1000)


class ApplicationState:
    """Settings and location log of the app.

    Args:
        store: Table store to persist into
        config: Application configuration

    Call start() before any other method.
    """

    def __init__(self, store: TableStore, config: AppConfig | None = None):
        self.store = store
        self.config = config or AppConfig()
        self._settings_table: TableDef | None = None
        self._log_table: TableDef | None = None
        self._defaults: ApplicationSettings = {}
        self._cancel: CancelSubscription | None = None

    async def start(
        self, default_settings: ApplicationSettings | None = None, tracker: LocationTracker | None = None
    ) -> None:
        """Define and open the tables, then follow the tracker if given."""
        self._defaults = {"id": self.config.settings_id, "tracking_enabled": False}
        self._defaults.update(default_settings or {})

        await self.store.define_table(self.config.settings_table)
        await self.store.define_table(
            self.config.log_table, {TIMESTAMP_INDEX: IndexDef(ascending=False, numerical=True)}
        )
        self._settings_table = await self.store.open_table(self.config.settings_table)
        self._log_table = await self.store.open_table(self.config.log_table)

        if tracker is not None:
            self._cancel = await tracker.subscribe(self._on_location)
        logger.info("Application state started")

    def close(self) -> None:
        if self._cancel is not None:
            self._cancel()
            self._cancel = None

    @property
    def log_table(self) -> TableDef:
        if self._log_table is None:
            raise RuntimeError("ApplicationState.start() has not been called")
        return self._log_table

    @property
    def settings_table(self) -> TableDef:
        if self._settings_table is None:
            raise RuntimeError("ApplicationState.start() has not been called")
        return self._settings_table

    async def get_settings(self) -> ApplicationSettings:
        """Persisted settings merged over the defaults.

        Settings added in later versions pick up their default values.
        """
        stored = await self.store.get_item(self.settings_table, self._defaults["id"])
        settings: ApplicationSettings = dict(self._defaults)
        settings.update(stored or {})
        return settings

    async def update_settings(self, settings: ApplicationSettings) -> None:
        settings = dict(settings)
        settings.setdefault("id", self._defaults["id"])
        await self.store.set_item(self.settings_table, settings)

    async def list_log(self, count: int | None = None, continuation: str | None = None) -> StorageResults:
        """Page through the log, newest first."""
        return await self.store.list_items(self.log_table, TIMESTAMP_INDEX, count, continuation)

    async def upsert_log_entry(self, entry: dict[str, Any]) -> str:
        """Insert or replace a log entry; new entries get an id assigned."""
        if entry.get("timestamp") is None:
            entry["timestamp"] = now_ms()
        return await self.store.set_item(self.log_table, entry)

    async def get_log_entry(self, entry_id: str) -> Item | None:
        return await self.store.get_item(self.log_table, entry_id)

    async def remove_log_entry(self, entry_id: str) -> None:
        await self.store.remove_item(self.log_table, entry_id)

    async def handle_location_changed(self, location: LocationInfo) -> str | None:
        """Log a new place unless it repeats the newest entry.

        A repeat of the newest place is logged again once the duplicate
        window has passed.

        Returns:
            The new entry id, or None if the fix was ignored
        """
        latest = await self.list_log(1)
        if latest.items:
            current = latest.items[0]
            if compare_locations(current, location, self.config.same_location_meters):
                delta_ms = location.get("timestamp", now_ms()) - current.get("timestamp", 0)
                if delta_ms < self.config.duplicate_window_seconds * 1000:
                    logger.debug(f"Ignoring repeat of entry '{current['id']}'")
                    return None

        entry: dict[str, Any] = {"where": describe_address(location.get("address"))}
        entry.update(location)
        entry_id = await self.upsert_log_entry(entry)
        logger.info(f"Logged location '{entry['where']}' as entry '{entry_id}'")
        return entry_id

    async def _on_location(self, location: LocationInfo | None, error: Exception | None) -> None:
        if error is not None:
            logger.warning(f"Location update failed: {error}")
            return
        if location is not None:
            await self.handle_location_changed(location)
