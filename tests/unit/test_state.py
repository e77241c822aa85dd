"""Unit tests for ApplicationState."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from virality.app.location import LocationTracker
from virality.app.state import ApplicationState
from virality.components.memory_kv import MemoryKeyValueStore
from virality.components.table_store import TableStore
from virality.core.config import AppConfig

DAY_MS = 24 * 60 * 60 * 1000

HOME = {
    "latitude": 47.6062,
    "longitude": -122.3321,
    "address": {"name": "Home", "city": "Seattle", "region": "wa"},
}
WORK = {
    "latitude": 47.6205,
    "longitude": -122.3493,
    "address": {"street": "Broad St", "city": "Seattle"},
}


@pytest.fixture
def store():
    return TableStore(MemoryKeyValueStore())


@pytest_asyncio.fixture
async def state(store):
    """Started application state with default config."""
    s = ApplicationState(store, AppConfig())
    await s.start({"id": "settings", "tracking_enabled": False})
    return s


def at(location, ts):
    return dict(location, timestamp=ts)


@pytest.mark.asyncio
async def test_start_defines_tables(store, state):
    """Test the settings and log tables exist after start."""
    settings = await store.open_table("application")
    log = await store.open_table("location-log")
    assert settings.indexes == {}
    assert log.indexes["timestamp"].numerical
    assert not log.indexes["timestamp"].ascending


@pytest.mark.asyncio
async def test_use_before_start_raises(store):
    """Test that methods need start() first."""
    with pytest.raises(RuntimeError):
        await ApplicationState(store).list_log()


@pytest.mark.asyncio
async def test_settings_defaults_and_merge(store):
    """Test persisted settings override defaults, new defaults fill in."""
    s = ApplicationState(store)
    await s.start()
    assert await s.get_settings() == {"id": "settings", "tracking_enabled": False}

    await s.update_settings({"id": "settings", "tracking_enabled": True})

    upgraded = ApplicationState(store)
    await upgraded.start({"theme": "dark"})
    assert await upgraded.get_settings() == {
        "id": "settings",
        "tracking_enabled": True,
        "theme": "dark",
    }


@pytest.mark.asyncio
async def test_log_crud_newest_first(state):
    """Test upsert, list, get and remove of log entries."""
    first = await state.upsert_log_entry({"where": "a", "timestamp": 1_000})
    second = await state.upsert_log_entry({"where": "b", "timestamp": 2_000})

    page = await state.list_log(10)
    assert [e["where"] for e in page.items] == ["b", "a"]
    assert (await state.get_log_entry(first))["where"] == "a"

    await state.remove_log_entry(second)
    assert await state.get_log_entry(second) is None
    assert [e["id"] for e in (await state.list_log(10)).items] == [first]


@pytest.mark.asyncio
async def test_upsert_defaults_timestamp(state):
    """Test that entries without a timestamp get the current time."""
    entry = {"where": "somewhere"}
    await state.upsert_log_entry(entry)
    assert entry["timestamp"] > 0
    assert entry["id"] == "1"


@pytest.mark.asyncio
async def test_location_change_logs_entry(state):
    """Test a new place becomes a log entry with a readable name."""
    entry_id = await state.handle_location_changed(at(HOME, 1_000))

    entry = await state.get_log_entry(entry_id)
    assert entry["where"] == "Home, Seattle, WA"
    assert entry["latitude"] == HOME["latitude"]
    assert entry["timestamp"] == 1_000


@pytest.mark.asyncio
async def test_repeat_location_ignored_within_window(state):
    """Test the newest place isn't logged again within a day."""
    await state.handle_location_changed(at(HOME, 1_000))
    assert await state.handle_location_changed(at(HOME, 1_000 + DAY_MS - 1)) is None
    assert await state.handle_location_changed(at(HOME, 1_000 + DAY_MS)) is not None

    page = await state.list_log(10)
    assert len(page.items) == 2


@pytest.mark.asyncio
async def test_new_place_always_logged(state):
    """Test a different place is logged immediately."""
    await state.handle_location_changed(at(HOME, 1_000))
    await state.handle_location_changed(at(WORK, 2_000))
    await state.handle_location_changed(at(HOME, 3_000))

    page = await state.list_log(10)
    assert [e["where"] for e in page.items] == [
        "Home, Seattle, WA",
        "Broad St, Seattle",
        "Home, Seattle, WA",
    ]


@pytest.mark.asyncio
async def test_tracker_subscription(store):
    """Test that tracker updates are logged until close()."""
    provider = MagicMock()
    provider.request_permission = AsyncMock(return_value=True)
    provider.start_updates = AsyncMock()
    tracker = LocationTracker(provider)

    state = ApplicationState(store)
    await state.start(tracker=tracker)
    await tracker.handle_update([at(HOME, 1_000)])
    await tracker.handle_update(None, RuntimeError("no fix"))
    assert len((await state.list_log(10)).items) == 1

    state.close()
    await tracker.handle_update([at(WORK, 2_000)])
    assert len((await state.list_log(10)).items) == 1
    assert tracker.subscriber_count == 0
