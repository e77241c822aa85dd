"""Location tracking.

Wraps a platform location provider and fans location updates out to
subscribers. Each tracker owns its own subscribers and cached location.
"""

from __future__ import annotations

import inspect
import logging
import math
import uuid
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Protocol, TypedDict

logger = logging.getLogger(__name__)

EARTH_RADIUS_METERS = 6_371_008.8
UNKNOWN_LOCATION = "<unknown location>"


class Address(TypedDict, total=False):
    """Reverse-geocoded address parts."""
    name: str
    street: str
    city: str
    region: str
    postal_code: str
    country: str


class LocationInfo(TypedDict, total=False):
    """A location fix as reported by the provider."""
    timestamp: int  # milliseconds since the epoch
    latitude: float
    longitude: float
    accuracy: float
    address: Address


LocationCallback = Callable[[LocationInfo | None, Exception | None], Awaitable[None] | None]
CancelSubscription = Callable[[], None]


class LocationProvider(Protocol):
    """Platform geolocation and permission API."""

    async def request_permission(self) -> bool:
        """Ask the user for background location access; True if granted."""
        ...

    async def start_updates(self, task_name: str, options: dict[str, Any]) -> None:
        """Start delivering updates to the background task."""
        ...


# Options passed to the provider when tracking starts
DEFAULT_UPDATE_OPTIONS: dict[str, Any] = {
    "accuracy": "high",
    "time_interval_ms": 1000,
    "distance_interval_m": 10,
    "pauses_updates_automatically": True,
}


class LocationTracker:
    """Location subscription hub.

    Args:
        provider: Platform location provider
        options: Update options passed to the provider on start
    """

    def __init__(self, provider: LocationProvider, options: dict[str, Any] | None = None):
        self.provider = provider
        self.options = dict(DEFAULT_UPDATE_OPTIONS if options is None else options)
        self._subscribers: dict[str, LocationCallback] = {}
        self.last_location: LocationInfo | None = None

    async def start(self, task_name: str) -> bool:
        """Request permission and start location updates.

        Returns:
            False if the user declined background location access
        """
        if not await self.provider.request_permission():
            logger.warning("Background location permission not granted")
            return False

        await self.provider.start_updates(task_name, self.options)
        logger.info(f"Started location updates for task '{task_name}'")
        return True

    async def handle_update(
        self, locations: Sequence[LocationInfo] | None, error: Exception | None = None
    ) -> None:
        """Background task handler: cache the newest fix and notify subscribers."""
        if locations:
            self.last_location = locations[0]
        for callback in list(self._subscribers.values()):
            await _invoke(callback, self.last_location, error)

    async def subscribe(self, callback: LocationCallback) -> CancelSubscription:
        """Register a callback; it is replayed the cached fix, if any.

        Returns:
            A function that cancels the subscription
        """
        key = uuid.uuid4().hex
        self._subscribers[key] = callback
        if self.last_location is not None:
            await _invoke(callback, self.last_location, None)

        def cancel() -> None:
            self._subscribers.pop(key, None)

        return cancel

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def close(self) -> None:
        """Drop all subscribers and the cached location."""
        self._subscribers.clear()
        self.last_location = None


async def _invoke(callback: LocationCallback, location: LocationInfo | None, error: Exception | None) -> None:
    result = callback(location, error)
    if inspect.isawaitable(result):
        await result


def distance_meters(a: LocationInfo, b: LocationInfo) -> float:
    """Great-circle (haversine) distance between two fixes."""
    lat1, lat2 = math.radians(a["latitude"]), math.radians(b["latitude"])
    dlat = lat2 - lat1
    dlon = math.radians(b["longitude"] - a["longitude"])
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * math.asin(min(1.0, math.sqrt(h)))


def compare_locations(a: LocationInfo, b: LocationInfo, threshold_m: float = 50.0) -> bool:
    """Return True if two fixes are the same place."""
    if "latitude" not in a or "latitude" not in b:
        return False
    return distance_meters(a, b) <= threshold_m


def describe_address(address: Address | None) -> str:
    """Human-readable place name, e.g. 'Pike Place, Seattle, WA'."""
    address = address or {}
    where = address.get("name") or address.get("street") or UNKNOWN_LOCATION
    if address.get("city"):
        where += f", {address['city']}"
    if address.get("region"):
        where += f", {address['region'].upper()}"
    return where
