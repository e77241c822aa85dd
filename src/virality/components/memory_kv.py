"""In-memory key/value primitive.

Uses sortedcontainers.SortedDict so key enumeration is ordered.
"""

from __future__ import annotations

from collections.abc import Sequence

from sortedcontainers import SortedDict


class MemoryKeyValueStore:
    """Process-local key/value store.

    Nothing is durable; used for tests and throwaway sessions. Operations
    never suspend mid-way, so batched writes are trivially atomic.
    """

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: SortedDict = SortedDict()
        for key, value in (initial or {}).items():
            self._put(key, value)

    def _put(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"Values must be strings, got {type(value).__name__} for '{key}'")
        self._data[key] = value

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._put(key, value)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def multi_get(self, keys: Sequence[str]) -> list[tuple[str, str | None]]:
        return [(key, self._data.get(key)) for key in keys]

    async def multi_set(self, pairs: Sequence[tuple[str, str]]) -> None:
        # Validate everything before touching the data
        for key, value in pairs:
            if not isinstance(value, str):
                raise TypeError(f"Values must be strings, got {type(value).__name__} for '{key}'")
        for key, value in pairs:
            self._data[key] = value

    async def multi_remove(self, keys: Sequence[str]) -> None:
        for key in keys:
            self._data.pop(key, None)

    async def all_keys(self) -> list[str]:
        return list(self._data.keys())

    def __len__(self) -> int:
        return len(self._data)
