"""Protocol definition for the key/value primitive."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol


class KeyValueStore(Protocol):
    """Asynchronous, persistent string-keyed store.

    A multi_set must be observed atomically by subsequent reads.
    """

    async def get(self, key: str) -> str | None:
        """Return the value for key or None if absent."""
        ...

    async def set(self, key: str, value: str) -> None:
        """Store a value under key."""
        ...

    async def delete(self, key: str) -> None:
        """Remove key; no-op if absent."""
        ...

    async def multi_get(self, keys: Sequence[str]) -> list[tuple[str, str | None]]:
        """Return (key, value_or_none) pairs in input order."""
        ...

    async def multi_set(self, pairs: Sequence[tuple[str, str]]) -> None:
        """Store all pairs; visible together or not at all."""
        ...

    async def multi_remove(self, keys: Sequence[str]) -> None:
        """Remove every key given."""
        ...

    async def all_keys(self) -> list[str]:
        """Return every key currently stored."""
        ...
