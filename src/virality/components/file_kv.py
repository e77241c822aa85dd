"""JSON file key/value primitive.

Provides a durable store keeping every pair in one JSON document,
rewritten atomically on each mutation.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from collections.abc import Sequence
from pathlib import Path

from ..core.errors import StorageError

logger = logging.getLogger(__name__)


class JsonFileKeyValueStore:
    """Durable key/value store backed by a single JSON file.

    Args:
        path: Path to the data file
        fsync: Whether to fsync the temp file before renaming it

    Invariants:
        - Updates are atomic via write-temp-then-rename
        - The file is loaded lazily on first access
        - Operations are serialized by an asyncio lock
    """

    def __init__(self, path: str | Path, fsync: bool = True):
        self.path = Path(path)
        self.fsync = fsync
        self._data: dict[str, str] | None = None
        self._lock = asyncio.Lock()

    def _load(self) -> dict[str, str]:
        """Load the data file from disk."""
        if not self.path.exists():
            logger.info(f"No existing data file at {self.path}, starting fresh")
            return {}

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to load data file {self.path}: {e}") from e

        if not isinstance(data, dict) or not all(isinstance(v, str) for v in data.values()):
            raise StorageError(f"Data file {self.path} is not a string map")
        logger.info(f"Loaded {len(data)} keys from {self.path}")
        return data

    def _save(self, data: dict[str, str]) -> None:
        """Save the data file atomically."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(data, f)
            f.flush()
            if self.fsync:
                os.fsync(f.fileno())

        os.replace(temp_path, self.path)
        logger.debug(f"Saved {len(data)} keys to {self.path}")

    async def _snapshot(self) -> dict[str, str]:
        if self._data is None:
            self._data = await asyncio.to_thread(self._load)
        return self._data

    async def _commit(self, data: dict[str, str]) -> None:
        # Memory only changes once the file is in place
        await asyncio.to_thread(self._save, data)
        self._data = data

    async def get(self, key: str) -> str | None:
        async with self._lock:
            return (await self._snapshot()).get(key)

    async def set(self, key: str, value: str) -> None:
        await self.multi_set([(key, value)])

    async def delete(self, key: str) -> None:
        await self.multi_remove([key])

    async def multi_get(self, keys: Sequence[str]) -> list[tuple[str, str | None]]:
        async with self._lock:
            data = await self._snapshot()
            return [(key, data.get(key)) for key in keys]

    async def multi_set(self, pairs: Sequence[tuple[str, str]]) -> None:
        for key, value in pairs:
            if not isinstance(value, str):
                raise TypeError(f"Values must be strings, got {type(value).__name__} for '{key}'")
        async with self._lock:
            data = dict(await self._snapshot())
            data.update(pairs)
            await self._commit(data)

    async def multi_remove(self, keys: Sequence[str]) -> None:
        async with self._lock:
            current = await self._snapshot()
            removed = set(keys)
            if removed.isdisjoint(current):
                return
            data = {k: v for k, v in current.items() if k not in removed}
            await self._commit(data)

    async def all_keys(self) -> list[str]:
        async with self._lock:
            return list(await self._snapshot())
