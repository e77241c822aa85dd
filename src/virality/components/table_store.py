"""Table store - single-table database over a key/value primitive.

Orchestrates table definitions, item storage, index maintenance and
paginated listing.
"""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import AsyncIterator, Mapping
from typing import Any

from ..core.errors import IndexNotFoundError, InvalidContinuationError, TableNotFoundError
from ..core.types import IndexDef, IndexEntry, Item, StorageResults, TableDef, item_key, table_prefix
from ..interfaces.kvstore import KeyValueStore
from .index import remove_from_indexes, update_indexes

logger = logging.getLogger(__name__)


def _parse_continuation(continuation: str | None) -> int:
    if not continuation:
        return 0
    try:
        start = int(continuation)
    except ValueError:
        raise InvalidContinuationError(f"Invalid continuation token: {continuation!r}") from None
    if start < 0:
        raise InvalidContinuationError(f"Invalid continuation token: {continuation!r}")
    return start


def _snapshot_indexes(table: TableDef) -> dict[str, list[IndexEntry]]:
    return {name: copy.deepcopy(index.values) for name, index in table.indexes.items()}


def _restore_indexes(table: TableDef, snapshot: dict[str, list[IndexEntry]]) -> None:
    # In place, so callers holding an IndexDef see the rollback
    for name, values in snapshot.items():
        table.indexes[name].values[:] = values


class TableStore:
    """Tables of JSON items with sorted secondary indexes.

    Args:
        kv: Key/value primitive holding definitions and items
        default_page_size: Page size used by list_items when count is omitted

    Public API:
        - define_table(name, indexes): Create a table on first call
        - open_table(name): Load a table handle
        - delete_table(name): Drop a table and all of its items
        - get_item(table, id): Read one item
        - set_item(table, item): Insert or replace an item
        - remove_item(table, id): Delete an item
        - list_items(table, index, count, continuation): Read one page

    Invariants:
        - Index maintenance runs before the item is persisted
        - An item and its dirty table definition are written in one multi_set
        - Writes through one TableDef handle are serialized by its lock
    """

    def __init__(self, kv: KeyValueStore, default_page_size: int = 10):
        self.kv = kv
        self.default_page_size = default_page_size

    async def define_table(
        self, name: str, indexes: Mapping[str, IndexDef | dict[str, Any]] | None = None
    ) -> None:
        """Ensure a table exists; a no-op if it is already defined."""
        if await self.kv.get(name):
            return

        table = TableDef(
            name=name,
            indexes={field: IndexDef.from_dict(idx) for field, idx in (indexes or {}).items()},
        )
        await self.kv.set(name, json.dumps(table.to_dict()))
        logger.info(f"Defined table '{name}' with indexes {sorted(table.indexes)}")

    async def open_table(self, name: str) -> TableDef:
        """Open a previously defined table.

        Raises:
            TableNotFoundError: If the table was never defined
        """
        raw = await self.kv.get(name)
        if not raw:
            raise TableNotFoundError(name)
        return TableDef.from_dict(json.loads(raw))

    async def delete_table(self, name: str) -> None:
        """Delete a table and all of its rows."""
        prefix = table_prefix(name)
        keys = [k for k in await self.kv.all_keys() if k == name or k.startswith(prefix)]
        if keys:
            await self.kv.multi_remove(keys)
            logger.info(f"Deleted table '{name}' ({len(keys)} keys)")

    async def get_item(self, table: TableDef, item_id: Any) -> Item | None:
        """Return an item from a table, or None if it isn't found."""
        raw = await self.kv.get(item_key(table.name, item_id))
        return json.loads(raw) if raw else None

    async def set_item(self, table: TableDef, item: Item) -> str:
        """Save an item to a table.

        Items without a populated id (None, "", 0) are assigned the table's
        next id; the caller's dict is updated in place. The table's indexes
        are updated from the indexed fields.

        If serializing or writing fails, the handle, its indexes and the
        caller's id are restored and the error propagates.

        Returns:
            The item id
        """
        async with table.lock:
            next_id = table.next_id
            indexes = _snapshot_indexes(table)
            had_id = "id" in item
            old_id = item.get("id")
            try:
                save_table = False
                if not item.get("id"):
                    item["id"] = str(table.next_id)
                    table.next_id += 1
                    save_table = True
                row = (item_key(table.name, item["id"]), json.dumps(item, allow_nan=False))

                if update_indexes(table, item):
                    save_table = True

                rows = [row]
                if save_table:
                    rows.append((table.name, json.dumps(table.to_dict())))
                await self.kv.multi_set(rows)
            except BaseException:
                table.next_id = next_id
                _restore_indexes(table, indexes)
                if had_id:
                    item["id"] = old_id
                else:
                    item.pop("id", None)
                raise

        logger.debug(f"Saved item '{item['id']}' to '{table.name}'")
        return str(item["id"])

    async def remove_item(self, table: TableDef, item_id: Any) -> None:
        """Delete an item and its index entries."""
        async with table.lock:
            indexes = _snapshot_indexes(table)
            try:
                if remove_from_indexes(table, item_id):
                    await self.kv.set(table.name, json.dumps(table.to_dict()))
            except BaseException:
                _restore_indexes(table, indexes)
                raise

            await self.kv.delete(item_key(table.name, item_id))

        logger.debug(f"Removed item '{item_id}' from '{table.name}'")

    async def list_items(
        self,
        table: TableDef,
        index_name: str,
        count: int | None = None,
        continuation: str | None = None,
    ) -> StorageResults:
        """Fetch one page of items in index order.

        Args:
            table: Table to use
            index_name: Index that drives the ordering
            count: Page size; defaults to the store's default page size
            continuation: Token returned with the previous page

        Returns:
            The page, with a continuation token if more entries remain

        Raises:
            IndexNotFoundError: If the table has no such index
            InvalidContinuationError: If the token is not a non-negative offset
        """
        index = table.indexes.get(index_name)
        if index is None:
            raise IndexNotFoundError(table.name, index_name)
        if count is None:
            count = self.default_page_size
        if count < 1:
            raise ValueError(f"count must be positive, got {count}")

        results = StorageResults()
        start = _parse_continuation(continuation)
        if start >= len(index.values):
            return results

        window = index.values[start:start + count]
        end = start + len(window)
        rows = await self.kv.multi_get([item_key(table.name, e.id) for e in window])
        for key, raw in rows:
            if raw is None:
                logger.warning(f"Skipping stale '{index_name}' index entry for missing key '{key}'")
                continue
            results.items.append(json.loads(raw))

        if end < len(index.values):
            results.continuation = str(end)
        return results

    async def iter_items(
        self, table: TableDef, index_name: str, page_size: int | None = None
    ) -> AsyncIterator[Item]:
        """Iterate every item in index order, one page at a time."""
        continuation = None
        while True:
            page = await self.list_items(table, index_name, page_size, continuation)
            for item in page.items:
                yield item
            continuation = page.continuation
            if continuation is None:
                return
