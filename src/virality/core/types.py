"""Common type definitions for the table store.

Defines the persisted shapes of tables, indexes and index entries.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

# Core primitive types
FieldValue = str | int | float | bool | None
Item = dict[str, Any]

# Separator between table name and item id in primitive keys
KEY_SEPARATOR = "|"


def item_key(table_name: str, item_id: Any) -> str:
    """Return the primitive key holding an item."""
    return f"{table_name}{KEY_SEPARATOR}{item_id}"


def table_prefix(table_name: str) -> str:
    """Return the key prefix shared by every item of a table."""
    return f"{table_name}{KEY_SEPARATOR}"


@dataclass
class IndexEntry:
    """Item id and its projected field value at last write."""

    id: str
    value: FieldValue

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "value": self.value}

    @staticmethod
    def from_dict(d: dict[str, Any]) -> IndexEntry:
        return IndexEntry(id=str(d["id"]), value=d.get("value"))


@dataclass
class IndexDef:
    """Secondary sort order over the item field named like the index.

    Attributes:
        ascending: Sort direction (descending by default)
        numerical: Compare as numbers; non-numeric values coerce to 0
        values: Fully sorted entries, one per live item
    """

    ascending: bool = False
    numerical: bool = False
    values: list[IndexEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ascending": self.ascending,
            "numerical": self.numerical,
            "values": [e.to_dict() for e in self.values],
        }

    @staticmethod
    def from_dict(d: dict[str, Any] | IndexDef | None) -> IndexDef:
        if isinstance(d, IndexDef):
            return d
        d = d or {}
        return IndexDef(
            ascending=bool(d.get("ascending", False)),
            numerical=bool(d.get("numerical", False)),
            values=[IndexEntry.from_dict(e) for e in d.get("values") or []],
        )


@dataclass
class TableDef:
    """In-memory handle on a table definition.

    The handle is mutated by index maintenance before it is persisted, so
    every write against a table should go through one handle. The lock is
    not persisted; it serializes writes made through this handle.

    Attributes:
        name: Table name, also the primitive key of the definition
        next_id: Next auto-assigned item id
        indexes: Index name -> definition
    """

    name: str
    next_id: int = 1
    indexes: dict[str, IndexDef] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "nextId": self.next_id,
            "indexes": {name: idx.to_dict() for name, idx in self.indexes.items()},
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> TableDef:
        indexes = d.get("indexes") or {}
        return TableDef(
            name=d["name"],
            next_id=int(d.get("nextId", 1)),
            indexes={name: IndexDef.from_dict(idx) for name, idx in indexes.items()},
        )


@dataclass
class StorageResults:
    """One page of items plus the cursor for the next page, if any."""

    items: list[Item] = field(default_factory=list)
    continuation: str | None = None
