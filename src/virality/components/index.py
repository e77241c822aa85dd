"""Secondary index maintenance.

Indexes are plain sorted lists of (id, value) entries stored inside the
table definition. Updates and removals scan linearly and every change
re-sorts the whole list, which is fine for device-local tables of a few
hundred rows.
"""

from __future__ import annotations

import math
import unicodedata
from numbers import Real
from typing import Any

from ..core.types import FieldValue, IndexDef, IndexEntry, Item, TableDef


def is_number(value: Any) -> bool:
    """Return True for finite ints and floats, but not bools."""
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def project_value(index: IndexDef, field: str, item: Item) -> FieldValue:
    """Return the value an item contributes to the index named `field`."""
    value = item.get(field)
    if index.numerical and not is_number(value):
        return 0
    return value


def collation_key(value: Any) -> tuple[str, str, str]:
    """Sort key approximating root-locale collation.

    Compares base letters first (accents and case ignored), then accents,
    then case (lowercase first), so "Alice" < "bob" < "émile" < "Zed".
    Independent of the process locale and safe for any string, NUL included.
    """
    text = "" if value is None else str(value)
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(c for c in decomposed if not unicodedata.combining(c))
    return base.casefold(), decomposed.casefold(), text.swapcase()


def _string_key(entry: IndexEntry) -> tuple[str, str, str]:
    return collation_key(entry.value)


def sort_entries(index: IndexDef) -> None:
    """Re-sort index values in place per its (numerical, ascending) policy.

    Python's sort is stable, including with reverse=True, so entries with
    equal values keep their previous relative order.
    """
    if index.numerical:
        index.values.sort(key=lambda e: e.value, reverse=not index.ascending)
    else:
        index.values.sort(key=_string_key, reverse=not index.ascending)


def update_index(index: IndexDef, field: str, item: Item) -> bool:
    """Insert or refresh an item's entry in one index.

    Returns:
        True if the index changed (and was re-sorted)
    """
    item_id = str(item["id"])
    value = project_value(index, field, item)

    changed = False
    for entry in index.values:
        if entry.id == item_id:
            if entry.value != value or type(entry.value) is not type(value):
                entry.value = value
                changed = True
            break
    else:
        index.values.append(IndexEntry(id=item_id, value=value))
        changed = True

    if changed:
        sort_entries(index)
    return changed


def update_indexes(table: TableDef, item: Item) -> bool:
    """Bring every index of the table up to date with the item.

    The item must already carry its id.
    """
    modified = False
    for field, index in table.indexes.items():
        if update_index(index, field, item):
            modified = True
    return modified


def remove_from_indexes(table: TableDef, item_id: Any) -> bool:
    """Drop the item's entry from every index.

    Returns:
        True if any index changed
    """
    item_id = str(item_id)
    modified = False
    for index in table.indexes.values():
        for i, entry in enumerate(index.values):
            if entry.id == item_id:
                del index.values[i]
                modified = True
                break
    return modified
