"""Self-test of the table store against a live key/value primitive.

Exercises a scratch table named 'test' end to end: known and automatic
ids, deletion, index ordering and pagination. The table is dropped
before and after the run.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from .components.table_store import TableStore
from .core.errors import SelfTestError
from .core.types import TableDef

logger = logging.getLogger(__name__)

TEST_TABLE = "test"

PEOPLE = [
    {"name": "steve", "age": 51, "reports": 2, "role": "dad"},
    {"name": "annabelle", "age": 4, "reports": 0, "role": "daughter"},
    {"name": "donna", "age": 48, "reports": 1, "role": "wife"},
]


def check(test: Any, msg: str) -> None:
    if not test:
        raise SelfTestError(f"Table store self-test failure: {msg}")


def check_index_order(table: TableDef, index_name: str, values: list[Any]) -> None:
    index = table.indexes.get(index_name)
    check(index is not None, f"couldn't find index named '{index_name}'.")
    check(
        len(index.values) == len(values),
        f"'{index_name}' has an invalid length of {len(index.values)}",
    )
    actual = [e.value for e in index.values]
    check(actual == values, f"'{index_name}' out of order: {json.dumps(actual)}")


async def run_self_test(store: TableStore) -> None:
    """Run every check; raises SelfTestError on the first failure."""
    await store.delete_table(TEST_TABLE)
    try:
        await _check_basic_table(store)
        await store.delete_table(TEST_TABLE)
        await _check_indexed_table(store)
    finally:
        await store.delete_table(TEST_TABLE)
    logger.info("Table store self-test passed")


async def _check_basic_table(store: TableStore) -> None:
    await store.define_table(TEST_TABLE)
    table = await store.open_table(TEST_TABLE)

    # Read & write items with a known id
    check(await store.get_item(table, "foo") is None, "shouldn't have found missing item")
    item: dict[str, Any] = {"id": "foo", "value": "bar"}
    await store.set_item(table, item)
    check(item["id"] == "foo", "item id overwritten.")
    check(await store.get_item(table, "foo") == item, "couldn't find saved item by id")

    await store.remove_item(table, "foo")
    check(await store.get_item(table, "foo") is None, "failed to delete item")

    # Auto increment ids
    for i in range(1, 10):
        item.pop("id", None)
        await store.set_item(table, item)
        check(item["id"] == str(i), f"unexpected id of {item['id']} assigned.")


async def _check_indexed_table(store: TableStore) -> None:
    await store.define_table(TEST_TABLE, {
        "name": {"ascending": True},
        "age": {"ascending": True, "numerical": True},
        "reports": {"ascending": False, "numerical": True},
        "role": {"ascending": False},
    })
    table = await store.open_table(TEST_TABLE)
    check("name" in table.indexes, "indexes weren't initialized for table.")

    for person in PEOPLE:
        await store.set_item(table, dict(person))

    check_index_order(table, "name", ["annabelle", "donna", "steve"])
    check_index_order(table, "age", [4, 48, 51])
    check_index_order(table, "reports", [2, 1, 0])
    check_index_order(table, "role", ["wife", "daughter", "dad"])

    results = await store.list_items(table, "name")
    check(results.continuation is None, "unexpected continuation token returned by list_items().")
    check(len(results.items) == 3, f"only '{len(results.items)}' were returned from list_items().")
    check(results.items[0]["name"] == "annabelle", "wrong index used by list_items().")

    # Pagination
    results = await store.list_items(table, "name", 2)
    check(len(results.items) == 2, f"'{len(results.items)}' items returned for first page.")
    check(results.continuation, "continuation token missing for pagination test.")
    results = await store.list_items(table, "name", 2, results.continuation)
    check(len(results.items) == 1, f"'{len(results.items)}' items returned for second page.")
    check(results.continuation is None, "continuation token returned for second page.")
    check(
        results.items[0]["name"] == "steve",
        f"'{results.items[0]['name']}' was returned as 1st item of second page.",
    )
