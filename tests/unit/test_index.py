"""Unit tests for index maintenance."""

import pytest

from virality.components.index import (
    is_number,
    project_value,
    remove_from_indexes,
    update_index,
    update_indexes,
)
from virality.core.types import IndexDef, TableDef


@pytest.fixture
def table():
    """Table with one index of each sort policy."""
    return TableDef(
        name="people",
        indexes={
            "name": IndexDef(ascending=True),
            "age": IndexDef(ascending=True, numerical=True),
            "reports": IndexDef(ascending=False, numerical=True),
            "role": IndexDef(ascending=False),
        },
    )


def values(table, name):
    return [e.value for e in table.indexes[name].values]


def ids(table, name):
    return [e.id for e in table.indexes[name].values]


def test_is_number_excludes_bools():
    """Test that bools don't count as numbers."""
    assert is_number(3)
    assert is_number(2.5)
    assert not is_number(True)
    assert not is_number("3")
    assert not is_number(None)


def test_project_value_by_index_name():
    """Test projection reads the field named like the index."""
    index = IndexDef()
    item = {"id": "1", "name": "steve", "field": "wrong"}
    assert project_value(index, "name", item) == "steve"


def test_project_value_numerical_coercion():
    """Test numerical indexes coerce non-numbers to 0."""
    index = IndexDef(numerical=True)
    assert project_value(index, "age", {"age": "old"}) == 0
    assert project_value(index, "age", {}) == 0
    assert project_value(index, "age", {"age": True}) == 0
    assert project_value(index, "age", {"age": 7.5}) == 7.5


def test_update_index_appends_new_entry():
    """Test that a new item is appended and the index reports a change."""
    index = IndexDef(ascending=True)
    assert update_index(index, "name", {"id": "1", "name": "b"})
    assert update_index(index, "name", {"id": "2", "name": "a"})
    assert [e.id for e in index.values] == ["2", "1"]


def test_update_index_unchanged_value_is_noop():
    """Test that rewriting the same value reports no change."""
    index = IndexDef(ascending=True)
    update_index(index, "name", {"id": "1", "name": "a"})
    assert not update_index(index, "name", {"id": "1", "name": "a"})
    assert len(index.values) == 1


def test_update_index_moves_changed_value():
    """Test that changing a value updates in place and re-sorts."""
    index = IndexDef(ascending=True, numerical=True)
    update_index(index, "age", {"id": "1", "age": 10})
    update_index(index, "age", {"id": "2", "age": 20})
    assert update_index(index, "age", {"id": "1", "age": 30})
    assert [(e.id, e.value) for e in index.values] == [("2", 20), ("1", 30)]


def test_update_indexes_sort_policies(table):
    """Test each (numerical, ascending) comparator."""
    update_indexes(table, {"id": "1", "name": "steve", "age": 51, "reports": 2, "role": "dad"})
    update_indexes(table, {"id": "2", "name": "annabelle", "age": 4, "reports": 0, "role": "daughter"})
    update_indexes(table, {"id": "3", "name": "donna", "age": 48, "reports": 1, "role": "wife"})

    assert values(table, "name") == ["annabelle", "donna", "steve"]
    assert values(table, "age") == [4, 48, 51]
    assert values(table, "reports") == [2, 1, 0]
    assert values(table, "role") == ["wife", "daughter", "dad"]


def test_numeric_sort_is_not_lexicographic(table):
    """Test numerical indexes compare as numbers."""
    for i, age in enumerate([9, 100, 25]):
        update_indexes(table, {"id": str(i), "age": age})
    assert values(table, "age") == [9, 25, 100]


def test_equal_values_keep_insertion_order(table):
    """Test ties keep their relative order (stable sort)."""
    for i in range(1, 4):
        update_indexes(table, {"id": str(i), "reports": 5})
    assert ids(table, "reports") == ["1", "2", "3"]


def test_string_index_handles_missing_field(table):
    """Test a missing string field sorts as an empty string."""
    update_indexes(table, {"id": "1", "name": "bob"})
    update_indexes(table, {"id": "2"})
    assert ids(table, "name") == ["2", "1"]


def test_update_indexes_without_indexes():
    """Test a table without indexes never reports a change."""
    assert not update_indexes(TableDef(name="plain"), {"id": "1", "x": 1})


def test_remove_from_indexes(table):
    """Test removal drops the entry from every index."""
    update_indexes(table, {"id": "1", "name": "a", "age": 1, "reports": 1, "role": "x"})
    update_indexes(table, {"id": "2", "name": "b", "age": 2, "reports": 2, "role": "y"})

    assert remove_from_indexes(table, "1")
    for name in table.indexes:
        assert ids(table, name) == ["2"]

    assert not remove_from_indexes(table, "1")


def test_remove_from_indexes_matches_numeric_id(table):
    """Test ids given as ints match their string entries."""
    update_indexes(table, {"id": "7", "name": "a"})
    assert remove_from_indexes(table, 7)
    assert table.indexes["name"].values == []


def test_is_number_excludes_non_finite():
    """Test NaN and infinities don't count as numbers."""
    assert not is_number(float("nan"))
    assert not is_number(float("inf"))
    assert project_value(IndexDef(numerical=True), "age", {"age": float("-inf")}) == 0


def test_string_order_ignores_case_and_accents():
    """Test mixed-case and accented names sort alphabetically."""
    index = IndexDef(ascending=True)
    for i, name in enumerate(["bob", "Alice", "carol", "Zed", "émile"]):
        update_index(index, "name", {"id": str(i), "name": name})
    assert [e.value for e in index.values] == ["Alice", "bob", "carol", "émile", "Zed"]


def test_string_order_breaks_ties_by_accent_then_case():
    """Test plain letters precede accented ones, lowercase precedes uppercase."""
    index = IndexDef(ascending=True)
    for i, name in enumerate(["Eve", "ève", "eve"]):
        update_index(index, "name", {"id": str(i), "name": name})
    assert [e.value for e in index.values] == ["eve", "Eve", "ève"]
