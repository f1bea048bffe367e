"""Tests for the row store."""

import json

import pytest

from seedplan import (
    DuplicateRowError,
    RowNotFoundError,
    RowRef,
    Schema,
    SeedRow,
    Store,
    StoreError,
    TableNotFoundError,
)
from seedplan.store import load_store_data


def test_append_and_lookup():
    """Test appended rows are addressable by position."""
    store = Store()

    ref = store.append("users", {"id": 1, "email": "a@example.com"})
    store.append("users", {"id": 2, "email": "b@example.com"})

    assert ref == RowRef("users", 0)
    assert store.row_at("users", 1).email == "b@example.com"
    assert store.resolve(ref)["id"] == 1
    assert [row.id for row in store.rows("users")] == [1, 2]


def test_row_at_out_of_range():
    """Test out-of-range lookups raise RowNotFoundError."""
    store = Store()
    store.append("users", {"id": 1})

    with pytest.raises(RowNotFoundError) as exc_info:
        store.row_at("users", 5)

    assert isinstance(exc_info.value, LookupError)
    with pytest.raises(RowNotFoundError):
        store.row_at("workspace", 0)


def test_row_identity():
    """Test the same row object cannot be stored twice, equal values can."""
    store = Store()
    row = SeedRow(_data={"id": 1})
    store.append("users", row)
    store.append("users", {"id": 1})

    with pytest.raises(DuplicateRowError):
        store.append("users", row)

    assert len(store.rows("users")) == 2


def test_rows_returns_copy():
    """Test callers cannot mutate the store through rows()."""
    store = Store()
    store.append("users", {"id": 1})

    store.rows("users").clear()

    assert len(store.rows("users")) == 1


def test_merge_concatenates_in_order():
    """Test merge keeps first-seen table order and relative row order."""
    left = Store()
    left.append("users", {"id": 1})
    left.append("workspace", {"id": 10})
    right = Store()
    right.append("channel", {"id": 100})
    right.append("users", {"id": 2})

    merged = left.merge(right)

    assert merged.tables() == ["users", "workspace", "channel"]
    assert [row.id for row in merged.rows("users")] == [1, 2]
    assert len(left.rows("users")) == 1


def test_merge_never_deduplicates():
    """Test merging a store with itself duplicates its rows."""
    store = Store()
    store.append("users", {"id": 1})

    merged = store.merge(store)

    rows = merged.rows("users")
    assert [row.id for row in rows] == [1, 1]
    assert rows[0] is not rows[1]


def test_copy_and_since():
    """Test since() returns only rows appended after a snapshot."""
    store = Store()
    store.append("users", {"id": 1})
    marks = store.lengths()

    copy = store.copy()
    copy.append("users", {"id": 2})
    copy.append("workspace", {"id": 3})

    added = copy.since(marks)
    assert [row.id for row in added.rows("users")] == [2]
    assert [row.id for row in added.rows("workspace")] == [3]
    assert len(store) == 1


def test_find():
    """Test find returns the first row matching every field."""
    store = Store()
    store.append("users", {"id": 1, "email": "a@example.com"})
    store.append("users", {"id": 2, "email": "b@example.com"})

    assert store.find("users", {"email": "b@example.com"}).id == 2
    assert store.find("users", {"email": "c@example.com"}) is None


def test_next_sequence_starts_above_existing_rows():
    """Test sequence values continue after the largest stored value."""
    store = Store()
    store.append("category", {"id": 7})
    store.append("category", {"id": 3})

    assert store.next_sequence("category", "id") == 8
    assert store.next_sequence("category", "id") == 9
    assert store.next_sequence("tag", "id") == 1


def test_attribute_access(schema: Schema):
    """Test tables are available as attributes and items."""
    store = Store(schema)
    store.append("users", {"id": 1})

    assert store.users[0].id == 1
    assert store["users"][0].id == 1
    assert store.workspace == []
    with pytest.raises(AttributeError):
        store.nope


def test_export_json(tmp_path):
    """Test JSON export renders non-JSON values as strings."""
    from datetime import datetime

    store = Store()
    store.append("users", {"id": 1, "created_at": datetime(2024, 1, 2)})
    path = tmp_path / "store.json"

    store.to_json(path)

    data = json.loads(path.read_text())
    assert data == {"users": [{"id": 1, "created_at": "2024-01-02 00:00:00"}]}


def test_export_csv(tmp_path):
    """Test CSV export of one table."""
    import csv

    store = Store()
    store.append("users", {"id": 1, "email": "a@example.com"})
    path = tmp_path / "users.csv"

    store.to_csv("users", path)

    with path.open() as f:
        rows = list(csv.DictReader(f))
    assert rows == [{"id": "1", "email": "a@example.com"}]

    with pytest.raises(StoreError):
        store.to_csv("workspace", path)


def test_from_data_marks_external(schema: Schema):
    """Test primed rows can be flagged as external."""
    store = Store.from_data(schema, {"users": [{"id": 1}]}, external=True)

    assert store.is_external(store.users[0])
    with pytest.raises(TableNotFoundError):
        Store.from_data(schema, {"nope": [{}]})


def test_to_sql_requires_schema():
    """Test SQL export needs the schema."""
    with pytest.raises(StoreError):
        Store().to_sql()


def test_load_store_data(tmp_path):
    """Test loading initial rows from YAML and JSON."""
    yaml_path = tmp_path / "store.yaml"
    yaml_path.write_text("users:\n  - {id: 1, email: a@example.com}\n")
    json_path = tmp_path / "store.json"
    json_path.write_text(json.dumps({"users": [{"id": 2}]}))

    assert load_store_data(yaml_path) == {"users": [{"id": 1, "email": "a@example.com"}]}
    assert load_store_data(json_path) == {"users": [{"id": 2}]}
