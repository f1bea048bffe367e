"""Accumulating per-table row store."""

import csv
import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, NamedTuple

from seedplan.exceptions import DuplicateRowError, RowNotFoundError, StoreError
from seedplan.models import SeedRow, Schema

logger = logging.getLogger(__name__)


class RowRef(NamedTuple):
    """Position of a row in the store."""

    table: str
    index: int


class Store:
    """
    Container for generated and pre-existing rows with attribute access.

    Allows accessing tables as attributes:
        store.users      # List of SeedRow objects
        store["users"]   # Same list

    Tables iterate in first-seen order and rows in append order. A row
    object appears at most once per table; equal values in distinct row
    objects are allowed.
    """

    def __init__(self, schema: Schema | None = None):
        self.schema = schema
        self._tables: dict[str, list[SeedRow]] = {}
        self._identities: dict[str, set[int]] = {}
        self._external: set[int] = set()
        self._sequences: dict[tuple[str, str], int] = {}

    def append(self, table: str, row: SeedRow | Mapping[str, Any], external: bool = False) -> RowRef:
        """
        Append a row to a table.

        Args:
            table: Table name
            row: SeedRow, or a mapping that gets wrapped in a new SeedRow
            external: Row already exists in the database (never emitted)

        Returns:
            Reference to the appended row

        Raises:
            DuplicateRowError: If this row object is already stored in `table`
        """
        if not isinstance(row, SeedRow):
            row = SeedRow(_data=dict(row))
        identities = self._identities.setdefault(table, set())
        if id(row) in identities:
            raise DuplicateRowError(table)
        rows = self._tables.setdefault(table, [])
        rows.append(row)
        identities.add(id(row))
        if external:
            self._external.add(id(row))
        return RowRef(table, len(rows) - 1)

    def rows(self, table: str) -> list[SeedRow]:
        """Rows of a table in append order (a copy; empty for unknown tables)."""
        return list(self._tables.get(table, []))

    def row_at(self, table: str, index: int) -> SeedRow:
        """
        Look up one row by position.

        Raises:
            RowNotFoundError: If the index is out of range
        """
        rows = self._tables.get(table, [])
        if index < 0 or index >= len(rows):
            raise RowNotFoundError(table, index, len(rows))
        return rows[index]

    def resolve(self, ref: RowRef) -> SeedRow:
        return self.row_at(ref.table, ref.index)

    def find(self, table: str, fields: Mapping[str, Any]) -> SeedRow | None:
        """First row of `table` whose values equal every item of `fields`."""
        for row in self._tables.get(table, []):
            if all(name in row and row[name] == value for name, value in fields.items()):
                return row
        return None

    def tables(self) -> list[str]:
        """Table names in first-seen order."""
        return list(self._tables)

    def holds(self, table: str, row: SeedRow) -> bool:
        """Whether this exact row object is stored in `table`."""
        return id(row) in self._identities.get(table, set())

    def is_external(self, row: SeedRow) -> bool:
        return id(row) in self._external

    def __len__(self) -> int:
        return sum(len(rows) for rows in self._tables.values())

    def lengths(self) -> dict[str, int]:
        """Snapshot of per-table row counts (see `since`)."""
        return {table: len(rows) for table, rows in self._tables.items()}

    def since(self, marks: Mapping[str, int]) -> "Store":
        """New store holding only the rows appended after the `lengths()` snapshot."""
        result = Store(self.schema)
        for table, rows in self._tables.items():
            for row in rows[marks.get(table, 0):]:
                result.append(table, row, external=self.is_external(row))
        return result

    def copy(self) -> "Store":
        """Shallow copy: row objects and external flags are shared."""
        result = Store(self.schema)
        for table, rows in self._tables.items():
            result._tables[table] = list(rows)
            result._identities[table] = set(self._identities[table])
        result._external = set(self._external)
        result._sequences = dict(self._sequences)
        return result

    def merge(self, other: "Store") -> "Store":
        """
        Concatenate two stores into a new one.

        Tables keep first-seen order across both inputs and rows keep
        their relative order. Nothing is deduplicated: a row object
        present in both inputs is stored again as a value copy.
        """
        result = self.copy()
        if result.schema is None:
            result.schema = other.schema
        result.extend(other)
        return result

    def extend(self, other: "Store") -> None:
        """Append every row of `other` in place (same rules as `merge`)."""
        for table, rows in other._tables.items():
            for row in rows:
                external = other.is_external(row)
                if id(row) in self._identities.get(table, set()):
                    row = SeedRow(_data=row.to_dict())
                self.append(table, row, external=external)
        self._sequences = {}

    def next_sequence(self, table: str, column: str) -> int:
        """
        Next integer for a sequence column.

        The counter starts above the largest integer already stored in the
        column (1 for an empty table) and increments on every call.
        """
        key = (table, column)
        if key not in self._sequences:
            existing = [
                row[column]
                for row in self._tables.get(table, [])
                if isinstance(row.get(column), int) and not isinstance(row.get(column), bool)
            ]
            self._sequences[key] = max(existing, default=0)
        self._sequences[key] += 1
        return self._sequences[key]

    def __getattr__(self, name: str) -> list[SeedRow]:
        """
        Allow attribute access to tables.

        Raises:
            AttributeError: If the table is unknown to both the store and its schema
        """
        if name.startswith("_"):
            raise AttributeError(f"No attribute '{name}'")
        if name in self.__dict__.get("_tables", {}):
            return self.rows(name)
        schema = self.__dict__.get("schema")
        if schema is not None and name in schema:
            return []
        raise AttributeError(f"No table '{name}' in store")

    def __getitem__(self, table: str) -> list[SeedRow]:
        return self.rows(table)

    def __contains__(self, table: object) -> bool:
        return table in self._tables

    def __repr__(self) -> str:
        counts = ", ".join(f"{table}={len(rows)}" for table, rows in self._tables.items())
        return f"Store({counts})"

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        """Plain data: table name to list of row dicts."""
        return {table: [row.to_dict() for row in rows] for table, rows in self._tables.items()}

    def to_json(self, path: str | Path | None = None) -> str:
        """
        Export the store as JSON (UUIDs and datetimes rendered as strings).

        Args:
            path: Optional file to write

        Returns:
            The JSON document
        """
        data = json.dumps(self.to_dict(), indent=2, default=str)
        if path is not None:
            Path(path).write_text(data)
            logger.info(f"Exported {len(self)} rows to {path}")
        return data

    def to_csv(self, table: str, path: str | Path) -> None:
        """Export one table to a CSV file."""
        rows = self._tables.get(table, [])
        if not rows:
            raise StoreError(f"No rows in table '{table}' to export")
        fieldnames = list(rows[0].keys())
        with open(Path(path), "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
            writer.writeheader()
            for row in rows:
                writer.writerow(row.to_dict())
        logger.info(f"Exported {len(rows)} rows of {table} to {path}")

    def to_sql(self) -> list[str]:
        """Ordered INSERT statements for every non-external row."""
        if self.schema is None:
            raise StoreError("Store has no schema; create it through SeedClient.create_store()")
        from seedplan.emitter import SQLEmitter

        return SQLEmitter(self.schema).emit(self)

    @classmethod
    def from_data(
        cls,
        schema: Schema | None,
        data: Mapping[str, Iterable[Mapping[str, Any]]] | None,
        external: bool = False,
    ) -> "Store":
        """
        Prime a store with existing rows.

        Args:
            schema: Schema the rows belong to (tables are checked when given)
            data: Table name to list of row mappings
            external: Mark rows as already present in the database
        """
        store = cls(schema)
        for table, rows in (data or {}).items():
            if schema is not None:
                schema.get_table(table)
            for row in rows:
                store.append(table, row, external=external)
        logger.debug(f"Primed store with {len(store)} rows (external={external})")
        return store


def load_store_data(path: str | Path) -> dict[str, list[dict[str, Any]]]:
    """
    Load initial store data from YAML or JSON.

    Format:
        users:
          - {id: 1, email: alice@example.com}
    """
    path = Path(path)
    with open(path) as f:
        if path.suffix == ".json":
            data = json.load(f)
        else:
            import yaml

            data = yaml.safe_load(f)
    if not isinstance(data, Mapping):
        raise StoreError(f"Store data in {path} must map table names to row lists")
    return {table: list(rows or []) for table, rows in data.items()}
