"""Data models and type definitions."""

import json
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from seedplan.exceptions import SchemaError, TableNotFoundError

logger = logging.getLogger(__name__)

INTEGER_TYPES = frozenset(
    {
        "integer",
        "int",
        "int2",
        "int4",
        "int8",
        "smallint",
        "bigint",
        "serial",
        "smallserial",
        "bigserial",
    }
)


@dataclass
class ColumnInfo:
    """
    Scalar column metadata.

    Attributes:
        name: Column name
        data_type: PostgreSQL data type
        is_nullable: Whether column allows NULL values
        is_primary_key: Whether column is part of the primary key
        has_default: Whether the database supplies a default value
        is_identity: Whether values come from a sequence (IDENTITY/serial)
    """

    name: str
    data_type: str
    is_nullable: bool = False
    is_primary_key: bool = False
    has_default: bool = False
    is_identity: bool = False

    @property
    def is_sequence(self) -> bool:
        """Whether generated values are sequential integers rather than random."""
        if self.is_identity:
            return True
        return self.is_primary_key and self.has_default and self.data_type in INTEGER_TYPES


@dataclass
class ParentRelationship:
    """
    Foreign key relationship from the owning table to a parent table.

    Attributes:
        name: Relationship name (unique within the owning table)
        target: Parent table name
        columns: Foreign key columns in the owning table
        referenced_columns: Columns in the parent table (usually the PK)
        is_nullable: Whether the relationship may be left unset
    """

    name: str
    target: str
    columns: list[str]
    referenced_columns: list[str]
    is_nullable: bool = False

    def key_from(self, row: Any) -> dict[str, Any]:
        """Foreign key values pointing at `row` (a SeedRow or mapping)."""
        return {col: row[ref] for col, ref in zip(self.columns, self.referenced_columns)}


@dataclass
class ChildRelationship:
    """
    Reverse view of a parent relationship, seen from the parent table.

    Attributes:
        name: Relationship name (unique within the owning table)
        target: Child table name
        inverse: Name of the parent relationship on the child table
    """

    name: str
    target: str
    inverse: str


@dataclass
class TableInfo:
    """
    Table metadata with named parent and child relationships.

    Attributes:
        name: Table name
        columns: Ordered column metadata
        parents: Ordered parent relationships (foreign keys of this table)
        children: Ordered child relationships (foreign keys pointing here)
        schema: Optional database schema used to qualify the table name
    """

    name: str
    columns: list[ColumnInfo]
    parents: list[ParentRelationship] = field(default_factory=list)
    children: list[ChildRelationship] = field(default_factory=list)
    schema: str | None = None

    @property
    def qualified_name(self) -> tuple[str, ...]:
        """Name parts for SQL identifiers."""
        if self.schema:
            return (self.schema, self.name)
        return (self.name,)

    @property
    def column_names(self) -> list[str]:
        return [col.name for col in self.columns]

    @property
    def pk_columns(self) -> list[str]:
        """Primary key column names in declaration order."""
        return [col.name for col in self.columns if col.is_primary_key]

    @property
    def fk_columns(self) -> set[str]:
        """Columns owned by parent relationships (never generated directly)."""
        return {col for rel in self.parents for col in rel.columns}

    @property
    def scalar_columns(self) -> list[ColumnInfo]:
        """Columns that are filled independently of relationships."""
        fk_columns = self.fk_columns
        return [col for col in self.columns if col.name not in fk_columns]

    def get_column(self, name: str) -> ColumnInfo | None:
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def get_parent(self, name: str) -> ParentRelationship | None:
        for rel in self.parents:
            if rel.name == name:
                return rel
        return None

    def get_child(self, name: str) -> ChildRelationship | None:
        for rel in self.children:
            if rel.name == name:
                return rel
        return None

    def get_self_referencing_parents(self) -> list[ParentRelationship]:
        """Parent relationships whose target is this table."""
        return [rel for rel in self.parents if rel.target == self.name]


@dataclass(eq=False)
class SeedRow:
    """
    A single row of seed data with attribute access.

    Allows accessing column values as attributes or items:
        row.email        # Access column value
        row["email"]     # Same value

    Rows compare by identity: two rows holding equal values are still
    distinct rows of the store.

    Attributes:
        _data: Raw column data dict
    """

    _data: dict[str, Any]

    def __getattr__(self, name: str) -> Any:
        """
        Allow attribute access to column values.

        Raises:
            AttributeError: If column doesn't exist
        """
        if name.startswith("_"):
            raise AttributeError(f"No attribute '{name}'")
        if name in self._data:
            return self._data[name]
        raise AttributeError(f"No column '{name}' in seed data")

    def __getitem__(self, name: str) -> Any:
        return self._data[name]

    def __contains__(self, name: object) -> bool:
        return name in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def get(self, name: str, default: Any = None) -> Any:
        return self._data.get(name, default)

    def keys(self):
        return self._data.keys()

    def items(self):
        return self._data.items()

    def to_dict(self) -> dict[str, Any]:
        """Copy of the row data."""
        return dict(self._data)

    def __repr__(self) -> str:
        return f"SeedRow({self._data!r})"


class Schema:
    """
    Read-only relational schema: tables, columns and named relationships.

    Example:
        >>> schema = Schema.from_yaml("schema.yaml")
        >>> schema.get_table("users").pk_columns
        ['id']
    """

    def __init__(self, tables: list[TableInfo]):
        """
        Initialize and validate a schema.

        Raises:
            SchemaError: If relationship metadata is inconsistent
        """
        self._tables: dict[str, TableInfo] = {}
        for table in tables:
            if table.name in self._tables:
                raise SchemaError(f"Table '{table.name}' is declared twice", table.name)
            self._tables[table.name] = table
        self.validate()

    def __contains__(self, name: object) -> bool:
        return name in self._tables

    def __iter__(self) -> Iterator[TableInfo]:
        return iter(self._tables.values())

    @property
    def table_names(self) -> list[str]:
        return list(self._tables)

    def get_table(self, name: str) -> TableInfo:
        """
        Look up a table by name.

        Raises:
            TableNotFoundError: If the table is not part of the schema
        """
        try:
            return self._tables[name]
        except KeyError:
            raise TableNotFoundError(name, self.table_names) from None

    def validate(self) -> None:
        """
        Check that every relationship is well-formed and symmetric.

        Raises:
            SchemaError: On the first inconsistency found
        """
        for table in self._tables.values():
            self._validate_names(table)
            for rel in table.parents:
                self._validate_parent(table, rel)
            for rel in table.children:
                self._validate_child(table, rel)

    def _validate_names(self, table: TableInfo) -> None:
        columns: set[str] = set()
        for col in table.columns:
            if col.name in columns:
                raise SchemaError(
                    f"Column '{col.name}' is declared twice in table '{table.name}'", table.name
                )
            columns.add(col.name)

        seen: set[str] = set()
        for rel in [*table.parents, *table.children]:
            if rel.name in seen:
                raise SchemaError(
                    f"Relationship name '{rel.name}' is used twice in table "
                    f"'{table.name}' (relationships to the same table need "
                    f"distinct names)",
                    table.name,
                )
            if rel.name in columns:
                raise SchemaError(
                    f"Relationship '{rel.name}' of table '{table.name}' clashes "
                    f"with a column of the same name",
                    table.name,
                )
            seen.add(rel.name)

    def _validate_parent(self, table: TableInfo, rel: ParentRelationship) -> None:
        target = self._tables.get(rel.target)
        if target is None:
            raise SchemaError(
                f"Relationship '{table.name}.{rel.name}' targets unknown table '{rel.target}'",
                table.name,
            )
        if not rel.columns or len(rel.columns) != len(rel.referenced_columns):
            raise SchemaError(
                f"Relationship '{table.name}.{rel.name}' needs matching foreign key "
                f"and referenced columns (got {rel.columns} -> {rel.referenced_columns})",
                table.name,
            )
        for col in rel.columns:
            if table.get_column(col) is None:
                raise SchemaError(
                    f"Relationship '{table.name}.{rel.name}' uses unknown column '{col}'",
                    table.name,
                )
        for col in rel.referenced_columns:
            if target.get_column(col) is None:
                raise SchemaError(
                    f"Relationship '{table.name}.{rel.name}' references unknown "
                    f"column '{rel.target}.{col}'",
                    table.name,
                )
        matches = [
            child
            for child in target.children
            if child.target == table.name and child.inverse == rel.name
        ]
        if len(matches) != 1:
            raise SchemaError(
                f"Parent relationship '{table.name}.{rel.name}' needs exactly one "
                f"child relationship on '{rel.target}' (found {len(matches)})",
                table.name,
            )

    def _validate_child(self, table: TableInfo, rel: ChildRelationship) -> None:
        target = self._tables.get(rel.target)
        if target is None:
            raise SchemaError(
                f"Relationship '{table.name}.{rel.name}' targets unknown table '{rel.target}'",
                table.name,
            )
        inverse = target.get_parent(rel.inverse)
        if inverse is None or inverse.target != table.name:
            raise SchemaError(
                f"Child relationship '{table.name}.{rel.name}' has no matching parent "
                f"relationship '{rel.inverse}' on '{rel.target}'",
                table.name,
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Schema":
        """
        Build a schema from a plain mapping.

        Format:
            tables:
              users:
                columns:
                  - {name: id, type: uuid, primary_key: true}
                  - {name: email, type: text}
              workspace:
                columns: [...]
                parents:
                  - {name: users, target: users, columns: [owner_id]}

        Parent relationship names default to the target table name; the
        matching child relationship is derived on the target (named after
        the owning table, or `child_name`) unless the target lists its
        `children` explicitly.

        Raises:
            SchemaError: If the description is malformed or inconsistent
        """
        tables_data = data.get("tables", data)
        if not isinstance(tables_data, Mapping):
            raise SchemaError("Schema must map table names to table descriptions")

        tables: dict[str, TableInfo] = {}
        for name, table_data in tables_data.items():
            columns = [_column_from_dict(name, col) for col in table_data.get("columns", [])]
            tables[name] = TableInfo(name=name, columns=columns, schema=table_data.get("schema"))

        explicit_children = {
            name for name, table_data in tables_data.items() if "children" in table_data
        }
        for name, table_data in tables_data.items():
            table = tables[name]
            for rel_data in table_data.get("parents", []):
                rel = _parent_from_dict(table, rel_data, tables)
                table.parents.append(rel)
                if rel.target in tables and rel.target not in explicit_children:
                    tables[rel.target].children.append(
                        ChildRelationship(
                            name=rel_data.get("child_name", name),
                            target=name,
                            inverse=rel.name,
                        )
                    )
            for rel_data in table_data.get("children", []):
                table.children.append(
                    ChildRelationship(
                        name=rel_data["name"],
                        target=rel_data["target"],
                        inverse=rel_data["inverse"],
                    )
                )

        logger.debug(f"Loaded schema with {len(tables)} tables")
        return cls(list(tables.values()))

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Schema":
        """Load a schema description from a YAML file."""
        import yaml

        with open(Path(path)) as f:
            return cls.from_dict(yaml.safe_load(f) or {})

    @classmethod
    def from_json(cls, path: str | Path) -> "Schema":
        """Load a schema description from a JSON file."""
        with open(Path(path)) as f:
            return cls.from_dict(json.load(f))

    @classmethod
    def from_file(cls, path: str | Path) -> "Schema":
        """Load a schema description, picking the format from the file suffix."""
        if Path(path).suffix == ".json":
            return cls.from_json(path)
        return cls.from_yaml(path)


def _column_from_dict(table: str, data: Mapping[str, Any]) -> ColumnInfo:
    try:
        return ColumnInfo(
            name=data["name"],
            data_type=str(data.get("type", "text")).lower(),
            is_nullable=bool(data.get("nullable", False)),
            is_primary_key=bool(data.get("primary_key", False)),
            has_default=bool(data.get("default", False)),
            is_identity=bool(data.get("identity", False)),
        )
    except KeyError:
        raise SchemaError(f"Column without a name in table '{table}'", table) from None


def _parent_from_dict(
    table: TableInfo, data: Mapping[str, Any], tables: dict[str, TableInfo]
) -> ParentRelationship:
    target_name = data.get("target") or data.get("table")
    if not target_name:
        raise SchemaError(f"Parent relationship without a target in table '{table.name}'", table.name)

    if "column" in data:
        columns = [data["column"]]
    else:
        columns = list(data.get("columns", []))

    references = data.get("references")
    if isinstance(references, str):
        references = [references]
    if not references:
        target = tables.get(target_name)
        references = target.pk_columns if target else []

    nullable = data.get("nullable")
    if nullable is None:
        cols = [table.get_column(name) for name in columns]
        nullable = bool(cols) and all(col is not None and col.is_nullable for col in cols)

    return ParentRelationship(
        name=data.get("name", target_name),
        target=target_name,
        columns=columns,
        referenced_columns=list(references),
        is_nullable=bool(nullable),
    )
