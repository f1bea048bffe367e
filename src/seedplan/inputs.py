"""Request nodes built from user generation inputs."""

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Union

from seedplan.exceptions import SpecificationError, UnknownFieldError
from seedplan.models import SeedRow, Schema, TableInfo
from seedplan.seed import SeedGenerator

logger = logging.getLogger(__name__)


# ============================================================================
# Tagged field values
# ============================================================================


@dataclass(frozen=True)
class Static:
    """Field value given as-is."""

    value: Any


@dataclass(frozen=True)
class Computed:
    """Field value computed by a callback at resolution time."""

    fn: Callable[[Any], Any]


FieldValue = Union[Static, Computed]


def tag(value: Any) -> FieldValue:
    """Wrap a raw input value (callables become Computed)."""
    if isinstance(value, (Static, Computed)):
        return value
    if callable(value):
        return Computed(value)
    return Static(value)


# ============================================================================
# Parent requests
# ============================================================================


@dataclass
class ParentRow:
    """Connect to an existing row."""

    row: SeedRow


@dataclass
class ParentCallback:
    """Connect to whatever the callback returns."""

    fn: Callable[[Any], Any]


@dataclass
class ParentCreate:
    """Create a new parent row from nested inputs."""

    node: "RequestNode"


@dataclass
class ParentNull:
    """Leave a nullable relationship unset."""


ParentRequest = Union[ParentRow, ParentCallback, ParentCreate, ParentNull]


# ============================================================================
# Request nodes
# ============================================================================


@dataclass
class RowRequest:
    """
    Inputs for one requested row.

    Attributes:
        index: Position of the row within its node
        path: Seed path of the row
        scalars: Scalar column inputs
        fks: Foreign key column inputs grouped by relationship name
        parents: Relationship-level parent requests
        children: Nested child requests by child relationship name
    """

    index: int
    path: str
    scalars: dict[str, FieldValue] = field(default_factory=dict)
    fks: dict[str, dict[str, FieldValue]] = field(default_factory=dict)
    parents: dict[str, ParentRequest] = field(default_factory=dict)
    children: dict[str, "RequestNode"] = field(default_factory=dict)


@dataclass
class RequestNode:
    """All requested rows of one table at one position of the request tree."""

    table: str
    path: str
    rows: list[RowRequest] = field(default_factory=list)


class RepeatHelper:
    """
    The `x` helper handed to callable inputs.

    Example:
        >>> client.users(lambda x: x(3, lambda i: {"name": f"user {i}"}))
        >>> client.users(lambda x: [{"name": "admin"}, *x({"min": 1, "max": 5})])
    """

    def __init__(self, seeds: SeedGenerator, path: str):
        self._seeds = seeds
        self._path = path
        self._calls = 0

    def __call__(
        self, count: Any, callback: Callable[[int], Mapping[str, Any]] | None = None
    ) -> list[Mapping[str, Any]]:
        stream = self._seeds.derive(self._path, f"count:{self._calls}")
        self._calls += 1
        n = self._seeds.random_count(stream, count)
        return [callback(i) if callback else {} for i in range(n)]


class RequestBuilder:
    """
    Expand user inputs into a validated request tree.

    Every key of every row mapping is checked against the schema while the
    tree is built, so bad inputs fail before any row is generated.
    """

    def __init__(self, schema: Schema, seeds: SeedGenerator, expand_callables: bool = True):
        """
        Initialize builder.

        Args:
            schema: Schema model
            seeds: Seed generator drawing `x` counts
            expand_callables: Call callable inputs (False only validates static mappings)
        """
        self.schema = schema
        self.seeds = seeds
        self.expand_callables = expand_callables

    def build(
        self,
        table: str,
        inputs: Any,
        prefix: str,
        name: str | None = None,
        omit: frozenset[str] = frozenset(),
    ) -> RequestNode:
        """
        Build the request node for `inputs` of `table`.

        Args:
            table: Target table
            inputs: List of row mappings, or a callable receiving `x`
            prefix: Seed path of the enclosing row (or the plan path)
            name: Path segment (default: table name)
            omit: Keys set by the enclosing request that the rows may not name

        Raises:
            TableNotFoundError: If the table is unknown
            SpecificationError: If the inputs are malformed
        """
        info = self.schema.get_table(table)
        path = f"{prefix}/{name or table}"
        node = RequestNode(table=table, path=path)
        for index, row_input in enumerate(self._expand(inputs, path)):
            node.rows.append(self._build_row(info, row_input, f"{path}/{index}", index, omit))
        return node

    def _expand(self, inputs: Any, path: str) -> list[Mapping[str, Any]]:
        if callable(inputs):
            if not self.expand_callables:
                return []
            inputs = inputs(RepeatHelper(self.seeds, path))
        if isinstance(inputs, Mapping) or not isinstance(inputs, Sequence) or isinstance(inputs, str):
            raise SpecificationError(
                f"Inputs must be a list of row mappings or a callable using x(), "
                f"got {type(inputs).__name__}",
                path=path,
            )
        return list(inputs)

    def _build_row(
        self,
        table: TableInfo,
        row_input: Any,
        path: str,
        index: int,
        omit: frozenset[str],
    ) -> RowRequest:
        if not isinstance(row_input, Mapping):
            raise SpecificationError(
                f"Row input for table '{table.name}' must be a mapping, "
                f"got {type(row_input).__name__}",
                path=path,
            )

        request = RowRequest(index=index, path=path)
        fk_columns = table.fk_columns
        for key, value in row_input.items():
            if key in omit:
                raise UnknownFieldError(
                    table.name,
                    key,
                    path,
                    reason=f"'{key}' is set by the enclosing request and cannot be overridden",
                )
            if key in fk_columns:
                rel = next(rel for rel in table.parents if key in rel.columns)
                request.fks.setdefault(rel.name, {})[key] = tag(value)
            elif table.get_column(key) is not None:
                request.scalars[key] = tag(value)
            elif table.get_parent(key) is not None:
                request.parents[key] = self._parent_request(table, key, value, path)
            elif table.get_child(key) is not None:
                child = table.get_child(key)
                inverse = self.schema.get_table(child.target).get_parent(child.inverse)
                request.children[key] = self.build(
                    child.target,
                    value,
                    prefix=path,
                    name=key,
                    omit=frozenset({inverse.name, *inverse.columns}),
                )
            else:
                raise UnknownFieldError(table.name, key, path)

        for rel_name, columns in request.fks.items():
            rel = table.get_parent(rel_name)
            if rel_name in request.parents:
                raise SpecificationError(
                    f"Relationship '{table.name}.{rel_name}' is given both as a "
                    f"relationship and through its foreign key columns {rel.columns}",
                    path=path,
                )
            missing = [col for col in rel.columns if col not in columns]
            if missing:
                raise SpecificationError(
                    f"Foreign key of relationship '{table.name}.{rel_name}' is only "
                    f"partially given (missing {missing})",
                    path=path,
                )
        return request

    def _parent_request(self, table: TableInfo, key: str, value: Any, path: str) -> ParentRequest:
        rel = table.get_parent(key)
        if isinstance(value, SeedRow):
            return ParentRow(value)
        if value is None:
            if not rel.is_nullable:
                raise SpecificationError(
                    f"Relationship '{table.name}.{key}' is required and cannot be null",
                    path=path,
                )
            return ParentNull()
        if callable(value):
            return ParentCallback(value)
        if isinstance(value, Mapping):
            return ParentCreate(self.build_parent(table, rel.name, value, path))
        raise SpecificationError(
            f"Relationship '{table.name}.{key}' accepts a row, a mapping, a callable "
            f"or None, got {type(value).__name__}",
            path=path,
        )

    def build_parent(
        self, table: TableInfo, rel_name: str, value: Mapping[str, Any], path: str
    ) -> RequestNode:
        """Single-row node for a new parent row reached through `rel_name`."""
        rel = table.get_parent(rel_name)
        target = self.schema.get_table(rel.target)
        through = {
            child.name
            for child in target.children
            if child.target == table.name and child.inverse == rel.name
        }
        return self.build(rel.target, [value], prefix=path, name=rel.name, omit=frozenset(through))


# ============================================================================
# User model overrides
# ============================================================================


@dataclass
class ModelOverride:
    """
    Per-table override configuration.

    Attributes:
        connect: Called with a StoreContext when auto-connect needs a row of this table
        data: Default scalar values (static or callables) applied before row inputs
    """

    connect: Callable[[Any], Any] | None = None
    data: dict[str, Any] = field(default_factory=dict)


def normalize_models(
    schema: Schema, models: Mapping[str, Any] | None
) -> dict[str, ModelOverride]:
    """
    Validate and normalize a `{table: {"connect": fn, "data": {...}}}` mapping.

    Raises:
        SpecificationError: If a table, key or data column is unknown
    """
    result: dict[str, ModelOverride] = {}
    for table_name, model in (models or {}).items():
        table = schema.get_table(table_name)
        if isinstance(model, ModelOverride):
            override = ModelOverride(connect=model.connect, data=dict(model.data))
        elif isinstance(model, Mapping):
            unknown = set(model) - {"connect", "data"}
            if unknown:
                raise SpecificationError(
                    f"Model override for '{table_name}' has unknown keys {sorted(unknown)} "
                    f"(expected 'connect' and/or 'data')"
                )
            override = ModelOverride(connect=model.get("connect"), data=dict(model.get("data") or {}))
        else:
            raise SpecificationError(
                f"Model override for '{table_name}' must be a mapping, "
                f"got {type(model).__name__}"
            )

        if override.connect is not None and not callable(override.connect):
            raise SpecificationError(f"Model override 'connect' for '{table_name}' must be callable")
        for column in override.data:
            if column in table.fk_columns:
                raise UnknownFieldError(
                    table_name,
                    column,
                    reason=f"'{column}' is a foreign key column; use 'connect' instead",
                )
            if table.get_column(column) is None:
                raise UnknownFieldError(table_name, column)
        result[table_name] = override
    return result


def merge_models(
    base: Mapping[str, ModelOverride], override: Mapping[str, ModelOverride]
) -> dict[str, ModelOverride]:
    """Combine two normalized model maps; `override` wins per table and per data column."""
    result = dict(base)
    for table, model in override.items():
        current = result.get(table)
        if current is None:
            result[table] = model
            continue
        result[table] = ModelOverride(
            connect=model.connect or current.connect,
            data={**current.data, **model.data},
        )
    return result
