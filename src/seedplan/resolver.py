"""Plan node resolver: expands request nodes into linked rows."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from functools import cached_property
from typing import Any

from seedplan.exceptions import (
    SelfReferenceError,
    SpecificationError,
    UnresolvableRelationshipError,
)
from seedplan.inputs import (
    Computed,
    FieldValue,
    ModelOverride,
    ParentCallback,
    ParentCreate,
    ParentNull,
    ParentRow,
    RequestBuilder,
    RequestNode,
    RowRequest,
    tag,
)
from seedplan.models import ParentRelationship, SeedRow, Schema, TableInfo
from seedplan.seed import SeedGenerator
from seedplan.store import Store

logger = logging.getLogger(__name__)


class GraphEntry:
    """
    One row of the in-flight request tree.

    `relations` maps relationship names to the entries produced through
    them: a list for child relationships, a single entry for parents
    created on the way.
    """

    def __init__(self, table: str, owner: "GraphEntry | None" = None, via: str | None = None):
        self.table = table
        self.owner = owner
        self.via = via
        self.values: dict[str, Any] = {}
        self.relations: dict[str, list[GraphEntry] | GraphEntry] = {}
        self.row: SeedRow | None = None

    def attach(self, name: str, entry: "GraphEntry", many: bool) -> None:
        if many:
            self.relations.setdefault(name, []).append(entry)
        else:
            self.relations[name] = entry

    def to_dict(self) -> dict[str, Any]:
        data = self.row.to_dict() if self.row is not None else dict(self.values)
        for name, related in self.relations.items():
            if isinstance(related, list):
                data[name] = [entry.to_dict() for entry in related]
            else:
                data[name] = related.to_dict()
        return data


@dataclass(frozen=True)
class ColumnValueContext:
    """
    Context passed to scalar value callbacks.

    Attributes:
        model_seed: Seed path of the row
        seed: Seed path of the field
    """

    model_seed: str
    seed: str


@dataclass(frozen=True)
class StoreContext:
    """Context passed to model-level `connect` functions."""

    store: Store
    seed: str


class ConnectContext:
    """
    Context passed to connect callbacks.

    Attributes:
        index: Index of the row within its request node
        seed: Seed path of the relationship
        model_seed: Seed path of the row
        store: Store as generated so far
    """

    def __init__(
        self,
        index: int,
        seed: str,
        model_seed: str,
        store: Store,
        entry: GraphEntry,
        roots: list[GraphEntry],
    ):
        self.index = index
        self.seed = seed
        self.model_seed = model_seed
        self.store = store
        self._entry = entry
        self._roots = roots

    @cached_property
    def graph(self) -> dict[str, list[dict[str, Any]]]:
        """Rows produced so far by the whole request tree, nested by relationship."""
        graph: dict[str, list[dict[str, Any]]] = {}
        for root in self._roots:
            graph.setdefault(root.table, []).append(root.to_dict())
        return graph

    @cached_property
    def branch(self) -> dict[str, dict[str, Any]]:
        """Root-to-current path of the request tree, one entry per relationship."""
        entry = self._entry
        data = entry.to_dict()
        while entry.owner is not None:
            owner_data = entry.owner.to_dict()
            owner_data[entry.via] = data
            data = owner_data
            entry = entry.owner
        return {entry.table: data}


class PlanResolver:
    """
    Resolve request nodes into rows appended to a store.

    Per row: scalars first, then parent relationships in declaration order,
    then the row is appended, then nested children are resolved with their
    foreign key preset to the new row.
    """

    def __init__(
        self,
        schema: Schema,
        store: Store,
        seeds: SeedGenerator,
        builder: RequestBuilder,
        models: Mapping[str, ModelOverride] | None = None,
        auto_connect: bool = False,
        create_parents: bool = True,
        max_depth: int = 32,
    ):
        """
        Initialize resolver.

        Args:
            schema: Schema model
            store: Store receiving the rows (also the pool of connect targets)
            seeds: Seed generator for scalars and connection choices
            builder: Request builder for connect results used as inline data
            models: Normalized per-table overrides
            auto_connect: Connect relationships to existing store rows
            create_parents: Create missing required parents
            max_depth: Maximum nesting depth of parent creation
        """
        self.schema = schema
        self.store = store
        self.seeds = seeds
        self.builder = builder
        self.models = dict(models or {})
        self.auto_connect = auto_connect
        self.create_parents = create_parents
        self.max_depth = max_depth
        self.roots: list[GraphEntry] = []

    def resolve(self, node: RequestNode) -> list[SeedRow]:
        """Resolve every row of a root request node."""
        rows = [self._resolve_row(node.table, request) for request in node.rows]
        logger.debug(f"Resolved {len(rows)} {node.table} rows at {node.path}")
        return rows

    def _resolve_row(
        self,
        table_name: str,
        request: RowRequest,
        preset: Mapping[str, SeedRow] | None = None,
        owner: GraphEntry | None = None,
        via: str | None = None,
        many: bool = True,
        depth: int = 0,
        creating: tuple[str, ...] = (),
    ) -> SeedRow:
        table = self.schema.get_table(table_name)
        entry = GraphEntry(table_name, owner, via)
        if owner is None:
            self.roots.append(entry)
        else:
            owner.attach(via, entry, many)

        self._resolve_scalars(table, request, entry)
        for rel in table.parents:
            self._resolve_parent(table, rel, request, entry, preset or {}, depth, creating)

        row = SeedRow(_data={name: entry.values.get(name) for name in table.column_names})
        self.store.append(table_name, row)
        entry.row = row

        for child_name, child_node in request.children.items():
            child = table.get_child(child_name)
            for child_request in child_node.rows:
                self._resolve_row(
                    child.target,
                    child_request,
                    preset={child.inverse: row},
                    owner=entry,
                    via=child_name,
                    depth=depth + 1,
                )
        return row

    # ------------------------------------------------------------------
    # Scalars
    # ------------------------------------------------------------------

    def _resolve_scalars(self, table: TableInfo, request: RowRequest, entry: GraphEntry) -> None:
        model = self.models.get(table.name)
        for column in table.scalar_columns:
            seed = f"{request.path}/{column.name}"
            if column.name in request.scalars:
                value = self._field_value(request.scalars[column.name], request.path, seed)
            elif model is not None and column.name in model.data:
                value = self._field_value(tag(model.data[column.name]), request.path, seed)
            elif column.is_sequence:
                value = self.store.next_sequence(table.name, column.name)
            else:
                value = self.seeds.random_scalar(self.seeds.derive(seed), column)
            entry.values[column.name] = value

    def _field_value(self, value: FieldValue, model_seed: str, seed: str) -> Any:
        if isinstance(value, Computed):
            return value.fn(ColumnValueContext(model_seed=model_seed, seed=seed))
        return value.value

    # ------------------------------------------------------------------
    # Parents
    # ------------------------------------------------------------------

    def _resolve_parent(
        self,
        table: TableInfo,
        rel: ParentRelationship,
        request: RowRequest,
        entry: GraphEntry,
        preset: Mapping[str, SeedRow],
        depth: int,
        creating: tuple[str, ...],
    ) -> None:
        if rel.name in preset:
            self._link(entry, rel, preset[rel.name])
            return

        parent_request = request.parents.get(rel.name)
        if isinstance(parent_request, ParentRow):
            self._apply_connect(table, rel, parent_request.row, request, entry, depth, creating)
        elif isinstance(parent_request, ParentNull):
            self._set_null(entry, rel)
        elif isinstance(parent_request, ParentCallback):
            result = parent_request.fn(self._connect_context(request, rel, entry))
            self._apply_connect(table, rel, result, request, entry, depth, creating)
        elif isinstance(parent_request, ParentCreate):
            self._create_parent(
                table, rel, parent_request.node.rows[0], request, entry, depth, creating, explicit=True
            )
        elif rel.name in request.fks:
            self._resolve_fk_inputs(table, rel, request, entry, depth, creating)
        else:
            self._auto_resolve(table, rel, request, entry, depth, creating)

    def _resolve_fk_inputs(
        self,
        table: TableInfo,
        rel: ParentRelationship,
        request: RowRequest,
        entry: GraphEntry,
        depth: int,
        creating: tuple[str, ...],
    ) -> None:
        inputs = request.fks[rel.name]
        if len(rel.columns) == 1:
            value = inputs[rel.columns[0]]
            if isinstance(value, Computed):
                result = value.fn(self._connect_context(request, rel, entry))
                self._apply_connect(table, rel, result, request, entry, depth, creating)
                return
            if value.value is None and not rel.is_nullable:
                raise UnresolvableRelationshipError(
                    table.name, request.index, rel.name, f"'{rel.columns[0]}' was given as None"
                )
            entry.values[rel.columns[0]] = value.value
            return

        for column, referenced in zip(rel.columns, rel.referenced_columns):
            value = inputs[column]
            if isinstance(value, Computed):
                result = value.fn(self._connect_context(request, rel, entry))
                if isinstance(result, (SeedRow, Mapping)):
                    result = result[referenced]
                entry.values[column] = result
            else:
                entry.values[column] = value.value

    def _auto_resolve(
        self,
        table: TableInfo,
        rel: ParentRelationship,
        request: RowRequest,
        entry: GraphEntry,
        depth: int,
        creating: tuple[str, ...],
    ) -> None:
        seed = f"{request.path}/{rel.name}"
        if self.auto_connect:
            model = self.models.get(rel.target)
            if model is not None and model.connect is not None:
                result = model.connect(StoreContext(store=self.store, seed=seed))
                self._apply_connect(table, rel, result, request, entry, depth, creating)
                return
            candidates = self.store.rows(rel.target)
            if candidates:
                index = self.seeds.choose(self.seeds.derive(seed, "connect"), candidates)
                logger.debug(f"Auto-connected {table.name}.{rel.name} to {rel.target}[{index}]")
                self._link(entry, rel, candidates[index])
                return

        if rel.is_nullable:
            self._set_null(entry, rel)
            return
        if rel.target == table.name:
            raise SelfReferenceError(table.name, request.index, rel.name)
        if not self.create_parents:
            raise UnresolvableRelationshipError(
                table.name,
                request.index,
                rel.name,
                f"no '{rel.target}' row to connect to and parent creation is disabled",
            )
        parent_request = RowRequest(index=0, path=f"{request.path}/{rel.name}/0")
        self._create_parent(table, rel, parent_request, request, entry, depth, creating, explicit=False)

    def _create_parent(
        self,
        table: TableInfo,
        rel: ParentRelationship,
        parent_request: RowRequest,
        request: RowRequest,
        entry: GraphEntry,
        depth: int,
        creating: tuple[str, ...],
        explicit: bool,
    ) -> None:
        if depth + 1 > self.max_depth:
            raise UnresolvableRelationshipError(
                table.name,
                request.index,
                rel.name,
                f"parent creation exceeded max_depth={self.max_depth}",
            )
        if explicit:
            chain: tuple[str, ...] = ()
        else:
            chain = creating or (table.name,)
            if rel.target in chain:
                cycle = " -> ".join((*chain, rel.target))
                raise UnresolvableRelationshipError(
                    table.name,
                    request.index,
                    rel.name,
                    f"required relationships form a cycle ({cycle})",
                )
            chain = (*chain, rel.target)
            logger.debug(f"Creating {rel.target} row for {table.name}.{rel.name}")

        parent = self._resolve_row(
            rel.target,
            parent_request,
            owner=entry,
            via=rel.name,
            many=False,
            depth=depth + 1,
            creating=chain,
        )
        self._link(entry, rel, parent)

    def _apply_connect(
        self,
        table: TableInfo,
        rel: ParentRelationship,
        result: Any,
        request: RowRequest,
        entry: GraphEntry,
        depth: int,
        creating: tuple[str, ...],
    ) -> None:
        if isinstance(result, SeedRow):
            if self.store.holds(rel.target, result):
                self._link(entry, rel, result)
                return
            # Rows of other stores are only templates for a lookup or a new parent
            result = result.to_dict()

        if result is None:
            if rel.is_nullable:
                self._set_null(entry, rel)
                return
            raise UnresolvableRelationshipError(
                table.name, request.index, rel.name, "connect callback returned None"
            )

        if isinstance(result, Mapping):
            key = {ref: result[ref] for ref in rel.referenced_columns if ref in result}
            if len(key) == len(rel.referenced_columns):
                existing = self.store.find(rel.target, key)
                if existing is not None:
                    self._link(entry, rel, existing)
                    return
            logger.warning(
                f"Connect result for {table.name}.{rel.name} matches no existing "
                f"{rel.target} row; creating a new {rel.target} row from it"
            )
            node = self.builder.build_parent(table, rel.name, result, request.path)
            self._create_parent(table, rel, node.rows[0], request, entry, depth, creating, explicit=True)
            return

        if len(rel.columns) == 1:
            entry.values[rel.columns[0]] = result
            return
        raise SpecificationError(
            f"Connect callback for composite relationship '{table.name}.{rel.name}' "
            f"must return a row or a mapping of {rel.referenced_columns}",
            path=f"{request.path}/{rel.name}",
        )

    def _connect_context(
        self, request: RowRequest, rel: ParentRelationship, entry: GraphEntry
    ) -> ConnectContext:
        return ConnectContext(
            index=request.index,
            seed=f"{request.path}/{rel.name}",
            model_seed=request.path,
            store=self.store,
            entry=entry,
            roots=self.roots,
        )

    def _link(self, entry: GraphEntry, rel: ParentRelationship, parent: SeedRow) -> None:
        entry.values.update(rel.key_from(parent))

    def _set_null(self, entry: GraphEntry, rel: ParentRelationship) -> None:
        for column in rel.columns:
            entry.values[column] = None
