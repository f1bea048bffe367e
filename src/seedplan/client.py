"""Generation entry points."""

import logging
from collections.abc import Mapping, Sequence
from functools import partial
from pathlib import Path
from typing import Any

from seedplan.backends import DirectBackend
from seedplan.config import Config
from seedplan.emitter import persist
from seedplan.exceptions import PersistenceError
from seedplan.inputs import normalize_models
from seedplan.models import Schema
from seedplan.plan import MergePlan, PipePlan, Plan, PlanOptions, TablePlan
from seedplan.seed import SeedGenerator, resolve_provider
from seedplan.store import Store

logger = logging.getLogger(__name__)


class SeedClient:
    """
    Build and persist generation plans for one schema.

    Every table of the schema is available as a method returning a plan.
    Tables named like a client attribute (`seed`, `pipe`, `generate`, ...)
    are shadowed by it; plan them with `generate(table, inputs)` instead.

    Example:
        >>> client = SeedClient(Schema.from_yaml("schema.yaml"), seed="demo")
        >>> plan = client.users(lambda x: x(3)).pipe(
        ...     [client.workspace([{"owner_id": lambda ctx: ctx.store.users[0]}])]
        ... )
        >>> store = plan.run()
        >>> store.to_sql()
    """

    def __init__(
        self,
        schema: Schema | Mapping[str, Any] | str | Path,
        db: Any = None,
        *,
        models: Mapping[str, Any] | None = None,
        seed: str | None = None,
        auto_connect: bool | None = None,
        config: Config | None = None,
        strategy: str | None = None,
    ):
        """
        Initialize client.

        Args:
            schema: Schema, schema mapping, or path to a YAML/JSON schema file
            db: Query client (anything with `query(statement)`) or psycopg connection
            models: Per-table overrides `{table: {"connect": fn, "data": {...}}}`
            seed: Root seed (default: config)
            auto_connect: Connect relationships to existing rows (default: config)
            config: Configuration (default: defaults plus SEEDPLAN_* environment)
            strategy: Registered fake value provider (default: config)
        """
        if isinstance(schema, Mapping):
            schema = Schema.from_dict(schema)
        elif not isinstance(schema, Schema):
            schema = Schema.from_file(schema)
        self.schema = schema
        self.config = config or Config()

        generation = self.config.generation
        self.seed = seed or generation.seed
        self.auto_connect = generation.auto_connect if auto_connect is None else auto_connect
        self.create_parents = generation.create_parents
        self.max_depth = generation.max_depth
        self.seeds = SeedGenerator(self.seed, resolve_provider(strategy or generation.strategy))
        self.models = normalize_models(schema, models)

        if db is not None and not hasattr(db, "query") and hasattr(db, "cursor"):
            db = DirectBackend(db)
        self.db = db

        shadowed = [
            table.name
            for table in schema
            if table.name in self.__dict__ or hasattr(type(self), table.name)
        ]
        if shadowed:
            logger.warning(
                f"Tables {shadowed} are shadowed by client attributes; "
                f"use generate(table, inputs) for them"
            )

    def generate(
        self,
        table: str,
        inputs: Any,
        *,
        auto_connect: bool | None = None,
        models: Mapping[str, Any] | None = None,
        store: Store | None = None,
        seed: str | None = None,
    ) -> Plan:
        """
        Plan rows of `table`.

        Args:
            table: Table name
            inputs: List of row mappings, or a callable receiving the `x` helper

        Raises:
            TableNotFoundError: If the table is unknown
            SpecificationError: If static inputs are invalid
        """
        options = PlanOptions(auto_connect=auto_connect, models=models, store=store, seed=seed)
        return TablePlan(self, table, inputs, options)

    def __getattr__(self, name: str):
        schema = self.__dict__.get("schema")
        if schema is not None and name in schema:
            return partial(self.generate, name)
        raise AttributeError(f"'{type(self).__name__}' has no attribute or table '{name}'")

    def pipe(
        self,
        plans: Sequence[Plan],
        *,
        models: Mapping[str, Any] | None = None,
        seed: str | None = None,
    ) -> Plan:
        """Compose plans sequentially; later plans can connect to earlier rows."""
        return PipePlan(self, plans, PlanOptions(models=models, seed=seed))

    def merge(
        self,
        plans: Sequence[Plan],
        *,
        models: Mapping[str, Any] | None = None,
        seed: str | None = None,
    ) -> Plan:
        """Compose plans independently; their stores are concatenated."""
        return MergePlan(self, plans, PlanOptions(models=models, seed=seed))

    def create_store(
        self, data: Mapping[str, Any] | None = None, *, external: bool = False
    ) -> Store:
        """
        Create a store, optionally primed with existing rows.

        Args:
            data: Table name to list of row mappings
            external: Rows already exist in the database (never emitted as INSERTs)
        """
        return Store.from_data(self.schema, data, external=external)

    async def persist(self, store: Store) -> list[str]:
        """
        Execute the store's INSERT statements through the client's database.

        Returns:
            The executed statements

        Raises:
            PersistenceError: If a statement fails (the store is unchanged)
        """
        if self.db is None:
            raise PersistenceError(
                0, "", ValueError("SeedClient has no database client; pass db=...")
            )
        statements = store.to_sql()
        await persist(statements, self.db)
        return statements
