"""Lazy, composable generation plans."""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from seedplan.inputs import (
    ModelOverride,
    RequestBuilder,
    RequestNode,
    merge_models,
    normalize_models,
)
from seedplan.resolver import PlanResolver
from seedplan.store import Store

if TYPE_CHECKING:
    from seedplan.client import SeedClient

logger = logging.getLogger(__name__)


@dataclass
class PlanOptions:
    """
    Options of a single plan.

    Attributes:
        auto_connect: Connect relationships to existing store rows (default: client setting)
        models: Per-table overrides for this plan
        store: Store a table plan writes into when executed without one
        seed: Root seed for this plan (and everything it composes)
    """

    auto_connect: bool | None = None
    models: Mapping[str, Any] | None = None
    store: Store | None = None
    seed: str | None = None


@dataclass
class ExecutionContext:
    """Seed path and model overrides handed down by enclosing plans."""

    path: str
    models: dict[str, ModelOverride] = field(default_factory=dict)
    locked: bool = False


@dataclass
class PreparedPlan:
    """
    A plan whose request tree is fully built and validated.

    Table plans carry their request node and builder; composites carry
    their prepared sub-plans.
    """

    plan: "Plan"
    context: ExecutionContext
    node: RequestNode | None = None
    builder: RequestBuilder | None = None
    children: list["PreparedPlan"] = field(default_factory=list)


class Plan(ABC):
    """
    Lazy generation plan.

    Building a plan does no generation; `generate()` (or `run()`) executes it.
    Every request node of the plan (composed plans included) is built and
    validated before the first row is generated.

    Example:
        >>> plan = client.users(lambda x: x(3)).pipe([client.workspace([{}])])
        >>> store = plan.run()
        >>> len(store.users)
        3
    """

    def __init__(self, client: "SeedClient", options: PlanOptions | None = None):
        self.client = client
        self.options = options or PlanOptions()
        self._models = normalize_models(client.schema, self.options.models)

    async def generate(self, store: Store | None = None) -> Store:
        """
        Execute the plan.

        Args:
            store: Pre-seeded store (copied, never modified)

        Returns:
            The resulting store

        Raises:
            SpecificationError: If any request is invalid (nothing is generated)
        """
        seed = self.options.seed or self.client.seed
        context = ExecutionContext(path=f"{seed}/0", models=dict(self.client.models))
        prepared = self._prepare(context)

        if store is not None:
            target = store.copy()
            if target.schema is None:
                target.schema = self.client.schema
        else:
            target = self._initial_store()

        await self._run(target, prepared)
        return target

    def run(self, store: Store | None = None) -> Store:
        """Blocking `generate()`."""
        return asyncio.run(self.generate(store))

    def __await__(self):
        return self.generate().__await__()

    def pipe(self, plans: Sequence["Plan"], **options: Any) -> "Plan":
        """Run this plan, then `plans`, threading one store through all of them."""
        return self.client.pipe([self, *plans], **options)

    def merge(self, plans: Sequence["Plan"], **options: Any) -> "Plan":
        """Run this plan and `plans` independently and concatenate their stores."""
        return self.client.merge([self, *plans], **options)

    def _initial_store(self) -> Store:
        return Store(self.client.schema)

    @abstractmethod
    def _prepare(self, context: ExecutionContext) -> PreparedPlan:
        """Build and validate every request node of this plan."""
        pass

    @abstractmethod
    async def _run(self, store: Store, prepared: PreparedPlan) -> None:
        """Resolve a prepared plan into `store`."""
        pass


class TablePlan(Plan):
    """Plan generating rows of one table from user inputs."""

    def __init__(
        self,
        client: "SeedClient",
        table: str,
        inputs: Any,
        options: PlanOptions | None = None,
    ):
        super().__init__(client, options)
        self.table = table
        self.inputs = inputs
        # Static inputs fail here, before any execution
        RequestBuilder(client.schema, client.seeds, expand_callables=False).build(
            table, inputs, prefix=client.seed
        )

    def _initial_store(self) -> Store:
        if self.options.store is not None:
            return self.options.store
        return super()._initial_store()

    def _prepare(self, context: ExecutionContext) -> PreparedPlan:
        builder = RequestBuilder(self.client.schema, self.client.seeds)
        node = builder.build(self.table, self.inputs, prefix=context.path)
        return PreparedPlan(self, context, node=node, builder=builder)

    async def _run(self, store: Store, prepared: PreparedPlan) -> None:
        auto_connect = self.options.auto_connect
        if auto_connect is None:
            auto_connect = self.client.auto_connect
        resolver = PlanResolver(
            self.client.schema,
            store,
            self.client.seeds,
            prepared.builder,
            models=merge_models(prepared.context.models, self._models),
            auto_connect=auto_connect,
            create_parents=self.client.create_parents,
            max_depth=self.client.max_depth,
        )
        rows = resolver.resolve(prepared.node)
        logger.info(f"Generated {len(rows)} {self.table} rows ({prepared.node.path})")


class CompositePlan(Plan):
    """Plan composed of other plans."""

    def __init__(self, client: "SeedClient", plans: Sequence[Plan], options: PlanOptions | None = None):
        super().__init__(client, options)
        self.plans = list(plans)

    def _contexts(self, context: ExecutionContext) -> list[ExecutionContext]:
        locked = context.locked or self.options.seed is not None
        models = merge_models(context.models, self._models)
        contexts = []
        for index, plan in enumerate(self.plans):
            if locked or plan.options.seed is None:
                path = f"{context.path}/{index}"
            else:
                path = f"{plan.options.seed}/{index}"
            contexts.append(ExecutionContext(path=path, models=models, locked=locked))
        return contexts

    def _prepare(self, context: ExecutionContext) -> PreparedPlan:
        children = [
            plan._prepare(sub_context)
            for plan, sub_context in zip(self.plans, self._contexts(context))
        ]
        return PreparedPlan(self, context, children=children)


class PipePlan(CompositePlan):
    """Sequential composition: each plan sees the rows of the previous ones."""

    async def _run(self, store: Store, prepared: PreparedPlan) -> None:
        for child in prepared.children:
            await child.plan._run(store, child)


class MergePlan(CompositePlan):
    """Independent composition: plans never see each other's rows."""

    async def _run(self, store: Store, prepared: PreparedPlan) -> None:
        marks = store.lengths()
        copies = [store.copy() for _ in prepared.children]
        await asyncio.gather(
            *(child.plan._run(copy, child) for child, copy in zip(prepared.children, copies))
        )
        for copy in copies:
            store.extend(copy.since(marks))
        logger.info(f"Merged {len(copies)} plans")
