"""Table dependency graph for persistence ordering."""

import logging
from collections import deque
from collections.abc import Iterable

from seedplan.exceptions import CircularDependencyError
from seedplan.models import Schema

logger = logging.getLogger(__name__)


class DependencyGraph:
    """
    Directed graph for table dependencies.

    Tables keep their insertion order, which breaks ties in the
    topological sort so the same input always yields the same order.
    """

    def __init__(self):
        self._tables: dict[str, None] = {}
        self._graph: dict[str, set[str]] = {}
        self._dependents: dict[str, list[str]] = {}

    def add_table(self, table: str) -> None:
        """Add a table to the graph."""
        if table not in self._tables:
            self._tables[table] = None
            self._graph[table] = set()
            self._dependents[table] = []

    def add_dependency(self, table: str, depends_on: str) -> None:
        """Add a dependency: table depends on depends_on (self-references are ignored)."""
        self.add_table(table)
        self.add_table(depends_on)
        if table == depends_on or depends_on in self._graph[table]:
            return
        self._graph[table].add(depends_on)
        self._dependents[depends_on].append(table)

    def get_dependencies(self, table: str) -> list[str]:
        """Get all tables that this table depends on."""
        return sorted(self._graph.get(table, set()))

    @property
    def tables(self) -> list[str]:
        return list(self._tables)

    def topological_sort(self) -> list[str]:
        """
        Sort tables in dependency order using Kahn's algorithm.

        Returns:
            Tables in order such that dependencies come before dependents.

        Raises:
            CircularDependencyError: If circular dependency detected
        """
        in_degree = {table: len(deps) for table, deps in self._graph.items()}

        # Start with tables that have no dependencies
        queue = deque(table for table in self._tables if in_degree[table] == 0)
        result = []

        while queue:
            table = queue.popleft()
            result.append(table)

            for dependent in self._dependents[table]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    queue.append(dependent)

        if len(result) != len(self._tables):
            remaining = {table for table in self._tables if table not in result}
            raise CircularDependencyError(remaining)

        return result

    @classmethod
    def from_schema(cls, schema: Schema, tables: Iterable[str] | None = None) -> "DependencyGraph":
        """
        Build the graph of parent relationships between `tables`.

        Args:
            schema: Schema model
            tables: Tables to include (default: every table of the schema).
                Relationships to tables outside this set are left out.
        """
        graph = cls()
        names = list(tables) if tables is not None else schema.table_names
        included = set(names)
        for name in names:
            graph.add_table(name)
        for name in names:
            for rel in schema.get_table(name).parents:
                if rel.target in included:
                    graph.add_dependency(name, rel.target)
        logger.debug(f"Dependency graph over {len(names)} tables")
        return graph
