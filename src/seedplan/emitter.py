"""Persistence emitter: ordered INSERT statements and their execution."""

import inspect
import logging
from collections.abc import Iterable, Sequence
from typing import Any, Protocol

from psycopg import sql
from psycopg.types.json import Jsonb

from seedplan.dependency import DependencyGraph
from seedplan.exceptions import PersistenceError
from seedplan.models import SeedRow, Schema, TableInfo

logger = logging.getLogger(__name__)


class QueryClient(Protocol):
    """Anything that can execute one SQL statement (sync or async)."""

    def query(self, statement: str) -> Any: ...


class SQLEmitter:
    """
    Render store rows as INSERT statements in dependency order.

    Tables are ordered by their parent relationships (self-references
    ignored) so every row is inserted after the rows it references.
    """

    def __init__(self, schema: Schema):
        self.schema = schema

    def table_order(self, tables: Iterable[str]) -> list[str]:
        """
        Order tables so parents come first.

        Raises:
            CircularDependencyError: If the tables' relationships form a cycle
        """
        return DependencyGraph.from_schema(self.schema, tables).topological_sort()

    def statement(self, table: TableInfo, row: SeedRow) -> str:
        """INSERT statement for one row (columns the row does not hold are left out)."""
        columns = [name for name in table.column_names if name in row]
        query = sql.SQL("INSERT INTO {table} ({columns}) VALUES ({values});").format(
            table=sql.Identifier(*table.qualified_name),
            columns=sql.SQL(", ").join(sql.Identifier(name) for name in columns),
            values=sql.SQL(", ").join(_literal(row[name]) for name in columns),
        )
        return query.as_string(None)

    def emit(self, store) -> list[str]:
        """Statements for every row of `store` not flagged as external."""
        statements = []
        for name in self.table_order(store.tables()):
            table = self.schema.get_table(name)
            for row in store.rows(name):
                if store.is_external(row):
                    continue
                statements.append(self.statement(table, row))
        logger.debug(f"Emitted {len(statements)} statements")
        return statements


def _literal(value: Any) -> sql.Literal:
    if isinstance(value, (dict, list)):
        return sql.Literal(Jsonb(value))
    return sql.Literal(value)


async def persist(statements: Sequence[str], client: QueryClient) -> None:
    """
    Execute statements in order through `client`, then commit.

    `client.query` may return an awaitable. The client's `commit()` is
    called when it has one; on failure its `rollback()` is called when it
    has one.

    Raises:
        PersistenceError: Wrapping the first failure, tagged with the statement
    """
    for index, statement in enumerate(statements):
        try:
            await _maybe_await(client.query(statement))
        except Exception as e:
            await _rollback(client)
            raise PersistenceError(index, statement, e) from e

    commit = getattr(client, "commit", None)
    if callable(commit):
        try:
            await _maybe_await(commit())
        except Exception as e:
            await _rollback(client)
            raise PersistenceError(len(statements), "COMMIT", e) from e
    logger.info(f"Persisted {len(statements)} statements")


async def _maybe_await(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


async def _rollback(client: Any) -> None:
    rollback = getattr(client, "rollback", None)
    if callable(rollback):
        try:
            await _maybe_await(rollback())
        except Exception as e:
            logger.warning(f"Rollback failed: {e}")
