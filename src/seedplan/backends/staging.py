"""Staging backend - in-memory backend for testing without database."""

import logging
import re

logger = logging.getLogger(__name__)

_INSERT_TABLE = re.compile(r'^INSERT INTO ((?:"[^"]*"\.)?"[^"]*")')


class StagingBackend:
    """
    In-memory backend for testing persistence without database.

    Records every statement instead of executing it. Statements only
    count as committed after `commit()`; `rollback()` drops the pending ones.

    Use case: Fast unit tests, offline development, reviewing generated SQL.
    """

    def __init__(self):
        """Initialize staging backend with empty state."""
        self.pending: list[str] = []
        self.committed: list[str] = []

    def query(self, statement: str) -> None:
        self.pending.append(statement)

    def commit(self) -> None:
        self.committed.extend(self.pending)
        logger.debug(f"Committed {len(self.pending)} staged statements")
        self.pending = []

    def rollback(self) -> None:
        self.pending = []

    def tables(self) -> list[str]:
        """Quoted table names of committed statements, in first-seen order."""
        names: dict[str, None] = {}
        for statement in self.committed:
            match = _INSERT_TABLE.match(statement)
            if match:
                names[match.group(1)] = None
        return list(names)

    def reset(self) -> None:
        """Clear all staged data."""
        self.pending = []
        self.committed = []
