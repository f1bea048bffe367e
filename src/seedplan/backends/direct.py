"""Direct backend - executes statements on a PostgreSQL connection."""

import logging

import psycopg

logger = logging.getLogger(__name__)


class DirectBackend:
    """
    Execute generated INSERT statements on a psycopg connection.

    All statements of one `persist()` run share the connection's
    transaction; `commit()` makes them visible, `rollback()` discards them.
    """

    def __init__(self, conn: psycopg.Connection):
        """
        Initialize backend.

        Args:
            conn: PostgreSQL connection
        """
        self.conn = conn

    @classmethod
    def connect(cls, url: str) -> "DirectBackend":
        """Open a new connection to `url`."""
        return cls(psycopg.connect(url))

    def query(self, statement: str) -> int:
        """
        Execute one statement.

        Returns:
            Number of affected rows
        """
        with self.conn.cursor() as cur:
            cur.execute(statement)
            return cur.rowcount

    def commit(self) -> None:
        self.conn.commit()

    def rollback(self) -> None:
        self.conn.rollback()

    def close(self) -> None:
        self.conn.close()
