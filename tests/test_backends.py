"""Tests for query client backends."""

import asyncio

from seedplan import SeedClient
from seedplan.backends import DirectBackend, StagingBackend


def test_staging_backend_records_statements(client: SeedClient):
    """Test staging backend works without database connection."""
    backend = StagingBackend()
    client.db = backend
    store = client.workspace(lambda x: x(2)).run()

    statements = asyncio.run(client.persist(store))

    assert backend.committed == statements
    assert backend.tables() == ['"users"', '"workspace"']


def test_staging_backend_rollback():
    """Test rollback drops uncommitted statements."""
    backend = StagingBackend()
    backend.query("S1")

    backend.rollback()
    backend.commit()

    assert backend.committed == []


def test_staging_backend_reset():
    """Test reset clears all staged data."""
    backend = StagingBackend()
    backend.query("S1")
    backend.commit()

    backend.reset()

    assert backend.committed == []
    assert backend.tables() == []


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self.rowcount = 1

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, statement):
        self.conn.executed.append(statement)


class FakeConnection:
    def __init__(self):
        self.executed = []
        self.commits = 0
        self.rollbacks = 0

    def cursor(self):
        return FakeCursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1


def test_direct_backend_executes_on_connection():
    """Test direct backend runs statements through a cursor and commits."""
    conn = FakeConnection()
    backend = DirectBackend(conn)

    assert backend.query("INSERT 1") == 1
    backend.commit()
    backend.rollback()

    assert conn.executed == ["INSERT 1"]
    assert conn.commits == 1
    assert conn.rollbacks == 1


def test_client_wraps_connections(schema):
    """Test connections without query() are wrapped in a DirectBackend."""
    conn = FakeConnection()
    client = SeedClient(schema, conn, seed="s")
    store = client.users(lambda x: x(2)).run()

    asyncio.run(client.persist(store))

    assert isinstance(client.db, DirectBackend)
    assert len(conn.executed) == 2
    assert conn.commits == 1


def test_direct_backend_connect(monkeypatch):
    """Test connect() opens a psycopg connection for the URL."""
    urls = []

    def fake_connect(url):
        urls.append(url)
        return FakeConnection()

    monkeypatch.setattr("seedplan.backends.direct.psycopg.connect", fake_connect)

    backend = DirectBackend.connect("postgresql://localhost/seed")

    assert urls == ["postgresql://localhost/seed"]
    assert isinstance(backend.conn, FakeConnection)
