import pytest

from utils.database import SCHEMA_STATEMENTS, DatabaseManager


class FakeCursor:
    def __init__(self, conn, rows):
        self.conn = conn
        self.rows = rows
        self.rowcount = len(rows)
        self.closed = False

    def execute(self, query, params=None):
        if "FAIL" in query:
            raise RuntimeError("statement failed")
        self.conn.executed.append((query, params))

    def fetchone(self):
        return self.rows[0] if self.rows else None

    def fetchall(self):
        return self.rows

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, rows=None):
        self.rows = rows or []
        self.executed = []
        self.commits = 0
        self.rollbacks = 0
        self.closed = 0

    def cursor(self, cursor_factory=None):
        return FakeCursor(self, self.rows)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        self.closed = 1


@pytest.fixture
def connections(monkeypatch):
    opened = []

    def fake_connect(dsn, connect_timeout):
        conn = FakeConnection(rows=[{"id": "a1"}])
        opened.append((dsn, connect_timeout, conn))
        return conn

    monkeypatch.setattr("utils.database.psycopg2.connect", fake_connect)
    return opened


@pytest.mark.unit
class TestDatabaseManager:
    def test_requires_connection_string(self):
        with pytest.raises(ValueError):
            DatabaseManager("")

    def test_connects_lazily_and_reconnects(self, connections):
        db = DatabaseManager("postgresql://db/prep", connect_timeout=3)
        assert connections == []

        assert db.fetch_one("SELECT 1") == {"id": "a1"}
        assert connections[0][:2] == ("postgresql://db/prep", 3)

        db.close()
        assert not db.is_connected
        db.fetch_all("SELECT 1")
        assert len(connections) == 2

    def test_write_commits_and_returns_rowcount(self, connections):
        db = DatabaseManager("postgresql://db/prep")
        assert db.execute("UPDATE documents SET data = %s", ("{}",)) == 1
        assert connections[0][2].commits == 1

    def test_failed_statement_rolls_back(self, connections):
        db = DatabaseManager("postgresql://db/prep")
        with pytest.raises(RuntimeError):
            db.execute("FAIL")
        conn = connections[0][2]
        assert conn.rollbacks == 1
        assert conn.commits == 0

    def test_ensure_schema_runs_every_statement(self, connections):
        with DatabaseManager("postgresql://db/prep") as db:
            db.ensure_schema()
            conn = connections[0][2]
            assert [query for query, _ in conn.executed] == SCHEMA_STATEMENTS
        assert conn.closed
