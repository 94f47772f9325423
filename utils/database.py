"""
PostgreSQL access for the document table
"""

import psycopg2
from psycopg2.extras import RealDictCursor
from typing import Any, Dict, List, Optional, Sequence
from contextlib import contextmanager


SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS documents (
        collection TEXT NOT NULL,
        id TEXT NOT NULL,
        data JSONB NOT NULL DEFAULT '{}'::jsonb,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
        PRIMARY KEY (collection, id)
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS documents_owner_idx
        ON documents (collection, (data->>'user_id'), updated_at DESC)
    """,
]


class DatabaseManager:
    """
    Owns one PostgreSQL connection.

    The connection is opened on first use and reopened if it was closed; each
    statement runs in its own transaction.
    """

    def __init__(self, connection_string: str, connect_timeout: int = 10):
        """
        Args:
            connection_string: PostgreSQL connection URL
            connect_timeout: Seconds to wait when opening the connection
        """
        if not connection_string:
            raise ValueError("Database connection string not provided")
        self.connection_string = connection_string
        self.connect_timeout = connect_timeout
        self.conn = None

    @property
    def is_connected(self) -> bool:
        return self.conn is not None and not self.conn.closed

    def connection(self):
        """Return the live connection, opening it if needed"""
        if not self.is_connected:
            try:
                self.conn = psycopg2.connect(self.connection_string, connect_timeout=self.connect_timeout)
            except psycopg2.Error as e:
                print(f"❌ Failed to connect to PostgreSQL: {str(e)}")
                raise
            print("✅ Connected to PostgreSQL database")
        return self.conn

    @contextmanager
    def transaction(self, dict_rows: bool = False):
        """
        Yield a cursor inside a transaction; commit on success, roll back on error

        Args:
            dict_rows: Return rows as dicts instead of tuples
        """
        conn = self.connection()
        cursor = conn.cursor(cursor_factory=RealDictCursor if dict_rows else None)
        try:
            yield cursor
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()

    def fetch_one(self, query: str, params: Optional[Sequence[Any]] = None) -> Optional[Dict[str, Any]]:
        with self.transaction(dict_rows=True) as cur:
            cur.execute(query, params)
            row = cur.fetchone()
            return dict(row) if row else None

    def fetch_all(self, query: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        with self.transaction(dict_rows=True) as cur:
            cur.execute(query, params)
            return [dict(row) for row in cur.fetchall()]

    def execute(self, query: str, params: Optional[Sequence[Any]] = None) -> int:
        """
        Run a write statement

        Returns:
            Number of affected rows
        """
        with self.transaction() as cur:
            cur.execute(query, params)
            return cur.rowcount

    def ensure_schema(self):
        """Create the documents table and its index if missing"""
        with self.transaction() as cur:
            for statement in SCHEMA_STATEMENTS:
                cur.execute(statement)
        print("✅ Document schema ready")

    def close(self):
        if self.is_connected:
            self.conn.close()
            print("✅ Closed PostgreSQL connection")
        self.conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
