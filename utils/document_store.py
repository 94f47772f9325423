"""
Document store on top of a PostgreSQL JSONB table.

Each collection (profiles, jobs, answers, practice_sessions, users) is a set of
JSON documents keyed by id. Timestamps are always taken from the database clock.
"""

import uuid
from typing import Any, Dict, List, Optional

from psycopg2.extras import Json

from utils.database import DatabaseManager


RESERVED_KEYS = ("id", "created_at", "updated_at")
TIMESTAMP_COLUMNS = ("created_at", "updated_at")

# A field is "empty" when it is missing, null, an empty array or an empty string
EMPTY_FIELD_SQL = "(data->%s IS NULL OR data->%s IN ('null'::jsonb, '[]'::jsonb, '\"\"'::jsonb))"


class DocumentNotFoundError(Exception):
    """Raised when updating a document that does not exist"""


def _strip_reserved(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if key not in RESERVED_KEYS}


def _to_document(row: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not row:
        return None
    document = dict(row.get("data") or {})
    document["id"] = row["id"]
    document["created_at"] = row.get("created_at")
    document["updated_at"] = row.get("updated_at")
    return document


class DocumentStore:
    """Get/set/update/delete-by-key and query-by-equality over JSON documents"""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        row = self.db_manager.fetch_one(
            "SELECT id, data, created_at, updated_at FROM documents WHERE collection = %s AND id = %s",
            (collection, doc_id)
        )
        return _to_document(row)

    def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
        """
        Create or replace a document

        Args:
            collection: Collection name
            doc_id: Document id
            data: Document fields
            merge: Merge into an existing document instead of replacing it
        """
        on_conflict = "documents.data || EXCLUDED.data" if merge else "EXCLUDED.data"
        self.db_manager.execute(
            f"""
            INSERT INTO documents (collection, id, data)
            VALUES (%s, %s, %s)
            ON CONFLICT (collection, id)
            DO UPDATE SET data = {on_conflict}, updated_at = now()
            """,
            (collection, doc_id, Json(_strip_reserved(data)))
        )

    def update(self, collection: str, doc_id: str, patch: Dict[str, Any]) -> None:
        """
        Shallow-merge fields into an existing document

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        affected = self.db_manager.execute(
            """
            UPDATE documents SET data = data || %s, updated_at = now()
            WHERE collection = %s AND id = %s
            """,
            (Json(_strip_reserved(patch)), collection, doc_id)
        )
        if affected == 0:
            raise DocumentNotFoundError(f"{collection}/{doc_id} does not exist")

    def update_if(self, collection: str, doc_id: str, patch: Dict[str, Any],
                  expected: Dict[str, Any]) -> bool:
        """
        Conditionally merge fields into a document (compare-and-set)

        Args:
            collection: Collection name
            doc_id: Document id
            patch: Fields to merge
            expected: Field -> expected value; None means the field must be empty

        Returns:
            True if the document matched and was updated
        """
        conditions = ["collection = %s", "id = %s"]
        params: List[Any] = [Json(_strip_reserved(patch)), collection, doc_id]
        for field, value in expected.items():
            if value is None:
                conditions.append(EMPTY_FIELD_SQL)
                params.extend([field, field])
            else:
                conditions.append("data->%s = %s")
                params.extend([field, Json(value)])

        affected = self.db_manager.execute(
            "UPDATE documents SET data = data || %s, updated_at = now() WHERE " + " AND ".join(conditions),
            tuple(params)
        )
        return affected > 0

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        """Insert a document under a generated id and return the id"""
        doc_id = uuid.uuid4().hex
        self.db_manager.execute(
            "INSERT INTO documents (collection, id, data) VALUES (%s, %s, %s)",
            (collection, doc_id, Json(_strip_reserved(data)))
        )
        return doc_id

    def delete(self, collection: str, doc_id: str) -> None:
        self.db_manager.execute(
            "DELETE FROM documents WHERE collection = %s AND id = %s",
            (collection, doc_id)
        )

    def query(self, collection: str, filters: Optional[Dict[str, Any]] = None,
              order_by: str = "updated_at", descending: bool = True) -> List[Dict[str, Any]]:
        """
        Query documents by field equality

        Args:
            collection: Collection name
            filters: Field -> value equality filters
            order_by: Timestamp column or document field to sort by
            descending: Sort direction

        Returns:
            Matching documents
        """
        direction = "DESC" if descending else "ASC"
        params: List[Any] = [collection, Json(filters or {})]
        if order_by in TIMESTAMP_COLUMNS:
            order_clause = f"{order_by} {direction}"
        else:
            order_clause = f"data->>%s {direction}"
            params.append(order_by)

        rows = self.db_manager.fetch_all(
            f"""
            SELECT id, data, created_at, updated_at FROM documents
            WHERE collection = %s AND data @> %s
            ORDER BY {order_clause}
            """,
            tuple(params)
        )
        return [_to_document(row) for row in rows]
