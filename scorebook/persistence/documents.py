"""
Document client backed by the documents table of a DatabaseManager.
"""

import json
import threading
from datetime import datetime, timezone
from typing import Any, Optional

from ..core.interfaces import DocumentClient
from ..core.exceptions import PersistenceError
from .database import DatabaseManager


class SQLDocumentClient(DocumentClient):
    """Stores one JSON document per (collection, key) row."""

    def __init__(self, database: DatabaseManager):
        self._database = database
        self._lock = threading.RLock()

    def read_one(self, collection: str, key: str) -> Optional[Any]:
        """Return the stored document or None when absent."""
        with self._lock:
            try:
                query = "SELECT data FROM documents WHERE collection = ? AND doc_key = ?"
                results = self._database.execute_query(query, (collection, key))
            except PersistenceError:
                raise
            except Exception as e:
                raise PersistenceError(f"Failed to read document {collection}/{key}: {str(e)}")

            if not results:
                return None

            data = results[0]["data"]
            if not self._database.json_as_text:
                return data
            try:
                return json.loads(data)
            except (TypeError, ValueError) as e:
                raise PersistenceError(f"Corrupt document {collection}/{key}: {str(e)}")

    def write_one(self, collection: str, key: str, value: Any) -> None:
        """Create or replace the document."""
        with self._lock:
            try:
                query = """
                    INSERT INTO documents (collection, doc_key, data, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT (collection, doc_key)
                    DO UPDATE SET data = excluded.data, updated_at = excluded.updated_at
                """
                params = (
                    collection,
                    key,
                    json.dumps(value),
                    datetime.now(timezone.utc).isoformat(),
                )
                self._database.execute_update(query, params)
            except PersistenceError:
                raise
            except Exception as e:
                raise PersistenceError(f"Failed to write document {collection}/{key}: {str(e)}")

    def last_updated(self, collection: str, key: str) -> Optional[str]:
        """Get the last-write timestamp of a document."""
        query = "SELECT updated_at FROM documents WHERE collection = ? AND doc_key = ?"
        results = self._database.execute_query(query, (collection, key))
        if not results:
            return None
        return str(results[0]["updated_at"])
