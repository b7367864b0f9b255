"""SQLite-backed storage for ghostshare.

Implements both RecordStore and DocumentStore on a single database file.
Records and documents are stored as JSON; predicates are evaluated in
Python after a collection-scoped fetch.
"""

import contextlib
import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ghostshare.errors import StorageError, VersionConflictError
from ghostshare.predicates import Predicate, evaluate
from ghostshare.storage.base import SearchResult, atomic_update, rank, text_score
from ghostshare.storage.schema import init_db
from ghostshare.types import utc_now

logger = logging.getLogger(__name__)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SQLiteStorage:
    """SQLite storage implementing RecordStore and DocumentStore."""

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        if db_path is None:
            from ghostshare.config import get_db_path

            db_path = get_db_path()
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._connect() as conn:
            init_db(conn)
        logger.debug(f"SQLite storage ready at {self.db_path}")

    def _get_conn(self) -> sqlite3.Connection:
        """Get a database connection.

        Use the _connect() context manager, which handles commit/rollback
        and close, rather than calling this directly.
        """
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA busy_timeout=5000")
        return conn

    @contextlib.contextmanager
    def _connect(self):
        """Context manager that handles transactions AND closes connection.

        This handles:
        - Transaction commit on success
        - Transaction rollback on exception
        - Connection close in all cases
        """
        conn = self._get_conn()
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            logger.debug(f"Transaction failed, rolling back: {e}")
            conn.rollback()
            raise StorageError(str(e)) from e
        except Exception as e:
            logger.debug(f"Transaction failed, rolling back: {e}")
            conn.rollback()
            raise
        finally:
            conn.close()

    # === RecordStore ===

    def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT data FROM records WHERE collection = ? AND id = ?",
                (collection, record_id),
            ).fetchone()
        return json.loads(row["data"]) if row else None

    def put(self, collection: str, record_id: str, data: Dict[str, Any]) -> None:
        payload = json.dumps(data, default=str)
        with self._connect() as conn:
            conn.execute(
                """INSERT INTO records (collection, id, data, updated_at)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(collection, id) DO UPDATE
                   SET data = excluded.data, updated_at = excluded.updated_at""",
                (collection, record_id, payload, utc_now()),
            )

    def delete(self, collection: str, record_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM records WHERE collection = ? AND id = ?",
                (collection, record_id),
            )
            return cursor.rowcount > 0

    def _scan(self, collection: str) -> List[Tuple[str, Dict[str, Any]]]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id, data FROM records WHERE collection = ? ORDER BY id",
                (collection,),
            ).fetchall()
        return [(row["id"], json.loads(row["data"])) for row in rows]

    def query(
        self, collection: str, predicate: Optional[Predicate] = None, limit: int = 100
    ) -> List[Dict[str, Any]]:
        results = []
        for _, data in self._scan(collection):
            if evaluate(predicate, data):
                results.append(data)
                if len(results) >= limit:
                    break
        return results

    def search(
        self,
        collection: str,
        query: str,
        predicate: Optional[Predicate] = None,
        limit: int = 10,
    ) -> List[SearchResult]:
        candidates = [
            SearchResult(id=record_id, collection=collection, data=data, score=text_score(data, query))
            for record_id, data in self._scan(collection)
            if evaluate(predicate, data)
        ]
        return rank(candidates, query, limit)

    def locate(
        self, record_id: str, collection_prefix: str = ""
    ) -> Optional[Tuple[str, Dict[str, Any]]]:
        found = self.locate_all(record_id, collection_prefix)
        return found[0] if found else None

    def locate_all(self, record_id: str, collection_prefix: str = "") -> List[Tuple[str, Dict[str, Any]]]:
        with self._connect() as conn:
            rows = conn.execute(
                """SELECT collection, data FROM records
                   WHERE id = ? AND collection LIKE ? ESCAPE '\\'
                   ORDER BY collection""",
                (record_id, _escape_like(collection_prefix) + "%"),
            ).fetchall()
        return [(row["collection"], json.loads(row["data"])) for row in rows]

    # === DocumentStore ===

    def get_document(self, path: str) -> Optional[Dict[str, Any]]:
        return self.get_versioned(path)[0]

    def get_versioned(self, path: str) -> Tuple[Optional[Dict[str, Any]], int]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT data, version FROM documents WHERE path = ?", (path,)
            ).fetchone()
        if not row:
            return None, 0
        return json.loads(row["data"]), row["version"]

    def set_document(self, path: str, data: Dict[str, Any]) -> int:
        payload = json.dumps(data, default=str)
        with self._connect() as conn:
            conn.execute(
                """INSERT INTO documents (path, data, version, updated_at)
                   VALUES (?, ?, 1, ?)
                   ON CONFLICT(path) DO UPDATE
                   SET data = excluded.data, version = documents.version + 1,
                       updated_at = excluded.updated_at""",
                (path, payload, utc_now()),
            )
            row = conn.execute("SELECT version FROM documents WHERE path = ?", (path,)).fetchone()
        return row["version"]

    def update_document(self, path: str, fields: Dict[str, Any]) -> int:
        def merge(current: Optional[Dict[str, Any]]) -> Dict[str, Any]:
            merged = current or {}
            merged.update(fields)
            return merged

        atomic_update(self.documents, path, merge)
        return self.get_versioned(path)[1]

    def delete_document(self, path: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM documents WHERE path = ?", (path,))
            return cursor.rowcount > 0

    def list_documents(self, prefix: str) -> List[Tuple[str, Dict[str, Any]]]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT path, data FROM documents WHERE path LIKE ? ESCAPE '\\' ORDER BY path",
                (_escape_like(prefix) + "%",),
            ).fetchall()
        return [(row["path"], json.loads(row["data"])) for row in rows]

    def compare_and_set(self, path: str, expected_version: int, data: Dict[str, Any]) -> int:
        payload = json.dumps(data, default=str)
        now = utc_now()
        with self._connect() as conn:
            if expected_version == 0:
                cursor = conn.execute(
                    """INSERT OR IGNORE INTO documents (path, data, version, updated_at)
                       VALUES (?, ?, 1, ?)""",
                    (path, payload, now),
                )
            else:
                cursor = conn.execute(
                    """UPDATE documents SET data = ?, version = version + 1, updated_at = ?
                       WHERE path = ? AND version = ?""",
                    (payload, now, path, expected_version),
                )
            if cursor.rowcount == 0:
                row = conn.execute(
                    "SELECT version FROM documents WHERE path = ?", (path,)
                ).fetchone()
                actual = row["version"] if row else 0
                raise VersionConflictError(path, expected_version, actual)
        return expected_version + 1

    @property
    def documents(self) -> "SQLiteDocuments":
        """This storage viewed through the DocumentStore protocol."""
        return SQLiteDocuments(self)

    def close(self):
        """Connections are per-operation; nothing to release."""
        pass


class SQLiteDocuments:
    """DocumentStore view over SQLiteStorage.

    RecordStore and DocumentStore both name their reads ``get``, so the
    document half is exposed through this adapter.
    """

    def __init__(self, storage: SQLiteStorage):
        self._storage = storage

    def get(self, path: str) -> Optional[Dict[str, Any]]:
        return self._storage.get_document(path)

    def get_versioned(self, path: str) -> Tuple[Optional[Dict[str, Any]], int]:
        return self._storage.get_versioned(path)

    def set(self, path: str, data: Dict[str, Any]) -> int:
        return self._storage.set_document(path, data)

    def update(self, path: str, fields: Dict[str, Any]) -> int:
        return self._storage.update_document(path, fields)

    def delete(self, path: str) -> bool:
        return self._storage.delete_document(path)

    def list(self, prefix: str) -> List[Tuple[str, Dict[str, Any]]]:
        return self._storage.list_documents(prefix)

    def compare_and_set(self, path: str, expected_version: int, data: Dict[str, Any]) -> int:
        return self._storage.compare_and_set(path, expected_version, data)
