"""In-memory stores.

Lock-guarded dict implementations of RecordStore and DocumentStore, for
tests and for embedding the core without a database.
"""

import copy
import threading
from typing import Any, Dict, List, Optional, Tuple

from ghostshare.errors import VersionConflictError
from ghostshare.predicates import Predicate, evaluate
from ghostshare.storage.base import SearchResult, rank, text_score


class InMemoryRecordStore:
    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            data = self._collections.get(collection, {}).get(record_id)
            return copy.deepcopy(data) if data is not None else None

    def put(self, collection: str, record_id: str, data: Dict[str, Any]) -> None:
        with self._lock:
            self._collections.setdefault(collection, {})[record_id] = copy.deepcopy(data)

    def delete(self, collection: str, record_id: str) -> bool:
        with self._lock:
            return self._collections.get(collection, {}).pop(record_id, None) is not None

    def _snapshot(self, collection: str) -> List[Tuple[str, Dict[str, Any]]]:
        with self._lock:
            items = self._collections.get(collection, {})
            return [(k, copy.deepcopy(items[k])) for k in sorted(items)]

    def query(
        self, collection: str, predicate: Optional[Predicate] = None, limit: int = 100
    ) -> List[Dict[str, Any]]:
        return [data for _, data in self._snapshot(collection) if evaluate(predicate, data)][:limit]

    def search(
        self,
        collection: str,
        query: str,
        predicate: Optional[Predicate] = None,
        limit: int = 10,
    ) -> List[SearchResult]:
        candidates = [
            SearchResult(id=record_id, collection=collection, data=data, score=text_score(data, query))
            for record_id, data in self._snapshot(collection)
            if evaluate(predicate, data)
        ]
        return rank(candidates, query, limit)

    def locate(
        self, record_id: str, collection_prefix: str = ""
    ) -> Optional[Tuple[str, Dict[str, Any]]]:
        found = self.locate_all(record_id, collection_prefix)
        return found[0] if found else None

    def locate_all(self, record_id: str, collection_prefix: str = "") -> List[Tuple[str, Dict[str, Any]]]:
        with self._lock:
            return [
                (name, copy.deepcopy(self._collections[name][record_id]))
                for name in sorted(self._collections)
                if name.startswith(collection_prefix) and record_id in self._collections[name]
            ]

    def collections(self) -> List[str]:
        with self._lock:
            return sorted(name for name, items in self._collections.items() if items)


class InMemoryDocumentStore:
    def __init__(self):
        self._docs: Dict[str, Tuple[Dict[str, Any], int]] = {}
        self._lock = threading.Lock()

    def get(self, path: str) -> Optional[Dict[str, Any]]:
        return self.get_versioned(path)[0]

    def get_versioned(self, path: str) -> Tuple[Optional[Dict[str, Any]], int]:
        with self._lock:
            if path not in self._docs:
                return None, 0
            data, version = self._docs[path]
            return copy.deepcopy(data), version

    def set(self, path: str, data: Dict[str, Any]) -> int:
        with self._lock:
            version = self._docs[path][1] + 1 if path in self._docs else 1
            self._docs[path] = (copy.deepcopy(data), version)
            return version

    def update(self, path: str, fields: Dict[str, Any]) -> int:
        with self._lock:
            current, version = self._docs.get(path, ({}, 0))
            merged = copy.deepcopy(current)
            merged.update(copy.deepcopy(fields))
            self._docs[path] = (merged, version + 1)
            return version + 1

    def delete(self, path: str) -> bool:
        with self._lock:
            return self._docs.pop(path, None) is not None

    def list(self, prefix: str) -> List[Tuple[str, Dict[str, Any]]]:
        with self._lock:
            return [
                (path, copy.deepcopy(self._docs[path][0]))
                for path in sorted(self._docs)
                if path.startswith(prefix)
            ]

    def compare_and_set(self, path: str, expected_version: int, data: Dict[str, Any]) -> int:
        with self._lock:
            actual = self._docs[path][1] if path in self._docs else 0
            if actual != expected_version:
                raise VersionConflictError(path, expected_version, actual)
            self._docs[path] = (copy.deepcopy(data), actual + 1)
            return actual + 1
