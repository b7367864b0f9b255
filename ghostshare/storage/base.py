"""Storage protocols for ghostshare backends.

Two collaborators back the core:
- RecordStore: collection-partitioned records (owner-private ``users_*``,
  ``spaces_public``, ``groups_*``) with predicate queries and search
- DocumentStore: path-addressed, versioned documents for ghost configs,
  escalation records, confirmation tokens and space configs

Currently supported:
- SQLiteStorage: both protocols on one local SQLite file
- InMemoryStorage: both protocols in process memory, for tests and embedding
"""

import copy
import logging
from abc import abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from ghostshare.errors import StorageError, VersionConflictError
from ghostshare.predicates import Predicate

logger = logging.getLogger(__name__)

# Retries for optimistic read-modify-write before giving up loudly
DEFAULT_CAS_RETRIES = 50


@dataclass
class SearchResult:
    """A search result with relevance score."""

    id: str
    collection: str
    data: Dict[str, Any]
    score: float


@runtime_checkable
class RecordStore(Protocol):
    """Protocol for collection-partitioned record storage."""

    @abstractmethod
    def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Get a record by id, or None."""
        ...

    @abstractmethod
    def put(self, collection: str, record_id: str, data: Dict[str, Any]) -> None:
        """Insert or overwrite a record in place."""
        ...

    @abstractmethod
    def delete(self, collection: str, record_id: str) -> bool:
        """Delete a record. Returns False if it did not exist."""
        ...

    @abstractmethod
    def query(
        self, collection: str, predicate: Optional[Predicate] = None, limit: int = 100
    ) -> List[Dict[str, Any]]:
        """Records in ``collection`` matching ``predicate``."""
        ...

    @abstractmethod
    def search(
        self,
        collection: str,
        query: str,
        predicate: Optional[Predicate] = None,
        limit: int = 10,
    ) -> List[SearchResult]:
        """Ranked records matching ``query`` and ``predicate``."""
        ...

    @abstractmethod
    def locate(self, record_id: str, collection_prefix: str = "") -> Optional[Tuple[str, Dict[str, Any]]]:
        """Find ``record_id`` in any collection starting with ``collection_prefix``."""
        ...

    @abstractmethod
    def locate_all(self, record_id: str, collection_prefix: str = "") -> List[Tuple[str, Dict[str, Any]]]:
        """Every copy of ``record_id`` under ``collection_prefix``, ordered by collection."""
        ...


@runtime_checkable
class DocumentStore(Protocol):
    """Protocol for path-addressed documents with a version counter.

    Versions start at 1 on first write and increase by one per write.
    A missing document has version 0.
    """

    @abstractmethod
    def get(self, path: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def get_versioned(self, path: str) -> Tuple[Optional[Dict[str, Any]], int]:
        """Return ``(data, version)``; ``(None, 0)`` when absent."""
        ...

    @abstractmethod
    def set(self, path: str, data: Dict[str, Any]) -> int:
        """Overwrite the document. Returns the new version."""
        ...

    @abstractmethod
    def update(self, path: str, fields: Dict[str, Any]) -> int:
        """Merge ``fields`` into the document, creating it if needed."""
        ...

    @abstractmethod
    def delete(self, path: str) -> bool:
        ...

    @abstractmethod
    def list(self, prefix: str) -> List[Tuple[str, Dict[str, Any]]]:
        """All ``(path, data)`` pairs whose path starts with ``prefix``."""
        ...

    @abstractmethod
    def compare_and_set(self, path: str, expected_version: int, data: Dict[str, Any]) -> int:
        """Write ``data`` only if the stored version equals ``expected_version``.

        Returns:
            The new version

        Raises:
            VersionConflictError: If the stored version differs
        """
        ...


SEARCH_FIELDS = ("title", "content", "summary", "tags", "content_type")


def text_score(doc: Dict[str, Any], query: str) -> float:
    """Fraction of query terms found in the searchable fields of ``doc``.

    An empty query matches everything with score 0.
    """
    terms = [t for t in query.lower().split() if t]
    if not terms:
        return 0.0
    parts = []
    for name in SEARCH_FIELDS:
        value = doc.get(name)
        if isinstance(value, list):
            parts.extend(str(v) for v in value)
        elif value:
            parts.append(str(value))
    haystack = " ".join(parts).lower()
    hits = sum(1 for t in terms if t in haystack)
    return hits / len(terms)


def rank(candidates: List[SearchResult], query: str, limit: int) -> List[SearchResult]:
    """Drop non-matching candidates for a non-empty query and order by score."""
    if query.strip():
        candidates = [c for c in candidates if c.score > 0]
    candidates.sort(key=lambda r: (-r.score, r.id))
    return candidates[:limit]


def atomic_update(
    store: DocumentStore,
    path: str,
    mutate: Callable[[Optional[Dict[str, Any]]], Dict[str, Any]],
    max_retries: int = DEFAULT_CAS_RETRIES,
) -> Dict[str, Any]:
    """Read-modify-write ``path`` with optimistic retries.

    ``mutate`` receives a private copy of the current document (or None)
    and returns the document to write. It may be called more than once.

    Raises:
        StorageError: If every attempt lost the race
    """
    for attempt in range(1, max_retries + 1):
        current, version = store.get_versioned(path)
        updated = mutate(copy.deepcopy(current) if current is not None else None)
        try:
            store.compare_and_set(path, version, updated)
            return updated
        except VersionConflictError as e:
            logger.debug(f"Retrying update of {path} (attempt {attempt}): {e}")
    raise StorageError(f"Gave up updating {path} after {max_retries} conflicting attempts")
