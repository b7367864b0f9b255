"""ghostshare storage backends.

This module provides the storage abstraction layer: record and document
store protocols, a local SQLite implementation and in-memory fakes.
"""

from .base import (
    DocumentStore,
    RecordStore,
    SearchResult,
    atomic_update,
)
from .memory import InMemoryDocumentStore, InMemoryRecordStore
from .sqlite import SQLiteDocuments, SQLiteStorage

__all__ = [
    # Protocols and types
    "DocumentStore",
    "RecordStore",
    "SearchResult",
    "atomic_update",
    # Implementations
    "InMemoryDocumentStore",
    "InMemoryRecordStore",
    "SQLiteDocuments",
    "SQLiteStorage",
]
