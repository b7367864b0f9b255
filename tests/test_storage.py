"""Tests for record and document stores (SQLite and in-memory)."""

import sqlite3
import threading

import pytest

from ghostshare.errors import StorageError, ValidationError, VersionConflictError
from ghostshare.predicates import Eq, Range
from ghostshare.storage import (
    DocumentStore,
    InMemoryDocumentStore,
    InMemoryRecordStore,
    RecordStore,
    SQLiteStorage,
    atomic_update,
)
from ghostshare.storage.paths import escalation_path, ghost_config_path, request_path
from ghostshare.storage.schema import SCHEMA_VERSION, validate_table_name


@pytest.fixture
def sqlite_storage(tmp_path):
    return SQLiteStorage(tmp_path / "test.db")


@pytest.fixture(params=["memory", "sqlite"])
def record_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryRecordStore()
    return SQLiteStorage(tmp_path / "records.db")


@pytest.fixture(params=["memory", "sqlite"])
def doc_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryDocumentStore()
    return SQLiteStorage(tmp_path / "docs.db").documents


class TestProtocols:
    def test_implementations_satisfy_protocols(self, sqlite_storage):
        assert isinstance(InMemoryRecordStore(), RecordStore)
        assert isinstance(InMemoryDocumentStore(), DocumentStore)
        assert isinstance(sqlite_storage, RecordStore)
        assert isinstance(sqlite_storage.documents, DocumentStore)


class TestRecordStore:
    def test_put_get_delete(self, record_store):
        record_store.put("users_alice", "r1", {"id": "r1", "title": "hello"})
        assert record_store.get("users_alice", "r1")["title"] == "hello"
        assert record_store.get("users_bob", "r1") is None
        assert record_store.delete("users_alice", "r1") is True
        assert record_store.delete("users_alice", "r1") is False

    def test_put_overwrites_in_place(self, record_store):
        record_store.put("c", "r1", {"v": 1})
        record_store.put("c", "r1", {"v": 2})
        assert record_store.query("c") == [{"v": 2}]

    def test_query_with_predicate(self, record_store):
        for i, trust in enumerate([0.1, 0.5, 0.9]):
            record_store.put("c", f"r{i}", {"id": f"r{i}", "trust_score": trust})
        results = record_store.query("c", Range("trust_score", lte=0.5))
        assert [r["id"] for r in results] == ["r0", "r1"]

    def test_search_ranks_by_terms(self, record_store):
        record_store.put("c", "a", {"title": "coffee", "content": "beans"})
        record_store.put("c", "b", {"title": "coffee", "content": "tea"})
        record_store.put("c", "z", {"title": "nothing"})
        hits = record_store.search("c", "coffee beans")
        assert [h.id for h in hits] == ["a", "b"]
        assert hits[0].score == 1.0
        assert hits[0].collection == "c"

    def test_empty_query_returns_everything(self, record_store):
        record_store.put("c", "a", {"content_type": "note"})
        record_store.put("c", "b", {"content_type": "ghost"})
        hits = record_store.search("c", "", Eq("content_type", "note"))
        assert [h.id for h in hits] == ["a"]

    def test_locate_by_prefix(self, record_store):
        record_store.put("groups_team", "r1", {"where": "group"})
        record_store.put("users_alice", "r1", {"where": "alice"})
        collection, data = record_store.locate("r1", "users_")
        assert collection == "users_alice"
        assert data["where"] == "alice"
        assert record_store.locate("missing", "users_") is None

    def test_locate_prefix_is_literal(self, record_store):
        record_store.put("usersXalice", "r1", {})
        assert record_store.locate("r1", "users_") is None

    def test_locate_all_lists_every_copy(self, record_store):
        record_store.put("users_bob", "r1", {"where": "bob"})
        record_store.put("users_alice", "r1", {"where": "alice"})
        record_store.put("groups_team", "r1", {"where": "group"})
        located = record_store.locate_all("r1", "users_")
        assert [(c, d["where"]) for c, d in located] == [("users_alice", "alice"), ("users_bob", "bob")]
        assert record_store.locate("r1", "users_")[0] == "users_alice"
        assert record_store.locate_all("missing", "users_") == []


class TestDocumentStore:
    def test_missing_document_has_version_zero(self, doc_store):
        assert doc_store.get_versioned("a/b") == (None, 0)

    def test_set_bumps_version(self, doc_store):
        assert doc_store.set("a/b", {"x": 1}) == 1
        assert doc_store.set("a/b", {"x": 2}) == 2
        assert doc_store.get_versioned("a/b") == ({"x": 2}, 2)

    def test_update_merges(self, doc_store):
        doc_store.set("a/b", {"x": 1, "y": 1})
        doc_store.update("a/b", {"y": 2})
        assert doc_store.get("a/b") == {"x": 1, "y": 2}

    def test_update_creates(self, doc_store):
        doc_store.update("new", {"x": 1})
        assert doc_store.get("new") == {"x": 1}

    def test_compare_and_set(self, doc_store):
        assert doc_store.compare_and_set("p", 0, {"v": 1}) == 1
        assert doc_store.compare_and_set("p", 1, {"v": 2}) == 2
        with pytest.raises(VersionConflictError) as exc_info:
            doc_store.compare_and_set("p", 1, {"v": 3})
        assert exc_info.value.actual_version == 2
        assert doc_store.get("p") == {"v": 2}

    def test_create_conflict(self, doc_store):
        doc_store.set("p", {"v": 1})
        with pytest.raises(VersionConflictError):
            doc_store.compare_and_set("p", 0, {"v": 2})

    def test_list_by_prefix(self, doc_store):
        doc_store.set("owner/a/escalation/b/r1", {"n": 1})
        doc_store.set("owner/a/escalation/b/r2", {"n": 2})
        doc_store.set("owner/a/escalation/bc/r1", {"n": 3})
        paths = [p for p, _ in doc_store.list("owner/a/escalation/b/")]
        assert paths == ["owner/a/escalation/b/r1", "owner/a/escalation/b/r2"]

    def test_delete(self, doc_store):
        doc_store.set("p", {})
        assert doc_store.delete("p") is True
        assert doc_store.delete("p") is False


class TestAtomicUpdate:
    def test_concurrent_increments_all_land(self):
        doc_store = InMemoryDocumentStore()

        def bump(current):
            current = current or {"n": 0}
            current["n"] += 1
            return current

        threads = [threading.Thread(target=lambda: atomic_update(doc_store, "counter", bump)) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert doc_store.get("counter") == {"n": 8}

    def test_gives_up_loudly(self):
        class AlwaysConflicts(InMemoryDocumentStore):
            def compare_and_set(self, path, expected_version, data):
                raise VersionConflictError(path, expected_version, expected_version + 1)

        with pytest.raises(StorageError):
            atomic_update(AlwaysConflicts(), "p", lambda current: {}, max_retries=3)


class TestSQLiteStorage:
    def test_schema_version_recorded(self, sqlite_storage):
        conn = sqlite3.connect(sqlite_storage.db_path)
        try:
            version = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()[0]
        finally:
            conn.close()
        assert version == SCHEMA_VERSION

    def test_data_survives_reopen(self, tmp_path):
        SQLiteStorage(tmp_path / "p.db").put("c", "r1", {"x": 1})
        assert SQLiteStorage(tmp_path / "p.db").get("c", "r1") == {"x": 1}

    def test_default_path_under_data_dir(self, isolated_home):
        storage = SQLiteStorage()
        assert storage.db_path == isolated_home / "ghostshare.db"

    def test_table_allowlist(self):
        assert validate_table_name("records") == "records"
        with pytest.raises(ValueError):
            validate_table_name("records; DROP TABLE records")


class TestPaths:
    def test_layout(self):
        assert ghost_config_path("alice") == "owner/alice/ghost_config"
        assert escalation_path("alice", "bob", "r1") == "owner/alice/escalation/bob/r1"
        assert request_path("alice", "tok") == "owner/alice/requests/tok"

    @pytest.mark.parametrize("bad", ["", "a/b"])
    def test_rejects_bad_segments(self, bad):
        with pytest.raises(ValidationError):
            ghost_config_path(bad)
