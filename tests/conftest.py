"""
Pytest fixtures and test configuration for ghostshare tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from ghostshare.core import GhostShare
from ghostshare.permissions import StaticCredentialsProvider
from ghostshare.storage.memory import InMemoryDocumentStore, InMemoryRecordStore
from ghostshare.types import GroupMembership, GroupPermissions, UserCredentials


class FakeClock:
    """Settable clock for components that take a ``now_fn``."""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep databases and logs out of the real home directory."""
    monkeypatch.setenv("GHOSTSHARE_DATA_DIR", str(tmp_path / "home"))
    monkeypatch.delenv("GHOSTSHARE_DB_PATH", raising=False)
    monkeypatch.delenv("GHOSTSHARE_USER_ID", raising=False)
    monkeypatch.delenv("GHOSTSHARE_LOG_LEVEL", raising=False)
    return tmp_path / "home"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def records():
    return InMemoryRecordStore()


@pytest.fixture
def documents():
    return InMemoryDocumentStore()


@pytest.fixture
def credentials():
    """mod moderates group "team"; editor can revise there; bob is a plain member."""
    return StaticCredentialsProvider(
        [
            UserCredentials(
                user_id="mod",
                group_memberships=[
                    GroupMembership("team", GroupPermissions(can_moderate=True)),
                ],
            ),
            UserCredentials(
                user_id="editor",
                group_memberships=[
                    GroupMembership("team", GroupPermissions(can_revise=True, can_overwrite=True)),
                ],
            ),
            UserCredentials(user_id="bob", group_memberships=[GroupMembership("team")]),
        ]
    )


@pytest.fixture
def g(records, documents, credentials, clock):
    """GhostShare over in-memory stores, running as alice."""
    return GhostShare(
        user_id="alice",
        records=records,
        documents=documents,
        credentials=credentials,
        now_fn=clock,
        audit=False,
    )


@pytest.fixture
def alice_note(g):
    """A 0.5-trust note owned by alice, with ghost sharing enabled."""
    g.update_ghost_config("alice", {"enabled": True})
    return g.save_record(
        "alice",
        content="Met the team at the harbour cafe to plan the spring release",
        title="Release planning",
        content_type="note",
        tags=["work"],
        trust_score=0.5,
        record_id="rec1",
        location={"city": "Lisbon", "precise": "38.70,-9.14"},
        participants=["carol"],
    )
