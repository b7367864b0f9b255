"""Tests for publication membership tracking."""

from ghostshare import tracking
from ghostshare.types import Record


def _record(**kwargs):
    return Record(id="rec1", owner_id="alice", **kwargs)


class TestListHelpers:
    def test_add_is_idempotent_and_ordered(self):
        assert tracking.add(["a"], "b") == ["a", "b"]
        assert tracking.add(["a", "b"], "a") == ["a", "b"]
        assert tracking.add(None, "a") == ["a"]

    def test_add_does_not_mutate(self):
        original = ["a"]
        tracking.add(original, "b")
        assert original == ["a"]

    def test_remove_absent_is_noop(self):
        assert tracking.remove(["a"], "z") == ["a"]
        assert tracking.remove(None, "z") == []

    def test_many(self):
        assert tracking.add_many(["a"], ["b", "a", "c", "b"]) == ["a", "b", "c"]
        assert tracking.remove_many(["a", "b", "c"], ["a", "c"]) == ["b"]


class TestRecordHelpers:
    def test_initialize_dedupes(self):
        rec = tracking.initialize_tracking(_record(space_memberships=["x", "x", "y"]))
        assert rec.space_memberships == ["x", "y"]
        assert rec.group_memberships == []

    def test_add_and_remove_locations(self):
        rec = tracking.add_to_groups(tracking.add_to_spaces(_record(), ["general"]), ["team"])
        assert tracking.is_published_to_space(rec, "general")
        assert tracking.is_published_to_group(rec, "team")
        assert tracking.published_count(rec) == 2
        assert tracking.published_locations(rec) == {"spaces": ["general"], "groups": ["team"]}

        rec = tracking.remove_from_groups(tracking.remove_from_spaces(rec, ["general"]), ["team"])
        assert not tracking.is_published(rec)

    def test_helpers_return_new_records(self):
        original = _record()
        updated = tracking.add_to_spaces(original, ["general"])
        assert original.space_memberships == []
        assert updated.space_memberships == ["general"]
