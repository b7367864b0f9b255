"""Tests for cross-user access decisions."""

import logging

import pytest

from ghostshare.access_result import (
    Blocked,
    Deleted,
    Granted,
    InsufficientTrust,
    NoPermission,
    NotFound,
    access_result_to_dict,
    format_access_result,
)
from ghostshare.errors import ValidationError
from ghostshare.types import AccessLevel


class TestCheckAccessOrder:
    def test_not_found(self, g):
        assert g.check_access("missing", "bob", "alice") == NotFound(record_id="missing")

    def test_not_found_beats_owner_block(self, g):
        g.block_user("alice", "bob")
        assert isinstance(g.check_access("missing", "bob", "alice"), NotFound)

    def test_deleted_even_for_owner(self, g, alice_note):
        deleted = g.delete_record("alice", "rec1")
        result = g.check_access("rec1", "alice", "alice")
        assert result == Deleted(record_id="rec1", deleted_at=deleted.deleted_at)

    def test_owner_bypasses_everything(self, g, alice_note):
        g.update_ghost_config("alice", {"enabled": False})
        result = g.check_access("rec1", "alice")
        assert isinstance(result, Granted)
        assert result.level == AccessLevel.OWNER

    def test_owner_block(self, g, alice_note):
        g.set_trust("alice", "bob", 1.0)
        g.block_user("alice", "bob")
        result = g.check_access("rec1", "bob", "alice")
        assert isinstance(result, Blocked)
        assert result.reason == "Blocked by owner"
        assert result.blocked_at == g.get_ghost_config("alice").blocked_at["bob"]

    def test_no_relationship(self, g, alice_note):
        assert g.check_access("rec1", "stranger", "alice") == NoPermission(
            owner_id="alice", accessor_id="stranger"
        )

    def test_ghost_disabled_hides_unpublished_records(self, g, alice_note):
        g.set_trust("alice", "bob", 0.9)
        g.update_ghost_config("alice", {"enabled": False})
        assert isinstance(g.check_access("rec1", "bob", "alice"), NoPermission)

    def test_ghost_disabled_still_checks_published_records(self, g, alice_note):
        g.set_trust("alice", "bob", 0.9)
        token = g.create_publish_request("alice", "rec1", spaces=["general"])
        g.confirm_request("alice", token.token)
        g.update_ghost_config("alice", {"enabled": False})
        assert isinstance(g.check_access("rec1", "bob", "alice"), Granted)

    def test_owner_lookup_without_owner_id(self, g, alice_note):
        g.set_trust("alice", "bob", 0.9)
        result = g.check_access("rec1", "bob")
        assert isinstance(result, Granted)
        assert result.record.owner_id == "alice"

    def test_ambiguous_record_id_warns(self, g, alice_note, caplog):
        g.save_record("bob", content="bob's own rec1", trust_score=0.5, record_id="rec1")
        g.set_trust("alice", "carol", 0.9)
        with caplog.at_level(logging.WARNING, logger="ghostshare.access"):
            result = g.check_access("rec1", "carol")
        assert isinstance(result, Granted)
        assert result.record.owner_id == "alice"
        assert "exists for 2 owners" in caplog.text
        assert "using users_alice" in caplog.text

    def test_owner_id_resolves_ambiguity_quietly(self, g, alice_note, caplog):
        g.save_record("bob", content="bob's own rec1", trust_score=0.5, record_id="rec1")
        with caplog.at_level(logging.WARNING, logger="ghostshare.access"):
            result = g.check_access("rec1", "bob", "bob")
        assert isinstance(result, Granted)
        assert result.record.content == "bob's own rec1"
        assert "owners" not in caplog.text

    def test_rejects_empty_accessor(self, g):
        with pytest.raises(ValidationError):
            g.check_access("rec1", "")


class TestTrustScenario:
    """alice trusts bob at 0.75 and carol at 0.25; the note needs 0.5."""

    @pytest.fixture(autouse=True)
    def trust(self, g, alice_note):
        g.set_trust("alice", "bob", 0.75)
        g.set_trust("alice", "carol", 0.25)

    def test_bob_is_granted(self, g):
        result = g.check_access("rec1", "bob", "alice")
        assert isinstance(result, Granted)
        assert result.level == AccessLevel.TRUSTED

    def test_carol_escalates_to_block(self, g):
        first = g.check_access("rec1", "carol", "alice")
        assert first == InsufficientTrust(
            record_id="rec1", required_trust=0.5, actual_trust=0.25, attempts_remaining=2
        )

        second = g.check_access("rec1", "carol", "alice")
        assert isinstance(second, InsufficientTrust)
        assert second.actual_trust == pytest.approx(0.15)
        assert second.attempts_remaining == 1

        third = g.check_access("rec1", "carol", "alice")
        assert isinstance(third, Blocked)
        assert third.reason == "Access blocked after 3 unauthorized attempts"

        fourth = g.check_access("rec1", "carol", "alice")
        assert isinstance(fourth, Blocked)
        assert fourth.blocked_at == third.blocked_at

    def test_penalty_lowers_effective_trust_everywhere(self, g):
        g.save_record("alice", content="low", trust_score=0.2, record_id="rec2")
        assert isinstance(g.check_access("rec2", "carol", "alice"), Granted)
        g.check_access("rec1", "carol", "alice")
        assert g.effective_trust_level("alice", "carol") == pytest.approx(0.15)
        result = g.check_access("rec2", "carol", "alice")
        assert isinstance(result, InsufficientTrust)
        assert g.resolve_trust_level("alice", "carol") == 0.25

    def test_reset_restores_access_attempts(self, g):
        for _ in range(3):
            g.check_access("rec1", "carol", "alice")
        g.reset_block("alice", "carol", "rec1", "false alarm")
        result = g.check_access("rec1", "carol", "alice")
        assert isinstance(result, InsufficientTrust)
        assert result.actual_trust == 0.25
        assert result.attempts_remaining == 2
        assert g.escalation_status("alice", "carol", "rec1").failed_attempts == 1

    def test_escalation_block_after_trust_raised(self, g):
        for _ in range(3):
            g.check_access("rec1", "carol", "alice")
        g.set_trust("alice", "carol", 1.0)
        assert isinstance(g.check_access("rec1", "carol", "alice"), Blocked)

    def test_unblock_restores_access(self, g):
        g.block_user("alice", "bob")
        assert isinstance(g.check_access("rec1", "bob", "alice"), Blocked)
        g.unblock_user("alice", "bob")
        assert isinstance(g.check_access("rec1", "bob", "alice"), Granted)

    def test_known_contact_gets_default_trust(self, g):
        g.add_contact("alice", "dave")
        g.save_record("alice", content="meta", trust_score=0.25, record_id="rec3")
        assert isinstance(g.check_access("rec3", "dave", "alice"), Granted)
        assert isinstance(g.check_access("rec1", "dave", "alice"), InsufficientTrust)


class TestFormatting:
    def test_messages(self):
        assert format_access_result(NotFound(record_id="r")) == "Memory r not found."
        assert "blocked" in format_access_result(Blocked(record_id="r", reason="Blocked by owner"))
        assert "Required: 0.50" in format_access_result(
            InsufficientTrust(record_id="r", required_trust=0.5, actual_trust=0.25, attempts_remaining=2)
        )
        assert format_access_result(NoPermission(owner_id="a", accessor_id="b")).startswith("No permission")

    def test_rejects_non_results(self):
        with pytest.raises(TypeError):
            format_access_result("granted")
        with pytest.raises(TypeError):
            access_result_to_dict(None)

    def test_to_dict(self, g, alice_note):
        data = access_result_to_dict(g.check_access("rec1", "alice"))
        assert data == {"status": "granted", "record_id": "rec1", "level": "owner"}
        assert access_result_to_dict(Deleted(record_id="r", deleted_at="t"))["status"] == "deleted"
