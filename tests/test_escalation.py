"""Tests for failed-attempt escalation."""

import threading

import pytest

from ghostshare.errors import NotFoundError, ValidationError
from ghostshare.escalation import (
    MAX_ATTEMPTS_BEFORE_BLOCK,
    EscalationTracker,
    block_reason,
    effective_trust,
)


@pytest.fixture
def tracker(documents, clock):
    return EscalationTracker(documents, clock)


class TestRecordFailure:
    def test_counts_and_blocks_on_third(self, tracker):
        outcomes = [tracker.record_failure("alice", "carol", "rec1") for _ in range(3)]
        assert [o.attempts for o in outcomes] == [1, 2, 3]
        assert [o.blocked for o in outcomes] == [False, False, True]
        assert [o.attempts_remaining for o in outcomes] == [2, 1, 0]
        assert outcomes[2].reason == "Access blocked after 3 unauthorized attempts"
        assert tracker.is_blocked("alice", "carol", "rec1")

    def test_triples_are_independent(self, tracker):
        for _ in range(MAX_ATTEMPTS_BEFORE_BLOCK):
            tracker.record_failure("alice", "carol", "rec1")
        assert not tracker.is_blocked("alice", "carol", "rec2")
        assert not tracker.is_blocked("alice", "dave", "rec1")

    def test_concurrent_failures_all_counted(self, tracker):
        threads = [
            threading.Thread(target=tracker.record_failure, args=("alice", "carol", "rec1"))
            for _ in range(6)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        rec = tracker.get_record("alice", "carol", "rec1")
        assert rec.failed_attempts == 6
        assert rec.blocked

    def test_block_timestamp_kept_after_more_failures(self, tracker, clock):
        for _ in range(3):
            tracker.record_failure("alice", "carol", "rec1")
        blocked_at = tracker.get_record("alice", "carol", "rec1").blocked_at
        clock.advance(minutes=5)
        tracker.record_failure("alice", "carol", "rec1")
        assert tracker.get_record("alice", "carol", "rec1").blocked_at == blocked_at


class TestPenalty:
    def test_penalty_spans_records(self, tracker):
        tracker.record_failure("alice", "carol", "rec1")
        tracker.record_failure("alice", "carol", "rec2")
        tracker.record_failure("bob", "carol", "rec9")
        assert tracker.failed_attempts("alice", "carol") == 2
        assert tracker.penalty("alice", "carol") == pytest.approx(0.2)

    def test_effective_trust_floor(self):
        assert effective_trust(0.25, 0.1) == pytest.approx(0.15)
        assert effective_trust(0.25, 0.5) == 0.0


class TestReset:
    def test_reset_clears_and_keeps_history(self, tracker):
        for _ in range(3):
            tracker.record_failure("alice", "carol", "rec1")
        rec = tracker.reset_block("alice", "carol", "rec1", "  talked it over  ")
        assert rec.failed_attempts == 0
        assert rec.blocked is False
        assert rec.reset_history[0]["reason"] == "talked it over"
        assert rec.reset_history[0]["previous_attempts"] == 3
        assert tracker.penalty("alice", "carol") == 0.0

    def test_reason_required(self, tracker):
        tracker.record_failure("alice", "carol", "rec1")
        with pytest.raises(ValidationError):
            tracker.reset_block("alice", "carol", "rec1", " ")

    def test_nothing_to_reset(self, tracker):
        with pytest.raises(NotFoundError):
            tracker.reset_block("alice", "carol", "rec1", "why not")

    def test_block_reason_text(self):
        assert block_reason(3) == "Access blocked after 3 unauthorized attempts"
