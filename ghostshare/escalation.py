"""Escalation of repeated unauthorized access attempts.

One EscalationRecord per (owner, accessor, record) triple, stored at
``owner/{owner}/escalation/{accessor}/{record}``. Every failure bumps the
counter with a compare-and-set retry loop. The third failure blocks the
accessor from that record until the owner resets it.

The trust penalty is not stored. It is replayed from the counters:
``TRUST_PENALTY`` per failed attempt against any of the owner's records.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from ghostshare.errors import NotFoundError, ValidationError
from ghostshare.storage.base import DocumentStore, atomic_update
from ghostshare.storage.paths import escalation_path, escalation_prefix
from ghostshare.types import EscalationRecord, now_utc

logger = logging.getLogger(__name__)

# Trust lost per failed attempt
TRUST_PENALTY = 0.1

# Failed attempts on one record before the accessor is blocked from it
MAX_ATTEMPTS_BEFORE_BLOCK = 3


def block_reason(attempts: int) -> str:
    return f"Access blocked after {attempts} unauthorized attempts"


@dataclass(frozen=True)
class FailureOutcome:
    attempts: int
    blocked: bool
    blocked_at: Optional[str] = None
    reason: Optional[str] = None

    @property
    def attempts_remaining(self) -> int:
        return max(0, MAX_ATTEMPTS_BEFORE_BLOCK - self.attempts)


class EscalationTracker:
    def __init__(self, documents: DocumentStore, now_fn: Callable[[], datetime] = now_utc):
        self._documents = documents
        self._now = now_fn

    def get_record(self, owner_id: str, accessor_id: str, record_id: str) -> Optional[EscalationRecord]:
        data = self._documents.get(escalation_path(owner_id, accessor_id, record_id))
        return EscalationRecord.from_dict(data) if data else None

    def record_failure(self, owner_id: str, accessor_id: str, record_id: str) -> FailureOutcome:
        """Count one failed attempt, blocking on the threshold.

        Concurrent failures on the same triple are all counted.
        """
        now = self._now().isoformat()

        def bump(current: Optional[Dict[str, Any]]) -> Dict[str, Any]:
            rec = (
                EscalationRecord.from_dict(current)
                if current
                else EscalationRecord(owner_id=owner_id, accessor_id=accessor_id, record_id=record_id)
            )
            rec.failed_attempts += 1
            rec.last_attempt_at = now
            if rec.failed_attempts >= MAX_ATTEMPTS_BEFORE_BLOCK and not rec.blocked:
                rec.blocked = True
                rec.blocked_at = now
                rec.block_reason = block_reason(rec.failed_attempts)
            return rec.to_dict()

        rec = EscalationRecord.from_dict(
            atomic_update(self._documents, escalation_path(owner_id, accessor_id, record_id), bump)
        )
        if rec.blocked:
            logger.warning(
                f"{accessor_id} blocked from {owner_id}/{record_id} "
                f"after {rec.failed_attempts} failed attempts"
            )
        else:
            logger.info(
                f"Failed access by {accessor_id} on {owner_id}/{record_id} "
                f"({rec.failed_attempts}/{MAX_ATTEMPTS_BEFORE_BLOCK})"
            )
        return FailureOutcome(
            attempts=rec.failed_attempts,
            blocked=rec.blocked,
            blocked_at=rec.blocked_at,
            reason=rec.block_reason,
        )

    def is_blocked(self, owner_id: str, accessor_id: str, record_id: str) -> bool:
        rec = self.get_record(owner_id, accessor_id, record_id)
        return bool(rec and rec.blocked)

    def reset_block(
        self, owner_id: str, accessor_id: str, record_id: str, reason: str
    ) -> EscalationRecord:
        """Clear the counter and block flag. Owner-only; the reason is kept.

        Raises:
            ValidationError: If no reason is given
            NotFoundError: If there is nothing to reset
        """
        if not isinstance(reason, str) or not reason.strip():
            raise ValidationError("A reason is required to reset a block")
        path = escalation_path(owner_id, accessor_id, record_id)
        if self._documents.get(path) is None:
            raise NotFoundError(f"No escalation record for {accessor_id} on {record_id}")
        now = self._now().isoformat()

        def clear(current: Optional[Dict[str, Any]]) -> Dict[str, Any]:
            rec = EscalationRecord.from_dict(current or {
                "owner_id": owner_id, "accessor_id": accessor_id, "record_id": record_id,
            })
            rec.reset_history.append(
                {
                    "reason": reason.strip(),
                    "reset_at": now,
                    "reset_by": owner_id,
                    "previous_attempts": rec.failed_attempts,
                    "was_blocked": rec.blocked,
                }
            )
            rec.failed_attempts = 0
            rec.blocked = False
            rec.blocked_at = None
            rec.block_reason = None
            return rec.to_dict()

        rec = EscalationRecord.from_dict(atomic_update(self._documents, path, clear))
        logger.info(f"{owner_id} reset block for {accessor_id} on {record_id}: {reason.strip()}")
        return rec

    def records_for(self, owner_id: str, accessor_id: str) -> List[EscalationRecord]:
        return [
            EscalationRecord.from_dict(data)
            for _, data in self._documents.list(escalation_prefix(owner_id, accessor_id))
        ]

    def failed_attempts(self, owner_id: str, accessor_id: str) -> int:
        """Total failed attempts by ``accessor_id`` across the owner's records."""
        return sum(rec.failed_attempts for rec in self.records_for(owner_id, accessor_id))

    def penalty(self, owner_id: str, accessor_id: str) -> float:
        return round(TRUST_PENALTY * self.failed_attempts(owner_id, accessor_id), 10)


def effective_trust(configured: float, penalty: float) -> float:
    """Configured trust minus the escalation penalty, floored at 0."""
    return max(0.0, round(configured - penalty, 10))
