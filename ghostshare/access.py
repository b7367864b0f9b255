"""Cross-user access decisions.

``AccessResolver.check_access`` classifies one read of one record. The
steps run in a fixed order and the first that applies decides:

1. record missing                      -> NotFound
2. record soft-deleted                 -> Deleted
3. accessor owns the record            -> Granted(owner)
4. owner blocked the accessor          -> Blocked
   no trust relationship, or ghost
   disabled for an unpublished record  -> NoPermission
5. escalation block on this record     -> Blocked
6. effective trust below record trust  -> InsufficientTrust (counts a failure;
                                          the third failure returns Blocked)
7. otherwise                           -> Granted(trusted)

Effective trust is configured trust minus the escalation penalty,
computed at read time.
"""

import logging
from typing import Optional

from ghostshare.access_result import (
    AccessResult,
    Blocked,
    Deleted,
    Granted,
    InsufficientTrust,
    NoPermission,
    NotFound,
)
from ghostshare.errors import ValidationError
from ghostshare.escalation import EscalationTracker, block_reason, effective_trust
from ghostshare.ghost_config import GhostConfigStore, ResolutionReason
from ghostshare.identity import USERS_PREFIX, user_collection
from ghostshare.storage.base import RecordStore
from ghostshare.tracking import is_published
from ghostshare.trust_policy import is_sufficient
from ghostshare.types import AccessLevel, Record

logger = logging.getLogger(__name__)

OWNER_BLOCK_REASON = "Blocked by owner"


class AccessResolver:
    def __init__(
        self,
        records: RecordStore,
        ghost_configs: GhostConfigStore,
        escalation: EscalationTracker,
    ):
        self._records = records
        self._ghost_configs = ghost_configs
        self._escalation = escalation

    def fetch_record(self, record_id: str, owner_id: Optional[str] = None) -> Optional[Record]:
        """Load an owner-side record, searching every owner when ``owner_id`` is None.

        Without an owner the first match in collection order wins; pass
        ``owner_id`` when record ids are not globally unique.
        """
        if owner_id:
            data = self._records.get(user_collection(owner_id), record_id)
        else:
            located = self._records.locate_all(record_id, USERS_PREFIX)
            if len(located) > 1:
                logger.warning(
                    f"Record id {record_id} exists for {len(located)} owners "
                    f"({', '.join(name for name, _ in located)}); using {located[0][0]}"
                )
            data = located[0][1] if located else None
        return Record.from_dict(data) if data else None

    def effective_trust_level(self, owner_id: str, accessor_id: str) -> Optional[float]:
        """Configured trust minus the escalation penalty, or None without access."""
        if owner_id == accessor_id:
            return 1.0
        level = self._ghost_configs.resolve_trust_level(owner_id, accessor_id)
        if level is None:
            return None
        return effective_trust(level, self._escalation.penalty(owner_id, accessor_id))

    def check_access(
        self, record_id: str, accessor_id: str, owner_id: Optional[str] = None
    ) -> AccessResult:
        if not isinstance(accessor_id, str) or not accessor_id:
            raise ValidationError("accessor_id must be a non-empty string")
        if not isinstance(record_id, str) or not record_id:
            raise ValidationError("record_id must be a non-empty string")

        record = self.fetch_record(record_id, owner_id)
        if record is None:
            return NotFound(record_id=record_id)

        if record.deleted_at:
            return Deleted(record_id=record_id, deleted_at=record.deleted_at)

        owner = record.owner_id
        if accessor_id == owner:
            return Granted(record=record, level=AccessLevel.OWNER)

        resolution = self._ghost_configs.resolve(owner, accessor_id)
        if resolution.reason == ResolutionReason.BLOCKED:
            return Blocked(
                record_id=record_id,
                reason=OWNER_BLOCK_REASON,
                blocked_at=resolution.blocked_at,
            )
        if resolution.level is None:
            return NoPermission(owner_id=owner, accessor_id=accessor_id)
        if not resolution.enabled and not is_published(record):
            logger.debug(f"Ghost disabled for {owner}; {record_id} is not published")
            return NoPermission(owner_id=owner, accessor_id=accessor_id)

        escalation = self._escalation.get_record(owner, accessor_id, record_id)
        if escalation is not None and escalation.blocked:
            return Blocked(
                record_id=record_id,
                reason=escalation.block_reason or block_reason(escalation.failed_attempts),
                blocked_at=escalation.blocked_at,
            )

        actual = effective_trust(resolution.level, self._escalation.penalty(owner, accessor_id))
        if not is_sufficient(record.trust_score, actual):
            outcome = self._escalation.record_failure(owner, accessor_id, record_id)
            if outcome.blocked:
                return Blocked(
                    record_id=record_id,
                    reason=outcome.reason or block_reason(outcome.attempts),
                    blocked_at=outcome.blocked_at,
                )
            return InsufficientTrust(
                record_id=record_id,
                required_trust=record.trust_score,
                actual_trust=actual,
                attempts_remaining=outcome.attempts_remaining,
            )

        return Granted(record=record, level=AccessLevel.TRUSTED)
