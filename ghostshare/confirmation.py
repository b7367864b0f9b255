"""Single-use confirmation tokens for staged mutations.

A token binds a staged publish/retract/revise to its owner for five
minutes. It lives at ``owner/{owner_id}/requests/{token}`` and moves
``pending -> confirmed`` or ``pending -> denied`` exactly once.

Every transition is a compare-and-set on the token document. A confirm
first claims the token (``pending -> applying``) under a short lease,
then either finalizes it or releases it back to ``pending`` with the
error recorded, so a failed apply can be retried until expiry. A claim
whose lease ran out (the confirming process died) counts as pending.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from ghostshare.errors import (
    TokenConsumedError,
    TokenExpiredError,
    TokenNotFoundError,
    ValidationError,
    VersionConflictError,
)
from ghostshare.storage.base import DocumentStore
from ghostshare.storage.paths import request_path
from ghostshare.types import (
    TERMINAL_TOKEN_STATUSES,
    VALID_ACTIONS,
    ConfirmationToken,
    TokenStatus,
    now_utc,
)

logger = logging.getLogger(__name__)

TOKEN_TTL = timedelta(minutes=5)

# How long a confirm may hold its claim before others treat it as abandoned
CLAIM_LEASE = timedelta(seconds=30)


class ConfirmationTokenStore:
    def __init__(self, documents: DocumentStore, now_fn: Callable[[], datetime] = now_utc):
        self._documents = documents
        self._now = now_fn

    def create_request(self, owner_id: str, action: str, payload: Dict[str, Any]) -> ConfirmationToken:
        if action not in VALID_ACTIONS:
            raise ValidationError(f"action must be one of {sorted(VALID_ACTIONS)}, got '{action}'")
        if not isinstance(payload, dict):
            raise ValidationError("payload must be a mapping")
        now = self._now()
        token = ConfirmationToken(
            token=secrets.token_urlsafe(24),
            owner_id=owner_id,
            action=action,
            payload=dict(payload),
            created_at=now.isoformat(),
            expires_at=(now + TOKEN_TTL).timestamp(),
        )
        self._documents.compare_and_set(request_path(owner_id, token.token), 0, token.to_dict())
        logger.info(f"Created {action} request for {owner_id}")
        return token

    def _load(self, owner_id: str, token: str):
        if not isinstance(token, str) or not token:
            raise TokenNotFoundError(str(token))
        data, version = self._documents.get_versioned(request_path(owner_id, token))
        if data is None:
            raise TokenNotFoundError(token)
        return ConfirmationToken.from_dict(data), version

    def _is_claimed(self, record: ConfirmationToken, now: float) -> bool:
        return (
            record.status == TokenStatus.APPLYING.value
            and record.lease_expires_at is not None
            and record.lease_expires_at > now
        )

    def _check_usable(self, record: ConfirmationToken, now: float) -> None:
        if record.consumed or record.status in TERMINAL_TOKEN_STATUSES:
            raise TokenConsumedError(record.token, record.status)
        if self._is_claimed(record, now):
            raise TokenConsumedError(record.token, record.status)
        if now > record.expires_at:
            raise TokenExpiredError(record.token)

    def get(self, owner_id: str, token: str) -> ConfirmationToken:
        return self._load(owner_id, token)[0]

    def validate_token(self, owner_id: str, token: str) -> ConfirmationToken:
        """Return the pending token.

        Raises:
            TokenNotFoundError: Unknown token, or not the caller's
            TokenConsumedError: Already confirmed, denied, or being confirmed
            TokenExpiredError: Past its five-minute window
        """
        record, _ = self._load(owner_id, token)
        self._check_usable(record, self._now().timestamp())
        return record

    def claim(self, owner_id: str, token: str) -> ConfirmationToken:
        """Move a pending token to ``applying``. Exactly one caller wins."""
        record, version = self._load(owner_id, token)
        now = self._now().timestamp()
        self._check_usable(record, now)
        record.status = TokenStatus.APPLYING.value
        record.lease_expires_at = now + CLAIM_LEASE.total_seconds()
        record.attempts += 1
        try:
            self._documents.compare_and_set(request_path(owner_id, token), version, record.to_dict())
        except VersionConflictError:
            current, _ = self._load(owner_id, token)
            logger.info(f"Lost race for token of {owner_id} (now {current.status})")
            raise TokenConsumedError(token, current.status)
        return record

    def _finish(self, owner_id: str, token: str, mutate: Callable[[ConfirmationToken], None]) -> ConfirmationToken:
        record, version = self._load(owner_id, token)
        mutate(record)
        self._documents.compare_and_set(request_path(owner_id, token), version, record.to_dict())
        return record

    def mark_confirmed(
        self, owner_id: str, token: str, result: Optional[Dict[str, Any]] = None
    ) -> ConfirmationToken:
        def confirm(record: ConfirmationToken) -> None:
            record.status = TokenStatus.CONFIRMED.value
            record.consumed = True
            record.lease_expires_at = None
            record.last_error = None
            record.resolved_at = self._now().isoformat()
            record.result = result

        return self._finish(owner_id, token, confirm)

    def release(self, owner_id: str, token: str, error: str) -> ConfirmationToken:
        """Return a claimed token to ``pending`` after a failed apply."""

        def reopen(record: ConfirmationToken) -> None:
            record.status = TokenStatus.PENDING.value
            record.lease_expires_at = None
            record.last_error = error

        return self._finish(owner_id, token, reopen)

    def deny(self, owner_id: str, token: str) -> ConfirmationToken:
        """Move a pending token to ``denied``. The payload is dropped."""
        record, version = self._load(owner_id, token)
        self._check_usable(record, self._now().timestamp())
        record.status = TokenStatus.DENIED.value
        record.consumed = True
        record.resolved_at = self._now().isoformat()
        record.payload = {}
        try:
            self._documents.compare_and_set(request_path(owner_id, token), version, record.to_dict())
        except VersionConflictError:
            current, _ = self._load(owner_id, token)
            raise TokenConsumedError(token, current.status)
        logger.info(f"Denied {record.action} request for {owner_id}")
        return record
