"""Access decisions.

``AccessResult`` is a closed union of six frozen dataclasses. Each
carries a ``status`` discriminator. Denials are ordinary values that
callers branch on; they are never raised.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from ghostshare.types import AccessLevel, Record


@dataclass(frozen=True)
class Granted:
    record: Record
    level: AccessLevel
    status: str = field(default="granted", init=False)


@dataclass(frozen=True)
class InsufficientTrust:
    record_id: str
    required_trust: float
    actual_trust: float
    attempts_remaining: int
    status: str = field(default="insufficient_trust", init=False)


@dataclass(frozen=True)
class Blocked:
    record_id: str
    reason: str
    blocked_at: Optional[str] = None
    status: str = field(default="blocked", init=False)


@dataclass(frozen=True)
class NoPermission:
    owner_id: str
    accessor_id: str
    status: str = field(default="no_permission", init=False)


@dataclass(frozen=True)
class NotFound:
    record_id: str
    status: str = field(default="not_found", init=False)


@dataclass(frozen=True)
class Deleted:
    record_id: str
    deleted_at: str
    status: str = field(default="deleted", init=False)


AccessResult = Union[Granted, InsufficientTrust, Blocked, NoPermission, NotFound, Deleted]

ACCESS_RESULT_TYPES = (Granted, InsufficientTrust, Blocked, NoPermission, NotFound, Deleted)


def format_access_result(result: AccessResult) -> str:
    """One user-facing message per variant. Presentation only."""
    if isinstance(result, Granted):
        return f"Access granted ({result.level.value})."
    if isinstance(result, InsufficientTrust):
        return (
            f"Insufficient trust level. Required: {result.required_trust:.2f}, "
            f"actual: {result.actual_trust:.2f}. "
            f"{result.attempts_remaining} attempt(s) remaining before access is blocked."
        )
    if isinstance(result, Blocked):
        return f"Access blocked: {result.reason}"
    if isinstance(result, NoPermission):
        return "No permission to access this user's memories."
    if isinstance(result, NotFound):
        return f"Memory {result.record_id} not found."
    if isinstance(result, Deleted):
        return f"Memory {result.record_id} was deleted on {result.deleted_at}."
    raise TypeError(f"Not an access result: {type(result).__name__}")


def access_result_to_dict(result: AccessResult) -> Dict[str, Any]:
    """JSON-friendly view for adapters. Granted records are reduced to their id."""
    if isinstance(result, Granted):
        return {"status": result.status, "record_id": result.record.id, "level": result.level.value}
    if isinstance(result, InsufficientTrust):
        return {
            "status": result.status,
            "record_id": result.record_id,
            "required_trust": result.required_trust,
            "actual_trust": result.actual_trust,
            "attempts_remaining": result.attempts_remaining,
        }
    if isinstance(result, Blocked):
        return {
            "status": result.status,
            "record_id": result.record_id,
            "reason": result.reason,
            "blocked_at": result.blocked_at,
        }
    if isinstance(result, NoPermission):
        return {"status": result.status, "owner_id": result.owner_id, "accessor_id": result.accessor_id}
    if isinstance(result, NotFound):
        return {"status": result.status, "record_id": result.record_id}
    if isinstance(result, Deleted):
        return {"status": result.status, "record_id": result.record_id, "deleted_at": result.deleted_at}
    raise TypeError(f"Not an access result: {type(result).__name__}")
