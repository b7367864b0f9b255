"""Shared types for ghostshare.

Dataclasses for owner records, published copies, per-owner ghost
configuration, escalation state and confirmation tokens, plus the enums
and helpers the rest of the package builds on.
"""

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


def utc_now() -> str:
    """Get current timestamp as ISO string in UTC."""
    return datetime.now(timezone.utc).isoformat()


def now_utc() -> datetime:
    """Default clock for components that take a ``now_fn``."""
    return datetime.now(timezone.utc)


def parse_datetime(s: Optional[str]) -> Optional[datetime]:
    """Parse ISO datetime string, returning None for empty or invalid input."""
    if not s:
        return None
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None


# === Enums ===


class TrustTier(str, Enum):
    """Access tiers, ordered from most to least visible."""

    FULL_ACCESS = "full_access"
    PARTIAL_ACCESS = "partial_access"
    SUMMARY_ONLY = "summary_only"
    METADATA_ONLY = "metadata_only"
    EXISTENCE_ONLY = "existence_only"


class AccessLevel(str, Enum):
    OWNER = "owner"
    TRUSTED = "trusted"


class EnforcementMode(str, Enum):
    """How an owner's trust levels are applied to cross-user reads."""

    FILTER_AT_QUERY = "filter_at_query"  # inaccessible records never leave the store
    REDACT_AT_READ = "redact_at_read"  # everything is fetched, then redacted per tier
    HYBRID = "hybrid"  # filter for existence-only accessors, redact otherwise


class WriteMode(str, Enum):
    OWNER_ONLY = "owner_only"
    GROUP_EDITORS = "group_editors"
    ANYONE = "anyone"


class PendingAction(str, Enum):
    PUBLISH = "publish"
    RETRACT = "retract"
    REVISE = "revise"


class TokenStatus(str, Enum):
    PENDING = "pending"
    APPLYING = "applying"  # claimed by a confirm that has not finished yet
    CONFIRMED = "confirmed"
    DENIED = "denied"


class ModerationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    REMOVED = "removed"


VALID_ENFORCEMENT_MODES = frozenset(m.value for m in EnforcementMode)
VALID_WRITE_MODES = frozenset(m.value for m in WriteMode)
VALID_ACTIONS = frozenset(a.value for a in PendingAction)
TERMINAL_TOKEN_STATUSES = frozenset({TokenStatus.CONFIRMED.value, TokenStatus.DENIED.value})

# Moderation actions and the status each one sets
MODERATION_ACTIONS = {
    "approve": ModerationStatus.APPROVED.value,
    "reject": ModerationStatus.REJECTED.value,
    "remove": ModerationStatus.REMOVED.value,
}

# Cross-user conversational residue, hidden from ordinary listings
GHOST_CONTENT_TYPE = "ghost"
COMMENT_CONTENT_TYPE = "comment"


def _filter_fields(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in dataclasses.fields(cls)}
    return {k: v for k, v in data.items() if k in names}


# === Records ===


@dataclass
class Record:
    """An owner-scoped unit of content."""

    id: str
    owner_id: str
    trust_score: float = 0.25  # minimum trust an accessor needs to see it at all
    content_type: str = "note"
    doc_type: str = "memory"
    title: Optional[str] = None
    content: str = ""
    summary: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    # {"precise": ..., "address": ..., "gps": ..., "city": ...}
    location: Optional[Dict[str, Any]] = None
    participants: List[str] = field(default_factory=list)
    references: List[str] = field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    deleted_at: Optional[str] = None
    space_memberships: List[str] = field(default_factory=list)
    group_memberships: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Record":
        values = _filter_fields(cls, data)
        # Stored documents may carry explicit nulls for list fields
        for name in ("tags", "participants", "references", "space_memberships", "group_memberships"):
            if values.get(name) is None:
                values[name] = []
        return cls(**values)


@dataclass
class PublishedRecord(Record):
    """A copy of a Record living in a shared collection.

    ``owner_id`` and ``write_mode`` may be absent on legacy copies; the
    permission helpers fall back to ``author_id`` and ``owner_only``.
    """

    owner_id: Optional[str] = None  # never surfaced to unauthenticated readers
    author_id: Optional[str] = None  # legacy owner field
    composite_id: Optional[str] = None  # "{owner_id}.{record_id}", searchable
    source_record_id: Optional[str] = None
    spaces: List[str] = field(default_factory=list)  # spaces this copy appears in
    group_id: Optional[str] = None  # set on per-group copies
    published_at: Optional[str] = None
    revision_count: int = 0
    revised_at: Optional[str] = None
    revision_history: List[Dict[str, Any]] = field(default_factory=list)
    write_mode: Optional[str] = None
    moderation_status: Optional[str] = None  # None means approved
    moderated_by: Optional[str] = None
    moderated_at: Optional[str] = None
    overwrite_allow_list: List[str] = field(default_factory=list)
    revision_token: Optional[str] = None  # confirmation token of the last revise

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PublishedRecord":
        values = _filter_fields(cls, data)
        for name in (
            "tags",
            "participants",
            "references",
            "space_memberships",
            "group_memberships",
            "spaces",
            "revision_history",
            "overwrite_allow_list",
        ):
            if values.get(name) is None:
                values[name] = []
        return cls(**values)

    def public_dict(self) -> Dict[str, Any]:
        """Serialize without owner identity, for unauthenticated readers."""
        data = self.to_dict()
        for key in ("owner_id", "author_id", "overwrite_allow_list", "source_record_id", "revision_token"):
            data.pop(key, None)
        return data


@dataclass
class FormattedRecord:
    """A record as a non-owner sees it at a given tier."""

    record_id: str
    tier: TrustTier
    fields: Dict[str, Any] = field(default_factory=dict)
    redacted: List[str] = field(default_factory=list)  # names of removed fields

    def to_dict(self) -> Dict[str, Any]:
        return {
            "record_id": self.record_id,
            "tier": self.tier.value,
            **self.fields,
        }


# === Per-owner state ===


@dataclass
class GhostConfig:
    """Per-owner ghost configuration. Created lazily, never deleted."""

    enabled: bool = False
    allow_unknown_accessors: bool = False
    default_known_trust: float = 0.25
    default_unknown_trust: float = 0.0
    per_accessor_trust: Dict[str, float] = field(default_factory=dict)
    blocked_accessors: List[str] = field(default_factory=list)
    blocked_at: Dict[str, str] = field(default_factory=dict)  # accessor -> ISO timestamp
    enforcement_mode: str = EnforcementMode.FILTER_AT_QUERY.value
    updated_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "GhostConfig":
        if not data:
            return cls()
        return cls(**_filter_fields(cls, data))


@dataclass
class EscalationRecord:
    """Failed-attempt state for one (owner, accessor, record) triple."""

    owner_id: str
    accessor_id: str
    record_id: str
    failed_attempts: int = 0
    blocked: bool = False
    blocked_at: Optional[str] = None
    block_reason: Optional[str] = None
    last_attempt_at: Optional[str] = None
    # [{"reason": ..., "reset_at": ..., "reset_by": ..., "previous_attempts": ...}]
    reset_history: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EscalationRecord":
        return cls(**_filter_fields(cls, data))


@dataclass
class ConfirmationToken:
    """A staged mutation waiting for confirm or deny."""

    token: str
    owner_id: str
    action: str
    payload: Dict[str, Any]
    created_at: str
    expires_at: float  # epoch seconds
    consumed: bool = False
    status: str = TokenStatus.PENDING.value
    lease_expires_at: Optional[float] = None  # set while a confirm holds the claim
    attempts: int = 0
    last_error: Optional[str] = None
    resolved_at: Optional[str] = None
    result: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConfirmationToken":
        return cls(**_filter_fields(cls, data))


# === Group credentials (supplied by the auth layer) ===


@dataclass
class GroupPermissions:
    can_read: bool = True
    can_publish: bool = False
    can_revise: bool = False
    can_propose: bool = False
    can_overwrite: bool = False
    can_comment: bool = True
    can_retract_own: bool = True
    can_retract_any: bool = False
    can_manage_members: bool = False
    can_moderate: bool = False
    can_kick: bool = False
    can_ban: bool = False


@dataclass
class GroupMembership:
    group_id: str
    permissions: GroupPermissions = field(default_factory=GroupPermissions)


@dataclass
class UserCredentials:
    user_id: str
    group_memberships: List[GroupMembership] = field(default_factory=list)

    def membership(self, group_id: str) -> Optional[GroupMembership]:
        for m in self.group_memberships:
            if m.group_id == group_id:
                return m
        return None
