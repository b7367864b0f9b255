"""Trust tiers and per-tier redaction.

A trust level is a scalar in [0, 1]. Five tiers with inclusive lower
bounds decide how much of a record a non-owner sees:

    1.0   full access       everything
    0.75  partial access    body, without precise location, participants, references
    0.5   summary only      title, derived summary, city-level location
    0.25  metadata only     title, type, tags, creation date
    0.0   existence only    a stub saying the record exists

All functions here are pure.
"""

import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from ghostshare.errors import ValidationError
from ghostshare.predicates import Range
from ghostshare.types import FormattedRecord, Record, TrustTier

logger = logging.getLogger(__name__)

# Ordered highest first; the first bound <= trust wins
TIER_THRESHOLDS: List[Tuple[float, TrustTier]] = [
    (1.0, TrustTier.FULL_ACCESS),
    (0.75, TrustTier.PARTIAL_ACCESS),
    (0.5, TrustTier.SUMMARY_ONLY),
    (0.25, TrustTier.METADATA_ONLY),
    (0.0, TrustTier.EXISTENCE_ONLY),
]

TIER_RANK = {tier: rank for rank, (_, tier) in enumerate(reversed(TIER_THRESHOLDS))}

TIER_LABELS = {
    TrustTier.FULL_ACCESS: "Full Access",
    TrustTier.PARTIAL_ACCESS: "Partial Access",
    TrustTier.SUMMARY_ONLY: "Summary Only",
    TrustTier.METADATA_ONLY: "Metadata Only",
    TrustTier.EXISTENCE_ONLY: "Existence Only",
}

TIER_INSTRUCTIONS = {
    TrustTier.FULL_ACCESS: (
        "You have full access to this memory. Share all content and details freely."
    ),
    TrustTier.PARTIAL_ACCESS: (
        "You have partial access. Share the main content but do not reveal sensitive "
        "personal details like exact locations, participants, or references."
    ),
    TrustTier.SUMMARY_ONLY: (
        "You have summary-level access. Share the title and summary only. "
        "Do not reveal the full content of this memory."
    ),
    TrustTier.METADATA_ONLY: (
        "You have metadata-level access only. You may mention the type, date, and tags, "
        "but do not reveal any content or summary."
    ),
    TrustTier.EXISTENCE_ONLY: (
        "You may only acknowledge that a memory exists about this topic. "
        "Do not reveal any details."
    ),
}

EXISTENCE_STUB = "A memory exists about this topic."
NO_SUMMARY = "(No summary available)"
SUMMARY_MAX_CHARS = 200

# Location keys that pinpoint a place; "city" is the only coarse key
PRECISE_LOCATION_KEYS = ("precise", "address", "gps")

# Tag and content-type hints for suggest_trust_level
_PRIVATE_TAGS = frozenset({"private", "secret"})
_PUBLIC_TAGS = frozenset({"public"})
_PERSONAL_TYPES = frozenset({"journal", "memory", "event", "ghost"})
_SUMMARY_TYPES = frozenset(
    {
        "system",
        "audit",
        "action",
        "history",
        "invoice",
        "contract",
        "email",
        "conversation",
        "meeting",
    }
)


def validate_trust(trust: Any, field_name: str = "trust") -> float:
    """Check that ``trust`` is a real number in [0, 1].

    Raises:
        ValidationError: On wrong type, NaN, or out-of-range values
    """
    if isinstance(trust, bool) or not isinstance(trust, (int, float)):
        raise ValidationError(f"{field_name} must be a number, got {type(trust).__name__}")
    if math.isnan(trust) or trust < 0.0 or trust > 1.0:
        raise ValidationError(f"{field_name} must be between 0 and 1, got {trust}")
    return float(trust)


def classify(trust: float) -> TrustTier:
    """Map a trust level to its tier. Values outside [0, 1] are rejected."""
    trust = validate_trust(trust)
    for bound, tier in TIER_THRESHOLDS:
        if trust >= bound:
            return tier
    return TrustTier.EXISTENCE_ONLY


def is_sufficient(record_trust: float, accessor_trust: float) -> bool:
    return accessor_trust >= record_trust


def tier_label(trust: float) -> str:
    return TIER_LABELS[classify(trust)]


def trust_instructions(trust: float) -> str:
    """Guidance text describing what may be revealed at ``trust``."""
    return TIER_INSTRUCTIONS[classify(trust)]


def derive_summary(record: Record) -> str:
    if record.summary:
        return record.summary
    text = (record.content or "").strip()
    if not text:
        return NO_SUMMARY
    if len(text) <= SUMMARY_MAX_CHARS:
        return text
    return text[: SUMMARY_MAX_CHARS - 3].rstrip() + "..."


def _coarse_location(location: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not location or not location.get("city"):
        return None
    return {"city": location["city"]}


def _without_precise(location: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not location:
        return None
    kept = {k: v for k, v in location.items() if k not in PRECISE_LOCATION_KEYS}
    return kept or None


def redact(record: Record, tier: TrustTier) -> FormattedRecord:
    """Strip fields from ``record`` progressively as the tier decreases."""
    if tier == TrustTier.EXISTENCE_ONLY:
        return FormattedRecord(
            record_id=record.id,
            tier=tier,
            fields={"content": EXISTENCE_STUB},
            redacted=["title", "content", "summary", "tags", "location", "participants"],
        )

    if tier == TrustTier.METADATA_ONLY:
        return FormattedRecord(
            record_id=record.id,
            tier=tier,
            fields={
                "title": record.title,
                "content_type": record.content_type,
                "tags": list(record.tags),
                "created_at": record.created_at,
            },
            redacted=["content", "summary", "location", "participants", "references"],
        )

    if tier == TrustTier.SUMMARY_ONLY:
        return FormattedRecord(
            record_id=record.id,
            tier=tier,
            fields={
                "title": record.title,
                "content_type": record.content_type,
                "summary": derive_summary(record),
                "tags": list(record.tags),
                "location": _coarse_location(record.location),
                "created_at": record.created_at,
            },
            redacted=["content", "participants", "references"],
        )

    fields: Dict[str, Any] = {
        "title": record.title,
        "content_type": record.content_type,
        "content": record.content,
        "summary": record.summary,
        "tags": list(record.tags),
        "created_at": record.created_at,
    }
    if tier == TrustTier.PARTIAL_ACCESS:
        fields["location"] = _without_precise(record.location)
        return FormattedRecord(
            record_id=record.id,
            tier=tier,
            fields=fields,
            redacted=["precise_location", "participants", "references"],
        )

    fields["location"] = dict(record.location) if record.location else None
    fields["participants"] = list(record.participants)
    fields["references"] = list(record.references)
    return FormattedRecord(record_id=record.id, tier=tier, fields=fields)


def format_for_accessor(record: Record, accessor_trust: float, is_owner: bool = False) -> FormattedRecord:
    """Redact ``record`` for a reader with ``accessor_trust``.

    Records with trust 1.0 are existence-only for every non-owner,
    whatever the reader's trust.
    """
    if is_owner:
        return redact(record, TrustTier.FULL_ACCESS)
    if record.trust_score >= 1.0:
        return redact(record, TrustTier.EXISTENCE_ONLY)
    return redact(record, classify(accessor_trust))


def build_trust_predicate(accessor_trust: float) -> Range:
    """Store predicate matching records an accessor may see: ``trust_score <= trust``."""
    return Range("trust_score", lte=validate_trust(accessor_trust))


def suggest_trust_level(content_type: str, tags: Optional[List[str]] = None) -> float:
    """Suggest a record trust level from its content type and tags."""
    lowered = {t.lower() for t in (tags or [])}
    if lowered & _PRIVATE_TAGS:
        return 0.1
    if lowered & _PUBLIC_TAGS:
        return 1.0
    if content_type in _PERSONAL_TYPES:
        return 0.75
    if content_type in _SUMMARY_TYPES:
        return 0.5
    return 0.25


def validate_trust_assignment(trust: Any) -> Optional[str]:
    """Validate a trust level being assigned to a record.

    Returns:
        A warning for very restrictive levels, otherwise None

    Raises:
        ValidationError: If the level is outside [0, 1]
    """
    trust = validate_trust(trust)
    if trust < 0.25:
        return (
            f"Trust level {trust} is very restrictive: most accessors will only see "
            "that this memory exists. Consider 0.25 or higher for metadata visibility."
        )
    return None
