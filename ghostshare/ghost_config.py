"""Per-owner ghost configuration and trust resolution.

Each owner has one GhostConfig document at ``owner/{owner_id}/ghost_config``.
Reading an owner who never wrote one yields the defaults. Every mutation
is an owner-scoped partial update applied with optimistic retries, so
concurrent edits by the same owner do not overwrite each other.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Optional

from ghostshare.contacts import ContactDirectory, NoContacts
from ghostshare.errors import ValidationError
from ghostshare.storage.base import DocumentStore, atomic_update
from ghostshare.storage.paths import ghost_config_path
from ghostshare.tracking import add, remove
from ghostshare.trust_policy import validate_trust
from ghostshare.types import VALID_ENFORCEMENT_MODES, GhostConfig, now_utc

logger = logging.getLogger(__name__)

_BOOL_FIELDS = frozenset({"enabled", "allow_unknown_accessors"})
_TRUST_FIELDS = frozenset({"default_known_trust", "default_unknown_trust"})
UPDATABLE_FIELDS = _BOOL_FIELDS | _TRUST_FIELDS | {"enforcement_mode"}


class ResolutionReason(str, Enum):
    BLOCKED = "blocked"
    PER_ACCESSOR = "per_accessor"
    KNOWN_CONTACT = "known_contact"
    UNKNOWN_DEFAULT = "unknown_default"
    NO_RELATIONSHIP = "no_relationship"


@dataclass(frozen=True)
class TrustResolution:
    """Outcome of resolving an accessor's configured trust for an owner."""

    level: Optional[float]
    reason: ResolutionReason
    enabled: bool  # owner's ghost feature flag, reported alongside
    blocked_at: Optional[str] = None


def validate_config_update(updates: Dict[str, Any]) -> Dict[str, Any]:
    """Check a partial GhostConfig update before anything is written.

    Raises:
        ValidationError: On unknown fields, wrong types or out-of-range values
    """
    if not isinstance(updates, dict):
        raise ValidationError("updates must be a mapping")
    unknown = sorted(set(updates) - UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown ghost config fields: {', '.join(unknown)}")
    for name, value in updates.items():
        if name in _BOOL_FIELDS and not isinstance(value, bool):
            raise ValidationError(f"{name} must be a boolean")
        if name in _TRUST_FIELDS:
            validate_trust(value, name)
        if name == "enforcement_mode" and value not in VALID_ENFORCEMENT_MODES:
            raise ValidationError(
                f"enforcement_mode must be one of {sorted(VALID_ENFORCEMENT_MODES)}, got '{value}'"
            )
    return dict(updates)


class GhostConfigStore:
    """Owner-scoped ghost configuration backed by a DocumentStore."""

    def __init__(
        self,
        documents: DocumentStore,
        contacts: Optional[ContactDirectory] = None,
        now_fn: Callable[[], datetime] = now_utc,
    ):
        self._documents = documents
        self._contacts = contacts or NoContacts()
        self._now = now_fn

    def get_config(self, owner_id: str) -> GhostConfig:
        """Return the owner's config, or defaults if none was ever written."""
        return GhostConfig.from_dict(self._documents.get(ghost_config_path(owner_id)))

    def _mutate(self, owner_id: str, change: Callable[[GhostConfig], None]) -> GhostConfig:
        def apply(current: Optional[Dict[str, Any]]) -> Dict[str, Any]:
            config = GhostConfig.from_dict(current)
            change(config)
            config.updated_at = self._now().isoformat()
            return config.to_dict()

        return GhostConfig.from_dict(atomic_update(self._documents, ghost_config_path(owner_id), apply))

    def update_config(self, owner_id: str, updates: Dict[str, Any]) -> GhostConfig:
        updates = validate_config_update(updates)

        def change(config: GhostConfig) -> None:
            for name, value in updates.items():
                setattr(config, name, float(value) if name in _TRUST_FIELDS else value)

        config = self._mutate(owner_id, change)
        logger.info(f"Ghost config updated for {owner_id}: {sorted(updates)}")
        return config

    def set_trust(self, owner_id: str, accessor_id: str, level: float) -> GhostConfig:
        if owner_id == accessor_id:
            raise ValidationError("Cannot set trust level for yourself.")
        level = validate_trust(level, "trust_level")

        def change(config: GhostConfig) -> None:
            config.per_accessor_trust[accessor_id] = level

        config = self._mutate(owner_id, change)
        logger.info(f"Trust for {accessor_id} set to {level} by {owner_id}")
        return config

    def remove_trust(self, owner_id: str, accessor_id: str) -> GhostConfig:
        def change(config: GhostConfig) -> None:
            config.per_accessor_trust.pop(accessor_id, None)

        return self._mutate(owner_id, change)

    def block(self, owner_id: str, accessor_id: str) -> GhostConfig:
        if owner_id == accessor_id:
            raise ValidationError("Cannot block yourself.")

        def change(config: GhostConfig) -> None:
            if accessor_id not in config.blocked_accessors:
                config.blocked_at[accessor_id] = self._now().isoformat()
            config.blocked_accessors = add(config.blocked_accessors, accessor_id)

        config = self._mutate(owner_id, change)
        logger.info(f"{owner_id} blocked {accessor_id}")
        return config

    def unblock(self, owner_id: str, accessor_id: str) -> GhostConfig:
        def change(config: GhostConfig) -> None:
            config.blocked_accessors = remove(config.blocked_accessors, accessor_id)
            config.blocked_at.pop(accessor_id, None)

        config = self._mutate(owner_id, change)
        logger.info(f"{owner_id} unblocked {accessor_id}")
        return config

    def reset_config(self, owner_id: str) -> GhostConfig:
        """Restore defaults. Configs are reset, never deleted."""
        config = GhostConfig(updated_at=self._now().isoformat())
        self._documents.set(ghost_config_path(owner_id), config.to_dict())
        logger.info(f"Ghost config reset for {owner_id}")
        return config

    def resolve(self, owner_id: str, accessor_id: str) -> TrustResolution:
        """Resolve configured trust, in priority order.

        1. blocked accessor -> None
        2. explicit per-accessor trust
        3. known contact -> default_known_trust
        4. unknown accessors allowed -> default_unknown_trust
        5. otherwise None
        """
        config = self.get_config(owner_id)
        if accessor_id in config.blocked_accessors:
            return TrustResolution(
                None,
                ResolutionReason.BLOCKED,
                config.enabled,
                blocked_at=config.blocked_at.get(accessor_id),
            )
        if accessor_id in config.per_accessor_trust:
            return TrustResolution(
                float(config.per_accessor_trust[accessor_id]),
                ResolutionReason.PER_ACCESSOR,
                config.enabled,
            )
        if self._contacts.is_known(owner_id, accessor_id):
            return TrustResolution(
                config.default_known_trust, ResolutionReason.KNOWN_CONTACT, config.enabled
            )
        if config.allow_unknown_accessors:
            return TrustResolution(
                config.default_unknown_trust, ResolutionReason.UNKNOWN_DEFAULT, config.enabled
            )
        return TrustResolution(None, ResolutionReason.NO_RELATIONSHIP, config.enabled)

    def resolve_trust_level(self, owner_id: str, accessor_id: str) -> Optional[float]:
        return self.resolve(owner_id, accessor_id).level
