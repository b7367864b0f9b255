"""Identifier derivation for shared collections.

Shared copies live under an id derived from ``"{owner_id}.{record_id}"``.
The derived id is a UUIDv5, so the logical pair cannot be read back
from it; every shared copy also stores the composite string as a plain
``composite_id`` attribute for reverse lookup.
"""

import logging
import uuid
from typing import Optional, Tuple

from ghostshare.errors import ValidationError

logger = logging.getLogger(__name__)

SEPARATOR = "."

# Fixed namespace; changing it would orphan every existing shared copy
GHOSTSHARE_NAMESPACE = uuid.UUID("6f1c2b7e-4a3d-5e8f-9b0a-1c2d3e4f5a6b")

USERS_PREFIX = "users_"
SPACES_COLLECTION = "spaces_public"
GROUPS_PREFIX = "groups_"


def _check_part(value: str, field_name: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{field_name} must be a non-empty string")
    if SEPARATOR in value:
        raise ValidationError(f"{field_name} cannot contain '{SEPARATOR}': {value}")
    return value


def composite_id(owner_id: str, record_id: str) -> str:
    """Build the logical ``"{owner_id}.{record_id}"`` key."""
    _check_part(owner_id, "owner_id")
    _check_part(record_id, "record_id")
    return f"{owner_id}{SEPARATOR}{record_id}"


def derive(owner_id: str, record_id: str) -> str:
    """Derive the storage id for a shared copy of ``record_id``.

    Deterministic: the same pair always yields the same id.

    Raises:
        ValidationError: If either part is empty or contains ``.``
    """
    return str(uuid.uuid5(GHOSTSHARE_NAMESPACE, composite_id(owner_id, record_id)))


def parse_composite_id(value: str) -> Tuple[str, str]:
    """Split a composite id into ``(owner_id, record_id)``."""
    if not isinstance(value, str) or not value:
        raise ValidationError("composite_id must be a non-empty string")
    parts = value.split(SEPARATOR)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValidationError(f"Invalid composite id: {value}")
    return parts[0], parts[1]


def is_composite_id(value: str) -> bool:
    try:
        parse_composite_id(value)
    except ValidationError:
        return False
    return True


def belongs_to_owner(value: str, owner_id: str) -> bool:
    """True if ``value`` is a composite id owned by ``owner_id``."""
    if not is_composite_id(value):
        return False
    return parse_composite_id(value)[0] == owner_id


# =============================================================================
# Collection naming
# =============================================================================


def user_collection(owner_id: str) -> str:
    return USERS_PREFIX + _check_part(owner_id, "owner_id")


def group_collection(group_id: str) -> str:
    return GROUPS_PREFIX + _check_part(group_id, "group_id")


def collection_name(kind: str, ident: Optional[str] = None) -> str:
    """Collection name for ``kind`` in ``{"users", "spaces", "groups"}``."""
    if kind == "users":
        return user_collection(ident or "")
    if kind == "groups":
        return group_collection(ident or "")
    if kind == "spaces":
        return SPACES_COLLECTION
    raise ValidationError(f"Unknown collection kind: {kind}")


def parse_collection_name(name: str) -> Tuple[str, Optional[str]]:
    """Inverse of ``collection_name``: returns ``(kind, id)``."""
    if name == SPACES_COLLECTION:
        return "spaces", None
    if name.startswith(USERS_PREFIX) and len(name) > len(USERS_PREFIX):
        return "users", name[len(USERS_PREFIX) :]
    if name.startswith(GROUPS_PREFIX) and len(name) > len(GROUPS_PREFIX):
        return "groups", name[len(GROUPS_PREFIX) :]
    raise ValidationError(f"Unrecognized collection name: {name}")
