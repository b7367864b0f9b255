"""Write and moderation permissions on published copies.

Legacy copies may lack ``write_mode`` (treated as owner_only) and
``owner_id`` (the older ``author_id`` is used instead). Group
memberships come from the auth layer as ``UserCredentials``.
"""

from typing import Dict, Iterable, List, Optional, Protocol, runtime_checkable

from ghostshare.errors import ValidationError
from ghostshare.types import VALID_WRITE_MODES, PublishedRecord, UserCredentials, WriteMode


@runtime_checkable
class CredentialsProvider(Protocol):
    def get_credentials(self, user_id: str) -> UserCredentials:
        ...


class StaticCredentialsProvider:
    """Fixed credentials per user; unknown users belong to no groups."""

    def __init__(self, credentials: Optional[Iterable[UserCredentials]] = None):
        self._by_user: Dict[str, UserCredentials] = {c.user_id: c for c in (credentials or [])}

    def get_credentials(self, user_id: str) -> UserCredentials:
        return self._by_user.get(user_id) or UserCredentials(user_id=user_id)


def effective_owner(published: PublishedRecord) -> Optional[str]:
    return published.owner_id or published.author_id


def effective_write_mode(published: PublishedRecord) -> WriteMode:
    mode = published.write_mode or WriteMode.OWNER_ONLY.value
    if mode not in VALID_WRITE_MODES:
        raise ValidationError(f"Invalid write mode on {published.id}: {mode}")
    return WriteMode(mode)


def _record_groups(published: PublishedRecord) -> List[str]:
    groups = list(published.group_memberships or [])
    if published.group_id and published.group_id not in groups:
        groups.append(published.group_id)
    return groups


def _group_grants(
    credentials: Optional[UserCredentials], published: PublishedRecord, permission: str
) -> bool:
    if credentials is None:
        return False
    for group_id in _record_groups(published):
        membership = credentials.membership(group_id)
        if membership is not None and getattr(membership.permissions, permission, False):
            return True
    return False


def _can_write(
    accessor_id: str,
    published: PublishedRecord,
    credentials: Optional[UserCredentials],
    permission: str,
) -> bool:
    mode = effective_write_mode(published)
    if not accessor_id:
        return False
    if accessor_id == effective_owner(published):
        return True
    if mode == WriteMode.OWNER_ONLY:
        return False
    if mode == WriteMode.GROUP_EDITORS:
        return _group_grants(credentials, published, permission)
    return True


def can_revise(
    accessor_id: str,
    published: PublishedRecord,
    credentials: Optional[UserCredentials] = None,
) -> bool:
    """Whether ``accessor_id`` may edit the content of a published copy."""
    return _can_write(accessor_id, published, credentials, "can_revise")


def can_overwrite(
    accessor_id: str,
    published: PublishedRecord,
    credentials: Optional[UserCredentials] = None,
) -> bool:
    """Like ``can_revise``, but ids on the overwrite allow-list always pass."""
    effective_write_mode(published)
    if accessor_id and accessor_id in (published.overwrite_allow_list or []):
        return True
    return _can_write(accessor_id, published, credentials, "can_overwrite")


def can_moderate(credentials: Optional[UserCredentials], group_id: str) -> bool:
    if credentials is None:
        return False
    membership = credentials.membership(group_id)
    return bool(membership and membership.permissions.can_moderate)


def can_moderate_any(credentials: Optional[UserCredentials]) -> bool:
    """Space-level moderation: moderator of at least one group."""
    if credentials is None:
        return False
    return any(m.permissions.can_moderate for m in credentials.group_memberships)
