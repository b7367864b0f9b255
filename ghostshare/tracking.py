"""Membership arrays on owner records.

A record remembers where it has been published in two ordered,
deduplicated lists: ``space_memberships`` and ``group_memberships``.
Every helper returns a new list or record and leaves its input alone.
"""

import dataclasses
from typing import Dict, Iterable, List, Optional

from ghostshare.types import Record


def add(arr: Optional[List[str]], item: str) -> List[str]:
    """Append ``item`` unless present. Insertion order is preserved."""
    current = list(arr or [])
    if item in current:
        return current
    current.append(item)
    return current


def remove(arr: Optional[List[str]], item: str) -> List[str]:
    """Drop ``item``. Removing an absent item is a no-op."""
    return [x for x in (arr or []) if x != item]


def add_many(arr: Optional[List[str]], items: Iterable[str]) -> List[str]:
    current = list(arr or [])
    for item in items:
        if item not in current:
            current.append(item)
    return current


def remove_many(arr: Optional[List[str]], items: Iterable[str]) -> List[str]:
    drop = set(items)
    return [x for x in (arr or []) if x not in drop]


# =============================================================================
# Record-level helpers
# =============================================================================


def initialize_tracking(record: Record) -> Record:
    """Return a copy with both membership arrays present and deduplicated."""
    return dataclasses.replace(
        record,
        space_memberships=add_many([], record.space_memberships or []),
        group_memberships=add_many([], record.group_memberships or []),
    )


def add_to_spaces(record: Record, space_ids: Iterable[str]) -> Record:
    return dataclasses.replace(
        record, space_memberships=add_many(record.space_memberships, space_ids)
    )


def remove_from_spaces(record: Record, space_ids: Iterable[str]) -> Record:
    return dataclasses.replace(
        record, space_memberships=remove_many(record.space_memberships, space_ids)
    )


def add_to_groups(record: Record, group_ids: Iterable[str]) -> Record:
    return dataclasses.replace(
        record, group_memberships=add_many(record.group_memberships, group_ids)
    )


def remove_from_groups(record: Record, group_ids: Iterable[str]) -> Record:
    return dataclasses.replace(
        record, group_memberships=remove_many(record.group_memberships, group_ids)
    )


def is_published_to_space(record: Record, space_id: str) -> bool:
    return space_id in (record.space_memberships or [])


def is_published_to_group(record: Record, group_id: str) -> bool:
    return group_id in (record.group_memberships or [])


def is_published(record: Record) -> bool:
    return bool(record.space_memberships) or bool(record.group_memberships)


def published_locations(record: Record) -> Dict[str, List[str]]:
    return {
        "spaces": list(record.space_memberships or []),
        "groups": list(record.group_memberships or []),
    }


def published_count(record: Record) -> int:
    return len(record.space_memberships or []) + len(record.group_memberships or [])
