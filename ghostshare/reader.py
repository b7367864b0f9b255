"""Reads across ownership boundaries.

Two read paths:
- shared search over ``spaces_public`` and ``groups_*`` copies, with
  moderation, content-type, tag and date filters
- ghost reads of one owner's private records by another user, where the
  owner's enforcement mode decides whether trust is applied in the
  store query, after fetching, or both
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ghostshare.access import AccessResolver
from ghostshare.access_result import AccessResult, Granted
from ghostshare.errors import ValidationError
from ghostshare.ghost_config import GhostConfigStore
from ghostshare.identity import SPACES_COLLECTION, group_collection, user_collection
from ghostshare.predicates import Eq, In, IsNull, Not, Predicate, Range, all_of, any_of
from ghostshare.storage.base import RecordStore
from ghostshare.trust_policy import build_trust_predicate, classify, format_for_accessor
from ghostshare.types import (
    COMMENT_CONTENT_TYPE,
    GHOST_CONTENT_TYPE,
    AccessLevel,
    EnforcementMode,
    FormattedRecord,
    ModerationStatus,
    PublishedRecord,
    Record,
    TrustTier,
)

logger = logging.getLogger(__name__)

MAX_LIMIT = 100


@dataclass
class SharedSearchFilters:
    spaces: Optional[List[str]] = None  # None with no groups means every space
    groups: Optional[List[str]] = None
    content_type: Optional[str] = None
    tags: Optional[List[str]] = None
    moderation: str = ModerationStatus.APPROVED.value  # or "all"
    include_comments: bool = False
    include_ghost: bool = False
    date_from: Optional[str] = None
    date_to: Optional[str] = None


def moderation_predicate(status: str) -> Optional[Predicate]:
    """Copies without a status predate moderation and count as approved."""
    if status == "all":
        return None
    if status == ModerationStatus.APPROVED.value:
        return any_of(Eq("moderation_status", status), IsNull("moderation_status"))
    if status in {s.value for s in ModerationStatus}:
        return Eq("moderation_status", status)
    raise ValidationError(f"Unknown moderation filter: {status}")


def content_type_predicate(
    content_type: Optional[str], include_comments: bool, include_ghost: bool
) -> Optional[Predicate]:
    if content_type:
        return Eq("content_type", content_type)
    excluded = []
    if not include_comments:
        excluded.append(COMMENT_CONTENT_TYPE)
    if not include_ghost:
        excluded.append(GHOST_CONTENT_TYPE)
    return Not(In("content_type", excluded)) if excluded else None


def date_predicate(date_from: Optional[str], date_to: Optional[str]) -> Optional[Predicate]:
    if not date_from and not date_to:
        return None
    return Range("created_at", gte=date_from, lte=date_to)


class RecordReader:
    def __init__(
        self,
        records: RecordStore,
        ghost_configs: GhostConfigStore,
        resolver: AccessResolver,
    ):
        self._records = records
        self._ghost_configs = ghost_configs
        self._resolver = resolver

    # =========================================================================
    # Shared collections
    # =========================================================================

    def search_shared(
        self,
        query: str,
        filters: Optional[SharedSearchFilters] = None,
        viewer_id: Optional[str] = None,
        limit: int = 10,
    ) -> List[Dict[str, Any]]:
        """Search published copies.

        Owner identity is stripped from results for anonymous viewers.
        """
        filters = filters or SharedSearchFilters()
        limit = max(1, min(limit, MAX_LIMIT))
        base = all_of(
            moderation_predicate(filters.moderation),
            content_type_predicate(filters.content_type, filters.include_comments, filters.include_ghost),
            In("tags", filters.tags) if filters.tags else None,
            date_predicate(filters.date_from, filters.date_to),
        )

        targets: List[Tuple[str, Optional[Predicate]]] = []
        if filters.spaces or not filters.groups:
            space_filter = In("spaces", filters.spaces) if filters.spaces else None
            targets.append((SPACES_COLLECTION, all_of(base, space_filter)))
        for group_id in filters.groups or []:
            targets.append((group_collection(group_id), base))

        hits = []
        for collection, predicate in targets:
            hits.extend(self._records.search(collection, query, predicate, limit))
        hits.sort(key=lambda r: (-r.score, r.id))

        results = []
        for hit in hits[:limit]:
            copy = PublishedRecord.from_dict(hit.data)
            data = copy.to_dict() if viewer_id else copy.public_dict()
            data["collection"] = hit.collection
            data["score"] = hit.score
            results.append(data)
        logger.debug(f"Shared search '{query}' returned {len(results)} results")
        return results

    # =========================================================================
    # Ghost reads of private records
    # =========================================================================

    def read_as_accessor(
        self, record_id: str, accessor_id: str, owner_id: Optional[str] = None
    ) -> Tuple[AccessResult, Optional[FormattedRecord]]:
        """Check access and, when granted, redact the record for the accessor."""
        result = self._resolver.check_access(record_id, accessor_id, owner_id)
        if not isinstance(result, Granted):
            return result, None
        if result.level == AccessLevel.OWNER:
            return result, format_for_accessor(result.record, 1.0, is_owner=True)
        trust = self._resolver.effective_trust_level(result.record.owner_id, accessor_id) or 0.0
        return result, format_for_accessor(result.record, trust)

    def search_as_accessor(
        self,
        owner_id: str,
        accessor_id: str,
        query: str,
        include_ghost: bool = False,
        limit: int = 10,
    ) -> List[FormattedRecord]:
        """Search an owner's records as ``accessor_id`` sees them."""
        limit = max(1, min(limit, MAX_LIMIT))
        base = all_of(
            IsNull("deleted_at"),
            Eq("doc_type", "memory"),
            content_type_predicate(None, include_comments=True, include_ghost=include_ghost),
        )
        collection = user_collection(owner_id)

        if owner_id == accessor_id:
            hits = self._records.search(collection, query, base, limit)
            return [format_for_accessor(Record.from_dict(h.data), 1.0, is_owner=True) for h in hits]

        config = self._ghost_configs.get_config(owner_id)
        if not config.enabled:
            logger.debug(f"Ghost search by {accessor_id} refused: disabled for {owner_id}")
            return []
        trust = self._resolver.effective_trust_level(owner_id, accessor_id)
        if trust is None:
            logger.debug(f"Ghost search by {accessor_id} refused: no trust for {owner_id}")
            return []

        mode = EnforcementMode(config.enforcement_mode)
        filter_in_query = mode == EnforcementMode.FILTER_AT_QUERY or (
            mode == EnforcementMode.HYBRID and classify(trust) == TrustTier.EXISTENCE_ONLY
        )
        predicate = all_of(base, build_trust_predicate(trust)) if filter_in_query else base

        results = []
        for hit in self._records.search(collection, query, predicate, limit):
            record = Record.from_dict(hit.data)
            if record.trust_score > trust:
                results.append(format_for_accessor(record, 0.0))
            else:
                results.append(format_for_accessor(record, trust))
        return results
