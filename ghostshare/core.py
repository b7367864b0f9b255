"""GhostShare: the operations adapters call.

Wires the stores into the trust, escalation, access, confirmation and
publication components and exposes them as one object. Every operation
takes the acting ids explicitly; ``user_id`` is only the identity an
adapter session runs as.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from ghostshare.access import AccessResolver
from ghostshare.access_result import AccessResult, format_access_result
from ghostshare.config import resolve_user_id
from ghostshare.confirmation import ConfirmationTokenStore
from ghostshare.contacts import ContactDirectory, DocumentContactDirectory
from ghostshare.errors import NotFoundError, ValidationError
from ghostshare.escalation import EscalationTracker
from ghostshare.ghost_config import GhostConfigStore
from ghostshare.identity import user_collection
from ghostshare.logging_config import log_access_decision, log_escalation, log_publication
from ghostshare.permissions import CredentialsProvider
from ghostshare.publication import PublicationCoordinator
from ghostshare.reader import RecordReader, SharedSearchFilters
from ghostshare.space_config import SpaceConfig, SpaceConfigStore
from ghostshare.storage.base import DocumentStore, RecordStore
from ghostshare.trust_policy import suggest_trust_level, validate_trust_assignment
from ghostshare.types import (
    ConfirmationToken,
    EscalationRecord,
    FormattedRecord,
    GhostConfig,
    PublishedRecord,
    Record,
    now_utc,
)

logger = logging.getLogger(__name__)


class GhostShare:
    """Trust-gated sharing of one store's records."""

    def __init__(
        self,
        user_id: Optional[str] = None,
        records: Optional[RecordStore] = None,
        documents: Optional[DocumentStore] = None,
        contacts: Optional[ContactDirectory] = None,
        credentials: Optional[CredentialsProvider] = None,
        db_path: Optional[str] = None,
        now_fn: Callable[[], datetime] = now_utc,
        audit: bool = True,
    ):
        self.user_id = resolve_user_id(user_id)
        if records is None or documents is None:
            from ghostshare.storage.sqlite import SQLiteStorage

            storage = SQLiteStorage(db_path)
            records = records or storage
            documents = documents or storage.documents
        self._records = records
        self._documents = documents
        self._now = now_fn
        self._audit = audit

        self.contacts = contacts or DocumentContactDirectory(documents)
        self.ghost_configs = GhostConfigStore(documents, self.contacts, now_fn)
        self.escalation = EscalationTracker(documents, now_fn)
        self.resolver = AccessResolver(records, self.ghost_configs, self.escalation)
        self.tokens = ConfirmationTokenStore(documents, now_fn)
        self.space_configs = SpaceConfigStore(documents)
        self.publications = PublicationCoordinator(
            records, self.tokens, self.space_configs, credentials, now_fn
        )
        self.reader = RecordReader(records, self.ghost_configs, self.resolver)

    # === Records ===

    def save_record(
        self,
        owner_id: str,
        content: str,
        title: Optional[str] = None,
        content_type: str = "note",
        tags: Optional[List[str]] = None,
        trust_score: Optional[float] = None,
        record_id: Optional[str] = None,
        **fields: Any,
    ) -> Record:
        """Create or overwrite an owner record.

        Without ``trust_score`` a level is suggested from type and tags.
        """
        if trust_score is None:
            trust_score = suggest_trust_level(content_type, tags)
        warning = validate_trust_assignment(trust_score)
        if warning:
            logger.warning(warning)
        record_id = record_id or uuid.uuid4().hex
        now = self._now().isoformat()
        existing = self.get_record(owner_id, record_id)
        record = Record(
            id=record_id,
            owner_id=owner_id,
            trust_score=float(trust_score),
            content_type=content_type,
            title=title,
            content=content,
            tags=list(tags or []),
            created_at=existing.created_at if existing else now,
            updated_at=now,
            space_memberships=existing.space_memberships if existing else [],
            group_memberships=existing.group_memberships if existing else [],
            **fields,
        )
        self._records.put(user_collection(owner_id), record_id, record.to_dict())
        return record

    def get_record(self, owner_id: str, record_id: str) -> Optional[Record]:
        data = self._records.get(user_collection(owner_id), record_id)
        return Record.from_dict(data) if data else None

    def delete_record(self, owner_id: str, record_id: str) -> Record:
        """Soft-delete: the record stays, marked with ``deleted_at``."""
        record = self.get_record(owner_id, record_id)
        if record is None:
            raise NotFoundError(f"Memory {record_id} not found.")
        if not record.deleted_at:
            record.deleted_at = self._now().isoformat()
            self._records.put(user_collection(owner_id), record_id, record.to_dict())
        return record

    # === Access ===

    def check_access(
        self, record_id: str, accessor_id: str, owner_id: Optional[str] = None
    ) -> AccessResult:
        result = self.resolver.check_access(record_id, accessor_id, owner_id)
        if self._audit:
            owner = owner_id or getattr(getattr(result, "record", None), "owner_id", None) or "?"
            log_access_decision(owner, accessor_id, record_id, result.status)
        return result

    def format_access_result(self, result: AccessResult) -> str:
        return format_access_result(result)

    def resolve_trust_level(self, owner_id: str, accessor_id: str) -> Optional[float]:
        """Configured trust, before any escalation penalty."""
        return self.ghost_configs.resolve_trust_level(owner_id, accessor_id)

    def effective_trust_level(self, owner_id: str, accessor_id: str) -> Optional[float]:
        return self.resolver.effective_trust_level(owner_id, accessor_id)

    def reset_block(self, owner_id: str, accessor_id: str, record_id: str, reason: str) -> EscalationRecord:
        rec = self.escalation.reset_block(owner_id, accessor_id, record_id, reason)
        if self._audit:
            log_escalation(owner_id, accessor_id, record_id, "reset", reason)
        return rec

    def escalation_status(self, owner_id: str, accessor_id: str, record_id: str) -> Optional[EscalationRecord]:
        return self.escalation.get_record(owner_id, accessor_id, record_id)

    # === Ghost config ===

    def get_ghost_config(self, owner_id: str) -> GhostConfig:
        return self.ghost_configs.get_config(owner_id)

    def update_ghost_config(self, owner_id: str, updates: Dict[str, Any]) -> GhostConfig:
        return self.ghost_configs.update_config(owner_id, updates)

    def reset_ghost_config(self, owner_id: str) -> GhostConfig:
        return self.ghost_configs.reset_config(owner_id)

    def set_trust(self, owner_id: str, accessor_id: str, level: float) -> GhostConfig:
        return self.ghost_configs.set_trust(owner_id, accessor_id, level)

    def remove_trust(self, owner_id: str, accessor_id: str) -> GhostConfig:
        return self.ghost_configs.remove_trust(owner_id, accessor_id)

    def block_user(self, owner_id: str, accessor_id: str) -> GhostConfig:
        return self.ghost_configs.block(owner_id, accessor_id)

    def unblock_user(self, owner_id: str, accessor_id: str) -> GhostConfig:
        return self.ghost_configs.unblock(owner_id, accessor_id)

    def add_contact(self, owner_id: str, contact_id: str) -> List[str]:
        if not isinstance(self.contacts, DocumentContactDirectory):
            raise ValidationError("Contacts are managed outside this store")
        return self.contacts.add_contact(owner_id, contact_id)

    def remove_contact(self, owner_id: str, contact_id: str) -> List[str]:
        if not isinstance(self.contacts, DocumentContactDirectory):
            raise ValidationError("Contacts are managed outside this store")
        return self.contacts.remove_contact(owner_id, contact_id)

    # === Publication ===

    def create_publish_request(
        self,
        owner_id: str,
        record_id: str,
        spaces: Optional[List[str]] = None,
        groups: Optional[List[str]] = None,
        additional_tags: Optional[List[str]] = None,
    ) -> ConfirmationToken:
        return self.publications.create_publish_request(owner_id, record_id, spaces, groups, additional_tags)

    def create_retract_request(
        self,
        owner_id: str,
        record_id: str,
        spaces: Optional[List[str]] = None,
        groups: Optional[List[str]] = None,
    ) -> ConfirmationToken:
        return self.publications.create_retract_request(owner_id, record_id, spaces, groups)

    def create_revise_request(self, owner_id: str, record_id: str) -> ConfirmationToken:
        return self.publications.create_revise_request(owner_id, record_id)

    def confirm_request(self, owner_id: str, token: str) -> Dict[str, Any]:
        result = self.publications.confirm_request(owner_id, token)
        if self._audit:
            log_publication(owner_id, result["action"], result["record_id"], "confirmed")
        return result

    def deny_request(self, owner_id: str, token: str) -> ConfirmationToken:
        denied = self.publications.deny_request(owner_id, token)
        if self._audit:
            log_publication(owner_id, denied.action, "-", "denied")
        return denied

    def moderate(
        self,
        moderator_id: str,
        external_id: str,
        action: str,
        space_id: Optional[str] = None,
        group_id: Optional[str] = None,
    ) -> PublishedRecord:
        return self.publications.moderate(moderator_id, external_id, action, space_id, group_id)

    def get_space_config(self, kind: str, ident: str) -> SpaceConfig:
        return self.space_configs.get_config(kind, ident)

    def set_space_config(self, kind: str, ident: str, updates: Dict[str, Any]) -> SpaceConfig:
        return self.space_configs.set_config(kind, ident, updates)

    # === Reads ===

    def search_shared(
        self,
        query: str,
        filters: Optional[SharedSearchFilters] = None,
        viewer_id: Optional[str] = None,
        limit: int = 10,
    ) -> List[Dict[str, Any]]:
        return self.reader.search_shared(query, filters, viewer_id, limit)

    def search_as_accessor(
        self, owner_id: str, accessor_id: str, query: str, include_ghost: bool = False, limit: int = 10
    ) -> List[FormattedRecord]:
        return self.reader.search_as_accessor(owner_id, accessor_id, query, include_ghost, limit)

    def read_as_accessor(
        self, record_id: str, accessor_id: str, owner_id: Optional[str] = None
    ) -> Tuple[AccessResult, Optional[FormattedRecord]]:
        result, formatted = self.reader.read_as_accessor(record_id, accessor_id, owner_id)
        if self._audit:
            owner = owner_id or getattr(getattr(result, "record", None), "owner_id", None) or "?"
            log_access_decision(owner, accessor_id, record_id, result.status, "read")
        return result, formatted
