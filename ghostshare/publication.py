"""Publish, retract and revise as two-phase operations.

Phase one validates the request against the owner's record and stages
it behind a confirmation token. Phase two (``confirm_request``) claims
the token and applies the mutation; ``deny_request`` drops it.

Apply order keeps membership arrays from ever pointing at a missing
shared copy:
- publish writes the shared copies first, then adds memberships
- retract removes memberships first, then the shared copies

Shared copies are stored under ``identity.derive(owner, record)``, so
re-applying a publish overwrites in place instead of duplicating.
Moderation is single-phase: it only changes status fields on a copy.
"""

import dataclasses
import functools
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from ghostshare.confirmation import ConfirmationTokenStore
from ghostshare.errors import (
    NotFoundError,
    PermissionDeniedError,
    StorageError,
    ValidationError,
)
from ghostshare.identity import SPACES_COLLECTION, composite_id, derive, group_collection, user_collection
from ghostshare.permissions import (
    CredentialsProvider,
    StaticCredentialsProvider,
    can_moderate,
    can_moderate_any,
    can_revise,
)
from ghostshare.space_config import GROUP, SPACE, SpaceConfigStore, validate_group_id, validate_space_id
from ghostshare.storage.base import RecordStore
from ghostshare.tracking import (
    add_many,
    add_to_groups,
    add_to_spaces,
    is_published,
    remove_from_groups,
    remove_from_spaces,
    remove_many,
)
from ghostshare.types import (
    MODERATION_ACTIONS,
    ConfirmationToken,
    ModerationStatus,
    PendingAction,
    PublishedRecord,
    Record,
    now_utc,
)

logger = logging.getLogger(__name__)

MAX_REVISION_HISTORY = 10

HELD_MODERATION_STATUSES = frozenset(
    {
        ModerationStatus.PENDING.value,
        ModerationStatus.REJECTED.value,
        ModerationStatus.REMOVED.value,
    }
)

# Owner-side fields copied into every shared copy
CONTENT_FIELDS = (
    "trust_score",
    "content_type",
    "title",
    "content",
    "summary",
    "tags",
    "location",
    "participants",
    "references",
    "created_at",
    "updated_at",
)


def _clean_list(values: Optional[List[str]], validate: Callable[[Any], str]) -> List[str]:
    return add_many([], [validate(v) for v in (values or [])])


class PublicationCoordinator:
    def __init__(
        self,
        records: RecordStore,
        tokens: ConfirmationTokenStore,
        space_configs: SpaceConfigStore,
        credentials: Optional[CredentialsProvider] = None,
        now_fn: Callable[[], datetime] = now_utc,
    ):
        self._records = records
        self._tokens = tokens
        self._space_configs = space_configs
        self._credentials = credentials or StaticCredentialsProvider()
        self._now = now_fn

    # =========================================================================
    # Loading
    # =========================================================================

    def _load_owned_record(self, owner_id: str, record_id: str) -> Record:
        if not isinstance(record_id, str) or not record_id:
            raise ValidationError("record_id must be a non-empty string")
        data = self._records.get(user_collection(owner_id), record_id)
        if data is None:
            raise NotFoundError(f"Memory {record_id} not found.")
        record = Record.from_dict(data)
        if record.owner_id != owner_id:
            raise PermissionDeniedError("Only the owner can publish, retract or revise a memory.")
        if record.deleted_at:
            raise ValidationError(f"Memory {record_id} was deleted on {record.deleted_at}.")
        if record.doc_type != "memory":
            raise ValidationError(f"Only memories can be published, not '{record.doc_type}'.")
        return record

    def _get_copy(self, collection: str, external_id: str) -> Optional[PublishedRecord]:
        data = self._records.get(collection, external_id)
        return PublishedRecord.from_dict(data) if data else None

    # =========================================================================
    # Phase one
    # =========================================================================

    def create_publish_request(
        self,
        owner_id: str,
        record_id: str,
        spaces: Optional[List[str]] = None,
        groups: Optional[List[str]] = None,
        additional_tags: Optional[List[str]] = None,
    ) -> ConfirmationToken:
        spaces = _clean_list(spaces, validate_space_id)
        groups = _clean_list(groups, validate_group_id)
        if not spaces and not groups:
            raise ValidationError("Must specify at least one space or group to publish to.")
        tags = [t for t in (additional_tags or []) if isinstance(t, str) and t.strip()]
        self._load_owned_record(owner_id, record_id)
        return self._tokens.create_request(
            owner_id,
            PendingAction.PUBLISH.value,
            {
                "record_id": record_id,
                "spaces": spaces,
                "groups": groups,
                "additional_tags": tags,
            },
        )

    def create_retract_request(
        self,
        owner_id: str,
        record_id: str,
        spaces: Optional[List[str]] = None,
        groups: Optional[List[str]] = None,
    ) -> ConfirmationToken:
        spaces = _clean_list(spaces, validate_space_id)
        groups = _clean_list(groups, validate_group_id)
        if not spaces and not groups:
            raise ValidationError("Must specify at least one space or group to retract from.")
        record = self._load_owned_record(owner_id, record_id)
        missing = [s for s in spaces if s not in record.space_memberships]
        missing += [g for g in groups if g not in record.group_memberships]
        if missing:
            raise ValidationError(f"Memory is not published to: {', '.join(missing)}")
        return self._tokens.create_request(
            owner_id,
            PendingAction.RETRACT.value,
            {"record_id": record_id, "spaces": spaces, "groups": groups},
        )

    def create_revise_request(self, owner_id: str, record_id: str) -> ConfirmationToken:
        record = self._load_owned_record(owner_id, record_id)
        if not is_published(record):
            raise ValidationError("Memory has no published copies to revise.")
        return self._tokens.create_request(
            owner_id, PendingAction.REVISE.value, {"record_id": record_id}
        )

    # =========================================================================
    # Phase two
    # =========================================================================

    def confirm_request(self, owner_id: str, token: str) -> Dict[str, Any]:
        """Apply the staged mutation behind ``token``.

        If applying fails the token goes back to pending and the error
        propagates; the same token can be confirmed again until it expires.
        Publish and retract are idempotent; revised copies remember the
        token that revised them so a reclaimed token does not revise twice.
        """
        claimed = self._tokens.claim(owner_id, token)
        appliers = {
            PendingAction.PUBLISH.value: self._apply_publish,
            PendingAction.RETRACT.value: self._apply_retract,
            PendingAction.REVISE.value: functools.partial(self._apply_revise, token=claimed.token),
        }
        try:
            result = appliers[claimed.action](owner_id, claimed.payload)
        except Exception as e:
            logger.warning(f"Applying {claimed.action} for {owner_id} failed: {e}")
            self._tokens.release(owner_id, token, f"{type(e).__name__}: {e}")
            raise
        self._tokens.mark_confirmed(owner_id, token, result)
        logger.info(f"Confirmed {claimed.action} of {claimed.payload.get('record_id')} for {owner_id}")
        return result

    def deny_request(self, owner_id: str, token: str) -> ConfirmationToken:
        return self._tokens.deny(owner_id, token)

    # =========================================================================
    # Appliers
    # =========================================================================

    def _moderation_for(self, kind: str, ident: str) -> str:
        if self._space_configs.get_config(kind, ident).require_moderation:
            return ModerationStatus.PENDING.value
        return ModerationStatus.APPROVED.value

    def _carry_moderation(
        self,
        copy: PublishedRecord,
        existing: Optional[PublishedRecord],
        kind: str,
        added: List[str],
    ) -> None:
        """Set a copy's moderation status from its previous copy and ``added`` destinations.

        A pending, rejected or removed copy keeps that status until a
        moderator approves it. Entering a moderated destination makes an
        approved copy pending again.
        """
        previous = existing.moderation_status if existing is not None else None
        if previous in HELD_MODERATION_STATUSES:
            status = previous
        elif any(self._moderation_for(kind, ident) == ModerationStatus.PENDING.value for ident in added):
            status = ModerationStatus.PENDING.value
        elif existing is not None:
            status = previous or ModerationStatus.APPROVED.value
        else:
            status = ModerationStatus.APPROVED.value
        copy.moderation_status = status
        if existing is not None and status == previous:
            copy.moderated_by = existing.moderated_by
            copy.moderated_at = existing.moderated_at

    def _build_copy(
        self, record: Record, tags: List[str], now: str, kind: str, ident: str
    ) -> PublishedRecord:
        config = self._space_configs.get_config(kind, ident)
        content = {name: getattr(record, name) for name in CONTENT_FIELDS}
        content["tags"] = tags
        return PublishedRecord(
            id=derive(record.owner_id, record.id),
            owner_id=record.owner_id,
            author_id=record.owner_id,
            composite_id=composite_id(record.owner_id, record.id),
            source_record_id=record.id,
            published_at=now,
            revision_count=0,
            write_mode=config.default_write_mode,
            moderation_status=self._moderation_for(kind, ident),
            **content,
        )

    def _apply_publish(self, owner_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        record = self._load_owned_record(owner_id, payload["record_id"])
        spaces = list(payload.get("spaces") or [])
        groups = list(payload.get("groups") or [])
        tags = add_many(record.tags, payload.get("additional_tags") or [])
        now = self._now().isoformat()
        external_id = derive(owner_id, record.id)

        if spaces:
            existing = self._get_copy(SPACES_COLLECTION, external_id)
            copy = self._build_copy(record, tags, now, SPACE, spaces[0])
            previous_spaces = existing.spaces if existing else []
            copy.spaces = add_many(previous_spaces, spaces)
            self._carry_moderation(copy, existing, SPACE, remove_many(copy.spaces, previous_spaces))
            self._records.put(SPACES_COLLECTION, external_id, copy.to_dict())
        for group_id in groups:
            existing = self._get_copy(group_collection(group_id), external_id)
            copy = self._build_copy(record, tags, now, GROUP, group_id)
            copy.group_id = group_id
            self._carry_moderation(copy, existing, GROUP, [] if existing else [group_id])
            self._records.put(group_collection(group_id), external_id, copy.to_dict())

        # Shared copies exist; now record where they are
        updated = add_to_groups(add_to_spaces(record, spaces), groups)
        self._records.put(user_collection(owner_id), record.id, updated.to_dict())
        return {
            "action": PendingAction.PUBLISH.value,
            "record_id": record.id,
            "composite_id": composite_id(owner_id, record.id),
            "external_id": external_id,
            "published_at": now,
            "spaces": spaces,
            "groups": groups,
        }

    def _apply_retract(self, owner_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        record = self._load_owned_record(owner_id, payload["record_id"])
        spaces = list(payload.get("spaces") or [])
        groups = list(payload.get("groups") or [])
        external_id = derive(owner_id, record.id)

        # Drop memberships before the copies they point at
        updated = remove_from_groups(remove_from_spaces(record, spaces), groups)
        self._records.put(user_collection(owner_id), record.id, updated.to_dict())

        if spaces:
            existing = self._get_copy(SPACES_COLLECTION, external_id)
            if existing is not None:
                remaining = remove_many(existing.spaces, spaces)
                if remaining:
                    existing.spaces = remaining
                    self._records.put(SPACES_COLLECTION, external_id, existing.to_dict())
                else:
                    self._records.delete(SPACES_COLLECTION, external_id)
        for group_id in groups:
            self._records.delete(group_collection(group_id), external_id)

        return {
            "action": PendingAction.RETRACT.value,
            "record_id": record.id,
            "composite_id": composite_id(owner_id, record.id),
            "external_id": external_id,
            "spaces": spaces,
            "groups": groups,
            "remaining": {
                "spaces": list(updated.space_memberships),
                "groups": list(updated.group_memberships),
            },
        }

    def _revise_copy(
        self, existing: PublishedRecord, record: Record, now: str, token: Optional[str]
    ) -> PublishedRecord:
        history = list(existing.revision_history) + [
            {
                "title": existing.title,
                "content": existing.content,
                "revised_at": existing.revised_at or existing.published_at,
            }
        ]
        content = {name: getattr(record, name) for name in CONTENT_FIELDS}
        # Tags added at publish time stay on the copy
        content["tags"] = add_many(record.tags, existing.tags)
        return dataclasses.replace(
            existing,
            revision_count=existing.revision_count + 1,
            revised_at=now,
            revision_history=history[-MAX_REVISION_HISTORY:],
            revision_token=token,
            **content,
        )

    def _apply_revise(
        self, owner_id: str, payload: Dict[str, Any], token: Optional[str] = None
    ) -> Dict[str, Any]:
        record = self._load_owned_record(owner_id, payload["record_id"])
        external_id = derive(owner_id, record.id)
        now = self._now().isoformat()

        locations = []
        if record.space_memberships:
            locations.append(("spaces", SPACES_COLLECTION))
        locations += [(f"group:{g}", group_collection(g)) for g in record.group_memberships]

        results = []
        for label, collection in locations:
            existing = self._get_copy(collection, external_id)
            if existing is None:
                results.append({"location": label, "status": "skipped", "reason": "no published copy"})
                continue
            if not can_revise(owner_id, existing, self._credentials.get_credentials(owner_id)):
                results.append({"location": label, "status": "skipped", "reason": "not permitted"})
                continue
            if token and existing.revision_token == token:
                # Already applied by an earlier claim of this token
                results.append(
                    {"location": label, "status": "success", "revision_count": existing.revision_count}
                )
                continue
            revised = self._revise_copy(existing, record, now, token)
            try:
                self._records.put(collection, external_id, revised.to_dict())
            except StorageError as e:
                logger.warning(f"Revise of {external_id} in {collection} failed: {e}")
                results.append({"location": label, "status": "failed", "error": str(e)})
                continue
            results.append(
                {"location": label, "status": "success", "revision_count": revised.revision_count}
            )

        failed = [r for r in results if r["status"] == "failed"]
        if failed and not any(r["status"] == "success" for r in results):
            raise StorageError(f"Revise failed in every location: {failed[0]['error']}")
        return {
            "action": PendingAction.REVISE.value,
            "record_id": record.id,
            "composite_id": composite_id(owner_id, record.id),
            "external_id": external_id,
            "revised_at": now,
            "locations": results,
        }

    # =========================================================================
    # Moderation
    # =========================================================================

    def moderate(
        self,
        moderator_id: str,
        external_id: str,
        action: str,
        space_id: Optional[str] = None,
        group_id: Optional[str] = None,
    ) -> PublishedRecord:
        """Set the moderation status of a published copy.

        Group copies need ``can_moderate`` in that group; space copies
        need it in any group.
        """
        if action not in MODERATION_ACTIONS:
            raise ValidationError(f"action must be one of {sorted(MODERATION_ACTIONS)}, got '{action}'")
        if bool(space_id) == bool(group_id):
            raise ValidationError("Specify exactly one of space_id or group_id.")

        credentials = self._credentials.get_credentials(moderator_id)
        if group_id:
            collection = group_collection(validate_group_id(group_id))
            allowed = can_moderate(credentials, group_id)
        else:
            collection = SPACES_COLLECTION
            validate_space_id(space_id)
            allowed = can_moderate_any(credentials)
        if not allowed:
            raise PermissionDeniedError(f"{moderator_id} cannot moderate {space_id or group_id}")

        existing = self._get_copy(collection, external_id)
        if existing is None or (space_id and space_id not in existing.spaces):
            raise NotFoundError(f"Published memory {external_id} not found in {space_id or group_id}")

        existing.moderation_status = MODERATION_ACTIONS[action]
        existing.moderated_by = moderator_id
        existing.moderated_at = self._now().isoformat()
        self._records.put(collection, external_id, existing.to_dict())
        logger.info(f"{moderator_id} set {external_id} to {existing.moderation_status}")
        return existing
