"""Who counts as a "known" contact of an owner.

Ghost trust resolution gives known contacts ``default_known_trust``.
The relationship itself is owned elsewhere; these directories are the
seam where it plugs in.
"""

import logging
from typing import Dict, Iterable, List, Optional, Protocol, runtime_checkable

from ghostshare.storage.base import DocumentStore, atomic_update
from ghostshare.storage.paths import contacts_path
from ghostshare.tracking import add, remove

logger = logging.getLogger(__name__)


@runtime_checkable
class ContactDirectory(Protocol):
    def is_known(self, owner_id: str, accessor_id: str) -> bool:
        ...


class NoContacts:
    """Nobody is a known contact."""

    def is_known(self, owner_id: str, accessor_id: str) -> bool:
        return False


class StaticContactDirectory:
    """Fixed owner -> contacts mapping."""

    def __init__(self, contacts: Optional[Dict[str, Iterable[str]]] = None):
        self._contacts = {owner: set(ids) for owner, ids in (contacts or {}).items()}

    def is_known(self, owner_id: str, accessor_id: str) -> bool:
        return accessor_id in self._contacts.get(owner_id, set())


class DocumentContactDirectory:
    """Contacts kept in ``owner/{owner_id}/contacts`` as an ordered id list."""

    def __init__(self, documents: DocumentStore):
        self._documents = documents

    def list_contacts(self, owner_id: str) -> List[str]:
        doc = self._documents.get(contacts_path(owner_id)) or {}
        return list(doc.get("ids", []))

    def is_known(self, owner_id: str, accessor_id: str) -> bool:
        return accessor_id in self.list_contacts(owner_id)

    def add_contact(self, owner_id: str, contact_id: str) -> List[str]:
        doc = atomic_update(
            self._documents,
            contacts_path(owner_id),
            lambda current: {"ids": add((current or {}).get("ids"), contact_id)},
        )
        logger.debug(f"Contact {contact_id} added for {owner_id}")
        return doc["ids"]

    def remove_contact(self, owner_id: str, contact_id: str) -> List[str]:
        doc = atomic_update(
            self._documents,
            contacts_path(owner_id),
            lambda current: {"ids": remove((current or {}).get("ids"), contact_id)},
        )
        return doc["ids"]
