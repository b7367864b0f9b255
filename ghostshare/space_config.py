"""Per-space and per-group publishing configuration.

Stored at ``spaces/{id}/config`` or ``groups/{id}/config``. Missing
documents and missing keys fall back to DEFAULT_SPACE_CONFIG.
"""

import dataclasses
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict

from ghostshare.errors import ValidationError
from ghostshare.identity import SEPARATOR
from ghostshare.storage.base import DocumentStore
from ghostshare.storage.paths import group_config_path, space_config_path
from ghostshare.types import VALID_WRITE_MODES, WriteMode

logger = logging.getLogger(__name__)

SPACE_ID_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]{0,63}$")

SPACE = "space"
GROUP = "group"


@dataclass
class SpaceConfig:
    require_moderation: bool = False
    default_write_mode: str = WriteMode.OWNER_ONLY.value

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


DEFAULT_SPACE_CONFIG = SpaceConfig()


def validate_space_id(space_id: Any) -> str:
    if not isinstance(space_id, str) or not SPACE_ID_PATTERN.match(space_id):
        raise ValidationError(
            f"Invalid space id: {space_id!r} (lowercase letters, digits, '-' and '_')"
        )
    return space_id


def validate_group_id(group_id: Any) -> str:
    if not isinstance(group_id, str) or not group_id.strip():
        raise ValidationError("Group ids must be non-empty strings")
    if SEPARATOR in group_id or "/" in group_id:
        raise ValidationError(f"Group ids cannot contain '{SEPARATOR}' or '/': {group_id}")
    return group_id


class SpaceConfigStore:
    def __init__(self, documents: DocumentStore):
        self._documents = documents

    def _path(self, kind: str, ident: str) -> str:
        if kind == SPACE:
            return space_config_path(validate_space_id(ident))
        if kind == GROUP:
            return group_config_path(validate_group_id(ident))
        raise ValidationError(f"kind must be '{SPACE}' or '{GROUP}', got '{kind}'")

    def get_config(self, kind: str, ident: str) -> SpaceConfig:
        stored = self._documents.get(self._path(kind, ident)) or {}
        merged = DEFAULT_SPACE_CONFIG.to_dict()
        merged.update({k: v for k, v in stored.items() if k in merged})
        return SpaceConfig(**merged)

    def set_config(self, kind: str, ident: str, updates: Dict[str, Any]) -> SpaceConfig:
        for name, value in updates.items():
            if name == "require_moderation":
                if not isinstance(value, bool):
                    raise ValidationError("require_moderation must be a boolean")
            elif name == "default_write_mode":
                if value not in VALID_WRITE_MODES:
                    raise ValidationError(
                        f"default_write_mode must be one of {sorted(VALID_WRITE_MODES)}"
                    )
            else:
                raise ValidationError(f"Unknown space config field: {name}")
        self._documents.update(self._path(kind, ident), dict(updates))
        logger.info(f"{kind} config updated for {ident}: {sorted(updates)}")
        return self.get_config(kind, ident)
