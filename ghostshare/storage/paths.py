"""Document paths for per-owner state.

All owner-scoped documents live under ``owner/{owner_id}/``:

    owner/{owner_id}/ghost_config
    owner/{owner_id}/contacts
    owner/{owner_id}/escalation/{accessor_id}/{record_id}
    owner/{owner_id}/requests/{token}

Destination configs live under ``spaces/{space_id}/config`` and
``groups/{group_id}/config``.
"""

from ghostshare.errors import ValidationError


def _segment(value: str, field_name: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{field_name} must be a non-empty string")
    if "/" in value:
        raise ValidationError(f"{field_name} cannot contain '/': {value}")
    return value


def owner_root(owner_id: str) -> str:
    return f"owner/{_segment(owner_id, 'owner_id')}"


def ghost_config_path(owner_id: str) -> str:
    return f"{owner_root(owner_id)}/ghost_config"


def contacts_path(owner_id: str) -> str:
    return f"{owner_root(owner_id)}/contacts"


def escalation_prefix(owner_id: str, accessor_id: str) -> str:
    return f"{owner_root(owner_id)}/escalation/{_segment(accessor_id, 'accessor_id')}/"


def escalation_path(owner_id: str, accessor_id: str, record_id: str) -> str:
    return escalation_prefix(owner_id, accessor_id) + _segment(record_id, "record_id")


def request_path(owner_id: str, token: str) -> str:
    return f"{owner_root(owner_id)}/requests/{_segment(token, 'token')}"


def space_config_path(space_id: str) -> str:
    return f"spaces/{_segment(space_id, 'space_id')}/config"


def group_config_path(group_id: str) -> str:
    return f"groups/{_segment(group_id, 'group_id')}/config"
