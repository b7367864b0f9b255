"""Handlers for publication tools: publish, retract, revise, confirm, deny, moderate."""

import json
from datetime import datetime, timezone
from typing import Any, Dict

from ghostshare.core import GhostShare
from ghostshare.mcp.sanitize import sanitize_array, sanitize_string, validate_enum
from ghostshare.mcp.tool_definitions import FORMATS, MODERATION_ACTION_NAMES
from ghostshare.types import ConfirmationToken

# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------


def _record_and_locations(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    sanitized["record_id"] = sanitize_string(arguments.get("record_id"), "record_id", 200, required=True)
    sanitized["spaces"] = sanitize_array(arguments.get("spaces"), "spaces", 64, 20)
    sanitized["groups"] = sanitize_array(arguments.get("groups"), "groups", 200, 20)
    return sanitized


def validate_share_publish(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized = _record_and_locations(arguments)
    sanitized["tags"] = sanitize_array(arguments.get("tags"), "tags", 100, 20)
    return sanitized


def validate_share_retract(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return _record_and_locations(arguments)


def validate_share_revise(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {"record_id": sanitize_string(arguments.get("record_id"), "record_id", 200, required=True)}


def validate_share_confirm(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "token": sanitize_string(arguments.get("token"), "token", 200, required=True),
        "format": validate_enum(arguments.get("format"), "format", FORMATS, "text"),
    }


def validate_share_deny(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {"token": sanitize_string(arguments.get("token"), "token", 200, required=True)}


def validate_share_moderate(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    sanitized["external_id"] = sanitize_string(arguments.get("external_id"), "external_id", 300, required=True)
    sanitized["action"] = validate_enum(arguments.get("action"), "action", MODERATION_ACTION_NAMES, required=True)
    sanitized["space_id"] = sanitize_string(arguments.get("space_id"), "space_id", 64, required=False) or None
    sanitized["group_id"] = sanitize_string(arguments.get("group_id"), "group_id", 200, required=False) or None
    return sanitized


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _describe_token(token: ConfirmationToken) -> str:
    expires = datetime.fromtimestamp(token.expires_at, tz=timezone.utc).isoformat()
    return (
        f"Pending {token.action} of {token.payload.get('record_id')}.\n"
        f"Token: {token.token}\n"
        f"Expires: {expires}\n"
        "Call share_confirm with this token to apply it, or share_deny to discard it."
    )


def handle_share_publish(args: Dict[str, Any], g: GhostShare) -> str:
    token = g.create_publish_request(
        g.user_id, args["record_id"], args.get("spaces"), args.get("groups"), args.get("tags")
    )
    return _describe_token(token)


def handle_share_retract(args: Dict[str, Any], g: GhostShare) -> str:
    token = g.create_retract_request(g.user_id, args["record_id"], args.get("spaces"), args.get("groups"))
    return _describe_token(token)


def handle_share_revise(args: Dict[str, Any], g: GhostShare) -> str:
    return _describe_token(g.create_revise_request(g.user_id, args["record_id"]))


def handle_share_confirm(args: Dict[str, Any], g: GhostShare) -> str:
    result = g.confirm_request(g.user_id, args["token"])
    if args.get("format") == "json":
        return json.dumps(result, indent=2, default=str)
    lines = [f"{result['action'].capitalize()} of {result['record_id']} applied"]
    for location in result.get("locations", []):
        lines.append(f"  {location['location']}: {location['status']}")
    return "\n".join(lines)


def handle_share_deny(args: Dict[str, Any], g: GhostShare) -> str:
    denied = g.deny_request(g.user_id, args["token"])
    return f"{denied.action.capitalize()} request denied"


def handle_share_moderate(args: Dict[str, Any], g: GhostShare) -> str:
    copy = g.moderate(g.user_id, args["external_id"], args["action"], args.get("space_id"), args.get("group_id"))
    return f"{copy.id} is now {copy.moderation_status}"


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

HANDLERS = {
    "share_publish": handle_share_publish,
    "share_retract": handle_share_retract,
    "share_revise": handle_share_revise,
    "share_confirm": handle_share_confirm,
    "share_deny": handle_share_deny,
    "share_moderate": handle_share_moderate,
}

VALIDATORS = {
    "share_publish": validate_share_publish,
    "share_retract": validate_share_retract,
    "share_revise": validate_share_revise,
    "share_confirm": validate_share_confirm,
    "share_deny": validate_share_deny,
    "share_moderate": validate_share_moderate,
}
