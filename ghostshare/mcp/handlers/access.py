"""Handlers for access tools: check, read, search, escalation reset."""

import json
from typing import Any, Dict

from ghostshare.access_result import access_result_to_dict
from ghostshare.core import GhostShare
from ghostshare.mcp.sanitize import sanitize_array, sanitize_string, validate_enum, validate_number
from ghostshare.mcp.tool_definitions import FORMATS
from ghostshare.reader import SharedSearchFilters

# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------


def validate_share_check_access(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    sanitized["record_id"] = sanitize_string(arguments.get("record_id"), "record_id", 200, required=True)
    sanitized["owner_id"] = sanitize_string(arguments.get("owner_id"), "owner_id", 200, required=False) or None
    sanitized["format"] = validate_enum(arguments.get("format"), "format", FORMATS, "text")
    return sanitized


def validate_share_read(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    sanitized["record_id"] = sanitize_string(arguments.get("record_id"), "record_id", 200, required=True)
    sanitized["owner_id"] = sanitize_string(arguments.get("owner_id"), "owner_id", 200, required=False) or None
    sanitized["format"] = validate_enum(arguments.get("format"), "format", FORMATS, "text")
    return sanitized


def validate_share_search(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    sanitized["query"] = sanitize_string(arguments.get("query"), "query", 500, required=True)
    sanitized["owner_id"] = sanitize_string(arguments.get("owner_id"), "owner_id", 200, required=False) or None
    sanitized["spaces"] = sanitize_array(arguments.get("spaces"), "spaces", 64, 20) or None
    sanitized["groups"] = sanitize_array(arguments.get("groups"), "groups", 200, 20) or None
    sanitized["tags"] = sanitize_array(arguments.get("tags"), "tags", 100, 20) or None
    sanitized["limit"] = int(validate_number(arguments.get("limit"), "limit", 1, 100, 10))
    sanitized["format"] = validate_enum(arguments.get("format"), "format", FORMATS, "text")
    return sanitized


def validate_access_reset_block(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    sanitized["accessor_id"] = sanitize_string(arguments.get("accessor_id"), "accessor_id", 200, required=True)
    sanitized["record_id"] = sanitize_string(arguments.get("record_id"), "record_id", 200, required=True)
    sanitized["reason"] = sanitize_string(arguments.get("reason"), "reason", 500, required=True)
    return sanitized


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def handle_share_check_access(args: Dict[str, Any], g: GhostShare) -> str:
    # Checks always run as the session user; failures count against them
    result = g.check_access(args["record_id"], g.user_id, args.get("owner_id"))
    if args.get("format") == "json":
        return json.dumps(access_result_to_dict(result), indent=2, default=str)
    return g.format_access_result(result)


def handle_share_read(args: Dict[str, Any], g: GhostShare) -> str:
    result, formatted = g.read_as_accessor(args["record_id"], g.user_id, args.get("owner_id"))
    if args.get("format") == "json":
        data = access_result_to_dict(result)
        if formatted is not None:
            data["view"] = formatted.to_dict()
        return json.dumps(data, indent=2, default=str)
    if formatted is None:
        return g.format_access_result(result)
    lines = [g.format_access_result(result), f"Tier: {formatted.tier.value}"]
    for key, value in formatted.fields.items():
        if value not in (None, [], ""):
            lines.append(f"{key}: {value}")
    return "\n".join(lines)


def handle_share_search(args: Dict[str, Any], g: GhostShare) -> str:
    format_type = args.get("format", "text")
    if args.get("owner_id"):
        results = [
            r.to_dict()
            for r in g.search_as_accessor(args["owner_id"], g.user_id, args["query"], limit=args.get("limit", 10))
        ]
    else:
        filters = SharedSearchFilters(spaces=args.get("spaces"), groups=args.get("groups"), tags=args.get("tags"))
        results = g.search_shared(args["query"], filters, viewer_id=g.user_id, limit=args.get("limit", 10))

    if format_type == "json":
        return json.dumps(results, indent=2, default=str)
    if not results:
        return f"No results for '{args['query']}'"
    lines = [f"Found {len(results)} result(s):\n"]
    for i, r in enumerate(results, 1):
        title = r.get("title") or "Untitled"
        tier = f" [{r['tier']}]" if r.get("tier") else ""
        lines.append(f"{i}. {title}{tier}")
        body = r.get("content") or r.get("summary")
        if body:
            lines.append(f"   {body[:120]}")
    return "\n".join(lines)


def handle_access_reset_block(args: Dict[str, Any], g: GhostShare) -> str:
    g.reset_block(g.user_id, args["accessor_id"], args["record_id"], args["reason"])
    return f"Escalation reset for {args['accessor_id']} on {args['record_id']}"


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

HANDLERS = {
    "share_check_access": handle_share_check_access,
    "share_read": handle_share_read,
    "share_search": handle_share_search,
    "access_reset_block": handle_access_reset_block,
}

VALIDATORS = {
    "share_check_access": validate_share_check_access,
    "share_read": validate_share_read,
    "share_search": validate_share_search,
    "access_reset_block": validate_access_reset_block,
}
