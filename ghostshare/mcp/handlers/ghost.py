"""Handlers for ghost configuration and trust tools."""

import json
from typing import Any, Dict

from ghostshare.core import GhostShare
from ghostshare.mcp.sanitize import sanitize_string, validate_bool, validate_enum, validate_number
from ghostshare.mcp.tool_definitions import ENFORCEMENT_MODES, FORMATS
from ghostshare.trust_policy import tier_label

# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------


def validate_ghost_config_get(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {"format": validate_enum(arguments.get("format"), "format", FORMATS, "text")}


def validate_ghost_config_update(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    for key in ("enabled", "allow_unknown_accessors"):
        if arguments.get(key) is not None:
            sanitized[key] = validate_bool(arguments.get(key), key)
    for key in ("default_known_trust", "default_unknown_trust"):
        if arguments.get(key) is not None:
            sanitized[key] = validate_number(arguments.get(key), key, 0.0, 1.0)
    if arguments.get("enforcement_mode") is not None:
        sanitized["enforcement_mode"] = validate_enum(
            arguments.get("enforcement_mode"), "enforcement_mode", ENFORCEMENT_MODES
        )
    if not sanitized:
        raise ValueError("No configuration fields to update")
    return sanitized


def validate_ghost_trust_set(arguments: Dict[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    sanitized["accessor_id"] = sanitize_string(arguments.get("accessor_id"), "accessor_id", 200, required=True)
    sanitized["level"] = validate_number(arguments.get("level"), "level", 0.0, 1.0)
    return sanitized


def validate_accessor_only(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "accessor_id": sanitize_string(arguments.get("accessor_id"), "accessor_id", 200, required=True)
    }


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def handle_ghost_config_get(args: Dict[str, Any], g: GhostShare) -> str:
    config = g.get_ghost_config(g.user_id)
    if args.get("format") == "json":
        return json.dumps(config.to_dict(), indent=2, default=str)
    lines = [
        f"Ghost: {'enabled' if config.enabled else 'disabled'}",
        f"Enforcement: {config.enforcement_mode}",
        f"Known contacts: {config.default_known_trust:.2f}",
        "Unknown accessors: "
        + (f"{config.default_unknown_trust:.2f}" if config.allow_unknown_accessors else "no access"),
    ]
    for accessor, level in sorted(config.per_accessor_trust.items()):
        lines.append(f"  {accessor}: {level:.2f} ({tier_label(level)})")
    if config.blocked_accessors:
        lines.append(f"Blocked: {', '.join(config.blocked_accessors)}")
    return "\n".join(lines)


def handle_ghost_config_update(args: Dict[str, Any], g: GhostShare) -> str:
    g.update_ghost_config(g.user_id, args)
    return f"Ghost configuration updated: {', '.join(sorted(args))}"


def handle_ghost_trust_set(args: Dict[str, Any], g: GhostShare) -> str:
    g.set_trust(g.user_id, args["accessor_id"], args["level"])
    return f"Trust for {args['accessor_id']} set to {args['level']:.2f} ({tier_label(args['level'])})"


def handle_ghost_trust_remove(args: Dict[str, Any], g: GhostShare) -> str:
    g.remove_trust(g.user_id, args["accessor_id"])
    return f"Trust override for {args['accessor_id']} removed"


def handle_ghost_block(args: Dict[str, Any], g: GhostShare) -> str:
    g.block_user(g.user_id, args["accessor_id"])
    return f"Blocked {args['accessor_id']}"


def handle_ghost_unblock(args: Dict[str, Any], g: GhostShare) -> str:
    g.unblock_user(g.user_id, args["accessor_id"])
    return f"Unblocked {args['accessor_id']}"


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

HANDLERS = {
    "ghost_config_get": handle_ghost_config_get,
    "ghost_config_update": handle_ghost_config_update,
    "ghost_trust_set": handle_ghost_trust_set,
    "ghost_trust_remove": handle_ghost_trust_remove,
    "ghost_block": handle_ghost_block,
    "ghost_unblock": handle_ghost_unblock,
}

VALIDATORS = {
    "ghost_config_get": validate_ghost_config_get,
    "ghost_config_update": validate_ghost_config_update,
    "ghost_trust_set": validate_ghost_trust_set,
    "ghost_trust_remove": validate_accessor_only,
    "ghost_block": validate_accessor_only,
    "ghost_unblock": validate_accessor_only,
}
