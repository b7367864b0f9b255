"""MCP tool schema definitions for ghostshare operations.

Each Tool() defines the name, description, and JSON Schema for one MCP tool.
Validators and handlers live in ghostshare.mcp.handlers.
"""

from mcp.types import Tool

from ghostshare.types import MODERATION_ACTIONS, VALID_ENFORCEMENT_MODES

ENFORCEMENT_MODES = sorted(VALID_ENFORCEMENT_MODES)
MODERATION_ACTION_NAMES = sorted(MODERATION_ACTIONS)
FORMATS = ["text", "json"]

_FORMAT_PROPERTY = {
    "type": "string",
    "enum": FORMATS,
    "description": "Output format (default: text)",
    "default": "text",
}

_LOCATION_PROPERTIES = {
    "spaces": {
        "type": "array",
        "items": {"type": "string"},
        "description": "Public space ids",
    },
    "groups": {
        "type": "array",
        "items": {"type": "string"},
        "description": "Group ids",
    },
}

TOOLS = [
    Tool(
        name="share_check_access",
        description="Check whether the session user may read a record. Returns the access decision (granted, insufficient trust, blocked, no permission, not found, deleted). Failed checks count towards escalation blocking.",
        inputSchema={
            "type": "object",
            "properties": {
                "record_id": {"type": "string", "description": "Record to check"},
                "owner_id": {
                    "type": "string",
                    "description": "Record owner, when known",
                },
                "format": _FORMAT_PROPERTY,
            },
            "required": ["record_id"],
        },
    ),
    Tool(
        name="share_read",
        description="Read another user's record as the session user. The content is redacted to the tier your trust level allows.",
        inputSchema={
            "type": "object",
            "properties": {
                "record_id": {"type": "string"},
                "owner_id": {"type": "string"},
                "format": _FORMAT_PROPERTY,
            },
            "required": ["record_id"],
        },
    ),
    Tool(
        name="share_search",
        description="Search shared copies in spaces and groups, or search one owner's records as the session user when owner_id is given.",
        inputSchema={
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Search text"},
                "owner_id": {"type": "string"},
                **_LOCATION_PROPERTIES,
                "tags": {"type": "array", "items": {"type": "string"}},
                "limit": {
                    "type": "integer",
                    "default": 10,
                    "minimum": 1,
                    "maximum": 100,
                },
                "format": _FORMAT_PROPERTY,
            },
            "required": ["query"],
        },
    ),
    Tool(
        name="access_reset_block",
        description="Clear an escalation block you hold against an accessor for one record. A reason is required and kept in the reset history.",
        inputSchema={
            "type": "object",
            "properties": {
                "accessor_id": {"type": "string"},
                "record_id": {"type": "string"},
                "reason": {"type": "string"},
            },
            "required": ["accessor_id", "record_id", "reason"],
        },
    ),
    Tool(
        name="ghost_config_get",
        description="Show your ghost sharing configuration.",
        inputSchema={
            "type": "object",
            "properties": {"format": _FORMAT_PROPERTY},
        },
    ),
    Tool(
        name="ghost_config_update",
        description="Update your ghost sharing configuration.",
        inputSchema={
            "type": "object",
            "properties": {
                "enabled": {"type": "boolean"},
                "allow_unknown_accessors": {"type": "boolean"},
                "default_known_trust": {"type": "number", "minimum": 0, "maximum": 1},
                "default_unknown_trust": {"type": "number", "minimum": 0, "maximum": 1},
                "enforcement_mode": {"type": "string", "enum": ENFORCEMENT_MODES},
            },
        },
    ),
    Tool(
        name="ghost_trust_set",
        description="Set the trust level (0-1) for one accessor.",
        inputSchema={
            "type": "object",
            "properties": {
                "accessor_id": {"type": "string"},
                "level": {"type": "number", "minimum": 0, "maximum": 1},
            },
            "required": ["accessor_id", "level"],
        },
    ),
    Tool(
        name="ghost_trust_remove",
        description="Remove a per-accessor trust override.",
        inputSchema={
            "type": "object",
            "properties": {"accessor_id": {"type": "string"}},
            "required": ["accessor_id"],
        },
    ),
    Tool(
        name="ghost_block",
        description="Block an accessor from all of your records.",
        inputSchema={
            "type": "object",
            "properties": {"accessor_id": {"type": "string"}},
            "required": ["accessor_id"],
        },
    ),
    Tool(
        name="ghost_unblock",
        description="Unblock an accessor.",
        inputSchema={
            "type": "object",
            "properties": {"accessor_id": {"type": "string"}},
            "required": ["accessor_id"],
        },
    ),
    Tool(
        name="share_publish",
        description="Stage publishing a record to spaces and/or groups. Returns a confirmation token; nothing is written until share_confirm.",
        inputSchema={
            "type": "object",
            "properties": {
                "record_id": {"type": "string"},
                **_LOCATION_PROPERTIES,
                "tags": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Extra tags for the shared copies",
                },
            },
            "required": ["record_id"],
        },
    ),
    Tool(
        name="share_retract",
        description="Stage retracting a record from spaces and/or groups. Returns a confirmation token.",
        inputSchema={
            "type": "object",
            "properties": {"record_id": {"type": "string"}, **_LOCATION_PROPERTIES},
            "required": ["record_id"],
        },
    ),
    Tool(
        name="share_revise",
        description="Stage pushing the record's current content to every published copy. Returns a confirmation token.",
        inputSchema={
            "type": "object",
            "properties": {"record_id": {"type": "string"}},
            "required": ["record_id"],
        },
    ),
    Tool(
        name="share_confirm",
        description="Apply a staged publish, retract or revise.",
        inputSchema={
            "type": "object",
            "properties": {"token": {"type": "string"}, "format": _FORMAT_PROPERTY},
            "required": ["token"],
        },
    ),
    Tool(
        name="share_deny",
        description="Discard a staged publish, retract or revise.",
        inputSchema={
            "type": "object",
            "properties": {"token": {"type": "string"}},
            "required": ["token"],
        },
    ),
    Tool(
        name="share_moderate",
        description="Approve, reject or remove a published copy in a space or group you moderate.",
        inputSchema={
            "type": "object",
            "properties": {
                "external_id": {"type": "string"},
                "action": {"type": "string", "enum": MODERATION_ACTION_NAMES},
                "space_id": {"type": "string"},
                "group_id": {"type": "string"},
            },
            "required": ["external_id", "action"],
        },
    ),
]

TOOL_SCHEMAS = {tool.name: tool.inputSchema for tool in TOOLS}
