"""
ghostshare MCP Server - trust-gated sharing for MCP clients.

Exposes access checks, ghost configuration and the publish/retract/revise
confirmation flow as MCP tools. Every call runs as the session user.

Security Features:
- JSON Schema validation of every tool call, then per-tool sanitization
- Secure error handling with no information disclosure
- Structured logging for debugging

Usage:
    ghostshare mcp  # Start MCP server (stdio transport)
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from jsonschema import Draft7Validator
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from ghostshare.config import load_settings
from ghostshare.core import GhostShare
from ghostshare.errors import TokenError
from ghostshare.logging_config import setup_ghostshare_logging
from ghostshare.mcp.handlers import HANDLERS, VALIDATORS
from ghostshare.mcp.tool_definitions import TOOL_SCHEMAS, TOOLS

logger = logging.getLogger(__name__)

# Initialize MCP server
mcp = Server("ghostshare")

# Session user for this MCP process
_mcp_user_id: str = "default"

_SCHEMA_VALIDATORS: Dict[str, Draft7Validator] = {
    name: Draft7Validator(schema) for name, schema in TOOL_SCHEMAS.items()
}


def set_user_id(user_id: str) -> None:
    """Set the session user for this MCP server."""
    global _mcp_user_id
    _mcp_user_id = user_id
    # Clear cached instance so next get_ghostshare uses the new user
    if hasattr(get_ghostshare, "_instance"):
        delattr(get_ghostshare, "_instance")


def get_ghostshare() -> GhostShare:
    """Get or create the GhostShare instance."""
    if not hasattr(get_ghostshare, "_instance"):
        get_ghostshare._instance = GhostShare(_mcp_user_id)  # type: ignore[attr-defined]
    return get_ghostshare._instance  # type: ignore[attr-defined]


# =============================================================================
# INPUT VALIDATION & SANITIZATION
# =============================================================================


def _check_schema(name: str, arguments: Dict[str, Any]) -> None:
    validator = _SCHEMA_VALIDATORS.get(name)
    if validator is None:
        return
    errors = sorted(validator.iter_errors(arguments), key=lambda err: list(err.path))
    if errors:
        first = errors[0]
        path = ".".join(str(part) for part in first.path) or "(root)"
        raise ValueError(f"Schema validation failed at {path}: {first.message}")


def validate_tool_input(name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Validate and sanitize MCP tool inputs."""
    try:
        if not isinstance(name, str):
            raise ValueError(f"tool name must be a string, got {type(name).__name__}")
        if not name:
            raise ValueError("tool name must not be empty")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ValueError(f"arguments must be an object, got {type(arguments).__name__}")

        validator = VALIDATORS.get(name)
        if validator is None:
            raise ValueError(f"Unknown tool: {name}")

        _check_schema(name, arguments)
        return validator(arguments)

    except (ValueError, TypeError) as e:
        logger.warning(f"Input validation failed for tool {name}: {e}")
        raise ValueError(f"Invalid input: {str(e)}")


def handle_tool_error(e: Exception, tool_name: str, arguments: Optional[Dict[str, Any]]) -> List[TextContent]:
    """Handle tool errors securely."""
    if isinstance(e, TokenError):
        # Token misuse is actionable for the caller
        logger.warning(f"Token error for tool {tool_name}: {e}")
        return [TextContent(type="text", text=str(e))]

    elif isinstance(e, ValueError):
        # Input validation or business logic error
        logger.warning(f"Invalid input for tool {tool_name}: {e}")
        message = str(e)
        if not message.startswith("Invalid input:"):
            message = f"Invalid input: {message}"
        return [TextContent(type="text", text=message)]

    elif isinstance(e, PermissionError):
        logger.warning(f"Permission denied for tool {tool_name}")
        return [TextContent(type="text", text="Access denied")]

    elif isinstance(e, (FileNotFoundError, LookupError)):
        logger.warning(f"Resource not found for tool {tool_name}")
        return [TextContent(type="text", text="Resource not found")]

    elif isinstance(e, ConnectionError):
        logger.error(f"Database connection error for tool {tool_name}")
        return [TextContent(type="text", text="Service temporarily unavailable")]

    else:
        # Unknown error - log full details but return generic message
        argument_keys = list(arguments.keys()) if isinstance(arguments, dict) else []
        logger.error(
            f"Internal error in tool {tool_name}",
            extra={
                "tool_name": tool_name,
                "arguments_keys": argument_keys,
                "error_type": type(e).__name__,
                "error_message": str(e),
            },
            exc_info=True,
        )
        return [TextContent(type="text", text="Internal server error")]


# =============================================================================
# MCP PROTOCOL HANDLERS
# =============================================================================


@mcp.list_tools()
async def list_tools() -> list[Tool]:
    """List available sharing tools."""
    return list(TOOLS)


@mcp.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls with validation and error handling."""
    try:
        sanitized_args = validate_tool_input(name, arguments)
        g = get_ghostshare()

        handler = HANDLERS.get(name)
        if handler is None:
            # Should not reach here due to validation, but handle gracefully
            logger.error(f"Unexpected tool name after validation: {name}")
            return [TextContent(type="text", text=f"Tool '{name}' is not available")]

        result = handler(sanitized_args, g)
        return [TextContent(type="text", text=result)]

    except Exception as e:
        return handle_tool_error(e, name, arguments)


async def run_server():
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await mcp.run(
            read_stream,
            write_stream,
            mcp.create_initialization_options(),
        )


def main(user_id: Optional[str] = None):
    """Entry point for MCP server.

    The session user is the explicit argument, else GHOSTSHARE_USER_ID,
    else "default".
    """
    settings = load_settings(user_id=user_id)
    setup_ghostshare_logging(settings.user_id, settings.log_level)
    set_user_id(settings.user_id)
    asyncio.run(run_server())


if __name__ == "__main__":
    main()
