"""
ghostshare CLI - share memories under trust.

Usage:
    ghostshare record add CONTENT [--title T] [--type TYPE] [--tag T]... [--trust N]
    ghostshare config show|set KEY VALUE|reset
    ghostshare trust set ACCESSOR LEVEL | remove|block|unblock|show ACCESSOR
    ghostshare access check RECORD [--owner OWNER]
    ghostshare publish RECORD --space S... --group G...
    ghostshare confirm TOKEN | deny TOKEN
    ghostshare search QUERY [--owner OWNER]
    ghostshare mcp
"""

import argparse
import logging
import sys

from ghostshare import GhostShare
from ghostshare.cli.commands import (
    cmd_access,
    cmd_config,
    cmd_confirm,
    cmd_contact,
    cmd_deny,
    cmd_moderate,
    cmd_publish,
    cmd_record,
    cmd_retract,
    cmd_revise,
    cmd_search,
    cmd_trust,
)
from ghostshare.cli.commands.helpers import validate_input
from ghostshare.config import load_settings
from ghostshare.errors import GhostShareError, TokenError
from ghostshare.ghost_config import UPDATABLE_FIELDS
from ghostshare.logging_config import setup_ghostshare_logging
from ghostshare.types import MODERATION_ACTIONS

# Set up logging
logging.basicConfig(level=logging.WARNING)
logger = logging.getLogger(__name__)


def cmd_mcp(args):
    """Start the MCP server on stdio."""
    from ghostshare.mcp.server import main as mcp_main

    mcp_main(user_id=args.user)


COMMANDS = {
    "record": cmd_record,
    "config": cmd_config,
    "trust": cmd_trust,
    "contact": cmd_contact,
    "access": cmd_access,
    "publish": cmd_publish,
    "retract": cmd_retract,
    "revise": cmd_revise,
    "confirm": cmd_confirm,
    "deny": cmd_deny,
    "moderate": cmd_moderate,
    "search": cmd_search,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ghostshare",
        description="Share memories into spaces and groups, gated by trust",
    )
    parser.add_argument("--user", "-u", help="User ID (default: $GHOSTSHARE_USER_ID)", default=None)
    parser.add_argument("--db", help="Database path (default: $GHOSTSHARE_DB_PATH)", default=None)
    parser.add_argument("--log-level", dest="log_level", default=None)

    subparsers = parser.add_subparsers(dest="command", required=True)

    # record
    p_record = subparsers.add_parser("record", help="Manage your records")
    record_sub = p_record.add_subparsers(dest="record_action", required=True)
    r_add = record_sub.add_parser("add", help="Save a record")
    r_add.add_argument("content")
    r_add.add_argument("--title")
    r_add.add_argument("--type", default="note")
    r_add.add_argument("--tag", action="append")
    r_add.add_argument("--trust", type=float, default=None, help="Minimum trust to see it (0-1)")
    r_add.add_argument("--id", default=None)
    r_show = record_sub.add_parser("show", help="Show a record")
    r_show.add_argument("record_id")
    r_show.add_argument("--json", "-j", action="store_true")
    r_delete = record_sub.add_parser("delete", help="Soft-delete a record")
    r_delete.add_argument("record_id")

    # config
    p_config = subparsers.add_parser("config", help="Ghost configuration")
    config_sub = p_config.add_subparsers(dest="config_action", required=True)
    c_show = config_sub.add_parser("show")
    c_show.add_argument("--json", "-j", action="store_true")
    c_set = config_sub.add_parser("set")
    c_set.add_argument("key", choices=sorted(UPDATABLE_FIELDS))
    c_set.add_argument("value")
    config_sub.add_parser("reset")

    # trust
    p_trust = subparsers.add_parser("trust", help="Per-accessor trust and blocks")
    trust_sub = p_trust.add_subparsers(dest="trust_action", required=True)
    t_set = trust_sub.add_parser("set")
    t_set.add_argument("accessor")
    t_set.add_argument("level", type=float)
    for name in ("remove", "block", "unblock", "show"):
        t = trust_sub.add_parser(name)
        t.add_argument("accessor")

    # contact
    p_contact = subparsers.add_parser("contact", help="Known contacts")
    contact_sub = p_contact.add_subparsers(dest="contact_action", required=True)
    for name in ("add", "remove"):
        c = contact_sub.add_parser(name)
        c.add_argument("contact")

    # access
    p_access = subparsers.add_parser("access", help="Access checks and escalation")
    access_sub = p_access.add_subparsers(dest="access_action", required=True)
    a_check = access_sub.add_parser("check")
    a_check.add_argument("record_id")
    a_check.add_argument("--owner", default=None)
    a_check.add_argument("--json", "-j", action="store_true")
    a_reset = access_sub.add_parser("reset")
    a_reset.add_argument("accessor")
    a_reset.add_argument("record_id")
    a_reset.add_argument("--reason", required=True)

    # publish / retract
    for name, help_text in (("publish", "Stage a publish"), ("retract", "Stage a retract")):
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("record_id")
        p.add_argument("--space", action="append")
        p.add_argument("--group", action="append")
        if name == "publish":
            p.add_argument("--tag", action="append")

    p_revise = subparsers.add_parser("revise", help="Stage a revise")
    p_revise.add_argument("record_id")

    p_confirm = subparsers.add_parser("confirm", help="Apply a staged request")
    p_confirm.add_argument("token")
    p_confirm.add_argument("--json", "-j", action="store_true")
    p_deny = subparsers.add_parser("deny", help="Discard a staged request")
    p_deny.add_argument("token")

    # moderate
    p_moderate = subparsers.add_parser("moderate", help="Moderate a published copy")
    p_moderate.add_argument("external_id")
    p_moderate.add_argument("action", choices=sorted(MODERATION_ACTIONS))
    p_moderate.add_argument("--space", default=None)
    p_moderate.add_argument("--group", default=None)

    # search
    p_search = subparsers.add_parser("search", help="Search shared copies or another user's records")
    p_search.add_argument("query")
    p_search.add_argument("--owner", default=None, help="Search this owner's records as yourself")
    p_search.add_argument("--space", action="append")
    p_search.add_argument("--group", action="append")
    p_search.add_argument("--tag", action="append")
    p_search.add_argument("--limit", "-l", type=int, default=10)
    p_search.add_argument("--json", "-j", action="store_true")

    # mcp
    subparsers.add_parser("mcp", help="Start MCP server (stdio transport)")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "mcp":
        cmd_mcp(args)
        return

    # Initialize GhostShare with error handling
    try:
        user_id = validate_input(args.user, "user_id", 100) if args.user else None
        settings = load_settings(user_id=user_id, db_path=args.db, log_level=args.log_level)
        setup_ghostshare_logging(settings.user_id, settings.log_level)
        g = GhostShare(user_id=settings.user_id, db_path=str(settings.db_path))
    except (ValueError, TypeError, GhostShareError) as e:
        logger.error(f"Failed to initialize ghostshare: {e}")
        sys.exit(1)

    # Dispatch with error handling
    try:
        COMMANDS[args.command](args, g)
    except TokenError as e:
        print(str(e))
        sys.exit(2)
    except (ValueError, TypeError) as e:
        logger.error(f"Input validation error: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
