"""Access check and escalation reset commands."""

from typing import TYPE_CHECKING

from ghostshare.access_result import access_result_to_dict
from ghostshare.cli.commands.helpers import print_json, validate_input

if TYPE_CHECKING:
    from ghostshare import GhostShare


def cmd_access(args, g: "GhostShare"):
    """Check access to a record, or reset an escalation block."""
    action = args.access_action

    if action == "check":
        result, formatted = g.read_as_accessor(args.record_id, g.user_id, args.owner)
        if args.json:
            data = access_result_to_dict(result)
            if formatted is not None:
                data["view"] = formatted.to_dict()
            print_json(data)
            return
        print(g.format_access_result(result))
        if formatted is not None:
            for key, value in formatted.fields.items():
                if value not in (None, [], ""):
                    print(f"  {key}: {value}")

    elif action == "reset":
        reason = validate_input(args.reason, "reason", 500)
        g.reset_block(g.user_id, args.accessor, args.record_id, reason)
        print(f"✓ Reset escalation for {args.accessor} on {args.record_id}")
