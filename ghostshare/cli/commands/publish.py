"""Publication commands: publish, retract, revise, confirm, deny, moderate, search."""

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from ghostshare.cli.commands.helpers import print_json, validate_input
from ghostshare.reader import SharedSearchFilters

if TYPE_CHECKING:
    from ghostshare import GhostShare
    from ghostshare.types import ConfirmationToken


def _print_token(token: "ConfirmationToken") -> None:
    expires = datetime.fromtimestamp(token.expires_at, tz=timezone.utc).isoformat()
    print(f"Pending {token.action} request for {token.payload.get('record_id')}")
    print(f"  token: {token.token}")
    print(f"  expires: {expires}")
    print(f"Run `ghostshare confirm {token.token}` to apply, or `ghostshare deny {token.token}`.")


def cmd_publish(args, g: "GhostShare"):
    token = g.create_publish_request(
        g.user_id,
        args.record_id,
        spaces=args.space,
        groups=args.group,
        additional_tags=[validate_input(t, "tag", 100) for t in (args.tag or [])],
    )
    _print_token(token)


def cmd_retract(args, g: "GhostShare"):
    token = g.create_retract_request(g.user_id, args.record_id, spaces=args.space, groups=args.group)
    _print_token(token)


def cmd_revise(args, g: "GhostShare"):
    _print_token(g.create_revise_request(g.user_id, args.record_id))


def cmd_confirm(args, g: "GhostShare"):
    result = g.confirm_request(g.user_id, args.token)
    if args.json:
        print_json(result)
        return
    print(f"✓ {result['action'].capitalize()} of {result['record_id']} applied")
    for location in result.get("locations", []):
        print(f"  {location['location']}: {location['status']}")


def cmd_deny(args, g: "GhostShare"):
    denied = g.deny_request(g.user_id, args.token)
    print(f"✓ {denied.action.capitalize()} request denied")


def cmd_moderate(args, g: "GhostShare"):
    copy = g.moderate(g.user_id, args.external_id, args.action, space_id=args.space, group_id=args.group)
    print(f"✓ {copy.id} is now {copy.moderation_status}")


def cmd_search(args, g: "GhostShare"):
    if args.owner:
        results = [
            r.to_dict() for r in g.search_as_accessor(args.owner, g.user_id, args.query, limit=args.limit)
        ]
    else:
        filters = SharedSearchFilters(spaces=args.space, groups=args.group, tags=args.tag)
        results = g.search_shared(args.query, filters, viewer_id=g.user_id, limit=args.limit)

    if args.json:
        print_json(results)
        return
    if not results:
        print(f"No results for '{args.query}'")
        return
    print(f"Found {len(results)} result(s):\n")
    for i, r in enumerate(results, 1):
        title = r.get("title") or "Untitled"
        print(f"{i}. {title}")
        body = r.get("content") or r.get("summary")
        if body:
            print(f"   {body[:120]}")
        if r.get("tier"):
            print(f"   tier: {r['tier']}")
