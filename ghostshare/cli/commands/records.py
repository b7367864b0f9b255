"""Owner record commands: add, show, delete."""

from typing import TYPE_CHECKING

from ghostshare.cli.commands.helpers import print_json, validate_input

if TYPE_CHECKING:
    from ghostshare import GhostShare


def cmd_record(args, g: "GhostShare"):
    """Manage your own records."""
    action = args.record_action

    if action == "add":
        record = g.save_record(
            g.user_id,
            content=validate_input(args.content, "content", 10000),
            title=validate_input(args.title, "title", 200) if args.title else None,
            content_type=args.type,
            tags=[validate_input(t, "tag", 100) for t in (args.tag or [])],
            trust_score=args.trust,
            record_id=args.id,
        )
        print(f"✓ Saved {record.id} (trust {record.trust_score:.2f})")

    elif action == "show":
        record = g.get_record(g.user_id, args.record_id)
        if record is None:
            print(f"Memory {args.record_id} not found.")
            return
        if args.json:
            print_json(record.to_dict())
            return
        print(f"{record.title or 'Untitled'} [{record.content_type}]")
        print(f"  id: {record.id}")
        print(f"  trust: {record.trust_score:.2f}")
        if record.tags:
            print(f"  tags: {', '.join(record.tags)}")
        if record.space_memberships:
            print(f"  spaces: {', '.join(record.space_memberships)}")
        if record.group_memberships:
            print(f"  groups: {', '.join(record.group_memberships)}")
        if record.deleted_at:
            print(f"  deleted: {record.deleted_at}")

    elif action == "delete":
        record = g.delete_record(g.user_id, args.record_id)
        print(f"✓ Deleted {record.id} at {record.deleted_at}")
