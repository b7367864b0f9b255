"""Ghost configuration, trust and contact commands."""

from typing import TYPE_CHECKING

from ghostshare.cli.commands.helpers import print_json, validate_input
from ghostshare.trust_policy import tier_label

if TYPE_CHECKING:
    from ghostshare import GhostShare


def _parse_config_value(key: str, raw: str):
    if key in ("enabled", "allow_unknown_accessors"):
        lowered = raw.lower()
        if lowered in ("true", "yes", "on", "1"):
            return True
        if lowered in ("false", "no", "off", "0"):
            return False
        raise ValueError(f"{key} must be true or false")
    if key in ("default_known_trust", "default_unknown_trust"):
        return float(raw)
    return raw


def cmd_config(args, g: "GhostShare"):
    """Show or change your ghost configuration."""
    action = args.config_action

    if action == "show":
        config = g.get_ghost_config(g.user_id)
        if args.json:
            print_json(config.to_dict())
            return
        print(f"Ghost: {'enabled' if config.enabled else 'disabled'}")
        print(f"  enforcement: {config.enforcement_mode}")
        print(f"  known contacts: {config.default_known_trust:.2f}")
        unknown = f"{config.default_unknown_trust:.2f}" if config.allow_unknown_accessors else "no access"
        print(f"  unknown accessors: {unknown}")
        if config.per_accessor_trust:
            print("  per-accessor trust:")
            for accessor, level in sorted(config.per_accessor_trust.items()):
                print(f"    {accessor}: {level:.2f} ({tier_label(level)})")
        if config.blocked_accessors:
            print(f"  blocked: {', '.join(config.blocked_accessors)}")

    elif action == "set":
        value = _parse_config_value(args.key, validate_input(args.value, "value", 100))
        g.update_ghost_config(g.user_id, {args.key: value})
        print(f"✓ {args.key} = {value}")

    elif action == "reset":
        g.reset_ghost_config(g.user_id)
        print("✓ Ghost configuration reset to defaults")


def cmd_trust(args, g: "GhostShare"):
    """Manage per-accessor trust and blocks."""
    action = args.trust_action
    accessor = validate_input(args.accessor, "accessor", 200)

    if action == "set":
        g.set_trust(g.user_id, accessor, args.level)
        print(f"✓ Trust for {accessor} set to {args.level:.2f} ({tier_label(args.level)})")

    elif action == "remove":
        g.remove_trust(g.user_id, accessor)
        print(f"✓ Trust override for {accessor} removed")

    elif action == "block":
        g.block_user(g.user_id, accessor)
        print(f"✓ Blocked {accessor}")

    elif action == "unblock":
        g.unblock_user(g.user_id, accessor)
        print(f"✓ Unblocked {accessor}")

    elif action == "show":
        configured = g.resolve_trust_level(g.user_id, accessor)
        if configured is None:
            print(f"{accessor}: no access")
            return
        effective = g.effective_trust_level(g.user_id, accessor)
        print(f"{accessor}: {configured:.2f} configured, {effective:.2f} effective ({tier_label(effective)})")


def cmd_contact(args, g: "GhostShare"):
    """Manage known contacts."""
    contact = validate_input(args.contact, "contact", 200)
    if args.contact_action == "add":
        g.add_contact(g.user_id, contact)
        print(f"✓ {contact} added to contacts")
    elif args.contact_action == "remove":
        g.remove_contact(g.user_id, contact)
        print(f"✓ {contact} removed from contacts")
