"""CLI command modules for ghostshare.

Each module contains related command handlers used by __main__.py.
"""

from ghostshare.cli.commands.access import cmd_access
from ghostshare.cli.commands.ghost import cmd_config, cmd_contact, cmd_trust
from ghostshare.cli.commands.publish import (
    cmd_confirm,
    cmd_deny,
    cmd_moderate,
    cmd_publish,
    cmd_retract,
    cmd_revise,
    cmd_search,
)
from ghostshare.cli.commands.records import cmd_record

__all__ = [
    "cmd_access",
    "cmd_config",
    "cmd_confirm",
    "cmd_contact",
    "cmd_deny",
    "cmd_moderate",
    "cmd_publish",
    "cmd_record",
    "cmd_retract",
    "cmd_revise",
    "cmd_search",
    "cmd_trust",
]
