"""
ghostshare - Trust-gated sharing of personal memories.

Owners publish records into shared spaces and groups; everyone else sees
them through a per-owner trust level that escalates into a block on
repeated unauthorized attempts.
"""

from .access_result import (
    AccessResult,
    Blocked,
    Deleted,
    Granted,
    InsufficientTrust,
    NoPermission,
    NotFound,
    format_access_result,
)
from .core import GhostShare

try:
    from importlib.metadata import version

    __version__ = version("ghostshare")
except Exception:
    __version__ = "0.0.0"

__all__ = [
    "GhostShare",
    "AccessResult",
    "Blocked",
    "Deleted",
    "Granted",
    "InsufficientTrust",
    "NoPermission",
    "NotFound",
    "format_access_result",
]
