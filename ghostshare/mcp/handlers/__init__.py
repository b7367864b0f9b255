"""Handler registry for MCP tools.

Merges HANDLERS and VALIDATORS from all sub-modules into unified dicts.
"""

from typing import Callable, Dict

from ghostshare.mcp.handlers.access import HANDLERS as _ACCESS_H
from ghostshare.mcp.handlers.access import VALIDATORS as _ACCESS_V
from ghostshare.mcp.handlers.ghost import HANDLERS as _GHOST_H
from ghostshare.mcp.handlers.ghost import VALIDATORS as _GHOST_V
from ghostshare.mcp.handlers.publication import HANDLERS as _PUBLICATION_H
from ghostshare.mcp.handlers.publication import VALIDATORS as _PUBLICATION_V

HANDLERS: Dict[str, Callable] = {
    **_ACCESS_H,
    **_GHOST_H,
    **_PUBLICATION_H,
}

VALIDATORS: Dict[str, Callable] = {
    **_ACCESS_V,
    **_GHOST_V,
    **_PUBLICATION_V,
}
