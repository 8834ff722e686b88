"""Tool-call substrate: alias normalisation, registry, and plan dispatch."""

from location_intel.tools.aliases import TOOL_ALIASES, is_meta_tool, normalize_tool_id
from location_intel.tools.dispatcher import ToolDispatcher

__all__ = [
    "TOOL_ALIASES",
    "ToolDispatcher",
    "is_meta_tool",
    "normalize_tool_id",
]
