"""Generation collaborators: the ``TextGenerator`` contract and adapters."""

from location_intel.agents.base import AgentReply, TextGenerator
from location_intel.agents.directory import AgentDirectory

__all__ = [
    "AgentDirectory",
    "AgentReply",
    "TextGenerator",
]
