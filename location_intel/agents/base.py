"""Generation-collaborator contract.

A generation collaborator ("domain agent", "map agent") takes one text
prompt and returns free-form text, optionally with the results of any
tools it called. The pipeline consumes only that reply.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class AgentReply:
    """Text produced by a generation agent.

    Attributes:
        text: The raw reply text (may embed JSON).
        tool_results: ``{"tool": id, "result": payload}`` entries for tools
            the agent executed while answering.
    """

    text: str
    tool_results: tuple[dict[str, Any], ...] = field(default_factory=tuple)

    def tool_result_map(self) -> dict[str, Any]:
        """``{tool id: payload}`` for feature synthesis (later entries win)."""
        mapping: dict[str, Any] = {}
        for entry in self.tool_results:
            tool = entry.get("tool")
            if isinstance(tool, str) and tool:
                mapping[tool] = entry.get("result")
        return mapping


@runtime_checkable
class TextGenerator(Protocol):
    """Anything that turns a prompt into an ``AgentReply``."""

    async def generate(self, prompt: str) -> AgentReply: ...
