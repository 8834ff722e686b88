"""LangChain chat-model adapter for the ``TextGenerator`` contract.

Wraps any ``BaseChatModel`` (OpenAI, Anthropic, Ollama ...). When a
``ToolDispatcher`` is supplied, tool calls the model requests in its
first reply are executed in order, one dispatcher step per call, and
their results attached to the ``AgentReply``. The model is then asked
once more to write its answer with those results in context.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from langchain_core.messages import HumanMessage, SystemMessage, ToolMessage

from location_intel.agents.base import AgentReply
from location_intel.core.constants import MAP_DATA_AGENT

if TYPE_CHECKING:
    from langchain_core.language_models.chat_models import BaseChatModel
    from langchain_core.messages import BaseMessage

    from location_intel.models.records import ToolInvocationRecord
    from location_intel.tools.dispatcher import ToolDispatcher

logger = logging.getLogger("location_intel.agents.langchain_agent")

MAP_AGENT_INSTRUCTIONS = (
    "You produce map data for location-intelligence requests. Reply with a single "
    "GeoJSON FeatureCollection in a ```json fenced block. Use only coordinates "
    "you are certain of; return an empty features array rather than guessing."
)


def message_text(message: BaseMessage) -> str:
    """Flatten a chat message's content (string or content-part list) to text."""
    content = message.content
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for part in content:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(str(part.get("text", "")))
    return "".join(parts)


class LangChainTextGenerator:
    """``TextGenerator`` backed by a LangChain chat model.

    Args:
        model: The chat model. If tools are to be used it should already
            be bound to their schemas (``model.bind_tools(...)``).
        name: Agent name reported in provenance.
        system_prompt: System instructions. Defaults to
            ``MAP_AGENT_INSTRUCTIONS`` for the ``mapDataAgent`` and to none
            for every other agent.
        dispatcher: Optional dispatcher used to run requested tool calls.
    """

    def __init__(
        self,
        model: BaseChatModel,
        *,
        name: str,
        system_prompt: str | None = None,
        dispatcher: ToolDispatcher | None = None,
    ) -> None:
        self._model = model
        self.name = name
        if system_prompt is None:
            system_prompt = MAP_AGENT_INSTRUCTIONS if name == MAP_DATA_AGENT else ""
        self._system_prompt = system_prompt
        self._dispatcher = dispatcher

    async def generate(self, prompt: str) -> AgentReply:
        messages: list[BaseMessage] = []
        if self._system_prompt:
            messages.append(SystemMessage(content=self._system_prompt))
        messages.append(HumanMessage(content=prompt))

        reply = await self._model.ainvoke(messages)
        tool_calls = list(getattr(reply, "tool_calls", None) or [])
        if not tool_calls or self._dispatcher is None:
            return AgentReply(text=message_text(reply))

        messages.append(reply)
        records: list[ToolInvocationRecord] = []
        for call in tool_calls:
            # One step per call so each ToolMessage answers its own call id.
            step = {"tool": call.get("name"), "args": call.get("args") or {}}
            executed = await self._dispatcher.execute_records([step])
            records.extend(executed)
            if executed:
                payload = executed[0].to_result_payload()
            else:
                payload = {"error": f"Malformed tool call: {call.get('name')!r}"}
            messages.append(
                ToolMessage(
                    content=json.dumps(payload, default=str),
                    tool_call_id=call.get("id") or str(call.get("name") or ""),
                )
            )
        logger.info(
            "Agent tool calls executed | agent=%s | calls=%d | tools=%d",
            self.name,
            len(tool_calls),
            len(records),
        )

        final = await self._model.ainvoke(messages)
        results: tuple[dict[str, Any], ...] = tuple(
            {"tool": r.tool_id, "result": r.to_result_payload()} for r in records
        )
        return AgentReply(text=message_text(final), tool_results=results)
