"""Execute a plan of ``{tool, args}`` steps against registered tools.

Rules applied per step, in request order:

1. Malformed steps (not a mapping, missing or non-string tool id) are
   skipped.
2. The tool id is normalised (namespace prefix stripped, alias mapped).
3. Meta-tools (``execute-plan``, ``plan-query``) are never executed;
   their result is ``{"error": "Recursive/plan call prevented during
   execution"}``.
4. A tool with no implementation yields ``{}``.
5. An exception from a tool yields ``{"error": "<message>"}``; the
   batch continues.

Results are keyed by canonical id, so a later duplicate overwrites an
earlier one. Steps run sequentially; no step sees another's result.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from location_intel.core.constants import META_TOOLS, RECURSION_PREVENTED_MESSAGE
from location_intel.core.exceptions import RecursionRejectedError, ToolNotFoundError
from location_intel.models.records import ToolInvocationRecord
from location_intel.tools.aliases import normalize_tool_id

if TYPE_CHECKING:
    from collections.abc import Mapping

    from location_intel.tools.registry import ToolFn

logger = logging.getLogger("location_intel.tools.dispatcher")


class ToolDispatcher:
    """Run execution plans against a canonical-id -> tool mapping.

    Args:
        tools: Canonical tool id -> async callable taking the argument dict.
    """

    def __init__(self, tools: Mapping[str, ToolFn]) -> None:
        self._tools = dict(tools)

    @property
    def tool_ids(self) -> frozenset[str]:
        return frozenset(self._tools)

    async def execute(self, plan: object) -> dict[str, Any]:
        """Execute *plan* and return ``{canonical_id: result_or_error}``.

        A *plan* that is not a list yields ``{}``.
        """
        records = await self.execute_records(plan)
        results: dict[str, Any] = {}
        for record in records:
            results[record.tool_id] = record.to_result_payload()
        return results

    async def execute_records(self, plan: object) -> list[ToolInvocationRecord]:
        """Execute *plan* and return one record per executed step, in order."""
        if not isinstance(plan, list):
            logger.info("Plan is not a list, nothing to execute | type=%s", type(plan).__name__)
            return []

        records: list[ToolInvocationRecord] = []
        for index, step in enumerate(plan):
            if not isinstance(step, dict):
                logger.debug("Skipping malformed plan step | index=%d", index)
                continue
            raw_id = step.get("tool")
            if not isinstance(raw_id, str) or not raw_id.strip():
                logger.debug("Skipping plan step without tool id | index=%d", index)
                continue
            args = step.get("args")
            if not isinstance(args, dict):
                args = {}
            records.append(await self._run_step(normalize_tool_id(raw_id), args))
        return records

    async def _run_step(self, tool_id: str, args: dict[str, Any]) -> ToolInvocationRecord:
        if tool_id in META_TOOLS:
            rejected = RecursionRejectedError(tool_id)
            logger.warning("Meta-tool rejected | code=%s | tool=%s", rejected.code, tool_id)
            return ToolInvocationRecord(tool_id=tool_id, args=args, error=RECURSION_PREVENTED_MESSAGE)

        tool = self._tools.get(tool_id)
        if tool is None:
            missing = ToolNotFoundError(tool_id)
            logger.info("%s | result={}", missing.message)
            return ToolInvocationRecord(tool_id=tool_id, args=args, result={})

        try:
            result = await tool(args)
        except Exception as exc:
            message = str(exc) or type(exc).__name__
            logger.warning("Tool failed | tool=%s | error=%s", tool_id, message)
            return ToolInvocationRecord(tool_id=tool_id, args=args, error=message)

        logger.info("Tool executed | tool=%s", tool_id)
        return ToolInvocationRecord(tool_id=tool_id, args=args, result=result)
