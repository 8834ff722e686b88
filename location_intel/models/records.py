"""Request-scoped records: tool invocations and query analysis.

Both are created once per request and never mutated afterwards.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class ToolInvocationRecord:
    """One executed tool request.

    Attributes:
        tool_id: Canonical (normalised) tool id.
        args: Input argument mapping as requested.
        result: Result payload when the call succeeded (or was absorbed).
        error: Failure reason when the call failed or was rejected.
    """

    tool_id: str
    args: dict[str, Any] = field(default_factory=dict)
    result: Any = None
    error: str = ""

    @property
    def succeeded(self) -> bool:
        return not self.error

    def to_result_payload(self) -> Any:
        """Return the value stored under ``tool_id`` in a batch result map."""
        if self.error:
            return {"error": self.error}
        return self.result


class QueryType(enum.Enum):
    """Classified intent of a user query."""

    SEARCH_ONLY = "search_only"
    MAP_DATA_ONLY = "map_data_only"
    COMPREHENSIVE = "comprehensive"
    ANALYTICS = "analytics"
    LOCATION_BASED = "location_based"
    URBAN_PLANNING = "urban_planning"
    REAL_ESTATE = "real_estate"
    ENERGY_UTILITIES = "energy_utilities"
    RETAIL = "retail"


@dataclass(frozen=True, slots=True)
class ExtractedEntities:
    """Entity lists pulled out of a query."""

    locations: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    metrics: tuple[str, ...] = ()
    timeframes: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "locations": list(self.locations),
            "categories": list(self.categories),
            "metrics": list(self.metrics),
            "timeframes": list(self.timeframes),
        }

    def flatten(self) -> list[str]:
        """All entities in one list, locations first."""
        return [*self.locations, *self.categories, *self.metrics, *self.timeframes]


@dataclass(frozen=True, slots=True)
class QueryAnalysisResult:
    """Routing decision for a single query.

    Attributes:
        query_type: Classified intent tag.
        confidence: Classification confidence (0-1).
        entities: Extracted entity lists.
        requires_mapping: Whether the request wants map output.
        requires_summary: Whether the request wants a narrative summary.
        suggested_agents: Agent names to involve, in order.
    """

    query_type: QueryType
    confidence: float
    entities: ExtractedEntities = field(default_factory=ExtractedEntities)
    requires_mapping: bool = False
    requires_summary: bool = False
    suggested_agents: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.query_type.value,
            "confidence": self.confidence,
            "extractedEntities": self.entities.to_dict(),
            "requiresMapping": self.requires_mapping,
            "requiresSummary": self.requires_summary,
            "suggestedAgents": list(self.suggested_agents),
        }
