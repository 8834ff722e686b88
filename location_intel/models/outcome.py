"""Pydantic model for the per-request pipeline outcome.

A ``PipelineOutcome`` is constructed once per request by the request
service and handed to the (out-of-scope) request-handling layer. It is
never persisted by the core.

``map_data`` is ``None`` whenever no truthful map could be produced:
that is a valid, non-error outcome.
"""

from __future__ import annotations

import enum
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ResponseType(enum.Enum):
    """Kind of response returned to the caller."""

    TEXT = "text"
    ANALYSIS = "analysis"
    GEOJSON = "geojson"


def _utc_now_iso() -> str:
    return datetime.now(UTC).isoformat()


class PipelineOutcome(BaseModel):
    """Final result of one location-intelligence request.

    Attributes:
        response_type: ``analysis`` on success, ``text`` on error.
        text: Response text. Always populated.
        analysis: Structured analysis object (may be empty).
        map_data: GeoJSON-style FeatureCollection dict, or ``None``.
        tools_used: Tool ids that contributed to the outcome.
        agents_used: Agent names that contributed to the outcome.
        success: Whether the request completed without a fatal error.
        execution_time_ms: Wall-clock duration of the request.
        timestamp: ISO 8601 UTC completion timestamp.
        intent: Domain or classified intent tag.
        confidence: Routing confidence (0 on error).
        detected_entities: Flattened entity list from query analysis.
    """

    model_config = ConfigDict(frozen=True)

    response_type: ResponseType = ResponseType.ANALYSIS
    text: str = Field(min_length=1)
    analysis: dict[str, Any] = Field(default_factory=dict)
    map_data: dict[str, Any] | None = None
    tools_used: list[str] = Field(default_factory=list)
    agents_used: list[str] = Field(default_factory=list)
    success: bool = True
    execution_time_ms: float = Field(default=0.0, ge=0.0)
    timestamp: str = Field(default_factory=_utc_now_iso)
    intent: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    detected_entities: list[str] = Field(default_factory=list)

    @property
    def has_map(self) -> bool:
        return self.map_data is not None

    def to_response_dict(self) -> dict[str, Any]:
        """Return the camelCase wire shape consumed by the request layer."""
        return {
            "type": self.response_type.value,
            "data": {
                "text": self.text,
                "analysis": self.analysis,
                "mapData": self.map_data,
            },
            "metadata": {
                "executionTime": self.execution_time_ms,
                "agentsUsed": list(self.agents_used),
                "toolsUsed": list(self.tools_used),
                "confidence": self.confidence,
                "intent": self.intent,
                "detectedEntities": list(self.detected_entities),
            },
            "success": self.success,
            "timestamp": self.timestamp,
        }
