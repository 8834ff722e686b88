"""Pull structured JSON out of free-form generation-agent text.

Candidates are tried in order until one parses to a JSON object:

1. Every ```` ```json ... ``` ```` fenced block.
2. Every generic ```` ``` ... ``` ```` fenced block.
3. Brace-balanced spans, starting at each ``{`` in turn.

The brace scanner counts depth outside strings only. A ``"`` toggles the
in-string flag unless escaped; a backslash inside a string skips the
next character.

The result is ``Recognized`` (a JSON object was found) or
``Unrecognized`` (none was). Malformed input never raises.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from location_intel.models.geojson import is_feature_collection

logger = logging.getLogger("location_intel.extraction.response_extractor")

_JSON_FENCE = re.compile(r"```json\s*([\s\S]*?)\s*```", re.IGNORECASE)
_ANY_FENCE = re.compile(r"```[a-zA-Z]*\s*([\s\S]*?)\s*```")

_MAP_KEYS = ("mapData", "map")


@dataclass(frozen=True, slots=True)
class Recognized:
    """A JSON object was found in the text.

    Attributes:
        map_data: FeatureCollection-shaped dict, or ``None``.
        analysis: Analysis object (``{}`` when the JSON was pure map data).
        raw: The parsed JSON object.
    """

    map_data: dict[str, Any] | None
    analysis: dict[str, Any]
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Unrecognized:
    """No JSON object could be parsed from the text."""

    raw_text: str

    @property
    def map_data(self) -> None:
        return None

    @property
    def analysis(self) -> dict[str, Any]:
        return {"summary": self.raw_text}


Extraction = Recognized | Unrecognized


# ---------------------------------------------------------------------------
# Scanning
# ---------------------------------------------------------------------------


def balanced_span(text: str, start: int) -> str | None:
    """Return the brace-balanced span opening at ``text[start]``, or ``None``."""
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return None


def _parse_object(candidate: str) -> dict[str, Any] | None:
    try:
        value = json.loads(candidate)
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


def find_json_object(text: str) -> dict[str, Any] | None:
    """Return the first JSON object embedded in *text*, or ``None``."""
    for pattern in (_JSON_FENCE, _ANY_FENCE):
        for match in pattern.finditer(text):
            parsed = _parse_object(match.group(1))
            if parsed is not None:
                return parsed

    start = text.find("{")
    while start != -1:
        span = balanced_span(text, start)
        if span is not None:
            parsed = _parse_object(span)
            if parsed is not None:
                return parsed
        start = text.find("{", start + 1)
    return None


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def _map_from_tool_results(tool_results: list[Any]) -> dict[str, Any] | None:
    for item in tool_results:
        payload = item.get("result", item) if isinstance(item, dict) else getattr(item, "result", None)
        if is_feature_collection(payload):
            return payload
        if isinstance(payload, dict) and is_feature_collection(payload.get("mapData")):
            return payload["mapData"]
    return None


def extract(text: str, tool_results: list[Any] | None = None) -> Extraction:
    """Classify the structured content of *text*.

    Args:
        text: Raw agent output.
        tool_results: Optional prior tool results (dicts with a ``result``
            key, bare payloads, or ``ToolInvocationRecord`` objects). A
            FeatureCollection among them is used only when the text
            itself yields no map data.
    """
    obj = find_json_object(text or "")
    fallback_map = _map_from_tool_results(tool_results) if tool_results else None

    if obj is None:
        if fallback_map is not None:
            logger.debug("No JSON in text, using map data from tool results")
            return Recognized(map_data=fallback_map, analysis={"summary": text}, raw={})
        return Unrecognized(raw_text=text or "")

    if is_feature_collection(obj):
        return Recognized(map_data=obj, analysis={}, raw=obj)

    analysis = obj.get("analysis")
    if not isinstance(analysis, dict):
        analysis = obj
    map_data = next((obj[key] for key in _MAP_KEYS if is_feature_collection(obj.get(key))), None)
    if map_data is None:
        map_data = fallback_map
    return Recognized(map_data=map_data, analysis=analysis, raw=obj)


class ResponseExtractor:
    """Object wrapper over :func:`extract` for injection into services."""

    def extract(self, text: str, tool_results: list[Any] | None = None) -> Extraction:
        return extract(text, tool_results)
