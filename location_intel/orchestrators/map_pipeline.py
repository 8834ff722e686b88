"""Map-guarantee pipeline: an ordered fallback chain for map output.

Stages run strictly in sequence and stop at the first one that yields a
FeatureCollection with at least one feature:

1. **Promote**: the upstream agent reply already carries map data.
2. **Synthesize**: feature synthesis over the raw tool results.
3. **Agent generation**: ask the map agent, accept only a
   FeatureCollection.
4. **Seed search**: fuzzy search for a generic category near the
   location phrase of the user message.

The chain is a small state machine (``MapStage`` + ``next_stage``). A
stage that raises is logged and treated as a failure, except
``ConfigurationError``, which is fatal and propagates. Exhaustion
returns ``map_data=None``; nothing is ever fabricated.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from location_intel.core import constants as c
from location_intel.core.exceptions import ConfigurationError, MalformedPayloadError
from location_intel.extraction.response_extractor import extract
from location_intel.models.geojson import has_features
from location_intel.providers.base import ProviderError
from location_intel.providers.tomtom import first_position
from location_intel.synthesis.feature_synthesizer import FeatureSynthesizer

if TYPE_CHECKING:
    from collections.abc import Mapping

    from location_intel.agents.base import TextGenerator
    from location_intel.core.config import PipelineConfig

logger = logging.getLogger("location_intel.orchestrators.map_pipeline")

_NEAR_PHRASE = re.compile(r"\bnear\s+", re.IGNORECASE)
_LOCATION_PHRASE = re.compile(r"\b(?:in|around|at)\s+", re.IGNORECASE)
_TRAILING_PUNCTUATION = ".,;:!?\"') "


class MapStage(enum.Enum):
    NOT_STARTED = "not_started"
    PROMOTE = "promote"
    SYNTHESIZE = "synthesize"
    AGENT_GENERATION = "agent_generation"
    SEED_SEARCH = "seed_search"
    SUCCESS = "success"
    EXHAUSTED = "exhausted"


_STAGE_ORDER: tuple[MapStage, ...] = (
    MapStage.PROMOTE,
    MapStage.SYNTHESIZE,
    MapStage.AGENT_GENERATION,
    MapStage.SEED_SEARCH,
)

TERMINAL_STAGES = frozenset({MapStage.SUCCESS, MapStage.EXHAUSTED})


def next_stage(current: MapStage, succeeded: bool) -> MapStage:
    """Transition function of the fallback chain.

    Raises:
        ValueError: If *current* is terminal.
    """
    if current in TERMINAL_STAGES:
        msg = f"No transition out of terminal stage {current.value}"
        raise ValueError(msg)
    if current is MapStage.NOT_STARTED:
        return MapStage.PROMOTE
    if succeeded:
        return MapStage.SUCCESS
    index = _STAGE_ORDER.index(current)
    if index + 1 < len(_STAGE_ORDER):
        return _STAGE_ORDER[index + 1]
    return MapStage.EXHAUSTED


def extract_location_phrase(message: str) -> str:
    """Text after the last ``near``, else after the last ``in``/``around``/``at``.

    Falls back to the whole message when no preposition is present.
    """
    phrase = message
    for pattern in (_NEAR_PHRASE, _LOCATION_PHRASE):
        matches = list(pattern.finditer(message))
        if matches:
            phrase = message[matches[-1].end() :]
            break
    return phrase.strip().rstrip(_TRAILING_PUNCTUATION).strip() or message.strip()


class SeedSearchBackend(Protocol):
    async def fuzzy_search(
        self,
        query: str,
        *,
        lat: float | None = None,
        lon: float | None = None,
        radius: int | None = None,
        limit: int = 10,
    ) -> dict[str, Any]: ...

    async def geocode(self, query: str, *, limit: int = 1) -> dict[str, Any]: ...


# ---------------------------------------------------------------------------
# Result contracts
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StageAttempt:
    """One stage's outcome (``success``, ``empty``, ``skipped`` or ``error``)."""

    stage: MapStage
    outcome: str
    detail: str = ""


@dataclass(frozen=True, slots=True)
class MapPipelineResult:
    """Terminal state of one pipeline run.

    Attributes:
        map_data: FeatureCollection dict on success, else ``None``.
        stage: ``SUCCESS`` or ``EXHAUSTED``.
        succeeded_stage: The stage that produced ``map_data``.
        tools_used: Tool ids this run contributed to provenance.
        agents_used: Agent names this run contributed to provenance.
        attempts: Per-stage log, in execution order.
    """

    map_data: dict[str, Any] | None
    stage: MapStage
    succeeded_stage: MapStage | None = None
    tools_used: tuple[str, ...] = ()
    agents_used: tuple[str, ...] = ()
    attempts: tuple[StageAttempt, ...] = field(default_factory=tuple)

    @property
    def succeeded(self) -> bool:
        return self.stage is MapStage.SUCCESS


@dataclass(frozen=True, slots=True)
class _StageResult:
    map_data: dict[str, Any] | None = None
    tools: tuple[str, ...] = ()
    agents: tuple[str, ...] = ()
    skipped: bool = False


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class MapGuaranteePipeline:
    """Run the fallback chain for one request.

    Args:
        search: Seed-search backend (the TomTom adapter).
        synthesizer: Feature synthesizer.
        map_agent: Optional map-specialised generation agent.
        search_category: Keyword for the seed search.
        search_radius_m: Seed-search radius in metres.
        search_limit: Seed-search result limit.
    """

    def __init__(
        self,
        search: SeedSearchBackend | None,
        *,
        synthesizer: FeatureSynthesizer | None = None,
        map_agent: TextGenerator | None = None,
        search_category: str = "points of interest",
        search_radius_m: int = 5000,
        search_limit: int = 20,
    ) -> None:
        self._search = search
        self._synthesizer = synthesizer or FeatureSynthesizer()
        self._map_agent = map_agent
        self.search_category = search_category
        self.search_radius_m = search_radius_m
        self.search_limit = search_limit

    @classmethod
    def from_config(
        cls,
        config: PipelineConfig,
        search: SeedSearchBackend | None,
        *,
        synthesizer: FeatureSynthesizer | None = None,
        map_agent: TextGenerator | None = None,
    ) -> MapGuaranteePipeline:
        return cls(
            search,
            synthesizer=synthesizer,
            map_agent=map_agent,
            search_category=config.fallback_search_category,
            search_radius_m=config.search_radius_default_m,
            search_limit=config.fallback_search_limit,
        )

    async def run(
        self,
        message: str,
        *,
        upstream_text: str = "",
        tool_results: Mapping[str, Any] | None = None,
        upstream_map_data: dict[str, Any] | None = None,
    ) -> MapPipelineResult:
        """Produce map data for *message*, or ``None`` once every stage failed.

        Args:
            message: The original user message.
            upstream_text: Reply text of the upstream domain agent.
            tool_results: ``{tool id: raw payload}`` from upstream tool calls.
            upstream_map_data: Map data already extracted upstream, if any.

        Raises:
            ConfigurationError: A stage needed a credential that is missing.
        """
        state = next_stage(MapStage.NOT_STARTED, succeeded=False)
        attempts: list[StageAttempt] = []

        while state not in TERMINAL_STAGES:
            result = await self._attempt(
                state,
                attempts,
                message=message,
                upstream_text=upstream_text,
                tool_results=tool_results or {},
                upstream_map_data=upstream_map_data,
            )
            if result is not None and has_features(result.map_data):
                logger.info(
                    "Map pipeline succeeded | stage=%s | features=%d",
                    state.value,
                    len(result.map_data["features"]),  # type: ignore[index]
                )
                return MapPipelineResult(
                    map_data=result.map_data,
                    stage=next_stage(state, succeeded=True),
                    succeeded_stage=state,
                    tools_used=result.tools,
                    agents_used=result.agents,
                    attempts=tuple(attempts),
                )
            state = next_stage(state, succeeded=False)

        logger.warning("Map pipeline exhausted | stages=%d", len(attempts))
        return MapPipelineResult(map_data=None, stage=state, attempts=tuple(attempts))

    async def _attempt(
        self,
        stage: MapStage,
        attempts: list[StageAttempt],
        **context: Any,
    ) -> _StageResult | None:
        handlers = {
            MapStage.PROMOTE: self._promote,
            MapStage.SYNTHESIZE: self._synthesize,
            MapStage.AGENT_GENERATION: self._generate,
            MapStage.SEED_SEARCH: self._seed_search,
        }
        try:
            result = await handlers[stage](**context)
        except ConfigurationError:
            attempts.append(StageAttempt(stage, "error", "configuration"))
            raise
        except Exception as exc:
            logger.warning("stage=%s failed | error=%s", stage.value, exc, exc_info=True)
            attempts.append(StageAttempt(stage, "error", str(exc)))
            return None

        if result.skipped:
            attempts.append(StageAttempt(stage, "skipped"))
        elif has_features(result.map_data):
            attempts.append(StageAttempt(stage, "success"))
        else:
            attempts.append(StageAttempt(stage, "empty"))
        return result

    # -- stages -------------------------------------------------------------

    async def _promote(
        self,
        *,
        upstream_text: str,
        tool_results: Mapping[str, Any],
        upstream_map_data: dict[str, Any] | None,
        **_: Any,
    ) -> _StageResult:
        if has_features(upstream_map_data):
            return _StageResult(map_data=upstream_map_data)
        if not upstream_text:
            return _StageResult(skipped=True)
        extraction = extract(upstream_text, _as_entries(tool_results))
        return _StageResult(map_data=extraction.map_data)

    async def _synthesize(self, *, tool_results: Mapping[str, Any], **_: Any) -> _StageResult:
        if not tool_results:
            return _StageResult(skipped=True)
        synthesis = self._synthesizer.synthesize(tool_results)
        if synthesis.collection.is_empty:
            return _StageResult()
        return _StageResult(
            map_data=synthesis.collection.to_dict(),
            tools=(c.FORMAT_MAP_DATA, *synthesis.contributing_tools),
        )

    async def _generate(self, *, message: str, **_: Any) -> _StageResult:
        if self._map_agent is None:
            return _StageResult(skipped=True)
        reply = await self._map_agent.generate(message)
        extraction = extract(reply.text)
        return _StageResult(map_data=extraction.map_data, agents=(c.MAP_DATA_AGENT,))

    async def _seed_search(self, *, message: str, **_: Any) -> _StageResult:
        if self._search is None:
            return _StageResult(skipped=True)
        location = extract_location_phrase(message)
        position = await self._geobias(self._search, location)
        if position is not None:
            lat, lon = position
            payload = await self._search.fuzzy_search(
                self.search_category,
                lat=lat,
                lon=lon,
                radius=self.search_radius_m,
                limit=self.search_limit,
            )
        else:
            payload = await self._search.fuzzy_search(
                f"{self.search_category} {location}",
                limit=self.search_limit,
            )
        logger.info(
            "Seed search issued | location=%s | biased=%s",
            location,
            position is not None,
        )
        synthesis = self._synthesizer.synthesize({c.TOMTOM_FUZZY_SEARCH: payload})
        if synthesis.collection.is_empty:
            return _StageResult()
        return _StageResult(
            map_data=synthesis.collection.to_dict(),
            tools=(c.TOMTOM_FUZZY_SEARCH, c.FORMAT_MAP_DATA),
        )

    async def _geobias(self, search: SeedSearchBackend, location: str) -> tuple[float, float] | None:
        """Geocode *location*; ``None`` if the provider found nothing or failed."""
        try:
            payload = await search.geocode(location, limit=1)
        except (ProviderError, MalformedPayloadError) as exc:
            logger.warning("Geocoding failed, searching unbiased | location=%s | error=%s", location, exc)
            return None
        return first_position(payload)


def _as_entries(tool_results: Mapping[str, Any]) -> list[dict[str, Any]]:
    return [{"tool": tool, "result": payload} for tool, payload in tool_results.items()]
