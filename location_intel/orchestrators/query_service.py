"""Request service: one location-intelligence query -> one PipelineOutcome.

Flow per request:

1. Classify the query (``QueryRouter``).
2. Resolve the domain agent (explicit domain, else from the analysis,
   else the orchestrator agent) and generate a reply.
3. Extract structured analysis / map data from the reply.
4. When the request wants a map (or the reply already carries one), run
   the map-guarantee pipeline.
5. Assemble the outcome with tool/agent provenance and timing.

Every failure at this boundary becomes an error outcome
(``success=False``, text ``"Error processing <domain> query: <msg>"``);
the service never raises for a single request.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from location_intel.core import constants as c
from location_intel.core.exceptions import PipelineError
from location_intel.extraction.response_extractor import extract
from location_intel.models.outcome import PipelineOutcome, ResponseType
from location_intel.orchestrators.map_pipeline import MapGuaranteePipeline
from location_intel.providers.factory import build_providers
from location_intel.routing.query_router import QueryRouter
from location_intel.synthesis.feature_synthesizer import FeatureSynthesizer
from location_intel.tools.aliases import normalize_tool_id
from location_intel.tools.dispatcher import ToolDispatcher
from location_intel.tools.registry import build_tool_registry

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from location_intel.agents.directory import AgentDirectory
    from location_intel.core.config import PipelineConfig
    from location_intel.providers.http import RetryingHttpClient

logger = logging.getLogger("location_intel.orchestrators.query_service")

DEFAULT_REPLY_TEXT = "Analysis completed"
GENERAL_INTENT = "general"


def _unique(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(i for i in items if i))


class LocationIntelligenceService:
    """Entry point for the request-handling layer.

    Args:
        agents: Registered generation agents.
        pipeline: Map-guarantee pipeline.
        router: Query router (a default one if omitted).
        clock: Monotonic clock in seconds (tests inject a fake).
    """

    def __init__(
        self,
        agents: AgentDirectory,
        pipeline: MapGuaranteePipeline,
        *,
        router: QueryRouter | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._agents = agents
        self._pipeline = pipeline
        self._router = router or QueryRouter()
        self._clock = clock

    @classmethod
    def create(
        cls,
        config: PipelineConfig,
        http: RetryingHttpClient,
        agents: AgentDirectory,
    ) -> tuple[LocationIntelligenceService, ToolDispatcher]:
        """Wire providers, tools and the map pipeline from *config*.

        Returns the service and the tool dispatcher (to hand to agents that
        execute tool calls).
        """
        providers = build_providers(config, http)
        synthesizer = FeatureSynthesizer()
        dispatcher = ToolDispatcher(build_tool_registry(providers, config, synthesizer=synthesizer))
        pipeline = MapGuaranteePipeline.from_config(
            config,
            providers.tomtom,
            synthesizer=synthesizer,
            map_agent=agents.map_agent,
        )
        return cls(agents, pipeline), dispatcher

    async def process_query(
        self,
        message: str,
        domain: str | None = None,
        *,
        correlation_id: str = "",
    ) -> PipelineOutcome:
        """Answer *message*, optionally forcing a *domain* agent.

        *correlation_id* is attached to the logs and to the error details of
        a failed request.
        """
        started = self._clock()
        analysis = self._router.analyze(message)
        domain = domain or self._router.domain_for(analysis.query_type)
        label = domain or GENERAL_INTENT
        agent_name = c.DOMAIN_AGENTS.get(domain, f"{domain}Agent") if domain else c.ORCHESTRATOR_AGENT
        logger.info(
            "Processing query | domain=%s | type=%s | correlation_id=%s",
            label,
            analysis.query_type.value,
            correlation_id,
        )

        try:
            agent = self._agents.for_domain(domain) if domain else self._agents.get(c.ORCHESTRATOR_AGENT)
            reply = await agent.generate(message)
            extraction = extract(reply.text, list(reply.tool_results))

            map_data: dict[str, Any] | None = extraction.map_data
            tools = [*c.DOMAIN_TOOLS.get(domain or "", ()), *(normalize_tool_id(t) for t in reply.tool_result_map())]
            agents = [agent_name]

            if analysis.requires_mapping or map_data is not None:
                result = await self._pipeline.run(
                    message,
                    upstream_text=reply.text,
                    tool_results=reply.tool_result_map(),
                    upstream_map_data=map_data,
                )
                map_data = result.map_data
                tools.extend(result.tools_used)
                agents.extend(result.agents_used)
        except Exception as exc:
            logger.exception("Query failed | domain=%s | correlation_id=%s", label, correlation_id)
            return self._error_outcome(exc, label, agent_name, started, correlation_id)

        return PipelineOutcome(
            response_type=ResponseType.ANALYSIS,
            text=reply.text or DEFAULT_REPLY_TEXT,
            analysis=extraction.analysis,
            map_data=map_data,
            tools_used=_unique(tools),
            agents_used=_unique(agents),
            success=True,
            execution_time_ms=self._elapsed_ms(started),
            intent=label,
            confidence=analysis.confidence,
            detected_entities=analysis.entities.flatten(),
        )

    def _error_outcome(
        self,
        exc: Exception,
        label: str,
        agent_name: str,
        started: float,
        correlation_id: str,
    ) -> PipelineOutcome:
        message = str(exc) or type(exc).__name__
        analysis: dict[str, Any] = {"error": message}
        if isinstance(exc, PipelineError):
            if correlation_id and not exc.correlation_id:
                exc.correlation_id = correlation_id
            analysis["details"] = exc.to_error_dict()
        return PipelineOutcome(
            response_type=ResponseType.TEXT,
            text=f"Error processing {label} query: {message}",
            analysis=analysis,
            map_data=None,
            tools_used=[],
            agents_used=[agent_name],
            success=False,
            execution_time_ms=self._elapsed_ms(started),
            intent=label,
            confidence=0.0,
        )

    def _elapsed_ms(self, started: float) -> float:
        return max(0.0, (self._clock() - started) * 1000)
