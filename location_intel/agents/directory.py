"""Name -> generation collaborator lookup.

Holds the domain agents (``urbanPlanningAgent``, ``retailAgent`` ...)
and the map-specialised ``mapDataAgent`` used by the map pipeline's
secondary-generation stage.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from location_intel.core.constants import DOMAIN_AGENTS, MAP_DATA_AGENT
from location_intel.core.exceptions import AgentUnavailableError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from location_intel.agents.base import TextGenerator

logger = logging.getLogger("location_intel.agents.directory")


class AgentDirectory:
    """Registered generation agents, keyed by agent name."""

    def __init__(self, agents: Mapping[str, TextGenerator] | None = None) -> None:
        self._agents: dict[str, TextGenerator] = dict(agents or {})

    def register(self, name: str, agent: TextGenerator) -> None:
        if not name:
            msg = "Agent name must be non-empty"
            raise ValueError(msg)
        self._agents[name] = agent
        logger.debug("Registered agent: %s", name)

    def get(self, name: str) -> TextGenerator:
        """Return the agent called *name*.

        Raises:
            AgentUnavailableError: If no such agent is registered.
        """
        agent = self._agents.get(name)
        if agent is None:
            raise AgentUnavailableError(name)
        return agent

    def for_domain(self, domain: str) -> TextGenerator:
        """Return the agent serving *domain* (``"retail"``, ``"real-estate"`` ...)."""
        name = DOMAIN_AGENTS.get(domain)
        if name is None:
            raise AgentUnavailableError(f"{domain}Agent")
        return self.get(name)

    @property
    def map_agent(self) -> TextGenerator | None:
        return self._agents.get(MAP_DATA_AGENT)

    def names(self) -> list[str]:
        return sorted(self._agents)
