"""Geographic coverage factor."""

from __future__ import annotations

from dataclasses import dataclass

from ...schemas import AgentProfile, CompanyProfile, Entity


@dataclass
class GeographicConfig:
    """Scores for covered and uncovered company countries."""

    covered_score: float = 1.0
    uncovered_score: float = 0.3


class GeographicFactor:
    """Check whether the agent covers the company's country."""

    method = "geographic"

    def __init__(self, *, config: GeographicConfig | None = None) -> None:
        self._config = config or GeographicConfig()

    def evaluate(self, company: Entity, agent: Entity) -> float:
        company_profile = company.profile
        agent_profile = agent.profile
        country = company_profile.country if isinstance(company_profile, CompanyProfile) else None
        countries = agent_profile.countries if isinstance(agent_profile, AgentProfile) else []

        # A missing country is never "covered"; it only lowers the rank.
        if country is not None and country in countries:
            return self._config.covered_score
        return self._config.uncovered_score
