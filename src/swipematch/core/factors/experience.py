"""Agent experience band factor."""

from __future__ import annotations

from dataclasses import dataclass

from ...schemas import AgentProfile, Entity


@dataclass
class ExperienceConfig:
    """Experience bands, checked in order: preferred, acceptable, veteran."""

    preferred_range: tuple[int, int] = (2, 15)
    preferred_score: float = 1.0
    acceptable_range: tuple[int, int] = (1, 20)
    acceptable_score: float = 0.8
    veteran_score: float = 0.6
    newcomer_score: float = 0.4


class ExperienceFactor:
    """Score the agent's years of experience, whichever side is asking."""

    method = "experience"

    def __init__(self, *, config: ExperienceConfig | None = None) -> None:
        self._config = config or ExperienceConfig()

    def evaluate(self, company: Entity, agent: Entity) -> float:
        profile = agent.profile
        years = profile.experience_years if isinstance(profile, AgentProfile) else 0
        config = self._config

        low, high = config.preferred_range
        if low <= years <= high:
            return config.preferred_score
        low, high = config.acceptable_range
        if low <= years <= high:
            return config.acceptable_score
        if years > high:
            return config.veteran_score
        return config.newcomer_score
