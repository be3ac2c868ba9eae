"""Industry / specialization overlap factor."""

from __future__ import annotations

from dataclasses import dataclass

from ...schemas import Entity


@dataclass
class IndustryConfig:
    """Score used when either side declares no tags."""

    neutral_score: float = 0.5


class IndustryFactor:
    """Share of tags common to company industries and agent specializations."""

    method = "industry"

    def __init__(self, *, config: IndustryConfig | None = None) -> None:
        self._config = config or IndustryConfig()

    def evaluate(self, company: Entity, agent: Entity) -> float:
        industries = company.tags
        specializations = agent.tags
        if not industries or not specializations:
            return self._config.neutral_score

        overlap = industries & specializations
        return len(overlap) / max(len(industries), len(specializations))
