"""Reputation factor."""

from __future__ import annotations

from dataclasses import dataclass

from ...schemas import Entity


@dataclass
class ReputationConfig:
    max_reputation: float = 5.0


class ReputationFactor:
    """Average reputation of both sides, normalized to [0, 1]."""

    method = "reputation"

    def __init__(self, *, config: ReputationConfig | None = None) -> None:
        self._config = config or ReputationConfig()

    def evaluate(self, company: Entity, agent: Entity) -> float:
        average = ((company.reputation or 0.0) + (agent.reputation or 0.0)) / 2
        return min(average / self._config.max_reputation, 1.0)
