"""Compatibility scoring between a company and an agent."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Literal

from ..errors import InvalidPairError
from ..schemas import Entity

CompatibilityLevel = Literal["excellent", "good", "fair", "low"]


@dataclass(slots=True)
class CompatibilityReport:
    """Score with its per-factor breakdown on a 0-100 scale."""

    score: int
    level: CompatibilityLevel
    factors: dict[str, float]


class CompatibilityScorer:
    """Weighted sum of factor evaluators, rounded to an integer in [0, 100].

    Factors are evaluated with roles resolved, so the argument order of
    ``score`` does not matter.
    """

    DEFAULT_WEIGHTS: dict[str, float] = {
        "geographic": 0.25,
        "industry": 0.30,
        "language": 0.20,
        "experience": 0.15,
        "reputation": 0.10,
    }

    DEFAULT_LEVELS: dict[CompatibilityLevel, float] = {
        "excellent": 80,
        "good": 60,
        "fair": 40,
        "low": 0,
    }

    def __init__(
        self,
        factors: Iterable[Any],
        *,
        weights: dict[str, float] | None = None,
        levels: dict[CompatibilityLevel, float] | None = None,
    ) -> None:
        self._factors = list(factors)
        self._weights = self.DEFAULT_WEIGHTS.copy()
        if weights:
            self._weights.update(weights)
        self._levels = self.DEFAULT_LEVELS.copy()
        if levels:
            self._levels.update(levels)

    def score(self, entity_a: Entity, entity_b: Entity) -> int:
        company, agent = self.resolve_roles(entity_a, entity_b)
        return self._to_score(self._evaluate(company, agent))

    def report(self, entity_a: Entity, entity_b: Entity) -> CompatibilityReport:
        company, agent = self.resolve_roles(entity_a, entity_b)
        values = self._evaluate(company, agent)
        score = self._to_score(values)
        return CompatibilityReport(
            score=score,
            level=self.level_for(score),
            factors={method: round(value * 100, 2) for method, value in values.items()},
        )

    def level_for(self, score: int) -> CompatibilityLevel:
        for level, threshold in sorted(self._levels.items(), key=lambda item: -item[1]):
            if score >= threshold:
                return level
        return "low"

    @staticmethod
    def resolve_roles(entity_a: Entity, entity_b: Entity) -> tuple[Entity, Entity]:
        roles = (entity_a.role, entity_b.role)
        if roles == ("company", "agent"):
            return entity_a, entity_b
        if roles == ("agent", "company"):
            return entity_b, entity_a
        raise InvalidPairError(
            f"Compatibility needs one company and one agent, got {roles[0]!r} and {roles[1]!r}"
        )

    def _evaluate(self, company: Entity, agent: Entity) -> dict[str, float]:
        values: dict[str, float] = {}
        for factor in self._factors:
            value = float(factor.evaluate(company, agent))
            values[factor.method] = min(max(value, 0.0), 1.0)
        return values

    def _to_score(self, values: dict[str, float]) -> int:
        total = sum(
            values.get(method, 0.0) * weight
            for method, weight in self._weights.items()
        )
        # Half-up rounding; round() would send 0.5 to the even neighbour.
        return min(max(math.floor(total * 100 + 0.5), 0), 100)
