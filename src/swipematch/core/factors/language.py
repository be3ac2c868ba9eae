"""Language compatibility factor.

The agent side uses its declared ``languages`` and falls back to its interface
language when that list is empty. Companies declare no language list, so the
company side is always its interface language.
"""

from __future__ import annotations

from dataclasses import dataclass

from ...schemas import Entity


@dataclass
class LanguageConfig:
    """Saturation point and fallback score for language overlap."""

    saturation: int = 2
    no_overlap_score: float = 0.3


class LanguageFactor:
    method = "language"

    def __init__(self, *, config: LanguageConfig | None = None) -> None:
        self._config = config or LanguageConfig()

    def evaluate(self, company: Entity, agent: Entity) -> float:
        common = company.spoken_languages & agent.spoken_languages
        if not common:
            return self._config.no_overlap_score
        return min(len(common) / self._config.saturation, 1.0)
