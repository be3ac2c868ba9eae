"""Candidate selection: exclusion, filtering, scoring and diversification."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

import structlog

from ..errors import ProfileIncompleteError
from ..schemas import OPPOSITE_ROLE, CandidateFilters, ScoredCandidate
from .compatibility import CompatibilityScorer

if TYPE_CHECKING:
    from . import ProfileStore, SwipeStore


@dataclass
class SelectorConfig:
    """Oversampling and diversification knobs."""

    oversample_factor: int = 3
    top_share: float = 0.7


class CandidateSelector:
    """Produce the next batch of candidates for a requester."""

    def __init__(
        self,
        *,
        profiles: "ProfileStore",
        swipes: "SwipeStore",
        scorer: CompatibilityScorer,
        config: SelectorConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._profiles = profiles
        self._swipes = swipes
        self._scorer = scorer
        self._config = config or SelectorConfig()
        self._rng = rng or random.Random()
        self._logger = structlog.get_logger(__name__)

    def next_candidates(
        self,
        requester_id: int,
        filters: CandidateFilters | None = None,
        limit: int = 10,
    ) -> list[ScoredCandidate]:
        requester = self._profiles.get_entity(requester_id)
        if requester is None:
            raise ProfileIncompleteError(requester_id, "unknown entity")
        if not requester.profile_complete:
            raise ProfileIncompleteError(requester_id)
        if limit <= 0:
            return []

        filters = filters or CandidateFilters()
        target_role = OPPOSITE_ROLE[requester.role]
        excluded = self._swipes.excluded_targets(requester_id)
        excluded.add(requester_id)

        pool = self._profiles.find_candidates(
            role=target_role,
            exclude_ids=excluded,
            filters=filters,
            limit=limit * self._config.oversample_factor,
        )
        scored = sorted(
            (
                ScoredCandidate(entity=entity, score=self._scorer.score(requester, entity))
                for entity in pool
                if entity.entity_id not in excluded
            ),
            key=lambda item: item.score,
            reverse=True,
        )
        selected = self.diversify(scored, limit)

        self._logger.info(
            "candidates.served",
            requester_id=requester_id,
            target_role=target_role,
            requested=limit,
            filtered=not filters.is_empty,
            pool_size=len(pool),
            excluded=len(excluded),
            returned=len(selected),
        )
        return selected

    def diversify(self, scored: Sequence[ScoredCandidate], limit: int) -> list[ScoredCandidate]:
        """Keep the best-scored share verbatim and sample the rest at random.

        ``scored`` must already be sorted by descending score.
        """
        # 10 * 0.7 is 7.000000000000001 in binary floating point.
        top_count = min(math.ceil(round(limit * self._config.top_share, 9)), limit)
        top = list(scored[:top_count])
        remainder = list(scored[top_count:])
        random_count = min(limit - len(top), len(remainder))
        sampled = self._rng.sample(remainder, random_count) if random_count > 0 else []
        return top + sampled
