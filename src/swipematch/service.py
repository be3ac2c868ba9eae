"""Matching service: the operations exposed to the API layer."""

from __future__ import annotations

from typing import Any

import structlog

from .core import CandidateSelector, CompatibilityReport, CompatibilityScorer, SwipeProcessor
from .core import ProfileStore, SwipeStore
from .errors import (
    EntityNotFoundError,
    InputError,
    ProfileIncompleteError,
    SelfDecisionError,
)
from .schemas import (
    MATCH_STATUSES,
    CandidateFilters,
    Decision,
    DecisionOutcome,
    Entity,
    Match,
    MatchingStats,
    MatchSummary,
    ScoredCandidate,
)


class MatchingService:
    """Facade over candidate selection, swipe processing and ledger reads."""

    def __init__(
        self,
        *,
        profiles: ProfileStore,
        swipes: SwipeStore,
        scorer: CompatibilityScorer,
        selector: CandidateSelector,
        processor: SwipeProcessor,
    ) -> None:
        self._profiles = profiles
        self._swipes = swipes
        self._scorer = scorer
        self._selector = selector
        self._processor = processor
        self._logger = structlog.get_logger(__name__)

    def next_candidates(
        self,
        requester_id: int,
        filters: CandidateFilters | dict[str, Any] | None = None,
        limit: int = 10,
    ) -> list[ScoredCandidate]:
        if isinstance(filters, dict):
            filters = CandidateFilters.model_validate(filters)
        return self._selector.next_candidates(requester_id, filters, limit)

    def decide(self, actor_id: int, target_id: int, action: str) -> DecisionOutcome:
        outcome = self._processor.decide(actor_id, target_id, action)
        self._logger.info(
            "swipe.processed",
            actor_id=actor_id,
            target_id=target_id,
            action=action,
            matched=outcome.matched,
            status=outcome.status,
            replayed=outcome.replayed,
        )
        return outcome

    def list_matches(self, entity_id: int, status: str = "matched", limit: int = 50) -> list[Match]:
        if status not in MATCH_STATUSES:
            raise InputError(
                f"Invalid status {status!r}; expected one of {', '.join(MATCH_STATUSES)}"
            )
        self._require(entity_id)
        return self._swipes.list_matches(entity_id, status, max(limit, 0))

    def match_summaries(
        self, entity_id: int, status: str = "matched", limit: int = 50
    ) -> list[MatchSummary]:
        """Matches of ``entity_id`` with the partner's profile attached."""
        matches = self.list_matches(entity_id, status, limit)
        partners = self._profiles.get_entities(match.partner_of(entity_id) for match in matches)
        return [
            MatchSummary.for_viewer(match, entity_id, partners.get(match.partner_of(entity_id)))
            for match in matches
        ]

    def get_match(self, match_id: str, entity_id: int) -> Match | None:
        """Return the match only when ``entity_id`` is one of its participants."""
        match = self._swipes.get_match(match_id)
        if match is None or not match.involves(entity_id):
            return None
        return match

    def swipe_history(self, entity_id: int, limit: int = 50) -> list[Decision]:
        return self._swipes.history(entity_id, max(limit, 0))

    def compatibility(self, entity_id: int, other_id: int) -> CompatibilityReport:
        if entity_id == other_id:
            raise SelfDecisionError(entity_id)
        entity = self._require(entity_id)
        other = self._require(other_id)
        for item in (entity, other):
            if not item.profile_complete:
                raise ProfileIncompleteError(item.entity_id)
        return self._scorer.report(entity, other)

    def stats(self, entity_id: int) -> MatchingStats:
        self._require(entity_id)
        return self._swipes.stats(entity_id)

    def _require(self, entity_id: int) -> Entity:
        entity = self._profiles.get_entity(entity_id)
        if entity is None:
            raise EntityNotFoundError(entity_id)
        return entity
