"""Core matching engine components."""

from __future__ import annotations

from contextlib import AbstractContextManager
from datetime import datetime
from typing import Iterable, Protocol, runtime_checkable

from ..schemas import (
    Action,
    CandidateFilters,
    Decision,
    Entity,
    Match,
    MatchingStats,
    MatchStatus,
    Role,
)


@runtime_checkable
class Factor(Protocol):
    """Single compatibility signal in [0, 1] for a resolved company/agent pair."""

    method: str

    def evaluate(self, company: Entity, agent: Entity) -> float:
        """Return the factor value for the pair."""


@runtime_checkable
class ProfileStore(Protocol):
    """Read access to entities and their profiles."""

    def get_entity(self, entity_id: int) -> Entity | None:
        """Return the entity with its profile, or None when unknown."""

    def get_entities(self, entity_ids: Iterable[int]) -> dict[int, Entity]:
        """Return the known entities among ``entity_ids`` keyed by id."""

    def find_candidates(
        self,
        *,
        role: Role,
        exclude_ids: Iterable[int],
        filters: CandidateFilters,
        limit: int,
    ) -> list[Entity]:
        """Return up to ``limit`` complete entities of ``role`` in random order."""


class SwipeUnitOfWork(Protocol):
    """Decision log and match ledger operations sharing one transaction."""

    def record_decision(self, actor_id: int, target_id: int, action: Action) -> bool:
        """Insert the decision unless the ordered pair exists; True when inserted."""

    def lock_match(self, company_id: int, agent_id: int) -> Match | None:
        """Read the pair's match row, locking it for the rest of the transaction."""

    def create_match(self, company_id: int, agent_id: int, status: MatchStatus) -> Match:
        """Insert the pair's match row."""

    def update_match(
        self,
        match_id: str,
        status: MatchStatus,
        *,
        matched_at: datetime | None = None,
    ) -> Match:
        """Move an existing match row to ``status``."""


@runtime_checkable
class SwipeStore(Protocol):
    """Decision log and match ledger."""

    def unit_of_work(self) -> AbstractContextManager[SwipeUnitOfWork]:
        """Open a transaction; commit on clean exit, roll back otherwise."""

    def excluded_targets(self, entity_id: int) -> set[int]:
        """Ids already decided on by ``entity_id`` or rejected with it."""

    def list_matches(self, entity_id: int, status: MatchStatus, limit: int) -> list[Match]:
        """Matches involving ``entity_id`` with ``status``, newest first."""

    def get_match(self, match_id: str) -> Match | None:
        """Return a match by id."""

    def history(self, actor_id: int, limit: int) -> list[Decision]:
        """Decisions made by ``actor_id``, newest first."""

    def stats(self, entity_id: int) -> MatchingStats:
        """Aggregate swipe and match counts."""


@runtime_checkable
class MatchNotifier(Protocol):
    """Receives completed matches after they are committed."""

    def match_completed(self, match: Match) -> None:
        """Deliver the event; failures never affect the committed match."""


# NOTE: keep imports explicit for export clarity.
from .compatibility import CompatibilityReport, CompatibilityScorer  # noqa: E402
from .locks import LockTimeoutError, PairLockRegistry  # noqa: E402
from .selector import CandidateSelector  # noqa: E402
from .swipe import SwipeProcessor, next_status  # noqa: E402

__all__ = [
    "Factor",
    "ProfileStore",
    "SwipeStore",
    "SwipeUnitOfWork",
    "MatchNotifier",
    "CompatibilityReport",
    "CompatibilityScorer",
    "CandidateSelector",
    "LockTimeoutError",
    "PairLockRegistry",
    "SwipeProcessor",
    "next_status",
]
