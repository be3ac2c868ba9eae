"""Swipe processing and the match lifecycle state machine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

import pendulum
import structlog

from ..errors import (
    EntityNotFoundError,
    InputError,
    InvalidPairError,
    InvariantViolation,
    PersistenceError,
    ProfileIncompleteError,
    SelfDecisionError,
    WriteConflictError,
)
from ..schemas import ACTIONS, Action, DecisionOutcome, Entity, Match, MatchStatus, Role
from .locks import PairLockRegistry

if TYPE_CHECKING:
    from . import MatchNotifier, ProfileStore, SwipeStore

_PENDING_FOR: dict[Role, MatchStatus] = {
    "company": "pending_agent",
    "agent": "pending_company",
}


def next_status(current: MatchStatus | None, action: Action, side: Role) -> MatchStatus:
    """Apply one decision to a pair's match status.

    ``current`` is None when the pair has no row yet. ``side`` is the role of
    the deciding entity.
    """
    if current == "rejected":
        return "rejected"
    if current == "matched":
        if action == "pass":
            raise InvariantViolation("pass received for a pair that is already matched")
        return "matched"
    if action == "pass":
        return "rejected"
    if current is None:
        return _PENDING_FOR[side]
    if current == _PENDING_FOR[side]:
        return current
    return "matched"


@dataclass
class SwipeConfig:
    """Retry policy for the decision unit of work."""

    max_attempts: int = 3


@dataclass(frozen=True, slots=True)
class _Pair:
    company_id: int
    agent_id: int
    side: Role

    @property
    def key(self) -> tuple[int, int]:
        return (self.company_id, self.agent_id)


class SwipeProcessor:
    """Record decisions and advance the match ledger atomically."""

    def __init__(
        self,
        *,
        profiles: "ProfileStore",
        swipes: "SwipeStore",
        notifier: "MatchNotifier | None" = None,
        locks: PairLockRegistry | None = None,
        config: SwipeConfig | None = None,
        now_provider: Callable[[], Any] | None = None,
    ) -> None:
        self._profiles = profiles
        self._swipes = swipes
        self._notifier = notifier
        self._locks = locks or PairLockRegistry()
        self._config = config or SwipeConfig()
        self._now_provider = now_provider or (lambda: pendulum.now("UTC"))
        self._logger = structlog.get_logger(__name__)

    def decide(self, actor_id: int, target_id: int, action: str) -> DecisionOutcome:
        if action not in ACTIONS:
            raise InputError(f"Unsupported action: {action!r}")
        if actor_id == target_id:
            raise SelfDecisionError(actor_id)

        actor = self._load(actor_id)
        target = self._load(target_id)
        if actor.role == target.role:
            raise InvalidPairError(
                f"Entities {actor_id} and {target_id} are both {actor.role!r}"
            )
        for entity in (actor, target):
            if not entity.profile_complete:
                raise ProfileIncompleteError(entity.entity_id)

        pair = self._pair_for(actor, target)
        with self._locks.hold(pair.key):
            outcome, match, completed = self._commit(pair, actor_id, target_id, action)

        if completed:
            self._notify(match)
        return outcome

    def _commit(
        self,
        pair: _Pair,
        actor_id: int,
        target_id: int,
        action: Action,
    ) -> tuple[DecisionOutcome, Match, bool]:
        attempts = self._config.max_attempts
        for attempt in range(1, attempts + 1):
            try:
                return self._apply(pair, actor_id, target_id, action)
            except WriteConflictError as exc:
                self._logger.warning(
                    "swipe.write_conflict",
                    actor_id=actor_id,
                    target_id=target_id,
                    attempt=attempt,
                    error=str(exc),
                )
        raise PersistenceError(
            f"Decision {actor_id}->{target_id} still conflicting after {attempts} attempts"
        )

    def _apply(
        self,
        pair: _Pair,
        actor_id: int,
        target_id: int,
        action: Action,
    ) -> tuple[DecisionOutcome, Match, bool]:
        with self._swipes.unit_of_work() as uow:
            inserted = uow.record_decision(actor_id, target_id, action)
            match = uow.lock_match(pair.company_id, pair.agent_id)

            if not inserted:
                if match is None:
                    self._logger.error(
                        "ledger.invariant_violation",
                        reason="decision_without_match",
                        company_id=pair.company_id,
                        agent_id=pair.agent_id,
                    )
                    raise InvariantViolation(
                        f"Decision {actor_id}->{target_id} exists but the pair has no match row"
                    )
                self._logger.info(
                    "swipe.replayed",
                    actor_id=actor_id,
                    target_id=target_id,
                    action=action,
                    status=match.status,
                )
                return DecisionOutcome.from_match(match, replayed=True), match, False

            current = match.status if match is not None else None
            try:
                status = next_status(current, action, pair.side)
            except InvariantViolation:
                self._logger.error(
                    "ledger.invariant_violation",
                    reason="pass_on_matched",
                    match_id=match.match_id if match else None,
                    actor_id=actor_id,
                )
                raise

            if match is None:
                match = uow.create_match(pair.company_id, pair.agent_id, status)
            elif status != current:
                matched_at = self._now_provider() if status == "matched" else None
                match = uow.update_match(match.match_id, status, matched_at=matched_at)

        completed = status == "matched" and current != "matched"
        self._logger.info(
            "swipe.recorded",
            actor_id=actor_id,
            target_id=target_id,
            action=action,
            previous_status=current,
            status=status,
            match_id=match.match_id,
        )
        return DecisionOutcome.from_match(match), match, completed

    def _notify(self, match: Match) -> None:
        self._logger.info(
            "match.completed",
            match_id=match.match_id,
            company_id=match.company_id,
            agent_id=match.agent_id,
        )
        if self._notifier is None:
            return
        try:
            self._notifier.match_completed(match)
        except Exception as exc:  # noqa: BLE001
            self._logger.warning(
                "match.notify_failed",
                match_id=match.match_id,
                error=str(exc),
                exc_info=True,
            )

    def _load(self, entity_id: int) -> Entity:
        entity = self._profiles.get_entity(entity_id)
        if entity is None:
            raise EntityNotFoundError(entity_id)
        if entity.role is None:
            raise ProfileIncompleteError(entity_id, "account type must be set before matching")
        return entity

    @staticmethod
    def _pair_for(actor: Entity, target: Entity) -> _Pair:
        if actor.role == "company":
            return _Pair(company_id=actor.entity_id, agent_id=target.entity_id, side="company")
        return _Pair(company_id=target.entity_id, agent_id=actor.entity_id, side="agent")
