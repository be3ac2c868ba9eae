from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .entity import AgentProfile, CompanyProfile, Entity

Action = Literal["like", "pass"]
MatchStatus = Literal["pending_agent", "pending_company", "matched", "rejected"]

ACTIONS: tuple[str, ...] = get_args(Action)
MATCH_STATUSES: tuple[str, ...] = get_args(MatchStatus)


@dataclass(slots=True)
class Decision:
    """Immutable like/pass fact from one entity about another."""

    actor_id: int
    target_id: int
    action: Action
    created_at: datetime | None = None


@dataclass(slots=True)
class Match:
    """Lifecycle record for a company/agent pair."""

    match_id: str
    company_id: int
    agent_id: int
    status: MatchStatus
    created_at: datetime | None = None
    matched_at: datetime | None = None
    updated_at: datetime | None = None

    def involves(self, entity_id: int) -> bool:
        return entity_id in (self.company_id, self.agent_id)

    def partner_of(self, entity_id: int) -> int:
        return self.agent_id if entity_id == self.company_id else self.company_id


@dataclass(slots=True)
class DecisionOutcome:
    """Result of a swipe as seen by the caller."""

    matched: bool
    match_id: str | None
    status: MatchStatus
    replayed: bool = False

    @classmethod
    def from_match(cls, match: Match, *, replayed: bool = False) -> "DecisionOutcome":
        return cls(
            matched=match.status == "matched",
            match_id=match.match_id,
            status=match.status,
            replayed=replayed,
        )


@dataclass(slots=True)
class MatchSummary:
    """A match as shown to one participant, with the other side's profile."""

    match_id: str
    status: MatchStatus
    partner_id: int
    partner: Entity | None
    created_at: datetime | None = None
    matched_at: datetime | None = None

    @classmethod
    def for_viewer(cls, match: Match, viewer_id: int, partner: Entity | None) -> "MatchSummary":
        return cls(
            match_id=match.match_id,
            status=match.status,
            partner_id=match.partner_of(viewer_id),
            partner=partner,
            created_at=match.created_at,
            matched_at=match.matched_at,
        )


@dataclass(slots=True)
class ScoredCandidate:
    entity: Entity
    score: int


@dataclass(slots=True)
class SwipeCounts:
    total: int = 0
    likes: int = 0
    passes: int = 0


@dataclass(slots=True)
class MatchCounts:
    total: int = 0
    matched: int = 0
    pending: int = 0
    rejected: int = 0


@dataclass(slots=True)
class MatchingStats:
    entity_id: int
    swipes: SwipeCounts = field(default_factory=SwipeCounts)
    matches: MatchCounts = field(default_factory=MatchCounts)


class CandidateFilters(BaseModel):
    """Caller-supplied candidate restrictions; every set field must hold."""

    country: str | None = None
    industries: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    experience_min: int | None = Field(default=None, ge=0)
    experience_max: int | None = Field(default=None, ge=0)
    reputation_min: float | None = Field(default=None, ge=0.0, le=5.0)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _check_experience_range(self) -> "CandidateFilters":
        if (
            self.experience_min is not None
            and self.experience_max is not None
            and self.experience_min > self.experience_max
        ):
            raise ValueError("experience_min must not exceed experience_max")
        return self

    @property
    def is_empty(self) -> bool:
        return self == CandidateFilters()

    def accepts(self, entity: Entity) -> bool:
        profile = entity.profile
        if self.reputation_min is not None and entity.reputation < self.reputation_min:
            return False
        if self.industries and not entity.tags & set(self.industries):
            return False
        if self.languages and not entity.spoken_languages & set(self.languages):
            return False

        if isinstance(profile, CompanyProfile):
            return self.country is None or profile.country == self.country

        if isinstance(profile, AgentProfile):
            if self.country is not None and self.country not in profile.countries:
                return False
            if self.experience_min is not None and profile.experience_years < self.experience_min:
                return False
            if self.experience_max is not None and profile.experience_years > self.experience_max:
                return False
            return True

        return False
