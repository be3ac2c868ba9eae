"""Pydantic and dataclass definitions shared across the engine."""

from __future__ import annotations

from .entity import OPPOSITE_ROLE, AgentProfile, CompanyProfile, Entity, Profile, Role
from .swipe import (
    ACTIONS,
    MATCH_STATUSES,
    Action,
    CandidateFilters,
    Decision,
    DecisionOutcome,
    Match,
    MatchCounts,
    MatchingStats,
    MatchStatus,
    MatchSummary,
    ScoredCandidate,
    SwipeCounts,
)

__all__ = [
    "ACTIONS",
    "MATCH_STATUSES",
    "OPPOSITE_ROLE",
    "Action",
    "AgentProfile",
    "CandidateFilters",
    "CompanyProfile",
    "Decision",
    "DecisionOutcome",
    "Entity",
    "Match",
    "MatchCounts",
    "MatchingStats",
    "MatchStatus",
    "MatchSummary",
    "Profile",
    "Role",
    "ScoredCandidate",
    "SwipeCounts",
]
