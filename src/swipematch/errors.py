"""Error taxonomy for the matching engine.

Input errors are deterministic and raised before any write, so the API layer
can surface them verbatim. Persistence errors are transient unless stated
otherwise; the caller retries the whole operation.
"""

from __future__ import annotations


class MatchingError(Exception):
    """Base class for every error raised by the engine."""

    code = "MATCHING_ERROR"
    transient = False


class InputError(MatchingError, ValueError):
    """Rejected input; nothing was written."""

    code = "INVALID_INPUT"


class SelfDecisionError(InputError):
    code = "SELF_SWIPE_NOT_ALLOWED"

    def __init__(self, entity_id: int):
        super().__init__(f"Entity {entity_id} cannot decide on itself")
        self.entity_id = entity_id


class InvalidPairError(InputError):
    code = "SAME_ACCOUNT_TYPE"


class ProfileIncompleteError(InputError):
    code = "PROFILE_INCOMPLETE"

    def __init__(self, entity_id: int, reason: str = "complete profile required"):
        super().__init__(f"Entity {entity_id}: {reason}")
        self.entity_id = entity_id


class EntityNotFoundError(InputError):
    code = "USER_NOT_FOUND"

    def __init__(self, entity_id: int):
        super().__init__(f"Entity {entity_id} not found")
        self.entity_id = entity_id


class RoleChangeError(InputError):
    code = "ROLE_IMMUTABLE"


class PersistenceError(MatchingError):
    """Storage failure; the unit of work was rolled back."""

    code = "PERSISTENCE_ERROR"
    transient = True


class WriteConflictError(PersistenceError):
    """A concurrent writer won a uniqueness race; retrying is safe."""

    code = "WRITE_CONFLICT"


class InvariantViolation(PersistenceError):
    """The ledger holds a state the transition table forbids."""

    code = "INVARIANT_VIOLATION"
    transient = False


__all__ = [
    "MatchingError",
    "InputError",
    "SelfDecisionError",
    "InvalidPairError",
    "ProfileIncompleteError",
    "EntityNotFoundError",
    "RoleChangeError",
    "PersistenceError",
    "WriteConflictError",
    "InvariantViolation",
]
