"""SQLAlchemy implementations of the profile store and swipe store."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Iterable, Iterator

import pendulum
import sqlalchemy as sa
import structlog
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy import orm
from sqlalchemy.orm import Session, sessionmaker

from ..errors import InvariantViolation, PersistenceError, RoleChangeError, WriteConflictError
from ..schemas import (
    Action,
    AgentProfile,
    CandidateFilters,
    CompanyProfile,
    Decision,
    Entity,
    Match,
    MatchingStats,
    MatchStatus,
    Role,
)
from .models import Account, AgentProfileRow, CompanyProfileRow, DecisionRow, MatchRow

# Dialects with INSERT ... ON CONFLICT DO NOTHING.
_CONFLICT_INSERTS: dict[str, Callable[..., Any]] = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

# Accounts hydrated per round trip when candidates are filtered in Python.
_STREAM_BATCH = 25


def _utcnow() -> datetime:
    return pendulum.now("UTC")


def _needs_python_filter(role: Role, filters: CandidateFilters) -> bool:
    if filters.industries or filters.languages:
        return True
    # Agent countries are a JSON list.
    return role == "agent" and filters.country is not None


class _SessionScope:
    """Short-lived read sessions with storage errors mapped to PersistenceError."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    @contextmanager
    def _reading(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Storage read failed: {exc}") from exc
        finally:
            session.close()


class SqlProfileStore(_SessionScope):
    """Accounts with their company or agent profile."""

    def get_entity(self, entity_id: int) -> Entity | None:
        with self._reading() as session:
            account = session.get(Account, entity_id)
            return to_entity(account) if account is not None else None

    def get_entities(self, entity_ids: Iterable[int]) -> dict[int, Entity]:
        ids = list(set(entity_ids))
        if not ids:
            return {}
        with self._reading() as session:
            accounts = session.scalars(sa.select(Account).where(Account.id.in_(ids)))
            return {account.id: to_entity(account) for account in accounts}

    def find_candidates(
        self,
        *,
        role: Role,
        exclude_ids: Iterable[int],
        filters: CandidateFilters,
        limit: int,
    ) -> list[Entity]:
        if limit <= 0:
            return []
        stmt = sa.select(Account).where(Account.role == role)

        excluded = list(exclude_ids)
        if excluded:
            stmt = stmt.where(Account.id.not_in(excluded))
        if filters.reputation_min is not None:
            stmt = stmt.where(Account.reputation >= filters.reputation_min)

        if role == "company":
            stmt = (
                stmt.join(Account.company_profile)
                .where(CompanyProfileRow.company_name.is_not(None))
                .options(orm.contains_eager(Account.company_profile), orm.lazyload(Account.agent_profile))
            )
            if filters.country is not None:
                stmt = stmt.where(CompanyProfileRow.country == filters.country)
        else:
            stmt = (
                stmt.join(Account.agent_profile)
                .where(AgentProfileRow.full_name.is_not(None))
                .options(orm.contains_eager(Account.agent_profile), orm.lazyload(Account.company_profile))
            )
            if filters.experience_min is not None:
                stmt = stmt.where(AgentProfileRow.experience_years >= filters.experience_min)
            if filters.experience_max is not None:
                stmt = stmt.where(AgentProfileRow.experience_years <= filters.experience_max)

        stmt = stmt.order_by(sa.func.random())
        if not _needs_python_filter(role, filters):
            return self._fetch(stmt.limit(limit), filters, limit)

        # JSON tag and language lists are matched in Python; rows are hydrated
        # batch by batch until enough of them pass.
        stmt = stmt.execution_options(yield_per=max(limit, _STREAM_BATCH))
        return self._fetch(stmt, filters, limit)

    def _fetch(self, stmt: sa.Select, filters: CandidateFilters, limit: int) -> list[Entity]:
        candidates: list[Entity] = []
        with self._reading() as session:
            result = session.scalars(stmt)
            try:
                for account in result:
                    entity = to_entity(account)
                    if entity.profile_complete and filters.accepts(entity):
                        candidates.append(entity)
                        if len(candidates) >= limit:
                            break
            finally:
                result.close()
        return candidates

    def upsert_entity(self, entity: Entity) -> None:
        """Create or update an account and its profile.

        An account keeps the role it was first given.
        """
        session = self._session_factory()
        try:
            with session.begin():
                account = session.get(Account, entity.entity_id)
                if account is None:
                    account = Account(id=entity.entity_id)
                    session.add(account)
                elif account.role is not None and entity.role is not None and account.role != entity.role:
                    raise RoleChangeError(
                        f"Entity {entity.entity_id} is a {account.role!r}; role cannot become {entity.role!r}"
                    )

                account.role = entity.role or account.role
                account.username = entity.username
                account.language = entity.language
                account.reputation = entity.reputation
                account.review_count = entity.review_count
                _apply_profile(session, account, entity)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to store entity {entity.entity_id}: {exc}") from exc
        finally:
            session.close()


class SqlSwipeUnitOfWork:
    """Decision log and match ledger writes inside one open transaction."""

    def __init__(self, session: Session, now_provider: Callable[[], datetime]):
        self._session = session
        self._now = now_provider

    def record_decision(self, actor_id: int, target_id: int, action: Action) -> bool:
        values = {
            "actor_id": actor_id,
            "target_id": target_id,
            "action": action,
            "created_at": self._now(),
        }
        dialect = self._session.get_bind().dialect.name
        insert = _CONFLICT_INSERTS.get(dialect)
        if insert is not None:
            stmt = (
                insert(DecisionRow)
                .values(**values)
                .on_conflict_do_nothing(index_elements=["actor_id", "target_id"])
            )
            result = self._session.execute(stmt)
            return result.rowcount == 1

        existing = self._session.scalar(
            sa.select(DecisionRow.id).where(
                DecisionRow.actor_id == actor_id,
                DecisionRow.target_id == target_id,
            )
        )
        if existing is not None:
            return False
        self._session.add(DecisionRow(**values))
        self._session.flush()
        return True

    def lock_match(self, company_id: int, agent_id: int) -> Match | None:
        row = self._session.scalars(
            sa.select(MatchRow)
            .where(MatchRow.company_id == company_id, MatchRow.agent_id == agent_id)
            .with_for_update()
        ).first()
        return to_match(row) if row is not None else None

    def create_match(self, company_id: int, agent_id: int, status: MatchStatus) -> Match:
        now = self._now()
        row = MatchRow(
            company_id=company_id,
            agent_id=agent_id,
            status=status,
            created_at=now,
            updated_at=now,
            matched_at=now if status == "matched" else None,
        )
        self._session.add(row)
        self._session.flush()
        return to_match(row)

    def update_match(
        self,
        match_id: str,
        status: MatchStatus,
        *,
        matched_at: datetime | None = None,
    ) -> Match:
        row = self._session.get(MatchRow, match_id)
        if row is None:
            raise InvariantViolation(f"Match {match_id} disappeared inside its transaction")
        row.status = status
        row.updated_at = self._now()
        if matched_at is not None:
            row.matched_at = matched_at
        self._session.flush()
        return to_match(row)


class SqlSwipeStore(_SessionScope):
    """Decision log plus match ledger."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        now_provider: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(session_factory)
        self._now_provider = now_provider or _utcnow
        self._logger = structlog.get_logger(__name__)

    @contextmanager
    def unit_of_work(self) -> Iterator[SqlSwipeUnitOfWork]:
        session = self._session_factory()
        try:
            with session.begin():
                yield SqlSwipeUnitOfWork(session, self._now_provider)
        except IntegrityError as exc:
            raise WriteConflictError(f"Concurrent write on a unique key: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            self._logger.warning("storage.transaction_failed", error=str(exc))
            raise PersistenceError(f"Swipe transaction failed: {exc}") from exc
        finally:
            session.close()

    def excluded_targets(self, entity_id: int) -> set[int]:
        with self._reading() as session:
            decided = session.scalars(
                sa.select(DecisionRow.target_id).where(DecisionRow.actor_id == entity_id)
            ).all()
            rejected = session.execute(
                sa.select(MatchRow.company_id, MatchRow.agent_id).where(
                    MatchRow.status == "rejected",
                    sa.or_(MatchRow.company_id == entity_id, MatchRow.agent_id == entity_id),
                )
            ).all()
        excluded = set(decided)
        excluded.update(agent if company == entity_id else company for company, agent in rejected)
        return excluded

    def list_matches(self, entity_id: int, status: MatchStatus, limit: int) -> list[Match]:
        stmt = (
            sa.select(MatchRow)
            .where(
                MatchRow.status == status,
                sa.or_(MatchRow.company_id == entity_id, MatchRow.agent_id == entity_id),
            )
            .order_by(MatchRow.created_at.desc(), MatchRow.id)
            .limit(limit)
        )
        with self._reading() as session:
            return [to_match(row) for row in session.scalars(stmt)]

    def get_match(self, match_id: str) -> Match | None:
        with self._reading() as session:
            row = session.get(MatchRow, match_id)
            return to_match(row) if row is not None else None

    def history(self, actor_id: int, limit: int) -> list[Decision]:
        stmt = (
            sa.select(DecisionRow)
            .where(DecisionRow.actor_id == actor_id)
            .order_by(DecisionRow.created_at.desc(), DecisionRow.id.desc())
            .limit(limit)
        )
        with self._reading() as session:
            return [
                Decision(
                    actor_id=row.actor_id,
                    target_id=row.target_id,
                    action=row.action,
                    created_at=row.created_at,
                )
                for row in session.scalars(stmt)
            ]

    def stats(self, entity_id: int) -> MatchingStats:
        stats = MatchingStats(entity_id=entity_id)
        with self._reading() as session:
            actions = session.execute(
                sa.select(DecisionRow.action, sa.func.count())
                .where(DecisionRow.actor_id == entity_id)
                .group_by(DecisionRow.action)
            ).all()
            statuses = session.execute(
                sa.select(MatchRow.status, sa.func.count())
                .where(sa.or_(MatchRow.company_id == entity_id, MatchRow.agent_id == entity_id))
                .group_by(MatchRow.status)
            ).all()

        for action, count in actions:
            stats.swipes.total += count
            if action == "like":
                stats.swipes.likes += count
            else:
                stats.swipes.passes += count
        for status, count in statuses:
            stats.matches.total += count
            if status == "matched":
                stats.matches.matched += count
            elif status == "rejected":
                stats.matches.rejected += count
            else:
                stats.matches.pending += count
        return stats


def to_entity(account: Account) -> Entity:
    """Build the domain entity, touching only the profile relationship of its role."""
    profile: CompanyProfile | AgentProfile | None = None
    if account.role == "company":
        company = account.company_profile
        if company is not None and company.company_name:
            profile = CompanyProfile(
                company_name=company.company_name,
                country=company.country,
                industries=list(company.industries or []),
                commission_info=dict(company.commission_info or {}),
            )
    elif account.role == "agent":
        agent = account.agent_profile
        if agent is not None and agent.full_name:
            profile = AgentProfile(
                full_name=agent.full_name,
                countries=list(agent.countries or []),
                languages=list(agent.languages or []),
                specializations=list(agent.specializations or []),
                experience_years=max(agent.experience_years or 0, 0),
            )
    return Entity(
        entity_id=account.id,
        role=account.role,
        username=account.username,
        language=account.language or "en",
        reputation=min(max(float(account.reputation or 0.0), 0.0), 5.0),
        review_count=max(account.review_count or 0, 0),
        profile=profile,
    )


def to_match(row: MatchRow) -> Match:
    return Match(
        match_id=row.id,
        company_id=row.company_id,
        agent_id=row.agent_id,
        status=row.status,
        created_at=row.created_at,
        matched_at=row.matched_at,
        updated_at=row.updated_at,
    )


def _apply_profile(session: Session, account: Account, entity: Entity) -> None:
    profile = entity.profile
    if isinstance(profile, CompanyProfile):
        row = account.company_profile
        if row is None:
            row = CompanyProfileRow(account_id=account.id)
            session.add(row)
            account.company_profile = row
        row.company_name = profile.company_name
        row.country = profile.country
        row.industries = list(profile.industries)
        row.commission_info = dict(profile.commission_info)
    elif isinstance(profile, AgentProfile):
        row = account.agent_profile
        if row is None:
            row = AgentProfileRow(account_id=account.id)
            session.add(row)
            account.agent_profile = row
        row.full_name = profile.full_name
        row.countries = list(profile.countries)
        row.languages = list(profile.languages)
        row.specializations = list(profile.specializations)
        row.experience_years = profile.experience_years
