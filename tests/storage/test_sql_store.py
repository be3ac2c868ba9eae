from __future__ import annotations

from datetime import datetime, timedelta

import pytest
import sqlalchemy as sa

from swipematch.errors import RoleChangeError, WriteConflictError
from swipematch.schemas import AgentProfile, CandidateFilters, Entity
from swipematch.storage import SqlSwipeStore
from swipematch.storage.models import Account, AgentProfileRow


class TickingClock:
    """Monotonic fake clock, one second per call."""

    def __init__(self):
        self._current = datetime(2026, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        self._current += timedelta(seconds=1)
        return self._current


@pytest.fixture
def ticking_store(session_factory) -> SqlSwipeStore:
    return SqlSwipeStore(session_factory, now_provider=TickingClock())


def seed(profile_store, *entities):
    for entity in entities:
        profile_store.upsert_entity(entity)


def test_upsert_and_read_back_entity(profile_store, make_company, make_agent):
    company = make_company(1, commission_info={"rate": 0.1})
    agent = make_agent(2, languages=["en", "de"], experience_years=7)
    seed(profile_store, company, agent)

    assert profile_store.get_entity(1) == company
    assert profile_store.get_entity(2) == agent
    assert profile_store.get_entity(404) is None


def test_upsert_updates_profile_in_place(profile_store, make_agent):
    seed(profile_store, make_agent(2, experience_years=3))
    seed(profile_store, make_agent(2, experience_years=9, countries=["JP"]))

    stored = profile_store.get_entity(2)
    assert stored.profile.experience_years == 9
    assert stored.profile.countries == ["JP"]


def test_role_cannot_change(profile_store, make_company, make_agent):
    seed(profile_store, make_company(1))

    with pytest.raises(RoleChangeError):
        profile_store.upsert_entity(make_agent(1))

    assert profile_store.get_entity(1).role == "company"


def test_entity_without_role_can_pick_one_later(profile_store, make_agent):
    seed(profile_store, Entity(entity_id=2))
    assert profile_store.get_entity(2).profile_complete is False

    seed(profile_store, make_agent(2))
    assert profile_store.get_entity(2).profile_complete is True


def test_find_candidates_applies_role_exclusion_and_filters(profile_store, make_company, make_agent):
    seed(
        profile_store,
        make_company(1),
        make_agent(2, experience_years=3, reputation=4.5),
        make_agent(4, experience_years=12, languages=["fr"]),
        make_agent(6, experience_years=12, reputation=1.0),
        make_agent(8, countries=["US"], experience_years=12),
        Entity(entity_id=10, role="agent"),
    )

    everyone = profile_store.find_candidates(
        role="agent", exclude_ids=[1], filters=CandidateFilters(), limit=50
    )
    assert {entity.entity_id for entity in everyone} == {2, 4, 6, 8}

    excluded = profile_store.find_candidates(
        role="agent", exclude_ids=[2, 4], filters=CandidateFilters(), limit=50
    )
    assert {entity.entity_id for entity in excluded} == {6, 8}

    filtered = profile_store.find_candidates(
        role="agent",
        exclude_ids=[],
        filters=CandidateFilters(
            country="DE", languages=["en"], experience_min=10, reputation_min=2.0
        ),
        limit=50,
    )
    assert filtered == []

    by_experience = profile_store.find_candidates(
        role="agent",
        exclude_ids=[],
        filters=CandidateFilters(experience_min=10, country="DE"),
        limit=50,
    )
    assert {entity.entity_id for entity in by_experience} == {4, 6}


def test_find_candidates_respects_limit(profile_store, make_company):
    seed(profile_store, *(make_company(idx) for idx in range(1, 21, 2)))

    found = profile_store.find_candidates(
        role="company", exclude_ids=[], filters=CandidateFilters(country="DE"), limit=3
    )

    assert len(found) == 3
    assert all(entity.role == "company" for entity in found)


def test_record_decision_is_idempotent(profile_store, swipe_store, make_company, make_agent):
    seed(profile_store, make_company(1), make_agent(2))

    with swipe_store.unit_of_work() as uow:
        assert uow.record_decision(1, 2, "like") is True
    with swipe_store.unit_of_work() as uow:
        assert uow.record_decision(1, 2, "pass") is False

    history = swipe_store.history(1, 10)
    assert [(item.target_id, item.action) for item in history] == [(2, "like")]


def test_duplicate_match_row_is_a_write_conflict(profile_store, swipe_store, make_company, make_agent):
    seed(profile_store, make_company(1), make_agent(2))
    with swipe_store.unit_of_work() as uow:
        uow.create_match(1, 2, "pending_agent")

    with pytest.raises(WriteConflictError):
        with swipe_store.unit_of_work() as uow:
            uow.record_decision(2, 1, "like")
            uow.create_match(1, 2, "pending_company")

    # The failed transaction left no decision behind.
    assert swipe_store.history(2, 10) == []


def test_match_lifecycle_round_trip(profile_store, ticking_store, make_company, make_agent):
    seed(profile_store, make_company(1), make_agent(2))
    with ticking_store.unit_of_work() as uow:
        created = uow.create_match(1, 2, "pending_agent")

    with ticking_store.unit_of_work() as uow:
        locked = uow.lock_match(1, 2)
        assert locked.match_id == created.match_id
        assert locked.status == "pending_agent"
        matched_at = datetime(2026, 2, 1, 9, 30)
        updated = uow.update_match(created.match_id, "matched", matched_at=matched_at)

    assert updated.status == "matched"
    assert updated.matched_at == matched_at
    assert updated.updated_at > created.updated_at
    assert ticking_store.get_match(created.match_id).status == "matched"
    assert ticking_store.get_match("missing") is None


def test_excluded_targets_include_decided_and_rejected(profile_store, swipe_store, make_company, make_agent):
    seed(profile_store, make_company(1), make_agent(2), make_agent(4), make_agent(6))
    with swipe_store.unit_of_work() as uow:
        uow.record_decision(1, 2, "like")
        uow.create_match(1, 2, "pending_agent")
    with swipe_store.unit_of_work() as uow:
        uow.record_decision(4, 1, "pass")
        uow.create_match(1, 4, "rejected")

    assert swipe_store.excluded_targets(1) == {2, 4}
    assert swipe_store.excluded_targets(4) == {1}
    assert swipe_store.excluded_targets(6) == set()


def test_list_matches_and_stats(profile_store, ticking_store, make_company, make_agent):
    seed(profile_store, make_company(1), make_agent(2), make_agent(4), make_agent(6))
    with ticking_store.unit_of_work() as uow:
        uow.record_decision(1, 2, "like")
        first = uow.create_match(1, 2, "matched")
    with ticking_store.unit_of_work() as uow:
        uow.record_decision(1, 4, "like")
        second = uow.create_match(1, 4, "matched")
    with ticking_store.unit_of_work() as uow:
        uow.record_decision(1, 6, "pass")
        uow.create_match(1, 6, "rejected")

    matched = ticking_store.list_matches(1, "matched", 10)
    assert [match.match_id for match in matched] == [second.match_id, first.match_id]
    assert ticking_store.list_matches(1, "matched", 1)[0].match_id == second.match_id
    assert [match.agent_id for match in ticking_store.list_matches(1, "rejected", 10)] == [6]
    assert ticking_store.list_matches(2, "rejected", 10) == []

    stats = ticking_store.stats(1)
    assert (stats.swipes.total, stats.swipes.likes, stats.swipes.passes) == (3, 2, 1)
    assert (stats.matches.total, stats.matches.matched, stats.matches.rejected) == (3, 2, 1)
    assert stats.matches.pending == 0


def test_reputation_is_clamped_on_read(profile_store, session_factory, make_agent):
    seed(profile_store, make_agent(2))
    with session_factory.begin() as session:
        session.get(Account, 2).reputation = 9.5

    assert profile_store.get_entity(2).reputation == 5.0
    assert isinstance(profile_store.get_entity(2).profile, AgentProfile)


@pytest.fixture
def hydrated_accounts():
    loaded: list[int] = []

    def on_load(target, context):
        loaded.append(target.id)

    sa.event.listen(Account, "load", on_load)
    yield loaded
    sa.event.remove(Account, "load", on_load)


@pytest.fixture
def large_agent_pool(profile_store, session_factory, make_company):
    seed(profile_store, make_company(1))
    with session_factory.begin() as session:
        session.execute(
            sa.insert(Account),
            [
                {"id": idx, "role": "agent", "language": "en", "reputation": 4.0, "review_count": 0}
                for idx in range(2, 402)
            ],
        )
        session.execute(
            sa.insert(AgentProfileRow),
            [
                {
                    "account_id": idx,
                    "full_name": f"Agent {idx}",
                    "countries": ["DE"],
                    "languages": ["en"],
                    "specializations": ["IT"],
                    "experience_years": 5,
                }
                for idx in range(2, 402)
            ],
        )


def test_find_candidates_hydrates_only_the_limit(profile_store, large_agent_pool, hydrated_accounts):
    found = profile_store.find_candidates(
        role="agent", exclude_ids=[1], filters=CandidateFilters(experience_min=2), limit=3
    )

    assert len(found) == 3
    assert len(hydrated_accounts) == 3


def test_find_candidates_streams_when_filtering_tags(profile_store, large_agent_pool, hydrated_accounts):
    found = profile_store.find_candidates(
        role="agent",
        exclude_ids=[1],
        filters=CandidateFilters(industries=["IT"], languages=["en"], country="DE"),
        limit=3,
    )

    assert len(found) == 3
    assert len(hydrated_accounts) <= 30


def test_get_entities_returns_known_ids(profile_store, make_company, make_agent):
    seed(profile_store, make_company(1), make_agent(2))

    found = profile_store.get_entities([1, 2, 2, 404])

    assert set(found) == {1, 2}
    assert found[2].role == "agent"
    assert profile_store.get_entities([]) == {}
