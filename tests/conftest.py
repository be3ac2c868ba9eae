from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest
import structlog

from swipematch.container import MatchingContainer, create_container
from swipematch.schemas import AgentProfile, CompanyProfile, Entity
from swipematch.storage import (
    SqlProfileStore,
    SqlSwipeStore,
    create_database_engine,
    create_session_factory,
    init_schema,
)


def _company(entity_id: int = 1, *, language: str = "de", reputation: float = 5.0, **profile: Any) -> Entity:
    defaults: dict[str, Any] = {
        "company_name": f"Company {entity_id}",
        "country": "DE",
        "industries": ["IT"],
    }
    defaults.update(profile)
    return Entity(
        entity_id=entity_id,
        role="company",
        language=language,
        reputation=reputation,
        profile=CompanyProfile(**defaults),
    )


def _agent(entity_id: int = 2, *, language: str = "en", reputation: float = 5.0, **profile: Any) -> Entity:
    defaults: dict[str, Any] = {
        "full_name": f"Agent {entity_id}",
        "countries": ["DE", "FR"],
        "languages": ["en"],
        "specializations": ["IT"],
        "experience_years": 5,
    }
    defaults.update(profile)
    return Entity(
        entity_id=entity_id,
        role="agent",
        language=language,
        reputation=reputation,
        profile=AgentProfile(**defaults),
    )


@pytest.fixture(autouse=True)
def _reset_structlog():
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()


@pytest.fixture
def make_company() -> Callable[..., Entity]:
    return _company


@pytest.fixture
def make_agent() -> Callable[..., Entity]:
    return _agent


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'swipematch.db'}"


@pytest.fixture
def session_factory(database_url: str):
    engine = create_database_engine(database_url)
    init_schema(engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def profile_store(session_factory) -> SqlProfileStore:
    return SqlProfileStore(session_factory)


@pytest.fixture
def swipe_store(session_factory) -> SqlSwipeStore:
    return SqlSwipeStore(session_factory)


@pytest.fixture
def container(database_url: str) -> MatchingContainer:
    container = create_container(settings={"database": {"url": database_url}})
    init_schema(container.engine())
    yield container
    container.engine().dispose()
