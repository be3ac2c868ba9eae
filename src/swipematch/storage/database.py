"""Engine and session factory construction."""

from __future__ import annotations

from typing import Any

import sqlalchemy as sa
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

DEFAULT_DATABASE_URL = "sqlite:///swipematch.db"


def create_database_engine(url: str | None = None, *, echo: bool | None = False) -> Engine:
    """Create an engine; SQLite connections are made shareable across threads."""
    url = url or DEFAULT_DATABASE_URL
    options: dict[str, Any] = {"echo": bool(echo)}
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False, "timeout": 30}
        if ":memory:" in url or url.rstrip("/") in ("sqlite:", "sqlite+pysqlite:"):
            # Every pooled connection would otherwise see its own empty database.
            options["poolclass"] = StaticPool
    return sa.create_engine(url, **options)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_schema(engine: Engine) -> None:
    Base.metadata.create_all(engine)
