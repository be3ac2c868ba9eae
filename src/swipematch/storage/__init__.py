"""Relational storage for profiles, decisions and matches."""

from __future__ import annotations

from .database import (
    DEFAULT_DATABASE_URL,
    create_database_engine,
    create_session_factory,
    init_schema,
)
from .models import Base
from .sql import SqlProfileStore, SqlSwipeStore, SqlSwipeUnitOfWork

__all__ = [
    "Base",
    "DEFAULT_DATABASE_URL",
    "SqlProfileStore",
    "SqlSwipeStore",
    "SqlSwipeUnitOfWork",
    "create_database_engine",
    "create_session_factory",
    "init_schema",
]
