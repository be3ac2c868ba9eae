"""SQLAlchemy ORM models.

Tables:
- accounts / company_profiles / agent_profiles: the profile store.
- decisions: append-only decision log, unique per (actor_id, target_id).
- matches: match ledger, unique per (company_id, agent_id).
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(sa.BigInteger, primary_key=True, autoincrement=False)
    username: Mapped[str | None] = mapped_column(sa.String(255), nullable=True)
    language: Mapped[str] = mapped_column(sa.String(10), nullable=False, default="en")
    role: Mapped[str | None] = mapped_column(sa.String(16), nullable=True, index=True)
    reputation: Mapped[float] = mapped_column(sa.Float, nullable=False, default=0.0)
    review_count: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
    )

    company_profile: Mapped["CompanyProfileRow | None"] = relationship(
        back_populates="account", uselist=False, lazy="selectin"
    )
    agent_profile: Mapped["AgentProfileRow | None"] = relationship(
        back_populates="account", uselist=False, lazy="selectin"
    )

    __table_args__ = (
        sa.CheckConstraint("role IN ('company', 'agent')", name="valid_role"),
    )

    def __repr__(self) -> str:
        return f"<Account id={self.id} role={self.role}>"


class CompanyProfileRow(Base):
    __tablename__ = "company_profiles"

    account_id: Mapped[int] = mapped_column(
        sa.BigInteger, sa.ForeignKey("accounts.id", ondelete="CASCADE"), primary_key=True
    )
    company_name: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    country: Mapped[str | None] = mapped_column(sa.String(100), nullable=True, index=True)
    industries: Mapped[list[str]] = mapped_column(sa.JSON, nullable=False, default=list)
    commission_info: Mapped[dict[str, Any]] = mapped_column(sa.JSON, nullable=False, default=dict)

    account: Mapped[Account] = relationship(back_populates="company_profile")


class AgentProfileRow(Base):
    __tablename__ = "agent_profiles"

    account_id: Mapped[int] = mapped_column(
        sa.BigInteger, sa.ForeignKey("accounts.id", ondelete="CASCADE"), primary_key=True
    )
    full_name: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    countries: Mapped[list[str]] = mapped_column(sa.JSON, nullable=False, default=list)
    languages: Mapped[list[str]] = mapped_column(sa.JSON, nullable=False, default=list)
    specializations: Mapped[list[str]] = mapped_column(sa.JSON, nullable=False, default=list)
    experience_years: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)

    account: Mapped[Account] = relationship(back_populates="agent_profile")


class DecisionRow(Base):
    __tablename__ = "decisions"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    actor_id: Mapped[int] = mapped_column(sa.BigInteger, sa.ForeignKey("accounts.id"), nullable=False)
    target_id: Mapped[int] = mapped_column(sa.BigInteger, sa.ForeignKey("accounts.id"), nullable=False)
    action: Mapped[str] = mapped_column(sa.String(8), nullable=False)
    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False)

    __table_args__ = (
        sa.UniqueConstraint("actor_id", "target_id", name="uq_decisions_actor_target"),
        sa.CheckConstraint("action IN ('like', 'pass')", name="valid_action"),
        sa.Index("ix_decisions_actor_created", "actor_id", "created_at"),
    )


class MatchRow(Base):
    __tablename__ = "matches"

    id: Mapped[str] = mapped_column(
        sa.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    company_id: Mapped[int] = mapped_column(
        sa.BigInteger, sa.ForeignKey("accounts.id"), nullable=False, index=True
    )
    agent_id: Mapped[int] = mapped_column(
        sa.BigInteger, sa.ForeignKey("accounts.id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(sa.String(20), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False)
    matched_at: Mapped[datetime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True)

    __table_args__ = (
        sa.UniqueConstraint("company_id", "agent_id", name="uq_matches_company_agent"),
        sa.CheckConstraint(
            "status IN ('pending_agent', 'pending_company', 'matched', 'rejected')",
            name="valid_match_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<MatchRow id={self.id} company={self.company_id} agent={self.agent_id} status={self.status}>"
