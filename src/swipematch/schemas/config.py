"""Pydantic configuration schema for YAML input."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class DatabaseConfig(BaseModel):
    url: str | None = None
    echo: bool | None = None


class ScoringConfig(BaseModel):
    weights: dict[str, float] | None = None
    levels: dict[str, float] | None = None


class FactorConfig(BaseModel):
    geographic: dict[str, Any] | None = None
    industry: dict[str, Any] | None = None
    language: dict[str, Any] | None = None
    experience: dict[str, Any] | None = None
    reputation: dict[str, Any] | None = None


class SelectorConfig(BaseModel):
    oversample_factor: int | None = Field(default=None, ge=1)
    top_share: float | None = Field(default=None, ge=0.0, le=1.0)


class SwipeConfig(BaseModel):
    max_attempts: int | None = Field(default=None, ge=1)
    lock_timeout_seconds: float | None = Field(default=None, gt=0.0)


class NotifierConfig(BaseModel):
    webhook_url: str | None = None
    timeout: float | None = Field(default=None, gt=0.0)
    max_attempts: int | None = Field(default=None, ge=1)
    backoff_seconds: float | None = Field(default=None, ge=0.0)


class AppConfig(BaseModel):
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    factors: FactorConfig = Field(default_factory=FactorConfig)
    selector: SelectorConfig = Field(default_factory=SelectorConfig)
    swipe: SwipeConfig = Field(default_factory=SwipeConfig)
    notifier: NotifierConfig = Field(default_factory=NotifierConfig)

    model_config = ConfigDict(extra="forbid")

    def to_settings(self) -> dict[str, Any]:
        settings: dict[str, Any] = {}
        for section in ("database", "scoring", "factors", "selector", "swipe", "notifier"):
            values = getattr(self, section).model_dump(exclude_none=True)
            if values:
                settings[section] = values
        return settings


def load_config(raw: Any) -> AppConfig:
    if not isinstance(raw, dict):
        raise ValidationError.from_exception_data(
            "AppConfig",
            [{"type": "dict_type", "loc": ("config",), "input": raw}],
        )
    return AppConfig.model_validate(raw)
