from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

Role = Literal["company", "agent"]

OPPOSITE_ROLE: dict[str, Role] = {"company": "agent", "agent": "company"}


class CompanyProfile(BaseModel):
    """Company-side profile attributes."""

    role: Literal["company"] = "company"
    company_name: str
    country: str | None = None
    industries: list[str] = Field(default_factory=list)
    commission_info: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class AgentProfile(BaseModel):
    """Agent-side profile attributes."""

    role: Literal["agent"] = "agent"
    full_name: str
    countries: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    specializations: list[str] = Field(default_factory=list)
    experience_years: int = Field(default=0, ge=0)

    model_config = ConfigDict(extra="forbid")


Profile = Annotated[Union[CompanyProfile, AgentProfile], Field(discriminator="role")]


class Entity(BaseModel):
    """A participant together with its role-specific profile."""

    entity_id: int
    role: Role | None = None
    username: str | None = None
    language: str = "en"
    reputation: float = Field(default=0.0, ge=0.0, le=5.0)
    review_count: int = Field(default=0, ge=0)
    profile: Profile | None = None

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _profile_matches_role(self) -> "Entity":
        if self.profile is not None and self.role is not None and self.profile.role != self.role:
            raise ValueError(
                f"profile of type {self.profile.role!r} does not match role {self.role!r}"
            )
        return self

    @property
    def profile_complete(self) -> bool:
        return self.role is not None and self.profile is not None

    @property
    def tags(self) -> set[str]:
        """Industry tags for companies, specializations for agents."""
        if isinstance(self.profile, CompanyProfile):
            return set(self.profile.industries)
        if isinstance(self.profile, AgentProfile):
            return set(self.profile.specializations)
        return set()

    @property
    def spoken_languages(self) -> set[str]:
        """Declared languages, falling back to the interface language."""
        if isinstance(self.profile, AgentProfile) and self.profile.languages:
            return set(self.profile.languages)
        return {self.language}
