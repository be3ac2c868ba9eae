"""Dependency injection container for the matching engine."""

from __future__ import annotations

from typing import Any

from dependency_injector import containers, providers

from .core import CandidateSelector, CompatibilityScorer, PairLockRegistry, SwipeProcessor
from .core.factors import (
    ExperienceConfig,
    ExperienceFactor,
    GeographicConfig,
    GeographicFactor,
    IndustryConfig,
    IndustryFactor,
    LanguageConfig,
    LanguageFactor,
    ReputationConfig,
    ReputationFactor,
)
from .core.selector import SelectorConfig
from .core.swipe import SwipeConfig
from .notifications import build_notifier
from .service import MatchingService
from .storage import (
    SqlProfileStore,
    SqlSwipeStore,
    create_database_engine,
    create_session_factory,
)

_FACTORS: dict[str, tuple[str, type, type]] = {
    "geographic": ("geographic_factor", GeographicFactor, GeographicConfig),
    "industry": ("industry_factor", IndustryFactor, IndustryConfig),
    "language": ("language_factor", LanguageFactor, LanguageConfig),
    "experience": ("experience_factor", ExperienceFactor, ExperienceConfig),
    "reputation": ("reputation_factor", ReputationFactor, ReputationConfig),
}


class MatchingContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    config = providers.Configuration()

    engine = providers.Singleton(
        create_database_engine,
        url=config.database.url,
        echo=config.database.echo,
    )
    session_factory = providers.Singleton(create_session_factory, engine=engine)

    profile_store = providers.Singleton(SqlProfileStore, session_factory)
    swipe_store = providers.Singleton(SqlSwipeStore, session_factory)

    geographic_factor = providers.Singleton(GeographicFactor)
    industry_factor = providers.Singleton(IndustryFactor)
    language_factor = providers.Singleton(LanguageFactor)
    experience_factor = providers.Singleton(ExperienceFactor)
    reputation_factor = providers.Singleton(ReputationFactor)

    factors = providers.List(
        geographic_factor,
        industry_factor,
        language_factor,
        experience_factor,
        reputation_factor,
    )

    scorer = providers.Singleton(
        CompatibilityScorer,
        factors=factors,
        weights=config.scoring.weights,
        levels=config.scoring.levels,
    )

    selector_config = providers.Singleton(SelectorConfig)
    selector = providers.Singleton(
        CandidateSelector,
        profiles=profile_store,
        swipes=swipe_store,
        scorer=scorer,
        config=selector_config,
    )

    lock_registry = providers.Singleton(PairLockRegistry)
    notifier = providers.Singleton(
        build_notifier,
        webhook_url=config.notifier.webhook_url,
        timeout=config.notifier.timeout,
        max_attempts=config.notifier.max_attempts,
        backoff_seconds=config.notifier.backoff_seconds,
    )
    swipe_config = providers.Singleton(SwipeConfig)
    processor = providers.Singleton(
        SwipeProcessor,
        profiles=profile_store,
        swipes=swipe_store,
        notifier=notifier,
        locks=lock_registry,
        config=swipe_config,
    )

    service = providers.Factory(
        MatchingService,
        profiles=profile_store,
        swipes=swipe_store,
        scorer=scorer,
        selector=selector,
        processor=processor,
    )


def create_container(*, settings: dict[str, Any] | None = None) -> MatchingContainer:
    """Instantiate container with optional overrides."""

    container = MatchingContainer()

    if not settings:
        return container

    container.config.from_dict(
        {
            key: settings[key]
            for key in ("database", "scoring", "swipe", "notifier")
            if key in settings
        }
    )

    factor_settings = settings.get("factors", {}) if isinstance(settings, dict) else {}
    for name, (provider_name, factor_cls, config_cls) in _FACTORS.items():
        if name in factor_settings:
            getattr(container, provider_name).override(
                providers.Singleton(factor_cls, config=config_cls(**factor_settings[name]))
            )

    selector_settings = settings.get("selector", {})
    if selector_settings:
        container.selector_config.override(
            providers.Singleton(SelectorConfig, **selector_settings)
        )

    swipe_settings = settings.get("swipe", {})
    if "lock_timeout_seconds" in swipe_settings:
        container.lock_registry.override(
            providers.Singleton(PairLockRegistry, timeout=swipe_settings["lock_timeout_seconds"])
        )
    if "max_attempts" in swipe_settings:
        container.swipe_config.override(
            providers.Singleton(SwipeConfig, max_attempts=swipe_settings["max_attempts"])
        )

    return container
