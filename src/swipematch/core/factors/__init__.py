"""Factor implementations for the compatibility scorer."""

from .geographic import GeographicConfig, GeographicFactor
from .industry import IndustryConfig, IndustryFactor
from .language import LanguageConfig, LanguageFactor
from .experience import ExperienceConfig, ExperienceFactor
from .reputation import ReputationConfig, ReputationFactor

__all__ = [
    "GeographicConfig",
    "GeographicFactor",
    "IndustryConfig",
    "IndustryFactor",
    "LanguageConfig",
    "LanguageFactor",
    "ExperienceConfig",
    "ExperienceFactor",
    "ReputationConfig",
    "ReputationFactor",
]
