"""Configuration for the question generation service."""

from .generation_config import (
    END_OF_QUESTIONS_MARKER,
    SCOPE_VIOLATION_MARKER,
    AnalysisConfig,
    DecodingProfile,
    GenerationConfig,
    GenerationConfigLoader,
    default_generation_config,
    load_generation_config,
)
from .settings import Settings, settings

__all__ = [
    "END_OF_QUESTIONS_MARKER",
    "SCOPE_VIOLATION_MARKER",
    "AnalysisConfig",
    "DecodingProfile",
    "GenerationConfig",
    "GenerationConfigLoader",
    "Settings",
    "default_generation_config",
    "load_generation_config",
    "settings",
]
