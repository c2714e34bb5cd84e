"""Generation configuration management.

This module loads the per-domain decoding profiles used by the generation
orchestrator and the decoding options used by the scope analyzer. The
configuration lives in a YAML file (``config/generation.yaml``); when no file
is configured the built-in defaults below are used.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from ..data.models import DecodingOptions, SubjectDomain

logger = logging.getLogger(__name__)

SCOPE_VIOLATION_MARKER = "SCOPE_VIOLATION:"
END_OF_QUESTIONS_MARKER = "END_QUESTIONS"


class DecodingProfile(BaseModel):
    """Decoding parameters for one subject domain.

    Attributes:
        temperature: Sampling temperature
        top_p: Nucleus sampling threshold
        num_predict: Minimum output token budget for a request
        rationale: Why the domain uses these parameters
    """

    temperature: float = Field(..., ge=0.0, le=2.0)
    top_p: float = Field(0.9, gt=0.0, le=1.0)
    num_predict: int = Field(800, gt=0)
    rationale: Optional[str] = None


class AnalysisConfig(BaseModel):
    """Decoding parameters for the scope analysis call."""

    temperature: float = Field(0.1, ge=0.0, le=2.0)
    top_p: float = Field(0.8, gt=0.0, le=1.0)
    num_predict: int = Field(400, gt=0)

    def to_decoding_options(self) -> DecodingOptions:
        return DecodingOptions(
            temperature=self.temperature,
            top_p=self.top_p,
            num_predict=self.num_predict,
        )


class GenerationConfig(BaseModel):
    """Complete generation configuration.

    Attributes:
        version: Configuration version
        profiles: Decoding profile per subject domain
        default_profile: Profile used for domains without an entry
        stop_sequences: Stop sequences sent with every generation request
        tokens_per_question: Output budget per requested question
        analysis: Decoding parameters for scope analysis
    """

    version: str = "1.0"
    profiles: Dict[str, DecodingProfile] = Field(default_factory=dict)
    default_profile: DecodingProfile = Field(
        default_factory=lambda: DecodingProfile(temperature=0.6, top_p=0.9)
    )
    stop_sequences: List[str] = Field(
        default_factory=lambda: [SCOPE_VIOLATION_MARKER, END_OF_QUESTIONS_MARKER]
    )
    tokens_per_question: int = Field(150, gt=0)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)

    @field_validator("profiles")
    @classmethod
    def validate_profile_domains(
        cls, v: Dict[str, DecodingProfile]
    ) -> Dict[str, DecodingProfile]:
        """Validate that every profile key names a known subject domain."""
        valid_domains = {domain.value for domain in SubjectDomain}
        unknown = set(v.keys()) - valid_domains
        if unknown:
            raise ValueError(f"Unknown subject domains in profiles: {sorted(unknown)}")
        return v

    @field_validator("stop_sequences")
    @classmethod
    def validate_stop_sequences(cls, v: List[str]) -> List[str]:
        """Validate that the scope violation marker is always a stop sequence."""
        if SCOPE_VIOLATION_MARKER not in v:
            raise ValueError(
                f"stop_sequences must include the {SCOPE_VIOLATION_MARKER} marker"
            )
        return v

    def get_profile(self, domain: SubjectDomain) -> DecodingProfile:
        """Get the decoding profile for a domain, falling back to the default."""
        return self.profiles.get(domain.value, self.default_profile)

    def decoding_options(self, domain: SubjectDomain, count: int) -> DecodingOptions:
        """Build the decoding options for a generation request.

        Args:
            domain: Subject domain of the request
            count: Number of questions requested

        Returns:
            DecodingOptions with an output budget scaled to the request size
        """
        profile = self.get_profile(domain)
        return DecodingOptions(
            temperature=profile.temperature,
            top_p=profile.top_p,
            num_predict=max(profile.num_predict, count * self.tokens_per_question),
            stop=list(self.stop_sequences),
        )


DEFAULT_PROFILES: Dict[str, DecodingProfile] = {
    SubjectDomain.MATHEMATICS.value: DecodingProfile(
        temperature=0.3,
        top_p=0.8,
        rationale="Computation questions need deterministic, exact output",
    ),
    SubjectDomain.COMPUTING.value: DecodingProfile(
        temperature=0.3,
        top_p=0.85,
        rationale="Code and terminology must match the material exactly",
    ),
    SubjectDomain.CHEMISTRY.value: DecodingProfile(
        temperature=0.3,
        top_p=0.85,
        rationale="Formulas and reactions must be reproduced exactly",
    ),
    SubjectDomain.PHYSICS.value: DecodingProfile(
        temperature=0.4,
        top_p=0.85,
        rationale="Formulas and units must be reproduced exactly",
    ),
    SubjectDomain.HISTORY.value: DecodingProfile(
        temperature=0.5,
        top_p=0.9,
        rationale="Dates and names come from the material, wording may vary",
    ),
    SubjectDomain.BIOLOGY.value: DecodingProfile(
        temperature=0.5,
        top_p=0.9,
    ),
    SubjectDomain.LITERATURE.value: DecodingProfile(
        temperature=0.8,
        top_p=0.95,
        rationale="Interpretive questions benefit from varied phrasing",
    ),
}


def default_generation_config() -> GenerationConfig:
    """Build the built-in generation configuration."""
    return GenerationConfig(profiles=dict(DEFAULT_PROFILES))


class GenerationConfigLoader:
    """Loader for generation configuration files.

    This class handles loading, parsing, and validating the generation
    configuration from YAML files.
    """

    def __init__(self, config_path: str | Path):
        """Initialize the configuration loader.

        Args:
            config_path: Path to the generation configuration YAML file
        """
        self.config_path = Path(config_path)
        self._config: Optional[GenerationConfig] = None

    def load(self) -> GenerationConfig:
        """Load and parse the configuration file.

        Profiles missing from the file keep their built-in defaults.

        Returns:
            Parsed and validated generation configuration

        Raises:
            FileNotFoundError: If configuration file doesn't exist
            ValueError: If configuration is invalid
            yaml.YAMLError: If YAML parsing fails
        """
        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Generation configuration file not found: {self.config_path}"
            )

        logger.info(f"Loading generation configuration from {self.config_path}")

        try:
            with open(self.config_path, "r") as f:
                raw_config = yaml.safe_load(f) or {}

            profiles = dict(DEFAULT_PROFILES)
            profiles.update(raw_config.pop("profiles", None) or {})
            self._config = GenerationConfig(profiles=profiles, **raw_config)
            logger.info(
                f"Successfully loaded generation configuration "
                f"(version {self._config.version}, "
                f"{len(self._config.profiles)} domain profiles)"
            )
            return self._config

        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML configuration: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to load generation configuration: {e}")
            raise

    @property
    def config(self) -> GenerationConfig:
        """Get the loaded configuration.

        Raises:
            RuntimeError: If configuration hasn't been loaded yet
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config


def load_generation_config(config_path: Optional[str | Path] = None) -> GenerationConfig:
    """Load the generation configuration.

    Args:
        config_path: Optional path to a YAML file. When omitted the built-in
            defaults are returned.

    Returns:
        Generation configuration
    """
    if config_path is None:
        return default_generation_config()
    return GenerationConfigLoader(config_path).load()
