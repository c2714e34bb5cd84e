"""Completion provider integrations."""

import logging
from typing import List, Optional

from ..config.settings import Settings, settings as default_settings
from .base import HEALTH_CHECK_PROMPT, BaseLLMProvider
from .fallback_provider import FallbackProvider
from .ollama_provider import OllamaProvider, OllamaResponseError
from .openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = ("ollama", "openai", "auto")


def create_provider(settings: Optional[Settings] = None) -> BaseLLMProvider:
    """Build the completion provider selected by configuration.

    ``auto`` prefers the local Ollama server and falls back to OpenAI when an
    API key is configured.

    Args:
        settings: Settings to read (uses the global settings if not provided)

    Returns:
        Configured provider

    Raises:
        ValueError: If the backend name is unknown or OpenAI lacks an API key
    """
    settings = settings or default_settings
    backend = settings.llm_backend.lower()

    if backend not in SUPPORTED_BACKENDS:
        raise ValueError(
            f"llm_backend must be one of {SUPPORTED_BACKENDS}, got '{settings.llm_backend}'"
        )

    providers: List[BaseLLMProvider] = []
    if backend in ("ollama", "auto"):
        providers.append(
            OllamaProvider(
                base_url=settings.ollama_base_url,
                model=settings.ollama_model,
                timeout=settings.request_timeout_seconds,
                health_check_timeout=settings.health_check_timeout_seconds,
            )
        )

    if backend == "openai" or (backend == "auto" and settings.openai_api_key):
        if not settings.openai_api_key:
            raise ValueError("openai_api_key is required when llm_backend is 'openai'")
        providers.append(
            OpenAIProvider(
                api_key=settings.openai_api_key,
                model=settings.openai_model,
                base_url=settings.openai_base_url,
                timeout=settings.request_timeout_seconds,
                health_check_timeout=settings.health_check_timeout_seconds,
            )
        )

    if len(providers) == 1:
        logger.info(f"Using {providers[0].get_provider_name()} completion provider")
        return providers[0]

    provider = FallbackProvider(providers)
    logger.info(f"Using {provider.get_provider_name()} completion provider")
    return provider


__all__ = [
    "HEALTH_CHECK_PROMPT",
    "BaseLLMProvider",
    "FallbackProvider",
    "OllamaProvider",
    "OllamaResponseError",
    "OpenAIProvider",
    "SUPPORTED_BACKENDS",
    "create_provider",
]
