"""Ordered fallback across completion providers.

The local provider is preferred; hosted providers are only called when the
ones before them fail.
"""

import logging
from typing import List, Optional, Sequence

from ..data.models import DecodingOptions
from ..infrastructure.error_classifier import BackendError
from .base import BaseLLMProvider

logger = logging.getLogger(__name__)


class FallbackProvider(BaseLLMProvider):
    """Try each provider in order until one returns a completion."""

    def __init__(self, providers: Sequence[BaseLLMProvider]):
        if not providers:
            raise ValueError("FallbackProvider requires at least one provider")
        self.providers: List[BaseLLMProvider] = list(providers)
        super().__init__(model=self.providers[0].model)

    def generate_completion(
        self,
        prompt: str,
        options: Optional[DecodingOptions] = None,
    ) -> str:
        """
        Generate a completion from the first provider that succeeds.

        Raises:
            BackendError: The last provider's error when every provider fails
        """
        last_error: Optional[BackendError] = None
        for provider in self.providers:
            try:
                return provider.generate_completion(prompt, options)
            except BackendError as e:
                logger.warning(
                    f"Provider {provider.get_provider_name()} failed "
                    f"({e.classified_error.category.value}), trying next provider"
                )
                last_error = e

        assert last_error is not None
        raise last_error

    def is_healthy(self) -> bool:
        """Healthy when any underlying provider is healthy."""
        return any(provider.is_healthy() for provider in self.providers)

    def get_provider_name(self) -> str:
        names = ",".join(p.get_provider_name() for p in self.providers)
        return f"fallback({names})"
