"""Base class for completion providers."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from ..data.models import DecodingOptions
from ..infrastructure.error_classifier import BackendError, ErrorClassifier

logger = logging.getLogger(__name__)

HEALTH_CHECK_PROMPT = "Say 'OK' if you are working."


class BaseLLMProvider(ABC):
    """Abstract base class for completion providers.

    A provider turns a prompt plus decoding options into raw model text.
    Transport and API failures are raised as ``BackendError``.
    """

    def __init__(self, model: str, health_check_timeout: Optional[float] = None):
        """
        Initialize the provider.

        Args:
            model: Model identifier to use
            health_check_timeout: Timeout in seconds for ``is_healthy`` calls
                (None keeps the provider's request timeout)
        """
        self.model = model
        self.health_check_timeout = health_check_timeout

    @abstractmethod
    def generate_completion(
        self,
        prompt: str,
        options: Optional[DecodingOptions] = None,
    ) -> str:
        """
        Generate a completion from the model.

        Args:
            prompt: The prompt to send to the model
            options: Decoding parameters (temperature, top_p, token budget, stop)

        Returns:
            The generated text, possibly empty

        Raises:
            BackendError: If the call fails
        """
        pass

    def is_healthy(self) -> bool:
        """Check that the provider answers a trivial prompt.

        Returns:
            True if a non-empty reply came back
        """
        try:
            reply = self._complete_with_timeout(
                HEALTH_CHECK_PROMPT,
                DecodingOptions(temperature=0.0, num_predict=10),
                self.health_check_timeout,
            )
        except BackendError as e:
            logger.warning(f"Health check failed for {self.get_provider_name()}: {e}")
            return False
        return bool(reply and reply.strip())

    def _complete_with_timeout(
        self,
        prompt: str,
        options: Optional[DecodingOptions],
        timeout: Optional[float],
    ) -> str:
        """Generate a completion under a per-call timeout.

        Providers without per-call timeouts ignore ``timeout``.
        """
        return self.generate_completion(prompt, options)

    def get_provider_name(self) -> str:
        """
        Get the name of this provider.

        Returns:
            Provider name (e.g., "ollama", "openai")
        """
        return self.__class__.__name__.replace("Provider", "").lower()

    def _handle_api_error(self, error: Exception) -> BackendError:
        """Classify and wrap an API error.

        Args:
            error: The exception that was raised

        Returns:
            BackendError with classified error
        """
        classified = ErrorClassifier.classify_error(
            error=error,
            provider=self.get_provider_name(),
        )
        return BackendError(
            classified_error=classified,
            original_exception=error,
        )
