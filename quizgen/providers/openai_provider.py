"""OpenAI completion provider integration."""

from typing import Optional

import openai
from openai import OpenAI

from ..data.models import DecodingOptions
from .base import BaseLLMProvider

# Chat completions accept at most four stop sequences
MAX_STOP_SEQUENCES = 4


class OpenAIProvider(BaseLLMProvider):
    """OpenAI API integration, used as the hosted fallback backend."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        timeout: float = 120.0,
        health_check_timeout: Optional[float] = None,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Model to use (default: gpt-4o-mini)
            base_url: Optional base URL of an OpenAI-compatible server
            timeout: Request timeout in seconds
            health_check_timeout: Timeout in seconds for health checks
        """
        super().__init__(model, health_check_timeout=health_check_timeout)
        self.api_key = api_key
        self.client = OpenAI(api_key=api_key, base_url=base_url, timeout=timeout)

    def generate_completion(
        self,
        prompt: str,
        options: Optional[DecodingOptions] = None,
    ) -> str:
        """
        Generate a text completion using the chat completions API.

        Args:
            prompt: The prompt to send to the model
            options: Decoding parameters

        Returns:
            The generated text completion

        Raises:
            BackendError: If the API call fails
        """
        return self._complete_with_timeout(prompt, options, None)

    def _complete_with_timeout(
        self,
        prompt: str,
        options: Optional[DecodingOptions],
        timeout: Optional[float],
    ) -> str:
        client = self.client if timeout is None else self.client.with_options(timeout=timeout)
        options = options or DecodingOptions()
        stop = list(options.stop)[:MAX_STOP_SEQUENCES] or None
        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=options.temperature,
                top_p=options.top_p,
                max_tokens=options.num_predict,
                stop=stop,
            )
            return response.choices[0].message.content or ""
        except openai.OpenAIError as e:
            raise self._handle_api_error(e)
