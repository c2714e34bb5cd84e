"""Ollama completion provider integration.

Talks to a local Ollama server (or any service exposing the same
``/api/generate`` contract) over HTTP.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..data.models import DecodingOptions
from .base import BaseLLMProvider

logger = logging.getLogger(__name__)


class OllamaResponseError(Exception):
    """Raised when the server answers with an error status or an unreadable body."""


class OllamaProvider(BaseLLMProvider):
    """Ollama API integration for scope analysis and question generation."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llama3.2:3b",
        timeout: float = 120.0,
        transport: Optional[httpx.BaseTransport] = None,
        health_check_timeout: Optional[float] = None,
    ):
        """
        Initialize Ollama provider.

        Args:
            base_url: Base URL of the Ollama server
            model: Model to use (default: llama3.2:3b)
            timeout: Request timeout in seconds
            transport: Optional httpx transport, used by tests
            health_check_timeout: Timeout in seconds for health checks
        """
        super().__init__(model, health_check_timeout=health_check_timeout)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )

    @staticmethod
    def build_payload(
        model: str, prompt: str, options: DecodingOptions
    ) -> Dict[str, Any]:
        """Build the request body for ``/api/generate``."""
        return {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": options.temperature,
                "top_p": options.top_p,
                "num_predict": options.num_predict,
                "stop": list(options.stop),
            },
        }

    def generate_completion(
        self,
        prompt: str,
        options: Optional[DecodingOptions] = None,
    ) -> str:
        """
        Generate a completion using the Ollama generate endpoint.

        Args:
            prompt: The prompt to send to the model
            options: Decoding parameters

        Returns:
            The ``response`` text of the reply (empty string if absent)

        Raises:
            BackendError: If the server is unreachable or answers with an error
        """
        return self._complete_with_timeout(prompt, options, None)

    def _complete_with_timeout(
        self,
        prompt: str,
        options: Optional[DecodingOptions],
        timeout: Optional[float],
    ) -> str:
        payload = self.build_payload(self.model, prompt, options or DecodingOptions())
        request_kwargs: Dict[str, Any] = {"json": payload}
        if timeout is not None:
            request_kwargs["timeout"] = timeout
        data = self._request("POST", "/api/generate", **request_kwargs)

        if data.get("error"):
            raise self._handle_api_error(OllamaResponseError(str(data["error"])))

        text = data.get("response", "") or ""
        logger.debug(
            f"Ollama returned {len(text)} characters "
            f"(done_reason={data.get('done_reason')})"
        )
        return text

    def list_models(self) -> List[str]:
        """List the models installed on the server.

        Returns:
            Model names reported by ``/api/tags``

        Raises:
            BackendError: If the server is unreachable or answers with an error
        """
        data = self._request("GET", "/api/tags")
        return [m.get("name", "") for m in data.get("models", []) if m.get("name")]

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            with self._client() as client:
                response = client.request(method, path, **kwargs)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            detail = e.response.text[:200]
            error = OllamaResponseError(
                f"HTTP {e.response.status_code} from {path}: {detail}"
            )
            raise self._handle_api_error(error) from e
        except httpx.HTTPError as e:
            raise self._handle_api_error(e) from e
        except ValueError as e:
            # Body was not valid JSON
            raise self._handle_api_error(
                OllamaResponseError(f"Invalid JSON from {path}: {e}")
            ) from e
