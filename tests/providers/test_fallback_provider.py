"""Tests for provider fallback and provider selection."""

from unittest.mock import patch

import pytest

from quizgen.config.settings import Settings
from quizgen.infrastructure.error_classifier import BackendError
from quizgen.providers import create_provider
from quizgen.providers.fallback_provider import FallbackProvider
from quizgen.providers.ollama_provider import OllamaProvider
from quizgen.providers.openai_provider import OpenAIProvider


class TestFallbackProvider:
    """Test suite for FallbackProvider."""

    def test_requires_providers(self):
        """Test that an empty provider list is refused."""
        with pytest.raises(ValueError):
            FallbackProvider([])

    def test_first_success_wins(self, scripted_provider):
        """Test that later providers are not called when the first succeeds."""
        first = scripted_provider(["from first"])
        second = scripted_provider(["from second"])

        result = FallbackProvider([first, second]).generate_completion("prompt")

        assert result == "from first"
        assert second.calls == []

    def test_falls_back_on_backend_error(self, scripted_provider, backend_error):
        """Test that a failing provider hands over to the next one."""
        first = scripted_provider([backend_error()])
        second = scripted_provider(["from second"])

        assert FallbackProvider([first, second]).generate_completion("prompt") == "from second"
        assert len(first.calls) == 1

    def test_raises_last_error_when_all_fail(self, scripted_provider, backend_error):
        """Test that the last error propagates when every provider fails."""
        last = backend_error("Connection reset by peer")
        provider = FallbackProvider(
            [scripted_provider([backend_error()]), scripted_provider([last])]
        )

        with pytest.raises(BackendError) as exc_info:
            provider.generate_completion("prompt")

        assert exc_info.value is last

    def test_health_and_name(self, scripted_provider, backend_error):
        """Test aggregate health and the composite name."""
        provider = FallbackProvider(
            [scripted_provider([backend_error()]), scripted_provider(["OK"])]
        )

        assert provider.is_healthy()
        assert provider.get_provider_name() == "fallback(scripted,scripted)"


class TestCreateProvider:
    """Test suite for create_provider."""

    def test_ollama_backend(self):
        """Test the default local backend."""
        settings = Settings(llm_backend="ollama", ollama_model="mistral")
        provider = create_provider(settings)

        assert isinstance(provider, OllamaProvider)
        assert provider.model == "mistral"
        assert provider.health_check_timeout == settings.health_check_timeout_seconds

    @patch("quizgen.providers.openai_provider.OpenAI")
    def test_openai_backend(self, mock_openai_class, mock_openai_api_key):
        """Test the hosted backend."""
        settings = Settings(llm_backend="openai", openai_api_key=mock_openai_api_key)
        assert isinstance(create_provider(settings), OpenAIProvider)

    def test_openai_backend_requires_key(self):
        """Test that the hosted backend needs an API key."""
        with pytest.raises(ValueError, match="openai_api_key"):
            create_provider(Settings(llm_backend="openai", openai_api_key=None))

    @patch("quizgen.providers.openai_provider.OpenAI")
    def test_auto_backend_with_key(self, mock_openai_class, mock_openai_api_key):
        """Test that auto prefers Ollama and falls back to OpenAI."""
        settings = Settings(llm_backend="auto", openai_api_key=mock_openai_api_key)
        provider = create_provider(settings)

        assert isinstance(provider, FallbackProvider)
        assert [type(p) for p in provider.providers] == [OllamaProvider, OpenAIProvider]

    def test_auto_backend_without_key(self):
        """Test that auto without a key is just Ollama."""
        provider = create_provider(Settings(llm_backend="auto", openai_api_key=None))
        assert isinstance(provider, OllamaProvider)

    def test_unknown_backend(self):
        """Test that unsupported backends are refused."""
        with pytest.raises(ValueError, match="llm_backend"):
            create_provider(Settings(llm_backend="carrier-pigeon"))
