"""Tests for the Ollama provider."""

import json

import httpx
import pytest

from quizgen.data.models import DecodingOptions
from quizgen.infrastructure.error_classifier import BackendError, ErrorCategory
from quizgen.providers.ollama_provider import OllamaProvider


def _provider(handler, **kwargs):
    return OllamaProvider(
        base_url="http://ollama.test:11434/",
        model="llama3.2:3b",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestOllamaProvider:
    """Test suite for OllamaProvider."""

    def test_initialization(self):
        """Test that provider initializes correctly."""
        provider = OllamaProvider(base_url="http://localhost:11434/", model="mistral")

        assert provider.base_url == "http://localhost:11434"
        assert provider.model == "mistral"
        assert provider.get_provider_name() == "ollama"

    def test_generate_completion_request_contract(self):
        """Test the request body sent to /api/generate."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"response": "QUESTION 1: ...", "done": True})

        options = DecodingOptions(temperature=0.3, top_p=0.8, num_predict=900, stop=["END_QUESTIONS"])
        result = _provider(handler).generate_completion("Write questions", options)

        assert result == "QUESTION 1: ..."
        assert seen["method"] == "POST"
        assert seen["path"] == "/api/generate"
        assert seen["body"] == {
            "model": "llama3.2:3b",
            "prompt": "Write questions",
            "stream": False,
            "options": {
                "temperature": 0.3,
                "top_p": 0.8,
                "num_predict": 900,
                "stop": ["END_QUESTIONS"],
            },
        }

    def test_default_options(self):
        """Test that omitted options use the model defaults."""
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"response": "ok"})

        _provider(handler).generate_completion("hi")

        assert seen["body"]["options"]["temperature"] == 0.7
        assert seen["body"]["options"]["num_predict"] == 800

    def test_missing_response_field(self):
        """Test that a reply without text yields an empty string."""
        result = _provider(lambda r: httpx.Response(200, json={"done": True})).generate_completion("hi")
        assert result == ""

    def test_http_error_is_classified(self):
        """Test that a 404 for a missing model becomes a model error."""

        def handler(request):
            return httpx.Response(
                404, json={"error": "model 'llama9' not found, try pulling it first"}
            )

        with pytest.raises(BackendError) as exc_info:
            _provider(handler).generate_completion("hi")

        assert exc_info.value.classified_error.category == ErrorCategory.MODEL_ERROR
        assert exc_info.value.classified_error.provider == "ollama"
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    def test_server_error_is_classified(self):
        """Test that a 500 becomes a retryable server error."""
        with pytest.raises(BackendError) as exc_info:
            _provider(lambda r: httpx.Response(500, text="oops")).generate_completion("hi")

        classified = exc_info.value.classified_error
        assert classified.category == ErrorCategory.SERVER_ERROR
        assert classified.is_retryable

    def test_error_field_in_body(self):
        """Test that an error reported inside a 200 body is raised."""
        handler = lambda r: httpx.Response(200, json={"error": "model requires more memory"})

        with pytest.raises(BackendError):
            _provider(handler).generate_completion("hi")

    def test_connection_refused(self):
        """Test that an unreachable server becomes a network error."""

        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        with pytest.raises(BackendError) as exc_info:
            _provider(handler).generate_completion("hi")

        assert exc_info.value.classified_error.category == ErrorCategory.NETWORK_ERROR

    def test_invalid_json(self):
        """Test that an unreadable body is wrapped."""
        with pytest.raises(BackendError):
            _provider(lambda r: httpx.Response(200, text="not json")).generate_completion("hi")

    def test_list_models(self):
        """Test model listing via /api/tags."""

        def handler(request):
            assert request.method == "GET"
            assert request.url.path == "/api/tags"
            return httpx.Response(
                200, json={"models": [{"name": "llama3.2:3b"}, {"name": "mistral:7b"}, {}]}
            )

        assert _provider(handler).list_models() == ["llama3.2:3b", "mistral:7b"]

    def test_is_healthy(self):
        """Test the health probe with a trivial prompt and tiny budget."""
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"response": "OK"})

        assert _provider(handler).is_healthy()
        assert seen["body"]["prompt"] == "Say 'OK' if you are working."
        assert seen["body"]["options"]["num_predict"] == 10

    def test_is_unhealthy_on_empty_reply_or_error(self):
        """Test that blank replies and failures are unhealthy."""
        assert not _provider(lambda r: httpx.Response(200, json={"response": "  "})).is_healthy()
        assert not _provider(lambda r: httpx.Response(503, text="down")).is_healthy()

    def test_health_check_uses_its_own_timeout(self):
        """Test that health checks use the short timeout and completions do not."""
        timeouts = []

        def handler(request):
            timeouts.append(request.extensions["timeout"]["read"])
            return httpx.Response(200, json={"response": "OK"})

        provider = _provider(handler, timeout=120.0, health_check_timeout=5.0)
        provider.is_healthy()
        provider.generate_completion("Write questions")

        assert timeouts == [5.0, 120.0]
