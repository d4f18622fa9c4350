"""Tests for the OpenRouter client; requests.post is always patched."""

from unittest.mock import MagicMock, patch

import pytest

import profile_analyzer.services.llm_service as llm_mod
from profile_analyzer.errors import TextGenerationError
from profile_analyzer.services.llm_service import OpenRouterClient


def _response(status=200, payload=None):
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 300
    response.json.return_value = payload
    return response


def test_enabled_only_with_api_key():
    assert OpenRouterClient(api_key="key").enabled
    assert not OpenRouterClient().enabled


def test_from_env(monkeypatch):
    monkeypatch.setenv("OPENROUTER_API_KEY", "secret")
    monkeypatch.setenv("LLM_MODEL", "some/model")
    client = OpenRouterClient.from_env()
    assert client.enabled
    assert client.model == "some/model"


def test_disabled_client_refuses_to_generate():
    with pytest.raises(TextGenerationError):
        OpenRouterClient().generate("hello")


def test_generate_posts_chat_payload():
    payload = {"choices": [{"message": {"content": "  Generated text.  "}}]}
    with patch.object(llm_mod.requests, "post", return_value=_response(payload=payload)) as mock_post:
        result = OpenRouterClient(api_key="key", model="m").generate("prompt", "system", max_tokens=9000)

    assert result == "Generated text."
    body = mock_post.call_args[1]["json"]
    assert body["model"] == "m"
    assert body["max_tokens"] == 4000
    assert body["temperature"] == 0.5
    assert body["messages"] == [
        {"role": "system", "content": "system"},
        {"role": "user", "content": "prompt"},
    ]
    assert mock_post.call_args[1]["headers"]["Authorization"] == "Bearer key"


def test_api_error_raises_with_message():
    response = _response(status=429, payload={"error": {"message": "Too many requests"}})
    with patch.object(llm_mod.requests, "post", return_value=response):
        with pytest.raises(TextGenerationError, match="Too many requests"):
            OpenRouterClient(api_key="key").generate("prompt")


def test_transport_error_raises():
    with patch.object(llm_mod.requests, "post", side_effect=llm_mod.requests.Timeout("slow")):
        with pytest.raises(TextGenerationError):
            OpenRouterClient(api_key="key").generate("prompt")
