"""
Unit tests for the LLM module.
Tests LLMMessage, LLMResponse, the OpenAI-compatible provider, and factory.
"""

import pytest
from unittest.mock import AsyncMock, patch, MagicMock

import httpx

from caretrack.llm.base import LLMMessage, LLMResponse
from caretrack.llm.openai_provider import OpenAIProvider
from caretrack.llm.factory import create_llm_provider


def mock_http_client(response=None, error=None):
    mock_instance = AsyncMock()
    if error is not None:
        mock_instance.post.side_effect = error
    else:
        mock_instance.post.return_value = response
    mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
    mock_instance.__aexit__ = AsyncMock(return_value=False)
    return mock_instance


class TestLLMMessage:

    def test_text_message(self):
        msg = LLMMessage.text("user", "Hello")
        assert msg.role == "user"
        assert msg.content == "Hello"


class TestLLMResponse:

    def test_basic_response(self):
        resp = LLMResponse(content="Hello!", model="gpt-4.1-mini")
        assert resp.content == "Hello!"
        assert resp.usage == {}
        assert resp.raw is None


class TestOpenAIProvider:
    """Tests for OpenAI-compatible provider."""

    def test_init_defaults(self):
        provider = OpenAIProvider(api_key="test-key")
        assert provider.model == "gpt-4.1-mini"
        assert provider.base_url == "https://api.openai.com/v1"
        assert provider.timeout == 60.0

    def test_trailing_slash_is_dropped(self):
        provider = OpenAIProvider(api_key="key", base_url="https://custom.api.com/v1/")
        assert provider.base_url == "https://custom.api.com/v1"

    def test_format_messages(self):
        provider = OpenAIProvider(api_key="test")
        formatted = provider._format_messages([
            LLMMessage.text("system", "sys prompt"),
            LLMMessage.text("user", "hello"),
        ])
        assert formatted == [
            {"role": "system", "content": "sys prompt"},
            {"role": "user", "content": "hello"},
        ]

    def test_headers(self):
        headers = OpenAIProvider(api_key="sk-test123")._get_headers()
        assert headers["Authorization"] == "Bearer sk-test123"
        assert headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_chat_completion_success(self):
        provider = OpenAIProvider(api_key="test-key")
        mock_response = MagicMock()
        mock_response.json.return_value = {
            "choices": [{"message": {"content": "[]"}}],
            "model": "gpt-4.1-mini",
            "usage": {"prompt_tokens": 10, "completion_tokens": 5}
        }
        mock_response.raise_for_status = MagicMock()

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = mock_http_client(mock_response)
            mock_client.return_value = mock_instance

            result = await provider.chat_completion(
                [LLMMessage.text("user", "Hello")], temperature=0.3, model="other-model"
            )

        assert result.content == "[]"
        assert result.usage["prompt_tokens"] == 10
        url = mock_instance.post.call_args.args[0]
        payload = mock_instance.post.call_args.kwargs["json"]
        assert url == "https://api.openai.com/v1/chat/completions"
        assert payload["model"] == "other-model"
        assert payload["temperature"] == 0.3

    @pytest.mark.asyncio
    async def test_chat_completion_error_propagates(self):
        provider = OpenAIProvider(api_key="test-key")

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value = mock_http_client(error=httpx.ConnectError("refused"))

            with pytest.raises(httpx.ConnectError):
                await provider.chat_completion([LLMMessage.text("user", "Hello")])


class TestLLMFactory:
    """Tests for LLM provider factory."""

    def test_create_openai_provider(self):
        provider = create_llm_provider(provider="openai", api_key="test-key", model="gpt-4o")
        assert isinstance(provider, OpenAIProvider)
        assert provider.model == "gpt-4o"

    def test_timeout_is_passed_through(self):
        provider = create_llm_provider(provider="openai", api_key="test-key", timeout=5.0)
        assert provider.timeout == 5.0

    def test_no_api_key_returns_none(self):
        assert create_llm_provider(provider="openai", api_key="") is None
        assert create_llm_provider(provider="openai", api_key=None) is None

    def test_unsupported_provider_raises(self):
        with pytest.raises(ValueError, match="Unsupported"):
            create_llm_provider(provider="unsupported", api_key="key")

    def test_custom_base_url(self):
        provider = create_llm_provider(
            provider="openai",
            api_key="key",
            base_url="https://custom.api.com/v1"
        )
        assert provider.base_url == "https://custom.api.com/v1"
