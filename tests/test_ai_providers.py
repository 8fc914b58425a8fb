"""
Tests for AI Providers - base dataclasses and the Gemini provider.

The GenAI client is mocked: no network calls, no token costs.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from aura.ai.providers.base import AIResponse, ChatTurn, ProviderType, TokenUsage
from aura.ai.providers.gemini import GeminiProvider


class TestTokenUsage:
    def test_total_is_calculated(self):
        assert TokenUsage(prompt_tokens=100, completion_tokens=50).total_tokens == 150

    def test_explicit_total_is_kept(self):
        assert TokenUsage(prompt_tokens=100, completion_tokens=50, total_tokens=200).total_tokens == 200


class TestAIResponse:
    def test_to_dict_truncates_long_content(self):
        response = AIResponse(content="x" * 150, provider=ProviderType.GEMINI, model="gemini-test")

        data = response.to_dict()

        assert data["content"] == "x" * 100 + "..."
        assert data["provider"] == "gemini"
        assert data["success"] is True


def fake_genai_response(text, prompt_tokens=12, completion_tokens=8):
    response = MagicMock()
    response.text = text
    response.usage_metadata.prompt_token_count = prompt_tokens
    response.usage_metadata.candidates_token_count = completion_tokens
    return response


@pytest.fixture
def gemini():
    with patch("aura.ai.providers.gemini.genai.Client") as client_cls:
        provider = GeminiProvider(model="gemini-test", api_key="test-key")
        provider._client = client_cls.return_value
        provider._client.aio.models.generate_content = AsyncMock()
        yield provider


class TestGeminiProvider:
    @pytest.mark.asyncio
    async def test_chat_turns_become_contents(self, gemini):
        gemini._client.aio.models.generate_content.return_value = fake_genai_response('{"intent": "general"}')

        response = await gemini.generate_chat([
            ChatTurn(role="user", text="instructions"),
            ChatTurn(role="model", text="earlier reply"),
            ChatTurn(role="user", text="hello"),
        ])

        assert response.success is True
        assert response.content == '{"intent": "general"}'
        assert response.usage.total_tokens == 20

        kwargs = gemini._client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-test"
        assert [content.role for content in kwargs["contents"]] == ["user", "model", "user"]
        assert kwargs["contents"][-1].parts[0].text == "hello"

    @pytest.mark.asyncio
    async def test_sdk_exception_becomes_error_response(self, gemini):
        gemini._client.aio.models.generate_content.side_effect = RuntimeError("quota exceeded")

        response = await gemini.generate_chat([ChatTurn(role="user", text="hello")])

        assert response.success is False
        assert response.error == "quota exceeded"
        assert response.content == ""

    @pytest.mark.asyncio
    async def test_missing_usage_metadata(self, gemini):
        reply = fake_genai_response("ok")
        reply.usage_metadata = None
        gemini._client.aio.models.generate_content.return_value = reply

        response = await gemini.generate_chat([ChatTurn(role="user", text="Say ok")])

        assert response.usage.total_tokens == 0

    @pytest.mark.asyncio
    async def test_without_api_key_nothing_is_sent(self):
        with patch("aura.ai.providers.gemini.settings") as fake_settings:
            fake_settings.GEMINI_MODEL = "gemini-test"
            fake_settings.GEMINI_API_KEY = ""
            provider = GeminiProvider()

        response = await provider.generate_chat([ChatTurn(role="user", text="hello")])

        assert response.success is False
        assert response.error == "API key missing"
