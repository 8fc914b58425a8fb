"""
Gemini Provider - Google's GenAI SDK.

Used by the intent classifier. Multi-turn requests are sent as a list of
``types.Content`` with roles "user" / "model".
"""

import time
import logging
from typing import List, Optional

from google import genai
from google.genai import types

from aura.core.config import settings
from aura.ai.providers.base import (
    AIProvider,
    AIResponse,
    ChatTurn,
    ProviderType,
    TokenUsage
)

logger = logging.getLogger("aura.ai.gemini")


class GeminiProvider(AIProvider):
    provider_type = ProviderType.GEMINI

    def __init__(self, model: str = None, api_key: str = None):
        self.model = model or settings.GEMINI_MODEL
        self.api_key = api_key or settings.GEMINI_API_KEY

        if self.api_key:
            self._client = genai.Client(api_key=self.api_key)
            logger.info(f"Gemini provider initialized with model: {self.model}")
        else:
            self._client = None
            logger.warning("Gemini API key not configured")

    def _config(
        self,
        temperature: Optional[float],
        max_tokens: Optional[int],
    ) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=settings.AI_TEMPERATURE if temperature is None else temperature,
            top_k=settings.AI_TOP_K,
            top_p=settings.AI_TOP_P,
            max_output_tokens=max_tokens or settings.AI_MAX_OUTPUT_TOKENS,
        )

    async def generate_chat(
        self,
        turns: List[ChatTurn],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> AIResponse:
        start_time = time.time()

        if not self._client:
            return self._error("API key missing", start_time)

        contents = [
            types.Content(role=turn.role, parts=[types.Part(text=turn.text)])
            for turn in turns
        ]

        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=contents,
                config=self._config(temperature, max_tokens),
            )
        except Exception as e:
            logger.error(f"Gemini chat request failed: {e}")
            return self._error(str(e), start_time)

        return self._to_response(response, start_time)

    # ---------------------------------------------------------------------------
    # PRIVATE HELPERS
    # ---------------------------------------------------------------------------

    def _to_response(self, response, start_time: float) -> AIResponse:
        return AIResponse(
            content=response.text or "",
            provider=self.provider_type,
            model=self.model,
            usage=self._extract_usage(response),
            latency_ms=self._measure_latency(start_time),
            success=True,
            raw_response=response,
        )

    def _extract_usage(self, response) -> TokenUsage:
        # usage_metadata is None when the API reports no usage
        metadata = response.usage_metadata
        prompt_t = (metadata.prompt_token_count or 0) if metadata else 0
        comp_t = (metadata.candidates_token_count or 0) if metadata else 0
        return TokenUsage(prompt_tokens=prompt_t, completion_tokens=comp_t)

    def _error(self, msg, start_time):
        return self._create_error_response(
            error=msg, model=self.model, latency_ms=self._measure_latency(start_time)
        )
