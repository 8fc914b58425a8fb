"""
AI Providers - LLM clients behind a common interface.
"""

from aura.ai.providers.base import AIProvider, AIResponse, ChatTurn, ProviderType, TokenUsage
from aura.ai.providers.gemini import GeminiProvider

__all__ = [
    "AIProvider",
    "AIResponse",
    "ChatTurn",
    "ProviderType",
    "TokenUsage",
    "GeminiProvider",
]
