"""LLM provider implementations"""

from kitchen_display.llm.providers.base import BaseLLMProvider
from kitchen_display.llm.providers.openai import OpenAIProvider
from kitchen_display.llm.providers.anthropic import AnthropicProvider
from kitchen_display.llm.providers.gemini import GeminiProvider

__all__ = [
    "BaseLLMProvider",
    "OpenAIProvider",
    "AnthropicProvider",
    "GeminiProvider",
]
