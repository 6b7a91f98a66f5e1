"""Unified LLM adapter interface"""

from typing import Dict, List, Optional, Type

import structlog

from kitchen_display.config import Settings, settings as default_settings
from kitchen_display.schemas.llm import LLMMessage, ToolDefinition, LLMGenerateResponse
from kitchen_display.llm.providers.base import BaseLLMProvider
from kitchen_display.llm.providers.openai import OpenAIProvider
from kitchen_display.llm.providers.anthropic import AnthropicProvider
from kitchen_display.llm.providers.gemini import GeminiProvider

logger = structlog.get_logger()

PROVIDERS: Dict[str, Type[BaseLLMProvider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "gemini": GeminiProvider,
}


class LLMAdapter:
    """
    Unified LLM adapter that routes to any provider.
    Implements fallback logic when primary provider fails.
    """

    def __init__(
        self,
        provider: str,
        model: str,
        fallback_provider: Optional[str] = None,
        fallback_model: Optional[str] = None,
        api_keys: Optional[Dict[str, str]] = None,
    ):
        self.provider = provider
        self.model = model
        self.fallback_provider = fallback_provider
        self.fallback_model = fallback_model
        self.api_keys = api_keys or {}

    def _get_provider_instance(self, provider: str, model: str) -> BaseLLMProvider:
        """Get the appropriate provider instance"""
        provider_class = PROVIDERS.get(provider)
        if not provider_class:
            raise ValueError(f"Unknown provider: {provider}")
        return provider_class(model=model, api_key=self.api_keys.get(provider, ""))

    async def generate(
        self,
        system_prompt: str,
        messages: List[LLMMessage],
        tools: List[ToolDefinition],
        temperature: float = 0.0,
        max_tokens: int = 256,
        force_tool: Optional[str] = None,
    ) -> LLMGenerateResponse:
        """
        Generate a response from the LLM.
        Attempts fallback if primary provider fails.
        """
        kwargs = dict(
            system_prompt=system_prompt,
            messages=messages,
            tools=tools,
            temperature=temperature,
            max_tokens=max_tokens,
            force_tool=force_tool,
        )
        try:
            provider_instance = self._get_provider_instance(self.provider, self.model)
            return await provider_instance.generate(**kwargs)

        except Exception as e:
            logger.warning(
                "Primary LLM provider failed, attempting fallback",
                provider=self.provider,
                model=self.model,
                error=str(e),
            )

            if not (self.fallback_provider and self.fallback_model):
                raise

            try:
                fallback_instance = self._get_provider_instance(self.fallback_provider, self.fallback_model)
                return await fallback_instance.generate(**kwargs)
            except Exception as fallback_error:
                logger.error(
                    "Fallback LLM provider also failed",
                    fallback_provider=self.fallback_provider,
                    fallback_model=self.fallback_model,
                    error=str(fallback_error),
                )
                raise


def get_llm_adapter(settings: Settings = default_settings) -> LLMAdapter:
    """Build the adapter configured for voice command interpretation"""
    return LLMAdapter(
        provider=settings.default_llm_provider,
        model=settings.default_llm_model,
        fallback_provider=settings.fallback_llm_provider or None,
        fallback_model=settings.fallback_llm_model or None,
        api_keys={
            "openai": settings.openai_api_key,
            "anthropic": settings.anthropic_api_key,
            "gemini": settings.gemini_api_key,
        },
    )
