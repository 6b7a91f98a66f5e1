"""Base LLM provider interface"""

from abc import ABC, abstractmethod
from typing import List, Optional

from kitchen_display.schemas.llm import LLMMessage, ToolDefinition, LLMGenerateResponse


class BaseLLMProvider(ABC):
    """Abstract base class for LLM providers"""

    name = "base"

    def __init__(self, model: str, api_key: str = ""):
        self.model = model
        self.api_key = api_key

    @abstractmethod
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

        `force_tool` names a tool the model must call instead of answering in
        text.
        """
        pass

    def _convert_tools_to_provider_format(
        self,
        tools: List[ToolDefinition],
    ) -> List[dict]:
        """Convert tools to provider-specific format (override in subclass)"""
        return [tool.model_dump() for tool in tools]
