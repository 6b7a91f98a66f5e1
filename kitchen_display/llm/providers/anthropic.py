"""Anthropic Claude LLM provider"""

from typing import List, Optional
from anthropic import AsyncAnthropic
import structlog

from kitchen_display.schemas.llm import (
    LLMMessage,
    ToolDefinition,
    LLMGenerateResponse,
    ToolCall,
    UsageStats,
)
from kitchen_display.llm.providers.base import BaseLLMProvider

logger = structlog.get_logger()


class AnthropicProvider(BaseLLMProvider):
    """Anthropic Claude provider implementation"""

    name = "anthropic"

    def __init__(self, model: str = "claude-3-5-haiku-latest", api_key: str = ""):
        super().__init__(model, api_key)
        self.client = AsyncAnthropic(api_key=api_key)

    def _convert_tools_to_provider_format(
        self,
        tools: List[ToolDefinition],
    ) -> List[dict]:
        """Convert tools to Anthropic tool format"""
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": tool.parameters,
            }
            for tool in tools
        ]

    async def generate(
        self,
        system_prompt: str,
        messages: List[LLMMessage],
        tools: List[ToolDefinition],
        temperature: float = 0.0,
        max_tokens: int = 256,
        force_tool: Optional[str] = None,
    ) -> LLMGenerateResponse:
        """Generate response using Anthropic API"""
        # System prompts go in their own field; stray system turns become user turns
        anthropic_messages = [
            {"role": msg.role if msg.role != "system" else "user", "content": msg.content}
            for msg in messages
        ]

        kwargs = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "system": system_prompt,
            "messages": anthropic_messages,
        }
        if tools:
            kwargs["tools"] = self._convert_tools_to_provider_format(tools)
            if force_tool:
                kwargs["tool_choice"] = {"type": "tool", "name": force_tool}

        logger.debug("Anthropic request", model=self.model, tool_count=len(tools), force_tool=force_tool)

        response = await self.client.messages.create(**kwargs)

        content = None
        tool_call = None
        for block in response.content:
            if block.type == "tool_use":
                tool_call = ToolCall(name=block.name, arguments=block.input)
                break
            if block.type == "text":
                content = block.text

        return LLMGenerateResponse(
            type="tool_call" if tool_call else "text",
            content=None if tool_call else content,
            tool_call=tool_call,
            provider=self.name,
            model=self.model,
            usage=UsageStats(
                prompt_tokens=response.usage.input_tokens,
                completion_tokens=response.usage.output_tokens,
                total_tokens=response.usage.input_tokens + response.usage.output_tokens,
            ),
        )
