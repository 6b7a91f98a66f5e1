"""OpenAI LLM provider"""

from typing import List, Optional
import json
from openai import AsyncOpenAI
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


class OpenAIProvider(BaseLLMProvider):
    """OpenAI GPT provider implementation"""

    name = "openai"

    def __init__(self, model: str = "gpt-4o-mini", api_key: str = ""):
        super().__init__(model, api_key)
        self.client = AsyncOpenAI(api_key=api_key)

    def _convert_tools_to_provider_format(
        self,
        tools: List[ToolDefinition],
    ) -> List[dict]:
        """Convert tools to OpenAI function calling format"""
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.parameters,
                },
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
        """Generate response using OpenAI API"""
        openai_messages = [{"role": "system", "content": system_prompt}]
        openai_messages.extend({"role": msg.role, "content": msg.content} for msg in messages)

        kwargs = {
            "model": self.model,
            "messages": openai_messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if tools:
            kwargs["tools"] = self._convert_tools_to_provider_format(tools)
            kwargs["tool_choice"] = (
                {"type": "function", "function": {"name": force_tool}} if force_tool else "auto"
            )

        logger.debug("OpenAI request", model=self.model, tool_count=len(tools), force_tool=force_tool)

        response = await self.client.chat.completions.create(**kwargs)
        message = response.choices[0].message

        tool_call = None
        if message.tool_calls:
            call = message.tool_calls[0]
            tool_call = ToolCall(name=call.function.name, arguments=json.loads(call.function.arguments))

        return LLMGenerateResponse(
            type="tool_call" if tool_call else "text",
            content=None if tool_call else message.content,
            tool_call=tool_call,
            provider=self.name,
            model=self.model,
            usage=UsageStats(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            ) if response.usage else None,
        )
