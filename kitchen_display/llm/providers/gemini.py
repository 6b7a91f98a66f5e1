"""Google Gemini LLM provider"""

from typing import List, Optional
import google.generativeai as genai
import structlog

from kitchen_display.schemas.llm import (
    LLMMessage,
    ToolDefinition,
    LLMGenerateResponse,
    ToolCall,
)
from kitchen_display.llm.providers.base import BaseLLMProvider

logger = structlog.get_logger()

JSON_TYPES = {
    "string": genai.protos.Type.STRING,
    "number": genai.protos.Type.NUMBER,
    "integer": genai.protos.Type.INTEGER,
    "boolean": genai.protos.Type.BOOLEAN,
    "array": genai.protos.Type.ARRAY,
    "object": genai.protos.Type.OBJECT,
}


class GeminiProvider(BaseLLMProvider):
    """Google Gemini provider implementation"""

    name = "gemini"

    def __init__(self, model: str = "gemini-1.5-flash", api_key: str = ""):
        super().__init__(model, api_key)
        genai.configure(api_key=api_key)
        self.client = genai.GenerativeModel(model)

    def _convert_tools_to_provider_format(
        self,
        tools: List[ToolDefinition],
    ) -> List[genai.protos.Tool]:
        """Convert tools to Gemini function calling format"""
        declarations = [
            genai.protos.FunctionDeclaration(
                name=tool.name,
                description=tool.description,
                parameters=self._convert_schema(tool.parameters),
            )
            for tool in tools
        ]
        return [genai.protos.Tool(function_declarations=declarations)]

    def _convert_schema(self, schema: dict) -> genai.protos.Schema:
        """Convert a flat JSON Schema object to Gemini schema format"""
        if schema.get("type") != "object":
            return genai.protos.Schema(type=JSON_TYPES.get(schema.get("type", "string"), genai.protos.Type.STRING))

        properties = {}
        for name, prop in schema.get("properties", {}).items():
            properties[name] = genai.protos.Schema(
                type=JSON_TYPES.get(prop.get("type", "string"), genai.protos.Type.STRING),
                description=prop.get("description", ""),
                enum=prop.get("enum", []),
            )
        return genai.protos.Schema(
            type=genai.protos.Type.OBJECT,
            properties=properties,
            required=schema.get("required", []),
        )

    async def generate(
        self,
        system_prompt: str,
        messages: List[LLMMessage],
        tools: List[ToolDefinition],
        temperature: float = 0.0,
        max_tokens: int = 256,
        force_tool: Optional[str] = None,
    ) -> LLMGenerateResponse:
        """Generate response using Gemini API"""
        history = [
            {"role": "user" if msg.role == "user" else "model", "parts": [msg.content]}
            for msg in messages
        ]
        chat = self.client.start_chat(history=history[:-1])
        last_message = history[-1]["parts"][0] if history else ""

        kwargs = {
            "generation_config": genai.types.GenerationConfig(
                temperature=temperature,
                max_output_tokens=max_tokens,
            ),
        }
        if tools:
            kwargs["tools"] = self._convert_tools_to_provider_format(tools)
            if force_tool:
                kwargs["tool_config"] = {
                    "function_calling_config": {"mode": "ANY", "allowed_function_names": [force_tool]},
                }

        logger.debug("Gemini request", model=self.model, tool_count=len(tools), force_tool=force_tool)

        response = await chat.send_message_async(f"{system_prompt}\n\n{last_message}", **kwargs)

        content = None
        tool_call = None
        for candidate in response.candidates:
            for part in candidate.content.parts:
                if part.function_call and part.function_call.name:
                    tool_call = ToolCall(name=part.function_call.name, arguments=dict(part.function_call.args))
                    break
                if part.text:
                    content = part.text
            if tool_call:
                break

        return LLMGenerateResponse(
            type="tool_call" if tool_call else "text",
            content=None if tool_call else content,
            tool_call=tool_call,
            provider=self.name,
            model=self.model,
        )
