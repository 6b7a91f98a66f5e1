"""Tests for the LLM adapter and provider request shaping"""

from types import SimpleNamespace

import pytest

from kitchen_display.config import Settings
from kitchen_display.llm import adapter as adapter_module
from kitchen_display.llm.adapter import LLMAdapter, get_llm_adapter
from kitchen_display.llm.providers.base import BaseLLMProvider
from kitchen_display.llm.providers.openai import OpenAIProvider
from kitchen_display.schemas.llm import LLMGenerateResponse, LLMMessage, ToolDefinition

TOOL = ToolDefinition(
    name="interpret_kitchen_command",
    description="Record the structured kitchen action",
    parameters={"type": "object", "properties": {"action": {"type": "string"}}},
)


class WorkingProvider(BaseLLMProvider):
    name = "working"

    async def generate(self, **kwargs):
        return LLMGenerateResponse(type="text", content="ok", provider=self.name, model=self.model)


class BrokenProvider(BaseLLMProvider):
    name = "broken"

    async def generate(self, **kwargs):
        raise RuntimeError("provider down")


@pytest.fixture(autouse=True)
def fake_providers(monkeypatch):
    monkeypatch.setitem(adapter_module.PROVIDERS, "working", WorkingProvider)
    monkeypatch.setitem(adapter_module.PROVIDERS, "broken", BrokenProvider)


async def generate(adapter):
    return await adapter.generate(
        system_prompt="system",
        messages=[LLMMessage(role="user", content="list orders")],
        tools=[TOOL],
    )


@pytest.mark.asyncio
async def test_primary_provider():
    response = await generate(LLMAdapter("working", "model-a"))
    assert response.provider == "working"
    assert response.model == "model-a"


@pytest.mark.asyncio
async def test_falls_back_when_primary_fails():
    response = await generate(LLMAdapter("broken", "model-a", "working", "model-b"))
    assert response.provider == "working"
    assert response.model == "model-b"


@pytest.mark.asyncio
async def test_raises_without_fallback():
    with pytest.raises(RuntimeError):
        await generate(LLMAdapter("broken", "model-a"))


@pytest.mark.asyncio
async def test_unknown_provider():
    with pytest.raises(ValueError):
        await generate(LLMAdapter("nope", "model-a"))


def test_adapter_from_settings():
    settings = Settings(
        _env_file=None,
        default_llm_provider="anthropic",
        default_llm_model="claude-3-5-haiku-latest",
        fallback_llm_provider="",
        anthropic_api_key="key",
    )
    adapter = get_llm_adapter(settings)

    assert adapter.provider == "anthropic"
    assert adapter.fallback_provider is None
    assert adapter.api_keys["anthropic"] == "key"


@pytest.mark.asyncio
async def test_openai_forces_named_tool():
    captured = {}

    async def create(**kwargs):
        captured.update(kwargs)
        call = SimpleNamespace(function=SimpleNamespace(
            name="interpret_kitchen_command",
            arguments='{"action": "list_orders"}',
        ))
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(tool_calls=[call], content=None))],
            usage=SimpleNamespace(prompt_tokens=10, completion_tokens=5, total_tokens=15),
        )

    provider = OpenAIProvider("gpt-4o-mini", api_key="test")
    provider.client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))

    response = await provider.generate(
        system_prompt="system",
        messages=[LLMMessage(role="user", content="list orders")],
        tools=[TOOL],
        force_tool="interpret_kitchen_command",
    )

    assert captured["tool_choice"] == {"type": "function", "function": {"name": "interpret_kitchen_command"}}
    assert captured["messages"][0] == {"role": "system", "content": "system"}
    assert response.type == "tool_call"
    assert response.tool_call.arguments == {"action": "list_orders"}
    assert response.usage.total_tokens == 15
