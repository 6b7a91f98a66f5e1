"""Speech-to-intent interpreters"""

import asyncio
import json
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx
import structlog
from pydantic import ValidationError

from kitchen_display.config import Settings, settings as default_settings
from kitchen_display.errors import InterpretationError
from kitchen_display.llm.adapter import LLMAdapter, get_llm_adapter
from kitchen_display.schemas.llm import LLMMessage, ToolDefinition
from kitchen_display.schemas.order import OrderStatus
from kitchen_display.schemas.voice import IntentRequest, VoiceCommand

logger = structlog.get_logger()

INTERPRET_TOOL = "interpret_kitchen_command"

SYSTEM_PROMPT = """You turn spoken commands from a restaurant kitchen into structured actions.

Orders on the screen are addressed by short spoken numbers. The mapping from
order id to number is given with each command; only use numbers that appear in it.

Allowed actions: {actions}.
- change_status needs orderNumber and status (one of: {statuses}).
- show_all_day shows item totals for the day.
- show_recently_completed shows completed orders.
- list_orders reads out the orders by status.

If the command fits none of the allowed actions, use action "unknown".
Set confidence between 0 and 1 to reflect how sure you are of the whole interpretation.
Always answer by calling {tool}."""

_FENCED_JSON = re.compile(r"\{.*\}", re.DOTALL)


class IntentInterpreter(ABC):
    """Turns a transcript into a VoiceCommand"""

    @abstractmethod
    async def interpret(self, request: IntentRequest) -> VoiceCommand:
        """Raises InterpretationError when the transcript cannot be interpreted"""

    async def aclose(self) -> None:
        pass


def parse_command(data: Any) -> VoiceCommand:
    try:
        return VoiceCommand.model_validate(data)
    except ValidationError as e:
        raise InterpretationError(f"Unusable voice command: {e.error_count()} errors") from e


class HttpIntentInterpreter(IntentInterpreter):
    """Calls the external speech-to-intent endpoint"""

    def __init__(self, url: str, timeout: float = 8.0, client: Optional[httpx.AsyncClient] = None):
        self.url = url
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()

    async def interpret(self, request: IntentRequest) -> VoiceCommand:
        try:
            response = await asyncio.wait_for(
                self._client.post(
                    self.url,
                    json=request.model_dump(mode="json", by_alias=True),
                    timeout=self.timeout,
                ),
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (asyncio.TimeoutError, httpx.HTTPError, ValueError) as e:
            logger.error("Intent service call failed", url=self.url, error=str(e))
            raise InterpretationError("Failed to process command") from e

        command = parse_command(data)
        logger.info(
            "Voice command interpreted",
            action=command.action,
            order_number=command.order_number,
            confidence=command.confidence,
        )
        return command

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class LLMIntentInterpreter(IntentInterpreter):
    """Interprets commands with an LLM forced to call a single tool"""

    def __init__(self, adapter: LLMAdapter, timeout: float = 8.0):
        self.adapter = adapter
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings = default_settings) -> "LLMIntentInterpreter":
        return cls(get_llm_adapter(settings), timeout=settings.intent_timeout_seconds)

    def tool(self, request: IntentRequest) -> ToolDefinition:
        return ToolDefinition(
            name=INTERPRET_TOOL,
            description="Record the structured kitchen action for a spoken command",
            parameters={
                "type": "object",
                "properties": {
                    "action": {
                        "type": "string",
                        "description": "Action to perform",
                        "enum": request.allowed_actions + ["unknown"],
                    },
                    "orderNumber": {
                        "type": "integer",
                        "description": "Spoken order number, for change_status",
                    },
                    "status": {
                        "type": "string",
                        "description": "Target status, for change_status",
                        "enum": [status.value for status in OrderStatus],
                    },
                    "confidence": {
                        "type": "number",
                        "description": "Confidence in the interpretation, 0 to 1",
                    },
                },
                "required": ["action", "confidence"],
            },
        )

    async def interpret(self, request: IntentRequest) -> VoiceCommand:
        system_prompt = SYSTEM_PROMPT.format(
            actions=", ".join(request.allowed_actions),
            statuses=", ".join(status.value for status in OrderStatus),
            tool=INTERPRET_TOOL,
        )
        message = LLMMessage(
            role="user",
            content=f"Order numbers: {json.dumps(request.order_number_map)}\nCommand: {request.text}",
        )
        try:
            response = await asyncio.wait_for(
                self.adapter.generate(
                    system_prompt=system_prompt,
                    messages=[message],
                    tools=[self.tool(request)],
                    force_tool=INTERPRET_TOOL,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise InterpretationError("Intent interpretation timed out") from e
        except Exception as e:
            logger.error("LLM interpretation failed", error=str(e))
            raise InterpretationError("Failed to process command") from e

        if response.tool_call is not None:
            arguments: Dict[str, Any] = response.tool_call.arguments
        else:
            arguments = _json_from_text(response.content)

        command = parse_command(arguments)
        logger.info(
            "Voice command interpreted",
            provider=response.provider,
            action=command.action,
            order_number=command.order_number,
            confidence=command.confidence,
        )
        return command


def _json_from_text(content: Optional[str]) -> Dict[str, Any]:
    """Pull the JSON object out of a plain-text answer"""
    match = _FENCED_JSON.search(content or "")
    if match is None:
        raise InterpretationError("LLM did not return a command")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise InterpretationError("LLM returned malformed JSON") from e
    if not isinstance(data, dict):
        raise InterpretationError("LLM returned malformed JSON")
    return data
