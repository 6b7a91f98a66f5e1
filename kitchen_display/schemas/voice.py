"""Voice command schemas"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from kitchen_display.schemas.order import KitchenModel, OrderStatus


# Spoken/NLU variants mapped onto kitchen statuses
STATUS_SYNONYMS = {
    "complete": OrderStatus.COMPLETED,
    "done": OrderStatus.COMPLETED,
    "finished": OrderStatus.COMPLETED,
    "in progress": OrderStatus.PREPARING,
    "start": OrderStatus.PREPARING,
    "started": OrderStatus.PREPARING,
}

# Action names some interpreters return for a status change
ACTION_SYNONYMS = {
    "update_status": "change_status",
    "status_update": "change_status",
}


class VoiceCommand(KitchenModel):
    """Structured intent returned by the speech-to-intent service"""
    action: str
    order_number: Optional[int] = None
    status: Optional[OrderStatus] = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)

    @field_validator("action", mode="before")
    @classmethod
    def normalize_action(cls, value: Any) -> Any:
        if isinstance(value, str):
            action = value.strip().lower()
            return ACTION_SYNONYMS.get(action, action)
        return value

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            status = value.strip().lower()
            return STATUS_SYNONYMS.get(status, status)
        return value

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, value: Any) -> Any:
        if isinstance(value, (int, float)):
            return min(max(float(value), 0.0), 1.0)
        return value


class IntentRequest(KitchenModel):
    """Payload sent to the speech-to-intent service"""
    text: str
    order_number_map: Dict[str, int]
    allowed_actions: List[str]


class VoiceSession(KitchenModel):
    """Voice mode session; one per kitchen screen"""
    active: bool = False
    activated_at: Optional[datetime] = None
    deadline: Optional[datetime] = None
    wake_word_detected: bool = False
    last_command_time: Optional[datetime] = None


class RecognitionAlternativeIn(KitchenModel):
    transcript: str
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class RecognitionResultIn(KitchenModel):
    """Recognition result streamed in from the display's microphone"""
    alternatives: List[RecognitionAlternativeIn] = []
    is_final: bool = False
    error: Optional[str] = None
    ended: bool = False


class VoiceState(KitchenModel):
    """Voice pipeline state as exposed to the display"""
    session: VoiceSession
    phase: str
    transcript: str
    order_numbers: Dict[str, int]
