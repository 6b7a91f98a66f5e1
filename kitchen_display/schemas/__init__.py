"""Pydantic schemas for orders, history, voice and events"""

from kitchen_display.schemas.order import (
    OrderStatus,
    ItemStatus,
    SelectedAddon,
    OrderItem,
    Order,
    KitchenOrderRecord,
    KitchenOrdersResponse,
    AcceptOrderResponse,
    StatusUpdateResponse,
)
from kitchen_display.schemas.history import (
    ActionType,
    ActionHistoryItem,
    HistoryState,
)
from kitchen_display.schemas.voice import (
    VoiceCommand,
    IntentRequest,
    VoiceSession,
    RecognitionResultIn,
    VoiceState,
)
from kitchen_display.schemas.events import (
    COOK_ORDER_UPDATE,
    ADMIN_NOTIFICATION,
    KitchenEvent,
    RoleNotification,
)
from kitchen_display.schemas.kitchen import (
    ViewMode,
    MutationError,
    MutationOutcome,
    FeedbackLevel,
    Feedback,
    Readiness,
    OrderView,
    GroupedItem,
    ScreenState,
)
from kitchen_display.schemas.llm import (
    LLMMessage,
    ToolDefinition,
    ToolCall,
    LLMGenerateResponse,
)

__all__ = [
    "OrderStatus",
    "ItemStatus",
    "SelectedAddon",
    "OrderItem",
    "Order",
    "KitchenOrderRecord",
    "KitchenOrdersResponse",
    "AcceptOrderResponse",
    "StatusUpdateResponse",
    "ActionType",
    "ActionHistoryItem",
    "HistoryState",
    "VoiceCommand",
    "IntentRequest",
    "VoiceSession",
    "RecognitionResultIn",
    "VoiceState",
    "COOK_ORDER_UPDATE",
    "ADMIN_NOTIFICATION",
    "KitchenEvent",
    "RoleNotification",
    "ViewMode",
    "MutationError",
    "MutationOutcome",
    "FeedbackLevel",
    "Feedback",
    "Readiness",
    "OrderView",
    "GroupedItem",
    "ScreenState",
    "LLMMessage",
    "ToolDefinition",
    "ToolCall",
    "LLMGenerateResponse",
]
