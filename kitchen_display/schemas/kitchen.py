"""Kitchen screen request/response schemas"""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field

from kitchen_display.schemas.order import ItemStatus, KitchenModel, Order, OrderStatus


class ViewMode(str, Enum):
    """Layout of the kitchen screen"""
    DEFAULT = "default"
    ALL_DAY = "allDay"
    RECENTLY_COMPLETED = "recentlyCompleted"


class MutationError(str, Enum):
    """Why a mutation did not stick"""
    REJECTED = "rejected"
    TIMEOUT = "timeout"
    FAILURE = "failure"


class MutationOutcome(KitchenModel):
    """Result of a mutation attempt"""
    success: bool
    order_id: str
    message: str
    error: Optional[MutationError] = None
    order: Optional[Order] = None


class FeedbackLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


class Feedback(KitchenModel):
    """Toast shown on the kitchen screen"""
    level: FeedbackLevel
    message: str
    timestamp: datetime


class Readiness(KitchenModel):
    """Remaining prep time for one order"""
    minutes: float
    is_urgent: bool
    band: str
    display: str


class OrderView(KitchenModel):
    """Order card with its timer and voice number"""
    order: Order
    readiness: Readiness
    voice_number: Optional[int] = None
    display_total: float


class GroupedItem(KitchenModel):
    """All-day view line: item name and quantity across orders"""
    name: str
    count: int


class ScreenState(KitchenModel):
    """Kitchen screen contents"""
    view_mode: ViewMode
    sort_by: Optional[OrderStatus] = None
    selected_date: date
    orders: List[OrderView]


class StatusChangeRequest(KitchenModel):
    status: OrderStatus


class ItemStatusRequest(KitchenModel):
    status: ItemStatus


class ItemReadyRequest(KitchenModel):
    item_name: str = Field(min_length=1)


class ViewRequest(KitchenModel):
    view_mode: ViewMode = ViewMode.DEFAULT
    sort_by: Optional[OrderStatus] = None
    selected_date: Optional[date] = None
