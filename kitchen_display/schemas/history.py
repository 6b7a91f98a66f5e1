"""Action history schemas"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from kitchen_display.schemas.order import ItemStatus, KitchenModel, Order


class ActionType(str, Enum):
    """Kind of mutation recorded in the history log"""
    ITEM_STATUS_CHANGE = "item_status_change"
    STATUS_CHANGE = "status_change"
    ORDER_ADD = "order_add"
    ORDER_DELETE = "order_delete"


class ActionHistoryItem(KitchenModel):
    """One applied mutation, with the snapshots needed to reverse it"""
    type: ActionType
    order_id: str
    previous_state: Optional[Order] = None
    new_state: Optional[Order] = None
    timestamp: datetime
    item_index: Optional[int] = None
    previous_item_status: Optional[ItemStatus] = None
    new_item_status: Optional[ItemStatus] = None


class HistoryState(KitchenModel):
    """History log as exposed to the display"""
    entries: List[ActionHistoryItem]
    current_index: int
    can_undo: bool
    can_redo: bool
    undo_mode: str
