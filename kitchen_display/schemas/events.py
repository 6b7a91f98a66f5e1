"""Real-time and role notification schemas"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from kitchen_display.schemas.order import KitchenModel

COOK_ORDER_UPDATE = "cookOrderUpdate"
ADMIN_NOTIFICATION = "adminNotification"


class KitchenEvent(KitchenModel):
    """Event carried on a restaurant's real-time channel"""
    event: str
    restaurant_id: str
    message: str = ""
    order_ids: List[str] = []
    timestamp: Optional[datetime] = None


class RoleNotification(KitchenModel):
    """Notification delivered to other restaurant roles"""
    type: str = "order"
    title: str
    priority: str = "high"
    message: str
    data: Dict[str, Any]
    role_filter: List[str]
    restaurant_id: str
