"""Kitchen order schemas"""

import json
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Annotated, Any, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def _ensure_aware(value: datetime) -> datetime:
    """Timestamps without an offset are taken as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


Timestamp = Annotated[datetime, AfterValidator(_ensure_aware)]

DEFAULT_PREP_WINDOW = timedelta(minutes=15)


class OrderStatus(str, Enum):
    """Kitchen ticket status, in workflow order"""
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"


class ItemStatus(str, Enum):
    """Status of a single order line"""
    PENDING = "pending"
    FULFILLED = "fulfilled"


class KitchenModel(BaseModel):
    """Immutable model exchanged with the display in camelCase"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class SelectedAddon(KitchenModel):
    """Add-on chosen for an item"""
    id: str
    name: str
    price: float = Field(default=0.0, ge=0)


class OrderItem(KitchenModel):
    """One line of a kitchen ticket"""
    id: Optional[str] = None
    name: str
    quantity: int = Field(default=1, gt=0)
    price: float = Field(default=0.0, ge=0)
    status: ItemStatus = ItemStatus.PENDING
    notes: Optional[str] = None
    prep_time: Optional[float] = Field(default=None, ge=0)  # minutes per unit
    selected_addons: List[SelectedAddon] = []

    @property
    def display_total(self) -> float:
        addons = sum(addon.price for addon in self.selected_addons)
        return (self.price + addons) * self.quantity


class Order(KitchenModel):
    """Kitchen ticket as shown on the screen"""
    id: str
    order_number: str
    items: List[OrderItem] = []
    status: OrderStatus = OrderStatus.PENDING
    created_at: Timestamp
    updated_at: Timestamp
    estimated_ready_time: Timestamp
    started_at: Optional[Timestamp] = None
    completed_at: Optional[Timestamp] = None
    table_number: Optional[str] = None
    assigner_name: Optional[str] = None

    @model_validator(mode="after")
    def check_lifecycle_timestamps(self) -> "Order":
        if self.status == OrderStatus.PREPARING and self.started_at is None:
            raise ValueError("a preparing order must carry startedAt")
        if self.completed_at is not None and self.status != OrderStatus.COMPLETED:
            raise ValueError("completedAt is only valid on completed orders")
        return self

    @property
    def display_total(self) -> float:
        return sum(item.display_total for item in self.items)

    def with_item_status(self, item_index: int, status: ItemStatus) -> "Order":
        """Copy of the order with one item's status replaced"""
        items = [
            item.model_copy(update={"status": status}) if index == item_index else item
            for index, item in enumerate(self.items)
        ]
        return self.model_copy(update={"items": items})


# Order service wire records
# {"orderId": "...", "status": "pending", "createdAt": "...", "startedAt": null,
#  "order": {"orderNumber": "...", "items": [...] | "[...]", "estimatedReadyTime": "...",
#            "table": {"number": "4"}},
#  "assigner": {"firstName": "...", "lastName": "..."}}

class TableRecord(KitchenModel):
    number: str

    @field_validator("number", mode="before")
    @classmethod
    def stringify_number(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class PersonRecord(KitchenModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @property
    def full_name(self) -> Optional[str]:
        name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return name or None


class OrderDetailsRecord(KitchenModel):
    order_number: str
    items: List[OrderItem] = []
    estimated_ready_time: Optional[Timestamp] = None
    table: Optional[TableRecord] = None

    @field_validator("order_number", mode="before")
    @classmethod
    def stringify_order_number(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_validator("items", mode="before")
    @classmethod
    def decode_items(cls, value: Any) -> Any:
        # Items are stored as a JSON string on some records
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError as e:
                raise ValueError(f"items is not valid JSON: {e}") from e
        return value


class KitchenOrderRecord(KitchenModel):
    """Kitchen order as returned by the order service"""
    order_id: str
    status: OrderStatus
    created_at: Timestamp
    updated_at: Optional[Timestamp] = None
    started_at: Optional[Timestamp] = None
    completed_at: Optional[Timestamp] = None
    order: OrderDetailsRecord
    assigner: Optional[PersonRecord] = None

    def to_order(self, fetched_at: datetime) -> Order:
        """Convert the wire record to a screen order"""
        details = self.order
        return Order(
            id=self.order_id,
            order_number=details.order_number,
            items=details.items,
            status=self.status,
            created_at=self.created_at,
            updated_at=self.updated_at or self.created_at,
            estimated_ready_time=details.estimated_ready_time or fetched_at + DEFAULT_PREP_WINDOW,
            started_at=self.started_at,
            completed_at=self.completed_at if self.status == OrderStatus.COMPLETED else None,
            table_number=details.table.number if details.table else None,
            assigner_name=self.assigner.full_name if self.assigner else None,
        )


class KitchenOrdersResponse(KitchenModel):
    """Bulk read of active kitchen orders"""
    success: bool = True
    orders: List[KitchenOrderRecord] = []
    message: Optional[str] = None


class AcceptOrderResponse(KitchenModel):
    """Accept call result; startedAt is authoritative"""
    success: bool = True
    started_at: Timestamp


class StatusUpdateResponse(KitchenModel):
    """Status or item patch result"""
    success: bool = True
    message: Optional[str] = None
