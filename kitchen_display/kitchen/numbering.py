"""Short-lived order numbers for voice addressing"""

from typing import Dict, Iterable, List, Optional

from kitchen_display.schemas.order import Order, OrderStatus

# Orders already in progress get the lowest numbers
NUMBERING_PRIORITY = (OrderStatus.PREPARING, OrderStatus.PENDING, OrderStatus.READY)


def compute_order_numbers(orders: Iterable[Order]) -> Dict[str, int]:
    """Number active orders from 1: preparing, then pending, then ready, oldest first"""
    orders = list(orders)
    numbers: Dict[str, int] = {}
    next_number = 1
    for status in NUMBERING_PRIORITY:
        group = sorted(
            (order for order in orders if order.status == status),
            key=lambda order: (order.created_at, order.id),
        )
        for order in group:
            numbers[order.id] = next_number
            next_number += 1
    return numbers


class OrderNumberMap:
    """id <-> number mapping, rebuilt wholesale on every change"""

    def __init__(self, numbers: Optional[Dict[str, int]] = None):
        self._by_id: Dict[str, int] = dict(numbers or {})
        self._by_number: Dict[int, str] = {number: order_id for order_id, number in self._by_id.items()}

    @classmethod
    def from_orders(cls, orders: Iterable[Order]) -> "OrderNumberMap":
        return cls(compute_order_numbers(orders))

    def __len__(self) -> int:
        return len(self._by_id)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, OrderNumberMap) and self._by_id == other._by_id

    def number_for(self, order_id: str) -> Optional[int]:
        return self._by_id.get(order_id)

    def order_id_for(self, number: int) -> Optional[str]:
        return self._by_number.get(number)

    def numbers_for(self, orders: Iterable[Order]) -> List[int]:
        return [n for n in (self.number_for(order.id) for order in orders) if n is not None]

    def as_dict(self) -> Dict[str, int]:
        return dict(self._by_id)
