"""In-memory store of the orders on the kitchen screen"""

from typing import Callable, Dict, Iterable, Iterator, List, Optional

from kitchen_display.errors import OrderNotFound
from kitchen_display.schemas.order import Order

Listener = Callable[[], None]


class OrderStore:
    """
    Single source of truth for the screen and the state machine.

    Orders keep their insertion position when replaced. Every write bumps the
    store revision, stamps the written order with it, then notifies
    listeners. Stamps only exist for orders currently on the screen.
    """

    def __init__(self, orders: Iterable[Order] = ()):
        self._orders: Dict[str, Order] = {}
        self._revisions: Dict[str, int] = {}
        self._listeners: List[Listener] = []
        self.revision = 0
        for order in orders:
            self._orders[order.id] = order
            self._revisions[order.id] = 0

    def __len__(self) -> int:
        return len(self._orders)

    def __contains__(self, order_id: object) -> bool:
        return order_id in self._orders

    def __iter__(self) -> Iterator[Order]:
        return iter(list(self._orders.values()))

    def get(self, order_id: str) -> Optional[Order]:
        return self._orders.get(order_id)

    def require(self, order_id: str) -> Order:
        order = self._orders.get(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    def order_revision(self, order_id: str) -> Optional[int]:
        """Store revision of the order's last write; None when it is not on the screen"""
        return self._revisions.get(order_id)

    def put(self, order: Order) -> None:
        self.revision += 1
        self._orders[order.id] = order
        self._revisions[order.id] = self.revision
        self._notify()

    def remove(self, order_id: str) -> Optional[Order]:
        order = self._orders.pop(order_id, None)
        if order is not None:
            del self._revisions[order_id]
            self.revision += 1
            self._notify()
        return order

    def replace_all(self, orders: Iterable[Order]) -> None:
        """Swap the whole contents, as after a full refetch"""
        self.revision += 1
        self._orders = {order.id: order for order in orders}
        self._revisions = {order_id: self.revision for order_id in self._orders}
        self._notify()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that unregisters it"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()
