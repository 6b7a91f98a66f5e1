"""Order and item status state machine"""

from datetime import datetime
from enum import Enum

from kitchen_display.errors import TransitionRejected
from kitchen_display.schemas.order import ItemStatus, Order, OrderStatus

STAGE_LOCKED = "Status cannot be changed at this stage"
PREPARING_ONLY_READY = "Preparing orders can only be marked as ready"
NOT_PENDING = "Order is not pending"
ITEMS_LOCKED = "Items can only be updated while the order is preparing"
INVALID_ITEM_INDEX = "Invalid item index"
NO_REGRESSION = "Orders cannot be moved back to pending"


class Transition(str, Enum):
    """Operation that moves an order to a requested status"""
    ACCEPT = "accept"
    MARK_READY = "mark_ready"
    COMPLETE = "complete"


class StatusStateMachine:
    """
    Legal transitions for kitchen tickets.

    Orders move pending -> preparing -> ready -> completed. Items toggle between
    pending and fulfilled only while their order is preparing. Completed orders
    are terminal. Every method either returns the transitioned copy or raises
    TransitionRejected without side effects.
    """

    def check_accept(self, order: Order) -> None:
        if order.status != OrderStatus.PENDING:
            raise TransitionRejected(NOT_PENDING)

    def accept(self, order: Order, started_at: datetime) -> Order:
        self.check_accept(order)
        return order.model_copy(update={
            "status": OrderStatus.PREPARING,
            "started_at": order.started_at or started_at,
        })

    def mark_ready(self, order: Order) -> Order:
        if order.status != OrderStatus.PREPARING:
            raise TransitionRejected(STAGE_LOCKED)
        return order.model_copy(update={"status": OrderStatus.READY})

    def complete(self, order: Order, completed_at: datetime) -> Order:
        if order.status not in (OrderStatus.PREPARING, OrderStatus.READY):
            raise TransitionRejected(STAGE_LOCKED)
        return order.model_copy(update={
            "status": OrderStatus.COMPLETED,
            "completed_at": completed_at,
        })

    def check_item_status(self, order: Order, item_index: int) -> None:
        if order.status != OrderStatus.PREPARING:
            raise TransitionRejected(ITEMS_LOCKED)
        if item_index < 0 or item_index >= len(order.items):
            raise TransitionRejected(INVALID_ITEM_INDEX)

    def set_item_status(self, order: Order, item_index: int, status: ItemStatus) -> Order:
        self.check_item_status(order, item_index)
        if order.items[item_index].status == status:
            return order
        return order.with_item_status(item_index, status)

    def target_transition(self, order: Order, status: OrderStatus) -> Transition:
        """Map a requested status onto the one operation allowed to reach it"""
        if order.status == OrderStatus.COMPLETED:
            raise TransitionRejected(STAGE_LOCKED)
        if status == OrderStatus.PENDING:
            raise TransitionRejected(NO_REGRESSION)
        if status == OrderStatus.PREPARING:
            if order.status != OrderStatus.PENDING:
                raise TransitionRejected(STAGE_LOCKED)
            return Transition.ACCEPT
        if status == OrderStatus.READY:
            if order.status != OrderStatus.PREPARING:
                raise TransitionRejected(STAGE_LOCKED)
            return Transition.MARK_READY
        # Completing straight from preparing is only offered by the explicit
        # complete action, not by a status change
        if order.status == OrderStatus.PREPARING:
            raise TransitionRejected(PREPARING_ONLY_READY)
        if order.status != OrderStatus.READY:
            raise TransitionRejected(STAGE_LOCKED)
        return Transition.COMPLETE
