"""Optimistic order mutations"""

import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional

import structlog

from kitchen_display.errors import OrderNotFound, OrderServiceError, OrderServiceTimeout, TransitionRejected
from kitchen_display.kitchen.feedback import TIMED_OUT, FeedbackLog
from kitchen_display.kitchen.history import ActionHistory, apply_redo, apply_undo
from kitchen_display.kitchen.state_machine import StatusStateMachine, Transition
from kitchen_display.kitchen.store import OrderStore
from kitchen_display.schemas.history import ActionHistoryItem, ActionType, HistoryState
from kitchen_display.schemas.kitchen import MutationError, MutationOutcome
from kitchen_display.schemas.order import ItemStatus, Order, OrderStatus
from kitchen_display.services.order_service import OrderServiceClient
from kitchen_display.services.realtime import NotificationBridge
from kitchen_display.services.role_notifications import RoleNotifier

logger = structlog.get_logger()

UNDO_LOCAL = "local"
UNDO_COMPENSATING = "compensating"

NOTHING_TO_UNDO = "Nothing to undo"
NOTHING_TO_REDO = "Nothing to redo"


class KitchenController:
    """
    Every order mutation the kitchen screen can make, UI or voice.

    Network mutations follow one protocol: snapshot the order, apply the new
    state to the store, make exactly one bounded call to the order service,
    then either record history and broadcast, or put the snapshot back and
    report the failure once. Nothing here raises on network errors; callers
    get a MutationOutcome.
    """

    def __init__(
        self,
        store: OrderStore,
        history: ActionHistory,
        order_service: OrderServiceClient,
        feedback: FeedbackLog,
        bridge: Optional[NotificationBridge] = None,
        notifier: Optional[RoleNotifier] = None,
        state_machine: Optional[StatusStateMachine] = None,
        clock: Optional[Callable[[], datetime]] = None,
        undo_mode: str = UNDO_LOCAL,
    ):
        if undo_mode not in (UNDO_LOCAL, UNDO_COMPENSATING):
            raise ValueError(f"Unknown undo mode: {undo_mode}")
        self.store = store
        self.history = history
        self.order_service = order_service
        self.feedback = feedback
        self.bridge = bridge
        self.notifier = notifier
        self.machine = state_machine or StatusStateMachine()
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.undo_mode = undo_mode

    # Status transitions

    async def accept_order(self, order_id: str) -> MutationOutcome:
        """
        Move a pending order to preparing.

        Applied only once the order service answers: startedAt comes from the
        server, so there is no local value to show before that.
        """
        try:
            order = self.store.require(order_id)
            self.machine.check_accept(order)
        except (OrderNotFound, TransitionRejected) as e:
            return self._rejected(order_id, e.message)

        try:
            started_at = await self.order_service.accept_order(order_id)
        except OrderServiceTimeout:
            return self._failed(order_id, TIMED_OUT, MutationError.TIMEOUT)
        except OrderServiceError as e:
            logger.error("Failed to accept order", order_id=order_id, error=e.message)
            return self._failed(order_id, "Failed to accept order", MutationError.FAILURE)

        current = self.store.get(order_id)
        if current is None:
            # A refresh dropped the order while the call was in flight
            return self._rejected(order_id, f"Order {order_id} not found")
        accepted = (
            self.machine.accept(current, started_at)
            if current.status == OrderStatus.PENDING
            else current
        )
        self.store.put(accepted)
        self._record_status(order, accepted)
        logger.info("Order accepted", order_id=order_id, started_at=started_at.isoformat())
        self.feedback.success("Order accepted successfully")

        await self._broadcast(accepted, f"Order #{accepted.order_number} accepted in kitchen")
        if self.notifier is not None:
            self.notifier.order_accepted(accepted)
        return self._ok(accepted, "Order accepted successfully")

    async def mark_ready(self, order_id: str) -> MutationOutcome:
        return await self._change(order_id, OrderStatus.READY, self.machine.mark_ready)

    async def complete_order(self, order_id: str) -> MutationOutcome:
        """Complete a ready order, or a preparing one straight from its card"""
        return await self._change(
            order_id,
            OrderStatus.COMPLETED,
            lambda order: self.machine.complete(order, self.clock()),
        )

    async def change_status(self, order_id: str, status: OrderStatus) -> MutationOutcome:
        """Move an order to `status` through the one operation allowed to reach it"""
        try:
            order = self.store.require(order_id)
            transition = self.machine.target_transition(order, status)
        except (OrderNotFound, TransitionRejected) as e:
            return self._rejected(order_id, e.message)

        if transition == Transition.ACCEPT:
            return await self.accept_order(order_id)
        if transition == Transition.MARK_READY:
            return await self.mark_ready(order_id)
        return await self.complete_order(order_id)

    async def mark_ready_by_item(self, item_name: str) -> List[MutationOutcome]:
        """Mark ready every preparing order that contains `item_name`"""
        wanted = item_name.strip().lower()
        order_ids = [
            order.id
            for order in self.store
            if order.status == OrderStatus.PREPARING
            and any(item.name.strip().lower() == wanted for item in order.items)
        ]
        if not order_ids:
            self.feedback.info(f"No preparing orders found with {item_name}")
            return []

        outcomes = []
        for order_id in order_ids:
            outcomes.append(
                await self._change(order_id, OrderStatus.READY, self.machine.mark_ready, announce=False)
            )

        updated = sum(1 for outcome in outcomes if outcome.success)
        if updated == len(outcomes):
            self.feedback.success(f"Updated {updated} orders with {item_name} to ready")
        elif any(outcome.error == MutationError.TIMEOUT for outcome in outcomes):
            self.feedback.error(TIMED_OUT)
        else:
            self.feedback.error("Failed to update orders")
        logger.info("Bulk marked ready", item_name=item_name, matched=len(outcomes), updated=updated)
        return outcomes

    # Items

    async def set_item_status(self, order_id: str, item_index: int, status: ItemStatus) -> MutationOutcome:
        try:
            previous = self.store.require(order_id)
            updated = self.machine.set_item_status(previous, item_index, status)
        except (OrderNotFound, TransitionRejected) as e:
            return self._rejected(order_id, e.message)
        if updated is previous:
            return self._ok(previous, f"Item already {status.value}")

        self.store.put(updated)
        failure = await self._call(
            previous,
            self.order_service.patch_item_status(order_id, item_index, status),
            "Failed to update item status",
        )
        if failure is not None:
            return failure

        self.history.add(ActionHistoryItem(
            type=ActionType.ITEM_STATUS_CHANGE,
            order_id=order_id,
            previous_state=previous,
            new_state=updated,
            timestamp=self.clock(),
            item_index=item_index,
            previous_item_status=previous.items[item_index].status,
            new_item_status=status,
        ))
        message = f"Item marked as {status.value}"
        logger.info("Item status changed", order_id=order_id, item_index=item_index, status=status.value)
        self.feedback.success(message)
        await self._broadcast(updated, "Order item updated")
        return self._ok(updated, message)

    # Local tickets

    def add_order(self, order: Order) -> MutationOutcome:
        """Put a ticket on the screen; display-local"""
        if order.id in self.store:
            return self._rejected(order.id, f"Order {order.id} is already on the screen")
        self.store.put(order)
        self.history.add(ActionHistoryItem(
            type=ActionType.ORDER_ADD,
            order_id=order.id,
            new_state=order,
            timestamp=self.clock(),
        ))
        logger.info("Order added to screen", order_id=order.id)
        return self._ok(order, "Order added")

    def remove_order(self, order_id: str) -> MutationOutcome:
        """Take a ticket off the screen; display-local"""
        order = self.store.remove(order_id)
        if order is None:
            return self._rejected(order_id, f"Order {order_id} not found")
        self.history.add(ActionHistoryItem(
            type=ActionType.ORDER_DELETE,
            order_id=order_id,
            previous_state=order,
            timestamp=self.clock(),
        ))
        logger.info("Order removed from screen", order_id=order_id)
        return self._ok(order, "Order removed")

    async def refresh(self) -> bool:
        """Replace the store with the order service's current view"""
        try:
            orders = await self.order_service.fetch_active_orders()
        except OrderServiceTimeout:
            self.feedback.error(TIMED_OUT)
            return False
        except OrderServiceError as e:
            logger.error("Failed to fetch orders", error=e.message)
            self.feedback.error("Failed to fetch orders")
            return False
        self.store.replace_all(orders)
        return True

    # History

    def undo_local(self) -> MutationOutcome:
        action = self.history.peek_undo()
        if action is None:
            return self._rejected("", NOTHING_TO_UNDO)
        applied = apply_undo(self.store, action)
        self.history.move_back()
        return self._history_outcome(action, applied, "Action undone")

    def redo_local(self) -> MutationOutcome:
        action = self.history.peek_redo()
        if action is None:
            return self._rejected("", NOTHING_TO_REDO)
        applied = apply_redo(self.store, action)
        self.history.move_forward()
        return self._history_outcome(action, applied, "Action redone")

    async def undo_compensating(self) -> MutationOutcome:
        """Undo, first asking the order service to reverse the change"""
        action = self.history.peek_undo()
        if action is None:
            return self._rejected("", NOTHING_TO_UNDO)
        failure = await self._compensate(action, undo=True)
        if failure is not None:
            return failure
        return self.undo_local()

    async def redo_compensating(self) -> MutationOutcome:
        action = self.history.peek_redo()
        if action is None:
            return self._rejected("", NOTHING_TO_REDO)
        failure = await self._compensate(action, undo=False)
        if failure is not None:
            return failure
        return self.redo_local()

    async def undo(self) -> MutationOutcome:
        if self.undo_mode == UNDO_COMPENSATING:
            return await self.undo_compensating()
        return self.undo_local()

    async def redo(self) -> MutationOutcome:
        if self.undo_mode == UNDO_COMPENSATING:
            return await self.redo_compensating()
        return self.redo_local()

    def history_state(self) -> HistoryState:
        return HistoryState(
            entries=list(self.history.entries),
            current_index=self.history.current_index,
            can_undo=self.history.can_undo,
            can_redo=self.history.can_redo,
            undo_mode=self.undo_mode,
        )

    # Protocol

    async def _change(
        self,
        order_id: str,
        status: OrderStatus,
        transition: Callable[[Order], Order],
        announce: bool = True,
    ) -> MutationOutcome:
        try:
            previous = self.store.require(order_id)
            updated = transition(previous)
        except (OrderNotFound, TransitionRejected) as e:
            return self._rejected(order_id, e.message, announce)

        self.store.put(updated)
        failure = await self._call(
            previous,
            self.order_service.patch_order_status(order_id, status),
            "Failed to update order status",
            announce,
        )
        if failure is not None:
            return failure

        self._record_status(previous, updated)
        message = f"Order marked as {status.value}"
        logger.info("Order status changed", order_id=order_id, status=status.value)
        if announce:
            self.feedback.success(message)
        await self._broadcast(updated, f"Order #{updated.order_number} status updated")
        if self.notifier is not None:
            self.notifier.status_changed(updated, status)
        return self._ok(updated, message)

    async def _call(
        self,
        previous: Order,
        request: Awaitable[object],
        failure_message: str,
        announce: bool = True,
    ) -> Optional[MutationOutcome]:
        """Await the order service; on any failure put `previous` back"""
        revision = self.store.order_revision(previous.id)
        try:
            await request
        except OrderServiceTimeout:
            self._revert(previous, revision)
            return self._failed(previous.id, TIMED_OUT, MutationError.TIMEOUT, announce)
        except OrderServiceError as e:
            self._revert(previous, revision)
            logger.error(failure_message, order_id=previous.id, error=e.message, status_code=e.status_code)
            return self._failed(previous.id, failure_message, MutationError.FAILURE, announce)
        except asyncio.CancelledError:
            self._revert(previous, revision)
            raise
        return None

    def _revert(self, previous: Order, revision: Optional[int]) -> None:
        # Any write that landed meanwhile, a refresh included, is newer than both
        if self.store.order_revision(previous.id) == revision:
            self.store.put(previous)
            logger.info("Reverted optimistic update", order_id=previous.id, status=previous.status.value)

    async def _compensate(self, action: ActionHistoryItem, undo: bool) -> Optional[MutationOutcome]:
        if action.type == ActionType.STATUS_CHANGE:
            target = action.previous_state if undo else action.new_state
            if target is None:
                return None
            request = self.order_service.patch_order_status(action.order_id, target.status)
            failure_message = "Failed to update order status"
        elif action.type == ActionType.ITEM_STATUS_CHANGE:
            item_status = action.previous_item_status if undo else action.new_item_status
            if item_status is None or action.item_index is None:
                return None
            request = self.order_service.patch_item_status(action.order_id, action.item_index, item_status)
            failure_message = "Failed to update item status"
        else:
            # Screen-only tickets have no server counterpart
            return None

        try:
            await request
        except OrderServiceTimeout:
            return self._failed(action.order_id, TIMED_OUT, MutationError.TIMEOUT)
        except OrderServiceError as e:
            logger.error("Compensating update failed", order_id=action.order_id, error=e.message)
            return self._failed(action.order_id, failure_message, MutationError.FAILURE)
        return None

    def _record_status(self, previous: Order, updated: Order) -> None:
        self.history.add(ActionHistoryItem(
            type=ActionType.STATUS_CHANGE,
            order_id=updated.id,
            previous_state=previous,
            new_state=updated,
            timestamp=self.clock(),
        ))

    async def _broadcast(self, order: Order, message: str) -> None:
        if self.bridge is not None:
            await self.bridge.publish_order_update(message, [order.id])

    def _history_outcome(self, action: ActionHistoryItem, applied: bool, message: str) -> MutationOutcome:
        if not applied:
            return self._rejected(action.order_id, f"Order {action.order_id} is no longer on the screen")
        logger.info(message, order_id=action.order_id, action=action.type.value)
        self.feedback.info(message)
        return self._ok(self.store.get(action.order_id), message, action.order_id)

    def _ok(self, order: Optional[Order], message: str, order_id: Optional[str] = None) -> MutationOutcome:
        return MutationOutcome(
            success=True,
            order_id=order.id if order is not None else order_id or "",
            message=message,
            order=order,
        )

    def _rejected(self, order_id: str, message: str, announce: bool = True) -> MutationOutcome:
        logger.info("Mutation rejected", order_id=order_id, reason=message)
        if announce:
            self.feedback.info(message)
        return MutationOutcome(
            success=False,
            order_id=order_id,
            message=message,
            error=MutationError.REJECTED,
            order=self.store.get(order_id) if order_id else None,
        )

    def _failed(self, order_id: str, message: str, error: MutationError, announce: bool = True) -> MutationOutcome:
        if announce:
            self.feedback.error(message)
        return MutationOutcome(
            success=False,
            order_id=order_id,
            message=message,
            error=error,
            order=self.store.get(order_id),
        )
