"""Undo/redo action history"""

from typing import List, Optional, Tuple

import structlog

from kitchen_display.kitchen.store import OrderStore
from kitchen_display.schemas.history import ActionHistoryItem, ActionType

logger = structlog.get_logger()


class ActionHistory:
    """
    Append-only log of applied mutations with a cursor.

    The cursor points at the entry the next undo reverses (-1 when there is
    nothing to undo). Adding an entry while the cursor is behind the tail drops
    every entry after the cursor first.
    """

    def __init__(self):
        self._entries: List[ActionHistoryItem] = []
        self.current_index = -1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> Tuple[ActionHistoryItem, ...]:
        return tuple(self._entries)

    @property
    def can_undo(self) -> bool:
        return self.current_index >= 0

    @property
    def can_redo(self) -> bool:
        return self.current_index < len(self._entries) - 1

    def add(self, action: ActionHistoryItem) -> None:
        if self.can_redo:
            dropped = len(self._entries) - self.current_index - 1
            del self._entries[self.current_index + 1:]
            logger.debug("Dropped redo entries", count=dropped)
        self._entries.append(action)
        self.current_index = len(self._entries) - 1

    def peek_undo(self) -> Optional[ActionHistoryItem]:
        return self._entries[self.current_index] if self.can_undo else None

    def peek_redo(self) -> Optional[ActionHistoryItem]:
        return self._entries[self.current_index + 1] if self.can_redo else None

    def move_back(self) -> None:
        if self.can_undo:
            self.current_index -= 1

    def move_forward(self) -> None:
        if self.can_redo:
            self.current_index += 1

    def clear(self) -> None:
        self._entries.clear()
        self.current_index = -1


def apply_undo(store: OrderStore, action: ActionHistoryItem) -> bool:
    """
    Restore the store to the state before `action`.

    Returns False when the order is no longer on the screen. A restored
    snapshot keeps the current startedAt: once an order has been started the
    timestamp is never cleared.
    """
    if action.type == ActionType.STATUS_CHANGE:
        current = store.get(action.order_id)
        if current is None or action.previous_state is None:
            return False
        restored = action.previous_state
        if current.started_at is not None and restored.started_at is None:
            restored = restored.model_copy(update={"started_at": current.started_at})
        store.put(restored)
        return True

    if action.type == ActionType.ITEM_STATUS_CHANGE:
        return _set_item(store, action, action.previous_item_status)

    if action.type == ActionType.ORDER_ADD:
        return store.remove(action.order_id) is not None

    if action.type == ActionType.ORDER_DELETE:
        if action.previous_state is None:
            return False
        store.put(action.previous_state)
        return True

    return False


def apply_redo(store: OrderStore, action: ActionHistoryItem) -> bool:
    """Re-apply `action` to the store; returns False when it no longer applies"""
    if action.type == ActionType.STATUS_CHANGE:
        if action.order_id not in store or action.new_state is None:
            return False
        store.put(action.new_state)
        return True

    if action.type == ActionType.ITEM_STATUS_CHANGE:
        return _set_item(store, action, action.new_item_status)

    if action.type == ActionType.ORDER_ADD:
        if action.new_state is None:
            return False
        store.put(action.new_state)
        return True

    if action.type == ActionType.ORDER_DELETE:
        return store.remove(action.order_id) is not None

    return False


def _set_item(store: OrderStore, action: ActionHistoryItem, status) -> bool:
    order = store.get(action.order_id)
    if order is None or status is None or action.item_index is None:
        return False
    if action.item_index >= len(order.items):
        return False
    store.put(order.with_item_status(action.item_index, status))
    return True
