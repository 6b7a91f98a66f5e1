"""Tests for the undo/redo action history"""

from datetime import timedelta

import pytest

from kitchen_display.kitchen.history import ActionHistory, apply_redo, apply_undo
from kitchen_display.kitchen.store import OrderStore
from kitchen_display.schemas.history import ActionHistoryItem, ActionType
from kitchen_display.schemas.order import ItemStatus, OrderStatus

from conftest import NOW, make_order


def status_entry(previous, new):
    return ActionHistoryItem(
        type=ActionType.STATUS_CHANGE,
        order_id=previous.id,
        previous_state=previous,
        new_state=new,
        timestamp=NOW,
    )


def test_add_moves_cursor_to_tail():
    history = ActionHistory()
    assert not history.can_undo
    assert history.current_index == -1

    order = make_order("o1", OrderStatus.PREPARING)
    history.add(status_entry(order, order))
    history.add(status_entry(order, order))

    assert history.current_index == 1
    assert history.can_undo
    assert not history.can_redo


def test_add_after_undo_truncates_redo_tail():
    history = ActionHistory()
    order = make_order("o1", OrderStatus.PREPARING)
    first, second, third = (status_entry(order, order) for _ in range(3))
    history.add(first)
    history.add(second)
    history.move_back()

    history.add(third)

    assert history.entries == (first, third)
    assert not history.can_redo


def test_move_is_noop_at_the_ends():
    history = ActionHistory()
    history.move_back()
    history.move_forward()
    assert history.current_index == -1
    assert history.peek_undo() is None
    assert history.peek_redo() is None


def test_status_change_round_trip():
    pending = make_order("o1", OrderStatus.PENDING)
    preparing = pending.model_copy(update={"status": OrderStatus.PREPARING, "started_at": NOW})
    store = OrderStore([preparing])
    entry = status_entry(pending, preparing)

    assert apply_undo(store, entry)
    assert store.get("o1").status == OrderStatus.PENDING

    assert apply_redo(store, entry)
    assert store.get("o1") == preparing


def test_undo_never_clears_started_at():
    pending = make_order("o1", OrderStatus.PENDING)
    started = NOW - timedelta(minutes=2)
    preparing = pending.model_copy(update={"status": OrderStatus.PREPARING, "started_at": started})
    store = OrderStore([preparing])

    apply_undo(store, status_entry(pending, preparing))

    restored = store.get("o1")
    assert restored.status == OrderStatus.PENDING
    assert restored.started_at == started


def test_item_status_round_trip():
    order = make_order("o1", OrderStatus.PREPARING)
    fulfilled = order.with_item_status(1, ItemStatus.FULFILLED)
    store = OrderStore([fulfilled])
    entry = ActionHistoryItem(
        type=ActionType.ITEM_STATUS_CHANGE,
        order_id="o1",
        previous_state=order,
        new_state=fulfilled,
        timestamp=NOW,
        item_index=1,
        previous_item_status=ItemStatus.PENDING,
        new_item_status=ItemStatus.FULFILLED,
    )

    assert apply_undo(store, entry)
    assert store.get("o1").items[1].status == ItemStatus.PENDING

    assert apply_redo(store, entry)
    assert store.get("o1").items[1].status == ItemStatus.FULFILLED


def test_order_add_round_trip():
    order = make_order("o1")
    store = OrderStore([order])
    entry = ActionHistoryItem(type=ActionType.ORDER_ADD, order_id="o1", new_state=order, timestamp=NOW)

    assert apply_undo(store, entry)
    assert "o1" not in store

    assert apply_redo(store, entry)
    assert store.get("o1") == order


def test_order_delete_round_trip():
    order = make_order("o1")
    store = OrderStore()
    entry = ActionHistoryItem(type=ActionType.ORDER_DELETE, order_id="o1", previous_state=order, timestamp=NOW)

    assert apply_undo(store, entry)
    assert store.get("o1") == order

    assert apply_redo(store, entry)
    assert "o1" not in store


@pytest.mark.parametrize("apply", [apply_undo, apply_redo])
def test_missing_order_is_not_applied(apply):
    order = make_order("o1", OrderStatus.PREPARING)
    assert not apply(OrderStore(), status_entry(order, order))
