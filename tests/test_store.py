"""Tests for the order store"""

import pytest

from kitchen_display.errors import OrderNotFound
from kitchen_display.kitchen.store import OrderStore
from kitchen_display.schemas.order import OrderStatus

from conftest import make_order


def test_put_keeps_position_and_stamps_revision(store):
    o2 = store.get("o2")
    store.put(o2.model_copy(update={"status": OrderStatus.READY}))

    assert [order.id for order in store] == ["o1", "o2", "o3"]
    assert store.revision == 1
    assert store.order_revision("o2") == 1
    assert store.order_revision("o1") == 0


def test_require_unknown_order(store):
    with pytest.raises(OrderNotFound) as exc:
        store.require("missing")
    assert exc.value.message == "Order missing not found"


def test_listeners_notified_until_unsubscribed(store):
    calls = []
    unsubscribe = store.subscribe(lambda: calls.append(store.revision))

    store.remove("o1")
    unsubscribe()
    store.put(make_order("o9"))

    assert calls == [1]


def test_listener_sees_new_stamp(store):
    seen = []
    store.subscribe(lambda: seen.append(store.order_revision("o2")))

    store.put(store.get("o2"))

    assert seen == [store.revision]


def test_remove_missing_does_not_notify(store):
    calls = []
    store.subscribe(lambda: calls.append(1))
    assert store.remove("missing") is None
    assert calls == []
    assert store.revision == 0


def test_removed_orders_lose_their_stamp(store):
    store.remove("o1")
    assert store.order_revision("o1") is None


def test_replace_all_restamps_and_prunes():
    store = OrderStore([make_order("a"), make_order("b")])
    store.replace_all([make_order("b"), make_order("c")])

    assert [order.id for order in store] == ["b", "c"]
    assert "a" not in store
    assert store.order_revision("a") is None
    assert store.order_revision("b") == store.order_revision("c") == 1


def test_stamps_only_cover_orders_on_screen():
    store = OrderStore()
    for index in range(50):
        store.replace_all([make_order(f"batch-{index}")])

    assert store.revision == 50
    assert store._revisions == {"batch-49": 50}
