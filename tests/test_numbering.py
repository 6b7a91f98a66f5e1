"""Tests for spoken order numbers"""

import random

from kitchen_display.kitchen.numbering import OrderNumberMap, compute_order_numbers
from kitchen_display.schemas.order import OrderStatus

from conftest import make_order


def test_preparing_then_pending_then_ready_oldest_first():
    orders = [
        make_order("ready-old", OrderStatus.READY, created_minutes_ago=40),
        make_order("pending-new", OrderStatus.PENDING, created_minutes_ago=1),
        make_order("prep-new", OrderStatus.PREPARING, created_minutes_ago=5),
        make_order("pending-old", OrderStatus.PENDING, created_minutes_ago=9),
        make_order("prep-old", OrderStatus.PREPARING, created_minutes_ago=20),
        make_order("done", OrderStatus.COMPLETED, created_minutes_ago=60),
    ]

    assert compute_order_numbers(orders) == {
        "prep-old": 1,
        "prep-new": 2,
        "pending-old": 3,
        "pending-new": 4,
        "ready-old": 5,
    }


def test_numbering_is_deterministic():
    orders = [
        make_order(f"o{i}", status, created_minutes_ago=minutes)
        for i, (status, minutes) in enumerate([
            (OrderStatus.PENDING, 3),
            (OrderStatus.PENDING, 3),
            (OrderStatus.PREPARING, 7),
            (OrderStatus.READY, 2),
            (OrderStatus.PREPARING, 7),
        ])
    ]
    expected = compute_order_numbers(orders)

    shuffled = list(orders)
    for seed in range(5):
        random.Random(seed).shuffle(shuffled)
        assert compute_order_numbers(shuffled) == expected


def test_number_map_lookups():
    numbers = OrderNumberMap.from_orders([
        make_order("a", OrderStatus.PENDING),
        make_order("b", OrderStatus.PREPARING),
    ])

    assert numbers.number_for("b") == 1
    assert numbers.order_id_for(2) == "a"
    assert numbers.order_id_for(3) is None
    assert numbers.as_dict() == {"b": 1, "a": 2}
    assert numbers == OrderNumberMap({"a": 2, "b": 1})
