"""Tests for screen views"""

from datetime import date, timedelta, timezone

from kitchen_display.kitchen.views import filter_by_date, filter_by_status, group_items, recently_completed, status_counts
from kitchen_display.schemas.order import OrderItem, OrderStatus

from conftest import NOW, make_order


def test_group_items_sums_quantities():
    orders = [
        make_order("a", items=[OrderItem(name="Pho", quantity=2), OrderItem(name="Tea")]),
        make_order("b", OrderStatus.COMPLETED, items=[OrderItem(name="Pho", quantity=3)]),
    ]
    grouped = group_items(orders)
    assert [(item.name, item.count) for item in grouped] == [("Pho", 5), ("Tea", 1)]


def test_recently_completed_newest_first():
    orders = [
        make_order("old", OrderStatus.COMPLETED, created_minutes_ago=50),
        make_order("open", OrderStatus.READY, created_minutes_ago=1),
        make_order("new", OrderStatus.COMPLETED, created_minutes_ago=5),
    ]
    assert [order.id for order in recently_completed(orders)] == ["new", "old"]


def test_filter_by_date_and_status():
    yesterday = make_order("y", created_minutes_ago=24 * 60)
    today = make_order("t", OrderStatus.READY)

    assert filter_by_date([yesterday, today], NOW.date()) == [today]
    assert filter_by_date([yesterday, today], (NOW - timedelta(days=1)).date()) == [yesterday]
    assert filter_by_status([yesterday, today], OrderStatus.READY) == [today]
    assert filter_by_status([yesterday, today], None) == [yesterday, today]


def test_filter_by_date_in_restaurant_timezone():
    # 02:00 UTC on the 14th is still the evening of the 13th in UTC-5
    late = make_order("late", created_minutes_ago=10 * 60)
    eastern = timezone(timedelta(hours=-5))

    assert filter_by_date([late], date(2026, 3, 14)) == [late]
    assert filter_by_date([late], date(2026, 3, 13), eastern) == [late]
    assert filter_by_date([late], date(2026, 3, 14), eastern) == []


def test_status_counts():
    counts = status_counts([make_order("a"), make_order("b"), make_order("c", OrderStatus.READY)])
    assert counts[OrderStatus.PENDING] == 2
    assert counts[OrderStatus.READY] == 1
    assert counts[OrderStatus.COMPLETED] == 0
