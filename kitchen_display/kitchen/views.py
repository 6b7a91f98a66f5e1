"""Screen views derived from the order store"""

from datetime import date, timezone, tzinfo
from typing import Dict, Iterable, List, Optional

from kitchen_display.schemas.kitchen import GroupedItem
from kitchen_display.schemas.order import Order, OrderStatus


def filter_by_date(orders: Iterable[Order], day: date, tz: tzinfo = timezone.utc) -> List[Order]:
    """Orders created on `day` as the calendar reads in `tz`"""
    return [order for order in orders if order.created_at.astimezone(tz).date() == day]


def filter_by_status(orders: Iterable[Order], status: Optional[OrderStatus]) -> List[Order]:
    if status is None:
        return list(orders)
    return [order for order in orders if order.status == status]


def group_items(orders: Iterable[Order]) -> List[GroupedItem]:
    """All-day view: total quantity per item name, first-seen order"""
    counts: Dict[str, int] = {}
    for order in orders:
        for item in order.items:
            counts[item.name] = counts.get(item.name, 0) + item.quantity
    return [GroupedItem(name=name, count=count) for name, count in counts.items()]


def recently_completed(orders: Iterable[Order]) -> List[Order]:
    """Completed orders, newest first"""
    completed = [order for order in orders if order.status == OrderStatus.COMPLETED]
    return sorted(completed, key=lambda order: order.created_at, reverse=True)


def status_counts(orders: Iterable[Order]) -> Dict[OrderStatus, int]:
    counts = {status: 0 for status in OrderStatus}
    for order in orders:
        counts[order.status] += 1
    return counts
