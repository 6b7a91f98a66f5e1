"""Remaining prep time per order"""

from datetime import datetime
from typing import Callable, Dict, Iterable, Optional

from kitchen_display.kitchen.scheduler import Scheduler, TimerHandle
from kitchen_display.kitchen.store import OrderStore
from kitchen_display.schemas.kitchen import Readiness
from kitchen_display.schemas.order import Order, OrderItem

URGENT_MINUTES = 10
WARNING_MINUTES = 20
TICK_SECONDS = 1.0

BAND_URGENT = "urgent"
BAND_WARNING = "warning"
BAND_NORMAL = "normal"


def prep_minutes(items: Iterable[OrderItem]) -> float:
    """Longest single line: per-unit prep time times quantity"""
    return max(((item.prep_time or 0) * item.quantity for item in items), default=0)


def remaining_minutes(order: Order, now: datetime) -> float:
    """Signed minutes left; negative once the order is overdue"""
    if order.started_at is not None:
        elapsed = (now - order.started_at).total_seconds() / 60
        return prep_minutes(order.items) - elapsed
    return (order.estimated_ready_time - now).total_seconds() / 60


def format_remaining(minutes: float) -> str:
    """Render minutes as m:ss"""
    total_seconds = int(round(max(minutes, 0) * 60))
    mins, secs = divmod(total_seconds, 60)
    return f"{mins}:{secs:02d}"


def compute_readiness(order: Order, now: datetime) -> Readiness:
    remaining = remaining_minutes(order, now)
    minutes = max(0.0, remaining)
    if minutes <= URGENT_MINUTES:
        band = BAND_URGENT
    elif minutes <= WARNING_MINUTES:
        band = BAND_WARNING
    else:
        band = BAND_NORMAL
    return Readiness(
        minutes=minutes,
        is_urgent=remaining <= URGENT_MINUTES,
        band=band,
        display=format_remaining(minutes),
    )


class ReadinessTicker:
    """
    Recomputes every order's readiness once per tick and hands the result to
    `on_tick`. Display only: it never writes to the store.
    """

    def __init__(
        self,
        store: OrderStore,
        scheduler: Scheduler,
        clock: Callable[[], datetime],
        on_tick: Callable[[Dict[str, Readiness]], None],
        interval: float = TICK_SECONDS,
    ):
        self.store = store
        self.scheduler = scheduler
        self.clock = clock
        self.on_tick = on_tick
        self.interval = interval
        self.latest: Dict[str, Readiness] = {}
        self._handle: Optional[TimerHandle] = None

    @property
    def running(self) -> bool:
        return self._handle is not None and not self._handle.done

    def start(self) -> None:
        if self.running:
            return
        self._handle = self.scheduler.call_every(
            self.interval, self.tick, name="readiness-tick", run_immediately=True
        )

    def stop(self) -> None:
        self.scheduler.cancel(self._handle)
        self._handle = None

    def tick(self) -> Dict[str, Readiness]:
        now = self.clock()
        self.latest = {order.id: compute_readiness(order, now) for order in self.store}
        self.on_tick(self.latest)
        return self.latest
