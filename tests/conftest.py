"""Test configuration and fixtures"""

import asyncio
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from kitchen_display.config import Settings
from kitchen_display.errors import InterpretationError
from kitchen_display.kitchen.feedback import FeedbackLog
from kitchen_display.kitchen.history import ActionHistory
from kitchen_display.kitchen.mutations import KitchenController
from kitchen_display.kitchen.scheduler import Scheduler
from kitchen_display.kitchen.screen import KitchenScreen
from kitchen_display.kitchen.store import OrderStore
from kitchen_display.schemas.order import ItemStatus, Order, OrderItem, OrderStatus
from kitchen_display.schemas.voice import IntentRequest, VoiceCommand
from kitchen_display.services.realtime import NotificationBridge
from kitchen_display.services.role_notifications import RoleNotifier

NOW = datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc)
RESTAURANT_ID = "rest-1"


class Clock:
    """Settable clock"""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_order(
    order_id: str = "o1",
    status: OrderStatus = OrderStatus.PENDING,
    created_minutes_ago: float = 5,
    items: Optional[List[OrderItem]] = None,
    started_at: Optional[datetime] = None,
    completed_at: Optional[datetime] = None,
    order_number: Optional[str] = None,
) -> Order:
    created_at = NOW - timedelta(minutes=created_minutes_ago)
    if status == OrderStatus.PREPARING and started_at is None:
        started_at = created_at
    if status == OrderStatus.COMPLETED and completed_at is None:
        completed_at = NOW
    return Order(
        id=order_id,
        order_number=order_number or order_id.upper(),
        items=items if items is not None else [
            OrderItem(name="Pho", quantity=2, price=12.5, prep_time=6),
            OrderItem(name="Spring Rolls", quantity=1, price=6.0, prep_time=4),
        ],
        status=status,
        created_at=created_at,
        updated_at=created_at,
        estimated_ready_time=created_at + timedelta(minutes=20),
        started_at=started_at,
        completed_at=completed_at,
    )


class FakeOrderService:
    """In-memory stand-in for OrderServiceClient"""

    def __init__(self, orders=(), started_at: datetime = NOW):
        self.orders: List[Order] = list(orders)
        self.started_at = started_at
        self.calls: List[tuple] = []
        self.failures: Dict[str, Exception] = {}
        self.gate: Optional[asyncio.Event] = None

    def fail(self, method: str, error: Exception) -> None:
        self.failures[method] = error

    async def fetch_active_orders(self) -> List[Order]:
        await self._call("fetch_active_orders")
        return list(self.orders)

    async def accept_order(self, order_id: str) -> datetime:
        await self._call("accept_order", order_id)
        return self.started_at

    async def patch_order_status(self, order_id: str, status: OrderStatus):
        await self._call("patch_order_status", order_id, status)

    async def patch_item_status(self, order_id: str, item_index: int, status: ItemStatus):
        await self._call("patch_item_status", order_id, item_index, status)

    async def aclose(self) -> None:
        pass

    def calls_to(self, method: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == method]

    async def _call(self, method: str, *args: Any) -> None:
        self.calls.append((method,) + args)
        if self.gate is not None:
            await self.gate.wait()
        error = self.failures.get(method)
        if error is not None:
            raise error


class FakePubSub:
    def __init__(self, messages: List[Dict[str, Any]]):
        self.messages = messages
        self.subscribed: List[str] = []
        self.closed = False

    async def subscribe(self, channel: str) -> None:
        self.subscribed.append(channel)

    async def unsubscribe(self, channel: str) -> None:
        self.subscribed.remove(channel)

    async def aclose(self) -> None:
        self.closed = True

    async def listen(self):
        for message in self.messages:
            yield message
        # A live subscription blocks until cancelled
        await asyncio.Event().wait()


class FakeRedis:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.published: List[tuple] = []
        self.messages: List[Dict[str, Any]] = []
        self.pubsubs: List[FakePubSub] = []

    async def publish(self, channel: str, data: str) -> int:
        if self.fail:
            raise RedisConnectionError("Connection refused")
        self.published.append((channel, data))
        return 1

    def pubsub(self) -> FakePubSub:
        pubsub = FakePubSub(self.messages)
        self.pubsubs.append(pubsub)
        return pubsub

    async def aclose(self) -> None:
        pass


class FakeInterpreter:
    """Returns queued commands; raises InterpretationError when none are left"""

    def __init__(self, *commands: VoiceCommand):
        self.commands = list(commands)
        self.requests: List[IntentRequest] = []

    async def interpret(self, request: IntentRequest) -> VoiceCommand:
        self.requests.append(request)
        if not self.commands:
            raise InterpretationError("Failed to process command")
        return self.commands.pop(0)

    async def aclose(self) -> None:
        pass


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Yield to the loop until `predicate` holds"""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        restaurant_id=RESTAURANT_ID,
        wake_word="code work",
        command_timeout_seconds=1.0,
        voice_confidence_threshold=0.7,
        undo_mode="local",
    )


@pytest.fixture
def orders():
    return [
        make_order("o1", OrderStatus.PENDING, created_minutes_ago=3),
        make_order("o2", OrderStatus.PREPARING, created_minutes_ago=8),
        make_order("o3", OrderStatus.READY, created_minutes_ago=15),
    ]


@pytest.fixture
def store(orders):
    return OrderStore(orders)


@pytest.fixture
def order_service(orders):
    return FakeOrderService(orders)


@pytest.fixture
def feedback(clock):
    return FeedbackLog(clock=clock)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def bridge(fake_redis):
    return NotificationBridge(fake_redis, RESTAURANT_ID)


@pytest.fixture
def notifications():
    return []


@pytest.fixture
def notifier(notifications, scheduler):
    return RoleNotifier(
        RESTAURANT_ID,
        ["Restaurant", "Restaurant_manager"],
        enqueue=notifications.append,
        scheduler=scheduler,
    )


@pytest.fixture
def controller(store, order_service, feedback, bridge, notifier, clock):
    return KitchenController(
        store=store,
        history=ActionHistory(),
        order_service=order_service,
        feedback=feedback,
        bridge=bridge,
        notifier=notifier,
        clock=clock,
    )


@pytest.fixture
def scheduler():
    return Scheduler()


@pytest.fixture
async def screen(order_service, fake_redis, notifier, test_settings, clock):
    screen = KitchenScreen(
        order_service=order_service,
        interpreter=FakeInterpreter(),
        bridge=NotificationBridge(fake_redis, RESTAURANT_ID),
        notifier=notifier,
        settings=test_settings,
        clock=clock,
    )
    await screen.start()
    yield screen
    await screen.stop()


@pytest.fixture
async def client(screen):
    """Client against the API with the test screen installed"""
    from kitchen_display.main import app

    app.state.screen = screen
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.state.screen = None
