"""Tests for voice command dispatch"""

import pytest

from kitchen_display.kitchen.numbering import OrderNumberMap
from kitchen_display.kitchen.state_machine import STAGE_LOCKED
from kitchen_display.schemas.kitchen import ViewMode
from kitchen_display.schemas.order import OrderStatus
from kitchen_display.schemas.voice import VoiceCommand
from kitchen_display.voice.dispatcher import (
    CAPABILITIES,
    NEEDS_ORDER_AND_STATUS,
    NOT_SURE,
    CommandDispatcher,
    summarize_orders,
)


@pytest.fixture
def views():
    return []


@pytest.fixture
def dispatcher(controller, store, views):
    return CommandDispatcher(controller, orders=lambda: list(store), set_view=views.append)


@pytest.fixture
def numbers(store):
    # o2 preparing -> 1, o1 pending -> 2, o3 ready -> 3
    return OrderNumberMap.from_orders(store)


def command(action, confidence=0.9, **kwargs):
    return VoiceCommand(action=action, confidence=confidence, **kwargs)


@pytest.mark.asyncio
async def test_low_confidence_does_nothing(dispatcher, numbers, order_service, views):
    reply = await dispatcher.dispatch(
        command("change_status", confidence=0.5, order_number=1, status=OrderStatus.READY),
        numbers,
    )

    assert reply == NOT_SURE
    assert order_service.calls == []
    assert views == []


@pytest.mark.asyncio
async def test_action_outside_allow_list(dispatcher, numbers, order_service):
    reply = await dispatcher.dispatch(command("delete_order", order_number=1), numbers)

    assert reply == CAPABILITIES
    assert order_service.calls == []


@pytest.mark.asyncio
async def test_change_status_by_spoken_number(dispatcher, numbers, store):
    reply = await dispatcher.dispatch(command("change_status", order_number=1, status=OrderStatus.READY), numbers)

    assert reply == "Order 1 marked as ready"
    assert store.get("o2").status == OrderStatus.READY


@pytest.mark.asyncio
async def test_change_status_accepts_pending_order(dispatcher, numbers, store, order_service):
    reply = await dispatcher.dispatch(
        command("change_status", order_number=2, status=OrderStatus.PREPARING),
        numbers,
    )

    assert reply == "Order 2 marked as preparing"
    assert order_service.calls_to("accept_order") == [("accept_order", "o1")]
    assert store.get("o1").status == OrderStatus.PREPARING


@pytest.mark.asyncio
async def test_change_status_unknown_number(dispatcher, numbers):
    reply = await dispatcher.dispatch(command("change_status", order_number=9, status=OrderStatus.READY), numbers)
    assert reply == "Order 9 not found"


@pytest.mark.asyncio
async def test_change_status_needs_number_and_status(dispatcher, numbers):
    reply = await dispatcher.dispatch(command("change_status", status=OrderStatus.READY), numbers)
    assert reply == NEEDS_ORDER_AND_STATUS


@pytest.mark.asyncio
async def test_change_status_rejected_transition(dispatcher, numbers, store):
    reply = await dispatcher.dispatch(
        command("change_status", order_number=3, status=OrderStatus.PREPARING),
        numbers,
    )

    assert reply == f"Could not update order 3. {STAGE_LOCKED}"
    assert store.get("o3").status == OrderStatus.READY


@pytest.mark.asyncio
async def test_view_commands(dispatcher, numbers, views):
    assert await dispatcher.dispatch(command("show_all_day"), numbers) == "Showing all day view with item totals"
    assert await dispatcher.dispatch(command("show_recently_completed"), numbers) == "Showing recently completed orders"
    assert views == [ViewMode.ALL_DAY, ViewMode.RECENTLY_COMPLETED]


@pytest.mark.asyncio
async def test_list_orders(dispatcher, numbers):
    reply = await dispatcher.dispatch(command("list_orders"), numbers)

    assert reply == (
        "You have 1 preparing orders, 1 pending orders, and 1 ready orders. "
        "Preparing orders are: 1."
    )


def test_summary_without_preparing_orders():
    assert summarize_orders([], OrderNumberMap()) == (
        "You have 0 preparing orders, 0 pending orders, and 0 ready orders."
    )
