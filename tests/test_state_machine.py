"""Tests for order and item transitions"""

from datetime import timedelta

import pytest

from kitchen_display.errors import TransitionRejected
from kitchen_display.kitchen.state_machine import (
    ITEMS_LOCKED,
    NO_REGRESSION,
    PREPARING_ONLY_READY,
    STAGE_LOCKED,
    StatusStateMachine,
    Transition,
)
from kitchen_display.schemas.order import ItemStatus, OrderStatus

from conftest import NOW, make_order

machine = StatusStateMachine()


def test_accept_sets_server_started_at():
    order = make_order("o1", OrderStatus.PENDING)
    started = NOW + timedelta(seconds=3)

    accepted = machine.accept(order, started)

    assert accepted.status == OrderStatus.PREPARING
    assert accepted.started_at == started


def test_accept_keeps_existing_started_at():
    earlier = NOW - timedelta(minutes=30)
    order = make_order("o1", OrderStatus.PENDING, started_at=earlier)
    assert machine.accept(order, NOW).started_at == earlier


@pytest.mark.parametrize("status", [OrderStatus.PREPARING, OrderStatus.READY, OrderStatus.COMPLETED])
def test_accept_only_from_pending(status):
    with pytest.raises(TransitionRejected):
        machine.accept(make_order("o1", status), NOW)


@pytest.mark.parametrize("status", [OrderStatus.PENDING, OrderStatus.READY, OrderStatus.COMPLETED])
def test_mark_ready_only_from_preparing(status):
    with pytest.raises(TransitionRejected) as exc:
        machine.mark_ready(make_order("o1", status))
    assert exc.value.message == STAGE_LOCKED


@pytest.mark.parametrize("status", [OrderStatus.PREPARING, OrderStatus.READY])
def test_complete_sets_completed_at(status):
    completed = machine.complete(make_order("o1", status), NOW)
    assert completed.status == OrderStatus.COMPLETED
    assert completed.completed_at == NOW


def test_complete_rejected_from_pending():
    with pytest.raises(TransitionRejected):
        machine.complete(make_order("o1", OrderStatus.PENDING), NOW)


@pytest.mark.parametrize("status", [OrderStatus.PENDING, OrderStatus.READY, OrderStatus.COMPLETED])
def test_items_locked_outside_preparing(status):
    with pytest.raises(TransitionRejected) as exc:
        machine.set_item_status(make_order("o1", status), 0, ItemStatus.FULFILLED)
    assert exc.value.message == ITEMS_LOCKED


def test_item_index_out_of_range():
    with pytest.raises(TransitionRejected):
        machine.set_item_status(make_order("o1", OrderStatus.PREPARING), 5, ItemStatus.FULFILLED)


def test_item_status_same_value_is_noop():
    order = make_order("o1", OrderStatus.PREPARING)
    assert machine.set_item_status(order, 0, ItemStatus.PENDING) is order


@pytest.mark.parametrize(
    "current,target,expected",
    [
        (OrderStatus.PENDING, OrderStatus.PREPARING, Transition.ACCEPT),
        (OrderStatus.PREPARING, OrderStatus.READY, Transition.MARK_READY),
        (OrderStatus.READY, OrderStatus.COMPLETED, Transition.COMPLETE),
    ],
)
def test_target_transition(current, target, expected):
    assert machine.target_transition(make_order("o1", current), target) == expected


@pytest.mark.parametrize(
    "current,target,message",
    [
        (OrderStatus.COMPLETED, OrderStatus.READY, STAGE_LOCKED),
        (OrderStatus.READY, OrderStatus.PENDING, NO_REGRESSION),
        (OrderStatus.PREPARING, OrderStatus.COMPLETED, PREPARING_ONLY_READY),
        (OrderStatus.PENDING, OrderStatus.READY, STAGE_LOCKED),
        (OrderStatus.PENDING, OrderStatus.COMPLETED, STAGE_LOCKED),
        (OrderStatus.READY, OrderStatus.PREPARING, STAGE_LOCKED),
    ],
)
def test_target_transition_rejected(current, target, message):
    with pytest.raises(TransitionRejected) as exc:
        machine.target_transition(make_order("o1", current), target)
    assert exc.value.message == message
