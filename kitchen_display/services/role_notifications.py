"""Role notification side channel"""

import asyncio
from typing import Any, Callable, Dict, List, Optional

import structlog

from kitchen_display.kitchen.scheduler import Scheduler, TimerHandle
from kitchen_display.schemas.events import RoleNotification
from kitchen_display.schemas.order import Order, OrderStatus

logger = structlog.get_logger()

Enqueue = Callable[[Dict[str, Any]], None]


def _enqueue_celery(payload: Dict[str, Any]) -> None:
    from kitchen_display.jobs.tasks import deliver_role_notification

    deliver_role_notification.apply_async(args=[payload], retry=False)


class RoleNotifier:
    """
    Tells front-of-house and management roles about kitchen progress.

    Delivery is a Celery task. Enqueueing talks to the broker, so it runs on a
    worker thread as a scheduler task; the kitchen never waits on it and a
    failure to enqueue is only logged.
    """

    def __init__(
        self,
        restaurant_id: str,
        roles: List[str],
        enqueue: Optional[Enqueue] = None,
        scheduler: Optional[Scheduler] = None,
    ):
        self.restaurant_id = restaurant_id
        self.roles = list(roles)
        self.scheduler = scheduler or Scheduler()
        self._enqueue = enqueue or _enqueue_celery

    def order_accepted(self, order: Order) -> TimerHandle:
        return self.notify(
            title="Order accepted",
            message="Order accepted in kitchen",
            order=order,
            status=OrderStatus.PREPARING,
        )

    def status_changed(self, order: Order, status: OrderStatus) -> TimerHandle:
        return self.notify(
            title="Order status updated!",
            message="Order status has been changed",
            order=order,
            status=status,
        )

    def notify(self, title: str, message: str, order: Order, status: OrderStatus) -> TimerHandle:
        notification = RoleNotification(
            title=title,
            message=message,
            data={
                "type": "order",
                "data": {
                    "orderId": order.id,
                    "orderNumber": order.order_number,
                    "status": status.value,
                },
            },
            role_filter=self.roles,
            restaurant_id=self.restaurant_id,
        )
        payload = notification.model_dump(mode="json", by_alias=True)
        return self.scheduler.spawn(self._deliver(payload, order.id, title), name="role-notification")

    async def _deliver(self, payload: Dict[str, Any], order_id: str, title: str) -> None:
        try:
            await asyncio.to_thread(self._enqueue, payload)
        except Exception as e:
            logger.warning("Failed to enqueue role notification", order_id=order_id, title=title, error=str(e))
            return
        logger.debug("Role notification enqueued", order_id=order_id, title=title)
