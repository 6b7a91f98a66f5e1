"""Real-time notification bridge over Redis pub/sub"""

import json
from datetime import datetime, timezone
from typing import Awaitable, Callable, Iterable, Optional, Union

import redis.asyncio as redis
import structlog
from pydantic import ValidationError

from kitchen_display.kitchen.scheduler import Scheduler, TimerHandle
from kitchen_display.schemas.events import ADMIN_NOTIFICATION, COOK_ORDER_UPDATE, KitchenEvent

logger = structlog.get_logger()

AdminHandler = Callable[[KitchenEvent], Union[None, Awaitable[None]]]


class NotificationBridge:
    """
    Restaurant-scoped channel shared by every kitchen terminal.

    Outbound: a `cookOrderUpdate` after each confirmed mutation. Inbound:
    `adminNotification` events for this restaurant are handed to
    `on_admin_notification`, which refetches the whole store. Events for
    other restaurants, and our own outbound events, are ignored.
    """

    def __init__(
        self,
        client: "redis.Redis",
        restaurant_id: str,
        prefix: str = "kitchen",
        on_admin_notification: Optional[AdminHandler] = None,
    ):
        self.client = client
        self.restaurant_id = restaurant_id
        self.prefix = prefix
        self.on_admin_notification = on_admin_notification
        self._handle: Optional[TimerHandle] = None

    @classmethod
    def from_url(cls, url: str, restaurant_id: str, prefix: str = "kitchen", **kwargs) -> "NotificationBridge":
        return cls(redis.from_url(url), restaurant_id, prefix, **kwargs)

    @property
    def channel(self) -> str:
        return f"{self.prefix}:restaurant:{self.restaurant_id}"

    @property
    def listening(self) -> bool:
        return self._handle is not None and not self._handle.done

    async def publish_order_update(self, message: str, order_ids: Iterable[str] = ()) -> bool:
        """Broadcast a cookOrderUpdate; returns False when Redis is unavailable"""
        event = KitchenEvent(
            event=COOK_ORDER_UPDATE,
            restaurant_id=self.restaurant_id,
            message=message,
            order_ids=list(order_ids),
            timestamp=datetime.now(timezone.utc),
        )
        try:
            await self.client.publish(self.channel, event.model_dump_json(by_alias=True))
        except redis.RedisError as e:
            # Other terminals catch up on their next refresh
            logger.warning("Failed to publish kitchen update", channel=self.channel, error=str(e))
            return False
        logger.debug("Published kitchen update", channel=self.channel, order_ids=event.order_ids)
        return True

    async def handle_message(self, raw: Union[str, bytes]) -> Optional[KitchenEvent]:
        """Dispatch one raw channel message; returns the event when it was acted on"""
        try:
            event = KitchenEvent.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.warning("Ignoring malformed kitchen event", channel=self.channel, error=str(e))
            return None

        if event.restaurant_id != self.restaurant_id:
            return None
        if event.event != ADMIN_NOTIFICATION:
            return None

        logger.info("Admin notification received", restaurant_id=self.restaurant_id, message=event.message)
        if self.on_admin_notification is not None:
            result = self.on_admin_notification(event)
            if result is not None:
                await result
        return event

    async def listen(self) -> None:
        """Consume the channel until cancelled"""
        pubsub = self.client.pubsub()
        await pubsub.subscribe(self.channel)
        logger.info("Subscribed to kitchen channel", channel=self.channel)
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                await self.handle_message(message["data"])
        finally:
            await pubsub.unsubscribe(self.channel)
            await pubsub.aclose()
            logger.info("Unsubscribed from kitchen channel", channel=self.channel)

    def start(self, scheduler: Scheduler) -> None:
        if self.listening:
            return
        self._handle = scheduler.spawn(self._listen_forever(), name="realtime-listener")

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    async def aclose(self) -> None:
        self.stop()
        await self.client.aclose()

    async def _listen_forever(self) -> None:
        try:
            await self.listen()
        except redis.RedisError as e:
            logger.error("Kitchen channel listener stopped", channel=self.channel, error=str(e))
