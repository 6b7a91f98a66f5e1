"""Kitchen screen: one restaurant's display and everything it owns"""

from datetime import date, datetime, timezone
from typing import Callable, Dict, List, Optional, Set

import structlog

from kitchen_display.config import Settings, settings as default_settings
from kitchen_display.kitchen.feedback import FeedbackLog
from kitchen_display.kitchen.history import ActionHistory
from kitchen_display.kitchen.mutations import KitchenController
from kitchen_display.kitchen.readiness import ReadinessTicker, compute_readiness
from kitchen_display.kitchen.scheduler import Scheduler
from kitchen_display.kitchen.store import OrderStore
from kitchen_display.kitchen.views import filter_by_date, filter_by_status, group_items, recently_completed
from kitchen_display.schemas.events import KitchenEvent
from kitchen_display.schemas.kitchen import GroupedItem, OrderView, Readiness, ScreenState, ViewMode
from kitchen_display.schemas.order import Order, OrderStatus
from kitchen_display.services.order_service import OrderServiceClient
from kitchen_display.services.realtime import NotificationBridge
from kitchen_display.services.role_notifications import RoleNotifier
from kitchen_display.voice.dispatcher import CommandDispatcher
from kitchen_display.voice.engines import QueueRecognizer, QueueSynthesizer, SpeechRecognizer, SpeechSynthesizer
from kitchen_display.voice.interpreter import HttpIntentInterpreter, IntentInterpreter, LLMIntentInterpreter
from kitchen_display.voice.pipeline import VoicePipeline

logger = structlog.get_logger()


class KitchenScreen:
    """
    Wires the store, history, controller, timers and voice pipeline for one
    restaurant, and holds the display's view settings.
    """

    def __init__(
        self,
        order_service: OrderServiceClient,
        interpreter: IntentInterpreter,
        bridge: Optional[NotificationBridge] = None,
        notifier: Optional[RoleNotifier] = None,
        recognizer: Optional[SpeechRecognizer] = None,
        synthesizer: Optional[SpeechSynthesizer] = None,
        settings: Settings = default_settings,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.order_service = order_service
        self.interpreter = interpreter
        self.bridge = bridge

        self.store = OrderStore()
        self.history = ActionHistory()
        self.feedback = FeedbackLog(clock=self.clock)
        self.scheduler = Scheduler()
        if notifier is not None:
            notifier.scheduler = self.scheduler
        self.controller = KitchenController(
            store=self.store,
            history=self.history,
            order_service=order_service,
            feedback=self.feedback,
            bridge=bridge,
            notifier=notifier,
            clock=self.clock,
            undo_mode=settings.undo_mode,
        )
        if bridge is not None:
            bridge.on_admin_notification = self._admin_notification

        self.view_mode = ViewMode.DEFAULT
        self.sort_by: Optional[OrderStatus] = None
        self.selected_date: Optional[date] = None
        self.timezone = settings.restaurant_tz
        self._urgent: Set[str] = set()
        self.ticker = ReadinessTicker(self.store, self.scheduler, self.clock, self._readiness_tick)

        # The display streams one microphone; both phases listen on it
        self.recognizer = recognizer or QueueRecognizer("display")
        self.synthesizer = synthesizer or QueueSynthesizer()
        self.dispatcher = CommandDispatcher(
            self.controller,
            orders=self.day_orders,
            set_view=self.set_view,
            confidence_threshold=settings.voice_confidence_threshold,
        )
        self.voice = VoicePipeline(
            store=self.store,
            dispatcher=self.dispatcher,
            interpreter=interpreter,
            scheduler=self.scheduler,
            wake_recognizer=self.recognizer,
            command_recognizer=self.recognizer,
            synthesizer=self.synthesizer,
            feedback=self.feedback,
            wake_word=settings.wake_word,
            active_seconds=settings.voice_active_seconds,
            command_timeout=settings.command_timeout_seconds,
            clock=self.clock,
        )

    @classmethod
    def from_settings(cls, settings: Settings = default_settings) -> "KitchenScreen":
        if settings.intent_backend == "llm":
            interpreter: IntentInterpreter = LLMIntentInterpreter.from_settings(settings)
        else:
            interpreter = HttpIntentInterpreter(settings.intent_service_url, settings.intent_timeout_seconds)
        return cls(
            order_service=OrderServiceClient.from_settings(settings),
            interpreter=interpreter,
            bridge=NotificationBridge.from_url(
                settings.redis_url,
                settings.restaurant_id,
                settings.realtime_channel_prefix,
            ),
            notifier=RoleNotifier(settings.restaurant_id, settings.notification_roles_list),
            settings=settings,
        )

    async def start(self) -> None:
        logger.info("Starting kitchen screen", restaurant_id=self.settings.restaurant_id)
        await self.controller.refresh()
        self.ticker.start()
        if self.bridge is not None:
            self.bridge.start(self.scheduler)

    async def stop(self) -> None:
        await self.voice.deactivate()
        self.ticker.stop()
        if self.bridge is not None:
            self.bridge.stop()
        await self.scheduler.shutdown()
        logger.info("Kitchen screen stopped", restaurant_id=self.settings.restaurant_id)

    async def aclose(self) -> None:
        await self.stop()
        await self.order_service.aclose()
        await self.interpreter.aclose()
        if self.bridge is not None:
            await self.bridge.aclose()

    # Views

    def set_view(
        self,
        view_mode: ViewMode = ViewMode.DEFAULT,
        sort_by: Optional[OrderStatus] = None,
        selected_date: Optional[date] = None,
    ) -> None:
        """Switch layout; a status filter and a special view exclude each other"""
        if sort_by is not None:
            view_mode = ViewMode.DEFAULT
        self.view_mode = view_mode
        self.sort_by = sort_by if view_mode == ViewMode.DEFAULT else None
        if selected_date is not None:
            self.selected_date = selected_date
        logger.info(
            "Kitchen view changed",
            view_mode=view_mode.value,
            sort_by=self.sort_by.value if self.sort_by else None,
        )

    @property
    def day(self) -> date:
        return self.selected_date or self.clock().astimezone(self.timezone).date()

    def day_orders(self) -> List[Order]:
        return filter_by_date(self.store, self.day, self.timezone)

    def visible_orders(self) -> List[Order]:
        orders = self.day_orders()
        if self.view_mode == ViewMode.RECENTLY_COMPLETED:
            return recently_completed(orders)
        return filter_by_status(orders, self.sort_by)

    def all_day(self) -> List[GroupedItem]:
        return group_items(self.day_orders())

    def completed(self) -> List[OrderView]:
        now = self.clock()
        return [self.order_view(order, now) for order in recently_completed(self.day_orders())]

    def order_view(self, order: Order, now: Optional[datetime] = None) -> OrderView:
        return OrderView(
            order=order,
            readiness=compute_readiness(order, now or self.clock()),
            voice_number=self.voice.numbers.number_for(order.id) if self.voice.active else None,
            display_total=order.display_total,
        )

    def screen_state(self) -> ScreenState:
        now = self.clock()
        return ScreenState(
            view_mode=self.view_mode,
            sort_by=self.sort_by,
            selected_date=self.day,
            orders=[self.order_view(order, now) for order in self.visible_orders()],
        )

    # Callbacks

    async def _admin_notification(self, event: KitchenEvent) -> None:
        self.feedback.info(event.message or "New order received")
        await self.controller.refresh()

    def _readiness_tick(self, readiness: Dict[str, Readiness]) -> None:
        urgent = {
            order_id
            for order_id, value in readiness.items()
            if value.is_urgent and self._is_open(order_id)
        }
        for order_id in urgent - self._urgent:
            logger.info("Order due soon", order_id=order_id, minutes=round(readiness[order_id].minutes, 1))
        self._urgent = urgent

    def _is_open(self, order_id: str) -> bool:
        order = self.store.get(order_id)
        return order is not None and order.status in (OrderStatus.PENDING, OrderStatus.PREPARING)
