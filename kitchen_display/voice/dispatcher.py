"""Voice command dispatch"""

from typing import Callable, Iterable, List

import structlog

from kitchen_display.kitchen.mutations import KitchenController
from kitchen_display.kitchen.numbering import OrderNumberMap
from kitchen_display.kitchen.views import status_counts
from kitchen_display.schemas.kitchen import ViewMode
from kitchen_display.schemas.order import Order, OrderStatus
from kitchen_display.schemas.voice import VoiceCommand

logger = structlog.get_logger()

CHANGE_STATUS = "change_status"
SHOW_ALL_DAY = "show_all_day"
SHOW_RECENTLY_COMPLETED = "show_recently_completed"
LIST_ORDERS = "list_orders"

ALLOWED_ACTIONS: List[str] = [CHANGE_STATUS, SHOW_ALL_DAY, SHOW_RECENTLY_COMPLETED, LIST_ORDERS]

NOT_SURE = "I'm not sure about that command. Please try again."
CAPABILITIES = (
    "I can only help with changing order status, showing all day view, or showing "
    "recently completed orders. Please try one of these commands."
)
NEEDS_ORDER_AND_STATUS = "Please say the order number and the new status."


class CommandDispatcher:
    """
    Executes interpreted voice commands and returns the reply to speak.

    Commands below the confidence threshold and actions outside the
    allow-list never touch the screen. Status changes go through the same
    controller path as a tap on the order card.
    """

    def __init__(
        self,
        controller: KitchenController,
        orders: Callable[[], Iterable[Order]],
        set_view: Callable[[ViewMode], None],
        confidence_threshold: float = 0.7,
    ):
        self.controller = controller
        self.orders = orders
        self.set_view = set_view
        self.confidence_threshold = confidence_threshold

    async def dispatch(self, command: VoiceCommand, numbers: OrderNumberMap) -> str:
        if command.confidence < self.confidence_threshold:
            logger.info("Voice command below confidence threshold", action=command.action, confidence=command.confidence)
            return NOT_SURE

        if command.action not in ALLOWED_ACTIONS:
            logger.info("Voice command not allowed", action=command.action)
            return CAPABILITIES

        if command.action == CHANGE_STATUS:
            return await self._change_status(command, numbers)
        if command.action == SHOW_ALL_DAY:
            self.set_view(ViewMode.ALL_DAY)
            return "Showing all day view with item totals"
        if command.action == SHOW_RECENTLY_COMPLETED:
            self.set_view(ViewMode.RECENTLY_COMPLETED)
            return "Showing recently completed orders"
        return summarize_orders(list(self.orders()), numbers)

    async def _change_status(self, command: VoiceCommand, numbers: OrderNumberMap) -> str:
        if command.order_number is None or command.status is None:
            return NEEDS_ORDER_AND_STATUS

        order_id = numbers.order_id_for(command.order_number)
        if order_id is None:
            return f"Order {command.order_number} not found"

        outcome = await self.controller.change_status(order_id, command.status)
        logger.info(
            "Voice status change",
            order_id=order_id,
            order_number=command.order_number,
            status=command.status.value,
            success=outcome.success,
        )
        if not outcome.success:
            return f"Could not update order {command.order_number}. {outcome.message}"
        return f"Order {command.order_number} marked as {command.status.value}"


def summarize_orders(orders: List[Order], numbers: OrderNumberMap) -> str:
    """Spoken summary of the screen"""
    counts = status_counts(orders)
    summary = (
        f"You have {counts[OrderStatus.PREPARING]} preparing orders, "
        f"{counts[OrderStatus.PENDING]} pending orders, "
        f"and {counts[OrderStatus.READY]} ready orders."
    )
    preparing = [order for order in orders if order.status == OrderStatus.PREPARING]
    spoken = numbers.numbers_for(preparing)
    if spoken:
        summary += f" Preparing orders are: {', '.join(str(number) for number in spoken)}."
    return summary
