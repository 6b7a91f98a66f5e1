"""Background job tasks"""

from typing import Any, Dict

import httpx
import structlog

from kitchen_display.config import settings
from kitchen_display.jobs.celery_app import celery_app

logger = structlog.get_logger()

NOTIFICATIONS_PATH = "/api/notifications"
NOTIFICATION_TIMEOUT_SECONDS = 10.0


@celery_app.task(name="deliver_role_notification")
def deliver_role_notification(payload: Dict[str, Any]) -> bool:
    """Post a role notification to the order service's notification endpoint"""
    url = settings.order_service_url.rstrip("/") + NOTIFICATIONS_PATH
    headers = {}
    if settings.order_service_token:
        headers["Authorization"] = f"Bearer {settings.order_service_token}"

    logger.info(
        "Delivering role notification",
        title=payload.get("title"),
        restaurant_id=payload.get("restaurantId"),
    )

    try:
        response = httpx.post(url, json=payload, headers=headers, timeout=NOTIFICATION_TIMEOUT_SECONDS)
        response.raise_for_status()
    except httpx.HTTPError as e:
        # Best effort: a missed notification never affects the kitchen workflow
        logger.error(
            "Failed to deliver role notification",
            title=payload.get("title"),
            error=str(e),
        )
        return False

    logger.info("Role notification delivered", title=payload.get("title"))
    return True
