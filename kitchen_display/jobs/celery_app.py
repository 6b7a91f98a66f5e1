"""Celery application configuration"""

from celery import Celery
from kitchen_display.config import settings

# Create Celery app
celery_app = Celery(
    "kitchen_display",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "kitchen_display.jobs.tasks",
    ],
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_time_limit=60,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    # Notifications are fire-and-forget; nobody reads the results
    task_ignore_result=True,
)
