"""Celery application configuration."""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import Celery

from app.core.config import settings

logger = logging.getLogger(__name__)

# Create Celery app
celery_app = Celery(
    "schedule_notifier",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["app.tasks.notifications"],
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # Broker connection
    broker_connection_retry_on_startup=True,
    # A check pass is not retried: the next beat tick is the retry
    task_acks_late=False,
    task_max_retries=0,
    # A pass that outlives its cadence is dropped
    task_time_limit=settings.NOTIFICATION_CHECK_INTERVAL_SECONDS * 2,
    task_soft_time_limit=settings.NOTIFICATION_CHECK_INTERVAL_SECONDS,
    # Result expiration
    result_expires=3600,
    # Worker settings
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=500,
)

# Periodic tasks
celery_app.conf.beat_schedule = {
    # Discord availability notifications, gated per calendar by notification time
    "check-discord-notifications": {
        "task": "app.tasks.notifications.check_and_notify_task",
        "schedule": timedelta(seconds=settings.NOTIFICATION_CHECK_INTERVAL_SECONDS),
        "options": {"expires": settings.NOTIFICATION_CHECK_INTERVAL_SECONDS},
    },
}

logger.info(f"Celery app configured with broker: {settings.CELERY_BROKER_URL}")
