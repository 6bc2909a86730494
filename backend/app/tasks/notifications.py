"""Celery tasks for Discord availability notifications."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from uuid import UUID

from app.celery_app import celery_app
from app.core.config import settings
from app.core.locks import tick_lock
from app.schemas.notification import CheckOutcome
from app.services.exceptions import NotificationError
from app.services.notification_check import build_notification_service

logger = logging.getLogger(__name__)

CHECK_LOCK_NAME = "discord-notification-check"


def run_check_all() -> dict:
    """
    Run one check pass over all enabled subscriptions.

    Returns:
        dict: Summary with per-calendar results; never raises on
        per-subscription failures
    """
    started = time.monotonic()
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        service = build_notification_service()
        results = asyncio.run(service.check_all())
    except NotificationError as exc:
        logger.error(f"Discord notification check failed: {exc.message}")
        return {
            "success": False,
            "error": exc.message,
            "error_kind": exc.kind,
            "timestamp": timestamp,
        }

    duration_ms = int((time.monotonic() - started) * 1000)
    summary = {
        "success": True,
        "timestamp": timestamp,
        "duration_ms": duration_ms,
        "processed": len(results),
        "delivered": sum(1 for result in results if result.delivered),
        "skipped": sum(1 for result in results if result.outcome == CheckOutcome.SKIPPED),
        "errors": sum(1 for result in results if result.outcome == CheckOutcome.ERROR),
        "results": [result.model_dump(mode="json") for result in results],
    }
    logger.info(
        f"[Notification Task] Finished in {duration_ms}ms: {summary['processed']} processed, "
        f"{summary['delivered']} delivered, {summary['errors']} errors"
    )
    return summary


@celery_app.task(name="app.tasks.notifications.check_and_notify_task")
def check_and_notify_task() -> dict:
    """
    Periodic check of Discord notifications.

    Runs every NOTIFICATION_CHECK_INTERVAL_SECONDS through Celery Beat. A tick
    that starts while the previous one still holds the lock is skipped.
    """
    with tick_lock(CHECK_LOCK_NAME, ttl_seconds=settings.NOTIFICATION_CHECK_INTERVAL_SECONDS * 2) as acquired:
        if not acquired:
            logger.warning("Previous notification check still running, skipping tick")
            return {"success": True, "skipped": True}
        return run_check_all()


@celery_app.task(name="app.tasks.notifications.manual_check_task")
def manual_check_task(calendar_id: str) -> dict:
    """
    Check one calendar now, ignoring its notification time.

    Args:
        calendar_id: Calendar ID

    Returns:
        dict: The calendar's check result or error
    """
    try:
        service = build_notification_service()
        result = asyncio.run(service.check_one(UUID(calendar_id)))
    except ValueError:
        logger.warning(f"Invalid calendar ID for manual check: {calendar_id}")
        return {"success": False, "error": "Invalid calendar ID", "error_kind": "malformed_input"}
    except NotificationError as exc:
        logger.warning(f"Manual check failed for calendar {calendar_id}: {exc.message}")
        return {"success": False, "error": exc.message, "error_kind": exc.kind}

    return {"success": True, "result": result.model_dump(mode="json")}
