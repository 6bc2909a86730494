"""Entry point for external cron services (Vercel Cron, cron-job.org, ...)."""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter

from app.api.deps import CheckServiceDep
from app.schemas import CronRunRead
from app.services.exceptions import NotificationError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/notifications",
    response_model=CronRunRead,
    summary="Run a notification check pass for an external cron",
)
async def run_notifications_cron(service: CheckServiceDep) -> CronRunRead:
    """
    Run one check pass.

    Always answers 200 so the cron service does not retry; failures are
    reported in the body.
    """
    started = time.monotonic()
    timestamp = datetime.now(timezone.utc)
    logger.info(f"[Cron] Notification check started at {timestamp.isoformat()}")

    try:
        results = await service.check_all()
    except NotificationError as exc:
        logger.error(f"[Cron] Notification check failed: {exc.message}")
        return CronRunRead(
            success=False,
            message="Cron job failed",
            duration_ms=int((time.monotonic() - started) * 1000),
            timestamp=timestamp,
            error=exc.message,
        )
    except Exception as exc:
        logger.error(f"[Cron] Unexpected error: {exc}", exc_info=True)
        return CronRunRead(
            success=False,
            message="Cron job failed",
            duration_ms=int((time.monotonic() - started) * 1000),
            timestamp=timestamp,
            error=str(exc),
        )

    duration_ms = int((time.monotonic() - started) * 1000)
    logger.info(f"[Cron] Completed in {duration_ms}ms")
    return CronRunRead(
        success=True,
        message="Cron job completed successfully",
        duration_ms=duration_ms,
        timestamp=timestamp,
        results=results,
    )
