from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import JSONResponse

from app.api.deps import CheckServiceDep
from app.core.celery_utils import safe_celery_delay
from app.core.config import settings
from app.schemas import (
    CheckAllRequest,
    CheckResult,
    CheckSummary,
    DebugSettingsRead,
    DeliveryResult,
    ManualCheckRequest,
    NotificationTestRequest,
    SubscriptionRead,
    TimezoneTestRead,
    TimezoneTestRow,
)
from app.services import timezone as timecodec
from app.services.matcher import compare_times

router = APIRouter()

REFERENCE_TIMEZONES = [
    "Asia/Tokyo",
    "America/New_York",
    "Europe/London",
    "America/Los_Angeles",
    "Australia/Sydney",
    "UTC",
]


@router.post(
    "/check-and-notify",
    response_model=CheckSummary,
    summary="Check all enabled notifications",
)
async def check_and_notify(
    service: CheckServiceDep,
    payload: Optional[CheckAllRequest] = None,
) -> CheckSummary:
    """Run one check pass; only calendars whose notification time has come are evaluated."""
    target_date = payload.target_date if payload else None
    results = await service.check_all(target_date)
    if not results:
        return CheckSummary(message="No enabled Discord notifications found")
    return CheckSummary(
        message=f"Processed {len(results)} notification settings",
        results=results,
    )


@router.post(
    "/manual-check",
    response_model=CheckResult,
    summary="Check one calendar now",
    responses={202: {"description": "Check queued for background execution"}},
)
async def manual_check(
    payload: ManualCheckRequest,
    service: CheckServiceDep,
    background: bool = Query(default=False, description="Queue the check on the Celery worker"),
):
    """Check a calendar immediately, ignoring its notification time."""
    if background:
        from app.tasks.notifications import manual_check_task

        queued = safe_celery_delay(manual_check_task, str(payload.calendar_id))
        if queued is not None:
            return JSONResponse(
                status_code=status.HTTP_202_ACCEPTED,
                content={"queued": True, "task_id": queued.id},
            )
    return await service.check_one(payload.calendar_id, payload.target_date)


@router.get(
    "/debug-settings",
    response_model=DebugSettingsRead,
    summary="Explain the notification time check for a calendar",
)
async def debug_settings(
    service: CheckServiceDep,
    calendar_id: UUID = Query(..., description="Calendar ID"),
) -> DebugSettingsRead:
    subscription = await service.get_subscription(calendar_id)
    current = service.current_storage_time()
    comparison = None
    if subscription is not None:
        comparison = compare_times(
            current,
            subscription.notification_time,
            service.storage_timezone,
            service.tolerance_minutes,
        )
    return DebugSettingsRead(
        settings=SubscriptionRead.model_validate(subscription) if subscription else None,
        current_database_time=current,
        current_database_timestamp=datetime.now(timezone.utc),
        database_timezone=service.storage_timezone,
        time_comparison=comparison,
    )


@router.post(
    "/test-notification",
    response_model=DeliveryResult,
    summary="Send a test message to a Discord webhook",
)
async def test_notification(
    payload: NotificationTestRequest,
    service: CheckServiceDep,
) -> DeliveryResult:
    return await service.send_test(payload.webhook_url, payload.calendar_name)


@router.get(
    "/timezone-test",
    response_model=TimezoneTestRead,
    summary="Show how a local time maps to the storage timezone",
)
def timezone_test(
    user_time: str = Query(default="17:30", description="Local time, HH:MM"),
    user_timezone: str = Query(default="Asia/Tokyo", description="IANA timezone"),
) -> TimezoneTestRead:
    if not timecodec.is_valid_time(user_time):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="user_time must be HH:MM",
        )
    storage_zone = settings.STORAGE_TIMEZONE
    storage_time = timecodec.convert_time(user_time, user_timezone, storage_zone)
    back_converted = timecodec.convert_time(storage_time, storage_zone, user_timezone)
    return TimezoneTestRead(
        user_time=user_time,
        user_timezone=user_timezone,
        storage_timezone=storage_zone,
        storage_time=storage_time,
        back_converted=back_converted,
        is_round_trip=back_converted == user_time,
        current_storage_time=timecodec.current_time(storage_zone),
        current_user_time=timecodec.current_time(user_timezone),
        timezone_tests=[
            TimezoneTestRow(
                timezone=zone,
                user_time_to_storage=timecodec.convert_time(user_time, zone, storage_zone),
                storage_to_user_time=timecodec.convert_time(user_time, storage_zone, zone),
                current_time=timecodec.current_time(zone),
            )
            for zone in REFERENCE_TIMEZONES
        ],
    )
