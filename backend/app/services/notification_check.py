"""
Scheduled availability notifications.

One check pass walks every enabled notification subscription, decides whether
its notification time has come (in the storage timezone), scores the
calendar's time slots for the target date and, when at least one slot has
every member available, delivers a single Discord message listing them.

Each subscription is processed independently: a failure reading one calendar
or delivering to one webhook is recorded in that subscription's result and
never aborts the pass.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional
from uuid import UUID

from app.core.async_utils import bounded_gather, run_blocking
from app.core.config import Settings, settings as default_settings
from app.models import NotificationSubscription
from app.schemas.availability import AvailableSlot
from app.schemas.notification import (
    CheckOutcome,
    CheckResult,
    GroupedSlot,
    NotificationPayload,
)
from app.services import timezone as timecodec
from app.services.availability import fully_available_slots
from app.services.discord_webhook import DiscordWebhookTransport
from app.services.exceptions import (
    MalformedInputError,
    NotificationError,
    SubscriptionNotFound,
)
from app.services.matcher import should_fire
from app.services.record_store import RecordStore

logger = logging.getLogger(__name__)

UNKNOWN_CALENDAR = "Unknown Calendar"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_payload(
    calendar_name: str,
    slots: list[AvailableSlot],
    for_tomorrow: bool = True,
) -> NotificationPayload:
    """Group fully available slots into one notification."""
    heading = "Tomorrow's 100% Team Availability!" if for_tomorrow else "100% Team Availability!"
    return NotificationPayload(
        title=f"🎉 {heading}",
        summary=(
            f"Great news! Your team has **100% availability** for "
            f"{len(slots)} time slot{'s' if len(slots) != 1 else ''} in **{calendar_name}**."
        ),
        calendar_name=calendar_name,
        grouped_slots=[
            GroupedSlot(date=slot.date, name=slot.name, start=slot.start_time, end=slot.end_time)
            for slot in slots
        ],
    )


class NotificationCheckService:
    """
    Runs notification check passes.

    Args:
        store: Record store to read subscriptions and calendar data from
        transport: Delivery transport with ``deliver(destination, payload)``
        settings: Application settings (storage timezone, tolerance, timeouts)
        clock: Returns the current aware datetime; injectable for tests
    """

    def __init__(
        self,
        store: RecordStore,
        transport: DiscordWebhookTransport,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._store = store
        self._transport = transport
        self._settings = settings or default_settings
        self._clock = clock or _utcnow

    @property
    def storage_timezone(self) -> str:
        return self._settings.STORAGE_TIMEZONE

    @property
    def tolerance_minutes(self) -> int:
        return self._settings.NOTIFICATION_TOLERANCE_MINUTES

    def now(self) -> datetime:
        return self._clock()

    def current_storage_time(self) -> str:
        return timecodec.current_time(self.storage_timezone, now=self.now())

    def default_target_date(self) -> date:
        """Tomorrow in the storage timezone."""
        return timecodec.current_date(self.storage_timezone, now=self.now()) + timedelta(days=1)

    def is_due(self, subscription: NotificationSubscription) -> bool:
        return should_fire(
            self.current_storage_time(),
            subscription.notification_time,
            self.tolerance_minutes,
        )

    def _require_valid_time(self, subscription: NotificationSubscription) -> None:
        if not timecodec.is_valid_time(subscription.notification_time):
            raise MalformedInputError(
                f"Invalid notification time {subscription.notification_time!r}"
            )

    async def _call(self, func, *args, what: str):
        return await run_blocking(
            func, *args, timeout=self._settings.REMOTE_CALL_TIMEOUT_SECONDS, what=what
        )

    async def get_subscription(self, calendar_id: UUID) -> Optional[NotificationSubscription]:
        return await self._call(self._store.get_subscription, calendar_id, what="get subscription")

    async def send_test(self, webhook_url: str, calendar_name: str):
        """Send a test message through the transport; errors propagate."""
        return await self._call(
            self._transport.send_test, webhook_url, calendar_name, what="send test notification"
        )

    def _resolve_target_date(self, target_date: Optional[date]) -> date:
        if target_date is None:
            return self.default_target_date()
        if isinstance(target_date, datetime) or not isinstance(target_date, date):
            raise MalformedInputError(f"Invalid target date: {target_date!r}")
        return target_date

    async def check_all(self, target_date: Optional[date] = None) -> list[CheckResult]:
        """
        Check every enabled subscription whose notification time has come.

        Returns:
            One result per enabled subscription, in store order.

        Raises:
            MalformedInputError: ``target_date`` is not a date
            UpstreamUnavailableError: the subscription list could not be read
        """
        resolved_date = self._resolve_target_date(target_date)
        subscriptions = await self._call(
            self._store.list_subscriptions, True, what="list subscriptions"
        )
        enabled = [subscription for subscription in subscriptions if subscription.enabled]
        if not enabled:
            logger.info("No enabled Discord notifications found")
            return []

        current = self.current_storage_time()
        logger.info(
            f"Checking {len(enabled)} notification settings at {current} "
            f"{self.storage_timezone} for {resolved_date}"
        )

        async def process(subscription: NotificationSubscription) -> CheckResult:
            return await self._process(subscription, resolved_date, current_time=current)

        results = await bounded_gather(
            enabled, process, max_concurrent=self._settings.MAX_CONCURRENT_CHECKS
        )

        delivered = sum(1 for result in results if result.delivered)
        errors = sum(1 for result in results if result.outcome == CheckOutcome.ERROR)
        logger.info(
            f"Notification check finished: {len(results)} processed, "
            f"{delivered} delivered, {errors} errors"
        )
        return results

    async def check_one(
        self,
        calendar_id: UUID,
        target_date: Optional[date] = None,
    ) -> CheckResult:
        """
        Check a single calendar now, ignoring its notification time.

        Raises:
            MalformedInputError: missing calendar id or bad ``target_date``
            SubscriptionNotFound: no enabled subscription for the calendar
            UpstreamUnavailableError: the subscription could not be read
        """
        if not calendar_id:
            raise MalformedInputError("Calendar ID is required")
        if not isinstance(calendar_id, UUID):
            try:
                calendar_id = UUID(str(calendar_id))
            except ValueError as exc:
                raise MalformedInputError(f"Invalid calendar ID: {calendar_id!r}") from exc
        resolved_date = self._resolve_target_date(target_date)

        subscription = await self._call(
            self._store.get_subscription, calendar_id, what="get subscription"
        )
        if subscription is None or not subscription.enabled:
            raise SubscriptionNotFound(calendar_id)

        logger.info(f"Manual notification check started for calendar {calendar_id}")
        return await self._process(subscription, resolved_date, current_time=None)

    async def check_calendar_if_due(self, calendar_id: UUID) -> Optional[CheckResult]:
        """
        Poll one calendar: run ``check_one`` only when its notification time has come.

        Returns:
            The check result, or None when it is not yet time.

        Raises:
            SubscriptionNotFound: no enabled subscription for the calendar
            MalformedInputError: the stored notification time is not HH:MM
        """
        subscription = await self._call(
            self._store.get_subscription, calendar_id, what="get subscription"
        )
        if subscription is None or not subscription.enabled:
            raise SubscriptionNotFound(calendar_id)
        self._require_valid_time(subscription)
        if not self.is_due(subscription):
            logger.debug(
                f"Calendar {calendar_id}: current {self.current_storage_time()}, "
                f"target {subscription.notification_time}"
            )
            return None
        logger.info(f"Time to check notifications for calendar {calendar_id}")
        return await self.check_one(calendar_id)

    async def _process(
        self,
        subscription: NotificationSubscription,
        target_date: date,
        current_time: Optional[str],
    ) -> CheckResult:
        """Run one subscription; ``current_time`` None bypasses the time gate."""
        calendar_id = subscription.calendar_id
        calendar_name = UNKNOWN_CALENDAR
        try:
            # Time gate runs before any store read
            if current_time is not None:
                self._require_valid_time(subscription)
                if not should_fire(
                    current_time, subscription.notification_time, self.tolerance_minutes
                ):
                    logger.info(
                        f"Skipping calendar {calendar_id}: current {current_time}, "
                        f"target {subscription.notification_time} {self.storage_timezone}"
                    )
                    return CheckResult(
                        calendar_id=calendar_id,
                        outcome=CheckOutcome.SKIPPED,
                        message=(
                            f"Skipped - not notification time. Current: {current_time} "
                            f"{self.storage_timezone}, Target: {subscription.notification_time}"
                        ),
                    )

            calendar = await self._call(self._store.get_calendar, calendar_id, what="get calendar")
            if calendar is not None:
                calendar_name = calendar.name

            return await self._evaluate(subscription, calendar_name, target_date)

        except NotificationError as exc:
            logger.warning(f"Notification check failed for calendar {calendar_id}: {exc.message}")
            return CheckResult(
                calendar_id=calendar_id,
                calendar_name=calendar_name,
                date_checked=target_date,
                outcome=CheckOutcome.ERROR,
                error=exc.message,
                error_kind=exc.kind,
            )
        except Exception as exc:
            logger.error(
                f"Unexpected error processing calendar {calendar_id}: {exc}",
                exc_info=True,
            )
            return CheckResult(
                calendar_id=calendar_id,
                calendar_name=calendar_name,
                date_checked=target_date,
                outcome=CheckOutcome.ERROR,
                error=str(exc),
            )

    async def _evaluate(
        self,
        subscription: NotificationSubscription,
        calendar_name: str,
        target_date: date,
    ) -> CheckResult:
        calendar_id = subscription.calendar_id
        time_slots, members, entries = await asyncio.gather(
            self._call(self._store.list_time_slots, calendar_id, what="list time slots"),
            self._call(self._store.list_members, calendar_id, what="list members"),
            self._call(self._store.list_entries, calendar_id, target_date, what="list schedules"),
        )

        if not members:
            logger.info(f"No members found for calendar {calendar_id}")
            return CheckResult(
                calendar_id=calendar_id,
                calendar_name=calendar_name,
                date_checked=target_date,
                outcome=CheckOutcome.MATCHED,
                total_time_slots=len(time_slots),
                message="No members found for this calendar",
            )

        slots = fully_available_slots(time_slots, members, entries, target_date)
        if not slots:
            logger.info(f"No 100% available slots found for {calendar_name} on {target_date}")
            return CheckResult(
                calendar_id=calendar_id,
                calendar_name=calendar_name,
                date_checked=target_date,
                outcome=CheckOutcome.MATCHED,
                total_members=len(members),
                total_time_slots=len(time_slots),
                message=(
                    f"No 100% available slots found for {target_date}. "
                    f"Total time slots: {len(time_slots)}, Total members: {len(members)}"
                ),
            )

        logger.info(f"Sending notification for {len(slots)} available slots in {calendar_name}")
        payload = build_payload(
            calendar_name, slots, for_tomorrow=target_date == self.default_target_date()
        )
        try:
            delivery = await self._call(
                self._transport.deliver, subscription.webhook_url, payload, what="deliver notification"
            )
        except NotificationError as exc:
            # Not retried within this pass
            logger.warning(
                f"Delivery failed for calendar {calendar_id} ({exc.kind}): {exc.message}"
            )
            return CheckResult(
                calendar_id=calendar_id,
                calendar_name=calendar_name,
                date_checked=target_date,
                outcome=CheckOutcome.ERROR,
                slots_found=len(slots),
                available_slots=slots,
                total_members=len(members),
                total_time_slots=len(time_slots),
                error=exc.message,
                error_kind=exc.kind,
            )

        return CheckResult(
            calendar_id=calendar_id,
            calendar_name=calendar_name,
            date_checked=target_date,
            outcome=CheckOutcome.DELIVERED,
            slots_found=len(slots),
            delivered=True,
            available_slots=slots,
            total_members=len(members),
            total_time_slots=len(time_slots),
            message=delivery.message,
            simulated=delivery.simulated,
        )


def build_notification_service(
    engine=None,
    settings: Optional[Settings] = None,
    transport: Optional[DiscordWebhookTransport] = None,
) -> NotificationCheckService:
    """Wire a service to the SQL record store and the Discord transport."""
    from app.services.record_store import SQLRecordStore

    settings = settings or default_settings
    settings.require_storage()
    if engine is None:
        from app.db import engine
    transport = transport or DiscordWebhookTransport(
        timeout=settings.REMOTE_CALL_TIMEOUT_SECONDS,
        execution_mode=settings.EXECUTION_MODE,
    )
    return NotificationCheckService(SQLRecordStore(engine), transport, settings=settings)
