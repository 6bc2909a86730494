"""
Polling scheduler for notification checks.

Drives a NotificationCheckService on a fixed cadence inside a running event
loop. The first tick runs immediately on ``start``; later ticks follow every
``interval_seconds``.

Ticks never overlap: when a tick is due while the previous one is still in
flight, the new tick is skipped and counted in ``ticks_skipped``.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from uuid import UUID

from app.schemas.notification import CheckResult
from app.schemas.scheduler import SchedulerStatus
from app.services.notification_check import NotificationCheckService

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PollingScheduler:
    """
    Cancellable timer loop around a NotificationCheckService.

    Without a ``calendar_id`` each tick runs ``check_all``. With one, the tick
    checks only that calendar: its subscription is gated by the matcher and
    ``check_one`` runs when the notification time has come.

    Attributes:
        check_service: Service that performs the checks
        interval_seconds: Seconds between ticks
    """

    def __init__(
        self,
        check_service: NotificationCheckService,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.check_service = check_service
        self.interval_seconds = interval_seconds
        self._clock = clock or _utcnow
        self._calendar_id: Optional[UUID] = None
        self._timer_task: Optional[asyncio.Task] = None
        self._tick_task: Optional[asyncio.Task] = None
        self._next_tick_at: Optional[datetime] = None
        self._last_tick_at: Optional[datetime] = None
        self._last_error: Optional[str] = None
        self._last_results: list[CheckResult] = []
        self._ticks_run = 0
        self._ticks_skipped = 0

    @property
    def is_running(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    @property
    def last_results(self) -> list[CheckResult]:
        return list(self._last_results)

    def start(
        self,
        calendar_id: Optional[UUID] = None,
        interval_seconds: Optional[float] = None,
    ) -> None:
        """
        Start ticking. A running loop is stopped first.

        Must be called from inside a running event loop.
        """
        if self.is_running:
            self.stop()

        if interval_seconds is not None:
            if interval_seconds <= 0:
                raise ValueError("interval_seconds must be positive")
            self.interval_seconds = interval_seconds
        self._calendar_id = calendar_id

        target = f"calendar {calendar_id}" if calendar_id else "all calendars"
        logger.info(
            f"Starting notification scheduler for {target} (interval: {self.interval_seconds}s)"
        )
        self._timer_task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        """Cancel the timer. An in-flight tick is left to finish."""
        if self._timer_task is not None:
            self._timer_task.cancel()
            self._timer_task = None
            logger.info("Stopped notification scheduler")
        self._next_tick_at = None
        self._calendar_id = None

    async def shutdown(self, cancel_in_flight: bool = False) -> None:
        """Stop the timer and wait for (or cancel) the in-flight tick."""
        self.stop()
        tick = self._tick_task
        if tick is None or tick.done():
            return
        if cancel_in_flight:
            tick.cancel()
        try:
            await tick
        except asyncio.CancelledError:
            logger.info("In-flight notification check cancelled")

    def status(self) -> SchedulerStatus:
        return SchedulerStatus(
            running=self.is_running,
            next_tick_at=self._next_tick_at,
            interval_seconds=self.interval_seconds,
            calendar_id=self._calendar_id,
            last_tick_at=self._last_tick_at,
            last_error=self._last_error,
            ticks_run=self._ticks_run,
            ticks_skipped=self._ticks_skipped,
        )

    def time_until_next_tick(self) -> str:
        if self._next_tick_at is None:
            return "calculating..."
        remaining = (self._next_tick_at - self._clock()).total_seconds()
        if remaining <= 0:
            return "checking now..."
        minutes, seconds = divmod(int(remaining), 60)
        return f"{minutes}m {seconds}s" if minutes > 0 else f"{seconds}s"

    async def _run(self) -> None:
        try:
            while True:
                self._launch_tick()
                self._next_tick_at = self._clock() + timedelta(seconds=self.interval_seconds)
                await asyncio.sleep(self.interval_seconds)
        except asyncio.CancelledError:
            logger.debug("Scheduler timer cancelled")
            raise

    def _launch_tick(self) -> None:
        if self._tick_task is not None and not self._tick_task.done():
            self._ticks_skipped += 1
            logger.warning("Previous notification check still running, skipping tick")
            return
        self._tick_task = asyncio.get_running_loop().create_task(self._tick(self._calendar_id))

    async def _tick(self, calendar_id: Optional[UUID]) -> None:
        self._last_tick_at = self._clock()
        self._ticks_run += 1
        try:
            if calendar_id is None:
                results = await self.check_service.check_all()
            else:
                results = await self._tick_calendar(calendar_id)
            self._last_results = results
            self._last_error = None
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._last_error = str(exc)
            logger.error(f"Notification check tick failed: {exc}", exc_info=True)

    async def _tick_calendar(self, calendar_id: UUID) -> list[CheckResult]:
        result = await self.check_service.check_calendar_if_due(calendar_id)
        return [result] if result is not None else []
