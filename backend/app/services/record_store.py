"""Read-only access to calendars, members, time slots, schedules and subscriptions."""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.models import Calendar, Member, NotificationSubscription, ScheduleEntry, TimeSlot
from app.services.exceptions import UpstreamUnavailableError
from app.services.timezone import strip_seconds

logger = logging.getLogger(__name__)


def _normalize(subscription: NotificationSubscription) -> NotificationSubscription:
    # time columns may come back as HH:MM:SS
    subscription.notification_time = strip_seconds(subscription.notification_time)
    return subscription


class RecordStore:
    """Interface the notification checks read through."""

    def list_subscriptions(self, enabled: bool = True) -> list[NotificationSubscription]:
        raise NotImplementedError

    def get_subscription(self, calendar_id: UUID) -> Optional[NotificationSubscription]:
        raise NotImplementedError

    def get_calendar(self, calendar_id: UUID) -> Optional[Calendar]:
        raise NotImplementedError

    def list_members(self, calendar_id: UUID) -> list[Member]:
        raise NotImplementedError

    def list_time_slots(self, calendar_id: UUID) -> list[TimeSlot]:
        raise NotImplementedError

    def list_entries(self, calendar_id: UUID, on: Optional[date] = None) -> list[ScheduleEntry]:
        raise NotImplementedError


class SQLRecordStore(RecordStore):
    """RecordStore backed by the SQLModel engine."""

    def __init__(self, engine: Engine):
        self._engine = engine

    def _all(self, statement, what: str) -> list:
        try:
            with Session(self._engine) as session:
                return list(session.exec(statement).all())
        except SQLAlchemyError as exc:
            logger.error(f"Record store read failed ({what}): {exc}")
            raise UpstreamUnavailableError(f"Failed to fetch {what}: {exc}") from exc

    def _get(self, model, key: UUID, what: str):
        try:
            with Session(self._engine) as session:
                return session.get(model, key)
        except SQLAlchemyError as exc:
            logger.error(f"Record store read failed ({what}): {exc}")
            raise UpstreamUnavailableError(f"Failed to fetch {what}: {exc}") from exc

    def list_subscriptions(self, enabled: bool = True) -> list[NotificationSubscription]:
        statement = (
            select(NotificationSubscription)
            .where(NotificationSubscription.enabled == enabled)
            .order_by(NotificationSubscription.created_at)
        )
        return [_normalize(row) for row in self._all(statement, "notification settings")]

    def get_subscription(self, calendar_id: UUID) -> Optional[NotificationSubscription]:
        statement = select(NotificationSubscription).where(
            NotificationSubscription.calendar_id == calendar_id
        )
        rows = self._all(statement, "notification settings")
        return _normalize(rows[0]) if rows else None

    def get_calendar(self, calendar_id: UUID) -> Optional[Calendar]:
        return self._get(Calendar, calendar_id, "calendar")

    def list_members(self, calendar_id: UUID) -> list[Member]:
        statement = (
            select(Member)
            .where(Member.calendar_id == calendar_id)
            .order_by(Member.created_at)
        )
        return self._all(statement, "members")

    def list_time_slots(self, calendar_id: UUID) -> list[TimeSlot]:
        statement = (
            select(TimeSlot)
            .where(TimeSlot.calendar_id == calendar_id)
            .order_by(TimeSlot.start_time)
        )
        return self._all(statement, "time slots")

    def list_entries(self, calendar_id: UUID, on: Optional[date] = None) -> list[ScheduleEntry]:
        statement = select(ScheduleEntry).where(ScheduleEntry.calendar_id == calendar_id)
        if on is not None:
            statement = statement.where(ScheduleEntry.date == on)
        return self._all(statement, "schedules")
