"""
Pytest configuration and fixtures for backend tests.

Provides shared fixtures for:
- Test database engine and record store
- A fixed clock (2026-10-17 17:00 in Asia/Tokyo)
- A mocked Discord transport
- Calendar data factories
"""

import os
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Optional
from unittest.mock import MagicMock

import pytest

# Set test environment variables before importing app modules
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["EXECUTION_MODE"] = "test"
os.environ["STORAGE_TIMEZONE"] = "Asia/Tokyo"
os.environ["START_SCHEDULER_ON_STARTUP"] = "false"

from sqlmodel import Session

from app.core.config import Settings
from app.db import build_engine, init_db
from app.models import Calendar, Member, NotificationSubscription, ScheduleEntry, TimeSlot
from app.schemas import DeliveryResult
from app.services.discord_webhook import DiscordWebhookTransport
from app.services.notification_check import NotificationCheckService
from app.services.record_store import SQLRecordStore

WEBHOOK_URL = "https://discord.com/api/webhooks/123/abc"

# 17:00 in Asia/Tokyo; "tomorrow" there is 2026-10-18
FIXED_NOW = datetime(2026, 10, 17, 8, 0, tzinfo=timezone.utc)
TOMORROW = date(2026, 10, 18)


# ============================================================================
# Settings and Database Fixtures
# ============================================================================

@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        EXECUTION_MODE="test",
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        STORAGE_TIMEZONE="Asia/Tokyo",
        NOTIFICATION_TOLERANCE_MINUTES=2,
        REMOTE_CALL_TIMEOUT_SECONDS=5,
        MAX_CONCURRENT_CHECKS=5,
    )


@pytest.fixture
def test_db_engine(test_settings):
    """File-backed SQLite so worker threads get their own connections."""
    engine = build_engine(test_settings.DATABASE_URL)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def record_store(test_db_engine):
    return SQLRecordStore(test_db_engine)


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def mock_transport():
    """Transport that accepts every delivery."""
    transport = MagicMock(spec=DiscordWebhookTransport)
    transport.deliver.return_value = DeliveryResult(
        success=True, message="Notification sent", status_code=204
    )
    transport.send_test.return_value = DeliveryResult(
        success=True, message="Test notification sent successfully", status_code=204
    )
    return transport


@pytest.fixture
def check_service(record_store, mock_transport, test_settings, fixed_clock):
    return NotificationCheckService(
        record_store, mock_transport, settings=test_settings, clock=fixed_clock
    )


# ============================================================================
# Sample Data Factories
# ============================================================================

@dataclass
class SeededCalendar:
    calendar: Calendar
    members: list[Member] = field(default_factory=list)
    time_slots: list[TimeSlot] = field(default_factory=list)
    subscription: Optional[NotificationSubscription] = None

    @property
    def id(self):
        return self.calendar.id


@pytest.fixture
def seed_calendar(test_db_engine):
    """
    Factory creating a calendar with members, time slots and a subscription.

    Usage:
        seeded = seed_calendar(members=2, slots=[("Morning", "09:00", "12:00")])
        set_status(seeded, member_index, slot_index, TOMORROW, "available")
    """
    def _create(
        name: str = "Team Calendar",
        members: int = 2,
        slots: Optional[list[tuple[str, str, str]]] = None,
        notification_time: Optional[str] = "17:00",
        enabled: bool = True,
        webhook_url: str = WEBHOOK_URL,
    ) -> SeededCalendar:
        slots = slots if slots is not None else [("Morning", "09:00", "12:00")]
        with Session(test_db_engine) as session:
            calendar = Calendar(name=name)
            session.add(calendar)
            session.flush()
            seeded = SeededCalendar(calendar=calendar)
            for index in range(members):
                member = Member(calendar_id=calendar.id, name=f"Member {index + 1}")
                session.add(member)
                seeded.members.append(member)
            for slot_name, start, end in slots:
                slot = TimeSlot(
                    calendar_id=calendar.id, name=slot_name, start_time=start, end_time=end
                )
                session.add(slot)
                seeded.time_slots.append(slot)
            if notification_time is not None:
                seeded.subscription = NotificationSubscription(
                    calendar_id=calendar.id,
                    webhook_url=webhook_url,
                    notification_time=notification_time,
                    enabled=enabled,
                )
                session.add(seeded.subscription)
            session.commit()
            for obj in [calendar, *seeded.members, *seeded.time_slots]:
                session.refresh(obj)
            if seeded.subscription is not None:
                session.refresh(seeded.subscription)
            session.expunge_all()
        return seeded

    return _create


@pytest.fixture
def set_status(test_db_engine):
    """Record one member's status for one slot on one date."""
    def _set(
        seeded: SeededCalendar,
        member_index: int,
        slot_index: int,
        on: date,
        status: Optional[str],
    ) -> ScheduleEntry:
        entry = ScheduleEntry(
            calendar_id=seeded.id,
            member_id=seeded.members[member_index].id,
            time_slot_id=seeded.time_slots[slot_index].id,
            date=on,
            status=status,
        )
        with Session(test_db_engine) as session:
            session.add(entry)
            session.commit()
            session.refresh(entry)
            session.expunge(entry)
        return entry

    return _set


@pytest.fixture
def everyone_available(set_status):
    """Mark every member available for every slot on ``on``."""
    def _mark(seeded: SeededCalendar, on: date = TOMORROW) -> None:
        for member_index in range(len(seeded.members)):
            for slot_index in range(len(seeded.time_slots)):
                set_status(seeded, member_index, slot_index, on, "available")

    return _mark
