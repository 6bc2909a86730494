from __future__ import annotations

from datetime import date as date_type, datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class AvailabilityStatus(str, Enum):
    """A member's answer for one time slot on one date."""

    AVAILABLE = "available"
    MAYBE = "maybe"
    UNAVAILABLE = "unavailable"
    UNSET = "unset"

    @classmethod
    def parse(cls, value: Any) -> "AvailabilityStatus":
        """Read a persisted value; anything unrecognized is UNSET."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                return cls.UNSET
        return cls.UNSET

    def next(self) -> "AvailabilityStatus":
        """Unset -> Available -> Maybe -> Unavailable -> Unset."""
        return _STATUS_CYCLE[self]

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]


_STATUS_CYCLE = {
    AvailabilityStatus.UNSET: AvailabilityStatus.AVAILABLE,
    AvailabilityStatus.AVAILABLE: AvailabilityStatus.MAYBE,
    AvailabilityStatus.MAYBE: AvailabilityStatus.UNAVAILABLE,
    AvailabilityStatus.UNAVAILABLE: AvailabilityStatus.UNSET,
}

_STATUS_LABELS = {
    AvailabilityStatus.AVAILABLE: "Available",
    AvailabilityStatus.MAYBE: "Maybe",
    AvailabilityStatus.UNAVAILABLE: "Unavailable",
    AvailabilityStatus.UNSET: "Click to set",
}


class ScheduleEntry(SQLModel, table=True):
    """A member's status for a time slot on a given date."""

    __tablename__ = "schedules"
    __table_args__ = (
        UniqueConstraint("member_id", "time_slot_id", "date", name="uq_schedule_member_slot_date"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    calendar_id: UUID = Field(foreign_key="calendars.id", nullable=False, index=True)
    member_id: UUID = Field(foreign_key="members.id", nullable=False, index=True)
    time_slot_id: UUID = Field(foreign_key="time_slots.id", nullable=False, index=True)
    date: date_type = Field(nullable=False, index=True)

    # Stored as text; read through AvailabilityStatus.parse
    status: Optional[str] = Field(default=None, max_length=16)
    notes: Optional[str] = Field(default=None, max_length=1000)

    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)

    @property
    def availability(self) -> AvailabilityStatus:
        return AvailabilityStatus.parse(self.status)
