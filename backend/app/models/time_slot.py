from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class TimeSlot(SQLModel, table=True):
    """Named daily time slot of a calendar."""

    __tablename__ = "time_slots"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    calendar_id: UUID = Field(
        foreign_key="calendars.id", nullable=False, index=True
    )
    name: str = Field(max_length=255)

    # HH:MM, wall-clock time in the storage timezone
    start_time: str = Field(max_length=8)
    end_time: str = Field(max_length=8)

    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
