from __future__ import annotations

from datetime import date as date_type
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class AvailabilityLevel(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    NONE = "none"


class AvailabilitySnapshot(BaseModel):
    """Team availability for one (time slot, date) pair."""

    available_count: int = 0
    maybe_count: int = 0
    unavailable_count: int = 0
    total_count: int = 0
    percentage: int = 0

    model_config = ConfigDict(frozen=True)


class SlotAvailability(BaseModel):
    """Snapshot of a single time slot on a date."""

    time_slot_id: UUID
    name: str
    start_time: str
    end_time: str
    date: date_type
    snapshot: AvailabilitySnapshot
    level: AvailabilityLevel


class AvailableSlot(BaseModel):
    """A time slot every member of the calendar marked as available."""

    date: date_type
    name: str
    start_time: str
    end_time: str
    available_count: int = Field(ge=0)
    total_count: int = Field(ge=0)
