from __future__ import annotations

from datetime import date as date_type, datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.availability import AvailableSlot


class CheckOutcome(str, Enum):
    SKIPPED = "skipped"
    MATCHED = "matched"
    DELIVERED = "delivered"
    ERROR = "error"


class GroupedSlot(BaseModel):
    date: date_type
    name: str
    start: str
    end: str


class NotificationPayload(BaseModel):
    """Message handed to the delivery transport."""

    title: str
    summary: str
    calendar_name: str
    grouped_slots: list[GroupedSlot] = Field(default_factory=list)

    def slots_by_date(self) -> dict[date_type, list[GroupedSlot]]:
        grouped: dict[date_type, list[GroupedSlot]] = {}
        for slot in self.grouped_slots:
            grouped.setdefault(slot.date, []).append(slot)
        return grouped


class DeliveryResult(BaseModel):
    success: bool
    message: str
    simulated: bool = False
    status_code: Optional[int] = None


class CheckResult(BaseModel):
    """Outcome of checking one notification subscription."""

    calendar_id: UUID
    calendar_name: str = "Unknown Calendar"
    date_checked: Optional[date_type] = None
    outcome: CheckOutcome
    slots_found: int = 0
    delivered: bool = False
    available_slots: list[AvailableSlot] = Field(default_factory=list)
    total_members: int = 0
    total_time_slots: int = 0
    message: str = ""
    error: Optional[str] = None
    error_kind: Optional[str] = None
    simulated: bool = False


class CheckSummary(BaseModel):
    success: bool = True
    message: str
    results: list[CheckResult] = Field(default_factory=list)


class ManualCheckRequest(BaseModel):
    calendar_id: UUID
    target_date: Optional[date_type] = None


class CheckAllRequest(BaseModel):
    target_date: Optional[date_type] = None


class NotificationTestRequest(BaseModel):
    webhook_url: str = Field(..., min_length=1, max_length=500)
    calendar_name: str = Field(..., min_length=1, max_length=255)


class SubscriptionRead(BaseModel):
    id: UUID
    calendar_id: UUID
    webhook_url: str
    notification_time: str
    enabled: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TimeComparison(BaseModel):
    notification_time: str
    current_time: str
    timezone: str
    notification_minutes: int
    current_minutes: int
    time_diff: int
    tolerance_minutes: int
    should_trigger: bool


class DebugSettingsRead(BaseModel):
    settings: Optional[SubscriptionRead] = None
    current_database_time: str
    current_database_timestamp: datetime
    database_timezone: str
    time_comparison: Optional[TimeComparison] = None


class TimezoneTestRow(BaseModel):
    timezone: str
    user_time_to_storage: str
    storage_to_user_time: str
    current_time: str


class TimezoneTestRead(BaseModel):
    user_time: str
    user_timezone: str
    storage_timezone: str
    storage_time: str
    back_converted: str
    is_round_trip: bool
    current_storage_time: str
    current_user_time: str
    timezone_tests: list[TimezoneTestRow] = Field(default_factory=list)


class CronRunRead(BaseModel):
    success: bool
    message: str
    duration_ms: int
    timestamp: datetime
    results: list[CheckResult] = Field(default_factory=list)
    error: Optional[str] = None
