from .availability import (
    AvailabilityLevel,
    AvailabilitySnapshot,
    AvailableSlot,
    SlotAvailability,
)
from .notification import (
    CheckAllRequest,
    CheckOutcome,
    CheckResult,
    CheckSummary,
    CronRunRead,
    DebugSettingsRead,
    DeliveryResult,
    GroupedSlot,
    ManualCheckRequest,
    NotificationPayload,
    NotificationTestRequest,
    SubscriptionRead,
    TimeComparison,
    TimezoneTestRead,
    TimezoneTestRow,
)
from .scheduler import SchedulerStartRequest, SchedulerStatus

__all__ = [
    "AvailabilityLevel",
    "AvailabilitySnapshot",
    "AvailableSlot",
    "CheckAllRequest",
    "CheckOutcome",
    "CheckResult",
    "CheckSummary",
    "CronRunRead",
    "DebugSettingsRead",
    "DeliveryResult",
    "GroupedSlot",
    "ManualCheckRequest",
    "NotificationPayload",
    "NotificationTestRequest",
    "SchedulerStartRequest",
    "SchedulerStatus",
    "SlotAvailability",
    "SubscriptionRead",
    "TimeComparison",
    "TimezoneTestRead",
    "TimezoneTestRow",
]
