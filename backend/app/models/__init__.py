from .calendar import Calendar
from .discord_notification import NotificationSubscription
from .member import Member
from .schedule import AvailabilityStatus, ScheduleEntry
from .time_slot import TimeSlot

__all__ = [
    "AvailabilityStatus",
    "Calendar",
    "Member",
    "NotificationSubscription",
    "ScheduleEntry",
    "TimeSlot",
]
