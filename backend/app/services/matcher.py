"""
Trigger gate for scheduled notifications.

One policy is used everywhere: a tolerance window around the configured
notification time. ``tolerance_minutes=0`` gives exact-minute matching.

The comparison is on minutes of the day with no wraparound: a trigger at
23:59 and a tick at 00:01 are two minutes apart on the clock but not
adjacent here.
"""
from __future__ import annotations

from app.schemas.notification import TimeComparison
from app.services.timezone import parse_time

DEFAULT_TOLERANCE_MINUTES = 2


def minute_of_day(value: str) -> int | None:
    parsed = parse_time(value)
    if parsed is None:
        return None
    hour, minute = parsed
    return hour * 60 + minute


def should_fire(
    now: str,
    trigger: str,
    tolerance_minutes: int = DEFAULT_TOLERANCE_MINUTES,
) -> bool:
    """
    Decide whether ``now`` is within ``tolerance_minutes`` of ``trigger``.

    Both times are ``HH:MM`` in the same (storage) timezone. Malformed times
    never fire.
    """
    if tolerance_minutes < 0:
        raise ValueError("tolerance_minutes must not be negative")

    now_minutes = minute_of_day(now)
    trigger_minutes = minute_of_day(trigger)
    if now_minutes is None or trigger_minutes is None:
        return False
    return abs(now_minutes - trigger_minutes) <= tolerance_minutes


def compare_times(
    now: str,
    trigger: str,
    timezone: str,
    tolerance_minutes: int = DEFAULT_TOLERANCE_MINUTES,
) -> TimeComparison | None:
    """Explain a matcher decision; None when either time is malformed."""
    now_minutes = minute_of_day(now)
    trigger_minutes = minute_of_day(trigger)
    if now_minutes is None or trigger_minutes is None:
        return None
    return TimeComparison(
        notification_time=trigger,
        current_time=now,
        timezone=timezone,
        notification_minutes=trigger_minutes,
        current_minutes=now_minutes,
        time_diff=abs(now_minutes - trigger_minutes),
        tolerance_minutes=tolerance_minutes,
        should_trigger=should_fire(now, trigger, tolerance_minutes),
    )
