"""
Wall-clock time conversion between IANA timezones.

Stored times (time slots, notification times) are ``HH:MM`` strings in the
storage timezone. Conversion uses today's date in the source zone as the
reference instant, so results depend on the time of year (DST).

All functions are fail-soft: a malformed time or an unknown zone never raises,
because notification times are user supplied and must not break a scheduled
check.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime, timezone as dt_timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel

from app.core.config import settings

logger = logging.getLogger(__name__)

TIME_PATTERN = re.compile(r"^\d{2}:\d{2}$")
TIME_WITH_SECONDS_PATTERN = re.compile(r"^\d{2}:\d{2}:\d{2}$")


class TimezoneInfo(BaseModel):
    timezone: str
    offset: int  # minutes from UTC
    abbreviation: str
    is_dst: bool


def _utcnow() -> datetime:
    return datetime.now(dt_timezone.utc)


def _resolve_zone(zone: str) -> Optional[ZoneInfo]:
    try:
        return ZoneInfo(zone)
    except (ZoneInfoNotFoundError, ValueError, TypeError):
        logger.warning(f"Unknown timezone: {zone!r}")
        return None


def _as_aware(now: Optional[datetime]) -> datetime:
    if now is None:
        return _utcnow()
    if now.tzinfo is None:
        return now.replace(tzinfo=dt_timezone.utc)
    return now


def parse_time(value: str) -> Optional[tuple[int, int]]:
    """Return ``(hour, minute)`` for a valid ``HH:MM`` string, otherwise None."""
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        return None
    hour, minute = int(value[:2]), int(value[3:])
    if hour > 23 or minute > 59:
        return None
    return hour, minute


def is_valid_time(value: str) -> bool:
    return parse_time(value) is not None


def strip_seconds(value: str) -> str:
    """Trim a stored ``HH:MM:SS`` time to ``HH:MM``; anything else is returned as is."""
    if isinstance(value, str) and TIME_WITH_SECONDS_PATTERN.match(value):
        return value[:5]
    return value


def convert_time(
    time: str,
    from_zone: str,
    to_zone: str,
    now: Optional[datetime] = None,
) -> str:
    """
    Convert a ``HH:MM`` wall-clock time from one timezone to another.

    Args:
        time: Time in ``HH:MM`` format
        from_zone: IANA name of the source timezone
        to_zone: IANA name of the target timezone
        now: Reference instant (defaults to the current time)

    Returns:
        Converted ``HH:MM`` time, or the input unchanged when it is malformed
        or either zone cannot be resolved.
    """
    if from_zone == to_zone:
        return time

    parsed = parse_time(time)
    if parsed is None:
        logger.warning(f"Malformed time {time!r}, returning it unchanged")
        return time

    source = _resolve_zone(from_zone)
    target = _resolve_zone(to_zone)
    if source is None or target is None:
        return time

    today = _as_aware(now).astimezone(source).date()
    hour, minute = parsed
    local = datetime(today.year, today.month, today.day, hour, minute, tzinfo=source)
    return local.astimezone(target).strftime("%H:%M")


def to_storage_time(time: str, user_zone: str, now: Optional[datetime] = None) -> str:
    """Convert a user's local time to the storage timezone."""
    return convert_time(time, user_zone, settings.STORAGE_TIMEZONE, now=now)


def from_storage_time(time: str, user_zone: str, now: Optional[datetime] = None) -> str:
    """Convert a stored time to a user's local time."""
    return convert_time(time, settings.STORAGE_TIMEZONE, user_zone, now=now)


def current_time(zone: str, now: Optional[datetime] = None) -> str:
    """Current wall-clock time in ``zone`` as ``HH:MM``; UTC for an unknown zone."""
    tz = _resolve_zone(zone) or dt_timezone.utc
    return _as_aware(now).astimezone(tz).strftime("%H:%M")


def current_date(zone: str, now: Optional[datetime] = None):
    tz = _resolve_zone(zone) or dt_timezone.utc
    return _as_aware(now).astimezone(tz).date()


def offset_minutes(zone: str, now: Optional[datetime] = None) -> int:
    """Signed offset from UTC in minutes for ``now``; 0 for an unknown zone."""
    tz = _resolve_zone(zone)
    if tz is None:
        return 0
    offset = _as_aware(now).astimezone(tz).utcoffset()
    if offset is None:
        return 0
    return int(offset.total_seconds() // 60)


def timezone_info(zone: str, now: Optional[datetime] = None) -> TimezoneInfo:
    tz = _resolve_zone(zone)
    if tz is None:
        return TimezoneInfo(timezone="UTC", offset=0, abbreviation="UTC", is_dst=False)
    local = _as_aware(now).astimezone(tz)
    dst = local.dst()
    return TimezoneInfo(
        timezone=zone,
        offset=offset_minutes(zone, now=now),
        abbreviation=local.tzname() or zone,
        is_dst=bool(dst),
    )


def format_offset(zone: str, now: Optional[datetime] = None) -> str:
    """Human readable zone label, e.g. ``Asia/Tokyo (UTC+09:00)``."""
    offset = offset_minutes(zone, now=now)
    sign = "+" if offset >= 0 else "-"
    hours, minutes = divmod(abs(offset), 60)
    return f"{zone} (UTC{sign}{hours:02d}:{minutes:02d})"
