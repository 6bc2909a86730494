"""Team availability scoring for time slots."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date
from uuid import UUID

from app.models import AvailabilityStatus, Member, ScheduleEntry, TimeSlot
from app.schemas.availability import (
    AvailabilityLevel,
    AvailabilitySnapshot,
    AvailableSlot,
    SlotAvailability,
)


def _round_half_up(numerator: int, denominator: int) -> int:
    # floor(n / d + 1/2) without floating point
    return (2 * numerator + denominator) // (2 * denominator)


def aggregate(
    member_ids: Iterable[UUID],
    entries: Iterable[ScheduleEntry],
) -> AvailabilitySnapshot:
    """
    Score one (time slot, date) pair.

    ``entries`` must already be scoped to the slot and date. Each member
    counts once; members without an entry only add to ``total_count``, and
    entries of non-members are ignored.
    """
    roster = list(dict.fromkeys(member_ids))
    by_member = {entry.member_id: entry.availability for entry in entries}

    available = maybe = unavailable = 0
    for member_id in roster:
        status = by_member.get(member_id, AvailabilityStatus.UNSET)
        if status is AvailabilityStatus.AVAILABLE:
            available += 1
        elif status is AvailabilityStatus.MAYBE:
            maybe += 1
        elif status is AvailabilityStatus.UNAVAILABLE:
            unavailable += 1

    total = len(roster)
    if total == 0:
        percentage = 0
    else:
        # 100 * (available + maybe / 2) / total
        percentage = _round_half_up(100 * (2 * available + maybe), 2 * total)

    return AvailabilitySnapshot(
        available_count=available,
        maybe_count=maybe,
        unavailable_count=unavailable,
        total_count=total,
        percentage=percentage,
    )


def is_fully_available(snapshot: AvailabilitySnapshot) -> bool:
    """Empty calendars are never fully available."""
    return snapshot.total_count > 0 and snapshot.available_count == snapshot.total_count


def availability_level(percentage: int) -> AvailabilityLevel:
    if percentage >= 100:
        return AvailabilityLevel.EXCELLENT
    if percentage >= 80:
        return AvailabilityLevel.GOOD
    if percentage >= 50:
        return AvailabilityLevel.FAIR
    if percentage > 0:
        return AvailabilityLevel.POOR
    return AvailabilityLevel.NONE


def score_time_slots(
    time_slots: Sequence[TimeSlot],
    members: Sequence[Member],
    entries: Sequence[ScheduleEntry],
    target_date: date,
) -> list[SlotAvailability]:
    """Score every time slot of a calendar for ``target_date``."""
    member_ids = [member.id for member in members]
    per_slot: dict[UUID, list[ScheduleEntry]] = {}
    for entry in entries:
        if entry.date != target_date:
            continue
        per_slot.setdefault(entry.time_slot_id, []).append(entry)

    scored = []
    for slot in time_slots:
        snapshot = aggregate(member_ids, per_slot.get(slot.id, []))
        scored.append(
            SlotAvailability(
                time_slot_id=slot.id,
                name=slot.name,
                start_time=slot.start_time,
                end_time=slot.end_time,
                date=target_date,
                snapshot=snapshot,
                level=availability_level(snapshot.percentage),
            )
        )
    return scored


def fully_available_slots(
    time_slots: Sequence[TimeSlot],
    members: Sequence[Member],
    entries: Sequence[ScheduleEntry],
    target_date: date,
) -> list[AvailableSlot]:
    """Time slots on ``target_date`` where every member answered available."""
    return [
        AvailableSlot(
            date=scored.date,
            name=scored.name,
            start_time=scored.start_time,
            end_time=scored.end_time,
            available_count=scored.snapshot.available_count,
            total_count=scored.snapshot.total_count,
        )
        for scored in score_time_slots(time_slots, members, entries, target_date)
        if is_fully_available(scored.snapshot)
    ]
