"""Tests for team availability scoring."""

from datetime import date
from uuid import uuid4

import pytest

from app.models import Member, ScheduleEntry, TimeSlot
from app.schemas import AvailabilityLevel
from app.services.availability import (
    aggregate,
    availability_level,
    fully_available_slots,
    is_fully_available,
    score_time_slots,
)

DAY = date(2026, 10, 18)


def _entry(member_id, status, slot_id=None, on=DAY):
    return ScheduleEntry(
        calendar_id=uuid4(),
        member_id=member_id,
        time_slot_id=slot_id or uuid4(),
        date=on,
        status=status,
    )


class TestAggregate:
    """Tests for aggregate()."""

    def test_all_available(self):
        members = [uuid4(), uuid4()]
        snapshot = aggregate(members, [_entry(m, "available") for m in members])
        assert snapshot.available_count == 2
        assert snapshot.total_count == 2
        assert snapshot.percentage == 100
        assert is_fully_available(snapshot)

    def test_missing_entry_counts_toward_total(self):
        members = [uuid4(), uuid4()]
        snapshot = aggregate(members, [_entry(members[0], "available")])
        assert snapshot.available_count == 1
        assert snapshot.total_count == 2
        assert snapshot.percentage == 50
        assert not is_fully_available(snapshot)

    def test_maybe_counts_half(self):
        members = [uuid4(), uuid4(), uuid4()]
        entries = [
            _entry(members[0], "available"),
            _entry(members[1], "maybe"),
            _entry(members[2], "unavailable"),
        ]
        snapshot = aggregate(members, entries)
        assert (snapshot.available_count, snapshot.maybe_count, snapshot.unavailable_count) == (1, 1, 1)
        # 100 * 1.5 / 3
        assert snapshot.percentage == 50

    def test_weighted_percentage(self):
        members = [uuid4(), uuid4(), uuid4()]
        entries = [
            _entry(members[0], "available"),
            _entry(members[1], "available"),
            _entry(members[2], "maybe"),
        ]
        # round(100 * 2.5 / 3) = round(83.33)
        assert aggregate(members, entries).percentage == 83

    def test_rounds_half_up(self):
        members = [uuid4() for _ in range(8)]
        # 100 * 0.5 / 8 = 6.25 -> 6 ; 100 * 1.5 / 8 = 18.75 -> 19
        assert aggregate(members, [_entry(members[0], "maybe")]).percentage == 6
        entries = [_entry(members[0], "available"), _entry(members[1], "maybe")]
        assert aggregate(members, entries).percentage == 19

    def test_exact_half_rounds_up(self):
        members = [uuid4() for _ in range(8)]
        # 100 * 1 / 8 = 12.5 -> 13
        assert aggregate(members, [_entry(members[0], "available")]).percentage == 13

    def test_no_members(self):
        snapshot = aggregate([], [])
        assert snapshot.total_count == 0
        assert snapshot.percentage == 0
        assert not is_fully_available(snapshot)

    def test_ignores_non_members(self):
        member = uuid4()
        snapshot = aggregate([member], [_entry(member, "available"), _entry(uuid4(), "unavailable")])
        assert snapshot.unavailable_count == 0
        assert snapshot.percentage == 100

    def test_duplicate_members_counted_once(self):
        member = uuid4()
        snapshot = aggregate([member, member], [_entry(member, "available")])
        assert snapshot.total_count == 1

    def test_unknown_status_is_unset(self):
        member = uuid4()
        snapshot = aggregate([member], [_entry(member, "busy")])
        assert snapshot.available_count == 0
        assert snapshot.total_count == 1

    def test_counts_never_exceed_total(self):
        members = [uuid4(), uuid4()]
        snapshot = aggregate(members, [_entry(m, "maybe") for m in members])
        counted = snapshot.available_count + snapshot.maybe_count + snapshot.unavailable_count
        assert counted <= snapshot.total_count
        assert 0 <= snapshot.percentage <= 100


@pytest.mark.parametrize("percentage,level", [
    (100, AvailabilityLevel.EXCELLENT),
    (80, AvailabilityLevel.GOOD),
    (79, AvailabilityLevel.FAIR),
    (50, AvailabilityLevel.FAIR),
    (1, AvailabilityLevel.POOR),
    (0, AvailabilityLevel.NONE),
])
def test_availability_level(percentage, level):
    assert availability_level(percentage) is level


class TestSlotScoring:
    """Tests for per-slot scoring of a calendar."""

    @pytest.fixture
    def calendar(self):
        calendar_id = uuid4()
        members = [Member(id=uuid4(), calendar_id=calendar_id, name=f"M{i}") for i in range(2)]
        slots = [
            TimeSlot(id=uuid4(), calendar_id=calendar_id, name="Morning", start_time="09:00", end_time="12:00"),
            TimeSlot(id=uuid4(), calendar_id=calendar_id, name="Evening", start_time="18:00", end_time="21:00"),
        ]
        return members, slots

    def test_only_target_date_counts(self, calendar):
        members, slots = calendar
        entries = [
            _entry(members[0].id, "available", slots[0].id),
            _entry(members[1].id, "available", slots[0].id, on=date(2026, 10, 19)),
        ]
        scored = score_time_slots(slots, members, entries, DAY)
        assert [s.snapshot.available_count for s in scored] == [1, 0]
        assert scored[0].level is AvailabilityLevel.FAIR

    def test_fully_available_slots(self, calendar):
        members, slots = calendar
        entries = [_entry(m.id, "available", slots[1].id) for m in members]
        entries.append(_entry(members[0].id, "available", slots[0].id))
        result = fully_available_slots(slots, members, entries, DAY)
        assert [slot.name for slot in result] == ["Evening"]
        assert result[0].available_count == result[0].total_count == 2
        assert result[0].date == DAY
