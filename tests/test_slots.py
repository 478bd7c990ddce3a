"""Tests for scheduling/slots.py (slot generation from weekly blocks)."""
import uuid
from datetime import date, timedelta

import pytest

from carebook.modules.scheduling.intervals import day_of_week
from carebook.modules.scheduling.slots import find_schedule_issues, generate_slots
from carebook.modules.scheduling.types import InvalidDateRangeError
from factories import MONDAY, SUNDAY, TUESDAY, at, block

CLINIC_A = uuid.uuid4()
CLINIC_B = uuid.uuid4()


def spans(slots):
    return [(s.start_time.strftime("%H:%M"), s.end_time.strftime("%H:%M")) for s in slots]


class TestGenerateSlots:
    def test_single_monday_block(self):
        slots = generate_slots([block(CLINIC_A, 1, "09:00", "10:00", 30)], MONDAY, MONDAY)

        assert spans(slots) == [("09:00", "09:30"), ("09:30", "10:00")]
        assert all(s.date == MONDAY and s.clinic_id == CLINIC_A for s in slots)

    def test_trailing_partial_slot_is_dropped(self):
        slots = generate_slots([block(CLINIC_A, 1, "09:00", "10:10", 20)], MONDAY, MONDAY)

        assert spans(slots) == [("09:00", "09:20"), ("09:20", "09:40"), ("09:40", "10:00")]

    def test_duration_longer_than_block_gives_nothing(self):
        assert generate_slots([block(CLINIC_A, 1, "09:00", "09:20", 30)], MONDAY, MONDAY) == []

    def test_duration_equal_to_block_gives_one_slot(self):
        slots = generate_slots([block(CLINIC_A, 1, "09:00", "09:45", 45)], MONDAY, MONDAY)
        assert spans(slots) == [("09:00", "09:45")]

    def test_no_matching_block_is_empty(self):
        assert generate_slots([block(CLINIC_A, 1, "09:00", "10:00")], TUESDAY, TUESDAY) == []

    def test_no_blocks_is_empty(self):
        assert generate_slots([], MONDAY, MONDAY + timedelta(days=6)) == []

    def test_block_reused_every_matching_weekday(self):
        start = SUNDAY  # 2025-03-09
        end = start + timedelta(days=20)
        slots = generate_slots([block(CLINIC_A, 1, "09:00", "10:00", 60)], start, end)

        assert [s.date for s in slots] == [date(2025, 3, 10), date(2025, 3, 17), date(2025, 3, 24)]

    def test_slots_never_overrun_and_match_duration(self):
        blocks = [
            block(CLINIC_A, 1, "08:00", "12:05", 25),
            block(CLINIC_A, 3, "13:00", "17:00", 40),
            block(CLINIC_B, 5, "07:30", "09:00", 15),
        ]
        by_day = {b.day_of_week: b for b in blocks}
        slots = generate_slots(blocks, MONDAY, MONDAY + timedelta(days=13))

        assert slots
        for s in slots:
            source = by_day[day_of_week(s.date)]
            assert s.end_time <= at(s.date, source.end_time.strftime("%H:%M"))
            assert s.end_time - s.start_time == timedelta(minutes=source.slot_duration_minutes)
            assert s.start_time.date() == s.date

    def test_unsorted_blocks_are_ordered_by_start(self):
        blocks = [
            block(CLINIC_A, 1, "17:00", "18:00", 30),
            block(CLINIC_A, 1, "09:00", "10:00", 30),
        ]
        slots = generate_slots(blocks, MONDAY, MONDAY)
        assert spans(slots) == [("09:00", "09:30"), ("09:30", "10:00"), ("17:00", "17:30"), ("17:30", "18:00")]

    def test_order_is_date_then_clinic_then_start(self):
        blocks = [
            block(CLINIC_B, 1, "08:00", "09:00", 60),
            block(CLINIC_A, 1, "07:00", "08:00", 60),
            block(CLINIC_A, 2, "06:00", "07:00", 60),
            block(CLINIC_B, 1, "06:00", "07:00", 60),
        ]
        slots = generate_slots(blocks, MONDAY, TUESDAY)

        assert [(s.date, s.clinic_id, s.start_time.hour) for s in slots] == [
            (MONDAY, CLINIC_B, 6),
            (MONDAY, CLINIC_B, 8),
            (MONDAY, CLINIC_A, 7),
            (TUESDAY, CLINIC_A, 6),
        ]

    def test_overlapping_blocks_pass_through(self):
        blocks = [
            block(CLINIC_A, 1, "09:00", "10:00", 30),
            block(CLINIC_A, 1, "09:30", "10:30", 30),
        ]
        slots = generate_slots(blocks, MONDAY, MONDAY)

        assert spans(slots) == [("09:00", "09:30"), ("09:30", "10:00"), ("09:30", "10:00"), ("10:00", "10:30")]

    def test_inactive_block_is_ignored(self):
        slots = generate_slots([block(CLINIC_A, 1, "09:00", "10:00", is_active=False)], MONDAY, MONDAY)
        assert slots == []

    @pytest.mark.parametrize(
        "bad",
        [
            block(CLINIC_A, 1, "10:00", "09:00"),
            block(CLINIC_A, 1, "09:00", "09:00"),
            block(CLINIC_A, 1, "09:00", "10:00", 0),
            block(CLINIC_A, 1, "09:00", "10:00", -15),
            block(CLINIC_A, 7, "09:00", "10:00"),
        ],
    )
    def test_malformed_block_is_skipped_not_fatal(self, bad):
        good = block(CLINIC_A, 1, "14:00", "15:00", 60)
        slots = generate_slots([bad, good], MONDAY, MONDAY)
        assert spans(slots) == [("14:00", "15:00")]

    def test_inverted_range_raises(self):
        with pytest.raises(InvalidDateRangeError):
            generate_slots([block(CLINIC_A, 1, "09:00", "10:00")], TUESDAY, MONDAY)

    def test_accepts_any_iterable(self):
        blocks = (b for b in [block(CLINIC_A, 1, "09:00", "10:00", 60)])
        assert len(generate_slots(blocks, MONDAY, MONDAY)) == 1


class TestFindScheduleIssues:
    def test_clean_schedule_has_no_issues(self):
        blocks = [
            block(CLINIC_A, 1, "09:00", "12:00"),
            block(CLINIC_A, 1, "12:00", "13:00"),  # back-to-back is fine
            block(CLINIC_B, 1, "09:00", "12:00"),  # other clinic
        ]
        assert find_schedule_issues(blocks) == []

    def test_reports_malformed_blocks(self):
        bad = block(CLINIC_A, 1, "10:00", "09:00")
        issues = find_schedule_issues([bad, block(CLINIC_A, 2, "09:00", "10:00", 0)])

        assert [i.kind for i in issues] == ["malformed", "malformed"]
        assert issues[0].blocks == (bad,)

    def test_reports_overlapping_blocks_same_clinic_and_day(self):
        a = block(CLINIC_A, 1, "09:00", "11:00")
        b = block(CLINIC_A, 1, "10:00", "12:00")
        issues = find_schedule_issues([a, b, block(CLINIC_A, 2, "10:00", "12:00")])

        assert len(issues) == 1
        assert issues[0].kind == "overlap"
        assert issues[0].blocks == (a, b)

    def test_inactive_blocks_are_not_reported(self):
        issues = find_schedule_issues([block(CLINIC_A, 1, "10:00", "09:00", is_active=False)])
        assert issues == []
