"""
Slot generation.

Expands recurring weekly schedule blocks over a date range into discrete,
fixed-length bookable slots. Pure functions over the blocks passed in.
"""
from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timedelta
from itertools import combinations
from typing import Dict, Iterable, List, Sequence
from uuid import UUID

from carebook.modules.scheduling.intervals import day_of_week, iter_dates, overlaps
from carebook.modules.scheduling.types import (
    InvalidDateRangeError,
    RecurringScheduleBlock,
    ScheduleIssue,
    Slot,
)


def block_problem(block: RecurringScheduleBlock) -> str | None:
    """Describe why a block cannot produce slots, or None if it is usable."""
    if not 0 <= block.day_of_week <= 6:
        return f"day_of_week {block.day_of_week} outside 0-6"
    if block.start_time >= block.end_time:
        return f"start_time {block.start_time} not before end_time {block.end_time}"
    if block.slot_duration_minutes <= 0:
        return f"non-positive slot_duration_minutes {block.slot_duration_minutes}"
    return None


def _block_slots(block: RecurringScheduleBlock, d: date) -> List[Slot]:
    block_start = datetime.combine(d, block.start_time)
    block_end = datetime.combine(d, block.end_time)
    step = timedelta(minutes=block.slot_duration_minutes)

    slots = []
    n = 0
    while True:
        slot_start = block_start + n * step
        slot_end = slot_start + step
        # A trailing partial slot is dropped, never shortened.
        if slot_end > block_end:
            break
        slots.append(Slot(clinic_id=block.clinic_id, date=d, start_time=slot_start, end_time=slot_end))
        n += 1
    return slots


def generate_slots(
    schedule_blocks: Iterable[RecurringScheduleBlock],
    date_range_start: date,
    date_range_end: date,
) -> List[Slot]:
    """
    Expand schedule blocks into slots for every date in the inclusive range.

    Args:
        schedule_blocks: blocks for one doctor, any number of clinics, any order
        date_range_start: first date (inclusive)
        date_range_end: last date (inclusive)

    Returns:
        Slots ordered by date, then clinic (first appearance in the input),
        then start time. Inactive and malformed blocks produce nothing.
        Overlapping blocks each produce their own run; nothing is deduplicated.

    Raises:
        InvalidDateRangeError: date_range_start is after date_range_end.
    """
    if date_range_start > date_range_end:
        raise InvalidDateRangeError(
            f"date_range_start {date_range_start} is after date_range_end {date_range_end}"
        )

    clinic_rank: Dict[UUID, int] = {}
    by_weekday: Dict[int, List[RecurringScheduleBlock]] = defaultdict(list)
    for block in schedule_blocks:
        if not block.is_active or block_problem(block) is not None:
            continue
        clinic_rank.setdefault(block.clinic_id, len(clinic_rank))
        by_weekday[block.day_of_week].append(block)

    slots: List[Slot] = []
    for d in iter_dates(date_range_start, date_range_end):
        day_slots: List[Slot] = []
        for block in by_weekday.get(day_of_week(d), ()):
            day_slots.extend(_block_slots(block, d))
        day_slots.sort(key=lambda s: (clinic_rank[s.clinic_id], s.start_time))
        slots.extend(day_slots)
    return slots


def find_schedule_issues(schedule_blocks: Sequence[RecurringScheduleBlock]) -> List[ScheduleIssue]:
    """
    Report active blocks the generator will skip, and active blocks of the same
    clinic and weekday whose windows overlap.
    """
    issues: List[ScheduleIssue] = []
    usable: Dict[tuple, List[RecurringScheduleBlock]] = defaultdict(list)

    for block in schedule_blocks:
        if not block.is_active:
            continue
        problem = block_problem(block)
        if problem is not None:
            issues.append(ScheduleIssue(kind="malformed", message=problem, blocks=(block,)))
            continue
        usable[(block.clinic_id, block.day_of_week)].append(block)

    for (_, weekday), blocks in usable.items():
        for a, b in combinations(blocks, 2):
            if overlaps(a.start_time, a.end_time, b.start_time, b.end_time):
                issues.append(
                    ScheduleIssue(
                        kind="overlap",
                        message=(
                            f"blocks {a.start_time}-{a.end_time} and {b.start_time}-{b.end_time} "
                            f"overlap on weekday {weekday}"
                        ),
                        blocks=(a, b),
                    )
                )
    return issues
