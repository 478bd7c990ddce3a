# carebook/modules/scheduling/intervals.py
from __future__ import annotations

from datetime import date, timedelta
from typing import Iterator, TypeVar

T = TypeVar("T")


def overlaps(a_start: T, a_end: T, b_start: T, b_end: T) -> bool:
    """
    Half-open overlap test for [a_start, a_end) and [b_start, b_end).

    Back-to-back intervals (a_end == b_start) do not overlap.
    """
    return a_start < b_end and b_start < a_end


def day_of_week(d: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return d.isoweekday() % 7


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Every calendar date in [start, end], both inclusive."""
    for offset in range((end - start).days + 1):
        yield start + timedelta(days=offset)
