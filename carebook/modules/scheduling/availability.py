"""
Availability filtering.

Removes generated slots that are already taken by an active appointment.
"""
from __future__ import annotations

from bisect import bisect_left
from itertools import accumulate
from typing import Iterable, List, Sequence

from carebook.modules.scheduling.types import (
    RELEASED_STATUSES,
    AppointmentInterval,
    AppointmentStatus,
    Slot,
)


def active_appointments(
    appointments: Iterable[AppointmentInterval],
    *,
    include_completed: bool = True,
) -> List[AppointmentInterval]:
    """
    Keep the appointments that occupy calendar time.

    Cancelled and no-show appointments never do. Completed ones do by default;
    pass include_completed=False when validating a new booking and past visits
    must not block it.
    """
    return [
        appt
        for appt in appointments
        if appt.status not in RELEASED_STATUSES
        and (include_completed or appt.status != AppointmentStatus.COMPLETED)
    ]


def filter_available(
    slots: Sequence[Slot],
    active: Sequence[AppointmentInterval],
) -> List[Slot]:
    """
    Return the slots that overlap none of the given appointment intervals.

    Intervals are half-open, so a slot ending exactly when an appointment
    starts stays available. Input order is preserved.

    Appointments are sorted by start; a slot [s, e) is taken iff some
    appointment starting before e ends after s, i.e. iff the largest end among
    the appointments starting before e is greater than s.
    """
    if not active:
        return list(slots)

    ordered = sorted(active, key=lambda a: a.scheduled_start_time)
    starts = [a.scheduled_start_time for a in ordered]
    max_end = list(accumulate((a.scheduled_end_time for a in ordered), max))

    available = []
    for slot in slots:
        idx = bisect_left(starts, slot.end_time)
        if idx and max_end[idx - 1] > slot.start_time:
            continue
        available.append(slot)
    return available
