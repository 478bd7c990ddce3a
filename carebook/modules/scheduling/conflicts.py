"""
Conflict detection for a proposed appointment interval.

This only evaluates the snapshot it is given. Two requests that read the same
snapshot can both see "no conflict"; the appointment store has to re-check
inside its write transaction (see SqlAppointmentRepository.create).
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterable
from uuid import UUID

from carebook.modules.scheduling.intervals import overlaps
from carebook.modules.scheduling.types import (
    AppointmentInterval,
    ConflictResult,
    InvalidIntervalError,
)


def has_conflict(
    doctor_id: UUID,
    candidate_start: datetime,
    candidate_end: datetime,
    active_appointments: Iterable[AppointmentInterval],
) -> ConflictResult:
    """
    Find every active appointment of the doctor that overlaps the candidate.

    Args:
        doctor_id: doctor the candidate is for; intervals of other doctors are ignored
        candidate_start: inclusive start
        candidate_end: exclusive end
        active_appointments: already status-filtered appointments

    Returns:
        ConflictResult listing all overlapping intervals in start order.

    Raises:
        InvalidIntervalError: candidate_start is not before candidate_end.
    """
    if candidate_start >= candidate_end:
        raise InvalidIntervalError(
            f"candidate_start {candidate_start} must be before candidate_end {candidate_end}"
        )

    hits = sorted(
        (
            appt
            for appt in active_appointments
            if appt.doctor_id == doctor_id
            and overlaps(
                candidate_start,
                candidate_end,
                appt.scheduled_start_time,
                appt.scheduled_end_time,
            )
        ),
        key=lambda a: a.scheduled_start_time,
    )
    return ConflictResult(conflict=bool(hits), conflicting_intervals=tuple(hits))
