# carebook/modules/scheduling/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Optional, Tuple
from uuid import UUID


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"
    RESCHEDULED = "rescheduled"


# Statuses that never occupy calendar time.
RELEASED_STATUSES = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW})


class SchedulingError(ValueError):
    """Base class for precondition failures of the scheduling functions."""


class InvalidDateRangeError(SchedulingError):
    pass


class InvalidIntervalError(SchedulingError):
    pass


@dataclass(frozen=True)
class RecurringScheduleBlock:
    """
    One weekly availability window of a doctor at a clinic.

    day_of_week follows the store convention: 0 = Sunday ... 6 = Saturday.
    """

    clinic_id: UUID
    day_of_week: int
    start_time: time
    end_time: time
    slot_duration_minutes: int
    max_patients_per_slot: Optional[int] = None
    is_active: bool = True
    id: Optional[UUID] = None
    doctor_id: Optional[UUID] = None


@dataclass(frozen=True)
class AppointmentInterval:
    id: UUID
    doctor_id: UUID
    scheduled_start_time: datetime
    scheduled_end_time: datetime
    status: AppointmentStatus
    clinic_id: Optional[UUID] = None


@dataclass(frozen=True)
class Slot:
    clinic_id: UUID
    date: date
    start_time: datetime
    end_time: datetime


@dataclass(frozen=True)
class ConflictResult:
    conflict: bool
    conflicting_intervals: Tuple[AppointmentInterval, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ScheduleIssue:
    """A data-integrity problem found in a set of schedule blocks."""

    kind: str  # "malformed" | "overlap"
    message: str
    blocks: Tuple[RecurringScheduleBlock, ...]
