# carebook/modules/scheduling/service.py
from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from carebook.core.logging import get_logger
from carebook.modules.appointments.repository import AppointmentRepository
from carebook.modules.appointments.schemas import (
    ConflictCheckRequest,
    ConflictCheckResponse,
    ConflictOut,
)
from carebook.modules.doctors.repository import ScheduleRepository
from carebook.modules.doctors.service import DoctorNotFound
from carebook.modules.scheduling.availability import active_appointments, filter_available
from carebook.modules.scheduling.conflicts import has_conflict
from carebook.modules.scheduling.schemas import ClinicDayAvailability, SlotOut
from carebook.modules.scheduling.slots import find_schedule_issues, generate_slots
from carebook.modules.scheduling.types import InvalidDateRangeError, InvalidIntervalError

logger = get_logger(__name__)


class AvailabilityWindowTooLarge(InvalidDateRangeError):
    pass


async def get_doctor_availability_svc(
    schedules: ScheduleRepository,
    appointments: AppointmentRepository,
    doctor_id: UUID,
    start_date: date,
    end_date: date,
    clinic_id: Optional[UUID] = None,
    *,
    max_days: int,
) -> List[ClinicDayAvailability]:
    """
    Free slots of a doctor, grouped per clinic and date.

    Logic:
    1) Validate the range (inclusive on both ends, at most max_days long).
    2) Load the doctor's active clinic pairings (optionally one clinic).
    3) Expand the weekly blocks into slots.
    4) Drop slots overlapping an appointment that is not cancelled/no-show.
    5) Group what is left; dates/clinics without free slots are omitted.
    """
    if start_date > end_date:
        raise InvalidDateRangeError("start_date_after_end_date")
    if (end_date - start_date).days + 1 > max_days:
        raise AvailabilityWindowTooLarge(f"date_range_exceeds_{max_days}_days")

    if await schedules.get_doctor(doctor_id) is None:
        raise DoctorNotFound("doctor_not_found")

    pairings = await schedules.list_clinic_schedules(doctor_id, clinic_id=clinic_id)
    blocks = [b for p in pairings for b in p.blocks]
    clinic_names = {p.clinic_id: p.clinic_name for p in pairings}

    for issue in find_schedule_issues(blocks):
        logger.warning(
            "schedule_issue",
            kind=issue.kind,
            detail=issue.message,
            doctor_id=str(doctor_id),
            block_ids=[str(b.id) for b in issue.blocks],
        )

    slots = generate_slots(blocks, start_date, end_date)

    booked = await appointments.list_for_doctor(
        doctor_id,
        datetime.combine(start_date, time.min),
        datetime.combine(end_date + timedelta(days=1), time.min),
    )
    free = filter_available(slots, active_appointments(booked, include_completed=True))

    groups: Dict[Tuple[UUID, date], ClinicDayAvailability] = {}
    for slot in free:
        key = (slot.clinic_id, slot.date)
        if key not in groups:
            groups[key] = ClinicDayAvailability(
                clinic_id=slot.clinic_id,
                clinic_name=clinic_names.get(slot.clinic_id, ""),
                date=slot.date,
                slots=[],
            )
        groups[key].slots.append(SlotOut(start_time=slot.start_time, end_time=slot.end_time))

    logger.info(
        "availability_computed",
        doctor_id=str(doctor_id),
        clinics=len(pairings),
        generated=len(slots),
        free=len(free),
    )
    return list(groups.values())


async def check_conflicts_svc(
    appointments: AppointmentRepository,
    payload: ConflictCheckRequest,
    *,
    include_completed: bool,
) -> ConflictCheckResponse:
    """
    Report every active appointment overlapping the proposed interval.
    payload.include_completed, when given, overrides the server default.
    """
    if payload.start_time >= payload.end_time:
        raise InvalidIntervalError("start_time_not_before_end_time")

    if payload.include_completed is not None:
        include_completed = payload.include_completed

    existing = await appointments.list_for_doctor(payload.doctor_id, payload.start_time, payload.end_time)
    result = has_conflict(
        payload.doctor_id,
        payload.start_time,
        payload.end_time,
        active_appointments(existing, include_completed=include_completed),
    )
    return ConflictCheckResponse(
        has_conflicts=result.conflict,
        conflicts=[
            ConflictOut(
                id=c.id,
                start_time=c.scheduled_start_time,
                end_time=c.scheduled_end_time,
                status=c.status,
            )
            for c in result.conflicting_intervals
        ],
    )
