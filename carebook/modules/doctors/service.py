# carebook/modules/doctors/service.py
from __future__ import annotations

from typing import List
from uuid import UUID

from carebook.core.logging import get_logger
from carebook.modules.doctors.repository import ClinicSchedule, ScheduleRepository
from carebook.modules.doctors.schemas import (
    ClinicSchedulePublic,
    ScheduleBlockPublic,
    SetClinicScheduleRequest,
)
from carebook.modules.scheduling.slots import find_schedule_issues
from carebook.modules.scheduling.types import RecurringScheduleBlock

logger = get_logger(__name__)


# Service-level errors (map them to HTTP in the router)
class DoctorNotFound(Exception):
    pass


class ClinicNotFound(Exception):
    pass


def _to_public(schedule: ClinicSchedule) -> ClinicSchedulePublic:
    return ClinicSchedulePublic(
        doctor_clinic_id=schedule.doctor_clinic_id,
        clinic_id=schedule.clinic_id,
        clinic_name=schedule.clinic_name,
        consultation_fee=schedule.consultation_fee,
        consultation_duration=schedule.consultation_duration,
        schedules=[
            ScheduleBlockPublic(
                id=b.id,
                day_of_week=b.day_of_week,
                start_time=b.start_time,
                end_time=b.end_time,
                slot_duration=b.slot_duration_minutes,
                max_patients=b.max_patients_per_slot,
            )
            for b in schedule.blocks
        ],
    )


async def list_doctor_schedule_svc(
    repo: ScheduleRepository,
    doctor_id: UUID,
) -> List[ClinicSchedulePublic]:
    """Every active clinic of the doctor with its weekly blocks."""
    if await repo.get_doctor(doctor_id) is None:
        raise DoctorNotFound("doctor_not_found")
    return [_to_public(s) for s in await repo.list_clinic_schedules(doctor_id)]


async def set_clinic_schedule_svc(
    repo: ScheduleRepository,
    doctor_id: UUID,
    clinic_id: UUID,
    payload: SetClinicScheduleRequest,
    *,
    default_slot_minutes: int,
) -> ClinicSchedulePublic:
    """
    Replace the weekly schedule of a doctor at one clinic.

    Logic:
    - Doctor and clinic must exist.
    - A block without slot_duration takes the consultation duration from the
      request, then the one already stored on the pairing, then the
      configured default.
    - Overlapping blocks are accepted (the generator emits both runs) but
      logged, since they usually mean a data-entry mistake.
    """
    if await repo.get_doctor(doctor_id) is None:
        raise DoctorNotFound("doctor_not_found")
    if await repo.get_clinic(clinic_id) is None:
        raise ClinicNotFound("clinic_not_found")

    previous = await repo.get_clinic_schedule(doctor_id, clinic_id)
    stored = previous.consultation_duration if previous else None
    fallback = payload.consultation_duration or stored or default_slot_minutes
    blocks = [
        RecurringScheduleBlock(
            doctor_id=doctor_id,
            clinic_id=clinic_id,
            day_of_week=b.day_of_week,
            start_time=b.start_time,
            end_time=b.end_time,
            slot_duration_minutes=b.slot_duration or fallback,
            max_patients_per_slot=b.max_patients,
        )
        for b in payload.schedules
    ]

    for issue in find_schedule_issues(blocks):
        logger.warning(
            "schedule_issue",
            kind=issue.kind,
            detail=issue.message,
            doctor_id=str(doctor_id),
            clinic_id=str(clinic_id),
        )

    saved = await repo.replace_clinic_schedule(
        doctor_id=doctor_id,
        clinic_id=clinic_id,
        consultation_fee=payload.consultation_fee,
        consultation_duration=payload.consultation_duration,
        blocks=blocks,
    )
    logger.info(
        "clinic_schedule_replaced",
        doctor_id=str(doctor_id),
        clinic_id=str(clinic_id),
        blocks=len(saved.blocks),
    )
    return _to_public(saved)
