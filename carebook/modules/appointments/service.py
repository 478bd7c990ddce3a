# carebook/modules/appointments/service.py
from __future__ import annotations

from typing import Tuple
from uuid import UUID

from carebook.core.logging import get_logger
from carebook.core.notifier import Notifier
from carebook.modules.appointments.models import ApptType
from carebook.modules.appointments.repository import (
    AppointmentRecord,
    AppointmentRepository,
    NewAppointment,
    SlotTakenError,
)
from carebook.modules.appointments.schemas import (
    AppointmentCreateRequest,
    AppointmentPublic,
    AppointmentStatusUpdate,
)
from carebook.modules.doctors.repository import ScheduleRepository
from carebook.modules.doctors.service import ClinicNotFound, DoctorNotFound
from carebook.modules.scheduling.availability import active_appointments
from carebook.modules.scheduling.conflicts import has_conflict
from carebook.modules.scheduling.types import (
    RELEASED_STATUSES,
    AppointmentInterval,
    AppointmentStatus,
    InvalidIntervalError,
)

logger = get_logger(__name__)


# Custom errors for router mapping to HTTP
class AppointmentConflict(Exception):
    """
    The requested interval overlaps active appointments of the doctor.
    """

    def __init__(self, conflicts: Tuple[AppointmentInterval, ...] = ()):
        super().__init__("appointment_conflict")
        self.conflicts = conflicts


class AppointmentNotFound(Exception):
    """
    No appointment found
    """


class InvalidAppointment(Exception):
    """
    Request is well-formed but not bookable (missing address, service not offered...)
    """


class InvalidStatusTransition(Exception):
    """
    Released/finished appointments cannot be moved back to an active status.
    """


# Once an appointment reaches one of these it stays there.
FINAL_STATUSES = RELEASED_STATUSES | {AppointmentStatus.COMPLETED}


def _to_public(rec: AppointmentRecord) -> AppointmentPublic:
    return AppointmentPublic(
        id=rec.id,
        patient_id=rec.patient_id,
        doctor_id=rec.doctor_id,
        clinic_id=rec.clinic_id,
        type=ApptType(rec.type),
        status=rec.status,
        start_time=rec.scheduled_start_time,
        end_time=rec.scheduled_end_time,
        address=rec.address,
        notes=rec.notes,
    )


# CREATE
async def create_appointment_svc(
    schedules: ScheduleRepository,
    appointments: AppointmentRepository,
    notifier: Notifier,
    payload: AppointmentCreateRequest,
    *,
    include_completed: bool,
) -> AppointmentPublic:
    """
    Book an appointment.

    Logic:
    - start must be before end.
    - Doctor must exist and offer the requested kind of visit.
    - In-clinic visits keep clinic_id (checked if given); other kinds drop it.
    - Home visits need an address.
    - Reject early with every overlapping appointment; the store re-checks
      under a lock when inserting, so a racing request still gets a conflict.
    """
    if payload.start_time >= payload.end_time:
        raise InvalidIntervalError("start_time_not_before_end_time")

    doctor = await schedules.get_doctor(payload.doctor_id)
    if doctor is None:
        raise DoctorNotFound("doctor_not_found")

    clinic_id = None
    if payload.type is ApptType.IN_CLINIC:
        clinic_id = payload.clinic_id
        if clinic_id is not None and await schedules.get_clinic(clinic_id) is None:
            raise ClinicNotFound("clinic_not_found")
    elif payload.type is ApptType.TELE_CONSULTATION and not doctor.offers_tele_consultation:
        raise InvalidAppointment("tele_consultation_not_offered")
    elif payload.type is ApptType.HOME_VISIT:
        if not doctor.offers_home_visit:
            raise InvalidAppointment("home_visit_not_offered")
        if not payload.address:
            raise InvalidAppointment("address_required_for_home_visit")

    existing = await appointments.list_for_doctor(payload.doctor_id, payload.start_time, payload.end_time)
    result = has_conflict(
        payload.doctor_id,
        payload.start_time,
        payload.end_time,
        active_appointments(existing, include_completed=include_completed),
    )
    if result.conflict:
        raise AppointmentConflict(result.conflicting_intervals)

    try:
        rec = await appointments.create(
            NewAppointment(
                patient_id=payload.patient_id,
                doctor_id=payload.doctor_id,
                clinic_id=clinic_id,
                type=payload.type.value,
                scheduled_start_time=payload.start_time,
                scheduled_end_time=payload.end_time,
                address=payload.address if payload.type is ApptType.HOME_VISIT else None,
                notes=payload.notes,
            ),
            include_completed=include_completed,
        )
    except SlotTakenError as exc:
        logger.info("booking_lost_race", doctor_id=str(payload.doctor_id))
        raise AppointmentConflict(exc.conflicts) from exc

    logger.info(
        "appointment_created",
        appointment_id=str(rec.id),
        doctor_id=str(rec.doctor_id),
        type=rec.type,
    )
    await notifier.publish(
        f"doctor-{rec.doctor_id}",
        "new-appointment",
        {
            "appointment_id": str(rec.id),
            "type": rec.type,
            "scheduled_start_time": rec.scheduled_start_time.isoformat(),
        },
    )
    return _to_public(rec)


# STATUS
async def update_appointment_status_svc(
    appointments: AppointmentRepository,
    notifier: Notifier,
    appointment_id: UUID,
    payload: AppointmentStatusUpdate,
) -> AppointmentPublic:
    """
    Move an appointment to a new status.
    Setting the current status again is a no-op (cancel twice is fine).
    """
    rec = await appointments.get(appointment_id)
    if rec is None:
        raise AppointmentNotFound("appointment_not_found")

    if rec.status == payload.status:
        return _to_public(rec)
    if rec.status in FINAL_STATUSES:
        raise InvalidStatusTransition(f"cannot_change_{rec.status.value}_appointment")

    updated = await appointments.update_status(appointment_id, payload.status, notes=payload.notes)
    if updated is None:
        raise AppointmentNotFound("appointment_not_found")

    logger.info(
        "appointment_status_changed",
        appointment_id=str(appointment_id),
        old_status=rec.status.value,
        new_status=updated.status.value,
    )
    await notifier.publish(
        f"appointment-{appointment_id}",
        "appointment-status-updated",
        {"appointment_id": str(appointment_id), "status": updated.status.value},
    )
    return _to_public(updated)


# CANCEL
async def cancel_appointment_svc(
    appointments: AppointmentRepository,
    notifier: Notifier,
    appointment_id: UUID,
) -> AppointmentPublic:
    return await update_appointment_status_svc(
        appointments,
        notifier,
        appointment_id,
        AppointmentStatusUpdate(status=AppointmentStatus.CANCELLED),
    )
