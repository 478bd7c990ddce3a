# carebook/routers/appointments.py
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from carebook.core.config import settings
from carebook.core.notifier import Notifier
from carebook.dependencies import get_appointment_repo, get_notifier, get_schedule_repo
from carebook.modules.appointments.repository import AppointmentRepository
from carebook.modules.appointments.schemas import (
    AppointmentCreateRequest,
    AppointmentResponse,
    AppointmentStatusUpdate,
    ConflictOut,
)
from carebook.modules.appointments.service import (
    AppointmentConflict,
    AppointmentNotFound,
    InvalidAppointment,
    InvalidStatusTransition,
    cancel_appointment_svc,
    create_appointment_svc,
    update_appointment_status_svc,
)
from carebook.modules.doctors.repository import ScheduleRepository
from carebook.modules.doctors.service import ClinicNotFound, DoctorNotFound
from carebook.modules.scheduling.types import SchedulingError

router = APIRouter(prefix="/appointments", tags=["appointments"])


def _conflict_detail(e: AppointmentConflict) -> dict:
    return {
        "error": "appointment_conflict",
        "conflicts": [
            ConflictOut(
                id=c.id,
                start_time=c.scheduled_start_time,
                end_time=c.scheduled_end_time,
                status=c.status,
            ).model_dump(mode="json", by_alias=True)
            for c in e.conflicts
        ],
    }


@router.post(
    "",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book an appointment (conflict-checked)",
)
async def appointments_create(
    payload: AppointmentCreateRequest,
    schedules: ScheduleRepository = Depends(get_schedule_repo),
    appointments: AppointmentRepository = Depends(get_appointment_repo),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        data = await create_appointment_svc(
            schedules,
            appointments,
            notifier,
            payload,
            include_completed=settings.CONFLICTS_INCLUDE_COMPLETED,
        )
    except SchedulingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except InvalidAppointment as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DoctorNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="doctor_not_found")
    except ClinicNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="clinic_not_found")
    except AppointmentConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=_conflict_detail(e))
    return AppointmentResponse(message="appointment_created", data=data)


@router.put(
    "/{appointment_id}/status",
    response_model=AppointmentResponse,
    summary="Change the status of an appointment",
)
async def appointments_update_status(
    appointment_id: UUID,
    payload: AppointmentStatusUpdate,
    appointments: AppointmentRepository = Depends(get_appointment_repo),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        data = await update_appointment_status_svc(appointments, notifier, appointment_id, payload)
    except AppointmentNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="appointment_not_found")
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return AppointmentResponse(data=data)


@router.put(
    "/{appointment_id}/cancel",
    response_model=AppointmentResponse,
    summary="Cancel an appointment",
)
async def appointments_cancel(
    appointment_id: UUID,
    appointments: AppointmentRepository = Depends(get_appointment_repo),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        data = await cancel_appointment_svc(appointments, notifier, appointment_id)
    except AppointmentNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="appointment_not_found")
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return AppointmentResponse(data=data)
