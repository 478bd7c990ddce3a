# carebook/routers/schedules.py
from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from carebook.core.config import settings
from carebook.dependencies import get_appointment_repo, get_schedule_repo
from carebook.modules.appointments.repository import AppointmentRepository
from carebook.modules.appointments.schemas import ConflictCheckRequest, ConflictCheckResponse
from carebook.modules.doctors.repository import ScheduleRepository
from carebook.modules.doctors.schemas import (
    ClinicScheduleResponse,
    DoctorScheduleResponse,
    SetClinicScheduleRequest,
)
from carebook.modules.doctors.service import (
    ClinicNotFound,
    DoctorNotFound,
    list_doctor_schedule_svc,
    set_clinic_schedule_svc,
)
from carebook.modules.scheduling.schemas import AvailabilityResponse
from carebook.modules.scheduling.service import check_conflicts_svc, get_doctor_availability_svc
from carebook.modules.scheduling.types import SchedulingError

router = APIRouter(prefix="/schedules", tags=["schedules"])


@router.get(
    "/doctors/{doctor_id}/availability",
    response_model=AvailabilityResponse,
    summary="Free slots of a doctor per clinic and date",
)
async def doctor_availability(
    doctor_id: UUID,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    clinic_id: Optional[UUID] = Query(None, alias="clinicId"),
    schedules: ScheduleRepository = Depends(get_schedule_repo),
    appointments: AppointmentRepository = Depends(get_appointment_repo),
):
    if start_date is None or end_date is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date_and_end_date_required",
        )
    try:
        data = await get_doctor_availability_svc(
            schedules,
            appointments,
            doctor_id,
            start_date,
            end_date,
            clinic_id,
            max_days=settings.MAX_AVAILABILITY_DAYS,
        )
    except SchedulingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DoctorNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="doctor_not_found")
    return AvailabilityResponse(data=data)


@router.get(
    "/doctors/{doctor_id}",
    response_model=DoctorScheduleResponse,
    summary="Weekly schedule of a doctor at every clinic",
)
async def doctor_schedule(
    doctor_id: UUID,
    schedules: ScheduleRepository = Depends(get_schedule_repo),
):
    try:
        return DoctorScheduleResponse(data=await list_doctor_schedule_svc(schedules, doctor_id))
    except DoctorNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="doctor_not_found")


@router.put(
    "/doctors/{doctor_id}/clinics/{clinic_id}",
    response_model=ClinicScheduleResponse,
    summary="Replace the weekly schedule of a doctor at one clinic",
)
async def set_clinic_schedule(
    doctor_id: UUID,
    clinic_id: UUID,
    payload: SetClinicScheduleRequest,
    schedules: ScheduleRepository = Depends(get_schedule_repo),
):
    try:
        data = await set_clinic_schedule_svc(
            schedules,
            doctor_id,
            clinic_id,
            payload,
            default_slot_minutes=settings.DEFAULT_SLOT_MINUTES,
        )
    except DoctorNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="doctor_not_found")
    except ClinicNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="clinic_not_found")
    return ClinicScheduleResponse(data=data)


@router.post(
    "/check-conflicts",
    response_model=ConflictCheckResponse,
    summary="List active appointments overlapping a proposed interval",
)
async def check_conflicts(
    payload: ConflictCheckRequest,
    appointments: AppointmentRepository = Depends(get_appointment_repo),
):
    try:
        return await check_conflicts_svc(
            appointments,
            payload,
            include_completed=settings.CONFLICTS_INCLUDE_COMPLETED,
        )
    except SchedulingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
