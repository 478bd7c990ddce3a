# carebook/modules/appointments/schemas.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from carebook.core.schemas import CamelModel
from carebook.modules.appointments.models import ApptType
from carebook.modules.scheduling.types import AppointmentStatus


def _as_local(v: datetime) -> datetime:
    # All scheduling runs in one local frame; an offset is dropped, not converted.
    return v.replace(tzinfo=None) if v.tzinfo is not None else v


class AppointmentCreateRequest(CamelModel):
    """
    Payload to book an appointment.
    - clinic_id is only kept for in-clinic visits.
    - address is required for home visits.
    """
    patient_id: UUID
    doctor_id: UUID
    clinic_id: Optional[UUID] = None
    type: ApptType = ApptType.IN_CLINIC
    start_time: datetime
    end_time: datetime
    address: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = None

    _local = field_validator("start_time", "end_time")(_as_local)


class AppointmentStatusUpdate(CamelModel):
    status: AppointmentStatus
    notes: Optional[str] = None


class AppointmentPublic(CamelModel):
    """
    DTO returns a detailed appointment.
    """
    id: UUID
    patient_id: UUID
    doctor_id: UUID
    clinic_id: Optional[UUID] = None
    type: ApptType
    status: AppointmentStatus
    start_time: datetime
    end_time: datetime
    address: Optional[str] = None
    notes: Optional[str] = None


class AppointmentResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    data: AppointmentPublic


class ConflictCheckRequest(CamelModel):
    doctor_id: UUID
    start_time: datetime
    end_time: datetime
    include_completed: Optional[bool] = Field(
        default=None,
        description="Count completed appointments as conflicts; server default when omitted",
    )

    _local = field_validator("start_time", "end_time")(_as_local)


class ConflictOut(CamelModel):
    id: UUID
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus


class ConflictCheckResponse(CamelModel):
    success: bool = True
    has_conflicts: bool
    conflicts: List[ConflictOut]
