# carebook/modules/doctors/schemas.py
from __future__ import annotations

from datetime import time
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from carebook.core.schemas import CamelModel


class ScheduleBlockIn(CamelModel):
    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    start_time: time
    end_time: time
    slot_duration: Optional[int] = Field(default=None, gt=0, description="Minutes; defaults to consultation duration")
    max_patients: Optional[int] = Field(default=None, gt=0, description="Per-slot capacity; null = unlimited")

    @field_validator("end_time")
    @classmethod
    def _end_after_start(cls, v, info):
        start = info.data.get("start_time")
        if start and v <= start:
            raise ValueError("end_time must be after start_time")
        return v


class SetClinicScheduleRequest(CamelModel):
    consultation_fee: Optional[Decimal] = Field(default=None, ge=0)
    consultation_duration: Optional[int] = Field(default=None, gt=0, description="Minutes")
    schedules: List[ScheduleBlockIn] = Field(default_factory=list)


class ScheduleBlockPublic(CamelModel):
    id: Optional[UUID] = None
    day_of_week: int
    start_time: time
    end_time: time
    slot_duration: int
    max_patients: Optional[int] = None


class ClinicSchedulePublic(CamelModel):
    doctor_clinic_id: UUID
    clinic_id: UUID
    clinic_name: str
    consultation_fee: Optional[Decimal] = None
    consultation_duration: Optional[int] = None
    schedules: List[ScheduleBlockPublic]


class ClinicScheduleResponse(CamelModel):
    success: bool = True
    data: ClinicSchedulePublic


class DoctorScheduleResponse(CamelModel):
    success: bool = True
    data: List[ClinicSchedulePublic]
