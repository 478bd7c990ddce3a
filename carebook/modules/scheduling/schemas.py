# carebook/modules/scheduling/schemas.py
from __future__ import annotations

import datetime as dt
from typing import List
from uuid import UUID

from carebook.core.schemas import CamelModel


class SlotOut(CamelModel):
    start_time: dt.datetime
    end_time: dt.datetime


class ClinicDayAvailability(CamelModel):
    """
    Free slots of one clinic on one date.
    """
    clinic_id: UUID
    clinic_name: str
    date: dt.date
    slots: List[SlotOut]


class AvailabilityResponse(CamelModel):
    success: bool = True
    data: List[ClinicDayAvailability]
