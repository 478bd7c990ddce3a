# carebook/dependencies.py
from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from carebook.core.config import settings
from carebook.core.notifier import LoggingNotifier, Notifier
from carebook.db.sql import get_session
from carebook.modules.appointments.repository import AppointmentRepository, SqlAppointmentRepository
from carebook.modules.doctors.repository import ScheduleRepository, SqlScheduleRepository

_notifier = LoggingNotifier()


async def get_schedule_repo(
    session: AsyncSession = Depends(get_session),
) -> ScheduleRepository:
    return SqlScheduleRepository(session, default_slot_minutes=settings.DEFAULT_SLOT_MINUTES)


async def get_appointment_repo(
    session: AsyncSession = Depends(get_session),
) -> AppointmentRepository:
    return SqlAppointmentRepository(session)


def get_notifier() -> Notifier:
    return _notifier
