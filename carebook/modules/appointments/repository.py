# carebook/modules/appointments/repository.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from carebook.modules.appointments.models import Appointment
from carebook.modules.doctors.models import Doctor
from carebook.modules.scheduling.availability import active_appointments
from carebook.modules.scheduling.conflicts import has_conflict
from carebook.modules.scheduling.types import AppointmentInterval, AppointmentStatus


class SlotTakenError(Exception):
    """Raised when the store refuses a booking that overlaps an active one."""

    def __init__(self, conflicts: Tuple[AppointmentInterval, ...] = ()):
        super().__init__("slot_already_taken")
        self.conflicts = conflicts


@dataclass(frozen=True)
class NewAppointment:
    patient_id: UUID
    doctor_id: UUID
    type: str
    scheduled_start_time: datetime
    scheduled_end_time: datetime
    clinic_id: Optional[UUID] = None
    address: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class AppointmentRecord:
    id: UUID
    patient_id: UUID
    doctor_id: UUID
    type: str
    scheduled_start_time: datetime
    scheduled_end_time: datetime
    status: AppointmentStatus
    clinic_id: Optional[UUID] = None
    address: Optional[str] = None
    notes: Optional[str] = None

    def to_interval(self) -> AppointmentInterval:
        return AppointmentInterval(
            id=self.id,
            doctor_id=self.doctor_id,
            clinic_id=self.clinic_id,
            scheduled_start_time=self.scheduled_start_time,
            scheduled_end_time=self.scheduled_end_time,
            status=self.status,
        )


class AppointmentRepository(Protocol):
    async def list_for_doctor(
        self, doctor_id: UUID, window_start: datetime, window_end: datetime
    ) -> List[AppointmentInterval]: ...

    async def get(self, appointment_id: UUID) -> Optional[AppointmentRecord]: ...

    async def create(
        self, new: NewAppointment, *, include_completed: bool
    ) -> AppointmentRecord: ...

    async def update_status(
        self, appointment_id: UUID, status: AppointmentStatus, *, notes: Optional[str] = None
    ) -> Optional[AppointmentRecord]: ...


def _to_record(appt: Appointment) -> AppointmentRecord:
    return AppointmentRecord(
        id=appt.id,
        patient_id=appt.patient_id,
        doctor_id=appt.doctor_id,
        clinic_id=appt.clinic_id,
        type=appt.type,
        scheduled_start_time=appt.scheduled_start_time,
        scheduled_end_time=appt.scheduled_end_time,
        status=AppointmentStatus(appt.status),
        address=appt.address,
        notes=appt.notes,
    )


class SqlAppointmentRepository:
    """AppointmentRepository backed by the appointments table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_for_doctor(
        self, doctor_id: UUID, window_start: datetime, window_end: datetime
    ) -> List[AppointmentInterval]:
        """
        Appointments of the doctor (any status) overlapping [window_start, window_end).
        """
        stmt = (
            select(Appointment)
            .where(
                Appointment.doctor_id == doctor_id,
                Appointment.scheduled_start_time < window_end,
                Appointment.scheduled_end_time > window_start,
            )
            .order_by(Appointment.scheduled_start_time)
        )
        rows = (await self.session.execute(stmt)).scalars().all()
        return [_to_record(a).to_interval() for a in rows]

    async def get(self, appointment_id: UUID) -> Optional[AppointmentRecord]:
        appt = await self.session.get(Appointment, appointment_id)
        return _to_record(appt) if appt else None

    async def create(self, new: NewAppointment, *, include_completed: bool) -> AppointmentRecord:
        """
        Insert a booking after re-checking for overlaps inside this transaction.

        The doctor row is locked FOR UPDATE so concurrent bookings for the same
        doctor queue up behind each other; the exclusion constraint
        ex_appt_doctor_no_overlap catches anything that gets past the lock.
        """
        await self.session.execute(
            select(Doctor.id).where(Doctor.id == new.doctor_id).with_for_update()
        )

        existing = await self.list_for_doctor(
            new.doctor_id, new.scheduled_start_time, new.scheduled_end_time
        )
        result = has_conflict(
            new.doctor_id,
            new.scheduled_start_time,
            new.scheduled_end_time,
            active_appointments(existing, include_completed=include_completed),
        )
        if result.conflict:
            raise SlotTakenError(result.conflicting_intervals)

        appt = Appointment(
            patient_id=new.patient_id,
            doctor_id=new.doctor_id,
            clinic_id=new.clinic_id,
            type=new.type,
            scheduled_start_time=new.scheduled_start_time,
            scheduled_end_time=new.scheduled_end_time,
            status=AppointmentStatus.PENDING.value,
            address=new.address,
            notes=new.notes,
        )
        self.session.add(appt)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            message = str(exc.orig).lower() if exc.orig else str(exc).lower()
            if "ex_appt_doctor_no_overlap" in message or "exclusion" in message:
                raise SlotTakenError() from exc
            raise
        await self.session.refresh(appt)
        return _to_record(appt)

    async def update_status(
        self, appointment_id: UUID, status: AppointmentStatus, *, notes: Optional[str] = None
    ) -> Optional[AppointmentRecord]:
        appt = await self.session.get(Appointment, appointment_id)
        if appt is None:
            return None
        appt.status = status.value
        if notes:
            appt.notes = notes
        await self.session.flush()
        await self.session.refresh(appt)
        return _to_record(appt)
