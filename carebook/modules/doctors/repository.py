# carebook/modules/doctors/repository.py
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Protocol, Sequence, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carebook.modules.doctors.models import Clinic, Doctor, DoctorClinic, DoctorClinicSchedule
from carebook.modules.scheduling.types import RecurringScheduleBlock


@dataclass(frozen=True)
class DoctorRef:
    id: UUID
    first_name: str
    last_name: str
    offers_tele_consultation: bool = False
    offers_home_visit: bool = False


@dataclass(frozen=True)
class ClinicRef:
    id: UUID
    name: str


@dataclass(frozen=True)
class ClinicSchedule:
    """Snapshot of one active doctor-clinic pairing and its weekly blocks."""

    doctor_clinic_id: UUID
    clinic_id: UUID
    clinic_name: str
    consultation_fee: Optional[Decimal] = None
    consultation_duration: Optional[int] = None
    blocks: Tuple[RecurringScheduleBlock, ...] = field(default_factory=tuple)


class ScheduleRepository(Protocol):
    """Read/write access to doctors, clinics and recurring schedules."""

    async def get_doctor(self, doctor_id: UUID) -> Optional[DoctorRef]: ...

    async def get_clinic(self, clinic_id: UUID) -> Optional[ClinicRef]: ...

    async def list_clinic_schedules(
        self, doctor_id: UUID, *, clinic_id: Optional[UUID] = None
    ) -> List[ClinicSchedule]: ...

    async def get_clinic_schedule(self, doctor_id: UUID, clinic_id: UUID) -> Optional[ClinicSchedule]: ...

    async def replace_clinic_schedule(
        self,
        *,
        doctor_id: UUID,
        clinic_id: UUID,
        consultation_fee: Optional[Decimal],
        consultation_duration: Optional[int],
        blocks: Sequence[RecurringScheduleBlock],
    ) -> ClinicSchedule: ...


def _to_block(row: DoctorClinicSchedule, pairing: DoctorClinic, default_minutes: int) -> RecurringScheduleBlock:
    return RecurringScheduleBlock(
        id=row.id,
        doctor_id=pairing.doctor_id,
        clinic_id=pairing.clinic_id,
        day_of_week=row.day_of_week,
        start_time=row.start_time,
        end_time=row.end_time,
        slot_duration_minutes=row.slot_duration or pairing.consultation_duration or default_minutes,
        max_patients_per_slot=row.max_patients,
        is_active=row.is_active,
    )


class SqlScheduleRepository:
    """ScheduleRepository backed by the doctors/clinics tables."""

    def __init__(self, session: AsyncSession, *, default_slot_minutes: int = 30):
        self.session = session
        self.default_slot_minutes = default_slot_minutes

    def _to_clinic_schedule(self, pairing: DoctorClinic, rows: Sequence[DoctorClinicSchedule]) -> ClinicSchedule:
        return ClinicSchedule(
            doctor_clinic_id=pairing.id,
            clinic_id=pairing.clinic_id,
            clinic_name=pairing.clinic.name,
            consultation_fee=pairing.consultation_fee,
            consultation_duration=pairing.consultation_duration,
            blocks=tuple(
                _to_block(r, pairing, self.default_slot_minutes)
                for r in sorted(rows, key=lambda r: (r.day_of_week, r.start_time))
            ),
        )

    async def get_doctor(self, doctor_id: UUID) -> Optional[DoctorRef]:
        doctor = await self.session.get(Doctor, doctor_id)
        if doctor is None or not doctor.is_active:
            return None
        return DoctorRef(
            id=doctor.id,
            first_name=doctor.first_name,
            last_name=doctor.last_name,
            offers_tele_consultation=doctor.offers_tele_consultation,
            offers_home_visit=doctor.offers_home_visit,
        )

    async def get_clinic(self, clinic_id: UUID) -> Optional[ClinicRef]:
        clinic = await self.session.get(Clinic, clinic_id)
        if clinic is None or not clinic.is_active:
            return None
        return ClinicRef(id=clinic.id, name=clinic.name)

    async def list_clinic_schedules(
        self, doctor_id: UUID, *, clinic_id: Optional[UUID] = None
    ) -> List[ClinicSchedule]:
        conditions = [
            DoctorClinic.doctor_id == doctor_id,
            DoctorClinic.is_active.is_(True),
            Clinic.is_active.is_(True),
        ]
        if clinic_id is not None:
            conditions.append(DoctorClinic.clinic_id == clinic_id)

        stmt = (
            select(DoctorClinic)
            .join(Clinic, Clinic.id == DoctorClinic.clinic_id)
            .where(*conditions)
            .order_by(DoctorClinic.created_at, DoctorClinic.id)  # stable clinic order
        )
        pairings = (await self.session.execute(stmt)).unique().scalars().all()
        return [
            self._to_clinic_schedule(p, [s for s in p.schedules if s.is_active])
            for p in pairings
        ]

    async def get_clinic_schedule(self, doctor_id: UUID, clinic_id: UUID) -> Optional[ClinicSchedule]:
        """The pairing of doctor and clinic, active or not."""
        stmt = select(DoctorClinic).where(
            DoctorClinic.doctor_id == doctor_id,
            DoctorClinic.clinic_id == clinic_id,
        )
        pairing = (await self.session.execute(stmt)).unique().scalar_one_or_none()
        if pairing is None:
            return None
        return self._to_clinic_schedule(pairing, [s for s in pairing.schedules if s.is_active])

    async def replace_clinic_schedule(
        self,
        *,
        doctor_id: UUID,
        clinic_id: UUID,
        consultation_fee: Optional[Decimal],
        consultation_duration: Optional[int],
        blocks: Sequence[RecurringScheduleBlock],
    ) -> ClinicSchedule:
        """
        Create or re-activate the doctor-clinic pairing and swap its blocks
        for the given ones (old rows are deleted as orphans on flush).
        """
        clinic = await self.session.get(Clinic, clinic_id)

        stmt = select(DoctorClinic).where(
            DoctorClinic.doctor_id == doctor_id,
            DoctorClinic.clinic_id == clinic_id,
        )
        pairing = (await self.session.execute(stmt)).unique().scalar_one_or_none()
        if pairing is None:
            pairing = DoctorClinic(
                doctor_id=doctor_id,
                clinic_id=clinic_id,
                consultation_fee=consultation_fee,
                consultation_duration=consultation_duration,
                is_active=True,
                schedules=[],
            )
            pairing.clinic = clinic
            self.session.add(pairing)
        else:
            if consultation_fee is not None:
                pairing.consultation_fee = consultation_fee
            if consultation_duration is not None:
                pairing.consultation_duration = consultation_duration
            pairing.is_active = True

        pairing.schedules = [
            DoctorClinicSchedule(
                day_of_week=b.day_of_week,
                start_time=b.start_time,
                end_time=b.end_time,
                slot_duration=b.slot_duration_minutes,
                max_patients=b.max_patients_per_slot,
                is_active=True,
            )
            for b in blocks
        ]
        await self.session.flush()
        return self._to_clinic_schedule(pairing, pairing.schedules)
