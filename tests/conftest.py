"""Shared test fixtures: in-memory repositories and an API client wired to them."""
from __future__ import annotations

import dataclasses
import uuid
from typing import Dict, List, Optional, Sequence, Tuple

import pytest
from fastapi.testclient import TestClient

from carebook.dependencies import get_appointment_repo, get_notifier, get_schedule_repo
from carebook.main import app
from carebook.modules.appointments.repository import (
    AppointmentRecord,
    NewAppointment,
    SlotTakenError,
)
from carebook.modules.doctors.repository import ClinicRef, ClinicSchedule, DoctorRef
from carebook.modules.scheduling.availability import active_appointments
from carebook.modules.scheduling.conflicts import has_conflict
from carebook.modules.scheduling.intervals import overlaps
from carebook.modules.scheduling.types import AppointmentStatus, RecurringScheduleBlock


class InMemoryScheduleRepository:
    def __init__(self):
        self.doctors: Dict[uuid.UUID, DoctorRef] = {}
        self.clinics: Dict[uuid.UUID, ClinicRef] = {}
        self.pairings: Dict[Tuple[uuid.UUID, uuid.UUID], ClinicSchedule] = {}

    def add_doctor(self, **kw) -> DoctorRef:
        doctor = DoctorRef(id=uuid.uuid4(), first_name="Ada", last_name="Lovelace", **kw)
        self.doctors[doctor.id] = doctor
        return doctor

    def add_clinic(self, name: str) -> ClinicRef:
        clinic = ClinicRef(id=uuid.uuid4(), name=name)
        self.clinics[clinic.id] = clinic
        return clinic

    def add_schedule(self, doctor_id, clinic: ClinicRef, blocks: Sequence[RecurringScheduleBlock]):
        self.pairings[(doctor_id, clinic.id)] = ClinicSchedule(
            doctor_clinic_id=uuid.uuid4(),
            clinic_id=clinic.id,
            clinic_name=clinic.name,
            blocks=tuple(blocks),
        )

    async def get_doctor(self, doctor_id):
        return self.doctors.get(doctor_id)

    async def get_clinic(self, clinic_id):
        return self.clinics.get(clinic_id)

    async def list_clinic_schedules(self, doctor_id, *, clinic_id=None) -> List[ClinicSchedule]:
        return [
            s
            for (d, c), s in self.pairings.items()
            if d == doctor_id and (clinic_id is None or c == clinic_id)
        ]

    async def get_clinic_schedule(self, doctor_id, clinic_id) -> Optional[ClinicSchedule]:
        return self.pairings.get((doctor_id, clinic_id))

    async def replace_clinic_schedule(
        self, *, doctor_id, clinic_id, consultation_fee, consultation_duration, blocks
    ) -> ClinicSchedule:
        previous = self.pairings.get((doctor_id, clinic_id))
        if previous is not None:
            # Omitted values keep what is stored, like the SQL repository.
            if consultation_fee is None:
                consultation_fee = previous.consultation_fee
            if consultation_duration is None:
                consultation_duration = previous.consultation_duration
        saved = ClinicSchedule(
            doctor_clinic_id=previous.doctor_clinic_id if previous else uuid.uuid4(),
            clinic_id=clinic_id,
            clinic_name=self.clinics[clinic_id].name,
            consultation_fee=consultation_fee,
            consultation_duration=consultation_duration,
            blocks=tuple(dataclasses.replace(b, id=uuid.uuid4()) for b in blocks),
        )
        self.pairings[(doctor_id, clinic_id)] = saved
        return saved


class InMemoryAppointmentRepository:
    def __init__(self):
        self.records: Dict[uuid.UUID, AppointmentRecord] = {}

    def add(self, doctor_id, start, end, status=AppointmentStatus.CONFIRMED) -> AppointmentRecord:
        rec = AppointmentRecord(
            id=uuid.uuid4(),
            patient_id=uuid.uuid4(),
            doctor_id=doctor_id,
            type="in_clinic",
            scheduled_start_time=start,
            scheduled_end_time=end,
            status=status,
        )
        self.records[rec.id] = rec
        return rec

    async def list_for_doctor(self, doctor_id, window_start, window_end):
        return [
            r.to_interval()
            for r in sorted(self.records.values(), key=lambda r: r.scheduled_start_time)
            if r.doctor_id == doctor_id
            and overlaps(r.scheduled_start_time, r.scheduled_end_time, window_start, window_end)
        ]

    async def get(self, appointment_id) -> Optional[AppointmentRecord]:
        return self.records.get(appointment_id)

    async def create(self, new: NewAppointment, *, include_completed: bool) -> AppointmentRecord:
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
        rec = AppointmentRecord(
            id=uuid.uuid4(),
            status=AppointmentStatus.PENDING,
            **dataclasses.asdict(new),
        )
        self.records[rec.id] = rec
        return rec

    async def update_status(self, appointment_id, status, *, notes=None):
        rec = self.records.get(appointment_id)
        if rec is None:
            return None
        rec = dataclasses.replace(rec, status=status, notes=notes or rec.notes)
        self.records[rec.id] = rec
        return rec


class RecordingNotifier:
    def __init__(self):
        self.events = []

    async def publish(self, channel, event, payload):
        self.events.append((channel, event, payload))


@pytest.fixture
def schedule_repo() -> InMemoryScheduleRepository:
    return InMemoryScheduleRepository()


@pytest.fixture
def appointment_repo() -> InMemoryAppointmentRepository:
    return InMemoryAppointmentRepository()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def client(schedule_repo, appointment_repo, notifier):
    """FastAPI test client with the SQL repositories swapped for in-memory ones."""
    app.dependency_overrides[get_schedule_repo] = lambda: schedule_repo
    app.dependency_overrides[get_appointment_repo] = lambda: appointment_repo
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()
