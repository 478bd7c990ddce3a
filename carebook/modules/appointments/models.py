# carebook/modules/appointments/models.py
from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import ExcludeConstraint
from sqlalchemy.orm import Mapped, mapped_column

from carebook.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin
from carebook.modules.scheduling.types import AppointmentStatus


class ApptType(PyEnum):
    IN_CLINIC = "in_clinic"
    TELE_CONSULTATION = "tele_consultation"
    HOME_VISIT = "home_visit"


class Appointment(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    Booked appointment. Start/end are naive local timestamps, [start, end).
    """

    __tablename__ = "appointments"

    # Patients live in the identity service; only the id is kept here.
    patient_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
    doctor_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("doctors.id", ondelete="RESTRICT"),
        nullable=False,
    )
    clinic_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("clinics.id", ondelete="SET NULL"),
        nullable=True,
    )

    type: Mapped[str] = mapped_column(String(20), nullable=False)
    scheduled_start_time: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    scheduled_end_time: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=AppointmentStatus.PENDING.value,
        server_default=AppointmentStatus.PENDING.value,
    )
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("scheduled_start_time < scheduled_end_time", name="ck_appt_time_order"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'in_progress', 'completed', "
            "'cancelled', 'no_show', 'rescheduled')",
            name="ck_appt_status_valid",
        ),
        CheckConstraint(
            "type IN ('in_clinic', 'tele_consultation', 'home_visit')",
            name="ck_appt_type_valid",
        ),
        Index("ix_appt_doctor_start", "doctor_id", "scheduled_start_time"),
        Index("ix_appt_patient_start", "patient_id", "scheduled_start_time"),
    )


# Avoid double booking at write time: no two open appointments of one doctor may
# share any instant. Completed ones are left to the application check, which
# counts them only when CONFLICTS_INCLUDE_COMPLETED is set.
Appointment.__table__.append_constraint(
    ExcludeConstraint(
        (Appointment.__table__.c.doctor_id, "="),
        (
            func.tsrange(
                Appointment.__table__.c.scheduled_start_time,
                Appointment.__table__.c.scheduled_end_time,
                text("'[)'"),
            ),
            "&&",
        ),
        name="ex_appt_doctor_no_overlap",
        using="gist",
        where=text("status NOT IN ('cancelled', 'no_show', 'completed')"),
    )
)
