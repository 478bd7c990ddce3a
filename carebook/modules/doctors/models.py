# carebook/modules/doctors/models.py
from __future__ import annotations

import uuid
from datetime import time
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    SmallInteger,
    String,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from carebook.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin


class Doctor(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    __tablename__ = "doctors"

    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    offers_tele_consultation: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="false"
    )
    offers_home_visit: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="false"
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")

    clinics: Mapped[List["DoctorClinic"]] = relationship(back_populates="doctor")


class Clinic(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    __tablename__ = "clinics"

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")


class DoctorClinic(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    A doctor practising at a clinic, with the fee and default consultation
    length for that clinic.
    """

    __tablename__ = "doctor_clinics"

    doctor_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False
    )
    clinic_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False
    )
    consultation_fee: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    consultation_duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # minutes
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")

    doctor: Mapped[Doctor] = relationship(back_populates="clinics")
    clinic: Mapped[Clinic] = relationship(lazy="joined")
    schedules: Mapped[List["DoctorClinicSchedule"]] = relationship(
        back_populates="doctor_clinic",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("doctor_id", "clinic_id", name="uq_doctor_clinic"),
        CheckConstraint(
            "consultation_duration IS NULL OR consultation_duration > 0",
            name="ck_doctor_clinic_duration_positive",
        ),
    )


class DoctorClinicSchedule(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    One weekly recurring block. One row = one window on one weekday.
    """

    __tablename__ = "doctor_clinic_schedules"

    doctor_clinic_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("doctor_clinics.id", ondelete="CASCADE"), nullable=False
    )
    day_of_week: Mapped[int] = mapped_column(SmallInteger, nullable=False)  # 0 = Sunday
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    slot_duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # minutes
    max_patients: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # null = unlimited
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")

    doctor_clinic: Mapped[DoctorClinic] = relationship(back_populates="schedules")

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_schedule_day_of_week"),
        CheckConstraint("start_time < end_time", name="ck_schedule_time_order"),
        CheckConstraint(
            "slot_duration IS NULL OR slot_duration > 0",
            name="ck_schedule_slot_positive",
        ),
        Index("ix_schedule_pairing_day", "doctor_clinic_id", "day_of_week"),
    )
