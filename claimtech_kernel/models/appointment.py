"""
Module: claimtech_kernel.models.appointment
Responsibility: ORM persistence for engineer appointments.  The appointment's
    engineer_id is what engineer-scoped assessment views join on.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - engineer_id is NOT NULL: every appointment belongs to one engineer.
    - appointment_number is unique (uq_appointments_appointment_number).
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from claimtech_kernel.db.base import TrackedBase, UUIDString


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Appointment(TrackedBase):
    __tablename__ = "appointments"

    __table_args__ = (
        UniqueConstraint("appointment_number", name="uq_appointments_appointment_number"),
        Index("idx_appointments_engineer", "engineer_id"),
    )

    # APT-YYYY-NNN
    appointment_number: Mapped[str] = mapped_column(String(50), nullable=False)

    inspection_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("inspections.id"),
        nullable=False,
    )

    request_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("requests.id"),
        nullable=False,
    )

    engineer_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("engineers.id"),
        nullable=False,
    )

    # in_person | digital
    appointment_type: Mapped[str] = mapped_column(String(20), nullable=False)

    appointment_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=AppointmentStatus.SCHEDULED.value,
    )

    location_address: Mapped[str | None] = mapped_column(String(500), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Appointment {self.appointment_number} engineer={self.engineer_id}>"
