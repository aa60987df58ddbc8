"""
Module: claimtech_kernel.models.vehicle_identification
Responsibility: Identification details captured on site: registration,
    VIN, engine number, licence disc and driver licence.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from claimtech_kernel.db.base import TrackedBase, UUIDString


class AssessmentVehicleIdentification(TrackedBase):
    __tablename__ = "assessment_vehicle_identification"

    __table_args__ = (
        UniqueConstraint("assessment_id", name="uq_assessment_vehicle_identification_assessment_id"),
    )

    assessment_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("assessments.id"),
        nullable=False,
    )

    registration_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    vin_number: Mapped[str | None] = mapped_column(String(17), nullable=True)
    engine_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    license_disc_expiry: Mapped[date | None] = mapped_column(Date, nullable=True)
    driver_license_number: Mapped[str | None] = mapped_column(String(50), nullable=True)

    vehicle_make: Mapped[str | None] = mapped_column(String(100), nullable=True)
    vehicle_model: Mapped[str | None] = mapped_column(String(100), nullable=True)
    vehicle_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
