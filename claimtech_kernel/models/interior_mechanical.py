"""
Module: claimtech_kernel.models.interior_mechanical
Responsibility: Interior condition and mechanical checks (mileage, power,
    brakes, steering, SRS, transmission).
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from claimtech_kernel.db.base import TrackedBase, UUIDString


class AssessmentInteriorMechanical(TrackedBase):
    __tablename__ = "assessment_interior_mechanical"

    __table_args__ = (
        UniqueConstraint("assessment_id", name="uq_assessment_interior_mechanical_assessment_id"),
    )

    assessment_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("assessments.id"),
        nullable=False,
    )

    mileage_reading: Mapped[int | None] = mapped_column(Integer, nullable=True)
    interior_condition: Mapped[str | None] = mapped_column(String(50), nullable=True)
    transmission_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    vehicle_has_power: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    # Free-text check results
    srs_system: Mapped[str | None] = mapped_column(String(50), nullable=True)
    steering: Mapped[str | None] = mapped_column(String(50), nullable=True)
    brakes: Mapped[str | None] = mapped_column(String(50), nullable=True)
    handbrake: Mapped[str | None] = mapped_column(String(50), nullable=True)
