"""
Module: claimtech_kernel.models.tyre
Responsibility: Per-position tyre rows of an assessment.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - At most one row per (assessment_id, position)
      (uq_assessment_tyres_assessment_position).  Default rows are inserted
      with ON CONFLICT DO NOTHING against this key.
"""

from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import ForeignKey, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from claimtech_kernel.db.base import TrackedBase, UUIDString


class TyrePosition(str, Enum):
    FRONT_LEFT = "front_left"
    FRONT_RIGHT = "front_right"
    REAR_LEFT = "rear_left"
    REAR_RIGHT = "rear_right"


class AssessmentTyre(TrackedBase):
    __tablename__ = "assessment_tyres"

    __table_args__ = (
        UniqueConstraint(
            "assessment_id",
            "position",
            name="uq_assessment_tyres_assessment_position",
        ),
    )

    assessment_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("assessments.id"),
        nullable=False,
    )

    position: Mapped[str] = mapped_column(String(20), nullable=False)

    position_label: Mapped[str | None] = mapped_column(String(50), nullable=True)

    tyre_make: Mapped[str | None] = mapped_column(String(100), nullable=True)

    tyre_size: Mapped[str | None] = mapped_column(String(50), nullable=True)

    tread_depth_mm: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)

    condition: Mapped[str | None] = mapped_column(String(20), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
