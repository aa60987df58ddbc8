"""
Module: claimtech_kernel.models.damage
Responsibility: The single damage record of an assessment (area, type,
    severity and the affected panels).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - One row per assessment (uq_assessment_damage_assessment_id).  The
      child-record factory relies on this to stay idempotent under races.
"""

from uuid import UUID

from sqlalchemy import JSON, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from claimtech_kernel.db.base import TrackedBase, UUIDString

# Fields an assessor must fill before the damage record counts as complete.
DAMAGE_REQUIRED_FIELDS: tuple[str, ...] = ("damage_area", "damage_type", "severity")


class AssessmentDamage(TrackedBase):
    __tablename__ = "assessment_damage"

    __table_args__ = (
        UniqueConstraint("assessment_id", name="uq_assessment_damage_assessment_id"),
    )

    assessment_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("assessments.id"),
        nullable=False,
    )

    # structural | non_structural
    damage_area: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # collision, hail, fire, ...
    damage_type: Mapped[str | None] = mapped_column(String(50), nullable=True)

    severity: Mapped[str | None] = mapped_column(String(20), nullable=True)

    affected_panels: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    damage_description: Mapped[str | None] = mapped_column(Text, nullable=True)

    estimated_repair_duration_days: Mapped[int | None] = mapped_column(nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
