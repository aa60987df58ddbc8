"""
Module: claimtech_kernel.models.frc
Responsibility: Final Repair Costing record, created when an assessment
    enters frc_in_progress.  Compares quoted against actual repair costs and
    carries the sign-off.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import JSON, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from claimtech_kernel.db.base import TrackedBase, UUIDString


class FRCStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class AssessmentFRC(TrackedBase):
    __tablename__ = "assessment_frc"

    __table_args__ = (
        UniqueConstraint("assessment_id", name="uq_assessment_frc_assessment_id"),
    )

    assessment_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("assessments.id"),
        nullable=False,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=FRCStatus.NOT_STARTED.value,
    )

    line_items: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    quoted_total: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    actual_total: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    signed_off_by_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    signed_off_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
