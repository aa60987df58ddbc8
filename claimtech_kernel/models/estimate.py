"""
Module: claimtech_kernel.models.estimate
Responsibility: Repair estimate and pre-incident estimate of an assessment.
    Both share the rate/markup/totals columns; line items are stored as JSON.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - One estimate and one pre-incident estimate per assessment.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import JSON, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from claimtech_kernel.db.base import TrackedBase, UUIDString


class _EstimateColumns:
    """Columns shared by both estimate tables."""

    @declared_attr
    def assessment_id(cls) -> Mapped[UUID]:
        return mapped_column(UUIDString(), ForeignKey("assessments.id"), nullable=False)

    labour_rate: Mapped[Decimal] = mapped_column(nullable=False)
    paint_rate: Mapped[Decimal] = mapped_column(nullable=False)
    vat_percentage: Mapped[Decimal] = mapped_column(nullable=False)
    oem_markup_percentage: Mapped[Decimal] = mapped_column(nullable=False)
    alt_markup_percentage: Mapped[Decimal] = mapped_column(nullable=False)
    second_hand_markup_percentage: Mapped[Decimal] = mapped_column(nullable=False)
    outwork_markup_percentage: Mapped[Decimal] = mapped_column(nullable=False)
    sundries_percentage: Mapped[Decimal] = mapped_column(nullable=False)

    line_items: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    subtotal: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    vat_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    total: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class AssessmentEstimate(_EstimateColumns, TrackedBase):
    __tablename__ = "assessment_estimates"

    __table_args__ = (
        UniqueConstraint("assessment_id", name="uq_assessment_estimates_assessment_id"),
    )


class PreIncidentEstimate(_EstimateColumns, TrackedBase):
    __tablename__ = "pre_incident_estimates"

    __table_args__ = (
        UniqueConstraint("assessment_id", name="uq_pre_incident_estimates_assessment_id"),
    )
