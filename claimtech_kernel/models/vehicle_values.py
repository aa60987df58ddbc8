"""
Module: claimtech_kernel.models.vehicle_values
Responsibility: Trade / market / retail valuation of the assessed vehicle.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from claimtech_kernel.db.base import TrackedBase, UUIDString


class AssessmentVehicleValues(TrackedBase):
    __tablename__ = "assessment_vehicle_values"

    __table_args__ = (
        UniqueConstraint("assessment_id", name="uq_assessment_vehicle_values_assessment_id"),
    )

    assessment_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("assessments.id"),
        nullable=False,
    )

    sourced_from: Mapped[str | None] = mapped_column(String(100), nullable=True)
    sourced_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    trade_value: Mapped[Decimal | None] = mapped_column(nullable=True)
    market_value: Mapped[Decimal | None] = mapped_column(nullable=True)
    retail_value: Mapped[Decimal | None] = mapped_column(nullable=True)

    warranty_status: Mapped[str | None] = mapped_column(String(50), nullable=True)

    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
