"""
Module: claimtech_kernel.models.inspection
Responsibility: ORM persistence for inspections scheduled against a request.
    Linking an inspection to the assessment is what unlocks the
    inspection_scheduled stage.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from claimtech_kernel.db.base import TrackedBase, UUIDString


class InspectionStatus(str, Enum):
    PENDING = "pending"
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Inspection(TrackedBase):
    __tablename__ = "inspections"

    __table_args__ = (
        UniqueConstraint("inspection_number", name="uq_inspections_inspection_number"),
        Index("idx_inspections_request", "request_id"),
    )

    # INS-YYYY-NNN
    inspection_number: Mapped[str] = mapped_column(String(50), nullable=False)

    request_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("requests.id"),
        nullable=False,
    )

    assigned_engineer_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("engineers.id"),
        nullable=True,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=InspectionStatus.PENDING.value,
    )

    scheduled_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    inspection_location: Mapped[str | None] = mapped_column(String(500), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Inspection {self.inspection_number} ({self.status})>"
