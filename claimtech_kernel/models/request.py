"""
Module: claimtech_kernel.models.request
Responsibility: ORM persistence for incoming assessment requests (insurance
    claims and private jobs).  A request is the root every other record of
    a job hangs off; exactly one assessment exists per request.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - request_number is unique (uq_requests_request_number).  The name is
      what the number allocator matches on when it retries.

Failure modes:
    - IntegrityError on duplicate request_number.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from claimtech_kernel.db.base import TrackedBase, UUIDString


class RequestStatus(str, Enum):
    SUBMITTED = "submitted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Request(TrackedBase):
    __tablename__ = "requests"

    __table_args__ = (
        UniqueConstraint("request_number", name="uq_requests_request_number"),
        Index("idx_requests_status", "status"),
    )

    # REQ-YYYY-NNN
    request_number: Mapped[str] = mapped_column(String(50), nullable=False)

    # insurance | private
    request_type: Mapped[str] = mapped_column(String(20), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=RequestStatus.SUBMITTED.value,
    )

    claim_number: Mapped[str | None] = mapped_column(String(100), nullable=True)

    insurer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Owner
    owner_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    owner_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    owner_email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Vehicle
    vehicle_make: Mapped[str | None] = mapped_column(String(100), nullable=True)
    vehicle_model: Mapped[str | None] = mapped_column(String(100), nullable=True)
    vehicle_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    vehicle_registration: Mapped[str | None] = mapped_column(String(50), nullable=True)
    vehicle_vin: Mapped[str | None] = mapped_column(String(50), nullable=True)

    incident_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    incident_description: Mapped[str | None] = mapped_column(Text, nullable=True)

    assigned_engineer_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("engineers.id"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Request {self.request_number} ({self.status})>"
