"""
Module: claimtech_kernel.models.assessment
Responsibility: ORM persistence for the Assessment aggregate root -- the
    record that moves through the workflow stages.
Architecture position: Kernel > Models.  Imports db/base.py and the pure
    stage/gate definitions from domain/ (zero I/O) so the database enum and
    CHECK constraint are generated from the same tables the services use.

Invariants enforced:
    - stage is a database enum (assessment_stage); unknown values are
      rejected by the database.
    - request_id is NOT NULL and UNIQUE: one assessment per request.
    - ck_assessments_stage_linkage: inspection_id is NOT NULL from
      inspection_scheduled onward, appointment_id from
      appointment_scheduled onward (terminal stages excepted).
    - status is a legacy mirror of stage, kept in sync on every transition
      and never used for filtering.

Failure modes:
    - IntegrityError on a second assessment for the same request
      (uq_assessments_request_id) or duplicate assessment_number.
    - IntegrityError when a stage write would break the linkage CHECK
      (only reachable by bypassing StageTransitionService).
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from claimtech_kernel.db.base import TrackedBase, UUIDString
from claimtech_kernel.domain.gate import linkage_check_sql
from claimtech_kernel.domain.stages import LEGACY_STATUS, AssessmentStage


def _stage_values(enum_cls):
    return [member.value for member in enum_cls]


class Assessment(TrackedBase):
    __tablename__ = "assessments"

    __table_args__ = (
        UniqueConstraint("request_id", name="uq_assessments_request_id"),
        UniqueConstraint("assessment_number", name="uq_assessments_assessment_number"),
        CheckConstraint(linkage_check_sql("stage"), name="ck_assessments_stage_linkage"),
        Index("idx_assessments_stage", "stage"),
        Index("idx_assessments_appointment", "appointment_id"),
    )

    # ASM-YYYY-NNN
    assessment_number: Mapped[str] = mapped_column(String(50), nullable=False)

    request_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("requests.id"),
        nullable=False,
    )

    inspection_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("inspections.id"),
        nullable=True,
    )

    appointment_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("appointments.id"),
        nullable=True,
    )

    # Source of truth for workflow position
    stage: Mapped[AssessmentStage] = mapped_column(
        SAEnum(
            AssessmentStage,
            name="assessment_stage",
            values_callable=_stage_values,
            create_constraint=True,
            validate_strings=True,
        ),
        nullable=False,
        default=AssessmentStage.REQUEST_SUBMITTED,
    )

    # Legacy mirror of stage
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=LEGACY_STATUS[AssessmentStage.REQUEST_SUBMITTED],
    )

    # UI bookkeeping
    current_tab: Mapped[str | None] = mapped_column(String(50), nullable=True)
    tabs_completed: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    # Lifecycle timestamps
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    estimate_finalized_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    @property
    def is_terminal(self) -> bool:
        return self.stage in (AssessmentStage.ARCHIVED, AssessmentStage.CANCELLED)

    def __repr__(self) -> str:
        return f"<Assessment {self.assessment_number} [{self.stage.value if self.stage else None}]>"
