"""
Module: claimtech_kernel.selectors.assessment_selector
Responsibility: Stage-filtered list views of assessments for the workflow
    screens, per-stage counts and the single-assessment detail view.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - The primary filter is always ``assessments.stage`` (indexed).  The
      legacy ``status`` column is never read for filtering.
    - Engineer scoping is a SQL predicate on the linked appointment's
      engineer, so counts and lists never include rows an engineer may not
      see.  Admins are unscoped.

Views:
    REQUESTS           request_submitted, request_reviewed
    INSPECTIONS        inspection_scheduled
    APPOINTMENTS       appointment_scheduled
    OPEN_ASSESSMENTS   assessment_in_progress, estimate_review, estimate_sent
    FINALIZED          estimate_finalized
    FRC                frc_in_progress
    ARCHIVE            archived, cancelled
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import Select, func, select

from claimtech_kernel.domain.actor import Actor
from claimtech_kernel.domain.policies import ChildRecordKind
from claimtech_kernel.domain.stages import AssessmentStage
from claimtech_kernel.domain.validation import missing_fields
from claimtech_kernel.models import (
    DAMAGE_REQUIRED_FIELDS,
    Appointment,
    Assessment,
    AssessmentDamage,
    AssessmentEstimate,
    AssessmentFRC,
    AssessmentInteriorMechanical,
    AssessmentTyre,
    AssessmentVehicleIdentification,
    AssessmentVehicleValues,
    Engineer,
    PreIncidentEstimate,
    Request,
)
from claimtech_kernel.selectors.base import BaseSelector


class WorkflowView(str, Enum):
    REQUESTS = "requests"
    INSPECTIONS = "inspections"
    APPOINTMENTS = "appointments"
    OPEN_ASSESSMENTS = "open_assessments"
    FINALIZED = "finalized"
    FRC = "frc"
    ARCHIVE = "archive"


VIEW_STAGES: dict[WorkflowView, frozenset[AssessmentStage]] = {
    WorkflowView.REQUESTS: frozenset({
        AssessmentStage.REQUEST_SUBMITTED,
        AssessmentStage.REQUEST_REVIEWED,
    }),
    WorkflowView.INSPECTIONS: frozenset({AssessmentStage.INSPECTION_SCHEDULED}),
    WorkflowView.APPOINTMENTS: frozenset({AssessmentStage.APPOINTMENT_SCHEDULED}),
    WorkflowView.OPEN_ASSESSMENTS: frozenset({
        AssessmentStage.ASSESSMENT_IN_PROGRESS,
        AssessmentStage.ESTIMATE_REVIEW,
        AssessmentStage.ESTIMATE_SENT,
    }),
    WorkflowView.FINALIZED: frozenset({AssessmentStage.ESTIMATE_FINALIZED}),
    WorkflowView.FRC: frozenset({AssessmentStage.FRC_IN_PROGRESS}),
    WorkflowView.ARCHIVE: frozenset({
        AssessmentStage.ARCHIVED,
        AssessmentStage.CANCELLED,
    }),
}


@dataclass(frozen=True)
class AssessmentListItem:
    id: UUID
    assessment_number: str
    stage: AssessmentStage
    request_id: UUID
    request_number: str
    claim_number: str | None
    owner_name: str | None
    vehicle_make: str | None
    vehicle_model: str | None
    vehicle_registration: str | None
    inspection_id: UUID | None
    appointment_id: UUID | None
    engineer_id: UUID | None
    engineer_name: str | None
    appointment_date: datetime | None
    created_at: datetime


@dataclass(frozen=True)
class AssessmentDetail:
    item: AssessmentListItem
    status: str
    started_at: datetime | None
    estimate_finalized_at: datetime | None
    completed_at: datetime | None
    cancelled_at: datetime | None
    cancellation_reason: str | None
    child_records: dict[ChildRecordKind, bool]
    tyre_positions: tuple[str, ...]
    damage_missing_fields: tuple[str, ...]

    @property
    def stage(self) -> AssessmentStage:
        return self.item.stage


_ONE_TO_ONE_CHILDREN = {
    ChildRecordKind.DAMAGE: AssessmentDamage,
    ChildRecordKind.VEHICLE_VALUES: AssessmentVehicleValues,
    ChildRecordKind.ESTIMATE: AssessmentEstimate,
    ChildRecordKind.PRE_INCIDENT_ESTIMATE: PreIncidentEstimate,
    ChildRecordKind.VEHICLE_IDENTIFICATION: AssessmentVehicleIdentification,
    ChildRecordKind.INTERIOR_MECHANICAL: AssessmentInteriorMechanical,
    ChildRecordKind.FRC: AssessmentFRC,
}


class AssessmentSelector(BaseSelector):
    """
    Usage:
        selector = AssessmentSelector(session)
        rows = selector.list_view(WorkflowView.OPEN_ASSESSMENTS, actor)
    """

    def _base_query(self) -> Select:
        return (
            select(
                Assessment,
                Request.request_number,
                Request.claim_number,
                Request.owner_name,
                Request.vehicle_make,
                Request.vehicle_model,
                Request.vehicle_registration,
                Appointment.engineer_id,
                Appointment.appointment_date,
                Engineer.name,
            )
            .join(Request, Request.id == Assessment.request_id)
            .outerjoin(Appointment, Appointment.id == Assessment.appointment_id)
            .outerjoin(Engineer, Engineer.id == Appointment.engineer_id)
        )

    @staticmethod
    def _scoped(stmt: Select, actor: Actor) -> Select:
        if actor.is_admin:
            return stmt
        return stmt.where(Appointment.engineer_id == actor.engineer_id)

    @staticmethod
    def _to_item(row) -> AssessmentListItem:
        (
            assessment,
            request_number,
            claim_number,
            owner_name,
            vehicle_make,
            vehicle_model,
            vehicle_registration,
            engineer_id,
            appointment_date,
            engineer_name,
        ) = row
        return AssessmentListItem(
            id=assessment.id,
            assessment_number=assessment.assessment_number,
            stage=assessment.stage,
            request_id=assessment.request_id,
            request_number=request_number,
            claim_number=claim_number,
            owner_name=owner_name,
            vehicle_make=vehicle_make,
            vehicle_model=vehicle_model,
            vehicle_registration=vehicle_registration,
            inspection_id=assessment.inspection_id,
            appointment_id=assessment.appointment_id,
            engineer_id=engineer_id,
            engineer_name=engineer_name,
            appointment_date=appointment_date,
            created_at=assessment.created_at,
        )

    def list_by_stage(self, stages: Iterable[AssessmentStage], actor: Actor) -> list[AssessmentListItem]:
        """
        Assessments in any of ``stages`` visible to ``actor``, newest first.

        An empty ``stages`` returns an empty list.
        """
        wanted = sorted({AssessmentStage(s) for s in stages}, key=lambda s: s.value)
        if not wanted:
            return []

        stmt = self._scoped(
            self._base_query().where(Assessment.stage.in_(wanted)),
            actor,
        ).order_by(Assessment.created_at.desc(), Assessment.assessment_number.desc())

        return [self._to_item(row) for row in self.session.execute(stmt)]

    def list_view(self, view: WorkflowView, actor: Actor) -> list[AssessmentListItem]:
        return self.list_by_stage(VIEW_STAGES[WorkflowView(view)], actor)

    def count_by_stage(self, actor: Actor) -> dict[AssessmentStage, int]:
        """Visible assessment count per stage; stages with none map to 0."""
        stmt = (
            select(Assessment.stage, func.count(Assessment.id))
            .outerjoin(Appointment, Appointment.id == Assessment.appointment_id)
            .group_by(Assessment.stage)
        )
        stmt = self._scoped(stmt, actor)
        counts = {stage: 0 for stage in AssessmentStage}
        for stage, count in self.session.execute(stmt):
            counts[AssessmentStage(stage)] = count
        return counts

    def count_by_view(self, actor: Actor) -> dict[WorkflowView, int]:
        counts = self.count_by_stage(actor)
        return {
            view: sum(counts[stage] for stage in stages)
            for view, stages in VIEW_STAGES.items()
        }

    def get_detail(self, assessment_id: UUID, actor: Actor) -> AssessmentDetail | None:
        """
        Full view of one assessment, or None if it does not exist or
        ``actor`` may not see it.
        """
        row = self.session.execute(
            self._scoped(self._base_query().where(Assessment.id == assessment_id), actor)
        ).one_or_none()
        if row is None:
            return None

        assessment = row[0]
        child_records: dict[ChildRecordKind, bool] = {}
        damage = None
        for kind, model in _ONE_TO_ONE_CHILDREN.items():
            record = self.session.execute(
                select(model).where(model.assessment_id == assessment_id)
            ).scalar_one_or_none()
            child_records[kind] = record is not None
            if kind is ChildRecordKind.DAMAGE:
                damage = record

        positions = tuple(sorted(
            self.session.execute(
                select(AssessmentTyre.position).where(AssessmentTyre.assessment_id == assessment_id)
            ).scalars()
        ))
        child_records[ChildRecordKind.TYRES] = bool(positions)

        if damage is None:
            damage_missing = DAMAGE_REQUIRED_FIELDS
        else:
            damage_missing = missing_fields(damage, DAMAGE_REQUIRED_FIELDS)

        return AssessmentDetail(
            item=self._to_item(row),
            status=assessment.status,
            started_at=assessment.started_at,
            estimate_finalized_at=assessment.estimate_finalized_at,
            completed_at=assessment.completed_at,
            cancelled_at=assessment.cancelled_at,
            cancellation_reason=assessment.cancellation_reason,
            child_records=child_records,
            tyre_positions=positions,
            damage_missing_fields=damage_missing,
        )
