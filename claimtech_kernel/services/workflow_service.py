"""
WorkflowService -- one entry point per workflow action.

Responsibility:
    Thin facade the action handlers call ("Submit Request", "Accept
    Request", "Schedule Appointment", "Start Assessment", ...).  Actions that
    create a peer record (request, inspection, appointment) create it with a
    business number and move the assessment in the same savepoint; the rest
    are single transitions.

Architecture position:
    Kernel > Services.  Composes NumberingService, StageTransitionService
    and AuditLogService.  Owns no stage logic of its own.

Invariants enforced:
    - Every request gets exactly one assessment, created in the same unit
      of work as the request (uq_assessments_request_id backs this).
    - A peer record is only created when the transition it feeds is legal;
      legality is checked before the insert so an illegal action leaves no
      orphan inspection or appointment.

Failure modes:
    - RequestValidationError for incomplete drafts.
    - EngineerNotFoundError for unknown or inactive engineers.
    - Any StageTransitionService or NumberingService error.
"""

from typing import NamedTuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from claimtech_kernel.domain.actor import Actor
from claimtech_kernel.domain.clock import Clock
from claimtech_kernel.domain.dtos import AppointmentDraft, InspectionDraft, RequestDraft
from claimtech_kernel.domain.gate import Linkage
from claimtech_kernel.domain.policies import NumberedEntity, WorkflowPolicy
from claimtech_kernel.domain.stages import AssessmentStage, is_valid_transition
from claimtech_kernel.exceptions import (
    AssessmentNotFoundError,
    EngineerNotFoundError,
    InvalidTransitionError,
    RequestNotFoundError,
)
from claimtech_kernel.logging_config import LogContext, get_logger
from claimtech_kernel.models import (
    Appointment,
    AppointmentStatus,
    Assessment,
    AuditAction,
    Engineer,
    Inspection,
    InspectionStatus,
    Request,
    RequestStatus,
)
from claimtech_kernel.services.audit_log_service import AuditLogService
from claimtech_kernel.services.base import BaseService
from claimtech_kernel.services.numbering_service import NumberingService
from claimtech_kernel.services.stage_transition_service import StageTransitionService

logger = get_logger("services.workflow")


class RequestSubmission(NamedTuple):
    request: Request
    assessment: Assessment


class WorkflowService(BaseService):

    def __init__(
        self,
        session: Session,
        policy: WorkflowPolicy | None = None,
        clock: Clock | None = None,
        numbering: NumberingService | None = None,
        transitions: StageTransitionService | None = None,
    ):
        super().__init__(session, policy, clock)
        self.audit = AuditLogService(session, self.policy, self.clock)
        self.numbering = numbering or NumberingService(session, self.policy, self.clock)
        self.transitions = transitions or StageTransitionService(
            session, self.policy, self.clock, audit=self.audit
        )

    # -- lookups -------------------------------------------------------------

    def _assessment(self, assessment_id: UUID) -> Assessment:
        assessment = self.session.get(Assessment, assessment_id, populate_existing=True)
        if assessment is None:
            raise AssessmentNotFoundError(assessment_id)
        return assessment

    def _request(self, request_id: UUID) -> Request:
        request = self.session.get(Request, request_id)
        if request is None:
            raise RequestNotFoundError(request_id)
        return request

    def _active_engineer(self, engineer_id: UUID) -> Engineer:
        engineer = self.session.get(Engineer, engineer_id)
        if engineer is None or not engineer.is_active:
            raise EngineerNotFoundError(engineer_id)
        return engineer

    def _assessment_for_request(self, request_id: UUID) -> Assessment | None:
        return self.session.execute(
            select(Assessment).where(Assessment.request_id == request_id)
        ).scalar_one_or_none()

    def _require_legal(self, assessment: Assessment, target: AssessmentStage) -> None:
        if not is_valid_transition(assessment.stage, target):
            raise InvalidTransitionError(assessment.stage, target, assessment.id)

    # -- request intake ------------------------------------------------------

    def submit_request(self, draft: RequestDraft, actor: Actor) -> RequestSubmission:
        """Create a numbered request and its assessment in one unit of work."""
        draft.validate()
        if draft.assigned_engineer_id is not None:
            self._active_engineer(draft.assigned_engineer_id)

        with self.session.begin_nested():
            request = self.numbering.create_numbered(
                NumberedEntity.REQUEST,
                lambda number: Request(
                    request_number=number,
                    request_type=draft.request_type.value,
                    status=RequestStatus.SUBMITTED.value,
                    claim_number=draft.claim_number,
                    insurer_name=draft.insurer_name,
                    owner_name=draft.owner_name,
                    owner_phone=draft.owner_phone,
                    owner_email=draft.owner_email,
                    vehicle_make=draft.vehicle_make,
                    vehicle_model=draft.vehicle_model,
                    vehicle_year=draft.vehicle_year,
                    vehicle_registration=draft.vehicle_registration,
                    vehicle_vin=draft.vehicle_vin,
                    incident_date=draft.incident_date,
                    incident_description=draft.incident_description,
                    assigned_engineer_id=draft.assigned_engineer_id,
                    created_by_id=actor.user_id,
                ),
            )
            with LogContext.bind(request_id=request.id, actor_id=actor.user_id):
                self.audit.record_best_effort(
                    "request",
                    request.id,
                    AuditAction.CREATED,
                    changed_by=actor.user_id,
                    field_name="request_number",
                    new_value=request.request_number,
                )
                assessment = self.create_assessment_for_request(request.id, actor)
                logger.info(
                    "request_submitted",
                    extra={
                        "request_number": request.request_number,
                        "assessment_number": assessment.assessment_number,
                    },
                )
        return RequestSubmission(request, assessment)

    def create_assessment_for_request(self, request_id: UUID, actor: Actor) -> Assessment:
        """
        The assessment for ``request_id``, created at request_submitted if it
        does not exist yet.  Safe to call repeatedly.
        """
        self._request(request_id)
        existing = self._assessment_for_request(request_id)
        if existing is not None:
            return existing

        try:
            assessment = self.numbering.create_numbered(
                NumberedEntity.ASSESSMENT,
                lambda number: Assessment(
                    assessment_number=number,
                    request_id=request_id,
                    stage=AssessmentStage.REQUEST_SUBMITTED,
                    created_by_id=actor.user_id,
                ),
            )
        except IntegrityError:
            existing = self._assessment_for_request(request_id)
            if existing is None:
                raise
            logger.info("assessment_creation_race_resolved", extra={"assessment_id": str(existing.id)})
            return existing

        self.audit.record_best_effort(
            "assessment",
            assessment.id,
            AuditAction.CREATED,
            changed_by=actor.user_id,
            field_name="stage",
            new_value=assessment.stage,
            details={"assessment_number": assessment.assessment_number},
        )
        logger.info(
            "assessment_created",
            extra={"assessment_id": str(assessment.id), "assessment_number": assessment.assessment_number},
        )
        return assessment

    def accept_request(self, assessment_id: UUID, actor: Actor) -> Assessment:
        assessment = self.transitions.transition(assessment_id, AssessmentStage.REQUEST_REVIEWED, actor=actor)
        self._request(assessment.request_id).status = RequestStatus.IN_PROGRESS.value
        self.session.flush()
        return assessment

    # -- scheduling ----------------------------------------------------------

    def schedule_inspection(
        self,
        assessment_id: UUID,
        draft: InspectionDraft,
        actor: Actor,
    ) -> Assessment:
        """Create a numbered inspection and enter inspection_scheduled with it linked."""
        assessment = self._assessment(assessment_id)
        self._require_legal(assessment, AssessmentStage.INSPECTION_SCHEDULED)
        if draft.assigned_engineer_id is not None:
            self._active_engineer(draft.assigned_engineer_id)

        with self.session.begin_nested():
            inspection = self.numbering.create_numbered(
                NumberedEntity.INSPECTION,
                lambda number: Inspection(
                    inspection_number=number,
                    request_id=assessment.request_id,
                    assigned_engineer_id=draft.assigned_engineer_id,
                    status=InspectionStatus.SCHEDULED.value,
                    scheduled_date=draft.scheduled_date,
                    inspection_location=draft.inspection_location,
                    notes=draft.notes,
                    created_by_id=actor.user_id,
                ),
            )
            return self.transitions.transition(
                assessment_id,
                AssessmentStage.INSPECTION_SCHEDULED,
                linkage=Linkage(inspection_id=inspection.id),
                actor=actor,
            )

    def schedule_appointment(
        self,
        assessment_id: UUID,
        draft: AppointmentDraft,
        actor: Actor,
    ) -> Assessment:
        """Create a numbered appointment and enter appointment_scheduled with it linked."""
        draft.validate()
        assessment = self._assessment(assessment_id)
        self._require_legal(assessment, AssessmentStage.APPOINTMENT_SCHEDULED)
        self._active_engineer(draft.engineer_id)

        with self.session.begin_nested():
            appointment = self.numbering.create_numbered(
                NumberedEntity.APPOINTMENT,
                lambda number: Appointment(
                    appointment_number=number,
                    inspection_id=assessment.inspection_id,
                    request_id=assessment.request_id,
                    engineer_id=draft.engineer_id,
                    appointment_type=draft.appointment_type.value,
                    appointment_date=draft.appointment_date,
                    status=AppointmentStatus.SCHEDULED.value,
                    location_address=draft.location_address,
                    notes=draft.notes,
                    created_by_id=actor.user_id,
                ),
            )
            return self.transitions.transition(
                assessment_id,
                AssessmentStage.APPOINTMENT_SCHEDULED,
                linkage=Linkage(appointment_id=appointment.id),
                actor=actor,
            )

    # -- assessment and estimate ---------------------------------------------

    def start_assessment(self, assessment_id: UUID, actor: Actor) -> Assessment:
        return self.transitions.transition(assessment_id, AssessmentStage.ASSESSMENT_IN_PROGRESS, actor=actor)

    def submit_for_review(self, assessment_id: UUID, actor: Actor) -> Assessment:
        return self.transitions.transition(assessment_id, AssessmentStage.ESTIMATE_REVIEW, actor=actor)

    def send_estimate(self, assessment_id: UUID, actor: Actor) -> Assessment:
        return self.transitions.transition(assessment_id, AssessmentStage.ESTIMATE_SENT, actor=actor)

    def finalize_estimate(self, assessment_id: UUID, actor: Actor) -> Assessment:
        return self.transitions.transition(assessment_id, AssessmentStage.ESTIMATE_FINALIZED, actor=actor)

    def start_frc(self, assessment_id: UUID, actor: Actor) -> Assessment:
        return self.transitions.transition(assessment_id, AssessmentStage.FRC_IN_PROGRESS, actor=actor)

    # -- terminal ------------------------------------------------------------

    def archive(self, assessment_id: UUID, actor: Actor, reason: str | None = None) -> Assessment:
        assessment = self.transitions.transition(
            assessment_id, AssessmentStage.ARCHIVED, actor=actor, reason=reason
        )
        self._request(assessment.request_id).status = RequestStatus.COMPLETED.value
        self.session.flush()
        return assessment

    def cancel(self, assessment_id: UUID, actor: Actor, reason: str | None = None) -> Assessment:
        assessment = self.transitions.transition(
            assessment_id, AssessmentStage.CANCELLED, actor=actor, reason=reason
        )
        self._request(assessment.request_id).status = RequestStatus.CANCELLED.value
        self.session.flush()
        return assessment
