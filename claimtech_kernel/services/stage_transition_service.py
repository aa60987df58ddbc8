"""
StageTransitionService -- the only sanctioned writer of ``assessment.stage``.

Responsibility:
    Moves an assessment from its current stage to a target stage, writing
    any linkage (inspection / appointment reference) first, enforcing the
    transition table and the linkage gate, creating the records the new
    stage needs and recording the change in the audit log.

Architecture position:
    Kernel > Services.  Called by WorkflowService and directly by action
    handlers.  Uses the pure domain tables in domain/stages.py and
    domain/gate.py.

Operation order (each step is a precondition for the next):
    1. Fresh read of the assessment row (populate_existing, FOR UPDATE).
    2. Transition legality against VALID_TRANSITIONS.  No writes yet.
    3. Linkage write, flushed on its own before the stage changes.
    4. Gate check against the now-current row.
    5. Stage write (+ legacy status, lifecycle timestamps), then the
       default child records configured for the new stage.
    6. One ``stage_changed`` audit entry (best-effort).
    7. Return the assessment.

    Steps 1-6 run in one savepoint: any failure leaves the assessment in
    its last stage with no linkage change and no child rows.

Failure modes:
    - AssessmentNotFoundError: unknown id.
    - InvalidTransitionError: target not reachable from the current stage.
    - LinkageConflictError: supplied linkage differs from a reference
      already on the row.
    - GateViolation: linkage not in the state the target stage requires.
      Logged at ERROR; reaching it means the caller offered an action the
      record was not ready for.
    - ChildRecordCreationError: propagated from the factory.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from claimtech_kernel.domain.actor import Actor
from claimtech_kernel.domain.clock import Clock
from claimtech_kernel.domain.gate import Linkage, validate_gate
from claimtech_kernel.domain.policies import WorkflowPolicy
from claimtech_kernel.domain.stages import LEGACY_STATUS, AssessmentStage, is_valid_transition
from claimtech_kernel.exceptions import (
    AssessmentNotFoundError,
    GateViolation,
    InvalidTransitionError,
    LinkageConflictError,
)
from claimtech_kernel.logging_config import LogContext, get_logger
from claimtech_kernel.models import Assessment, AuditAction
from claimtech_kernel.services.audit_log_service import AuditLogService
from claimtech_kernel.services.base import BaseService
from claimtech_kernel.services.child_record_factory import ChildRecordFactory

logger = get_logger("services.stage_transition")


class StageTransitionService(BaseService):
    """
    Usage:
        transitions = StageTransitionService(session, policy)
        assessment = transitions.transition(
            assessment_id,
            AssessmentStage.INSPECTION_SCHEDULED,
            linkage=Linkage(inspection_id=inspection.id),
            actor=actor,
        )
    """

    def __init__(
        self,
        session: Session,
        policy: WorkflowPolicy | None = None,
        clock: Clock | None = None,
        children: ChildRecordFactory | None = None,
        audit: AuditLogService | None = None,
    ):
        super().__init__(session, policy, clock)
        self._audit = audit or AuditLogService(session, self.policy, self.clock)
        self._children = children or ChildRecordFactory(
            session, self.policy, self.clock, audit=self._audit
        )

    def _load_for_update(self, assessment_id: UUID) -> Assessment:
        assessment = self.session.execute(
            select(Assessment)
            .where(Assessment.id == assessment_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if assessment is None:
            raise AssessmentNotFoundError(assessment_id)
        return assessment

    def _write_linkage(self, assessment: Assessment, linkage: Linkage | None) -> dict[str, str]:
        """Set supplied references not yet on the row.  Returns what was written."""
        if linkage is None:
            return {}

        written: dict[str, str] = {}
        for field, supplied in linkage.supplied().items():
            existing = getattr(assessment, field.value)
            if existing is None:
                setattr(assessment, field.value, supplied)
                written[field.value] = str(supplied)
            elif existing != supplied:
                logger.warning(
                    "linkage_conflict",
                    extra={"field": field.value, "existing": str(existing), "supplied": str(supplied)},
                )
                raise LinkageConflictError(field.value, existing, supplied)

        if written:
            self.session.flush()
            logger.info("linkage_written", extra={"linkage": written})
        return written

    def _apply_stage(self, assessment: Assessment, target: AssessmentStage, reason: str | None) -> None:
        now = self.clock.now()
        assessment.stage = target
        assessment.status = LEGACY_STATUS[target]

        if target is AssessmentStage.ASSESSMENT_IN_PROGRESS and assessment.started_at is None:
            assessment.started_at = now
        elif target is AssessmentStage.ESTIMATE_FINALIZED and assessment.estimate_finalized_at is None:
            assessment.estimate_finalized_at = now
        elif target is AssessmentStage.ARCHIVED:
            assessment.completed_at = now
        elif target is AssessmentStage.CANCELLED:
            assessment.cancelled_at = now
            assessment.cancellation_reason = reason

        self.session.flush()

    def transition(
        self,
        assessment_id: UUID,
        target_stage: AssessmentStage,
        linkage: Linkage | None = None,
        actor: Actor | None = None,
        reason: str | None = None,
    ) -> Assessment:
        """
        Move ``assessment_id`` to ``target_stage``.

        Args:
            assessment_id: Assessment to move.
            target_stage: Stage to enter.
            linkage: References to write before the stage changes.
            actor: Who is acting (defaults to the system actor).
            reason: Free text stored in the audit entry; also the
                cancellation reason when cancelling.

        Returns:
            The updated Assessment.
        """
        target = AssessmentStage(target_stage)
        actor = actor or Actor.system()

        with LogContext.bind(assessment_id=assessment_id, actor_id=actor.user_id):
            with self.session.begin_nested():
                assessment = self._load_for_update(assessment_id)
                from_stage = assessment.stage

                if not is_valid_transition(from_stage, target):
                    logger.warning(
                        "stage_transition_rejected",
                        extra={"from_stage": from_stage, "to_stage": target},
                    )
                    raise InvalidTransitionError(from_stage, target, assessment_id)

                written = self._write_linkage(assessment, linkage)

                try:
                    validate_gate(assessment, target)
                except GateViolation as exc:
                    logger.error(
                        "gate_violation",
                        extra={
                            "from_stage": from_stage,
                            "to_stage": target,
                            "field": exc.field,
                            "expected_state": exc.expected_state,
                        },
                    )
                    raise

                self._apply_stage(assessment, target, reason)
                ensured = self._children.ensure_for_stage(assessment.id, target, actor)

                self._audit.record_best_effort(
                    "assessment",
                    assessment.id,
                    AuditAction.STAGE_CHANGED,
                    changed_by=actor.user_id,
                    field_name="stage",
                    old_value=from_stage,
                    new_value=target,
                    details={
                        "linkage": written,
                        "reason": reason,
                        "children_ensured": sorted(kind.value for kind in ensured),
                    },
                )

            logger.info(
                "stage_transition_completed",
                extra={"from_stage": from_stage, "to_stage": target},
            )
        return assessment

