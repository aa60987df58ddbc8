"""
ChildRecordFactory -- idempotent creation of an assessment's default records.

Responsibility:
    Makes sure the dependent records a stage needs exist, creating them with
    configured defaults the first time and returning the existing rows on
    every later call (double-click, retry, page reload, concurrent request).

Architecture position:
    Kernel > Services.  Called by StageTransitionService on stage entry and
    directly by callers that render a tab needing the record.

Idempotency patterns:
    1:1 records (damage, vehicle values, estimate, pre-incident estimate,
    vehicle identification, interior and mechanical, FRC) -- check-then-create:

        SELECT ... WHERE assessment_id = :id      -> found: return it
        SAVEPOINT; INSERT defaults; RELEASE        -> created: audit, return
        IntegrityError -> ROLLBACK TO SAVEPOINT; SELECT again -> winner

    Tyres -- one ``INSERT ... ON CONFLICT (assessment_id, position)
    DO NOTHING`` for every configured position, then read the set back.

Invariants enforced:
    - Any number of calls for one assessment leaves exactly one row per
      1:1 record type and exactly one tyre row per position.  The unique
      constraints on the child tables are the backstop under concurrency.
    - One ``default_created`` audit entry per row actually inserted.

Failure modes:
    - ChildRecordCreationError when the insert fails for any reason other
      than losing a race (unknown assessment, database error).
"""

from typing import Any, Callable
from uuid import UUID, uuid4

from sqlalchemy import insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from claimtech_kernel.db.base import Base
from claimtech_kernel.domain.actor import Actor
from claimtech_kernel.domain.clock import Clock
from claimtech_kernel.domain.policies import ChildRecordKind, WorkflowPolicy
from claimtech_kernel.domain.stages import AssessmentStage
from claimtech_kernel.exceptions import ChildRecordCreationError
from claimtech_kernel.logging_config import get_logger
from claimtech_kernel.models import (
    AssessmentDamage,
    AssessmentEstimate,
    AssessmentFRC,
    AssessmentInteriorMechanical,
    AssessmentTyre,
    AssessmentVehicleIdentification,
    AssessmentVehicleValues,
    AuditAction,
    FRCStatus,
    PreIncidentEstimate,
)
from claimtech_kernel.services.audit_log_service import AuditLogService
from claimtech_kernel.services.base import BaseService

logger = get_logger("services.child_record_factory")

SINGLE_RECORD_MODELS: dict[ChildRecordKind, type[Base]] = {
    ChildRecordKind.DAMAGE: AssessmentDamage,
    ChildRecordKind.VEHICLE_VALUES: AssessmentVehicleValues,
    ChildRecordKind.ESTIMATE: AssessmentEstimate,
    ChildRecordKind.PRE_INCIDENT_ESTIMATE: PreIncidentEstimate,
    ChildRecordKind.VEHICLE_IDENTIFICATION: AssessmentVehicleIdentification,
    ChildRecordKind.INTERIOR_MECHANICAL: AssessmentInteriorMechanical,
    ChildRecordKind.FRC: AssessmentFRC,
}


def _position_label(position: str) -> str:
    return position.replace("_", " ").title()


class ChildRecordFactory(BaseService):
    """
    Usage:
        factory = ChildRecordFactory(session, policy)
        damage = factory.create_default_damage(assessment.id)
        factory.ensure_for_stage(assessment.id, AssessmentStage.ASSESSMENT_IN_PROGRESS)
    """

    def __init__(
        self,
        session: Session,
        policy: WorkflowPolicy | None = None,
        clock: Clock | None = None,
        audit: AuditLogService | None = None,
    ):
        super().__init__(session, policy, clock)
        self._audit = audit or AuditLogService(session, self.policy, self.clock)

    # -- 1:1 records ---------------------------------------------------------

    def _fetch(self, model: type[Base], assessment_id: UUID):
        return self.session.execute(
            select(model)
            .where(model.assessment_id == assessment_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def _defaults_for(self, kind: ChildRecordKind) -> dict[str, Any]:
        if kind is ChildRecordKind.DAMAGE:
            return {
                "damage_area": self.policy.damage.damage_area,
                "damage_type": self.policy.damage.damage_type,
            }
        if kind in (ChildRecordKind.ESTIMATE, ChildRecordKind.PRE_INCIDENT_ESTIMATE):
            est = self.policy.estimate
            return {
                "labour_rate": est.labour_rate,
                "paint_rate": est.paint_rate,
                "vat_percentage": est.vat_percentage,
                "oem_markup_percentage": est.oem_markup_percentage,
                "alt_markup_percentage": est.alt_markup_percentage,
                "second_hand_markup_percentage": est.second_hand_markup_percentage,
                "outwork_markup_percentage": est.outwork_markup_percentage,
                "sundries_percentage": est.sundries_percentage,
                "currency": est.currency,
            }
        if kind is ChildRecordKind.FRC:
            return {"status": FRCStatus.NOT_STARTED.value}
        return {}

    def _get_or_create(self, kind: ChildRecordKind, assessment_id: UUID, actor: Actor | None):
        model = SINGLE_RECORD_MODELS[kind]
        existing = self._fetch(model, assessment_id)
        if existing is not None:
            return existing

        savepoint = self.session.begin_nested()
        try:
            row = model(
                assessment_id=assessment_id,
                created_by_id=actor.user_id if actor else None,
                **self._defaults_for(kind),
            )
            self.session.add(row)
            self.session.flush()
            savepoint.commit()
        except IntegrityError as exc:
            savepoint.rollback()
            winner = self._fetch(model, assessment_id)
            if winner is not None:
                logger.info(
                    "child_record_race_resolved",
                    extra={"record_type": kind.value, "assessment_id": str(assessment_id)},
                )
                return winner
            logger.error(
                "child_record_creation_failed",
                extra={"record_type": kind.value, "assessment_id": str(assessment_id)},
            )
            raise ChildRecordCreationError(kind.value, assessment_id, str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            savepoint.rollback()
            logger.error(
                "child_record_creation_failed",
                extra={"record_type": kind.value, "assessment_id": str(assessment_id)},
            )
            raise ChildRecordCreationError(kind.value, assessment_id, str(exc)) from exc

        logger.info(
            "child_record_created",
            extra={"record_type": kind.value, "assessment_id": str(assessment_id), "record_id": str(row.id)},
        )
        self._audit.record_best_effort(
            "assessment",
            assessment_id,
            AuditAction.DEFAULT_CREATED,
            changed_by=actor.user_id if actor else None,
            field_name=kind.value,
            new_value=row.id,
        )
        return row

    def create_default_damage(self, assessment_id: UUID, actor: Actor | None = None) -> AssessmentDamage:
        return self._get_or_create(ChildRecordKind.DAMAGE, assessment_id, actor)

    def create_default_vehicle_values(
        self, assessment_id: UUID, actor: Actor | None = None
    ) -> AssessmentVehicleValues:
        return self._get_or_create(ChildRecordKind.VEHICLE_VALUES, assessment_id, actor)

    def create_default_estimate(self, assessment_id: UUID, actor: Actor | None = None) -> AssessmentEstimate:
        return self._get_or_create(ChildRecordKind.ESTIMATE, assessment_id, actor)

    def create_default_pre_incident_estimate(
        self, assessment_id: UUID, actor: Actor | None = None
    ) -> PreIncidentEstimate:
        return self._get_or_create(ChildRecordKind.PRE_INCIDENT_ESTIMATE, assessment_id, actor)

    def create_default_vehicle_identification(
        self, assessment_id: UUID, actor: Actor | None = None
    ) -> AssessmentVehicleIdentification:
        return self._get_or_create(ChildRecordKind.VEHICLE_IDENTIFICATION, assessment_id, actor)

    def create_default_interior_mechanical(
        self, assessment_id: UUID, actor: Actor | None = None
    ) -> AssessmentInteriorMechanical:
        return self._get_or_create(ChildRecordKind.INTERIOR_MECHANICAL, assessment_id, actor)

    def create_default_frc(self, assessment_id: UUID, actor: Actor | None = None) -> AssessmentFRC:
        return self._get_or_create(ChildRecordKind.FRC, assessment_id, actor)

    # -- tyres ---------------------------------------------------------------

    def _tyres(self, assessment_id: UUID) -> list[AssessmentTyre]:
        rows = self.session.execute(
            select(AssessmentTyre)
            .where(AssessmentTyre.assessment_id == assessment_id)
            .execution_options(populate_existing=True)
        ).scalars().all()
        order = {position: i for i, position in enumerate(self.policy.tyre_positions)}
        return sorted(rows, key=lambda t: order.get(t.position, len(order)))

    def _upsert_statement(self, rows: list[dict[str, Any]]):
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = postgresql.insert(AssessmentTyre.__table__)
        elif dialect == "sqlite":
            stmt = sqlite.insert(AssessmentTyre.__table__)
        else:
            return None
        return (
            stmt.values(rows)
            .on_conflict_do_nothing(index_elements=["assessment_id", "position"])
            .returning(AssessmentTyre.__table__.c.position)
        )

    def create_default_tyres(self, assessment_id: UUID, actor: Actor | None = None) -> list[AssessmentTyre]:
        """
        One tyre row per configured position.  Existing rows are left as
        they are.
        """
        now = self.clock.now()
        rows = [
            {
                "id": uuid4(),
                "assessment_id": assessment_id,
                "position": position,
                "position_label": _position_label(position),
                "created_by_id": actor.user_id if actor else None,
                "created_at": now,
                "updated_at": now,
            }
            for position in self.policy.tyre_positions
        ]

        savepoint = self.session.begin_nested()
        try:
            stmt = self._upsert_statement(rows)
            if stmt is None:
                inserted = self._insert_missing_tyres(assessment_id, rows)
            else:
                inserted = list(self.session.execute(stmt).scalars())
            savepoint.commit()
        except SQLAlchemyError as exc:
            savepoint.rollback()
            logger.error(
                "child_record_creation_failed",
                extra={"record_type": ChildRecordKind.TYRES.value, "assessment_id": str(assessment_id)},
            )
            raise ChildRecordCreationError(ChildRecordKind.TYRES.value, assessment_id, str(exc)) from exc

        if inserted:
            logger.info(
                "child_record_created",
                extra={
                    "record_type": ChildRecordKind.TYRES.value,
                    "assessment_id": str(assessment_id),
                    "positions": inserted,
                },
            )
            self._audit.record_best_effort(
                "assessment",
                assessment_id,
                AuditAction.DEFAULT_CREATED,
                changed_by=actor.user_id if actor else None,
                field_name=ChildRecordKind.TYRES.value,
                new_value=",".join(sorted(inserted)),
            )
        return self._tyres(assessment_id)

    def _insert_missing_tyres(self, assessment_id: UUID, rows: list[dict[str, Any]]) -> list[str]:
        present = {t.position for t in self._tyres(assessment_id)}
        missing = [row for row in rows if row["position"] not in present]
        if missing:
            self.session.execute(insert(AssessmentTyre.__table__), missing)
        return [row["position"] for row in missing]

    # -- per stage -----------------------------------------------------------

    def _creator(self, kind: ChildRecordKind) -> Callable[[UUID, Actor | None], Any]:
        return {
            ChildRecordKind.TYRES: self.create_default_tyres,
            ChildRecordKind.DAMAGE: self.create_default_damage,
            ChildRecordKind.VEHICLE_VALUES: self.create_default_vehicle_values,
            ChildRecordKind.ESTIMATE: self.create_default_estimate,
            ChildRecordKind.PRE_INCIDENT_ESTIMATE: self.create_default_pre_incident_estimate,
            ChildRecordKind.VEHICLE_IDENTIFICATION: self.create_default_vehicle_identification,
            ChildRecordKind.INTERIOR_MECHANICAL: self.create_default_interior_mechanical,
            ChildRecordKind.FRC: self.create_default_frc,
        }[kind]

    def ensure(self, kind: ChildRecordKind, assessment_id: UUID, actor: Actor | None = None) -> Any:
        return self._creator(ChildRecordKind(kind))(assessment_id, actor)

    def ensure_for_stage(
        self,
        assessment_id: UUID,
        stage: AssessmentStage,
        actor: Actor | None = None,
    ) -> dict[ChildRecordKind, Any]:
        """Create every record ``stage`` requires; returns them keyed by kind."""
        return {
            kind: self.ensure(kind, assessment_id, actor)
            for kind in self.policy.children_for(stage)
        }
