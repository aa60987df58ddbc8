"""
Tests for ChildRecordFactory idempotency and defaults.
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from claimtech_kernel.domain.policies import (
    ChildRecordKind,
    DamageDefaults,
    EstimateDefaults,
    WorkflowPolicy,
)
from claimtech_kernel.domain.stages import AssessmentStage
from claimtech_kernel.exceptions import ChildRecordCreationError
from claimtech_kernel.models import (
    AssessmentDamage,
    AssessmentEstimate,
    AssessmentInteriorMechanical,
    AssessmentTyre,
    AssessmentVehicleIdentification,
    AssessmentVehicleValues,
    AuditAction,
    AuditLog,
    PreIncidentEstimate,
)
from claimtech_kernel.services.child_record_factory import ChildRecordFactory


def _count(session, model, assessment_id) -> int:
    return session.execute(
        select(func.count()).select_from(model).where(model.assessment_id == assessment_id)
    ).scalar_one()


def _default_created(session, assessment_id) -> list[AuditLog]:
    return list(session.execute(
        select(AuditLog).where(
            AuditLog.entity_id == assessment_id,
            AuditLog.action == AuditAction.DEFAULT_CREATED.value,
        )
    ).scalars())


class TestOneToOneRecords:

    def test_damage_twice_returns_same_record(self, session, factory, submitted):
        assessment_id = submitted.assessment.id

        first = factory.create_default_damage(assessment_id)
        second = factory.create_default_damage(assessment_id)

        assert second.id == first.id
        assert _count(session, AssessmentDamage, assessment_id) == 1

    def test_damage_defaults(self, factory, submitted):
        damage = factory.create_default_damage(submitted.assessment.id)
        assert damage.damage_area == "non_structural"
        assert damage.damage_type == "collision"
        assert damage.severity is None

    def test_estimate_defaults(self, factory, submitted):
        estimate = factory.create_default_estimate(submitted.assessment.id)
        assert estimate.labour_rate == Decimal("500.00")
        assert estimate.paint_rate == Decimal("2000.00")
        assert estimate.vat_percentage == Decimal("15.00")
        assert estimate.oem_markup_percentage == Decimal("25.00")
        assert estimate.sundries_percentage == Decimal("1.00")
        assert estimate.currency == "ZAR"

    def test_estimate_and_pre_incident_estimate_are_separate(self, session, factory, submitted):
        assessment_id = submitted.assessment.id
        estimate = factory.create_default_estimate(assessment_id)
        pre_incident = factory.create_default_pre_incident_estimate(assessment_id)

        assert estimate.id != pre_incident.id
        assert _count(session, AssessmentEstimate, assessment_id) == 1
        assert _count(session, PreIncidentEstimate, assessment_id) == 1

    def test_identification_and_interior_mechanical_start_empty(self, session, factory, submitted):
        assessment_id = submitted.assessment.id

        identification = factory.create_default_vehicle_identification(assessment_id)
        interior = factory.create_default_interior_mechanical(assessment_id)

        assert identification.vin_number is None
        assert identification.registration_number is None
        assert interior.mileage_reading is None
        assert interior.vehicle_has_power is None
        assert factory.create_default_vehicle_identification(assessment_id).id == identification.id
        assert factory.create_default_interior_mechanical(assessment_id).id == interior.id
        assert _count(session, AssessmentVehicleIdentification, assessment_id) == 1
        assert _count(session, AssessmentInteriorMechanical, assessment_id) == 1

    def test_policy_overrides_defaults(self, session, clock, audit, submitted):
        policy = WorkflowPolicy(
            estimate=EstimateDefaults(labour_rate=Decimal("650.00"), currency="USD"),
            damage=DamageDefaults(damage_area="structural", damage_type="hail"),
        )
        factory = ChildRecordFactory(session, policy, clock, audit=audit)

        estimate = factory.create_default_estimate(submitted.assessment.id)
        damage = factory.create_default_damage(submitted.assessment.id)

        assert estimate.labour_rate == Decimal("650.00")
        assert estimate.currency == "USD"
        assert damage.damage_area == "structural"

    def test_existing_record_is_not_overwritten(self, session, factory, submitted):
        assessment_id = submitted.assessment.id
        damage = factory.create_default_damage(assessment_id)
        damage.severity = ""
        session.flush()

        again = factory.create_default_damage(assessment_id)
        assert again.severity == ""

    def test_unknown_assessment_raises_creation_error(self, factory, captured_logs):
        missing_id = uuid4()
        with pytest.raises(ChildRecordCreationError) as exc_info:
            factory.create_default_vehicle_values(missing_id)

        assert exc_info.value.record_type == "vehicle_values"
        assert exc_info.value.assessment_id == str(missing_id)
        assert any(r["message"] == "child_record_creation_failed" for r in captured_logs())

    def test_audit_only_for_actual_creation(self, session, factory, submitted, admin_actor):
        assessment_id = submitted.assessment.id
        factory.create_default_damage(assessment_id, admin_actor)
        factory.create_default_damage(assessment_id, admin_actor)

        entries = _default_created(session, assessment_id)
        assert len(entries) == 1
        assert entries[0].field_name == "damage"
        assert entries[0].changed_by == admin_actor.user_id


class TestTyres:

    def test_four_positions_in_policy_order(self, factory, submitted):
        tyres = factory.create_default_tyres(submitted.assessment.id)
        assert [t.position for t in tyres] == ["front_left", "front_right", "rear_left", "rear_right"]
        assert tyres[0].position_label == "Front Left"

    def test_twice_leaves_one_row_per_position(self, session, factory, submitted):
        assessment_id = submitted.assessment.id
        first = factory.create_default_tyres(assessment_id)
        second = factory.create_default_tyres(assessment_id)

        assert _count(session, AssessmentTyre, assessment_id) == 4
        assert [t.id for t in second] == [t.id for t in first]
        assert len([e for e in _default_created(session, assessment_id) if e.field_name == "tyres"]) == 1

    def test_missing_positions_are_filled_in(self, session, factory, submitted):
        assessment_id = submitted.assessment.id
        session.add(AssessmentTyre(assessment_id=assessment_id, position="rear_left", tyre_make="Dunlop"))
        session.flush()

        tyres = factory.create_default_tyres(assessment_id)

        assert len(tyres) == 4
        rear_left = next(t for t in tyres if t.position == "rear_left")
        assert rear_left.tyre_make == "Dunlop"

    def test_spare_position_from_policy(self, session, clock, audit, submitted):
        policy = WorkflowPolicy(
            tyre_positions=("front_left", "front_right", "rear_left", "rear_right", "spare")
        )
        tyres = ChildRecordFactory(session, policy, clock, audit=audit).create_default_tyres(
            submitted.assessment.id
        )
        assert tyres[-1].position == "spare"


class TestEnsureForStage:

    def test_assessment_in_progress_set(self, session, factory, submitted):
        assessment_id = submitted.assessment.id
        created = factory.ensure_for_stage(assessment_id, AssessmentStage.ASSESSMENT_IN_PROGRESS)

        assert set(created) == {
            ChildRecordKind.TYRES,
            ChildRecordKind.DAMAGE,
            ChildRecordKind.VEHICLE_VALUES,
            ChildRecordKind.ESTIMATE,
            ChildRecordKind.PRE_INCIDENT_ESTIMATE,
            ChildRecordKind.VEHICLE_IDENTIFICATION,
            ChildRecordKind.INTERIOR_MECHANICAL,
        }
        assert len(created[ChildRecordKind.TYRES]) == 4
        assert _count(session, AssessmentVehicleValues, assessment_id) == 1
        assert _count(session, AssessmentInteriorMechanical, assessment_id) == 1

    def test_repeat_is_idempotent(self, session, factory, submitted):
        assessment_id = submitted.assessment.id
        first = factory.ensure_for_stage(assessment_id, AssessmentStage.ASSESSMENT_IN_PROGRESS)
        second = factory.ensure_for_stage(assessment_id, AssessmentStage.ASSESSMENT_IN_PROGRESS)

        assert second[ChildRecordKind.DAMAGE].id == first[ChildRecordKind.DAMAGE].id
        assert len(_default_created(session, assessment_id)) == 7

    def test_stage_without_children(self, factory, submitted):
        assert factory.ensure_for_stage(submitted.assessment.id, AssessmentStage.ESTIMATE_SENT) == {}

    def test_ensure_by_kind_name(self, factory, submitted):
        frc = factory.ensure("frc", submitted.assessment.id)
        assert frc.status == "not_started"
