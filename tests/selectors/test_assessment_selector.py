"""
Tests for AssessmentSelector list views, counts and detail.
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from sqlalchemy import select

from claimtech_kernel.domain.actor import Actor, Role
from claimtech_kernel.domain.dtos import AppointmentDraft
from claimtech_kernel.domain.policies import ChildRecordKind
from claimtech_kernel.domain.stages import AssessmentStage
from claimtech_kernel.models import DAMAGE_REQUIRED_FIELDS, Assessment, AssessmentDamage
from claimtech_kernel.selectors.assessment_selector import VIEW_STAGES, WorkflowView


@pytest.fixture
def board(workflow, advance, make_request_draft, admin_actor, engineer, make_engineer):
    """
    Five assessments:

        requested     request_submitted
        inspecting    inspection_scheduled
        mine          assessment_in_progress   (appointment with ``engineer``)
        theirs        appointment_scheduled    (appointment with another engineer)
        archived      archived                 (appointment with ``engineer``)
    """
    other = make_engineer("Lerato Khumalo")

    def submit(owner):
        return workflow.submit_request(make_request_draft(owner_name=owner), admin_actor).assessment.id

    ids = {name: submit(name) for name in ("requested", "inspecting", "mine", "theirs", "archived")}

    advance(ids["inspecting"], AssessmentStage.INSPECTION_SCHEDULED)
    advance(ids["mine"], AssessmentStage.ASSESSMENT_IN_PROGRESS)
    advance(ids["archived"], AssessmentStage.ARCHIVED)
    advance(ids["theirs"], AssessmentStage.INSPECTION_SCHEDULED)
    workflow.schedule_appointment(
        ids["theirs"],
        AppointmentDraft(engineer_id=other.id, appointment_date=datetime(2025, 3, 5, tzinfo=timezone.utc)),
        admin_actor,
    )
    ids["other_engineer"] = other
    return ids


class TestViews:

    def test_view_stage_mapping_covers_every_stage_once(self):
        seen = [stage for stages in VIEW_STAGES.values() for stage in stages]
        assert sorted(seen, key=lambda s: s.value) == sorted(AssessmentStage, key=lambda s: s.value)

    def test_requests_view(self, selector, board, admin_actor):
        items = selector.list_view(WorkflowView.REQUESTS, admin_actor)
        assert [i.id for i in items] == [board["requested"]]
        assert items[0].request_number.startswith("REQ-2025-")
        assert items[0].engineer_id is None

    def test_open_assessments_view(self, selector, board, admin_actor, engineer):
        items = selector.list_view(WorkflowView.OPEN_ASSESSMENTS, admin_actor)
        assert [i.id for i in items] == [board["mine"]]
        assert items[0].stage is AssessmentStage.ASSESSMENT_IN_PROGRESS
        assert items[0].engineer_name == engineer.name
        assert items[0].owner_name == "mine"

    def test_archive_view(self, selector, board, admin_actor):
        assert [i.id for i in selector.list_view(WorkflowView.ARCHIVE, admin_actor)] == [board["archived"]]

    def test_list_by_several_stages(self, selector, board, admin_actor):
        items = selector.list_by_stage(
            [AssessmentStage.INSPECTION_SCHEDULED, AssessmentStage.APPOINTMENT_SCHEDULED], admin_actor
        )
        assert {i.id for i in items} == {board["inspecting"], board["theirs"]}

    def test_no_stages_returns_empty(self, selector, board, admin_actor):
        assert selector.list_by_stage([], admin_actor) == []

    def test_status_column_is_not_used_for_filtering(self, session, selector, board, admin_actor):
        row = session.get(Assessment, board["requested"])
        row.status = "completed"
        session.flush()
        assert [i.id for i in selector.list_view(WorkflowView.REQUESTS, admin_actor)] == [board["requested"]]


class TestEngineerScoping:

    def test_engineer_sees_only_own_appointments(self, selector, board, engineer_actor):
        visible = {
            item.id
            for view in WorkflowView
            for item in selector.list_view(view, engineer_actor)
        }
        assert visible == {board["mine"], board["archived"]}

    def test_other_engineer(self, selector, board):
        actor = Actor(user_id=uuid4(), role=Role.ENGINEER, engineer_id=board["other_engineer"].id)
        items = selector.list_view(WorkflowView.APPOINTMENTS, actor)
        assert [i.id for i in items] == [board["theirs"]]

    def test_counts_are_scoped(self, selector, board, admin_actor, engineer_actor):
        admin_counts = selector.count_by_stage(admin_actor)
        engineer_counts = selector.count_by_stage(engineer_actor)

        assert set(admin_counts) == set(AssessmentStage)
        assert admin_counts[AssessmentStage.REQUEST_SUBMITTED] == 1
        assert admin_counts[AssessmentStage.APPOINTMENT_SCHEDULED] == 1
        assert sum(admin_counts.values()) == 5

        assert engineer_counts[AssessmentStage.REQUEST_SUBMITTED] == 0
        assert engineer_counts[AssessmentStage.ASSESSMENT_IN_PROGRESS] == 1
        assert sum(engineer_counts.values()) == 2

    def test_count_by_view(self, selector, board, admin_actor):
        counts = selector.count_by_view(admin_actor)
        assert counts[WorkflowView.REQUESTS] == 1
        assert counts[WorkflowView.INSPECTIONS] == 1
        assert counts[WorkflowView.APPOINTMENTS] == 1
        assert counts[WorkflowView.OPEN_ASSESSMENTS] == 1
        assert counts[WorkflowView.FINALIZED] == 0
        assert counts[WorkflowView.ARCHIVE] == 1


class TestDetail:

    def test_detail_reports_child_records(self, selector, board, admin_actor):
        detail = selector.get_detail(board["mine"], admin_actor)

        assert detail.stage is AssessmentStage.ASSESSMENT_IN_PROGRESS
        assert detail.started_at is not None
        assert detail.child_records[ChildRecordKind.DAMAGE] is True
        assert detail.child_records[ChildRecordKind.TYRES] is True
        assert detail.child_records[ChildRecordKind.FRC] is False
        assert detail.tyre_positions == ("front_left", "front_right", "rear_left", "rear_right")
        assert detail.damage_missing_fields == ("severity",)

    def test_empty_severity_counts_as_present(self, session, selector, board, admin_actor):
        damage = session.execute(
            select(AssessmentDamage).where(AssessmentDamage.assessment_id == board["mine"])
        ).scalar_one()
        damage.severity = ""
        session.flush()

        assert selector.get_detail(board["mine"], admin_actor).damage_missing_fields == ()

    def test_detail_without_damage(self, selector, board, admin_actor):
        detail = selector.get_detail(board["requested"], admin_actor)
        assert detail.damage_missing_fields == DAMAGE_REQUIRED_FIELDS
        assert not any(detail.child_records.values())

    def test_hidden_from_other_engineer(self, selector, board, engineer_actor):
        assert selector.get_detail(board["theirs"], engineer_actor) is None

    def test_unknown_assessment(self, selector, admin_actor):
        assert selector.get_detail(uuid4(), admin_actor) is None
