"""
Tests for NumberingService and SequenceService.

Collisions are produced by moving the counter behind numbers that already
exist, the same way an out-of-band insert or a second writer would.
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from claimtech_kernel.domain.clock import DeterministicClock
from claimtech_kernel.domain.policies import NumberedEntity, RetryPolicy, WorkflowPolicy
from claimtech_kernel.exceptions import UniquenessConflict
from claimtech_kernel.models import Assessment, Request
from claimtech_kernel.services.numbering_service import NumberingService
from claimtech_kernel.services.sequence_service import SequenceService


def _request(number: str, **kwargs) -> Request:
    values = dict(
        request_number=number,
        request_type="private",
        status="submitted",
        owner_name="Owner",
        vehicle_make="VW",
        vehicle_model="Polo",
    )
    values.update(kwargs)
    return Request(**values)


def _insert_requests(session, *numbers):
    for number in numbers:
        session.add(_request(number))
    session.flush()


class TestSequenceService:

    def test_values_increase(self, session):
        sequences = SequenceService(session)
        assert [sequences.next_value("TST-2025") for _ in range(3)] == [1, 2, 3]
        assert sequences.current_value("TST-2025") == 3

    def test_counters_are_independent(self, session):
        sequences = SequenceService(session)
        sequences.next_value("TST-2025")
        assert sequences.next_value("TST-2026") == 1

    def test_start_after_only_seeds_new_counter(self, session):
        sequences = SequenceService(session)
        assert sequences.next_value("TST-2025", start_after=40) == 41
        assert sequences.next_value("TST-2025", start_after=90) == 42

    def test_reset(self, session):
        sequences = SequenceService(session)
        sequences.reset("TST-2025", 5)
        assert sequences.next_value("TST-2025") == 6
        sequences.reset("TST-2025")
        assert sequences.next_value("TST-2025") == 1

    def test_unknown_counter_has_no_value(self, session):
        assert SequenceService(session).current_value("NOPE-2025") is None


class TestNextNumber:

    def test_format_uses_prefix_and_clock_year(self, numbering):
        assert numbering.next_number(NumberedEntity.REQUEST) == "REQ-2025-001"
        assert numbering.next_number(NumberedEntity.REQUEST) == "REQ-2025-002"
        assert numbering.next_number(NumberedEntity.INSPECTION) == "INS-2025-001"

    def test_year_rollover_starts_a_new_counter(self, session, policy, sleeps):
        clock = DeterministicClock(datetime(2025, 12, 31, 23, 59, tzinfo=timezone.utc))
        service = NumberingService(session, policy, clock, sleep=sleeps.append)
        assert service.next_number(NumberedEntity.APPOINTMENT) == "APT-2025-001"
        clock.set_time(datetime(2026, 1, 1, 0, 1, tzinfo=timezone.utc))
        assert service.next_number(NumberedEntity.APPOINTMENT) == "APT-2026-001"

    def test_new_counter_continues_after_existing_numbers(self, session, numbering):
        _insert_requests(session, "REQ-2025-001", "REQ-2025-004", "REQ-2025-005", "REQ-2024-090")
        assert numbering.next_number(NumberedEntity.REQUEST) == "REQ-2025-006"


class TestCreateNumbered:

    def test_first_attempt(self, numbering, sleeps):
        request = numbering.create_numbered(NumberedEntity.REQUEST, _request)
        assert request.request_number == "REQ-2025-001"
        assert sleeps == []

    def test_conflict_is_retried_with_next_number(self, session, numbering, sleeps, captured_logs):
        SequenceService(session).reset("REQ-2025", 5)
        _insert_requests(session, "REQ-2025-006")

        request = numbering.create_numbered(NumberedEntity.REQUEST, _request)

        assert request.request_number == "REQ-2025-007"
        assert sleeps == [pytest.approx(0.1)]
        conflicts = [r for r in captured_logs() if r["message"] == "business_number_conflict"]
        assert [r["number"] for r in conflicts] == ["REQ-2025-006"]
        assert conflicts[0]["level"] == "WARNING"

    def test_exhausted_retries_raise_uniqueness_conflict(self, session, numbering, sleeps):
        SequenceService(session).reset("REQ-2025", 5)
        _insert_requests(session, "REQ-2025-006", "REQ-2025-007", "REQ-2025-008")

        with pytest.raises(UniquenessConflict) as exc_info:
            numbering.create_numbered(NumberedEntity.REQUEST, _request)

        assert exc_info.value.field == "request_number"
        assert exc_info.value.attempts == 3
        assert exc_info.value.value == "REQ-2025-008"
        assert sleeps == [pytest.approx(0.1), pytest.approx(0.2)]

    def test_retry_budget_comes_from_policy(self, session, clock, sleeps):
        policy = WorkflowPolicy(retry=RetryPolicy(max_attempts=1))
        service = NumberingService(session, policy, clock, sleep=sleeps.append)
        SequenceService(session).reset("REQ-2025", 5)
        _insert_requests(session, "REQ-2025-006")

        with pytest.raises(UniquenessConflict):
            service.create_numbered(NumberedEntity.REQUEST, _request)
        assert sleeps == []

    def test_other_integrity_errors_are_not_retried(self, session, numbering, sleeps, submitted):
        with pytest.raises(IntegrityError):
            numbering.create_numbered(
                NumberedEntity.ASSESSMENT,
                lambda number: Assessment(assessment_number=number, request_id=submitted.request.id),
            )
        assert sleeps == []

    def test_session_usable_after_conflict(self, session, numbering):
        SequenceService(session).reset("REQ-2025", 5)
        _insert_requests(session, "REQ-2025-006")
        numbering.create_numbered(NumberedEntity.REQUEST, _request)

        assert numbering.create_numbered(NumberedEntity.REQUEST, _request).request_number == "REQ-2025-008"
