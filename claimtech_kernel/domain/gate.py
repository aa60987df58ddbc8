"""
Gate -- per-stage linkage policy for assessments.

Responsibility:
    Declares which linkage references (inspection, appointment) must be set
    or must still be null for each stage, and validates an assessment
    against the target stage before the stage is written.

Policy:
    Stage                                   | inspection_id | appointment_id
    ----------------------------------------|---------------|---------------
    request_submitted, request_reviewed     | NULL          | NULL
    inspection_scheduled                    | SET           | NULL
    appointment_scheduled .. frc_in_progress| SET           | SET
    archived, cancelled                     | (any)         | (any)

    The SET half of this table is also rendered as a database CHECK
    constraint (``linkage_check_sql()``).  The NULL half is application-only:
    linkage is written before the stage changes, so a row may briefly carry
    a reference its current stage does not require yet.

Architecture position:
    Kernel > Domain -- pure, zero I/O.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any
from uuid import UUID

from claimtech_kernel.domain.stages import AssessmentStage, TERMINAL_STAGES, stages_from
from claimtech_kernel.domain.validation import is_absent
from claimtech_kernel.exceptions import GateViolation


class LinkageField(str, Enum):
    INSPECTION_ID = "inspection_id"
    APPOINTMENT_ID = "appointment_id"


class ExpectedState(str, Enum):
    SET = "set"
    NULL = "null"


@dataclass(frozen=True)
class GateRule:
    field: LinkageField
    expected: ExpectedState

    def is_satisfied_by(self, value: Any) -> bool:
        if self.expected is ExpectedState.SET:
            return not is_absent(value)
        return is_absent(value)


def _build_policy() -> dict[AssessmentStage, tuple[GateRule, ...]]:
    inspection_set = set(stages_from(AssessmentStage.INSPECTION_SCHEDULED))
    appointment_set = set(stages_from(AssessmentStage.APPOINTMENT_SCHEDULED))

    policy: dict[AssessmentStage, tuple[GateRule, ...]] = {}
    for stage in AssessmentStage:
        if stage in TERMINAL_STAGES:
            policy[stage] = ()
            continue
        policy[stage] = (
            GateRule(
                LinkageField.INSPECTION_ID,
                ExpectedState.SET if stage in inspection_set else ExpectedState.NULL,
            ),
            GateRule(
                LinkageField.APPOINTMENT_ID,
                ExpectedState.SET if stage in appointment_set else ExpectedState.NULL,
            ),
        )
    return policy


GATE_POLICY: dict[AssessmentStage, tuple[GateRule, ...]] = _build_policy()


@dataclass(frozen=True)
class Linkage:
    """References to write onto the assessment as part of a transition."""

    inspection_id: UUID | None = None
    appointment_id: UUID | None = None

    def supplied(self) -> dict[LinkageField, UUID]:
        return {
            field: getattr(self, field.value)
            for field in LinkageField
            if not is_absent(getattr(self, field.value))
        }


def required_linkage(stage: AssessmentStage) -> dict[LinkageField, ExpectedState]:
    return {rule.field: rule.expected for rule in GATE_POLICY[AssessmentStage(stage)]}


def find_violation(assessment: Any, target_stage: AssessmentStage) -> GateRule | None:
    """First rule ``assessment`` fails for ``target_stage``, or None.

    ``assessment`` is anything exposing ``inspection_id`` / ``appointment_id``.
    """
    for rule in GATE_POLICY[AssessmentStage(target_stage)]:
        if not rule.is_satisfied_by(getattr(assessment, rule.field.value, None)):
            return rule
    return None


def validate_gate(assessment: Any, target_stage: AssessmentStage) -> None:
    """
    Raise GateViolation if ``assessment`` does not carry the linkage
    ``target_stage`` requires.
    """
    rule = find_violation(assessment, target_stage)
    if rule is not None:
        raise GateViolation(
            field=rule.field.value,
            expected_state=rule.expected.value,
            target_stage=AssessmentStage(target_stage).value,
            assessment_id=getattr(assessment, "id", None),
        )


def linkage_check_sql(stage_column: str = "stage") -> str:
    """SQL for the CHECK constraint enforcing the SET half of the policy."""
    clauses = []
    for field in LinkageField:
        stages = [
            stage.value
            for stage, rules in GATE_POLICY.items()
            if any(r.field is field and r.expected is ExpectedState.SET for r in rules)
        ]
        ordered = [s.value for s in AssessmentStage if s.value in stages]
        in_list = ", ".join(f"'{s}'" for s in ordered)
        clauses.append(f"({stage_column} NOT IN ({in_list}) OR {field.value} IS NOT NULL)")
    return " AND ".join(clauses)
