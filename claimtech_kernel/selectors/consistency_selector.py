"""
Module: claimtech_kernel.selectors.consistency_selector
Responsibility: Database health report for the workflow tables -- totals,
    requests with no assessment, stage distribution, linkage that
    contradicts the gate table and legacy statuses out of sync with stage.
Architecture position: Kernel > Selectors.  Backs scripts/check_db_state.py.

The CHECK constraint on ``assessments`` only enforces that required
references are present.  References that are present too early (e.g. an
appointment linked at inspection_scheduled) are only visible here.
"""

from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import func, select

from claimtech_kernel.domain.gate import find_violation
from claimtech_kernel.domain.stages import LEGACY_STATUS, AssessmentStage
from claimtech_kernel.models import Assessment, Request
from claimtech_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class GateFinding:
    assessment_id: UUID
    assessment_number: str
    stage: AssessmentStage
    field: str
    expected_state: str


@dataclass(frozen=True)
class StatusFinding:
    assessment_id: UUID
    assessment_number: str
    stage: AssessmentStage
    status: str
    expected_status: str


@dataclass(frozen=True)
class ConsistencyReport:
    total_requests: int
    total_assessments: int
    requests_without_assessment: tuple[str, ...]
    stage_distribution: dict[AssessmentStage, int]
    gate_findings: tuple[GateFinding, ...] = field(default_factory=tuple)
    status_findings: tuple[StatusFinding, ...] = field(default_factory=tuple)

    @property
    def is_consistent(self) -> bool:
        return not (self.requests_without_assessment or self.gate_findings or self.status_findings)


class ConsistencySelector(BaseSelector):

    def requests_without_assessment(self) -> tuple[str, ...]:
        stmt = (
            select(Request.request_number)
            .outerjoin(Assessment, Assessment.request_id == Request.id)
            .where(Assessment.id.is_(None))
            .order_by(Request.request_number)
        )
        return tuple(self.session.execute(stmt).scalars())

    def stage_distribution(self) -> dict[AssessmentStage, int]:
        rows = self.session.execute(
            select(Assessment.stage, func.count(Assessment.id)).group_by(Assessment.stage)
        )
        distribution = {stage: 0 for stage in AssessmentStage}
        for stage, count in rows:
            distribution[AssessmentStage(stage)] = count
        return distribution

    def report(self) -> ConsistencyReport:
        total_requests = self.session.execute(select(func.count(Request.id))).scalar_one()

        gate_findings: list[GateFinding] = []
        status_findings: list[StatusFinding] = []
        assessments = self.session.execute(
            select(Assessment).order_by(Assessment.assessment_number)
        ).scalars()
        total_assessments = 0
        for assessment in assessments:
            total_assessments += 1
            rule = find_violation(assessment, assessment.stage)
            if rule is not None:
                gate_findings.append(GateFinding(
                    assessment_id=assessment.id,
                    assessment_number=assessment.assessment_number,
                    stage=assessment.stage,
                    field=rule.field.value,
                    expected_state=rule.expected.value,
                ))
            expected_status = LEGACY_STATUS[assessment.stage]
            if assessment.status != expected_status:
                status_findings.append(StatusFinding(
                    assessment_id=assessment.id,
                    assessment_number=assessment.assessment_number,
                    stage=assessment.stage,
                    status=assessment.status,
                    expected_status=expected_status,
                ))

        return ConsistencyReport(
            total_requests=total_requests,
            total_assessments=total_assessments,
            requests_without_assessment=self.requests_without_assessment(),
            stage_distribution=self.stage_distribution(),
            gate_findings=tuple(gate_findings),
            status_findings=tuple(status_findings),
        )
