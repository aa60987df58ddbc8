"""Read-only selectors for workflow screens and reports."""

from claimtech_kernel.selectors.assessment_selector import (
    VIEW_STAGES,
    AssessmentDetail,
    AssessmentListItem,
    AssessmentSelector,
    WorkflowView,
)
from claimtech_kernel.selectors.consistency_selector import (
    ConsistencyReport,
    ConsistencySelector,
    GateFinding,
    StatusFinding,
)

__all__ = [
    "AssessmentDetail",
    "AssessmentListItem",
    "AssessmentSelector",
    "ConsistencyReport",
    "ConsistencySelector",
    "GateFinding",
    "StatusFinding",
    "VIEW_STAGES",
    "WorkflowView",
]
