"""
Stages -- the assessment stage enum and its transition table.

Responsibility:
    Defines the canonical ordered list of workflow stages and which moves
    between them are legal.  Pure functional core, zero I/O.

State machine:
    request_submitted -> request_reviewed -> inspection_scheduled ->
    appointment_scheduled -> assessment_in_progress -> estimate_review ->
    estimate_sent -> estimate_finalized -> frc_in_progress -> archived

    Any non-terminal stage -> archived | cancelled
    archived, cancelled: terminal (absorbing)

Invariants enforced:
    - Forward-only: the only non-terminal move is to the immediate successor.
    - Terminal stages accept no further transitions.
"""

from enum import Enum


class AssessmentStage(str, Enum):
    """Workflow position of an assessment.  Supersedes the legacy ``status``."""

    REQUEST_SUBMITTED = "request_submitted"
    REQUEST_REVIEWED = "request_reviewed"
    INSPECTION_SCHEDULED = "inspection_scheduled"
    APPOINTMENT_SCHEDULED = "appointment_scheduled"
    ASSESSMENT_IN_PROGRESS = "assessment_in_progress"
    ESTIMATE_REVIEW = "estimate_review"
    ESTIMATE_SENT = "estimate_sent"
    ESTIMATE_FINALIZED = "estimate_finalized"
    FRC_IN_PROGRESS = "frc_in_progress"
    ARCHIVED = "archived"
    CANCELLED = "cancelled"


HAPPY_PATH: tuple[AssessmentStage, ...] = (
    AssessmentStage.REQUEST_SUBMITTED,
    AssessmentStage.REQUEST_REVIEWED,
    AssessmentStage.INSPECTION_SCHEDULED,
    AssessmentStage.APPOINTMENT_SCHEDULED,
    AssessmentStage.ASSESSMENT_IN_PROGRESS,
    AssessmentStage.ESTIMATE_REVIEW,
    AssessmentStage.ESTIMATE_SENT,
    AssessmentStage.ESTIMATE_FINALIZED,
    AssessmentStage.FRC_IN_PROGRESS,
    AssessmentStage.ARCHIVED,
)

TERMINAL_STAGES: frozenset[AssessmentStage] = frozenset({
    AssessmentStage.ARCHIVED,
    AssessmentStage.CANCELLED,
})

_RANK: dict[AssessmentStage, int] = {stage: i for i, stage in enumerate(HAPPY_PATH)}


def _build_transitions() -> dict[AssessmentStage, frozenset[AssessmentStage]]:
    table: dict[AssessmentStage, frozenset[AssessmentStage]] = {}
    for stage in AssessmentStage:
        if stage in TERMINAL_STAGES:
            table[stage] = frozenset()
            continue
        successor = HAPPY_PATH[_RANK[stage] + 1]
        table[stage] = frozenset({successor}) | TERMINAL_STAGES
    return table


# Allowed transitions (from -> set of valid targets)
VALID_TRANSITIONS: dict[AssessmentStage, frozenset[AssessmentStage]] = _build_transitions()


# Legacy free-text status kept in sync for older readers.  Never filtered on.
LEGACY_STATUS: dict[AssessmentStage, str] = {
    AssessmentStage.REQUEST_SUBMITTED: "pending",
    AssessmentStage.REQUEST_REVIEWED: "pending",
    AssessmentStage.INSPECTION_SCHEDULED: "scheduled",
    AssessmentStage.APPOINTMENT_SCHEDULED: "scheduled",
    AssessmentStage.ASSESSMENT_IN_PROGRESS: "in_progress",
    AssessmentStage.ESTIMATE_REVIEW: "in_progress",
    AssessmentStage.ESTIMATE_SENT: "submitted",
    AssessmentStage.ESTIMATE_FINALIZED: "completed",
    AssessmentStage.FRC_IN_PROGRESS: "completed",
    AssessmentStage.ARCHIVED: "archived",
    AssessmentStage.CANCELLED: "cancelled",
}


def is_terminal(stage: AssessmentStage) -> bool:
    return AssessmentStage(stage) in TERMINAL_STAGES


def next_stage(stage: AssessmentStage) -> AssessmentStage | None:
    """Immediate happy-path successor, or None for terminal stages."""
    stage = AssessmentStage(stage)
    if stage in TERMINAL_STAGES:
        return None
    return HAPPY_PATH[_RANK[stage] + 1]


def stage_rank(stage: AssessmentStage) -> int | None:
    """Position on the happy path; None for ``cancelled``."""
    return _RANK.get(AssessmentStage(stage))


def stages_from(stage: AssessmentStage) -> tuple[AssessmentStage, ...]:
    """``stage`` and every non-terminal stage after it on the happy path."""
    start = _RANK[AssessmentStage(stage)]
    return tuple(s for s in HAPPY_PATH[start:] if s not in TERMINAL_STAGES)


def is_valid_transition(from_stage: AssessmentStage, to_stage: AssessmentStage) -> bool:
    """
    True iff ``to_stage`` is the immediate successor of ``from_stage``, or
    ``to_stage`` is archived/cancelled and ``from_stage`` is not terminal.
    """
    return AssessmentStage(to_stage) in VALID_TRANSITIONS[AssessmentStage(from_stage)]
