"""Pure domain core: stages, gate policy, policies, drafts.  No I/O."""

from claimtech_kernel.domain.actor import Actor, Role
from claimtech_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from claimtech_kernel.domain.gate import (
    GATE_POLICY,
    ExpectedState,
    GateRule,
    LinkageField,
    required_linkage,
    validate_gate,
)
from claimtech_kernel.domain.policies import (
    ChildRecordKind,
    NumberedEntity,
    RetryPolicy,
    WorkflowPolicy,
)
from claimtech_kernel.domain.stages import (
    HAPPY_PATH,
    TERMINAL_STAGES,
    VALID_TRANSITIONS,
    AssessmentStage,
    is_terminal,
    is_valid_transition,
    next_stage,
    stage_rank,
    stages_from,
)

__all__ = [
    "Actor",
    "Role",
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "AssessmentStage",
    "HAPPY_PATH",
    "TERMINAL_STAGES",
    "VALID_TRANSITIONS",
    "is_terminal",
    "is_valid_transition",
    "next_stage",
    "stage_rank",
    "stages_from",
    "GATE_POLICY",
    "GateRule",
    "LinkageField",
    "ExpectedState",
    "required_linkage",
    "validate_gate",
    "ChildRecordKind",
    "NumberedEntity",
    "RetryPolicy",
    "WorkflowPolicy",
]
