"""Kernel services: write side of the workflow.  Flush only, never commit."""

from claimtech_kernel.services.audit_log_service import AuditLogService
from claimtech_kernel.services.child_record_factory import ChildRecordFactory
from claimtech_kernel.services.numbering_service import NumberingService
from claimtech_kernel.services.sequence_service import SequenceCounter, SequenceService
from claimtech_kernel.services.stage_transition_service import StageTransitionService
from claimtech_kernel.services.workflow_service import RequestSubmission, WorkflowService

__all__ = [
    "AuditLogService",
    "ChildRecordFactory",
    "NumberingService",
    "RequestSubmission",
    "SequenceCounter",
    "SequenceService",
    "StageTransitionService",
    "WorkflowService",
]
