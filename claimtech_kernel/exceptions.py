"""
Typed exception hierarchy for the claimtech kernel.

Every error has a class (catch by type, never by message), a ``code``
class attribute (machine-readable, API-safe) and structured attributes
carrying the data a caller needs to render or log it.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    ClaimTechError (base)
    |
    +-- NotFoundError
    |   +-- AssessmentNotFoundError
    |   +-- RequestNotFoundError
    |   +-- EngineerNotFoundError
    |
    +-- WorkflowError                 validation class, never retried
    |   +-- InvalidTransitionError
    |   +-- GateViolation
    |   +-- LinkageConflictError
    |   +-- RequestValidationError
    |
    +-- CreationError                 persistence class
    |   +-- UniquenessConflict        retried locally, surfaced on exhaustion
    |   +-- ChildRecordCreationError
    |
    +-- ImmutabilityViolationError

===============================================================================
ERROR CODES
===============================================================================

Category   | Code                      | When Raised
-----------|---------------------------|------------------------------------------
NotFound   | ASSESSMENT_NOT_FOUND      | Assessment id does not exist
           | REQUEST_NOT_FOUND         | Request id does not exist
           | ENGINEER_NOT_FOUND        | Engineer id does not exist or inactive
-----------|---------------------------|------------------------------------------
Workflow   | INVALID_TRANSITION        | Non-adjacent, backward or post-terminal move
           | GATE_VIOLATION            | Linkage field not in the state the stage needs
           | LINKAGE_CONFLICT          | Linkage already set to a different reference
           | REQUEST_VALIDATION        | Draft request missing required fields
-----------|---------------------------|------------------------------------------
Creation   | UNIQUENESS_CONFLICT       | Business number still colliding after retries
           | CHILD_RECORD_CREATION     | Default child record could not be persisted
-----------|---------------------------|------------------------------------------
Audit      | IMMUTABILITY_VIOLATION    | UPDATE/DELETE attempted on an audit row

===============================================================================
HANDLING
===============================================================================

Workflow errors are rendered inline and name the unmet precondition.
Creation errors are rendered as a generic "try again" prompt; the caller may
retry the whole higher-level operation.  ``user_message()`` implements both.

    try:
        transitions.transition(assessment_id, AssessmentStage.APPOINTMENT_SCHEDULED, actor=actor)
    except GateViolation as e:
        flash(user_message(e))          # names e.field and e.expected_state
    except InvalidTransitionError as e:
        flash(user_message(e))          # names e.from_stage and e.to_stage
"""

from __future__ import annotations

from typing import Any


class ClaimTechError(Exception):
    """
    Base exception for all claimtech kernel errors.

    All subclasses must define a ``code`` class attribute.
    """

    code: str = "CLAIMTECH_ERROR"


def _value(obj: Any) -> Any:
    return getattr(obj, "value", obj)


# Not-found exceptions


class NotFoundError(ClaimTechError):
    code: str = "NOT_FOUND"


class AssessmentNotFoundError(NotFoundError):
    """Assessment with given ID was not found."""

    code: str = "ASSESSMENT_NOT_FOUND"

    def __init__(self, assessment_id: Any):
        self.assessment_id = str(assessment_id)
        super().__init__(f"Assessment not found: {assessment_id}")


class RequestNotFoundError(NotFoundError):
    """Request with given ID was not found."""

    code: str = "REQUEST_NOT_FOUND"

    def __init__(self, request_id: Any):
        self.request_id = str(request_id)
        super().__init__(f"Request not found: {request_id}")


class EngineerNotFoundError(NotFoundError):
    """Engineer does not exist or is inactive."""

    code: str = "ENGINEER_NOT_FOUND"

    def __init__(self, engineer_id: Any):
        self.engineer_id = str(engineer_id)
        super().__init__(f"Engineer not found or inactive: {engineer_id}")


# Workflow exceptions


class WorkflowError(ClaimTechError):
    """Base for validation-class workflow errors. Never retried."""

    code: str = "WORKFLOW_ERROR"


class InvalidTransitionError(WorkflowError):
    """Requested stage change is not in the transition table."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, from_stage: Any, to_stage: Any, assessment_id: Any = None):
        self.from_stage = _value(from_stage)
        self.to_stage = _value(to_stage)
        self.assessment_id = str(assessment_id) if assessment_id is not None else None
        super().__init__(
            f"Invalid stage transition: {self.from_stage} -> {self.to_stage}"
        )


class GateViolation(WorkflowError):
    """
    A linkage field is not in the state the target stage requires.

    ``expected_state`` is ``"set"`` or ``"null"``.
    """

    code: str = "GATE_VIOLATION"

    def __init__(
        self,
        field: str,
        expected_state: Any,
        target_stage: Any = None,
        assessment_id: Any = None,
    ):
        self.field = _value(field)
        self.expected_state = _value(expected_state)
        self.target_stage = _value(target_stage)
        self.assessment_id = str(assessment_id) if assessment_id is not None else None
        super().__init__(
            f"Stage {self.target_stage} requires {self.field} to be "
            f"{self.expected_state}"
        )


class LinkageConflictError(WorkflowError):
    """Linkage supplied for a field that already references something else."""

    code: str = "LINKAGE_CONFLICT"

    def __init__(self, field: str, existing: Any, supplied: Any):
        self.field = _value(field)
        self.existing = str(existing)
        self.supplied = str(supplied)
        super().__init__(
            f"{self.field} is already linked to {existing}; refusing to relink to {supplied}"
        )


class RequestValidationError(WorkflowError):
    """Draft request is missing required fields."""

    code: str = "REQUEST_VALIDATION"

    def __init__(self, missing_fields: tuple[str, ...] | list[str], reason: str | None = None):
        self.missing_fields = tuple(missing_fields)
        self.reason = reason
        detail = reason or f"missing required fields: {', '.join(self.missing_fields)}"
        super().__init__(f"Invalid request: {detail}")


# Creation exceptions


class CreationError(ClaimTechError):
    """Base for persistence failures while creating records."""

    code: str = "CREATION_ERROR"


class UniquenessConflict(CreationError):
    """Business number kept colliding until the retry budget ran out."""

    code: str = "UNIQUENESS_CONFLICT"

    def __init__(self, field: str, value: str | None = None, attempts: int = 0):
        self.field = field
        self.value = value
        self.attempts = attempts
        super().__init__(
            f"Could not allocate a unique {field} after {attempts} attempt(s)"
            + (f" (last tried {value})" if value else "")
        )


class ChildRecordCreationError(CreationError):
    """Default child record could not be persisted."""

    code: str = "CHILD_RECORD_CREATION"

    def __init__(self, record_type: str, assessment_id: Any, reason: str):
        self.record_type = record_type
        self.assessment_id = str(assessment_id)
        self.reason = reason
        super().__init__(
            f"Failed to create {record_type} for assessment {assessment_id}: {reason}"
        )


# Immutability exceptions


class ImmutabilityViolationError(ClaimTechError):
    """Attempt to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"{entity_type} {entity_id} is immutable: {reason}")


# User-facing rendering

GENERIC_RETRY_MESSAGE = "Something went wrong while saving. Please try again."


def user_message(exc: ClaimTechError) -> str:
    """Message suitable for showing inline next to the failed action."""
    if isinstance(exc, InvalidTransitionError):
        return (
            f"This assessment cannot move from '{exc.from_stage}' "
            f"to '{exc.to_stage}'."
        )
    if isinstance(exc, GateViolation):
        if exc.expected_state == "set":
            return f"A linked {exc.field.removesuffix('_id')} is required before '{exc.target_stage}'."
        return f"'{exc.target_stage}' does not allow a linked {exc.field.removesuffix('_id')} yet."
    if isinstance(exc, LinkageConflictError):
        return f"This assessment is already linked to a different {exc.field.removesuffix('_id')}."
    if isinstance(exc, RequestValidationError):
        return str(exc)
    if isinstance(exc, NotFoundError):
        return str(exc)
    return GENERIC_RETRY_MESSAGE
