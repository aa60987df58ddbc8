"""
NumberingService -- human-readable business numbers with retry-on-conflict.

Responsibility:
    Mints ``PREFIX-YYYY-NNN`` numbers for requests, inspections,
    appointments and assessments and inserts the numbered row in the same
    step.  Numbers come from a per-prefix-per-year SequenceCounter; the
    insert runs in a savepoint and, if it hits the unique constraint on the
    number column, the savepoint is rolled back, a fresh number is drawn
    and the insert retried.

Architecture position:
    Kernel > Services.  Called by WorkflowService whenever a numbered
    aggregate is created.

Invariants enforced:
    - No two rows of one aggregate share a business number (the unique
      constraint is the backstop; the counter keeps collisions rare).
    - Only a uniqueness violation on the number column is retried.  Any
      other IntegrityError (foreign key, one-assessment-per-request, ...)
      propagates unchanged on the first attempt.

Failure modes:
    - UniquenessConflict once ``RetryPolicy.max_attempts`` attempts have all
      collided.

Counter seeding:
    The first allocation for a prefix/year with no counter row seeds the
    counter from the highest number already stored for that prefix/year,
    so installations with pre-existing numbers continue after them.
"""

import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from claimtech_kernel.db.base import Base
from claimtech_kernel.domain.clock import Clock
from claimtech_kernel.domain.numbering import counter_name, format_business_number, parse_business_number
from claimtech_kernel.domain.policies import NumberedEntity, WorkflowPolicy
from claimtech_kernel.exceptions import UniquenessConflict
from claimtech_kernel.logging_config import get_logger
from claimtech_kernel.models import Appointment, Assessment, Inspection, Request
from claimtech_kernel.services.base import BaseService
from claimtech_kernel.services.sequence_service import SequenceService

logger = get_logger("services.numbering")

T = TypeVar("T", bound=Base)


@dataclass(frozen=True)
class NumberTarget:
    """Where a numbered aggregate keeps its number."""

    model: type[Base]
    column: str
    constraint_name: str

    @property
    def qualified_column(self) -> str:
        return f"{self.model.__tablename__}.{self.column}"


NUMBER_TARGETS: dict[NumberedEntity, NumberTarget] = {
    NumberedEntity.REQUEST: NumberTarget(Request, "request_number", "uq_requests_request_number"),
    NumberedEntity.INSPECTION: NumberTarget(
        Inspection, "inspection_number", "uq_inspections_inspection_number"
    ),
    NumberedEntity.APPOINTMENT: NumberTarget(
        Appointment, "appointment_number", "uq_appointments_appointment_number"
    ),
    NumberedEntity.ASSESSMENT: NumberTarget(
        Assessment, "assessment_number", "uq_assessments_assessment_number"
    ),
}


def is_number_conflict(exc: IntegrityError, target: NumberTarget) -> bool:
    """
    True if ``exc`` is a uniqueness violation on ``target``'s number column.

    PostgreSQL reports the constraint name; SQLite reports
    ``UNIQUE constraint failed: table.column``.
    """
    message = str(exc.orig)
    return target.constraint_name in message or target.qualified_column in message


class NumberingService(BaseService):
    """
    Usage:
        request = numbering.create_numbered(
            NumberedEntity.REQUEST,
            lambda number: Request(request_number=number, ...),
        )
    """

    def __init__(
        self,
        session: Session,
        policy: WorkflowPolicy | None = None,
        clock: Clock | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(session, policy, clock)
        self._sequences = SequenceService(session)
        self._sleep = sleep

    def _existing_max(self, target: NumberTarget, prefix: str, year: int) -> int:
        column = getattr(target.model, target.column)
        numbers = self.session.execute(
            select(column).where(column.like(f"{prefix}-{year:04d}-%"))
        ).scalars()
        highest = 0
        for number in numbers:
            try:
                highest = max(highest, parse_business_number(number).value)
            except ValueError:
                continue
        return highest

    def next_number(self, entity: NumberedEntity) -> str:
        """Draw the next number for ``entity`` without inserting anything."""
        entity = NumberedEntity(entity)
        prefix = self.policy.numbering.prefix_for(entity)
        year = self.clock.now().year
        name = counter_name(prefix, year)

        if self._sequences.current_value(name) is None:
            seed = self._existing_max(NUMBER_TARGETS[entity], prefix, year)
        else:
            seed = 0
        value = self._sequences.next_value(name, start_after=seed)
        return format_business_number(prefix, year, value, self.policy.numbering.width)

    def create_numbered(self, entity: NumberedEntity, build: Callable[[str], T]) -> T:
        """
        Insert the row ``build(number)`` returns, retrying with a new number
        on a uniqueness conflict on the number column.

        Returns:
            The flushed row.

        Raises:
            UniquenessConflict: every attempt collided.
            IntegrityError: any other constraint failure.
        """
        entity = NumberedEntity(entity)
        target = NUMBER_TARGETS[entity]
        retry = self.policy.retry
        number = None

        for attempt in range(retry.max_attempts):
            number = self.next_number(entity)
            savepoint = self.session.begin_nested()
            try:
                row = build(number)
                self.session.add(row)
                self.session.flush()
                savepoint.commit()
            except IntegrityError as exc:
                savepoint.rollback()
                if not is_number_conflict(exc, target):
                    raise
                logger.warning(
                    "business_number_conflict",
                    extra={
                        "entity": entity.value,
                        "number": number,
                        "attempt": attempt + 1,
                        "max_attempts": retry.max_attempts,
                    },
                )
                if attempt + 1 < retry.max_attempts:
                    self._sleep(retry.delay_for(attempt))
                continue

            logger.info(
                "business_number_assigned",
                extra={"entity": entity.value, "number": number, "attempt": attempt + 1},
            )
            return row

        logger.error(
            "business_number_retries_exhausted",
            extra={"entity": entity.value, "last_number": number, "attempts": retry.max_attempts},
        )
        raise UniquenessConflict(target.column, value=number, attempts=retry.max_attempts)
