"""
SequenceService -- monotonic counters behind business numbers.

Responsibility:
    Hands out the next integer for a named counter (one counter per
    ``PREFIX-YEAR``, e.g. ``REQ-2025``).  The increment is a single atomic
    statement::

        UPDATE sequence_counters
           SET current_value = current_value + 1
         WHERE name = :name
        RETURNING current_value

    so two sessions can never read the same value.  The counter row is
    created on first use inside a savepoint.

Architecture position:
    Kernel > Services -- infrastructure used by NumberingService.

Invariants enforced:
    - Values for one counter are strictly increasing.  Max-plus-one over
      the numbered table is never used.
    - The increment is part of the caller's transaction: a rollback gives
      the value back.

Failure modes:
    - IntegrityError while creating a counter row: another session created
      it first.  The savepoint is rolled back and the increment retried.
"""

from sqlalchemy import String, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from claimtech_kernel.db.base import Base
from claimtech_kernel.logging_config import get_logger

logger = get_logger("services.sequence")


class SequenceCounter(Base):
    """One named counter.  ``current_value`` is the last value handed out."""

    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
    )

    current_value: Mapped[int] = mapped_column(
        nullable=False,
        default=0,
    )


class SequenceService:
    """
    Transactional counter allocation.

    Usage:
        value = SequenceService(session).next_value("REQ-2025")
    """

    def __init__(self, session: Session):
        self._session = session

    def _increment(self, name: str) -> int | None:
        return self._session.execute(
            update(SequenceCounter)
            .where(SequenceCounter.name == name)
            .values(current_value=SequenceCounter.current_value + 1)
            .returning(SequenceCounter.current_value)
            .execution_options(synchronize_session=False)
        ).scalar_one_or_none()

    def next_value(self, name: str, start_after: int = 0) -> int:
        """
        Next value for counter ``name`` (always > 0).

        ``start_after`` seeds a counter that does not exist yet, for
        installations that already issued numbers before the counter
        existed.  It is ignored once the row exists.
        """
        value = self._increment(name)
        if value is None:
            savepoint = self._session.begin_nested()
            try:
                self._session.add(SequenceCounter(name=name, current_value=start_after + 1))
                self._session.flush()
                savepoint.commit()
                value = start_after + 1
            except IntegrityError:
                logger.debug("sequence_counter_race_retry", extra={"sequence_name": name})
                savepoint.rollback()
                value = self._increment(name)
                if value is None:
                    raise

        logger.debug("sequence_allocated", extra={"sequence_name": name, "value": value})
        return value

    def current_value(self, name: str) -> int | None:
        """Last value handed out, or None if the counter does not exist."""
        return self._session.execute(
            select(SequenceCounter.current_value).where(SequenceCounter.name == name)
        ).scalar_one_or_none()

    def reset(self, name: str, value: int = 0) -> None:
        """
        Set counter ``name`` to ``value`` (next allocation returns value + 1).

        WARNING: tests and data-migration scripts only.
        """
        updated = self._session.execute(
            update(SequenceCounter)
            .where(SequenceCounter.name == name)
            .values(current_value=value)
            .execution_options(synchronize_session=False)
        )
        if updated.rowcount == 0:
            self._session.add(SequenceCounter(name=name, current_value=value))
        self._session.flush()
