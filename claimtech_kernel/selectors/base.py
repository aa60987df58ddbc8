"""
Module: claimtech_kernel.selectors.base
Responsibility: Base class for read-only query selectors (the query side of
    the kernel).
Architecture position: Kernel > Selectors.  May import db/, models/ and
    the pure domain.  MUST NOT import from services/.

Invariants enforced:
    - Read-only: selectors never add, delete, flush or commit.
    - DTO return convention: selectors return frozen dataclasses, not ORM
      instances.
    - The caller owns the session and its transaction.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """Holds the caller's session for subclass queries."""

    def __init__(self, session: Session):
        self.session = session
