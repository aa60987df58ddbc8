"""
BaseService -- common constructor and session contract for kernel services.

Responsibility:
    Every service receives a SQLAlchemy ``Session`` from the caller and
    persists through ``session.flush()`` -- never ``session.commit()``.
    Multi-step operations are wrapped in ``session.begin_nested()`` so a
    failure rolls back only the service's own writes.

Architecture position:
    Kernel > Services -- imperative shell.

Failure modes:
    - A subclass that commits breaks the atomicity of workflow actions
      (request + assessment creation, linkage + stage write).
"""

from abc import ABC

from sqlalchemy.orm import Session

from claimtech_kernel.domain.clock import Clock, SystemClock
from claimtech_kernel.domain.policies import WorkflowPolicy


class BaseService(ABC):
    """
    Abstract base class for kernel services.

    Non-goals:
        - Does NOT manage the transaction lifecycle (commit/rollback).
        - Does NOT provide read views -- those live in ``selectors/``.
    """

    def __init__(
        self,
        session: Session,
        policy: WorkflowPolicy | None = None,
        clock: Clock | None = None,
    ):
        self.session = session
        self.policy = policy or WorkflowPolicy()
        self.clock = clock or SystemClock()
