"""
Module: claimtech_kernel.models.audit_log
Responsibility: Append-only audit trail of workflow changes (stage changes,
    default child-record creation, peer record creation).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Rows are never updated or deleted.  Enforced by the ORM listeners in
      db/immutability.py.

Audit relevance:
    ``details`` is stored in the ``metadata`` column (the attribute name
    ``metadata`` is reserved on declarative classes).  Stage changes put the
    linkage written alongside the stage and the optional reason there.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import JSON, DateTime, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from claimtech_kernel.db.base import Base, UUIDString


class AuditAction(str, Enum):
    CREATED = "created"
    STAGE_CHANGED = "stage_changed"
    LINKED = "linked"
    DEFAULT_CREATED = "default_created"


class AuditLog(Base):
    __tablename__ = "audit_logs"

    __table_args__ = (
        Index("idx_audit_logs_entity", "entity_type", "entity_id"),
    )

    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)

    entity_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    action: Mapped[str] = mapped_column(String(50), nullable=False)

    field_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    old_value: Mapped[str | None] = mapped_column(Text, nullable=True)

    new_value: Mapped[str | None] = mapped_column(Text, nullable=True)

    changed_by: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    details: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AuditLog {self.entity_type}:{self.entity_id} {self.action}>"
