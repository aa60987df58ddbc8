"""
AuditLogService -- append-only audit entries for workflow changes.

Responsibility:
    Writes AuditLog rows and reads them back in creation order.

Architecture position:
    Kernel > Services.  Called by StageTransitionService,
    ChildRecordFactory and WorkflowService after their primary write.

Failure modes:
    - ``record()`` propagates persistence errors.
    - ``record_best_effort()`` runs the insert in a savepoint and, on
      failure, rolls the savepoint back, logs ``audit_write_failed`` at
      ERROR and returns None.  The primary operation is never aborted by
      an audit failure.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from claimtech_kernel.logging_config import get_logger
from claimtech_kernel.models.audit_log import AuditAction, AuditLog
from claimtech_kernel.services.base import BaseService

logger = get_logger("services.audit_log")


def _text(value: Any) -> str | None:
    if value is None:
        return None
    return str(getattr(value, "value", value))


class AuditLogService(BaseService):

    def record(
        self,
        entity_type: str,
        entity_id: UUID,
        action: AuditAction | str,
        changed_by: UUID | None = None,
        field_name: str | None = None,
        old_value: Any = None,
        new_value: Any = None,
        details: dict | None = None,
    ) -> AuditLog:
        entry = AuditLog(
            entity_type=entity_type,
            entity_id=entity_id,
            action=_text(action),
            field_name=field_name,
            old_value=_text(old_value),
            new_value=_text(new_value),
            changed_by=changed_by,
            details=details or {},
            created_at=self.clock.now(),
        )
        self.session.add(entry)
        self.session.flush()
        logger.debug(
            "audit_entry_written",
            extra={"entity_type": entity_type, "entity_id": str(entity_id), "action": entry.action},
        )
        return entry

    def record_best_effort(self, entity_type: str, entity_id: UUID, action: AuditAction | str, **kwargs) -> AuditLog | None:
        """Like ``record()``, but a failure is logged instead of raised."""
        try:
            with self.session.begin_nested():
                return self.record(entity_type, entity_id, action, **kwargs)
        except SQLAlchemyError:
            logger.error(
                "audit_write_failed",
                extra={
                    "entity_type": entity_type,
                    "entity_id": str(entity_id),
                    "action": _text(action),
                },
                exc_info=True,
            )
            return None

    def entries_for(self, entity_type: str, entity_id: UUID) -> list[AuditLog]:
        return list(
            self.session.execute(
                select(AuditLog)
                .where(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
                .order_by(AuditLog.created_at, AuditLog.id)
            ).scalars()
        )
