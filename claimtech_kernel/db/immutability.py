"""
ORM-level append-only enforcement for the audit log.

Audit entries are written once and never changed.  SQLAlchemy fires
``before_update`` / ``before_delete`` mapper events before any SQL reaches
the database; the listeners below turn those into
ImmutabilityViolationError so the flush (and the caller's transaction) is
aborted.

    session.flush()
         |
         v
    [before_update] --> _block_audit_log_update() --> ImmutabilityViolationError
    [before_delete] --> _block_audit_log_delete() --> ImmutabilityViolationError

Usage:
    from claimtech_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup

Bulk Core statements (``delete(AuditLog.__table__)``) bypass the ORM and are
reserved for test teardown.
"""

from sqlalchemy import event

from claimtech_kernel.exceptions import ImmutabilityViolationError
from claimtech_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _block(target, operation: str, reason: str) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "AuditLog",
            "entity_id": str(target.id),
            "operation": operation,
        },
    )
    raise ImmutabilityViolationError(
        entity_type="AuditLog",
        entity_id=str(target.id),
        reason=reason,
    )


def _block_audit_log_update(mapper, connection, target):
    _block(target, "UPDATE", "Audit log entries cannot be modified")


def _block_audit_log_delete(mapper, connection, target):
    _block(target, "DELETE", "Audit log entries cannot be deleted")


def register_immutability_listeners() -> None:
    """Install the audit-log listeners (safe to call more than once)."""
    from claimtech_kernel.models.audit_log import AuditLog

    if not event.contains(AuditLog, "before_update", _block_audit_log_update):
        event.listen(AuditLog, "before_update", _block_audit_log_update)
    if not event.contains(AuditLog, "before_delete", _block_audit_log_delete):
        event.listen(AuditLog, "before_delete", _block_audit_log_delete)


def unregister_immutability_listeners() -> None:
    """Remove the listeners.  Tests only."""
    from claimtech_kernel.models.audit_log import AuditLog

    if event.contains(AuditLog, "before_update", _block_audit_log_update):
        event.remove(AuditLog, "before_update", _block_audit_log_update)
    if event.contains(AuditLog, "before_delete", _block_audit_log_delete):
        event.remove(AuditLog, "before_delete", _block_audit_log_delete)
