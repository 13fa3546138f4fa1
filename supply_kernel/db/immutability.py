"""
ORM-Level Append-Only Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

The PO event log, receipts and the audit log are the history the lifecycle
is reconstructed from.  They are facts: a mistake is corrected by a new
fact (a correcting receipt), never by editing or deleting an old one.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events:

    session.flush()
         |
         v
    [before_update event] --> _reject_update() --> ImmutabilityViolationError
         |
         v
    [before_delete event] --> _reject_delete() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

If a check fails, ImmutabilityViolationError propagates out of flush() and
the caller's transaction is rolled back.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity        | When Immutable         | Table
--------------|------------------------|---------------
POEvent       | ALWAYS (from creation) | po_events
Receipt       | ALWAYS (from creation) | receipts
ReceiptLine   | ALWAYS (from creation) | receipt_lines
AuditLog      | ALWAYS (from creation) | audit_logs

===============================================================================
USAGE
===============================================================================

Called once during bootstrap (and by the test harness):

    from supply_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event

from supply_kernel.exceptions import ImmutabilityViolationError
from supply_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _append_only_models() -> dict[type, str]:
    """Map each append-only ORM class to the entity name used in errors."""
    # Inline imports: models import from db.
    from supply_kernel.models.audit_log import AuditLogModel
    from supply_modules.purchasing.orm import (
        POEventModel,
        ReceiptLineModel,
        ReceiptModel,
    )

    return {
        POEventModel: "POEvent",
        ReceiptModel: "Receipt",
        ReceiptLineModel: "ReceiptLine",
        AuditLogModel: "AuditLog",
    }


def _entity_type_of(target) -> str:
    for model, entity_type in _append_only_models().items():
        if isinstance(target, model):
            return entity_type
    return type(target).__name__


def _reject_update(mapper, connection, target):
    """Prevent any update to an append-only record."""
    entity_type = _entity_type_of(target)
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": "UPDATE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=f"{entity_type} records are append-only",
    )


def _reject_delete(mapper, connection, target):
    """Prevent deletion of an append-only record."""
    entity_type = _entity_type_of(target)
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": "DELETE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=f"{entity_type} records cannot be deleted",
    )


def register_immutability_listeners():
    """
    Register all append-only enforcement event listeners.

    Idempotent: a listener already attached is not attached twice.
    """
    for model in _append_only_models():
        if not event.contains(model, "before_update", _reject_update):
            event.listen(model, "before_update", _reject_update)
        if not event.contains(model, "before_delete", _reject_delete):
            event.listen(model, "before_delete", _reject_delete)

    logger.debug(
        "immutability_listeners_registered",
        extra={"models": sorted(m.__name__ for m in _append_only_models())},
    )


def _safe_remove_listener(target, event_name, listener_fn):
    """
    Safely remove an event listener, ignoring if not registered.
    """
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove append-only enforcement event listeners.

    WARNING: Only use this in tests that must bypass the rule to set up a
    corrupted fixture (e.g. a broken event chain).
    """
    for model in _append_only_models():
        _safe_remove_listener(model, "before_update", _reject_update)
        _safe_remove_listener(model, "before_delete", _reject_delete)
