"""
Audit log publishing.

Responsibility:
    Defines the ``DomainEventPublisher`` collaborator interface and the
    default ``AuditLogPublisher``, which persists each DomainEvent verbatim
    as an ``audit_logs`` row in the caller's transaction.

Architecture position:
    Kernel > Services.  Flush-only; a rolled-back operation publishes
    nothing.
"""

from typing import Protocol, runtime_checkable

from supply_kernel.domain.events import DomainEvent
from supply_kernel.logging_config import get_logger
from supply_kernel.models.audit_log import AuditLogModel
from supply_kernel.services.base import BaseService

logger = get_logger("services.audit_log")


@runtime_checkable
class DomainEventPublisher(Protocol):
    """Receives every domain event emitted inside a unit of work."""

    def publish(self, event: DomainEvent) -> None: ...


class AuditLogPublisher(BaseService[AuditLogModel]):
    """Default publisher: append one ``audit_logs`` row per event."""

    def publish(self, event: DomainEvent) -> None:
        row = AuditLogModel(
            action=event.action,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
            actor=event.actor,
            occurred_at=event.occurred_at,
            payload=dict(event.payload),
        )
        self.session.add(row)
        self.session.flush()
        logger.debug(
            "audit_log_appended",
            extra={
                "action": event.action,
                "entity_type": event.entity_type,
                "entity_id": str(event.entity_id),
            },
        )
