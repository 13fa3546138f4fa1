"""
DomainEvent -- what the PO lifecycle tells the audit collaborator.

Every appended POEvent is mirrored as one DomainEvent and handed to the
configured ``DomainEventPublisher`` inside the same unit of work.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID


@dataclass(frozen=True)
class DomainEvent:
    """
    Immutable description of something that happened to an entity.

    ``action`` is dotted (``po.submitted``, ``po.receipt_recorded``).
    ``payload`` must be JSON-serializable.
    """

    action: str
    entity_type: str
    entity_id: UUID
    actor: str | None
    occurred_at: datetime
    payload: dict[str, Any] = field(default_factory=dict)
