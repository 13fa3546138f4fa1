"""
Module: supply_kernel.models.audit_log
Responsibility: Append-only audit trail persisted verbatim from DomainEvents.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Append-only: UPDATE and DELETE are rejected by the ORM listeners in
      db/immutability.py.
    - Rows are written in the same transaction as the change they describe;
      a rolled-back operation leaves no audit row.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import JSON, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from supply_kernel.db.base import Base, UTCDateTime


class AuditLogModel(Base):
    """
    One audited action.

    ``action`` is dotted (``po.approved``); ``entity_type`` / ``entity_id``
    identify the subject; ``payload`` is the JSON body of the DomainEvent.
    """

    __tablename__ = "audit_logs"

    __table_args__ = (
        Index("idx_audit_log_entity", "entity_type", "entity_id"),
        Index("idx_audit_log_action", "action"),
    )

    action: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_id: Mapped[UUID] = mapped_column(nullable=False)
    actor: Mapped[str | None] = mapped_column(String(255), nullable=True)
    occurred_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} {self.entity_type}:{self.entity_id}>"
