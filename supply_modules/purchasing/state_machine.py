"""
PO State Machine executor.

Responsibility
--------------
Apply ``PURCHASE_ORDER_WORKFLOW`` transitions to stored purchase orders:
check that the action is legal from the current status, write the new
status with a conditional UPDATE, and append exactly one ``po_events`` row
(mirrored to the DomainEventPublisher) in the caller's transaction.

Concurrency
-----------
* ``apply()`` is optimistic: ``UPDATE ... WHERE id = :id AND status = :read
  AND version = :read_version``.  Zero rows updated means another caller
  won; the actual status is re-read and ``ConcurrentModificationError`` is
  raised.  Nothing is retried here.
* ``claim()`` is used by receiving: it bumps the version of a PO that is
  in a receivable status, which takes the row lock for the rest of the
  transaction, so concurrent receipts against one PO queue instead of
  failing.  ``complete_claim()`` then writes the final status at the
  claimed version without a second bump.
* ``po_events`` is unique on (purchase_order_id, po_version); the version
  bump is what makes "one event per transition" hold in storage.

Flush-only: the caller owns commit/rollback.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from supply_kernel.domain.clock import Clock
from supply_kernel.domain.events import DomainEvent
from supply_kernel.domain.workflow import Transition, Workflow
from supply_kernel.exceptions import (
    ConcurrentModificationError,
    PONotApprovedError,
    PurchaseOrderNotFoundError,
    StateConflictError,
)
from supply_kernel.logging_config import LogContext, get_logger
from supply_kernel.services.audit_log_service import DomainEventPublisher
from supply_modules.purchasing.orm import POEventModel, PurchaseOrderModel
from supply_modules.purchasing.workflows import PURCHASE_ORDER_WORKFLOW

logger = get_logger("modules.purchasing.state_machine")

ENTITY_TYPE = "PurchaseOrder"


class POStateMachine:

    def __init__(
        self,
        session: Session,
        clock: Clock,
        publisher: DomainEventPublisher,
        workflow: Workflow = PURCHASE_ORDER_WORKFLOW,
    ):
        self._session = session
        self._clock = clock
        self._publisher = publisher
        self._workflow = workflow

    @property
    def workflow(self) -> Workflow:
        return self._workflow

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def load(self, po_id: UUID) -> PurchaseOrderModel:
        """Fresh read of a PO and its lines.

        Raises:
            PurchaseOrderNotFoundError: unknown id.
        """
        po = self._session.execute(
            select(PurchaseOrderModel)
            .where(PurchaseOrderModel.id == po_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if po is None:
            raise PurchaseOrderNotFoundError(str(po_id))
        return po

    def _current_status(self, po_id: UUID) -> str:
        status = self._session.execute(
            select(PurchaseOrderModel.status).where(PurchaseOrderModel.id == po_id)
        ).scalar_one_or_none()
        if status is None:
            raise PurchaseOrderNotFoundError(str(po_id))
        return status

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def check_action(self, po: PurchaseOrderModel, action: str) -> tuple[Transition, ...]:
        """Transitions ``action`` may take from the PO's status.

        Raises:
            PONotApprovedError: ``send`` from anything but approved.
            StateConflictError: any other illegal (status, action) pair.
        """
        candidates = self._workflow.transitions_for(po.status, action)
        if not candidates:
            logger.warning(
                "po_transition_rejected",
                extra={
                    "po_id": str(po.id),
                    "current_status": po.status,
                    "attempted_action": action,
                },
            )
            if action == "send":
                raise PONotApprovedError(str(po.id), po.status)
            raise StateConflictError(str(po.id), po.status, action)
        return candidates

    def resolve(self, po: PurchaseOrderModel, action: str, to_status: str) -> Transition:
        for transition in self.check_action(po, action):
            if transition.to_state == to_status:
                return transition
        raise StateConflictError(
            str(po.id),
            po.status,
            action,
            message=(
                f"Cannot {action} purchase order {po.id} from '{po.status}' "
                f"to '{to_status}'"
            ),
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def apply(
        self,
        po: PurchaseOrderModel,
        action: str,
        to_status: str,
        *,
        actor: str | None,
        note: str | None = None,
        metadata: dict[str, Any] | None = None,
        values: dict[str, Any] | None = None,
    ) -> POEventModel:
        """Compare-and-swap the PO's status and append the event.

        ``po`` must be the row as read in this transaction; its status and
        version are the compare values.  ``values`` are extra columns set
        by the same UPDATE (timestamps, approver, total).
        """
        transition = self.resolve(po, action, to_status)
        read_status, read_version = po.status, po.version
        new_version = read_version + 1
        now = self._clock.now_utc()

        result = self._session.execute(
            update(PurchaseOrderModel)
            .where(
                PurchaseOrderModel.id == po.id,
                PurchaseOrderModel.status == read_status,
                PurchaseOrderModel.version == read_version,
            )
            .values(
                status=to_status,
                version=new_version,
                updated_at=now,
                updated_by=actor,
                **(values or {}),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self._raise_lost_race(po.id, action, read_status)

        return self._append_event(
            po_id=po.id,
            po_number=po.po_number,
            po_version=new_version,
            event_type=transition.recorded_as,
            from_status=read_status,
            to_status=to_status,
            actor=actor,
            note=note,
            metadata=metadata,
            occurred_at=now,
        )

    def claim(self, po_id: UUID, action: str) -> tuple[str, int]:
        """Bump the version of a PO that is in a status ``action`` accepts.

        Returns:
            (status, claimed_version) as seen after the claim.

        Raises:
            StateConflictError: the PO is not in an accepting status.
            PurchaseOrderNotFoundError: unknown id.
        """
        sources = self._workflow.sources_for(action)
        result = self._session.execute(
            update(PurchaseOrderModel)
            .where(
                PurchaseOrderModel.id == po_id,
                PurchaseOrderModel.status.in_(sources),
            )
            .values(version=PurchaseOrderModel.version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            current = self._current_status(po_id)
            logger.warning(
                "po_claim_rejected",
                extra={"po_id": str(po_id), "current_status": current, "attempted_action": action},
            )
            raise StateConflictError(str(po_id), current, action)

        status, version = self._session.execute(
            select(PurchaseOrderModel.status, PurchaseOrderModel.version)
            .where(PurchaseOrderModel.id == po_id)
        ).one()
        return status, version

    def complete_claim(
        self,
        po: PurchaseOrderModel,
        action: str,
        claimed_version: int,
        to_status: str,
        *,
        actor: str | None,
        note: str | None = None,
        metadata: dict[str, Any] | None = None,
        values: dict[str, Any] | None = None,
    ) -> POEventModel:
        """Write the final status of a claimed PO and append its event."""
        transition = self.resolve(po, action, to_status)
        from_status = po.status
        now = self._clock.now_utc()

        result = self._session.execute(
            update(PurchaseOrderModel)
            .where(
                PurchaseOrderModel.id == po.id,
                PurchaseOrderModel.version == claimed_version,
            )
            .values(
                status=to_status,
                updated_at=now,
                updated_by=actor,
                **(values or {}),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self._raise_lost_race(po.id, action, from_status)

        return self._append_event(
            po_id=po.id,
            po_number=po.po_number,
            po_version=claimed_version,
            event_type=transition.recorded_as,
            from_status=from_status,
            to_status=to_status,
            actor=actor,
            note=note,
            metadata=metadata,
            occurred_at=now,
        )

    def record_creation(
        self,
        po: PurchaseOrderModel,
        *,
        actor: str | None,
        note: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> POEventModel:
        """Append the ``created`` event of a freshly inserted PO (version 1)."""
        return self._append_event(
            po_id=po.id,
            po_number=po.po_number,
            po_version=po.version,
            event_type="created",
            from_status=None,
            to_status=po.status,
            actor=actor,
            note=note,
            metadata=metadata,
            occurred_at=self._clock.now_utc(),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _raise_lost_race(self, po_id: UUID, action: str, expected_status: str) -> None:
        current = self._current_status(po_id)
        logger.warning(
            "po_concurrent_modification",
            extra={
                "po_id": str(po_id),
                "attempted_action": action,
                "expected_status": expected_status,
                "current_status": current,
            },
        )
        raise ConcurrentModificationError(
            str(po_id),
            current_status=current,
            attempted_action=action,
            expected_status=expected_status,
        )

    def _append_event(
        self,
        *,
        po_id: UUID,
        po_number: str,
        po_version: int,
        event_type: str,
        from_status: str | None,
        to_status: str,
        actor: str | None,
        note: str | None,
        metadata: dict[str, Any] | None,
        occurred_at: datetime,
    ) -> POEventModel:
        event = POEventModel(
            purchase_order_id=po_id,
            po_version=po_version,
            event_type=event_type,
            from_status=from_status,
            to_status=to_status,
            actor=actor,
            note=note,
            event_metadata=dict(metadata or {}),
            occurred_at=occurred_at,
        )
        self._session.add(event)
        self._session.flush()

        self._publisher.publish(
            DomainEvent(
                action=f"po.{event_type}",
                entity_type=ENTITY_TYPE,
                entity_id=po_id,
                actor=actor,
                occurred_at=occurred_at,
                payload={
                    "po_number": po_number,
                    "po_version": po_version,
                    "from_status": from_status,
                    "to_status": to_status,
                    "note": note,
                    **(metadata or {}),
                },
            )
        )

        with LogContext.bind(po_id=str(po_id), actor=actor):
            logger.info(
                "po_transition_applied",
                extra={
                    "po_number": po_number,
                    "event_type": event_type,
                    "from_status": from_status,
                    "to_status": to_status,
                    "po_version": po_version,
                },
            )
        return event
