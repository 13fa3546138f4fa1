"""
Purchasing Module Service (``supply_modules.purchasing.service``).

Responsibility
--------------
The single public entry point for the purchase order lifecycle: draft
creation and edit, submission with threshold-gated approval, approval,
rejection, cancellation, dispatch, shipments, and receiving.  Pure
decisions are delegated to ``supply_engines``; state changes go through
``POStateMachine`` and ``ReceivingService``.

Architecture position
---------------------
**Modules layer**.  Composes kernel services (settings, suppliers,
inventory, audit publisher), the PO number allocator, the state machine
and receiving.  Those collaborators only flush.

Invariants enforced
-------------------
* Each public method owns the transaction boundary: ``commit`` on success,
  ``rollback`` on any exception, so every operation is all-or-nothing.
* Validation and not-found errors are raised before anything is written.
* Unexpected SQLAlchemy errors surface as ``StorageError`` with a generic
  message; the driver exception is chained and logged.
* The approval threshold is read from settings at submit time, never cached.

Usage::

    service = PurchasingService(session, clock=clock)
    po = service.create_draft(supplier_id, [LineItemInput("SKU-A", 10, 250)], actor="ops@example.com")
    service.submit(po.id, actor="ops@example.com")
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import date
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from supply_engines.approval import evaluate_submission
from supply_kernel.domain.clock import Clock, SystemClock
from supply_kernel.domain.money import format_cents
from supply_kernel.exceptions import (
    PONumberConflictError,
    ShipmentNotFoundError,
    StorageError,
    SupplyKernelError,
    ValidationError,
)
from supply_kernel.logging_config import LogContext, get_logger
from supply_kernel.selectors.supplier_selector import SupplierSelector
from supply_kernel.services.audit_log_service import AuditLogPublisher, DomainEventPublisher
from supply_kernel.services.settings_service import SettingsService
from supply_modules.purchasing.config import PurchasingConfig
from supply_modules.purchasing.models import (
    LineItemInput,
    POStatus,
    PurchaseOrder,
    PurchaseOrderDetail,
    Receipt,
    ReceiptLineInput,
    ReceiptResult,
    Shipment,
    ShipmentStatus,
    SubmitResult,
    TransitionResult,
)
from supply_modules.purchasing.orm import (
    POLineItemModel,
    PurchaseOrderModel,
    ShipmentModel,
)
from supply_modules.purchasing.po_number import PONumberAllocator
from supply_modules.purchasing.receiving import ReceivingService
from supply_modules.purchasing.selector import PurchaseOrderSelector
from supply_modules.purchasing.state_machine import POStateMachine

logger = get_logger("modules.purchasing.service")


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class PurchasingService:
    """
    Orchestrates the purchase order lifecycle.

    Guarantees
    ----------
    * Session is committed only when the operation completes; any error
      rolls back every write of that operation (line increments, inventory,
      events, audit rows).
    * Clock and publisher are injectable for deterministic testing.

    Non-goals
    ---------
    * Does not retry conflicts; callers refresh and decide.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: PurchasingConfig | None = None,
        publisher: DomainEventPublisher | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or PurchasingConfig.with_defaults()
        self._publisher = publisher or AuditLogPublisher(session)

        self._state_machine = POStateMachine(session, self._clock, self._publisher)
        self._receiving = ReceivingService(session, self._clock, self._state_machine)
        self._numbers = PONumberAllocator(session, self._clock, prefix=self._config.po_number_prefix)
        self._settings = SettingsService(session)
        self._suppliers = SupplierSelector(session)
        self._selector = PurchaseOrderSelector(session)

    # ------------------------------------------------------------------
    # Transaction boundary
    # ------------------------------------------------------------------

    @contextmanager
    def _transaction(self, operation: str, **fields) -> Iterator[None]:
        with LogContext.bind(po_id=fields.get("po_id")):
            try:
                yield
                self._session.commit()
                logger.debug("purchasing_operation_committed", extra={"operation": operation, **fields})
            except SupplyKernelError as exc:
                self._session.rollback()
                logger.info(
                    "purchasing_operation_rejected",
                    extra={"operation": operation, "error_code": exc.code, **fields},
                )
                raise
            except SQLAlchemyError as exc:
                self._session.rollback()
                logger.error(
                    "purchasing_storage_failure",
                    extra={"operation": operation, **fields},
                    exc_info=True,
                )
                raise StorageError(operation) from exc
            except Exception:
                self._session.rollback()
                logger.exception("purchasing_operation_failed", extra={"operation": operation, **fields})
                raise

    # ------------------------------------------------------------------
    # Line items
    # ------------------------------------------------------------------

    def _build_lines(
        self,
        supplier_id: UUID,
        line_items: Sequence[LineItemInput],
    ) -> list[POLineItemModel]:
        """Validate inputs and price them (catalog cost when omitted)."""
        catalog = self._suppliers.catalog(supplier_id)
        seen: set[str] = set()
        models: list[POLineItemModel] = []

        for index, item in enumerate(line_items):
            field = f"line_items[{index}]"
            sku = (item.sku or "").strip()
            if not sku:
                raise ValidationError(f"{field}.sku", "SKU is required")
            if sku in seen:
                raise ValidationError(f"{field}.sku", f"duplicate SKU {sku}")
            seen.add(sku)

            if not _is_int(item.quantity) or item.quantity <= 0:
                raise ValidationError(f"{field}.quantity", "must be a positive integer")

            product = catalog.get(sku)
            unit_cost = item.unit_cost_cents
            if unit_cost is None and product is not None:
                unit_cost = product.unit_cost_cents
            if unit_cost is None:
                raise ValidationError(
                    f"{field}.unit_cost_cents",
                    f"no unit cost given and none in the supplier catalog for {sku}",
                )
            if not _is_int(unit_cost) or unit_cost < 0:
                raise ValidationError(f"{field}.unit_cost_cents", "must be a non-negative integer")

            models.append(
                POLineItemModel(
                    sku=sku,
                    product_name=item.product_name or (product.product_name if product else None),
                    supplier_sku=item.supplier_sku or (product.supplier_sku if product else None),
                    quantity=item.quantity,
                    unit_cost_cents=unit_cost,
                    total_cents=item.quantity * unit_cost,
                    received_quantity=0,
                    sort_order=index,
                    over_received=False,
                )
            )
        return models

    def _active_supplier(self, supplier_id: UUID):
        supplier = self._suppliers.get(supplier_id)
        if not supplier.is_active:
            raise ValidationError("supplier_id", f"supplier {supplier.name} is inactive")
        return supplier

    # ------------------------------------------------------------------
    # Draft
    # ------------------------------------------------------------------

    def create_draft(
        self,
        supplier_id: UUID,
        line_items: Sequence[LineItemInput],
        *,
        actor: str | None = None,
        requested_delivery_date: date | None = None,
    ) -> PurchaseOrder:
        """Create a draft PO with a freshly allocated number."""
        with self._transaction("create_draft", supplier_id=str(supplier_id)):
            if not line_items:
                raise ValidationError("line_items", "at least one line item is required")
            self._active_supplier(supplier_id)
            lines = self._build_lines(supplier_id, line_items)

            po_number = self._numbers.allocate()
            po = PurchaseOrderModel(
                po_number=po_number,
                supplier_id=supplier_id,
                status=POStatus.DRAFT.value,
                version=1,
                total_cents=sum(line.total_cents for line in lines),
                requested_delivery_date=requested_delivery_date,
                created_by=actor,
                updated_by=actor,
            )
            for line in lines:
                line.created_by = actor
                line.updated_by = actor
            po.line_items.extend(lines)
            self._session.add(po)
            try:
                self._session.flush()
            except IntegrityError as exc:
                raise PONumberConflictError(po_number) from exc

            self._state_machine.record_creation(
                po,
                actor=actor,
                note=f"PO {po_number} created with {len(lines)} line items",
                metadata={"total_cents": po.total_cents, "line_count": len(lines)},
            )
            created = self._state_machine.load(po.id).to_dto()

        return created

    def update_draft(
        self,
        po_id: UUID,
        line_items: Sequence[LineItemInput],
        *,
        actor: str | None = None,
        requested_delivery_date: date | None = None,
    ) -> PurchaseOrder:
        """Replace every line of a draft and recompute its total."""
        with self._transaction("update_draft", po_id=str(po_id)):
            po = self._state_machine.load(po_id)
            self._state_machine.check_action(po, "edit")
            lines = self._build_lines(po.supplier_id, line_items)
            total = sum(line.total_cents for line in lines)

            values: dict = {"total_cents": total}
            if requested_delivery_date is not None:
                values["requested_delivery_date"] = requested_delivery_date

            old_lines = list(po.line_items)
            self._state_machine.apply(
                po,
                "edit",
                POStatus.DRAFT.value,
                actor=actor,
                note=f"PO {po.po_number} updated with {len(lines)} line items",
                metadata={
                    "previous_total_cents": po.total_cents,
                    "total_cents": total,
                    "line_count": len(lines),
                },
                values=values,
            )

            for line in old_lines:
                self._session.delete(line)
            self._session.flush()
            for line in lines:
                line.purchase_order_id = po.id
                line.created_by = actor
                line.updated_by = actor
                self._session.add(line)
            self._session.flush()

            updated = self._state_machine.load(po_id).to_dto()

        return updated

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def submit(self, po_id: UUID, *, actor: str | None = None) -> SubmitResult:
        """Submit a draft: pending_approval at/above threshold, approved below."""
        with self._transaction("submit", po_id=str(po_id)):
            po = self._state_machine.load(po_id)
            self._state_machine.check_action(po, "submit")
            if not po.line_items:
                raise ValidationError("line_items", "cannot submit a PO with no line items")

            total = sum(line.total_cents for line in po.line_items)
            threshold = self._settings.get_int(
                self._config.threshold_setting_category,
                self._config.threshold_setting_key,
                default=self._config.default_approval_threshold_cents,
            )
            outcome = evaluate_submission(total_cents=total, threshold_cents=threshold)

            values: dict = {"total_cents": total}
            if outcome.auto_approved:
                values["approved_by"] = self._config.auto_approval_actor
                values["approved_at"] = self._clock.now_utc()

            event = self._state_machine.apply(
                po,
                "submit",
                outcome.target_status,
                actor=actor,
                note=outcome.describe(po.po_number),
                metadata={
                    "total_cents": total,
                    "threshold_cents": threshold,
                    "needs_approval": outcome.needs_approval,
                    "reason": outcome.reason,
                },
                values=values,
            )
            result = SubmitResult(
                purchase_order_id=po.id,
                status=POStatus(outcome.target_status),
                needs_approval=outcome.needs_approval,
                total_cents=total,
                threshold_cents=threshold,
                version=event.po_version,
            )

        return result

    def approve(self, po_id: UUID, actor: str, note: str | None = None) -> TransitionResult:
        with self._transaction("approve", po_id=str(po_id)):
            if not actor or not actor.strip():
                raise ValidationError("actor", "approver identity is required")
            po = self._state_machine.load(po_id)
            event = self._state_machine.apply(
                po,
                "approve",
                POStatus.APPROVED.value,
                actor=actor,
                note=note or "PO approved",
                values={"approved_by": actor, "approved_at": self._clock.now_utc()},
            )
            result = TransitionResult(po.id, POStatus.APPROVED, event.po_version)

        return result

    def reject(self, po_id: UUID, actor: str | None = None, note: str | None = None) -> TransitionResult:
        with self._transaction("reject", po_id=str(po_id)):
            po = self._state_machine.load(po_id)
            event = self._state_machine.apply(
                po,
                "reject",
                POStatus.DRAFT.value,
                actor=actor,
                note=note or "PO rejected - returned to draft",
            )
            result = TransitionResult(po.id, POStatus.DRAFT, event.po_version)

        return result

    def cancel(self, po_id: UUID, *, actor: str | None = None, note: str | None = None) -> TransitionResult:
        with self._transaction("cancel", po_id=str(po_id)):
            po = self._state_machine.load(po_id)
            event = self._state_machine.apply(
                po,
                "cancel",
                POStatus.CANCELLED.value,
                actor=actor,
                note=note or "PO cancelled",
                values={"cancelled_at": self._clock.now_utc()},
            )
            result = TransitionResult(po.id, POStatus.CANCELLED, event.po_version)

        return result

    def send(self, po_id: UUID, *, actor: str | None = None) -> TransitionResult:
        """Mark an approved PO as sent.

        Raises:
            PONotApprovedError: the PO is not currently approved.
        """
        with self._transaction("send", po_id=str(po_id)):
            po = self._state_machine.load(po_id)
            event = self._state_machine.apply(
                po,
                "send",
                POStatus.SENT.value,
                actor=actor,
                note=f"PO {po.po_number} marked as sent to supplier",
                values={"sent_at": self._clock.now_utc()},
            )
            result = TransitionResult(po.id, POStatus.SENT, event.po_version)

        return result

    # ------------------------------------------------------------------
    # Shipments
    # ------------------------------------------------------------------

    def record_shipment(
        self,
        po_id: UUID,
        *,
        carrier: str | None = None,
        tracking_number: str | None = None,
        shipped_date: date | None = None,
        expected_arrival: date | None = None,
        actor: str | None = None,
    ) -> Shipment:
        with self._transaction("record_shipment", po_id=str(po_id)):
            po = self._state_machine.load(po_id)
            self._state_machine.check_action(po, "record_shipment")

            shipment = ShipmentModel(
                purchase_order_id=po.id,
                carrier=carrier,
                tracking_number=tracking_number,
                shipped_date=shipped_date,
                expected_arrival=expected_arrival,
                status=ShipmentStatus.IN_TRANSIT.value,
                created_by=actor,
                updated_by=actor,
            )
            self._session.add(shipment)
            self._session.flush()

            label = " ".join(part for part in (carrier, tracking_number) if part) or "no carrier details"
            self._state_machine.apply(
                po,
                "record_shipment",
                po.status,
                actor=actor,
                note=f"Shipment created: {label}",
                metadata={
                    "shipment_id": str(shipment.id),
                    "carrier": carrier,
                    "tracking_number": tracking_number,
                },
            )
            created = shipment.to_dto()

        return created

    def update_shipment_status(
        self,
        shipment_id: UUID,
        status: ShipmentStatus | str,
        *,
        actual_arrival: date | None = None,
        actor: str | None = None,
    ) -> Shipment:
        with self._transaction("update_shipment_status", shipment_id=str(shipment_id)):
            try:
                new_status = ShipmentStatus(status)
            except ValueError as exc:
                raise ValidationError(
                    "status",
                    f"must be one of {', '.join(s.value for s in ShipmentStatus)}",
                ) from exc

            shipment = self._session.get(ShipmentModel, shipment_id)
            if shipment is None:
                raise ShipmentNotFoundError(str(shipment_id))

            shipment.status = new_status.value
            if actual_arrival is not None:
                shipment.actual_arrival = actual_arrival
            shipment.updated_by = actor
            self._session.flush()

            logger.info(
                "shipment_status_updated",
                extra={"shipment_id": str(shipment_id), "status": new_status.value},
            )
            updated = shipment.to_dto()

        return updated

    # ------------------------------------------------------------------
    # Receiving
    # ------------------------------------------------------------------

    def record_receipt(
        self,
        po_id: UUID,
        lines: Sequence[ReceiptLineInput],
        *,
        received_by: str | None = None,
        shipment_id: UUID | None = None,
        note: str | None = None,
    ) -> ReceiptResult:
        """Apply one receipt atomically.  Over-receipt is reported, not raised."""
        with self._transaction("record_receipt", po_id=str(po_id)):
            result = self._receiving.record_receipt(
                po_id,
                lines,
                received_by=received_by,
                shipment_id=shipment_id,
                note=note,
            )

        return result

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_purchase_order(self, po_id: UUID) -> PurchaseOrder:
        with self._transaction("get_purchase_order", po_id=str(po_id)):
            po = self._selector.get(po_id)
        return po

    def get_detail(self, po_id: UUID) -> PurchaseOrderDetail:
        with self._transaction("get_detail", po_id=str(po_id)):
            detail = self._selector.get_detail(po_id)
        return detail

    def list_purchase_orders(
        self,
        status: POStatus | str | None = None,
        supplier_id: UUID | None = None,
        limit: int | None = None,
    ) -> list[PurchaseOrder]:
        with self._transaction("list_purchase_orders"):
            if status is not None:
                try:
                    status = POStatus(status)
                except ValueError as exc:
                    raise ValidationError("status", f"unknown status {status!r}") from exc
            if limit is None:
                limit = self._config.default_list_limit
            elif not _is_int(limit) or limit <= 0:
                raise ValidationError("limit", "must be a positive integer")
            orders = self._selector.list_purchase_orders(
                status=status,
                supplier_id=supplier_id,
                limit=limit,
            )
        return orders

    def list_receipts(self, po_id: UUID) -> list[Receipt]:
        with self._transaction("list_receipts", po_id=str(po_id)):
            self._selector.get(po_id)
            receipts = self._selector.list_receipts(po_id)
        return receipts

    def replayed_status(self, po_id: UUID) -> POStatus | None:
        """Status rebuilt from the event log alone.

        Raises:
            EventChainBrokenError: the log does not chain.
        """
        with self._transaction("replayed_status", po_id=str(po_id)):
            self._selector.get(po_id)
            status = self._selector.replayed_status(po_id)
        return status

    def describe_total(self, po_id: UUID) -> str:
        """Human-readable total, e.g. ``$1,234.56``."""
        return format_cents(self.get_purchase_order(po_id).total_cents)
