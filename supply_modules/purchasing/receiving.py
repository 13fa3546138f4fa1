"""
Receiving Reconciliation.

Responsibility
--------------
Fold one receipt into a purchase order: increment line received quantities,
increment per-location on-hand inventory, persist the immutable receipt,
and move the PO to ``partially_received`` or ``closed`` with exactly one
event.

Algorithm
---------
1. Validate the tuples, the PO's status, SKUs, locations and shipment.
   Nothing is written if any check fails.
2. Claim the PO (version bump under the row lock).  Concurrent receipts on
   the same PO queue here; a PO that left ``sent``/``partially_received``
   in the meantime fails with ``StateConflictError``.
3. Project the receipt onto the lines read after the claim, then
   ``received_quantity = received_quantity + :n`` per SKU.
4. ``InventoryService.increment_on_hand`` per (location, SKU) for the
   undamaged units.
5. Evaluate fulfillment on the projection and flag over-received lines.
6. Write the receipt rows and the final status/event.

Flush-only: ``PurchasingService`` commits or rolls back the whole receipt.
"""

from collections.abc import Sequence
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from supply_engines.reconciliation import (
    CLOSED,
    LinePosition,
    ReceiptAllocation,
    aggregate_by_sku,
    aggregate_on_hand,
    apply_increments,
    evaluate_fulfillment,
)
from supply_kernel.domain.clock import Clock
from supply_kernel.exceptions import (
    LineItemNotFoundError,
    LocationNotFoundError,
    ShipmentNotFoundError,
    ValidationError,
)
from supply_kernel.logging_config import LogContext, get_logger
from supply_kernel.selectors.inventory_selector import InventorySelector
from supply_kernel.services.inventory_service import InventoryService
from supply_modules.purchasing.models import (
    OverReceiptWarning,
    ReceiptLineInput,
    ReceiptResult,
)
from supply_modules.purchasing.orm import (
    POLineItemModel,
    ReceiptLineModel,
    ReceiptModel,
    ShipmentModel,
)
from supply_modules.purchasing.state_machine import POStateMachine

logger = get_logger("modules.purchasing.receiving")

RECEIVE = "receive"


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_receipt_lines(lines: Sequence[ReceiptLineInput]) -> tuple[ReceiptAllocation, ...]:
    """Shape checks on the raw tuples.

    Raises:
        ValidationError: empty receipt, non-positive quantity, damaged
            outside ``0..quantity``, or missing SKU/location.
    """
    if not lines:
        raise ValidationError("lines", "a receipt needs at least one line")

    allocations = []
    for index, line in enumerate(lines):
        field = f"lines[{index}]"
        if not line.sku or not str(line.sku).strip():
            raise ValidationError(f"{field}.sku", "SKU is required")
        if line.location_id is None:
            raise ValidationError(f"{field}.location_id", "location is required")
        if not _is_int(line.quantity) or line.quantity <= 0:
            raise ValidationError(f"{field}.quantity", "must be a positive integer")
        if not _is_int(line.quantity_damaged) or not 0 <= line.quantity_damaged <= line.quantity:
            raise ValidationError(
                f"{field}.quantity_damaged",
                "must be an integer between 0 and the received quantity",
            )
        allocations.append(
            ReceiptAllocation(
                sku=line.sku,
                quantity=line.quantity,
                location_id=line.location_id,
                quantity_damaged=line.quantity_damaged,
            )
        )
    return tuple(allocations)


class ReceivingService:

    def __init__(self, session: Session, clock: Clock, state_machine: POStateMachine):
        self._session = session
        self._clock = clock
        self._state_machine = state_machine
        self._inventory = InventoryService(session)
        self._locations = InventorySelector(session)

    def _refreshed_lines(self, po_id: UUID) -> list[POLineItemModel]:
        return list(
            self._session.scalars(
                select(POLineItemModel)
                .where(POLineItemModel.purchase_order_id == po_id)
                .order_by(POLineItemModel.sort_order)
                .execution_options(populate_existing=True)
            )
        )

    def _line_positions(self, po_id: UUID) -> list[LinePosition]:
        return [
            LinePosition(
                sku=line.sku,
                ordered_quantity=line.quantity,
                received_quantity=line.received_quantity,
                line_item_id=line.id,
            )
            for line in self._refreshed_lines(po_id)
        ]

    def record_receipt(
        self,
        po_id: UUID,
        lines: Sequence[ReceiptLineInput],
        *,
        received_by: str | None = None,
        shipment_id: UUID | None = None,
        note: str | None = None,
    ) -> ReceiptResult:
        allocations = validate_receipt_lines(lines)

        # -- 1. checks (no writes) ---------------------------------------
        po = self._state_machine.load(po_id)
        self._state_machine.check_action(po, RECEIVE)

        line_by_sku = {line.sku: line for line in po.line_items}
        for allocation in allocations:
            if allocation.sku not in line_by_sku:
                raise LineItemNotFoundError(str(po_id), allocation.sku)

        wanted_locations = {a.location_id for a in allocations}
        missing = wanted_locations - self._locations.existing_location_ids(wanted_locations)
        if missing:
            raise LocationNotFoundError(str(sorted(missing, key=str)[0]))

        if shipment_id is not None:
            shipment = self._session.get(ShipmentModel, shipment_id)
            if shipment is None or shipment.purchase_order_id != po.id:
                raise ShipmentNotFoundError(str(shipment_id))

        receipt_id = uuid4()
        with LogContext.bind(po_id=str(po_id), receipt_id=str(receipt_id), actor=received_by):
            logger.info(
                "receipt_started",
                extra={"po_number": po.po_number, "line_count": len(allocations)},
            )

            # -- 2. claim --------------------------------------------------
            _, claimed_version = self._state_machine.claim(po.id, RECEIVE)
            po = self._state_machine.load(po.id)

            # -- 3. line increments ------------------------------------------
            increments = aggregate_by_sku(allocations)
            projected = apply_increments(self._line_positions(po.id), increments)
            for sku, quantity in increments.items():
                self._session.execute(
                    update(POLineItemModel)
                    .where(POLineItemModel.id == line_by_sku[sku].id)
                    .values(
                        received_quantity=POLineItemModel.received_quantity + quantity,
                        updated_at=self._clock.now_utc(),
                        updated_by=received_by,
                    )
                    .execution_options(synchronize_session=False)
                )

            # -- 4. inventory ------------------------------------------------
            for (location_id, sku), quantity in aggregate_on_hand(allocations).items():
                self._inventory.increment_on_hand(location_id, sku, quantity)

            # -- 5. fulfillment ----------------------------------------------
            outcome = evaluate_fulfillment(projected, touched_skus=increments.keys())
            fresh_lines = self._refreshed_lines(po.id)

            warnings = tuple(
                OverReceiptWarning(
                    sku=p.sku,
                    line_item_id=p.line_item_id,
                    ordered_quantity=p.ordered_quantity,
                    received_quantity=p.received_quantity,
                    excess=p.excess,
                )
                for p in outcome.over_received
            )
            if warnings:
                flagged = {w.line_item_id for w in warnings}
                for line in fresh_lines:
                    if line.id in flagged and not line.over_received:
                        line.over_received = True
                self._session.flush()
                logger.warning(
                    "over_receipt_recorded",
                    extra={
                        "po_number": po.po_number,
                        "lines": [
                            {"sku": w.sku, "ordered": w.ordered_quantity, "received": w.received_quantity}
                            for w in warnings
                        ],
                    },
                )

            # -- 6. receipt rows + status ------------------------------------
            now = self._clock.now_utc()
            receipt = ReceiptModel(
                id=receipt_id,
                purchase_order_id=po.id,
                shipment_id=shipment_id,
                po_version=claimed_version,
                received_at=now,
                received_by=received_by,
                note=note,
            )
            for number, allocation in enumerate(allocations, start=1):
                receipt.lines.append(
                    ReceiptLineModel(
                        line_number=number,
                        line_item_id=line_by_sku[allocation.sku].id,
                        sku=allocation.sku,
                        location_id=allocation.location_id,
                        quantity_received=allocation.quantity,
                        quantity_damaged=allocation.quantity_damaged,
                    )
                )
            self._session.add(receipt)
            self._session.flush()

            to_status = outcome.status_after_receipt
            event_note = note or f"Received {len(allocations)} line items"
            self._state_machine.complete_claim(
                po,
                RECEIVE,
                claimed_version,
                to_status,
                actor=received_by,
                note=event_note,
                metadata={
                    "receipt_id": str(receipt_id),
                    "shipment_id": str(shipment_id) if shipment_id else None,
                    "lines": [
                        {
                            "sku": a.sku,
                            "quantity": a.quantity,
                            "quantity_damaged": a.quantity_damaged,
                            "location_id": str(a.location_id),
                        }
                        for a in allocations
                    ],
                    "over_received_skus": [w.sku for w in warnings],
                },
                values={"closed_at": now} if to_status == CLOSED else None,
            )

            updated = self._state_machine.load(po.id)
            logger.info(
                "receipt_processed",
                extra={
                    "po_number": updated.po_number,
                    "status": updated.status,
                    "over_received_count": len(warnings),
                },
            )

        return ReceiptResult(
            purchase_order=updated.to_dto(),
            receipt=receipt.to_dto(),
            over_received_lines=warnings,
        )
