"""
Purchasing Domain Models.

The nouns of purchasing: purchase orders, line items, events, shipments,
receipts, and the inputs and results of the lifecycle operations.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from supply_kernel.domain.dtos import Supplier
from supply_kernel.logging_config import get_logger

logger = get_logger("modules.purchasing.models")


class POStatus(str, Enum):
    """Purchase order lifecycle states."""
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    SENT = "sent"
    PARTIALLY_RECEIVED = "partially_received"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class POEventType(str, Enum):
    """Types of entries in a PO's append-only event log."""
    CREATED = "created"
    UPDATED = "updated"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    SENT = "sent"
    SHIPMENT_CREATED = "shipment_created"
    RECEIPT_RECORDED = "receipt_recorded"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class ShipmentStatus(str, Enum):
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    DELAYED = "delayed"


@dataclass(frozen=True)
class POLineItem:
    """A line item on a purchase order."""
    id: UUID
    purchase_order_id: UUID
    sku: str
    quantity: int
    unit_cost_cents: int
    total_cents: int
    received_quantity: int = 0
    sort_order: int = 0
    product_name: str | None = None
    supplier_sku: str | None = None
    over_received: bool = False

    @property
    def outstanding_quantity(self) -> int:
        return max(self.quantity - self.received_quantity, 0)

    @property
    def is_fully_received(self) -> bool:
        return self.received_quantity >= self.quantity


@dataclass(frozen=True)
class PurchaseOrder:
    """A purchase order header with its line items."""
    id: UUID
    po_number: str
    supplier_id: UUID
    status: POStatus
    total_cents: int
    version: int
    line_items: tuple[POLineItem, ...] = ()
    requested_delivery_date: date | None = None
    created_by: str | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    sent_at: datetime | None = None
    closed_at: datetime | None = None
    cancelled_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def line_for_sku(self, sku: str) -> POLineItem | None:
        for line in self.line_items:
            if line.sku == sku:
                return line
        return None


@dataclass(frozen=True)
class POEvent:
    """
    One immutable entry in a PO's event log.

    ``po_version`` is the PO version the event produced; events of one PO
    are totally ordered by it.
    """
    id: UUID
    purchase_order_id: UUID
    po_version: int
    event_type: POEventType
    to_status: POStatus
    occurred_at: datetime
    from_status: POStatus | None = None
    actor: str | None = None
    note: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Shipment:
    id: UUID
    purchase_order_id: UUID
    status: ShipmentStatus
    carrier: str | None = None
    tracking_number: str | None = None
    shipped_date: date | None = None
    expected_arrival: date | None = None
    actual_arrival: date | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class ReceiptLine:
    id: UUID
    receipt_id: UUID
    line_item_id: UUID
    sku: str
    location_id: UUID
    quantity_received: int
    quantity_damaged: int = 0


@dataclass(frozen=True)
class Receipt:
    """A processed receiving event; immutable once written."""
    id: UUID
    purchase_order_id: UUID
    received_at: datetime
    lines: tuple[ReceiptLine, ...] = ()
    shipment_id: UUID | None = None
    received_by: str | None = None
    note: str | None = None


@dataclass(frozen=True)
class PurchaseOrderDetail:
    """A PO with its supplier, events, shipments and receipts."""
    purchase_order: PurchaseOrder
    supplier: Supplier
    events: tuple[POEvent, ...] = ()
    shipments: tuple[Shipment, ...] = ()
    receipts: tuple[Receipt, ...] = ()

    @property
    def line_items(self) -> tuple[POLineItem, ...]:
        return self.purchase_order.line_items


# -----------------------------------------------------------------------------
# Operation inputs
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class LineItemInput:
    """
    A requested line on a draft.

    ``unit_cost_cents`` (and the descriptive fields) fall back to the
    supplier's catalog entry for the SKU when omitted.
    """
    sku: str
    quantity: int
    unit_cost_cents: int | None = None
    product_name: str | None = None
    supplier_sku: str | None = None


@dataclass(frozen=True)
class ReceiptLineInput:
    """One (SKU, quantity, location) tuple of a receipt."""
    sku: str
    quantity: int
    location_id: UUID
    quantity_damaged: int = 0


# -----------------------------------------------------------------------------
# Operation results
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class OverReceiptWarning:
    """
    A line whose received quantity now exceeds its ordered quantity.

    Not an exception: receiving is never blocked on a quantity mismatch.
    """
    sku: str
    line_item_id: UUID
    ordered_quantity: int
    received_quantity: int
    excess: int

    code = "OVER_RECEIPT"


@dataclass(frozen=True)
class TransitionResult:
    purchase_order_id: UUID
    status: POStatus
    version: int


@dataclass(frozen=True)
class SubmitResult:
    purchase_order_id: UUID
    status: POStatus
    needs_approval: bool
    total_cents: int
    threshold_cents: int
    version: int


@dataclass(frozen=True)
class ReceiptResult:
    """Outcome of one processed receipt."""
    purchase_order: PurchaseOrder
    receipt: Receipt
    over_received_lines: tuple[OverReceiptWarning, ...] = ()

    @property
    def status(self) -> POStatus:
        return self.purchase_order.status

    @property
    def line_items(self) -> tuple[POLineItem, ...]:
        return self.purchase_order.line_items
