"""
Purchasing Module (``supply_modules.purchasing``).

Responsibility
--------------
The purchase order lifecycle: drafts, threshold-gated approval, dispatch
to the supplier, shipments, and receiving reconciliation against ordered
quantities and per-location inventory.

Architecture position
---------------------
**Modules layer** -- declarative workflow, ORM models, config schema, the
state machine executor, receiving, and a service facade that owns the
transaction boundary.

Invariants enforced
-------------------
* Every status change goes through ``PURCHASE_ORDER_WORKFLOW`` and appends
  exactly one ``po_events`` row in the same transaction.
* Concurrent transitions on one PO: at most one wins; losers see
  ``StateConflictError``.
* Received quantities only grow; over-receipt is reported, never refused.
* Transaction boundary owned by ``PurchasingService``.

Failure modes
-------------
* ``StateConflictError`` / ``PONotApprovedError`` -- illegal transition.
* ``ValidationError`` -- malformed input, rejected before any write.
* ``NotFoundError`` subclasses -- unknown PO, supplier, SKU, location or
  shipment.
* ``StorageError`` -- unexpected database failure; nothing was written.
"""

from supply_modules.purchasing.config import PurchasingConfig
from supply_modules.purchasing.models import (
    LineItemInput,
    OverReceiptWarning,
    POEvent,
    POEventType,
    POLineItem,
    POStatus,
    PurchaseOrder,
    PurchaseOrderDetail,
    Receipt,
    ReceiptLine,
    ReceiptLineInput,
    ReceiptResult,
    Shipment,
    ShipmentStatus,
    SubmitResult,
    TransitionResult,
)
from supply_modules.purchasing.service import PurchasingService
from supply_modules.purchasing.workflows import PURCHASE_ORDER_WORKFLOW

__all__ = [
    "PurchasingService",
    "PurchasingConfig",
    "PURCHASE_ORDER_WORKFLOW",
    "POStatus",
    "POEventType",
    "ShipmentStatus",
    "PurchaseOrder",
    "POLineItem",
    "POEvent",
    "Shipment",
    "Receipt",
    "ReceiptLine",
    "PurchaseOrderDetail",
    "LineItemInput",
    "ReceiptLineInput",
    "OverReceiptWarning",
    "TransitionResult",
    "SubmitResult",
    "ReceiptResult",
]
