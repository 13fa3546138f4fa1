"""
supply_engines.reconciliation -- Receiving reconciliation arithmetic.

Responsibility:
    Fold received quantities into ordered line positions and decide the
    PO's fulfillment status.  This is the only place ordered and physically
    received quantities meet.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  ReceivingService reads
    positions after claiming the PO, projects the receipt with
    ``apply_increments``, writes the same increments atomically in storage,
    and runs ``evaluate_fulfillment`` on the projection.

Invariants enforced:
    - Received quantities are monotonically non-decreasing.
    - Over-receipt is flagged, never clamped and never fatal.
    - Order independence: applying receipts r1 then r2 gives the same
      positions as applying their per-SKU sum once.
    - Damaged units count toward fulfillment but not toward on-hand stock.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Hashable

from supply_engines.tracer import traced_engine

CLOSED = "closed"
PARTIALLY_RECEIVED = "partially_received"


@dataclass(frozen=True)
class LinePosition:
    """Ordered versus received quantity for one PO line."""

    sku: str
    ordered_quantity: int
    received_quantity: int = 0
    line_item_id: Hashable | None = None

    @property
    def excess(self) -> int:
        return max(self.received_quantity - self.ordered_quantity, 0)

    @property
    def outstanding(self) -> int:
        return max(self.ordered_quantity - self.received_quantity, 0)

    @property
    def is_fully_received(self) -> bool:
        return self.received_quantity >= self.ordered_quantity

    @property
    def is_over_received(self) -> bool:
        return self.received_quantity > self.ordered_quantity


@dataclass(frozen=True)
class ReceiptAllocation:
    """One receipt tuple after validation."""

    sku: str
    quantity: int
    location_id: Hashable
    quantity_damaged: int = 0

    @property
    def sellable_quantity(self) -> int:
        return self.quantity - self.quantity_damaged


@dataclass(frozen=True)
class FulfillmentOutcome:
    """Where a PO stands after a receipt has been applied."""

    positions: tuple[LinePosition, ...]
    over_received: tuple[LinePosition, ...]

    @property
    def all_received(self) -> bool:
        return all(p.is_fully_received for p in self.positions)

    @property
    def status_after_receipt(self) -> str:
        return CLOSED if self.all_received else PARTIALLY_RECEIVED


def aggregate_by_sku(allocations: Iterable[ReceiptAllocation]) -> dict[str, int]:
    """Total received per SKU (a SKU may arrive at several locations)."""
    totals: dict[str, int] = {}
    for a in allocations:
        totals[a.sku] = totals.get(a.sku, 0) + a.quantity
    return totals


def aggregate_on_hand(
    allocations: Iterable[ReceiptAllocation],
) -> dict[tuple[Hashable, str], int]:
    """Sellable units per (location, SKU); pairs with nothing sellable are omitted."""
    totals: dict[tuple[Hashable, str], int] = {}
    for a in allocations:
        if a.sellable_quantity <= 0:
            continue
        key = (a.location_id, a.sku)
        totals[key] = totals.get(key, 0) + a.sellable_quantity
    return totals


def apply_increments(
    positions: Sequence[LinePosition],
    increments: Mapping[str, int],
) -> tuple[LinePosition, ...]:
    """Add per-SKU increments to the matching positions.

    Raises:
        KeyError: an increment names a SKU with no position.
        ValueError: an increment is negative.
    """
    known = {p.sku for p in positions}
    for sku, qty in increments.items():
        if sku not in known:
            raise KeyError(sku)
        if qty < 0:
            raise ValueError(f"received quantity cannot decrease ({sku}: {qty})")
    return tuple(
        replace(p, received_quantity=p.received_quantity + increments.get(p.sku, 0))
        for p in positions
    )


@traced_engine("reconciliation", "1.0")
def evaluate_fulfillment(
    positions: Sequence[LinePosition],
    touched_skus: Iterable[str] | None = None,
) -> FulfillmentOutcome:
    """Decide closure and list over-received lines.

    Args:
        positions: Every line of the PO, after the receipt.
        touched_skus: SKUs in the receipt just applied; only these are
            reported as over-received.  None reports every over-received
            line.
    """
    touched = set(touched_skus) if touched_skus is not None else None
    over = tuple(
        p for p in positions
        if p.is_over_received and (touched is None or p.sku in touched)
    )
    return FulfillmentOutcome(positions=tuple(positions), over_received=over)
