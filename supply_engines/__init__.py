"""
Module: supply_engines
Responsibility:
    Re-exports the pure calculation engines: approval policy evaluation,
    receiving reconciliation arithmetic, and event-log replay.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import supply_kernel domain types, exceptions and logging.
    MUST NOT import supply_modules.

Invariants enforced:
    - Purity: engines NEVER read the clock or the database.
    - Integer-only money and quantities.
"""

from supply_engines.approval import ApprovalOutcome, evaluate_submission
from supply_engines.reconciliation import (
    FulfillmentOutcome,
    LinePosition,
    ReceiptAllocation,
    aggregate_by_sku,
    aggregate_on_hand,
    apply_increments,
    evaluate_fulfillment,
)
from supply_engines.replay import replay_status

__all__ = [
    "ApprovalOutcome",
    "evaluate_submission",
    "FulfillmentOutcome",
    "LinePosition",
    "ReceiptAllocation",
    "aggregate_by_sku",
    "aggregate_on_hand",
    "apply_increments",
    "evaluate_fulfillment",
    "replay_status",
]
