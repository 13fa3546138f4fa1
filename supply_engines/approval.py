"""
supply_engines.approval -- Threshold-gated approval policy for PO submission.

Responsibility:
    Decide, from a PO total and the configured threshold (both integer
    cents), whether a submitted PO needs manual approval or is
    auto-approved, and produce the human-readable audit note.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    The threshold is read by the caller at submit time and passed in; this
    module never caches it.

Invariants enforced:
    - ``total >= threshold`` -> pending_approval; ``total < threshold`` ->
      approved.  The boundary (total == threshold) needs approval.
    - Integer-only arithmetic; floats are rejected.
"""

from __future__ import annotations

from dataclasses import dataclass

from supply_engines.tracer import traced_engine
from supply_kernel.domain.money import format_cents

PENDING_APPROVAL = "pending_approval"
APPROVED = "approved"


@dataclass(frozen=True)
class ApprovalOutcome:
    """Result of evaluating one submission against the threshold."""

    needs_approval: bool
    total_cents: int
    threshold_cents: int

    @property
    def target_status(self) -> str:
        return PENDING_APPROVAL if self.needs_approval else APPROVED

    @property
    def auto_approved(self) -> bool:
        return not self.needs_approval

    @property
    def reason(self) -> str:
        if self.needs_approval:
            return "at or above approval threshold"
        return "below approval threshold"

    def describe(self, po_number: str) -> str:
        """Audit note recorded on the ``submitted`` event."""
        total = format_cents(self.total_cents)
        if self.needs_approval:
            return f"PO {po_number} submitted for approval (total: {total})"
        return f"PO {po_number} auto-approved: below threshold (total: {total})"


def _require_cents(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be int cents, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")


@traced_engine("approval", "1.0", fingerprint_fields=("total_cents", "threshold_cents"))
def evaluate_submission(*, total_cents: int, threshold_cents: int) -> ApprovalOutcome:
    """Apply the threshold rule to a PO total.

    Raises:
        TypeError: either amount is not an int.
        ValueError: either amount is negative.
    """
    _require_cents("total_cents", total_cents)
    _require_cents("threshold_cents", threshold_cents)
    return ApprovalOutcome(
        needs_approval=total_cents >= threshold_cents,
        total_cents=total_cents,
        threshold_cents=threshold_cents,
    )
