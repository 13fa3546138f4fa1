"""
Tests for the receiving reconciliation arithmetic.

Tests cover:
- Fulfillment status after a receipt (partial, closed, over-received)
- Over-receipt reporting limited to the SKUs just received
- Damaged units: counted toward fulfillment, excluded from on-hand
- Order independence of receipts (hypothesis)
"""

from uuid import uuid4

import pytest
from hypothesis import given
from hypothesis import strategies as st

from supply_engines.reconciliation import (
    CLOSED,
    PARTIALLY_RECEIVED,
    LinePosition,
    ReceiptAllocation,
    aggregate_by_sku,
    aggregate_on_hand,
    apply_increments,
    evaluate_fulfillment,
)

LOC_1 = uuid4()
LOC_2 = uuid4()


def _positions(**ordered: int) -> tuple[LinePosition, ...]:
    return tuple(LinePosition(sku=sku, ordered_quantity=qty) for sku, qty in ordered.items())


class TestEvaluateFulfillment:

    def test_partial_receipt(self):
        positions = apply_increments(_positions(A=10, B=5), {"A": 4})
        outcome = evaluate_fulfillment(positions, touched_skus={"A"})
        assert outcome.status_after_receipt == PARTIALLY_RECEIVED
        assert outcome.over_received == ()
        assert [p.outstanding for p in positions] == [6, 5]

    def test_exact_receipt_closes(self):
        positions = apply_increments(_positions(A=10, B=5), {"A": 10, "B": 5})
        assert evaluate_fulfillment(positions).status_after_receipt == CLOSED

    def test_over_receipt_closes_and_is_flagged(self):
        positions = apply_increments(_positions(A=10), {"A": 12})
        outcome = evaluate_fulfillment(positions)
        assert outcome.status_after_receipt == CLOSED
        [over] = outcome.over_received
        assert over.sku == "A"
        assert over.excess == 2

    def test_over_receipt_on_one_line_with_another_outstanding(self):
        positions = apply_increments(_positions(A=10, B=5), {"A": 12})
        outcome = evaluate_fulfillment(positions, touched_skus={"A"})
        assert outcome.status_after_receipt == PARTIALLY_RECEIVED
        assert [p.sku for p in outcome.over_received] == ["A"]

    def test_previously_over_received_line_not_reported_again(self):
        positions = apply_increments(_positions(A=10, B=5), {"A": 12, "B": 1})
        outcome = evaluate_fulfillment(positions, touched_skus={"B"})
        assert outcome.over_received == ()


class TestApplyIncrements:

    def test_unknown_sku_raises(self):
        with pytest.raises(KeyError):
            apply_increments(_positions(A=1), {"Z": 1})

    def test_negative_increment_raises(self):
        with pytest.raises(ValueError):
            apply_increments(_positions(A=1), {"A": -1})

    def test_positions_are_not_mutated(self):
        original = _positions(A=10)
        apply_increments(original, {"A": 3})
        assert original[0].received_quantity == 0


class TestAggregation:

    def test_sku_split_across_locations(self):
        allocations = [
            ReceiptAllocation("A", 3, LOC_1),
            ReceiptAllocation("A", 2, LOC_2),
            ReceiptAllocation("B", 1, LOC_1),
        ]
        assert aggregate_by_sku(allocations) == {"A": 5, "B": 1}
        assert aggregate_on_hand(allocations) == {(LOC_1, "A"): 3, (LOC_2, "A"): 2, (LOC_1, "B"): 1}

    def test_damaged_units_excluded_from_on_hand(self):
        allocations = [ReceiptAllocation("A", 5, LOC_1, quantity_damaged=2)]
        assert aggregate_by_sku(allocations) == {"A": 5}
        assert aggregate_on_hand(allocations) == {(LOC_1, "A"): 3}

    def test_fully_damaged_tuple_adds_no_on_hand(self):
        allocations = [ReceiptAllocation("A", 2, LOC_1, quantity_damaged=2)]
        assert aggregate_on_hand(allocations) == {}


_receipt = st.dictionaries(
    keys=st.sampled_from(["A", "B", "C"]),
    values=st.integers(min_value=1, max_value=50),
    min_size=1,
)


class TestOrderIndependence:

    @given(r1=_receipt, r2=_receipt)
    def test_two_receipts_equal_their_sum(self, r1, r2):
        base = _positions(A=20, B=20, C=20)
        sequential = apply_increments(apply_increments(base, r1), r2)
        combined = {sku: r1.get(sku, 0) + r2.get(sku, 0) for sku in set(r1) | set(r2)}
        assert sequential == apply_increments(base, combined)

    @given(r1=_receipt, r2=_receipt)
    def test_commutative(self, r1, r2):
        base = _positions(A=20, B=20, C=20)
        assert apply_increments(apply_increments(base, r1), r2) == apply_increments(
            apply_increments(base, r2), r1
        )

    @given(receipts=st.lists(_receipt, min_size=1, max_size=6))
    def test_received_quantities_never_decrease(self, receipts):
        positions = _positions(A=20, B=20, C=20)
        for receipt in receipts:
            after = apply_increments(positions, receipt)
            for before_pos, after_pos in zip(positions, after):
                assert after_pos.received_quantity >= before_pos.received_quantity
            positions = after
