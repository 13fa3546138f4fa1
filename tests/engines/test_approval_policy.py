"""
Tests for the approval threshold engine.

Tests cover:
- The threshold boundary (total == threshold needs approval)
- Audit note wording
- Rejection of non-integer and negative amounts
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from supply_engines.approval import ApprovalOutcome, evaluate_submission

THRESHOLD = 500_000  # $5,000.00


class TestThresholdBoundary:

    @pytest.mark.parametrize(
        "total, needs_approval, status",
        [
            (499_999, False, "approved"),
            (500_000, True, "pending_approval"),
            (500_001, True, "pending_approval"),
            (0, False, "approved"),
        ],
    )
    def test_boundary(self, total, needs_approval, status):
        outcome = evaluate_submission(total_cents=total, threshold_cents=THRESHOLD)
        assert outcome.needs_approval is needs_approval
        assert outcome.target_status == status
        assert outcome.auto_approved is not needs_approval

    def test_zero_threshold_always_needs_approval(self):
        assert evaluate_submission(total_cents=0, threshold_cents=0).needs_approval

    @given(
        total=st.integers(min_value=0, max_value=10**12),
        threshold=st.integers(min_value=0, max_value=10**12),
    )
    def test_rule_holds_everywhere(self, total, threshold):
        outcome = evaluate_submission(total_cents=total, threshold_cents=threshold)
        assert outcome.needs_approval == (total >= threshold)


class TestNotes:

    def test_pending_note(self):
        outcome = ApprovalOutcome(needs_approval=True, total_cents=500_000, threshold_cents=THRESHOLD)
        assert outcome.describe("PO-202610-001") == (
            "PO PO-202610-001 submitted for approval (total: $5,000.00)"
        )

    def test_auto_approved_note(self):
        outcome = ApprovalOutcome(needs_approval=False, total_cents=499_999, threshold_cents=THRESHOLD)
        assert outcome.describe("PO-202610-002") == (
            "PO PO-202610-002 auto-approved: below threshold (total: $4,999.99)"
        )


class TestInputValidation:

    @pytest.mark.parametrize("total", [1.5, "100", True])
    def test_non_int_total_rejected(self, total):
        with pytest.raises(TypeError):
            evaluate_submission(total_cents=total, threshold_cents=THRESHOLD)

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            evaluate_submission(total_cents=-1, threshold_cents=THRESHOLD)

    def test_keyword_only(self):
        with pytest.raises(TypeError):
            evaluate_submission(100, THRESHOLD)
