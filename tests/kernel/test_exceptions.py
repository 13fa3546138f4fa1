"""Exception hierarchy: codes, context attributes, multiple inheritance."""

import pytest

from supply_kernel.exceptions import (
    ConcurrentModificationError,
    EventChainBrokenError,
    LineItemNotFoundError,
    NotFoundError,
    PONotApprovedError,
    PurchaseOrderNotFoundError,
    StateConflictError,
    StorageError,
    SupplyKernelError,
    ValidationError,
)


class TestHierarchy:

    def test_po_not_approved_is_both_conflict_and_validation(self):
        exc = PONotApprovedError("po-1", "draft")
        assert isinstance(exc, StateConflictError)
        assert isinstance(exc, ValidationError)
        assert exc.code == "PO_NOT_APPROVED"
        assert exc.current_status == "draft"
        assert exc.attempted_action == "send"
        assert exc.field == "status"

    def test_concurrent_modification_carries_actual_status(self):
        exc = ConcurrentModificationError(
            "po-1", current_status="approved", attempted_action="approve", expected_status="pending_approval"
        )
        assert isinstance(exc, StateConflictError)
        assert exc.current_status == "approved"
        assert exc.expected_status == "pending_approval"

    @pytest.mark.parametrize(
        "exc, code",
        [
            (PurchaseOrderNotFoundError("x"), "PO_NOT_FOUND"),
            (LineItemNotFoundError("po", "SKU-A"), "LINE_ITEM_NOT_FOUND"),
        ],
    )
    def test_not_found_subclasses(self, exc, code):
        assert isinstance(exc, NotFoundError)
        assert exc.code == code

    def test_storage_error_message_is_generic(self):
        exc = StorageError("record_receipt")
        assert str(exc) == "Storage failure during record_receipt"
        assert isinstance(exc, SupplyKernelError)

    def test_event_chain_broken_context(self):
        exc = EventChainBrokenError("po-1", 3, "sent", "draft")
        assert exc.po_version == 3
        assert exc.expected_from == "sent"
        assert exc.actual_from == "draft"
