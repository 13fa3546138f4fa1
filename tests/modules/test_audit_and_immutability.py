"""
Audit trail: published domain events, audit_logs rows, append-only records.
"""

import pytest
from sqlalchemy import select

from supply_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from supply_kernel.exceptions import (
    EventChainBrokenError,
    ImmutabilityViolationError,
    StateConflictError,
)
from supply_kernel.models.audit_log import AuditLogModel
from supply_modules.purchasing import LineItemInput, POStatus, PurchasingService, ReceiptLineInput
from supply_modules.purchasing.orm import POEventModel, ReceiptModel
from tests.conftest import APPROVER, TEST_ACTOR


def _audit_actions(session, po_id):
    rows = session.scalars(
        select(AuditLogModel)
        .where(AuditLogModel.entity_id == po_id)
        .order_by(AuditLogModel.occurred_at, AuditLogModel.action)
    )
    return [row.action for row in rows]


class TestPublishedEvents:

    def test_every_event_is_published(self, session, clock, publisher, supplier, location):
        service = PurchasingService(session, clock=clock, publisher=publisher)
        po = service.create_draft(supplier.id, [LineItemInput("SKU-A", 1_000, 1_000)], actor=TEST_ACTOR)
        service.submit(po.id, actor=TEST_ACTOR)
        service.approve(po.id, APPROVER)
        service.send(po.id, actor=TEST_ACTOR)
        service.record_receipt(po.id, [ReceiptLineInput("SKU-A", 1_000, location.id)], received_by=TEST_ACTOR)

        assert publisher.actions == [
            "po.created",
            "po.submitted",
            "po.approved",
            "po.sent",
            "po.closed",
        ]
        approved = publisher.events[2]
        assert approved.entity_type == "PurchaseOrder"
        assert approved.entity_id == po.id
        assert approved.actor == APPROVER
        assert approved.occurred_at == clock.now_utc()
        assert approved.payload["from_status"] == "pending_approval"
        assert approved.payload["po_version"] == 3

    def test_audit_log_rows_written_by_default(self, session, service, drive_to):
        po = drive_to(POStatus.SENT)
        actions = _audit_actions(session, po.id)
        assert sorted(actions) == sorted(["po.created", "po.submitted", "po.sent"])

    def test_failed_operation_leaves_no_audit_row(self, session, service, drive_to):
        po = drive_to(POStatus.DRAFT)
        with pytest.raises(StateConflictError):
            service.send(po.id, actor=TEST_ACTOR)
        assert _audit_actions(session, po.id) == ["po.created"]

    def test_transition_is_logged_with_po_context(self, captured_logs, service, make_draft):
        po = make_draft()
        service.submit(po.id, actor=TEST_ACTOR)

        records = [r for r in captured_logs() if r["message"] == "po_transition_applied"]
        submitted = [r for r in records if r["event_type"] == "submitted"]
        assert len(submitted) == 1
        assert submitted[0]["po_id"] == str(po.id)
        assert submitted[0]["actor"] == TEST_ACTOR
        assert submitted[0]["to_status"] == "approved"

    def test_rejected_operation_is_logged(self, captured_logs, service, drive_to):
        po = drive_to(POStatus.DRAFT)
        with pytest.raises(StateConflictError):
            service.approve(po.id, APPROVER)

        [record] = [r for r in captured_logs() if r["message"] == "purchasing_operation_rejected"]
        assert record["operation"] == "approve"
        assert record["error_code"] == "STATE_CONFLICT"


class TestAppendOnly:

    def test_event_cannot_be_updated(self, session, drive_to):
        po = drive_to(POStatus.DRAFT)
        event = session.scalars(select(POEventModel).where(POEventModel.purchase_order_id == po.id)).one()

        event.note = "rewritten"
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
        session.rollback()

    def test_event_cannot_be_deleted(self, session, drive_to):
        po = drive_to(POStatus.DRAFT)
        event = session.scalars(select(POEventModel).where(POEventModel.purchase_order_id == po.id)).one()

        session.delete(event)
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
        session.rollback()

    def test_receipt_cannot_be_updated(self, session, drive_to):
        po = drive_to(POStatus.PARTIALLY_RECEIVED)
        receipt = session.scalars(select(ReceiptModel).where(ReceiptModel.purchase_order_id == po.id)).one()

        receipt.note = "edited later"
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
        session.rollback()

    def test_audit_row_cannot_be_deleted(self, session, drive_to):
        po = drive_to(POStatus.DRAFT)
        row = session.scalars(select(AuditLogModel).where(AuditLogModel.entity_id == po.id)).one()

        session.delete(row)
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
        session.rollback()


class TestReplay:

    def test_broken_chain_is_detected(self, session, service, drive_to):
        po = drive_to(POStatus.SENT)

        unregister_immutability_listeners()
        try:
            tampered = session.scalars(
                select(POEventModel).where(
                    POEventModel.purchase_order_id == po.id,
                    POEventModel.po_version == 3,
                )
            ).one()
            tampered.from_status = "draft"
            session.commit()
        finally:
            register_immutability_listeners()

        with pytest.raises(EventChainBrokenError) as exc_info:
            service.replayed_status(po.id)
        assert exc_info.value.po_version == 3
        assert exc_info.value.expected_from == "approved"
        assert exc_info.value.actual_from == "draft"
