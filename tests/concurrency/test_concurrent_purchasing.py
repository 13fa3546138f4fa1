"""
Concurrent purchasing operations.

Each worker thread gets its own session and service; a Barrier releases
them together so the operations genuinely overlap.  On SQLite writers are
serialized by BEGIN IMMEDIATE; on PostgreSQL the conditional UPDATE and
row locks decide the winner.  Either way the observable outcome must be the
same as some serial order.

Skip with: pytest -m "not slow_locks"
"""

from concurrent.futures import ThreadPoolExecutor
from threading import Barrier

import pytest

from supply_kernel.domain.clock import DeterministicClock
from supply_kernel.exceptions import StateConflictError, SupplyKernelError
from supply_kernel.selectors.inventory_selector import InventorySelector
from supply_modules.purchasing import (
    LineItemInput,
    POStatus,
    PurchasingService,
    ReceiptLineInput,
)
from tests.conftest import APPROVER, TEST_ACTOR, TEST_NOW

pytestmark = pytest.mark.slow_locks


def run_concurrently(session_factory, work, workers):
    """Run ``work(service, index)`` in ``workers`` threads at once.

    Returns one ``(result, error)`` pair per worker, in index order.
    """
    barrier = Barrier(workers)

    def _worker(index):
        session = session_factory()
        service = PurchasingService(session, clock=DeterministicClock(TEST_NOW))
        try:
            barrier.wait(timeout=30)
            return work(service, index), None
        except SupplyKernelError as exc:
            return None, exc
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(_worker, range(workers)))


class TestConcurrentReceipts:

    def test_receipts_for_different_skus_both_apply(
        self, session_factory, session, service, drive_to, location
    ):
        po = drive_to(POStatus.SENT)
        lines = {0: ReceiptLineInput("SKU-A", 10, location.id), 1: ReceiptLineInput("SKU-B", 5, location.id)}
        session.close()

        outcomes = run_concurrently(
            session_factory,
            lambda svc, i: svc.record_receipt(po.id, [lines[i]], received_by=TEST_ACTOR),
            workers=2,
        )

        assert [error for _, error in outcomes] == [None, None]
        final = service.get_purchase_order(po.id)
        assert final.status == POStatus.CLOSED
        assert final.line_for_sku("SKU-A").received_quantity == 10
        assert final.line_for_sku("SKU-B").received_quantity == 5
        assert sorted(result.status for result, _ in outcomes) == sorted(
            [POStatus.PARTIALLY_RECEIVED, POStatus.CLOSED]
        )

        events = service.get_detail(po.id).events
        assert [e.po_version for e in events] == list(range(1, len(events) + 1))
        assert service.replayed_status(po.id) == POStatus.CLOSED

        inventory = InventorySelector(session)
        assert inventory.on_hand(location.id, "SKU-A") == 10
        assert inventory.on_hand(location.id, "SKU-B") == 5

    def test_receipts_for_same_sku_add_up(
        self, session_factory, session, service, drive_to, location
    ):
        po = drive_to(POStatus.SENT)
        quantities = [4, 6]
        session.close()

        outcomes = run_concurrently(
            session_factory,
            lambda svc, i: svc.record_receipt(
                po.id, [ReceiptLineInput("SKU-A", quantities[i], location.id)], received_by=TEST_ACTOR
            ),
            workers=2,
        )

        assert [error for _, error in outcomes] == [None, None]
        final = service.get_purchase_order(po.id)
        assert final.line_for_sku("SKU-A").received_quantity == 10
        assert final.status == POStatus.PARTIALLY_RECEIVED
        assert len(service.list_receipts(po.id)) == 2
        assert InventorySelector(session).on_hand(location.id, "SKU-A") == 10


class TestConcurrentTransitions:

    def test_exactly_one_approval_wins(self, session_factory, session, service, drive_to):
        po = drive_to(POStatus.PENDING_APPROVAL)
        session.close()

        outcomes = run_concurrently(
            session_factory,
            lambda svc, i: svc.approve(po.id, f"{i}-{APPROVER}"),
            workers=2,
        )

        winners = [result for result, error in outcomes if error is None]
        losers = [error for _, error in outcomes if error is not None]
        assert len(winners) == 1
        assert len(losers) == 1
        assert isinstance(losers[0], StateConflictError)

        detail = service.get_detail(po.id)
        assert detail.purchase_order.status == POStatus.APPROVED
        assert [e.event_type for e in detail.events].count("approved") == 1
        assert detail.purchase_order.version == winners[0].version

    def test_cancel_races_send(self, session_factory, session, service, drive_to):
        po = drive_to(POStatus.APPROVED)
        session.close()

        def _work(svc, index):
            if index == 0:
                return svc.cancel(po.id, actor=TEST_ACTOR)
            return svc.send(po.id, actor=TEST_ACTOR)

        outcomes = run_concurrently(session_factory, _work, workers=2)

        final = service.get_purchase_order(po.id)
        _, cancel_error = outcomes[0]
        _, send_error = outcomes[1]
        # send-then-cancel ends cancelled; a cancel that loses the CAS ends sent
        if final.status == POStatus.CANCELLED:
            assert cancel_error is None
            assert send_error is None or isinstance(send_error, StateConflictError)
        else:
            assert final.status == POStatus.SENT
            assert send_error is None
            assert isinstance(cancel_error, StateConflictError)
        assert service.replayed_status(po.id) == final.status


class TestConcurrentNumbering:

    def test_concurrent_drafts_get_unique_numbers(self, session_factory, session, service, supplier):
        session.close()
        workers = 8

        outcomes = run_concurrently(
            session_factory,
            lambda svc, i: svc.create_draft(supplier.id, [LineItemInput("SKU-A", i + 1, 100)], actor=TEST_ACTOR),
            workers=workers,
        )

        assert all(error is None for _, error in outcomes)
        numbers = sorted(result.po_number for result, _ in outcomes)
        assert numbers == [f"PO-202610-{n:03d}" for n in range(1, workers + 1)]
        assert len(service.list_purchase_orders()) == workers
