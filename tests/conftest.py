"""
Pytest fixtures for the purchasing test suite.

Provides:
- A fresh database per test (temporary SQLite file, or PostgreSQL when
  DATABASE_URL is set)
- Deterministic clock, recording publisher
- Supplier / catalog / location reference data
- Helpers that drive a purchase order to a given status

Environment Variables:
- DATABASE_URL: PostgreSQL connection URL.  If not set, each test gets its
  own SQLite file under pytest's tmp_path.
"""

import json
import logging
import os
from datetime import datetime, timezone
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from supply_kernel.db.engine import (
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from supply_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from supply_kernel.domain.clock import DeterministicClock
from supply_kernel.domain.events import DomainEvent
from supply_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from supply_kernel.services.inventory_service import InventoryService
from supply_kernel.services.supplier_service import SupplierService
from supply_modules._orm_registry import create_all_tables, drop_all_tables
from supply_modules.purchasing import (
    LineItemInput,
    POStatus,
    PurchasingService,
    ReceiptLineInput,
)

TEST_ACTOR = "buyer@example.com"
APPROVER = "controller@example.com"

# 2026-10-16 12:00 UTC
TEST_NOW = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture supply_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, service):
            service.submit(...)
            logs = captured_logs()
            assert any(r["message"] == "po_transition_applied" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("supply_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow_locks: mark test as potentially waiting for DB locks"
    )


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def database_url(tmp_path) -> str:
    return os.environ.get("DATABASE_URL") or f"sqlite:///{tmp_path / 'supply_test.db'}"


@pytest.fixture
def engine(database_url):
    """Engine + schema for one test.  Real commits; nothing is shared."""
    eng = init_engine_from_url(
        database_url,
        pool_size=10,
        max_overflow=10,
        pool_timeout=30,
    )
    if eng.dialect.name != "sqlite":
        drop_all_tables()
    create_all_tables()
    register_immutability_listeners()
    yield eng
    unregister_immutability_listeners()
    if eng.dialect.name != "sqlite":
        drop_all_tables()
    reset_engine()


@pytest.fixture
def session_factory(engine):
    return get_session_factory()


@pytest.fixture
def session(session_factory) -> Generator[Session, None, None]:
    s = session_factory()
    yield s
    s.rollback()
    s.close()


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(TEST_NOW)


class RecordingPublisher:
    """DomainEventPublisher that keeps events in memory."""

    def __init__(self):
        self.events: list[DomainEvent] = []

    def publish(self, event: DomainEvent) -> None:
        self.events.append(event)

    @property
    def actions(self) -> list[str]:
        return [e.action for e in self.events]


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def service(session, clock) -> PurchasingService:
    """Service with the default AuditLogPublisher."""
    return PurchasingService(session, clock=clock)


# =============================================================================
# Reference data
# =============================================================================


@pytest.fixture
def supplier(session):
    """Active supplier with a three-SKU catalog.

    SKU-A costs $2.50, SKU-B costs $10.00, SKU-C has no catalog cost.
    """
    suppliers = SupplierService(session)
    created = suppliers.create_supplier(
        name="Acme Components",
        code="ACME",
        contact_email="orders@acme.example",
        actor=TEST_ACTOR,
    )
    suppliers.add_product(created.id, "SKU-A", unit_cost_cents=250, product_name="Widget A")
    suppliers.add_product(created.id, "SKU-B", unit_cost_cents=1_000, product_name="Widget B")
    suppliers.add_product(created.id, "SKU-C", unit_cost_cents=None, product_name="Widget C")
    session.commit()
    return created


@pytest.fixture
def location(session):
    created = InventoryService(session).create_location("Main Warehouse", code="MAIN")
    session.commit()
    return created


@pytest.fixture
def second_location(session):
    created = InventoryService(session).create_location("Overflow Store", code="OVERFLOW")
    session.commit()
    return created


# =============================================================================
# Lifecycle helpers
# =============================================================================


@pytest.fixture
def make_draft(service, supplier):
    """Create a draft; the default is 10 x SKU-A at $1.00 ($10.00 total)."""

    def _make(lines=None, **kwargs):
        if lines is None:
            lines = [LineItemInput("SKU-A", 10, 100)]
        return service.create_draft(supplier.id, lines, actor=TEST_ACTOR, **kwargs)

    return _make


@pytest.fixture
def drive_to(service, make_draft, location):
    """
    Create a PO and move it to ``status`` through the public operations.

    Below-threshold drafts auto-approve; ``pending_approval`` is reached by
    ordering above the default $5,000.00 threshold.
    """

    def _drive(status: POStatus, lines=None):
        status = POStatus(status)
        if lines is None:
            if status == POStatus.PENDING_APPROVAL:
                lines = [LineItemInput("SKU-A", 1_000, 1_000)]  # $10,000.00
            else:
                lines = [LineItemInput("SKU-A", 10, 100), LineItemInput("SKU-B", 5, 200)]
        po = make_draft(lines)
        if status == POStatus.DRAFT:
            return po

        service.submit(po.id, actor=TEST_ACTOR)
        if status in (POStatus.PENDING_APPROVAL, POStatus.APPROVED) and (
            service.get_purchase_order(po.id).status == status
        ):
            return service.get_purchase_order(po.id)
        if status == POStatus.CANCELLED:
            service.cancel(po.id, actor=TEST_ACTOR)
            return service.get_purchase_order(po.id)

        if service.get_purchase_order(po.id).status == POStatus.PENDING_APPROVAL:
            service.approve(po.id, APPROVER)
        if status == POStatus.APPROVED:
            return service.get_purchase_order(po.id)

        service.send(po.id, actor=TEST_ACTOR)
        if status == POStatus.SENT:
            return service.get_purchase_order(po.id)

        first = po.line_items[0]
        if status == POStatus.PARTIALLY_RECEIVED:
            service.record_receipt(
                po.id,
                [ReceiptLineInput(first.sku, 1, location.id)],
                received_by=TEST_ACTOR,
            )
        elif status == POStatus.CLOSED:
            service.record_receipt(
                po.id,
                [ReceiptLineInput(line.sku, line.quantity, location.id) for line in po.line_items],
                received_by=TEST_ACTOR,
            )
        return service.get_purchase_order(po.id)

    return _drive
