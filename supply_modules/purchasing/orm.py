"""
SQLAlchemy ORM persistence models for the Purchasing module.

Responsibility
--------------
Provide database-backed persistence for purchase orders, their line items,
the append-only PO event log, shipments, and receipts.

Architecture position
---------------------
**Modules layer** -- ORM models consumed by ``POStateMachine``,
``ReceivingService`` and ``PurchaseOrderSelector``.  Inherits from
``TrackedBase`` / ``Base`` (kernel db layer).

Invariants enforced
-------------------
* All money is integer cents (BigInteger) -- NEVER float.
* Enum fields stored as String(50) for readability and portability.
* ``purchase_orders.version`` increments by exactly one per transition;
  ``po_events`` is unique on (purchase_order_id, po_version), so a
  transition can append exactly one event.
* ``po_line_items`` is unique on (purchase_order_id, sku).
* ``po_events``, ``receipts`` and ``receipt_lines`` are append-only
  (see ``supply_kernel.db.immutability``).
* ``received_quantity`` starts at 0 and only moves through an atomic
  ``received_quantity = received_quantity + :n`` UPDATE.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from supply_kernel.db.base import Base, TrackedBase, UTCDateTime

# ---------------------------------------------------------------------------
# PurchaseOrderModel
# ---------------------------------------------------------------------------


class PurchaseOrderModel(TrackedBase):
    """
    A purchase order header.

    Maps to the ``PurchaseOrder`` DTO in ``supply_modules.purchasing.models``.

    Guarantees:
        - ``po_number`` is unique.
        - ``status`` only changes through a conditional UPDATE guarded on
          (status, version).
    """

    __tablename__ = "purchase_orders"

    __table_args__ = (
        UniqueConstraint("po_number", name="uq_purchase_order_number"),
        Index("idx_purchase_order_supplier", "supplier_id"),
        Index("idx_purchase_order_status", "status"),
        CheckConstraint("version >= 1", name="ck_purchase_order_version"),
        CheckConstraint("total_cents >= 0", name="ck_purchase_order_total"),
    )

    po_number: Mapped[str] = mapped_column(String(50), nullable=False)
    supplier_id: Mapped[UUID] = mapped_column(ForeignKey("suppliers.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")
    version: Mapped[int] = mapped_column(nullable=False, default=1)
    total_cents: Mapped[int] = mapped_column(nullable=False, default=0)
    requested_delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    sent_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    # Relationships
    line_items: Mapped[list["POLineItemModel"]] = relationship(
        "POLineItemModel",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        order_by="POLineItemModel.sort_order",
        lazy="selectin",
    )

    def to_dto(self):
        from supply_modules.purchasing.models import POStatus, PurchaseOrder

        return PurchaseOrder(
            id=self.id,
            po_number=self.po_number,
            supplier_id=self.supplier_id,
            status=POStatus(self.status),
            total_cents=self.total_cents,
            version=self.version,
            line_items=tuple(line.to_dto() for line in self.line_items),
            requested_delivery_date=self.requested_delivery_date,
            created_by=self.created_by,
            approved_by=self.approved_by,
            approved_at=self.approved_at,
            sent_at=self.sent_at,
            closed_at=self.closed_at,
            cancelled_at=self.cancelled_at,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def __repr__(self) -> str:
        return f"<PurchaseOrder {self.po_number} [{self.status}] v{self.version}>"


# ---------------------------------------------------------------------------
# POLineItemModel
# ---------------------------------------------------------------------------


class POLineItemModel(TrackedBase):
    """
    A line on a purchase order.

    Guarantees:
        - Belongs to exactly one ``PurchaseOrderModel``.
        - ``over_received`` is set (never cleared) once received_quantity
          exceeds quantity.
    """

    __tablename__ = "po_line_items"

    __table_args__ = (
        UniqueConstraint("purchase_order_id", "sku", name="uq_po_line_item_sku"),
        CheckConstraint("quantity > 0", name="ck_po_line_item_quantity"),
        CheckConstraint("unit_cost_cents >= 0", name="ck_po_line_item_unit_cost"),
        CheckConstraint("received_quantity >= 0", name="ck_po_line_item_received"),
    )

    purchase_order_id: Mapped[UUID] = mapped_column(
        ForeignKey("purchase_orders.id"), nullable=False
    )
    sku: Mapped[str] = mapped_column(String(100), nullable=False)
    product_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    supplier_sku: Mapped[str | None] = mapped_column(String(100), nullable=True)
    quantity: Mapped[int] = mapped_column(nullable=False)
    unit_cost_cents: Mapped[int] = mapped_column(nullable=False)
    total_cents: Mapped[int] = mapped_column(nullable=False)
    received_quantity: Mapped[int] = mapped_column(nullable=False, default=0)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    over_received: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    purchase_order: Mapped[PurchaseOrderModel] = relationship(
        "PurchaseOrderModel",
        back_populates="line_items",
    )

    def to_dto(self):
        from supply_modules.purchasing.models import POLineItem

        return POLineItem(
            id=self.id,
            purchase_order_id=self.purchase_order_id,
            sku=self.sku,
            quantity=self.quantity,
            unit_cost_cents=self.unit_cost_cents,
            total_cents=self.total_cents,
            received_quantity=self.received_quantity,
            sort_order=self.sort_order,
            product_name=self.product_name,
            supplier_sku=self.supplier_sku,
            over_received=self.over_received,
        )


# ---------------------------------------------------------------------------
# POEventModel
# ---------------------------------------------------------------------------


class POEventModel(Base):
    """
    One entry in a PO's append-only event log.

    Guarantees:
        - Unique on (purchase_order_id, po_version).
        - Never updated or deleted.
    """

    __tablename__ = "po_events"

    __table_args__ = (
        UniqueConstraint("purchase_order_id", "po_version", name="uq_po_event_version"),
        Index("idx_po_event_type", "event_type"),
    )

    purchase_order_id: Mapped[UUID] = mapped_column(
        ForeignKey("purchase_orders.id"), nullable=False
    )
    po_version: Mapped[int] = mapped_column(nullable=False)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    from_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    to_status: Mapped[str] = mapped_column(String(50), nullable=False)
    actor: Mapped[str | None] = mapped_column(String(255), nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    event_metadata: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)
    occurred_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    def to_dto(self):
        from supply_modules.purchasing.models import POEvent, POEventType, POStatus

        return POEvent(
            id=self.id,
            purchase_order_id=self.purchase_order_id,
            po_version=self.po_version,
            event_type=POEventType(self.event_type),
            from_status=POStatus(self.from_status) if self.from_status else None,
            to_status=POStatus(self.to_status),
            actor=self.actor,
            note=self.note,
            metadata=dict(self.event_metadata or {}),
            occurred_at=self.occurred_at,
        )

    def __repr__(self) -> str:
        return f"<POEvent {self.event_type} v{self.po_version} {self.from_status}->{self.to_status}>"


# ---------------------------------------------------------------------------
# ShipmentModel
# ---------------------------------------------------------------------------


class ShipmentModel(TrackedBase):
    """An inbound shipment against a purchase order.  Never deleted."""

    __tablename__ = "shipments"

    __table_args__ = (
        Index("idx_shipment_purchase_order", "purchase_order_id"),
    )

    purchase_order_id: Mapped[UUID] = mapped_column(
        ForeignKey("purchase_orders.id"), nullable=False
    )
    carrier: Mapped[str | None] = mapped_column(String(100), nullable=True)
    tracking_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    shipped_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    expected_arrival: Mapped[date | None] = mapped_column(Date, nullable=True)
    actual_arrival: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="in_transit")

    def to_dto(self):
        from supply_modules.purchasing.models import Shipment, ShipmentStatus

        return Shipment(
            id=self.id,
            purchase_order_id=self.purchase_order_id,
            status=ShipmentStatus(self.status),
            carrier=self.carrier,
            tracking_number=self.tracking_number,
            shipped_date=self.shipped_date,
            expected_arrival=self.expected_arrival,
            actual_arrival=self.actual_arrival,
            created_at=self.created_at,
        )


# ---------------------------------------------------------------------------
# ReceiptModel / ReceiptLineModel
# ---------------------------------------------------------------------------


class ReceiptModel(Base):
    """
    A processed receiving event.  Append-only.

    ``po_version`` is the PO version the receipt produced, linking it to
    exactly one ``receipt_recorded`` or ``closed`` event.
    """

    __tablename__ = "receipts"

    __table_args__ = (
        Index("idx_receipt_purchase_order", "purchase_order_id"),
    )

    purchase_order_id: Mapped[UUID] = mapped_column(
        ForeignKey("purchase_orders.id"), nullable=False
    )
    shipment_id: Mapped[UUID | None] = mapped_column(ForeignKey("shipments.id"), nullable=True)
    po_version: Mapped[int] = mapped_column(nullable=False)
    received_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    received_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    lines: Mapped[list["ReceiptLineModel"]] = relationship(
        "ReceiptLineModel",
        back_populates="receipt",
        order_by="ReceiptLineModel.line_number",
        lazy="selectin",
    )

    def to_dto(self):
        from supply_modules.purchasing.models import Receipt

        return Receipt(
            id=self.id,
            purchase_order_id=self.purchase_order_id,
            received_at=self.received_at,
            lines=tuple(line.to_dto() for line in self.lines),
            shipment_id=self.shipment_id,
            received_by=self.received_by,
            note=self.note,
        )


class ReceiptLineModel(Base):
    """One (SKU, quantity, location) tuple of a receipt.  Append-only."""

    __tablename__ = "receipt_lines"

    __table_args__ = (
        UniqueConstraint("receipt_id", "line_number", name="uq_receipt_line_number"),
        CheckConstraint("quantity_received > 0", name="ck_receipt_line_quantity"),
        CheckConstraint(
            "quantity_damaged >= 0 AND quantity_damaged <= quantity_received",
            name="ck_receipt_line_damaged",
        ),
    )

    receipt_id: Mapped[UUID] = mapped_column(ForeignKey("receipts.id"), nullable=False)
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)
    line_item_id: Mapped[UUID] = mapped_column(ForeignKey("po_line_items.id"), nullable=False)
    sku: Mapped[str] = mapped_column(String(100), nullable=False)
    location_id: Mapped[UUID] = mapped_column(
        ForeignKey("inventory_locations.id"), nullable=False
    )
    quantity_received: Mapped[int] = mapped_column(nullable=False)
    quantity_damaged: Mapped[int] = mapped_column(nullable=False, default=0)

    receipt: Mapped[ReceiptModel] = relationship("ReceiptModel", back_populates="lines")

    def to_dto(self):
        from supply_modules.purchasing.models import ReceiptLine

        return ReceiptLine(
            id=self.id,
            receipt_id=self.receipt_id,
            line_item_id=self.line_item_id,
            sku=self.sku,
            location_id=self.location_id,
            quantity_received=self.quantity_received,
            quantity_damaged=self.quantity_damaged,
        )
