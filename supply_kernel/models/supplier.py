"""
Module: supply_kernel.models.supplier
Responsibility: ORM persistence for suppliers and their SKU catalogs.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/ or outer layers.

Invariants enforced:
    - ``supplier_products`` is unique on (supplier_id, sku).
    - Catalog cost is integer cents; it is optional because a supplier may
      list a SKU before quoting it.

Reference data only: the purchasing lifecycle reads these rows but never
mutates them.
"""

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from supply_kernel.db.base import TrackedBase


class SupplierModel(TrackedBase):
    """A vendor purchase orders can be raised against."""

    __tablename__ = "suppliers"

    __table_args__ = (
        UniqueConstraint("code", name="uq_supplier_code"),
        Index("idx_supplier_active", "is_active"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    contact_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    payment_terms: Mapped[str] = mapped_column(String(50), nullable=False, default="net_30")
    default_lead_time_days: Mapped[int] = mapped_column(Integer, nullable=False, default=14)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    products: Mapped[list["SupplierProductModel"]] = relationship(
        "SupplierProductModel",
        back_populates="supplier",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Supplier {self.name} ({'active' if self.is_active else 'inactive'})>"


class SupplierProductModel(TrackedBase):
    """One SKU in a supplier's catalog, with supplier-side cost."""

    __tablename__ = "supplier_products"

    __table_args__ = (
        UniqueConstraint("supplier_id", "sku", name="uq_supplier_product_sku"),
        Index("idx_supplier_product_sku", "sku"),
    )

    supplier_id: Mapped[UUID] = mapped_column(ForeignKey("suppliers.id"), nullable=False)
    sku: Mapped[str] = mapped_column(String(100), nullable=False)
    supplier_sku: Mapped[str | None] = mapped_column(String(100), nullable=True)
    product_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    unit_cost_cents: Mapped[int | None] = mapped_column(nullable=True)
    moq: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    case_pack: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    lead_time_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    supplier: Mapped[SupplierModel] = relationship(
        "SupplierModel",
        back_populates="products",
    )
