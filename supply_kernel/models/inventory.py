"""
Module: supply_kernel.models.inventory
Responsibility: Inventory locations and per-(location, SKU) on-hand levels.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - ``inventory_levels`` is unique on (location_id, sku); concurrent
      first-time receipts for the same pair collapse onto one row.
    - ``on_hand`` only ever moves through InventoryService.increment_on_hand,
      an atomic ``on_hand = on_hand + :n`` UPDATE.
"""

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from supply_kernel.db.base import TrackedBase


class InventoryLocationModel(TrackedBase):
    """A named physical site that receives stock."""

    __tablename__ = "inventory_locations"

    __table_args__ = (
        UniqueConstraint("code", name="uq_inventory_location_code"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class InventoryLevelModel(TrackedBase):
    """Quantity on hand of one SKU at one location."""

    __tablename__ = "inventory_levels"

    __table_args__ = (
        UniqueConstraint("location_id", "sku", name="uq_inventory_level_location_sku"),
        Index("idx_inventory_level_sku", "sku"),
    )

    location_id: Mapped[UUID] = mapped_column(
        ForeignKey("inventory_locations.id"), nullable=False
    )
    sku: Mapped[str] = mapped_column(String(100), nullable=False)
    on_hand: Mapped[int] = mapped_column(nullable=False, default=0)
