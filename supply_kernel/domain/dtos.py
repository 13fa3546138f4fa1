"""
DTOs -- immutable reference-data records returned by kernel selectors.

Responsibility:
    Frozen views of suppliers, catalog entries, inventory locations and
    levels.  Selectors and services hand these out instead of ORM instances.

Architecture position:
    Kernel > Domain -- zero I/O.  ``from_model()`` class methods are boundary
    converters invoked only from services and selectors.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from supply_kernel.models.inventory import InventoryLevelModel, InventoryLocationModel
    from supply_kernel.models.supplier import SupplierModel, SupplierProductModel


@dataclass(frozen=True)
class Supplier:
    id: UUID
    name: str
    code: str | None = None
    contact_name: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    address: str | None = None
    payment_terms: str = "net_30"
    default_lead_time_days: int = 14
    is_active: bool = True
    created_at: datetime | None = None

    @classmethod
    def from_model(cls, model: SupplierModel) -> Supplier:
        return cls(
            id=model.id,
            name=model.name,
            code=model.code,
            contact_name=model.contact_name,
            contact_email=model.contact_email,
            contact_phone=model.contact_phone,
            address=model.address,
            payment_terms=model.payment_terms,
            default_lead_time_days=model.default_lead_time_days,
            is_active=model.is_active,
            created_at=model.created_at,
        )


@dataclass(frozen=True)
class SupplierProduct:
    """A catalog entry; ``unit_cost_cents`` is None until quoted."""

    id: UUID
    supplier_id: UUID
    sku: str
    supplier_sku: str | None = None
    product_name: str | None = None
    unit_cost_cents: int | None = None
    moq: int = 1
    case_pack: int = 1
    lead_time_days: int | None = None
    is_active: bool = True

    @classmethod
    def from_model(cls, model: SupplierProductModel) -> SupplierProduct:
        return cls(
            id=model.id,
            supplier_id=model.supplier_id,
            sku=model.sku,
            supplier_sku=model.supplier_sku,
            product_name=model.product_name,
            unit_cost_cents=model.unit_cost_cents,
            moq=model.moq,
            case_pack=model.case_pack,
            lead_time_days=model.lead_time_days,
            is_active=model.is_active,
        )


@dataclass(frozen=True)
class InventoryLocation:
    id: UUID
    name: str
    code: str | None = None
    is_active: bool = True

    @classmethod
    def from_model(cls, model: InventoryLocationModel) -> InventoryLocation:
        return cls(
            id=model.id,
            name=model.name,
            code=model.code,
            is_active=model.is_active,
        )


@dataclass(frozen=True)
class InventoryLevel:
    """On-hand quantity of one SKU at one location."""

    id: UUID
    location_id: UUID
    sku: str
    on_hand: int

    @classmethod
    def from_model(cls, model: InventoryLevelModel) -> InventoryLevel:
        return cls(
            id=model.id,
            location_id=model.location_id,
            sku=model.sku,
            on_hand=model.on_hand,
        )
