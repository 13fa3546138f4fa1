"""
Module: supply_kernel.selectors.supplier_selector
Responsibility: Supplier lookup and catalog queries for the purchasing
    lifecycle (the "Supplier lookup" collaborator).
Architecture position: Kernel > Selectors.  Read-only.
"""

from uuid import UUID

from sqlalchemy import select

from supply_kernel.domain.dtos import Supplier, SupplierProduct
from supply_kernel.exceptions import SupplierNotFoundError
from supply_kernel.models.supplier import SupplierModel, SupplierProductModel
from supply_kernel.selectors.base import BaseSelector


class SupplierSelector(BaseSelector[SupplierModel]):

    def find(self, supplier_id: UUID) -> Supplier | None:
        model = self.session.get(SupplierModel, supplier_id)
        return Supplier.from_model(model) if model is not None else None

    def get(self, supplier_id: UUID) -> Supplier:
        """
        Raises:
            SupplierNotFoundError: no supplier with this id.
        """
        supplier = self.find(supplier_id)
        if supplier is None:
            raise SupplierNotFoundError(str(supplier_id))
        return supplier

    def list_products(
        self,
        supplier_id: UUID | None = None,
        sku: str | None = None,
        active_only: bool = True,
    ) -> list[SupplierProduct]:
        stmt = select(SupplierProductModel)
        if supplier_id is not None:
            stmt = stmt.where(SupplierProductModel.supplier_id == supplier_id)
        if sku is not None:
            stmt = stmt.where(SupplierProductModel.sku == sku)
        if active_only:
            stmt = stmt.where(SupplierProductModel.is_active.is_(True))
        stmt = stmt.order_by(SupplierProductModel.sku)
        return [SupplierProduct.from_model(m) for m in self.session.scalars(stmt)]

    def catalog(self, supplier_id: UUID) -> dict[str, SupplierProduct]:
        """Active catalog entries of one supplier, keyed by SKU."""
        return {p.sku: p for p in self.list_products(supplier_id=supplier_id)}
