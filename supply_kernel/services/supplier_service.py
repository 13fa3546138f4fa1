"""
SupplierService -- supplier and catalog reference data (seed/admin glue).

The purchasing lifecycle only reads suppliers; this service exists so
operators, seed scripts and tests can create them.
"""

from uuid import UUID

from sqlalchemy import select

from supply_kernel.domain.dtos import Supplier, SupplierProduct
from supply_kernel.exceptions import SupplierNotFoundError, ValidationError
from supply_kernel.logging_config import get_logger
from supply_kernel.models.supplier import SupplierModel, SupplierProductModel
from supply_kernel.services.base import BaseService

logger = get_logger("services.supplier")


class SupplierService(BaseService[SupplierModel]):

    def create_supplier(
        self,
        name: str,
        code: str | None = None,
        contact_name: str | None = None,
        contact_email: str | None = None,
        contact_phone: str | None = None,
        address: str | None = None,
        payment_terms: str = "net_30",
        default_lead_time_days: int = 14,
        is_active: bool = True,
        actor: str | None = None,
    ) -> Supplier:
        if not name or not name.strip():
            raise ValidationError("name", "supplier name is required")

        supplier = SupplierModel(
            name=name.strip(),
            code=code,
            contact_name=contact_name,
            contact_email=contact_email,
            contact_phone=contact_phone,
            address=address,
            payment_terms=payment_terms,
            default_lead_time_days=default_lead_time_days,
            is_active=is_active,
            created_by=actor,
            updated_by=actor,
        )
        self.session.add(supplier)
        self.session.flush()
        logger.info(
            "supplier_created",
            extra={"supplier_id": str(supplier.id), "supplier_name": supplier.name},
        )
        return Supplier.from_model(supplier)

    def set_active(self, supplier_id: UUID, is_active: bool, actor: str | None = None) -> Supplier:
        supplier = self.session.get(SupplierModel, supplier_id)
        if supplier is None:
            raise SupplierNotFoundError(str(supplier_id))
        supplier.is_active = is_active
        supplier.updated_by = actor
        self.session.flush()
        logger.info(
            "supplier_activation_changed",
            extra={"supplier_id": str(supplier_id), "is_active": is_active},
        )
        return Supplier.from_model(supplier)

    def add_product(
        self,
        supplier_id: UUID,
        sku: str,
        unit_cost_cents: int | None = None,
        supplier_sku: str | None = None,
        product_name: str | None = None,
        moq: int = 1,
        case_pack: int = 1,
        lead_time_days: int | None = None,
        actor: str | None = None,
    ) -> SupplierProduct:
        """Add a SKU to a supplier's catalog."""
        if self.session.get(SupplierModel, supplier_id) is None:
            raise SupplierNotFoundError(str(supplier_id))
        if not sku or not sku.strip():
            raise ValidationError("sku", "SKU is required")
        if unit_cost_cents is not None and (
            isinstance(unit_cost_cents, bool)
            or not isinstance(unit_cost_cents, int)
            or unit_cost_cents < 0
        ):
            raise ValidationError("unit_cost_cents", "must be a non-negative integer")

        existing = self.session.execute(
            select(SupplierProductModel).where(
                SupplierProductModel.supplier_id == supplier_id,
                SupplierProductModel.sku == sku,
            )
        ).scalar_one_or_none()
        if existing is not None:
            raise ValidationError("sku", f"{sku} is already in this supplier's catalog")

        product = SupplierProductModel(
            supplier_id=supplier_id,
            sku=sku.strip(),
            unit_cost_cents=unit_cost_cents,
            supplier_sku=supplier_sku,
            product_name=product_name,
            moq=moq,
            case_pack=case_pack,
            lead_time_days=lead_time_days,
            created_by=actor,
            updated_by=actor,
        )
        self.session.add(product)
        self.session.flush()
        logger.info(
            "supplier_product_added",
            extra={"supplier_id": str(supplier_id), "sku": product.sku},
        )
        return SupplierProduct.from_model(product)
