"""Supplier and catalog reference data."""

from uuid import uuid4

import pytest

from supply_kernel.exceptions import SupplierNotFoundError, ValidationError
from supply_kernel.selectors.supplier_selector import SupplierSelector
from supply_kernel.services.supplier_service import SupplierService


class TestSupplierService:

    def test_create_and_get(self, session):
        created = SupplierService(session).create_supplier("Globex", code="GLX")
        fetched = SupplierSelector(session).get(created.id)
        assert fetched.name == "Globex"
        assert fetched.is_active

    def test_name_required(self, session):
        with pytest.raises(ValidationError):
            SupplierService(session).create_supplier(" ")

    def test_set_active(self, session, supplier):
        SupplierService(session).set_active(supplier.id, False, actor="admin")
        assert not SupplierSelector(session).get(supplier.id).is_active

    def test_get_unknown_supplier(self, session):
        with pytest.raises(SupplierNotFoundError):
            SupplierSelector(session).get(uuid4())
        assert SupplierSelector(session).find(uuid4()) is None


class TestCatalog:

    def test_catalog_keyed_by_sku(self, session, supplier):
        catalog = SupplierSelector(session).catalog(supplier.id)
        assert set(catalog) == {"SKU-A", "SKU-B", "SKU-C"}
        assert catalog["SKU-A"].unit_cost_cents == 250
        assert catalog["SKU-C"].unit_cost_cents is None

    def test_list_products_by_sku(self, session, supplier):
        products = SupplierSelector(session).list_products(sku="SKU-B")
        assert [p.supplier_id for p in products] == [supplier.id]

    def test_duplicate_sku_rejected(self, session, supplier):
        with pytest.raises(ValidationError):
            SupplierService(session).add_product(supplier.id, "SKU-A", unit_cost_cents=1)

    def test_negative_cost_rejected(self, session, supplier):
        with pytest.raises(ValidationError):
            SupplierService(session).add_product(supplier.id, "SKU-N", unit_cost_cents=-1)

    def test_unknown_supplier_rejected(self, session):
        with pytest.raises(SupplierNotFoundError):
            SupplierService(session).add_product(uuid4(), "SKU-A", unit_cost_cents=1)
