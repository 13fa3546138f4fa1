"""Read-only selectors over kernel reference data."""

from supply_kernel.selectors.inventory_selector import InventorySelector
from supply_kernel.selectors.supplier_selector import SupplierSelector

__all__ = ["InventorySelector", "SupplierSelector"]
