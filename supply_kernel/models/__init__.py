"""ORM models for the supply kernel (reference data, inventory, audit, counters)."""

from supply_kernel.models.audit_log import AuditLogModel
from supply_kernel.models.inventory import InventoryLevelModel, InventoryLocationModel
from supply_kernel.models.sequence_counter import SequenceCounter
from supply_kernel.models.setting import SettingModel
from supply_kernel.models.supplier import SupplierModel, SupplierProductModel

__all__ = [
    "AuditLogModel",
    "InventoryLocationModel",
    "InventoryLevelModel",
    "SequenceCounter",
    "SettingModel",
    "SupplierModel",
    "SupplierProductModel",
]
