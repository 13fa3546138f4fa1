"""Kernel services: flush-only writers used inside a caller-owned transaction."""

from supply_kernel.services.audit_log_service import AuditLogPublisher, DomainEventPublisher
from supply_kernel.services.inventory_service import InventoryService
from supply_kernel.services.sequence_service import SequenceService
from supply_kernel.services.settings_service import SettingsService
from supply_kernel.services.supplier_service import SupplierService

__all__ = [
    "AuditLogPublisher",
    "DomainEventPublisher",
    "InventoryService",
    "SequenceService",
    "SettingsService",
    "SupplierService",
]
