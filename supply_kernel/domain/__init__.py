"""Pure domain primitives: clock, money formatting, domain events."""

from supply_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from supply_kernel.domain.dtos import (
    InventoryLevel,
    InventoryLocation,
    Supplier,
    SupplierProduct,
)
from supply_kernel.domain.events import DomainEvent
from supply_kernel.domain.money import format_cents

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "DomainEvent",
    "format_cents",
    "Supplier",
    "SupplierProduct",
    "InventoryLocation",
    "InventoryLevel",
]
