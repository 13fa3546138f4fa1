"""
Typed Exception Hierarchy for the Supply Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (the HTTP layer, scheduled jobs, operators' tooling) must be able to
tell "you asked for something that does not exist" from "you sent bad input"
from "someone else changed this PO under you" without parsing messages.

Every exception:
  1. Has a TYPED class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (po_id, current_status, ...)

Example:
    try:
        service.send(po_id)
    except StateConflictError as e:
        api_response(409, code=e.code, status=e.current_status)
    except NotFoundError as e:
        api_response(404, code=e.code)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    SupplyKernelError (base)
    |
    +-- NotFoundError
    |   +-- PurchaseOrderNotFoundError
    |   +-- SupplierNotFoundError
    |   +-- LineItemNotFoundError
    |   +-- LocationNotFoundError
    |   +-- ShipmentNotFoundError
    |
    +-- ValidationError
    |   +-- InvalidSettingError
    |
    +-- StateConflictError
    |   +-- ConcurrentModificationError
    |   +-- PONotApprovedError (also a ValidationError)
    |
    +-- PONumberConflictError
    +-- EventChainBrokenError
    +-- ImmutabilityViolationError
    +-- StorageError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                      | When Raised
-------------|---------------------------|-------------------------------------
Not found    | NOT_FOUND                 | Generic missing entity
             | PO_NOT_FOUND              | Purchase order id unknown
             | SUPPLIER_NOT_FOUND        | Supplier id unknown
             | LINE_ITEM_NOT_FOUND       | SKU is not on the purchase order
             | LOCATION_NOT_FOUND        | Inventory location id unknown
             | SHIPMENT_NOT_FOUND        | Shipment unknown / not on this PO
-------------|---------------------------|-------------------------------------
Validation   | VALIDATION_ERROR          | Malformed or missing input
             | INVALID_SETTING           | Stored setting cannot be parsed
-------------|---------------------------|-------------------------------------
State        | STATE_CONFLICT            | Action illegal for current status
             | CONCURRENT_MODIFICATION   | Conditional write lost a race
             | PO_NOT_APPROVED           | Send attempted on a non-approved PO
-------------|---------------------------|-------------------------------------
Numbering    | PO_NUMBER_CONFLICT        | PO number uniqueness constraint hit
Audit        | EVENT_CHAIN_BROKEN        | Event replay found a gap
Immutability | IMMUTABILITY_VIOLATION    | Update/delete of append-only row
Storage      | STORAGE_FAILURE           | Unexpected database fault

===============================================================================
PROPAGATION
===============================================================================

Validation and not-found errors are raised before anything is written.
State conflicts found by the conditional write carry the PO's *actual*
status so the caller can refresh and retry; the kernel never retries on
the caller's behalf.  StorageError messages are deliberately generic; the
driver exception is chained as ``__cause__`` and logged, never surfaced.
"""


class SupplyKernelError(Exception):
    """
    Base exception for all supply kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "SUPPLY_KERNEL_ERROR"


# Not-found exceptions


class NotFoundError(SupplyKernelError):
    """Referenced entity does not exist."""

    code: str = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} not found: {entity_id}")


class PurchaseOrderNotFoundError(NotFoundError):
    code: str = "PO_NOT_FOUND"

    def __init__(self, po_id: str):
        self.po_id = po_id
        super().__init__("PurchaseOrder", po_id)


class SupplierNotFoundError(NotFoundError):
    code: str = "SUPPLIER_NOT_FOUND"

    def __init__(self, supplier_id: str):
        self.supplier_id = supplier_id
        super().__init__("Supplier", supplier_id)


class LineItemNotFoundError(NotFoundError):
    """A receipt referenced a SKU that is not a line on the purchase order."""

    code: str = "LINE_ITEM_NOT_FOUND"

    def __init__(self, po_id: str, sku: str):
        self.po_id = po_id
        self.sku = sku
        super().__init__("POLineItem", f"{po_id}/{sku}")


class LocationNotFoundError(NotFoundError):
    code: str = "LOCATION_NOT_FOUND"

    def __init__(self, location_id: str):
        self.location_id = location_id
        super().__init__("InventoryLocation", location_id)


class ShipmentNotFoundError(NotFoundError):
    code: str = "SHIPMENT_NOT_FOUND"

    def __init__(self, shipment_id: str):
        self.shipment_id = shipment_id
        super().__init__("Shipment", shipment_id)


# Validation exceptions


class ValidationError(SupplyKernelError):
    """Input is malformed or a required field is missing."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class InvalidSettingError(ValidationError):
    """A stored setting exists but its value cannot be used."""

    code: str = "INVALID_SETTING"

    def __init__(self, category: str, key: str, value: str | None, reason: str):
        self.category = category
        self.key = key
        self.value = value
        super().__init__(f"setting {category}/{key}", reason)


# State exceptions


class StateConflictError(SupplyKernelError):
    """
    The requested action is not legal for the purchase order's status.

    Carries the PO id, the status the PO is actually in, and the action
    that was attempted.  Nothing has been written when this is raised.
    """

    code: str = "STATE_CONFLICT"

    def __init__(
        self,
        po_id: str,
        current_status: str,
        attempted_action: str,
        message: str | None = None,
    ):
        self.po_id = po_id
        self.current_status = current_status
        self.attempted_action = attempted_action
        # Explicit base call: PONotApprovedError mixes in ValidationError.
        SupplyKernelError.__init__(
            self,
            message
            or (
                f"Cannot {attempted_action} purchase order {po_id}: "
                f"current status is '{current_status}'"
            )
        )


class ConcurrentModificationError(StateConflictError):
    """
    The conditional write found the PO changed since it was read.

    ``current_status`` is the status re-read after the failed write.
    """

    code: str = "CONCURRENT_MODIFICATION"

    def __init__(
        self,
        po_id: str,
        current_status: str,
        attempted_action: str,
        expected_status: str,
    ):
        self.expected_status = expected_status
        super().__init__(
            po_id,
            current_status,
            attempted_action,
            message=(
                f"Purchase order {po_id} was modified concurrently while "
                f"attempting {attempted_action}: expected '{expected_status}', "
                f"found '{current_status}'"
            ),
        )


class PONotApprovedError(StateConflictError, ValidationError):
    """Send attempted on a purchase order that is not approved."""

    code: str = "PO_NOT_APPROVED"

    def __init__(self, po_id: str, current_status: str):
        self.field = "status"
        self.reason = "PO must be approved before sending"
        StateConflictError.__init__(
            self,
            po_id,
            current_status,
            "send",
            message=(
                f"Purchase order {po_id} must be approved before sending "
                f"(current status is '{current_status}')"
            ),
        )


# Numbering / audit / storage


class PONumberConflictError(SupplyKernelError):
    """Two allocations produced the same PO number."""

    code: str = "PO_NUMBER_CONFLICT"

    def __init__(self, po_number: str):
        self.po_number = po_number
        super().__init__(f"PO number already in use: {po_number}")


class EventChainBrokenError(SupplyKernelError):
    """Replaying a PO's events found a transition that does not chain."""

    code: str = "EVENT_CHAIN_BROKEN"

    def __init__(self, po_id: str, po_version: int, expected_from: str | None, actual_from: str | None):
        self.po_id = po_id
        self.po_version = po_version
        self.expected_from = expected_from
        self.actual_from = actual_from
        super().__init__(
            f"Event chain broken for purchase order {po_id} at version {po_version}: "
            f"expected from_status '{expected_from}', found '{actual_from}'"
        )


class ImmutabilityViolationError(SupplyKernelError):
    """Attempted to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


class StorageError(SupplyKernelError):
    """
    Unexpected storage fault.

    The message never includes driver detail; the original exception is
    available as ``__cause__`` for logs.
    """

    code: str = "STORAGE_FAILURE"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Storage failure during {operation}")
