"""
Supply Kernel

Storage, logging and error infrastructure for the purchase-order lifecycle:
- Append-only PO event log
- Conditional (compare-and-swap) status writes
- Atomic inventory and received-quantity increments
- Locked per-month PO number counters
"""

__version__ = "0.1.0"
