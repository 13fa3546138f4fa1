"""
Module: supply_kernel.models.sequence_counter
Responsibility: Named monotonic counters (one row per sequence name).
Architecture position: Kernel > Models.  May import from db/base.py only.

PO numbers use one counter per calendar month (``po_number:YYYYMM``); the
row is the sole source of truth for the next suffix.  Max-plus-one over
``purchase_orders`` is only used to seed a counter the first time it is
created.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from supply_kernel.db.base import Base


class SequenceCounter(Base):
    """
    Sequence counter table.

    Each row represents a named sequence with its current value.
    """

    __tablename__ = "sequence_counters"

    # Sequence name (e.g., "po_number:202610")
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
    )

    # Current (last issued) value
    current_value: Mapped[int] = mapped_column(
        nullable=False,
        default=0,
    )
