"""
PO Number Allocator.

Format: ``<prefix>-<YYYYMM>-<sequence>``, the sequence zero-padded to three
digits and growing past 999 (``PO-202610-1000``).  It restarts at 1 each
calendar month (UTC, taken from the injected clock).

Allocation goes through one ``sequence_counters`` row per month
(``po_number:YYYYMM``), incremented under a row lock, so two concurrent
creators can never draw the same number.  The unique constraint on
``purchase_orders.po_number`` is the backstop.  When a month's counter
does not exist yet it is seeded from the numerically highest suffix already
stored for that month, so numbers written before the counter existed are
never reissued.
"""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from supply_kernel.domain.clock import Clock
from supply_kernel.logging_config import get_logger
from supply_kernel.services.sequence_service import SequenceService
from supply_modules.purchasing.orm import PurchaseOrderModel

logger = get_logger("modules.purchasing.po_number")


class PONumberAllocator:

    SEQUENCE_PREFIX = "po_number"

    def __init__(self, session: Session, clock: Clock, prefix: str = "PO"):
        self._session = session
        self._clock = clock
        self._prefix = prefix
        self._sequences = SequenceService(session)

    @staticmethod
    def month_key(at: datetime) -> str:
        return f"{at.year:04d}{at.month:02d}"

    def format(self, month_key: str, sequence: int) -> str:
        return f"{self._prefix}-{month_key}-{sequence:03d}"

    def sequence_name(self, month_key: str) -> str:
        return f"{self.SEQUENCE_PREFIX}:{month_key}"

    def highest_existing_suffix(self, month_key: str) -> int:
        """Largest numeric suffix stored for the month, 0 if none."""
        stem = f"{self._prefix}-{month_key}-"
        numbers = self._session.scalars(
            select(PurchaseOrderModel.po_number).where(
                PurchaseOrderModel.po_number.like(f"{stem}%")
            )
        )
        highest = 0
        for number in numbers:
            suffix = number[len(stem):]
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return highest

    def allocate(self) -> str:
        """Draw the next number for the clock's current month."""
        month_key = self.month_key(self._clock.now_utc())
        name = self.sequence_name(month_key)

        floor = 0
        if self._sequences.current_value(name) is None:
            floor = self.highest_existing_suffix(month_key)

        sequence = self._sequences.next_value(name, floor=floor)
        po_number = self.format(month_key, sequence)
        logger.info(
            "po_number_allocated",
            extra={"po_number": po_number, "month": month_key, "sequence": sequence},
        )
        return po_number
