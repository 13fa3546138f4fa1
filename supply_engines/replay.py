"""
supply_engines.replay -- Rebuild a PO's status from its event log.

Responsibility:
    Fold events ordered by ``po_version`` and verify that they chain: the
    first event creates the PO (no from_status) at version 1, every later
    event is exactly one version on and starts from the status the
    previous one ended in.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from supply_kernel.exceptions import EventChainBrokenError


class ReplayableEvent(Protocol):
    po_version: int

    @property
    def from_status(self) -> object: ...

    @property
    def to_status(self) -> object: ...


def _status_value(status: object) -> str | None:
    if status is None:
        return None
    return getattr(status, "value", status)


def replay_status(po_id: str, events: Iterable[ReplayableEvent]) -> str | None:
    """Return the status the event log ends in (None for an empty log).

    Raises:
        EventChainBrokenError: a version gap, or an event whose from_status
            is not the previous event's to_status.
    """
    current: str | None = None
    expected_version = 1
    for event in sorted(events, key=lambda e: e.po_version):
        from_status = _status_value(event.from_status)
        if event.po_version != expected_version or from_status != current:
            raise EventChainBrokenError(
                po_id=po_id,
                po_version=event.po_version,
                expected_from=current,
                actual_from=from_status,
            )
        current = _status_value(event.to_status)
        expected_version += 1
    return current
