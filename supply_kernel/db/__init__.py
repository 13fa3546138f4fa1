"""Database layer - engine, base classes and append-only enforcement."""

from supply_kernel.db.base import UUID, Base, TrackedBase, UTCDateTime, UUIDString
from supply_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session_factory",
    "reset_engine",
    "create_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UTCDateTime",
    "UUID",
]
