"""
Module ORM Registry (``supply_modules._orm_registry``).

Responsibility
--------------
Ensure all module-level SQLAlchemy ORM models are imported so that
``Base.metadata`` contains their table definitions before tables are
created, and provide ``create_all_tables()``, the one entry point scripts,
``bootstrap()`` and ``tests/conftest.py`` use to get a complete schema.

Architecture position
---------------------
**Modules layer** -- utility.  Imports from sibling ``supply_modules``
packages and from ``supply_kernel.db.engine`` (allowed: modules -> kernel).
MUST NOT be imported by ``supply_kernel``.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every ``supply_modules.*.orm`` module.

    Kernel tables (suppliers, inventory_locations) are registered first;
    module tables hold foreign keys to them.  Idempotent.
    """
    import supply_kernel.models  # noqa: F401
    import supply_modules.purchasing.orm  # noqa: F401


def create_all_tables() -> None:
    """Create kernel + module ORM tables.

    Preconditions:
        Engine must be initialized via ``init_engine_from_url()``.
    """
    from supply_kernel.db.engine import create_tables

    import_all_orm_models()
    create_tables()


def drop_all_tables() -> None:
    """Drop kernel + module ORM tables.  Tests only."""
    from supply_kernel.db.engine import drop_tables

    import_all_orm_models()
    drop_tables()
