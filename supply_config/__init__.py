"""
supply_config -- single public entrypoint for runtime configuration.

Responsibility:
    ``get_active_config()`` is the only way to obtain configuration at
    runtime; ``bootstrap()`` applies it (logging, engine, schema,
    immutability listeners).  No other component reads configuration
    files or ``SUPPLY_*`` environment variables directly.

Architecture position:
    Configuration -- sits above ``supply_kernel`` and ``supply_modules``.
    The kernel MUST NEVER import from ``supply_config``.

Failure modes:
    - ``FileNotFoundError`` -- the requested configuration file is missing.
    - ``KeyError`` / ``ValueError`` -- structural or value errors.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from sqlalchemy.engine import Engine

from supply_config.loader import load_config
from supply_config.schema import DatabaseConfig, LoggingConfig, RuntimeConfig
from supply_kernel.db.engine import init_engine_from_url
from supply_kernel.db.immutability import register_immutability_listeners
from supply_kernel.logging_config import configure_logging, get_logger
from supply_modules._orm_registry import create_all_tables

logger = get_logger("config")


def get_active_config(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> RuntimeConfig:
    """The public configuration entrypoint.

    Loads ``path`` (the packaged ``defaults.yaml`` when None), applies
    ``SUPPLY_DATABASE_URL``, ``SUPPLY_LOG_LEVEL`` and
    ``SUPPLY_PO_APPROVAL_THRESHOLD_CENTS``, and returns the frozen result.
    """
    config = load_config(Path(path) if path is not None else None, environ)
    logger.info("config_loaded", extra=config.describe())
    return config


def bootstrap(config: RuntimeConfig | None = None) -> Engine:
    """Configure logging, initialize the engine, create tables, and
    register immutability listeners.  Returns the engine."""
    config = config or get_active_config()

    configure_logging(level=getattr(logging, config.logging.level, logging.INFO))
    engine = init_engine_from_url(
        config.database.url,
        echo=config.database.echo,
        pool_size=config.database.pool_size,
        max_overflow=config.database.max_overflow,
        pool_timeout=config.database.pool_timeout,
        sqlite_busy_timeout=config.database.sqlite_busy_timeout,
    )
    if config.database.create_tables:
        create_all_tables()
    register_immutability_listeners()

    logger.info("bootstrap_completed", extra=config.describe())
    return engine


__all__ = [
    "DatabaseConfig",
    "LoggingConfig",
    "RuntimeConfig",
    "bootstrap",
    "get_active_config",
]
