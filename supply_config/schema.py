"""
Runtime configuration schema.

Frozen dataclasses produced by ``supply_config.loader``.  This is the
parsed form of ``defaults.yaml`` (or an operator-supplied file) after
environment overrides; nothing downstream reads YAML or the environment
itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from supply_modules.purchasing.config import PurchasingConfig


@dataclass(frozen=True)
class DatabaseConfig:
    """Engine settings passed to ``init_engine_from_url``."""

    url: str
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30
    sqlite_busy_timeout: int = 30
    create_tables: bool = True


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class RuntimeConfig:
    """The complete runtime configuration."""

    database: DatabaseConfig
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    purchasing: PurchasingConfig = field(default_factory=PurchasingConfig)
    source: str | None = None

    def describe(self) -> dict[str, Any]:
        """Loggable summary; the database URL is reduced to its scheme."""
        return {
            "source": self.source,
            "database_dialect": self.database.url.split(":", 1)[0],
            "log_level": self.logging.level,
            "default_approval_threshold_cents": self.purchasing.default_approval_threshold_cents,
            "po_number_prefix": self.purchasing.po_number_prefix,
        }
