"""
Configuration Loader (``supply_config.loader``).

Responsibility
--------------
Load a YAML configuration file, apply environment overrides, and parse the
result into the frozen ``supply_config.schema`` dataclasses.  Callers use
``supply_config.get_active_config()``; this module is its implementation.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing ``database.url``  -> ``KeyError``.
* Non-integer threshold override  -> ``ValueError``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from supply_config.schema import DatabaseConfig, LoggingConfig, RuntimeConfig
from supply_modules.purchasing.config import PurchasingConfig

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

ENV_DATABASE_URL = "SUPPLY_DATABASE_URL"
ENV_LOG_LEVEL = "SUPPLY_LOG_LEVEL"
ENV_APPROVAL_THRESHOLD = "SUPPLY_PO_APPROVAL_THRESHOLD_CENTS"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def apply_env_overrides(
    data: dict[str, Any],
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Return a copy of ``data`` with ``SUPPLY_*`` variables applied."""
    env = os.environ if environ is None else environ
    merged = {section: dict(values or {}) for section, values in data.items()}

    if env.get(ENV_DATABASE_URL):
        merged.setdefault("database", {})["url"] = env[ENV_DATABASE_URL]
    if env.get(ENV_LOG_LEVEL):
        merged.setdefault("logging", {})["level"] = env[ENV_LOG_LEVEL].upper()
    if env.get(ENV_APPROVAL_THRESHOLD):
        raw = env[ENV_APPROVAL_THRESHOLD].strip()
        try:
            threshold = int(raw)
        except ValueError as exc:
            raise ValueError(f"{ENV_APPROVAL_THRESHOLD} must be an integer, got {raw!r}") from exc
        merged.setdefault("purchasing", {})["default_approval_threshold_cents"] = threshold
    return merged


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    return DatabaseConfig(
        url=data["url"],
        echo=bool(data.get("echo", False)),
        pool_size=int(data.get("pool_size", 20)),
        max_overflow=int(data.get("max_overflow", 10)),
        pool_timeout=int(data.get("pool_timeout", 30)),
        sqlite_busy_timeout=int(data.get("sqlite_busy_timeout", 30)),
        create_tables=bool(data.get("create_tables", True)),
    )


def parse_config(data: dict[str, Any], source: str | None = None) -> RuntimeConfig:
    """
    Parse a merged configuration dict.

    Raises:
        KeyError: ``database.url`` is missing.
        ValueError: a purchasing value fails validation.
        TypeError: an unknown purchasing key is present.
    """
    return RuntimeConfig(
        database=parse_database(data.get("database") or {}),
        logging=LoggingConfig(level=str((data.get("logging") or {}).get("level", "INFO")).upper()),
        purchasing=PurchasingConfig.from_dict(data.get("purchasing") or {}),
        source=source,
    )


def load_config(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> RuntimeConfig:
    """Load ``path`` (defaults file when None), apply overrides, parse."""
    source = Path(path) if path is not None else DEFAULTS_PATH
    data = apply_env_overrides(load_yaml_file(source), environ)
    return parse_config(data, source=str(source))
