"""
Purchasing Configuration Schema.

Defines the structure and defaults for purchasing settings.  Actual values
are loaded from ``supply_config`` (YAML + environment) at runtime; the
approval threshold itself is re-read from the settings table on every
submission, with ``default_approval_threshold_cents`` as the fallback.
"""

from dataclasses import dataclass
from typing import Self

from supply_kernel.logging_config import get_logger

logger = get_logger("modules.purchasing.config")


@dataclass
class PurchasingConfig:
    """
    Configuration schema for the purchasing module.

        config = PurchasingConfig(
            default_approval_threshold_cents=250_000,
            **load_from_file("purchasing"),
        )
    """

    # Approval threshold (integer cents; USD 5,000.00)
    default_approval_threshold_cents: int = 500_000
    threshold_setting_category: str = "finance"
    threshold_setting_key: str = "po_approval_threshold_cents"

    # Numbering
    po_number_prefix: str = "PO"

    # Actor recorded on auto-approved POs
    auto_approval_actor: str = "system:auto-approval"

    # Listing
    default_list_limit: int = 100

    def __post_init__(self):
        if (
            isinstance(self.default_approval_threshold_cents, bool)
            or not isinstance(self.default_approval_threshold_cents, int)
            or self.default_approval_threshold_cents < 0
        ):
            raise ValueError(
                "default_approval_threshold_cents must be a non-negative int, "
                f"got {self.default_approval_threshold_cents!r}"
            )
        if not self.po_number_prefix:
            raise ValueError("po_number_prefix must not be empty")
        logger.info(
            "purchasing_config_initialized",
            extra={
                "default_approval_threshold_cents": self.default_approval_threshold_cents,
                "po_number_prefix": self.po_number_prefix,
                "auto_approval_actor": self.auto_approval_actor,
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with the standard defaults."""
        logger.info("purchasing_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary (e.g., loaded from file)."""
        logger.info(
            "purchasing_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)
