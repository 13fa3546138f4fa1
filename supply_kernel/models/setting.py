"""
Module: supply_kernel.models.setting
Responsibility: Operator-editable key/value settings grouped by category
    (e.g. ``finance/po_approval_threshold_cents``).
Architecture position: Kernel > Models.  May import from db/base.py only.

Values are stored as text and parsed by SettingsService on every read, so
a change takes effect for the next operation and never for one already
decided.
"""

from sqlalchemy import String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from supply_kernel.db.base import TrackedBase


class SettingModel(TrackedBase):
    __tablename__ = "settings"

    __table_args__ = (
        UniqueConstraint("category", "key", name="uq_setting_category_key"),
    )

    category: Mapped[str] = mapped_column(String(100), nullable=False)
    key: Mapped[str] = mapped_column(String(100), nullable=False)
    value: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
