"""
SettingsService -- operator-editable key/value settings.

Responsibility:
    Reads and writes ``settings`` rows keyed by (category, key).  Values are
    parsed on every read; nothing is cached, so a changed threshold applies
    to the next submission and never to one already decided.

Architecture position:
    Kernel > Services.  Flush-only.

Failure modes:
    - InvalidSettingError when a stored value cannot be parsed as required.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from supply_kernel.exceptions import InvalidSettingError, ValidationError
from supply_kernel.logging_config import get_logger
from supply_kernel.models.setting import SettingModel
from supply_kernel.services.base import BaseService

logger = get_logger("services.settings")


class SettingsService(BaseService[SettingModel]):

    def _find(self, category: str, key: str) -> SettingModel | None:
        return self.session.execute(
            select(SettingModel)
            .where(SettingModel.category == category, SettingModel.key == key)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def get_value(self, category: str, key: str) -> str | None:
        """Raw stored value, or None when the setting is absent."""
        row = self._find(category, key)
        return row.value if row is not None else None

    def get_int(
        self,
        category: str,
        key: str,
        default: int,
        *,
        minimum: int | None = 0,
    ) -> int:
        """
        Parse a setting as an integer.

        Returns ``default`` when the row is absent or its value is empty.

        Raises:
            InvalidSettingError: value is not an integer, or is below
                ``minimum``.
        """
        raw = self.get_value(category, key)
        if raw is None or raw.strip() == "":
            return default
        try:
            value = int(raw.strip())
        except ValueError as exc:
            raise InvalidSettingError(category, key, raw, "not an integer") from exc
        if minimum is not None and value < minimum:
            raise InvalidSettingError(category, key, raw, f"must be >= {minimum}")
        return value

    def upsert(
        self,
        category: str,
        key: str,
        value: str | int,
        updated_by: str | None = None,
        description: str | None = None,
    ) -> SettingModel:
        """Create or replace a setting value."""
        if not category or not key:
            raise ValidationError("setting", "category and key are required")

        text_value = str(value)
        row = self._find(category, key)
        if row is None:
            savepoint = self.session.begin_nested()
            try:
                row = SettingModel(
                    category=category,
                    key=key,
                    value=text_value,
                    description=description,
                    created_by=updated_by,
                    updated_by=updated_by,
                )
                self.session.add(row)
                self.session.flush()
                savepoint.commit()
            except IntegrityError:
                savepoint.rollback()
                row = self._find(category, key)
                if row is None:
                    raise
                row.value = text_value
                row.updated_by = updated_by
        else:
            row.value = text_value
            row.updated_by = updated_by
            if description is not None:
                row.description = description

        self.session.flush()
        logger.info(
            "setting_upserted",
            extra={"category": category, "key": key, "updated_by": updated_by},
        )
        return row
