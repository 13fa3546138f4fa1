"""SettingsService: typed reads and upserts of (category, key) settings."""

import pytest

from supply_kernel.exceptions import InvalidSettingError, ValidationError
from supply_kernel.services.settings_service import SettingsService


class TestGetInt:

    def test_missing_row_returns_default(self, session):
        assert SettingsService(session).get_int("finance", "po_approval_threshold_cents", 500_000) == 500_000

    def test_stored_value_wins(self, session):
        settings = SettingsService(session)
        settings.upsert("finance", "po_approval_threshold_cents", 100_000, updated_by="admin")
        assert settings.get_int("finance", "po_approval_threshold_cents", 500_000) == 100_000

    def test_blank_value_returns_default(self, session):
        settings = SettingsService(session)
        settings.upsert("finance", "limit", "  ")
        assert settings.get_int("finance", "limit", 7) == 7

    def test_non_integer_raises(self, session):
        settings = SettingsService(session)
        settings.upsert("finance", "limit", "five thousand")
        with pytest.raises(InvalidSettingError) as exc_info:
            settings.get_int("finance", "limit", 0)
        assert exc_info.value.code == "INVALID_SETTING"
        assert isinstance(exc_info.value, ValidationError)

    def test_negative_raises(self, session):
        settings = SettingsService(session)
        settings.upsert("finance", "limit", -1)
        with pytest.raises(InvalidSettingError):
            settings.get_int("finance", "limit", 0)


class TestUpsert:

    def test_replaces_existing_value(self, session):
        settings = SettingsService(session)
        settings.upsert("finance", "limit", 1)
        settings.upsert("finance", "limit", 2, updated_by="admin")
        assert settings.get_value("finance", "limit") == "2"

    def test_requires_category_and_key(self, session):
        with pytest.raises(ValidationError):
            SettingsService(session).upsert("", "limit", 1)
