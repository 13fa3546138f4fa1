"""InventoryService: locations and atomic on-hand increments."""

from uuid import uuid4

import pytest

from supply_kernel.exceptions import LocationNotFoundError, ValidationError
from supply_kernel.selectors.inventory_selector import InventorySelector
from supply_kernel.services.inventory_service import InventoryService


class TestIncrementOnHand:

    def test_first_receipt_creates_level(self, session, location):
        on_hand = InventoryService(session).increment_on_hand(location.id, "SKU-A", 5)
        assert on_hand == 5
        assert InventorySelector(session).on_hand(location.id, "SKU-A") == 5

    def test_increments_accumulate(self, session, location):
        inventory = InventoryService(session)
        inventory.increment_on_hand(location.id, "SKU-A", 5)
        session.commit()
        assert inventory.increment_on_hand(location.id, "SKU-A", 7) == 12

    def test_levels_are_per_location(self, session, location, second_location):
        inventory = InventoryService(session)
        inventory.increment_on_hand(location.id, "SKU-A", 5)
        inventory.increment_on_hand(second_location.id, "SKU-A", 2)

        levels = InventorySelector(session).levels_for_sku("SKU-A")
        assert sorted(level.on_hand for level in levels) == [2, 5]

    def test_unknown_location_raises(self, session):
        with pytest.raises(LocationNotFoundError):
            InventoryService(session).increment_on_hand(uuid4(), "SKU-A", 1)

    @pytest.mark.parametrize("quantity", [0, -3, 1.5, True])
    def test_non_positive_or_non_integer_rejected(self, session, location, quantity):
        with pytest.raises(ValidationError):
            InventoryService(session).increment_on_hand(location.id, "SKU-A", quantity)

    def test_unknown_pair_reads_as_zero(self, session, location):
        selector = InventorySelector(session)
        assert selector.get_level(location.id, "SKU-Z") is None
        assert selector.on_hand(location.id, "SKU-Z") == 0

    def test_increment_is_logged(self, session, location, captured_logs):
        inventory = InventoryService(session)
        inventory.increment_on_hand(location.id, "SKU-A", 5)
        inventory.increment_on_hand(location.id, "SKU-A", 2)

        records = [r for r in captured_logs() if r["message"] == "inventory_incremented"]
        assert [(r["on_hand"], r["level_created"]) for r in records] == [(5, True), (7, False)]


class TestLocations:

    def test_create_and_get(self, session):
        created = InventoryService(session).create_location("Dock 4", code="D4")
        assert InventorySelector(session).get_location(created.id).name == "Dock 4"

    def test_name_required(self, session):
        with pytest.raises(ValidationError):
            InventoryService(session).create_location("  ")

    def test_get_unknown_location(self, session):
        with pytest.raises(LocationNotFoundError):
            InventorySelector(session).get_location(uuid4())
