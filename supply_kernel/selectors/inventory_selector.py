"""
Module: supply_kernel.selectors.inventory_selector
Responsibility: Read access to inventory locations and on-hand levels.
Architecture position: Kernel > Selectors.  Read-only.
"""

from uuid import UUID

from sqlalchemy import select

from supply_kernel.domain.dtos import InventoryLevel, InventoryLocation
from supply_kernel.exceptions import LocationNotFoundError
from supply_kernel.models.inventory import InventoryLevelModel, InventoryLocationModel
from supply_kernel.selectors.base import BaseSelector


class InventorySelector(BaseSelector[InventoryLevelModel]):

    def get_location(self, location_id: UUID) -> InventoryLocation:
        model = self.session.get(InventoryLocationModel, location_id)
        if model is None:
            raise LocationNotFoundError(str(location_id))
        return InventoryLocation.from_model(model)

    def existing_location_ids(self, location_ids: set[UUID]) -> set[UUID]:
        if not location_ids:
            return set()
        return set(
            self.session.scalars(
                select(InventoryLocationModel.id).where(
                    InventoryLocationModel.id.in_(location_ids)
                )
            )
        )

    def get_level(self, location_id: UUID, sku: str) -> InventoryLevel | None:
        model = self.session.execute(
            select(InventoryLevelModel)
            .where(
                InventoryLevelModel.location_id == location_id,
                InventoryLevelModel.sku == sku,
            )
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return InventoryLevel.from_model(model) if model is not None else None

    def on_hand(self, location_id: UUID, sku: str) -> int:
        level = self.get_level(location_id, sku)
        return level.on_hand if level is not None else 0

    def levels_for_sku(self, sku: str) -> list[InventoryLevel]:
        models = self.session.scalars(
            select(InventoryLevelModel)
            .where(InventoryLevelModel.sku == sku)
            .order_by(InventoryLevelModel.location_id)
            .execution_options(populate_existing=True)
        )
        return [InventoryLevel.from_model(m) for m in models]
