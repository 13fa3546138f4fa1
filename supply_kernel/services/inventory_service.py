"""
InventoryService -- locations and atomic on-hand increments.

Responsibility:
    Creates inventory locations and applies receiving increments to
    per-(location, SKU) levels.

Architecture position:
    Kernel > Services.  Flush-only.  Called by ReceivingService.

Invariants enforced:
    - Lost-update freedom: ``increment_on_hand`` never reads-modifies-writes
      in Python.  It issues ``UPDATE ... SET on_hand = on_hand + :n``; the
      first receipt for a pair INSERTs inside a savepoint, and a concurrent
      first insert (unique violation on (location_id, sku)) falls back to
      the UPDATE.
"""

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from supply_kernel.domain.dtos import InventoryLocation
from supply_kernel.exceptions import LocationNotFoundError, ValidationError
from supply_kernel.logging_config import get_logger
from supply_kernel.models.inventory import InventoryLevelModel, InventoryLocationModel
from supply_kernel.services.base import BaseService

logger = get_logger("services.inventory")


class InventoryService(BaseService[InventoryLevelModel]):

    def create_location(
        self,
        name: str,
        code: str | None = None,
        actor: str | None = None,
    ) -> InventoryLocation:
        if not name or not name.strip():
            raise ValidationError("name", "location name is required")
        location = InventoryLocationModel(
            name=name.strip(),
            code=code,
            created_by=actor,
            updated_by=actor,
        )
        self.session.add(location)
        self.session.flush()
        logger.info(
            "inventory_location_created",
            extra={"location_id": str(location.id), "location_name": location.name},
        )
        return InventoryLocation.from_model(location)

    def _add_to_existing(self, location_id: UUID, sku: str, quantity: int) -> bool:
        result = self.session.execute(
            update(InventoryLevelModel)
            .where(
                InventoryLevelModel.location_id == location_id,
                InventoryLevelModel.sku == sku,
            )
            .values(on_hand=InventoryLevelModel.on_hand + quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    def increment_on_hand(self, location_id: UUID, sku: str, quantity: int) -> int:
        """
        Atomically add ``quantity`` to the level for (location, SKU).

        Creates the level row on first receipt.

        Returns:
            The on-hand quantity after the increment, as seen by this
            transaction.

        Raises:
            ValidationError: quantity is not a positive integer.
            LocationNotFoundError: location does not exist.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("quantity", "on-hand increment must be a positive integer")

        if self.session.get(InventoryLocationModel, location_id) is None:
            raise LocationNotFoundError(str(location_id))

        created = False
        if not self._add_to_existing(location_id, sku, quantity):
            savepoint = self.session.begin_nested()
            try:
                self.session.add(
                    InventoryLevelModel(location_id=location_id, sku=sku, on_hand=quantity)
                )
                self.session.flush()
                savepoint.commit()
                created = True
            except IntegrityError:
                savepoint.rollback()
                logger.debug(
                    "inventory_level_insert_race_retry",
                    extra={"location_id": str(location_id), "sku": sku},
                )
                if not self._add_to_existing(location_id, sku, quantity):
                    raise

        on_hand = self.session.execute(
            select(InventoryLevelModel.on_hand).where(
                InventoryLevelModel.location_id == location_id,
                InventoryLevelModel.sku == sku,
            )
        ).scalar_one()

        logger.info(
            "inventory_incremented",
            extra={
                "location_id": str(location_id),
                "sku": sku,
                "quantity": quantity,
                "on_hand": on_hand,
                "level_created": created,
            },
        )
        return on_hand
