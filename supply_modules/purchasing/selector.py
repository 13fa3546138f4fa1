"""
PurchaseOrderSelector -- read side of the purchasing module.

Returns frozen DTOs (``supply_modules.purchasing.models``), never ORM rows.
Every query reads through ``populate_existing`` so rows changed by the
state machine's Core UPDATEs are never served stale from the identity map.
"""

from uuid import UUID

from sqlalchemy import select

from supply_engines.replay import replay_status
from supply_kernel.exceptions import PurchaseOrderNotFoundError
from supply_kernel.selectors.base import BaseSelector
from supply_kernel.selectors.supplier_selector import SupplierSelector
from supply_modules.purchasing.models import (
    POEvent,
    POStatus,
    PurchaseOrder,
    PurchaseOrderDetail,
    Receipt,
    Shipment,
)
from supply_modules.purchasing.orm import (
    POEventModel,
    PurchaseOrderModel,
    ReceiptModel,
    ShipmentModel,
)


class PurchaseOrderSelector(BaseSelector[PurchaseOrderModel]):

    def _model(self, po_id: UUID) -> PurchaseOrderModel:
        po = self.session.execute(
            select(PurchaseOrderModel)
            .where(PurchaseOrderModel.id == po_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if po is None:
            raise PurchaseOrderNotFoundError(str(po_id))
        return po

    def get(self, po_id: UUID) -> PurchaseOrder:
        return self._model(po_id).to_dto()

    def get_detail(self, po_id: UUID) -> PurchaseOrderDetail:
        """PO with supplier, line items, events, shipments and receipts."""
        po = self.get(po_id)
        return PurchaseOrderDetail(
            purchase_order=po,
            supplier=SupplierSelector(self.session).get(po.supplier_id),
            events=tuple(self.list_events(po_id)),
            shipments=tuple(self.list_shipments(po_id)),
            receipts=tuple(self.list_receipts(po_id)),
        )

    def list_purchase_orders(
        self,
        status: POStatus | str | None = None,
        supplier_id: UUID | None = None,
        limit: int = 100,
    ) -> list[PurchaseOrder]:
        """Newest first."""
        stmt = select(PurchaseOrderModel)
        if status is not None:
            stmt = stmt.where(PurchaseOrderModel.status == POStatus(status).value)
        if supplier_id is not None:
            stmt = stmt.where(PurchaseOrderModel.supplier_id == supplier_id)
        stmt = (
            stmt.order_by(
                PurchaseOrderModel.created_at.desc(),
                PurchaseOrderModel.po_number.desc(),
            )
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return [po.to_dto() for po in self.session.scalars(stmt)]

    def list_events(self, po_id: UUID) -> list[POEvent]:
        """The PO's event log in version order."""
        events = self.session.scalars(
            select(POEventModel)
            .where(POEventModel.purchase_order_id == po_id)
            .order_by(POEventModel.po_version)
        )
        return [e.to_dto() for e in events]

    def list_shipments(self, po_id: UUID) -> list[Shipment]:
        shipments = self.session.scalars(
            select(ShipmentModel)
            .where(ShipmentModel.purchase_order_id == po_id)
            .order_by(ShipmentModel.created_at, ShipmentModel.id)
            .execution_options(populate_existing=True)
        )
        return [s.to_dto() for s in shipments]

    def list_receipts(self, po_id: UUID) -> list[Receipt]:
        receipts = self.session.scalars(
            select(ReceiptModel)
            .where(ReceiptModel.purchase_order_id == po_id)
            .order_by(ReceiptModel.po_version)
        )
        return [r.to_dto() for r in receipts]

    def replayed_status(self, po_id: UUID) -> POStatus | None:
        """Rebuild the PO's status from its event log alone.

        Raises:
            EventChainBrokenError: the log does not chain.
        """
        status = replay_status(str(po_id), self.list_events(po_id))
        return POStatus(status) if status is not None else None
