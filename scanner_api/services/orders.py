from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.db.models.orders import Order
from scanner_api.repositories.orders import (
    OrderRepository,
    OrderUploadRepository,
    PlannedItemRepository,
)
from scanner_api.repositories.skid_build import SkidScanRepository
from scanner_api.schemas.orders import (
    OrderSkid,
    OrderSkids,
    OrderSummary,
    OrderUploadRead,
    PlannedItemDetail,
)
from scanner_api.services.base import BaseService, NotFoundError

logger = logging.getLogger(__name__)


def _summary(order: Order, total_parts: int) -> OrderSummary:
    return OrderSummary(
        order_id=order.id,
        real_order_number=order.real_order_number,
        dock_code=order.dock_code,
        supplier_code=order.supplier_code,
        plant_code=order.plant_code,
        planned_route=order.planned_route,
        total_parts=total_parts,
        departure_date=order.planned_pickup,
        order_date=order.transmit_date,
        status=order.status_label,
        upload_id=order.upload_id,
    )


class OrderService(BaseService):
    """Read side of orders and upload history."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.order_repo = OrderRepository(session)
        self.item_repo = PlannedItemRepository(session)
        self.upload_repo = OrderUploadRepository(session)
        self.scan_repo = SkidScanRepository(session)

    # PUBLIC_INTERFACE
    async def list_orders(
        self,
        upload_id: Optional[UUID] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> List[OrderSummary]:
        orders = await self.order_repo.list_orders(upload_id=upload_id, from_date=from_date, to_date=to_date)
        counts = await self.item_repo.count_by_order([o.id for o in orders])
        return [_summary(o, counts.get(o.id, 0)) for o in orders]

    async def get_order_by_number(self, order_number: str, dock_code: str) -> Order:
        order = await self.order_repo.get_by_number_and_dock(order_number, dock_code)
        if not order:
            raise NotFoundError(
                "Order not found",
                [f"Order {order_number} with dock {dock_code} does not exist"],
            )
        return order

    # PUBLIC_INTERFACE
    async def list_uploads(
        self, from_date: Optional[date] = None, to_date: Optional[date] = None
    ) -> List[OrderUploadRead]:
        uploads = await self.upload_repo.list_uploads(from_date=from_date, to_date=to_date)
        return [OrderUploadRead.model_validate(u) for u in uploads]

    # PUBLIC_INTERFACE
    async def get_upload(self, upload_id: UUID) -> OrderUploadRead:
        upload = await self.upload_repo.get(upload_id)
        if not upload:
            raise NotFoundError("Upload not found", [f"Upload {upload_id} does not exist"])
        return OrderUploadRead.model_validate(upload)

    # PUBLIC_INTERFACE
    async def delete_upload(self, upload_id: UUID) -> None:
        """Delete an upload record and its stored workbook; created orders are kept."""
        upload = await self.upload_repo.get(upload_id)
        if not upload:
            raise NotFoundError("Upload not found", [f"Upload {upload_id} does not exist"])

        path = Path(upload.file_path)
        try:
            path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Could not delete upload file %s", path, exc_info=True)

        await self.upload_repo.delete(upload)
        await self.commit()
        logger.info("Upload %s (%s) deleted", upload_id, upload.file_name)

    # PUBLIC_INTERFACE
    async def list_planned_items(
        self, upload_id: Optional[UUID] = None, order_id: Optional[UUID] = None
    ) -> List[PlannedItemDetail]:
        """Planned items with scan progress, optionally limited to an upload or an order."""
        if order_id:
            order = await self.order_repo.get(order_id)
            orders = [order] if order else []
        else:
            orders = await self.order_repo.list_orders(upload_id=upload_id)
        by_id: Dict[UUID, Order] = {o.id: o for o in orders}

        items = await self.item_repo.list_for_orders(by_id.keys())
        scans = await self.scan_repo.list_for_planned_items(i.id for i in items)
        scanned: Dict[UUID, int] = {}
        kanbans: Dict[UUID, List[str]] = {}
        for scan in scans:
            scanned[scan.planned_item_id] = scanned.get(scan.planned_item_id, 0) + 1
            if scan.internal_kanban:
                seen = kanbans.setdefault(scan.planned_item_id, [])
                if scan.internal_kanban not in seen:
                    seen.append(scan.internal_kanban)

        result: List[PlannedItemDetail] = []
        for item in sorted(items, key=lambda i: (by_id[i.order_id].real_order_number, i.manifest_no, i.part_number)):
            order = by_id[item.order_id]
            total_scanned = scanned.get(item.id, 0)
            result.append(
                PlannedItemDetail(
                    planned_item_id=item.id,
                    order_id=order.id,
                    real_order_number=order.real_order_number,
                    dock_code=order.dock_code,
                    part_number=item.part_number,
                    kanban_number=item.kanban_number,
                    qpc=item.qpc,
                    total_box_planned=item.total_box_planned,
                    manifest_no=item.manifest_no,
                    palletization_code=item.palletization_code,
                    short_over=item.short_over,
                    pieces=item.pieces,
                    total_scanned=total_scanned,
                    remaining_boxes=max(item.total_box_planned - total_scanned, 0),
                    internal_kanban=", ".join(kanbans[item.id]) if item.id in kanbans else None,
                )
            )
        return result

    # PUBLIC_INTERFACE
    async def get_order_skids(self, order_number: str, dock_code: str) -> OrderSkids:
        """Distinct skids built for an order with the time each was first scanned."""
        order = await self.get_order_by_number(order_number, dock_code)
        scans = await self.scan_repo.list_for_order(order.id)

        skids: Dict[tuple, OrderSkid] = {}
        for scan in scans:
            key = (scan.skid_number, scan.skid_side or "")
            existing = skids.get(key)
            if existing is None:
                skids[key] = OrderSkid(
                    skid_id=f"{scan.skid_number}{scan.skid_side or ''}",
                    skid_number=scan.skid_number,
                    skid_side=scan.skid_side,
                    palletization_code=scan.palletization_code,
                    scanned_at=scan.scanned_at,
                )
            elif scan.scanned_at and (existing.scanned_at is None or scan.scanned_at < existing.scanned_at):
                existing.scanned_at = scan.scanned_at

        ordered = [skids[k] for k in sorted(skids)]
        return OrderSkids(
            order_id=order.id,
            order_number=order.real_order_number,
            dock_code=order.dock_code,
            skids=ordered,
            total_skids=len(ordered),
        )
