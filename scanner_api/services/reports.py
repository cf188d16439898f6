from __future__ import annotations

import logging
from datetime import date
from typing import Optional

import pandas as pd
from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.repositories.orders import OrderRepository, OrderUploadRepository, PlannedItemRepository
from scanner_api.repositories.skid_build import SkidScanRepository
from scanner_api.services.base import BaseService

logger = logging.getLogger(__name__)

ORDER_COLUMNS = [
    "order_number",
    "dock_code",
    "supplier_code",
    "plant_code",
    "planned_route",
    "planned_pickup",
    "status",
    "planned_items",
    "skid_scans",
    "skid_build_confirmation",
    "skid_build_status",
    "shipment_confirmation",
    "shipment_status",
    "trailer",
    "actual_pickup_date",
]

UPLOAD_COLUMNS = [
    "file_name",
    "upload_date",
    "status",
    "orders_created",
    "total_items_created",
    "total_manifests_created",
    "supplier_code",
    "plant_code",
    "error_message",
]


def _naive(value):
    # Excel cannot store timezone-aware datetimes.
    if value is not None and getattr(value, "tzinfo", None) is not None:
        return value.replace(tzinfo=None)
    return value


class ReportService(BaseService):
    """Tabular exports of order progress and upload history."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.order_repo = OrderRepository(session)
        self.item_repo = PlannedItemRepository(session)
        self.scan_repo = SkidScanRepository(session)
        self.upload_repo = OrderUploadRepository(session)

    # PUBLIC_INTERFACE
    async def order_status_frame(
        self,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        status: Optional[str] = None,
    ) -> pd.DataFrame:
        """One row per order with its skid build and shipment progress."""
        orders = await self.order_repo.list_orders(from_date=from_date, to_date=to_date)
        if status:
            orders = [o for o in orders if o.status_label.lower() == status.lower()]
        ids = [o.id for o in orders]
        items = await self.item_repo.count_by_order(ids)
        scans = await self.scan_repo.count_by_order(ids)

        data = [
            {
                "order_number": o.real_order_number,
                "dock_code": o.dock_code,
                "supplier_code": o.supplier_code,
                "plant_code": o.plant_code,
                "planned_route": o.planned_route,
                "planned_pickup": _naive(o.planned_pickup),
                "status": o.status_label,
                "planned_items": items.get(o.id, 0),
                "skid_scans": scans.get(o.id, 0),
                "skid_build_confirmation": o.toyota_skid_build_confirmation_number,
                "skid_build_status": o.toyota_skid_build_status,
                "shipment_confirmation": o.toyota_shipment_confirmation_number,
                "shipment_status": o.toyota_shipment_status,
                "trailer": o.trailer,
                "actual_pickup_date": _naive(o.actual_pickup_date),
            }
            for o in orders
        ]
        logger.info("Order status report built with %d rows", len(data))
        return pd.DataFrame(data, columns=ORDER_COLUMNS)

    # PUBLIC_INTERFACE
    async def upload_history_frame(
        self, from_date: Optional[date] = None, to_date: Optional[date] = None
    ) -> pd.DataFrame:
        uploads = await self.upload_repo.list_uploads(from_date=from_date, to_date=to_date)
        data = [
            {
                "file_name": u.file_name,
                "upload_date": _naive(u.upload_date),
                "status": u.status,
                "orders_created": u.orders_created,
                "total_items_created": u.total_items_created,
                "total_manifests_created": u.total_manifests_created,
                "supplier_code": u.supplier_code,
                "plant_code": u.plant_code,
                "error_message": u.error_message,
            }
            for u in uploads
        ]
        return pd.DataFrame(data, columns=UPLOAD_COLUMNS)
