from __future__ import annotations

from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, or_, select

from scanner_api.db.models.orders import Order, OrderUpload, PlannedItem
from .base import BaseRepository


class OrderRepository(BaseRepository):
    """Repository for Toyota orders."""

    async def get(self, order_id: UUID) -> Optional[Order]:
        stmt = select(Order).where(Order.id == order_id)
        return await self.scalar_one_or_none(stmt)

    async def get_by_number_and_dock(self, order_number: str, dock_code: str) -> Optional[Order]:
        stmt = select(Order).where(
            Order.real_order_number == order_number,
            Order.dock_code == dock_code,
        )
        return await self.scalar_one_or_none(stmt)

    async def list_orders(
        self,
        *,
        upload_id: Optional[UUID] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> List[Order]:
        stmt = select(Order)
        if upload_id:
            stmt = stmt.where(Order.upload_id == upload_id)
        if from_date:
            stmt = stmt.where(Order.transmit_date >= from_date)
        if to_date:
            stmt = stmt.where(Order.transmit_date <= to_date)
        stmt = stmt.order_by(Order.planned_pickup.asc().nulls_last(), Order.real_order_number)
        return await self.scalars_list(stmt)

    async def list_by_route(self, route_number: str) -> List[Order]:
        stmt = (
            select(Order)
            .where(Order.planned_route == route_number)
            .order_by(Order.real_order_number)
        )
        return await self.scalars_list(stmt)

    async def list_for_shipment_session(self, session_id: UUID) -> List[Order]:
        stmt = (
            select(Order)
            .where(Order.shipment_load_session_id == session_id)
            .order_by(Order.real_order_number)
        )
        return await self.scalars_list(stmt)

    async def list_for_shipment_sessions(self, session_ids: Sequence[UUID]) -> List[Order]:
        if not session_ids:
            return []
        stmt = select(Order).where(Order.shipment_load_session_id.in_(list(session_ids)))
        return await self.scalars_list(stmt)

    async def list_since(self, cutoff: datetime) -> List[Order]:
        """Orders whose planned pickup, or creation time when no pickup, falls after cutoff."""
        stmt = (
            select(Order)
            .where(or_(Order.planned_pickup >= cutoff, Order.created_at >= cutoff))
            .order_by(func.coalesce(Order.planned_pickup, Order.created_at))
        )
        return await self.scalars_list(stmt)


class PlannedItemRepository(BaseRepository):
    """Repository for planned kanban items."""

    async def get(self, item_id: UUID) -> Optional[PlannedItem]:
        stmt = select(PlannedItem).where(PlannedItem.id == item_id)
        return await self.scalar_one_or_none(stmt)

    async def list_for_order(self, order_id: UUID) -> List[PlannedItem]:
        stmt = (
            select(PlannedItem)
            .where(PlannedItem.order_id == order_id)
            .order_by(PlannedItem.manifest_no, PlannedItem.part_number)
        )
        return await self.scalars_list(stmt)

    async def list_for_orders(self, order_ids: Iterable[UUID]) -> List[PlannedItem]:
        ids = list(order_ids)
        if not ids:
            return []
        stmt = select(PlannedItem).where(PlannedItem.order_id.in_(ids))
        return await self.scalars_list(stmt)

    async def count_by_order(self, order_ids: Iterable[UUID]) -> Dict[UUID, int]:
        ids = list(order_ids)
        if not ids:
            return {}
        stmt = (
            select(PlannedItem.order_id, func.count(PlannedItem.id))
            .where(PlannedItem.order_id.in_(ids))
            .group_by(PlannedItem.order_id)
        )
        result = await self.execute(stmt)
        return {row[0]: int(row[1]) for row in result.all()}


class OrderUploadRepository(BaseRepository):
    """Repository for uploaded order workbooks."""

    async def get(self, upload_id: UUID) -> Optional[OrderUpload]:
        stmt = select(OrderUpload).where(OrderUpload.id == upload_id)
        return await self.scalar_one_or_none(stmt)

    async def list_uploads(
        self, *, from_date: Optional[date] = None, to_date: Optional[date] = None
    ) -> List[OrderUpload]:
        stmt = select(OrderUpload)
        if from_date:
            stmt = stmt.where(func.date(OrderUpload.upload_date) >= from_date)
        if to_date:
            stmt = stmt.where(func.date(OrderUpload.upload_date) <= to_date)
        stmt = stmt.order_by(OrderUpload.upload_date.desc())
        return await self.scalars_list(stmt)
