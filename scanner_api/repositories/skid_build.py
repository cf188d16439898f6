from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select, update

from scanner_api.db.models.orders import PlannedItem
from scanner_api.db.models.skid_build import SkidBuildException, SkidBuildSession, SkidScan
from .base import BaseRepository


class SkidBuildSessionRepository(BaseRepository):
    """Repository for skid build sessions."""

    async def get(self, session_id: UUID) -> Optional[SkidBuildSession]:
        stmt = select(SkidBuildSession).where(SkidBuildSession.id == session_id)
        return await self.scalar_one_or_none(stmt)


class SkidScanRepository(BaseRepository):
    """Repository for skid scans; most queries resolve the order through planned_items."""

    def _order_items(self, order_id: UUID):
        return select(PlannedItem.id).where(PlannedItem.order_id == order_id)

    async def list_for_order(self, order_id: UUID) -> List[SkidScan]:
        stmt = (
            select(SkidScan)
            .where(SkidScan.planned_item_id.in_(self._order_items(order_id)))
            .order_by(SkidScan.skid_number, SkidScan.box_number)
        )
        return await self.scalars_list(stmt)

    async def list_for_planned_items(self, item_ids: Iterable[UUID]) -> List[SkidScan]:
        ids = list(item_ids)
        if not ids:
            return []
        stmt = select(SkidScan).where(SkidScan.planned_item_id.in_(ids)).order_by(SkidScan.scanned_at)
        return await self.scalars_list(stmt)

    async def count_for_order(self, order_id: UUID) -> int:
        stmt = select(func.count(SkidScan.id)).where(
            SkidScan.planned_item_id.in_(self._order_items(order_id))
        )
        return await self.scalar_count(stmt)

    async def count_by_order(self, order_ids: Iterable[UUID]) -> Dict[UUID, int]:
        ids = list(order_ids)
        if not ids:
            return {}
        stmt = (
            select(PlannedItem.order_id, func.count(SkidScan.id))
            .join(PlannedItem, PlannedItem.id == SkidScan.planned_item_id)
            .where(PlannedItem.order_id.in_(ids))
            .group_by(PlannedItem.order_id)
        )
        result = await self.execute(stmt)
        return {row[0]: int(row[1]) for row in result.all()}

    async def box_already_scanned(self, planned_item_id: UUID, box_number: int) -> bool:
        stmt = select(func.count(SkidScan.id)).where(
            SkidScan.planned_item_id == planned_item_id,
            SkidScan.box_number == box_number,
        )
        return await self.scalar_count(stmt) > 0

    async def serial_scanned_since(self, serial: str, since: datetime) -> bool:
        stmt = select(func.count(SkidScan.id)).where(
            SkidScan.internal_kanban_serial == serial,
            SkidScan.scanned_at >= since,
        )
        return await self.scalar_count(stmt) > 0

    async def assign_order_to_shipment_session(self, order_id: UUID, session_id: UUID) -> None:
        stmt = (
            update(SkidScan)
            .where(SkidScan.planned_item_id.in_(self._order_items(order_id)))
            .values(shipment_load_session_id=session_id)
            .execution_options(synchronize_session=False)
        )
        await self.execute(stmt)

    async def delete_for_order(self, order_id: UUID) -> None:
        stmt = (
            delete(SkidScan)
            .where(SkidScan.planned_item_id.in_(self._order_items(order_id)))
            .execution_options(synchronize_session=False)
        )
        await self.execute(stmt)


class SkidBuildExceptionRepository(BaseRepository):
    """Repository for order-level skid build exceptions."""

    async def get(self, exception_id: UUID) -> Optional[SkidBuildException]:
        stmt = select(SkidBuildException).where(SkidBuildException.id == exception_id)
        return await self.scalar_one_or_none(stmt)

    async def list_for_session(self, session_id: UUID) -> List[SkidBuildException]:
        stmt = (
            select(SkidBuildException)
            .where(SkidBuildException.session_id == session_id)
            .order_by(SkidBuildException.created_at)
        )
        return await self.scalars_list(stmt)

    async def codes_by_order(self, order_ids: Iterable[UUID]) -> Dict[UUID, List[str]]:
        ids = list(order_ids)
        if not ids:
            return {}
        stmt = select(SkidBuildException.order_id, SkidBuildException.exception_code).where(
            SkidBuildException.order_id.in_(ids)
        )
        result = await self.execute(stmt)
        codes: Dict[UUID, List[str]] = {}
        for order_id, code in result.all():
            codes.setdefault(order_id, []).append(code)
        return codes

    async def delete_for_order(self, order_id: UUID) -> None:
        stmt = (
            delete(SkidBuildException)
            .where(SkidBuildException.order_id == order_id)
            .execution_options(synchronize_session=False)
        )
        await self.execute(stmt)
