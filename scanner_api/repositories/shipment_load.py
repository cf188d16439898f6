from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, or_, select

from scanner_api.db.models.shipment_load import ShipmentLoadException, ShipmentLoadSession
from .base import BaseRepository

PRE_SHIPMENT = "PreShipment"


class ShipmentLoadSessionRepository(BaseRepository):
    """Repository for shipment load and pre-shipment sessions."""

    async def get(self, session_id: UUID) -> Optional[ShipmentLoadSession]:
        stmt = select(ShipmentLoadSession).where(ShipmentLoadSession.id == session_id)
        return await self.scalar_one_or_none(stmt)

    async def get_active_by_route(self, route_number: str) -> Optional[ShipmentLoadSession]:
        stmt = (
            select(ShipmentLoadSession)
            .where(
                ShipmentLoadSession.route_number == route_number,
                ShipmentLoadSession.status == "active",
            )
            .order_by(ShipmentLoadSession.created_at.desc())
            .limit(1)
        )
        return await self.scalar_one_or_none(stmt)

    async def get_open_pre_shipment_by_route(self, route_number: str) -> Optional[ShipmentLoadSession]:
        stmt = (
            select(ShipmentLoadSession)
            .where(
                ShipmentLoadSession.route_number == route_number,
                ShipmentLoadSession.created_via == PRE_SHIPMENT,
                ShipmentLoadSession.status.in_(("active", "error")),
            )
            .order_by(ShipmentLoadSession.created_at.desc())
            .limit(1)
        )
        return await self.scalar_one_or_none(stmt)

    async def list_pre_shipment(self) -> List[ShipmentLoadSession]:
        stmt = (
            select(ShipmentLoadSession)
            .where(ShipmentLoadSession.created_via == PRE_SHIPMENT)
            .order_by(ShipmentLoadSession.created_at.desc())
        )
        return await self.scalars_list(stmt)

    async def list_since(self, cutoff: datetime) -> List[ShipmentLoadSession]:
        stmt = select(ShipmentLoadSession).where(
            or_(
                ShipmentLoadSession.pickup_date_time >= cutoff,
                ShipmentLoadSession.created_at >= cutoff,
            )
        )
        return await self.scalars_list(stmt)

    async def list_for_export(self) -> List[ShipmentLoadSession]:
        stmt = select(ShipmentLoadSession).order_by(
            func.coalesce(ShipmentLoadSession.pickup_date_time, ShipmentLoadSession.created_at).desc()
        )
        return await self.scalars_list(stmt)


class ShipmentLoadExceptionRepository(BaseRepository):
    """Repository for shipment load exceptions."""

    async def get(self, exception_id: UUID) -> Optional[ShipmentLoadException]:
        stmt = select(ShipmentLoadException).where(ShipmentLoadException.id == exception_id)
        return await self.scalar_one_or_none(stmt)

    async def list_for_session(self, session_id: UUID) -> List[ShipmentLoadException]:
        stmt = (
            select(ShipmentLoadException)
            .where(ShipmentLoadException.session_id == session_id)
            .order_by(ShipmentLoadException.created_at)
        )
        return await self.scalars_list(stmt)
