from __future__ import annotations

from typing import Any, List, Optional, Type
from uuid import UUID

from sqlalchemy import select

from scanner_api.db.models.master_data import Office, Warehouse
from .base import BaseRepository


class _CodedEntityRepository(BaseRepository):
    """Shared queries for master data rows identified by a unique code."""

    model: Type[Any]

    async def list_all(self) -> List[Any]:
        stmt = select(self.model).order_by(self.model.code)
        return await self.scalars_list(stmt)

    async def get(self, entity_id: UUID) -> Optional[Any]:
        stmt = select(self.model).where(self.model.id == entity_id)
        return await self.scalar_one_or_none(stmt)

    async def get_by_code(self, code: str) -> Optional[Any]:
        stmt = select(self.model).where(self.model.code == code)
        return await self.scalar_one_or_none(stmt)


class WarehouseRepository(_CodedEntityRepository):
    """Repository for warehouses."""

    model = Warehouse


class OfficeRepository(_CodedEntityRepository):
    """Repository for offices."""

    model = Office
