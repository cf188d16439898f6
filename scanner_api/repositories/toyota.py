from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select

from scanner_api.db.models.toyota import ToyotaApiConfig
from .base import BaseRepository


class ToyotaConfigRepository(BaseRepository):
    """Repository for Toyota API configurations."""

    async def list_all(self) -> List[ToyotaApiConfig]:
        stmt = select(ToyotaApiConfig).order_by(ToyotaApiConfig.environment, ToyotaApiConfig.application_name)
        return await self.scalars_list(stmt)

    async def get(self, config_id: UUID) -> Optional[ToyotaApiConfig]:
        stmt = select(ToyotaApiConfig).where(ToyotaApiConfig.id == config_id)
        return await self.scalar_one_or_none(stmt)

    async def get_active_by_environment(self, environment: str) -> Optional[ToyotaApiConfig]:
        stmt = (
            select(ToyotaApiConfig)
            .where(
                ToyotaApiConfig.environment == environment.upper(),
                ToyotaApiConfig.is_active.is_(True),
            )
            .order_by(ToyotaApiConfig.updated_at.desc())
            .limit(1)
        )
        return await self.scalar_one_or_none(stmt)
