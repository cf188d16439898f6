from __future__ import annotations

from typing import Iterable, List, Optional, Set
from uuid import UUID

from sqlalchemy import select

from scanner_api.db.models.settings import (
    DockMonitorSetting,
    InternalKanbanExclusion,
    InternalKanbanSetting,
    SiteSettings,
)
from .base import BaseRepository


class SettingsRepository(BaseRepository):
    """Repository for the single-row settings tables."""

    async def get_site_settings(self) -> Optional[SiteSettings]:
        stmt = select(SiteSettings).order_by(SiteSettings.created_at).limit(1)
        return await self.scalar_one_or_none(stmt)

    async def get_dock_monitor_settings(self) -> Optional[DockMonitorSetting]:
        stmt = select(DockMonitorSetting).order_by(DockMonitorSetting.created_at).limit(1)
        return await self.scalar_one_or_none(stmt)

    async def get_internal_kanban_settings(self) -> Optional[InternalKanbanSetting]:
        stmt = select(InternalKanbanSetting).order_by(InternalKanbanSetting.created_at).limit(1)
        return await self.scalar_one_or_none(stmt)


class KanbanExclusionRepository(BaseRepository):
    """Repository for internal kanban exclusions."""

    async def list_all(self) -> List[InternalKanbanExclusion]:
        stmt = select(InternalKanbanExclusion).order_by(InternalKanbanExclusion.part_number)
        return await self.scalars_list(stmt)

    async def get(self, exclusion_id: UUID) -> Optional[InternalKanbanExclusion]:
        stmt = select(InternalKanbanExclusion).where(InternalKanbanExclusion.id == exclusion_id)
        return await self.scalar_one_or_none(stmt)

    async def get_by_part_number(self, part_number: str) -> Optional[InternalKanbanExclusion]:
        stmt = select(InternalKanbanExclusion).where(InternalKanbanExclusion.part_number == part_number)
        return await self.scalar_one_or_none(stmt)

    async def existing_part_numbers(self, part_numbers: Iterable[str]) -> Set[str]:
        parts = list(part_numbers)
        if not parts:
            return set()
        stmt = select(InternalKanbanExclusion.part_number).where(
            InternalKanbanExclusion.part_number.in_(parts)
        )
        result = await self.scalars(stmt)
        return set(result)
