from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.db.models.settings import DockMonitorSetting, InternalKanbanSetting, SiteSettings
from scanner_api.repositories.settings import SettingsRepository
from scanner_api.schemas.common import ApiResponse
from scanner_api.schemas.settings import (
    DockMonitorSettingsRead,
    DockMonitorSettingsUpdate,
    InternalKanbanSettingsRead,
    InternalKanbanSettingsUpdate,
    SiteSettingsRead,
    SiteSettingsUpdate,
)
from scanner_api.services.base import BaseService, ServiceError

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def dock_monitor_settings_read(setting: Optional[DockMonitorSetting]) -> DockMonitorSettingsRead:
    """Stored dock monitor settings, or the defaults when none were saved."""
    if setting is None:
        return DockMonitorSettingsRead()
    return DockMonitorSettingsRead(
        setting_id=setting.id,
        behind_threshold=setting.behind_threshold,
        critical_threshold=setting.critical_threshold,
        display_mode=setting.display_mode,
        selected_locations=list(setting.selected_locations or []),
        refresh_interval=setting.refresh_interval,
    )


def _kanban_settings_read(setting: Optional[InternalKanbanSetting]) -> InternalKanbanSettingsRead:
    if setting is None:
        return InternalKanbanSettingsRead()
    return InternalKanbanSettingsRead(
        setting_id=setting.id,
        allow_duplicates=setting.allow_duplicates,
        duplicate_window_hours=setting.duplicate_window_hours,
        alert_on_duplicate=setting.alert_on_duplicate,
    )


def _check_thresholds(behind: int, critical: int) -> None:
    if critical <= behind:
        raise ServiceError("Invalid thresholds", ["Critical threshold must be greater than behind threshold"])


class SettingsService(BaseService):
    """Internal kanban, dock monitor and site settings."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = SettingsRepository(session)

    # PUBLIC_INTERFACE
    async def get_internal_kanban(self) -> ApiResponse[InternalKanbanSettingsRead]:
        setting = await self.repo.get_internal_kanban_settings()
        if setting is None:
            return ApiResponse.ok(_kanban_settings_read(None), "Default internal kanban settings retrieved")
        return ApiResponse.ok(_kanban_settings_read(setting), "Internal kanban settings retrieved successfully")

    # PUBLIC_INTERFACE
    async def save_internal_kanban(
        self, payload: InternalKanbanSettingsUpdate, user: Optional[str] = None
    ) -> ApiResponse[InternalKanbanSettingsRead]:
        setting = await self.repo.get_internal_kanban_settings()
        if setting is None:
            setting = InternalKanbanSetting(created_by=user)
            await self.repo.add(setting)
        setting.allow_duplicates = payload.allow_duplicates
        setting.duplicate_window_hours = payload.duplicate_window_hours
        setting.alert_on_duplicate = payload.alert_on_duplicate
        setting.updated_by = user

        # The scan path reads the duplicate rules from site settings; keep them in step.
        site = await self._site_settings()
        site.kanban_allow_duplicates = payload.allow_duplicates
        site.kanban_duplicate_window_hours = payload.duplicate_window_hours
        site.kanban_alert_on_duplicate = payload.alert_on_duplicate
        site.updated_by = user

        await self.repo.flush()
        await self.commit()
        logger.info(
            "Internal kanban settings saved: allow_duplicates=%s window=%sh",
            payload.allow_duplicates,
            payload.duplicate_window_hours,
        )
        return ApiResponse.ok(_kanban_settings_read(setting), "Internal kanban settings saved successfully")

    # PUBLIC_INTERFACE
    async def get_dock_monitor(self) -> ApiResponse[DockMonitorSettingsRead]:
        setting = await self.repo.get_dock_monitor_settings()
        if setting is None:
            return ApiResponse.ok(dock_monitor_settings_read(None), "Default dock monitor settings retrieved")
        return ApiResponse.ok(dock_monitor_settings_read(setting), "Dock monitor settings retrieved successfully")

    # PUBLIC_INTERFACE
    async def save_dock_monitor(
        self, payload: DockMonitorSettingsUpdate, user: Optional[str] = None
    ) -> ApiResponse[DockMonitorSettingsRead]:
        _check_thresholds(payload.behind_threshold, payload.critical_threshold)
        setting = await self.repo.get_dock_monitor_settings()
        if setting is None:
            setting = DockMonitorSetting(created_by=user)
            await self.repo.add(setting)
        setting.behind_threshold = payload.behind_threshold
        setting.critical_threshold = payload.critical_threshold
        setting.display_mode = payload.display_mode
        setting.selected_locations = list(payload.selected_locations)
        setting.refresh_interval = payload.refresh_interval
        setting.updated_by = user
        await self.repo.flush()
        await self.commit()
        logger.info(
            "Dock monitor settings saved: behind=%s critical=%s mode=%s",
            payload.behind_threshold,
            payload.critical_threshold,
            payload.display_mode,
        )
        return ApiResponse.ok(dock_monitor_settings_read(setting), "Dock monitor settings saved successfully")

    async def _site_settings(self) -> SiteSettings:
        """The single site settings row, added with defaults when missing; callers commit."""
        site = await self.repo.get_site_settings()
        if site is None:
            site = SiteSettings(created_by="system", updated_by="system")
            await self.repo.add(site)
            await self.repo.flush()
            logger.info("Default site settings created")
        return site

    # PUBLIC_INTERFACE
    async def get_site_settings(self) -> ApiResponse[SiteSettingsRead]:
        """Site settings; the row is created with defaults on first read."""
        site = await self._site_settings()
        await self.commit()
        return ApiResponse.ok(SiteSettingsRead.model_validate(site), "Site settings retrieved successfully")

    # PUBLIC_INTERFACE
    async def update_site_settings(
        self, payload: SiteSettingsUpdate, user: Optional[str] = None
    ) -> ApiResponse[SiteSettingsRead]:
        _check_thresholds(payload.dock_behind_threshold, payload.dock_critical_threshold)
        if (
            payload.plant_opening_time is not None
            and payload.plant_closing_time is not None
            and payload.plant_closing_time <= payload.plant_opening_time
        ):
            raise ServiceError("Invalid plant hours", ["Plant closing time must be after opening time"])

        site = await self._site_settings()
        for field, value in payload.model_dump().items():
            setattr(site, field, value)
        site.updated_by = user
        await self.repo.flush()
        await self.commit()
        logger.info("Site settings updated by %s", user or "-")
        return ApiResponse.ok(SiteSettingsRead.model_validate(site), "Site settings updated successfully")
