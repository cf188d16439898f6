from datetime import time
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from scanner_api.db.models.settings import SiteSettings
from scanner_api.schemas.settings import (
    DockMonitorSettingsUpdate,
    InternalKanbanSettingsUpdate,
    SiteSettingsUpdate,
)
from scanner_api.services.base import ServiceError
from scanner_api.services.settings import SettingsService

from factories import NOW


def _site(**overrides) -> SiteSettings:
    values = dict(
        id=uuid4(),
        enable_pre_shipment_scan=True,
        dock_behind_threshold=15,
        dock_critical_threshold=30,
        dock_display_mode="FULL",
        dock_refresh_interval=300000,
        dock_order_lookback_hours=36,
        kanban_allow_duplicates=False,
        kanban_duplicate_window_hours=24,
        kanban_alert_on_duplicate=True,
        updated_at=NOW,
    )
    values.update(overrides)
    return SiteSettings(**values)


@pytest.fixture
def service(db_session):
    svc = SettingsService(db_session)
    svc.repo = AsyncMock()
    svc.repo.get_internal_kanban_settings.return_value = None
    svc.repo.get_dock_monitor_settings.return_value = None
    svc.repo.get_site_settings.return_value = None
    return svc


async def test_defaults_when_nothing_saved(service):
    kanban = await service.get_internal_kanban()
    dock = await service.get_dock_monitor()

    assert kanban.message == "Default internal kanban settings retrieved"
    assert kanban.data.setting_id is None
    assert kanban.data.allow_duplicates is False
    assert kanban.data.duplicate_window_hours == 24
    assert kanban.data.alert_on_duplicate is True
    assert dock.message == "Default dock monitor settings retrieved"
    assert (dock.data.behind_threshold, dock.data.critical_threshold) == (15, 30)
    assert dock.data.display_mode == "FULL"
    assert dock.data.refresh_interval == 300000


@pytest.mark.parametrize("behind,critical", [(30, 30), (30, 15)])
async def test_critical_threshold_must_exceed_behind(service, behind, critical):
    with pytest.raises(ServiceError) as exc_info:
        await service.save_dock_monitor(DockMonitorSettingsUpdate(behind_threshold=behind, critical_threshold=critical))

    assert exc_info.value.errors == ["Critical threshold must be greater than behind threshold"]
    service.repo.add.assert_not_called()


async def test_save_dock_monitor_creates_row(service, db_session):
    resp = await service.save_dock_monitor(
        DockMonitorSettingsUpdate(behind_threshold=10, critical_threshold=20, display_mode="skid_only"),
        user="admin",
    )

    stored = service.repo.add.await_args.args[0]
    assert stored.created_by == "admin"
    assert resp.data.display_mode == "SKID_ONLY"
    assert resp.data.critical_threshold == 20
    db_session.commit.assert_awaited()


@pytest.mark.parametrize("opening,closing", [(time(7, 0), time(7, 0)), (time(18, 0), time(6, 0))])
async def test_plant_closing_must_follow_opening(service, opening, closing):
    with pytest.raises(ServiceError) as exc_info:
        await service.update_site_settings(SiteSettingsUpdate(plant_opening_time=opening, plant_closing_time=closing))

    assert exc_info.value.message == "Invalid plant hours"
    service.repo.get_site_settings.assert_not_called()


async def test_site_thresholds_are_checked(service):
    with pytest.raises(ServiceError) as exc_info:
        await service.update_site_settings(SiteSettingsUpdate(dock_behind_threshold=40, dock_critical_threshold=20))
    assert exc_info.value.message == "Invalid thresholds"


async def test_update_site_settings_replaces_fields(service):
    site = _site()
    service.repo.get_site_settings.return_value = site

    resp = await service.update_site_settings(
        SiteSettingsUpdate(
            plant_location="Georgetown",
            plant_opening_time=time(6, 0),
            plant_closing_time=time(22, 0),
            dock_order_lookback_hours=48,
        ),
        user="admin",
    )

    assert site.plant_location == "Georgetown"
    assert site.updated_by == "admin"
    assert resp.data.dock_order_lookback_hours == 48
    service.repo.add.assert_not_called()


async def test_saving_kanban_rules_syncs_existing_site_row(service):
    site = _site()
    service.repo.get_site_settings.return_value = site

    await service.save_internal_kanban(
        InternalKanbanSettingsUpdate(allow_duplicates=True, duplicate_window_hours=8, alert_on_duplicate=False),
        user="admin",
    )

    assert site.kanban_allow_duplicates is True
    assert site.kanban_duplicate_window_hours == 8
    assert site.kanban_alert_on_duplicate is False


async def test_saving_kanban_rules_creates_missing_site_row(service, db_session):
    resp = await service.save_internal_kanban(
        InternalKanbanSettingsUpdate(allow_duplicates=True, duplicate_window_hours=12), user="admin"
    )

    added = [call.args[0] for call in service.repo.add.await_args_list]
    site = next(obj for obj in added if isinstance(obj, SiteSettings))
    assert site.kanban_allow_duplicates is True
    assert site.kanban_duplicate_window_hours == 12
    assert site.updated_by == "admin"
    assert resp.data.allow_duplicates is True
    db_session.commit.assert_awaited_once()
