from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from scanner_api.schemas.settings import DockMonitorSettingsRead
from scanner_api.services.dock_monitor import (
    DockMonitorService,
    apply_display_mode,
    group_shipments,
    minutes_late,
    order_dock_status,
)

from factories import make_order, make_shipment_session

PICKUP = datetime(2024, 1, 16, 14, 0, tzinfo=timezone.utc)
SUBMITTED = datetime(2024, 1, 16, 11, 0, tzinfo=timezone.utc)


def _at(hour, minute):
    return datetime(2024, 1, 16, hour, minute, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "now,expected",
    [
        (_at(12, 10), "ON_TIME"),
        (_at(12, 15), "BEHIND"),
        (_at(12, 29), "BEHIND"),
        (_at(12, 30), "CRITICAL"),
    ],
)
def test_lateness_measured_against_planned_skid_build(now, expected):
    order = make_order(planned_pickup=PICKUP)
    assert order_dock_status(order, [], 15, 30, now=now) == expected


@pytest.mark.parametrize(
    "now,expected",
    [
        (_at(12, 15), 15),
        (_at(12, 15) + timedelta(seconds=59), 15),
        (_at(12, 0) - timedelta(seconds=30), 0),
        (_at(11, 58) - timedelta(seconds=30), -2),
    ],
)
def test_minutes_late_truncates_toward_zero(now, expected):
    assert minutes_late(now, _at(12, 0)) == expected


def test_lateness_measured_against_pickup_after_skid_build():
    order = make_order(planned_pickup=PICKUP, toyota_skid_build_submitted_at=SUBMITTED)
    assert order_dock_status(order, [], 15, 30, now=_at(12, 40)) == "ON_TIME"
    assert order_dock_status(order, [], 15, 30, now=_at(14, 20)) == "BEHIND"


def test_exceptions_take_precedence_over_completion():
    order = make_order(
        planned_pickup=PICKUP,
        toyota_skid_build_submitted_at=SUBMITTED,
        toyota_shipment_submitted_at=_at(13, 0),
    )
    assert order_dock_status(order, ["10", "12"], 15, 30, now=_at(20, 0)) == "SHORT_SHIPPED"
    assert order_dock_status(order, ["11"], 15, 30, now=_at(20, 0)) == "PROJECT_SHORT"
    assert order_dock_status(order, ["20"], 15, 30, now=_at(20, 0)) == "COMPLETED"


def test_order_without_pickup_is_on_time():
    assert order_dock_status(make_order(planned_pickup=None), [], 15, 30, now=_at(23, 0)) == "ON_TIME"


def test_group_shipments_by_session_then_route_then_order():
    session = make_shipment_session(route_number="GA1101", run="01")
    on_trailer = make_order(shipment_load_session_id=session.id, main_route="GA11")
    same_route_a = make_order(real_order_number="2024011502AB", main_route="HB2202")
    same_route_b = make_order(real_order_number="2024011503AB", main_route="HB2202")
    loose = make_order(real_order_number="2024011504AB", main_route=None)

    shipments = group_shipments(
        [on_trailer, same_route_a, same_route_b, loose],
        [session],
        {},
        DockMonitorSettingsRead(),
        now=_at(10, 0),
    )

    assert [s.route_number for s in shipments] == ["GA1101", "HB2202", "2024011504AB"]
    assert shipments[0].shipment_status == "active"
    assert shipments[1].run == "02"
    assert len(shipments[1].orders) == 2
    assert shipments[2].shipment_status == "pending"
    assert shipments[0].orders[0].planned_skid_build == PICKUP - timedelta(hours=2)


def test_display_modes_filter_orders_and_drop_empty_shipments():
    shipped = make_order(
        main_route="GA1101", toyota_skid_build_submitted_at=SUBMITTED, toyota_shipment_submitted_at=_at(13, 0)
    )
    built = make_order(real_order_number="2024011502AB", main_route="HB2202", toyota_skid_build_submitted_at=SUBMITTED)
    planned = make_order(real_order_number="2024011503AB", main_route="JC3303")

    def board():
        return group_shipments([shipped, built, planned], [], {}, DockMonitorSettingsRead(), now=_at(10, 0))

    assert len(apply_display_mode(board(), "FULL")) == 3
    assert [s.route_number for s in apply_display_mode(board(), "SHIPMENT_ONLY")] == ["GA1101"]
    assert [s.route_number for s in apply_display_mode(board(), "skid_only")] == ["HB2202"]
    assert [s.route_number for s in apply_display_mode(board(), "COMPLETION_ONLY")] == ["GA1101"]


async def test_get_data_uses_site_lookback(db_session):
    service = DockMonitorService(db_session)
    service.order_repo = AsyncMock()
    service.session_repo = AsyncMock()
    service.exception_repo = AsyncMock()
    service.settings_repo = AsyncMock()
    service.settings_repo.get_dock_monitor_settings.return_value = None
    service.settings_repo.get_site_settings.return_value = SimpleNamespace(dock_order_lookback_hours=12)
    late = make_order(planned_pickup=_at(20, 0), main_route="GA1101")
    early = make_order(real_order_number="2024011502AB", planned_pickup=_at(8, 0), main_route="HB2202")
    service.order_repo.list_since.return_value = [late, early]
    service.session_repo.list_since.return_value = []
    service.exception_repo.codes_by_order.return_value = {}

    resp = await service.get_data(now=_at(12, 0))

    service.order_repo.list_since.assert_awaited_once_with(_at(0, 0))
    assert resp.data.total_orders == 2
    assert [s.route_number for s in resp.data.shipments] == ["HB2202", "GA1101"]
    assert resp.data.settings.behind_threshold == 15
