"""Order read side and report frames."""

from datetime import date, datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.dialects import postgresql

from scanner_api.db.models.orders import OrderStatus, OrderUpload
from scanner_api.repositories.orders import OrderRepository
from scanner_api.services.base import NotFoundError
from scanner_api.services.orders import OrderService
from scanner_api.services.reports import ORDER_COLUMNS, UPLOAD_COLUMNS, ReportService

from factories import NOW, make_order, make_planned_item, make_scan


@pytest.fixture
def service(db_session):
    svc = OrderService(db_session)
    svc.order_repo = AsyncMock()
    svc.item_repo = AsyncMock()
    svc.upload_repo = AsyncMock()
    svc.scan_repo = AsyncMock()
    return svc


async def test_list_orders_filters_on_transmit_date_bounds(db_session):
    await OrderRepository(db_session).list_orders(from_date=date(2024, 1, 15), to_date=date(2024, 1, 31))

    stmt = db_session.execute.await_args.args[0]
    compiled = stmt.compile(dialect=postgresql.dialect())
    sql = str(compiled)
    assert "orders.transmit_date >=" in sql
    assert "orders.transmit_date <=" in sql
    assert date(2024, 1, 15) in compiled.params.values()
    assert date(2024, 1, 31) in compiled.params.values()


async def test_list_orders_without_bounds_has_no_date_filter(db_session):
    await OrderRepository(db_session).list_orders()

    sql = str(db_session.execute.await_args.args[0].compile(dialect=postgresql.dialect()))
    assert "transmit_date >=" not in sql
    assert "transmit_date <=" not in sql


async def test_list_orders_counts_parts(service):
    first, second = make_order(), make_order(real_order_number="2024011502AB")
    service.order_repo.list_orders.return_value = [first, second]
    service.item_repo.count_by_order.return_value = {first.id: 3}

    result = await service.list_orders(from_date=date(2024, 1, 15), to_date=date(2024, 1, 31))

    service.order_repo.list_orders.assert_awaited_once_with(
        upload_id=None, from_date=date(2024, 1, 15), to_date=date(2024, 1, 31)
    )
    assert [(s.real_order_number, s.total_parts) for s in result] == [("2024011501AB", 3), ("2024011502AB", 0)]
    assert result[0].status == "Planned"


async def test_planned_items_report_remaining_boxes(service):
    order = make_order()
    full = make_planned_item(order, total_box_planned=4)
    over = make_planned_item(order, part_number="68102-0E250-00", total_box_planned=1, manifest_no=12345679)
    service.order_repo.get.return_value = order
    service.item_repo.list_for_orders.return_value = [full, over]
    service.scan_repo.list_for_planned_items.return_value = [
        make_scan(full, internal_kanban="IK01"),
        make_scan(full, box_number=2, internal_kanban="IK01"),
        make_scan(full, box_number=3, internal_kanban="IK02"),
        make_scan(over),
        make_scan(over, box_number=2),
    ]

    result = await service.list_planned_items(order_id=order.id)

    assert [(i.total_scanned, i.remaining_boxes) for i in result] == [(3, 1), (2, 0)]
    assert result[0].internal_kanban == "IK01, IK02"
    assert result[1].internal_kanban is None


async def test_planned_items_for_unknown_order_is_empty(service):
    service.order_repo.get.return_value = None
    service.item_repo.list_for_orders.return_value = []
    service.scan_repo.list_for_planned_items.return_value = []

    assert await service.list_planned_items(order_id=make_order().id) == []


async def test_order_skids_are_distinct_with_earliest_scan(service):
    order = make_order()
    item = make_planned_item(order)
    service.order_repo.get_by_number_and_dock.return_value = order
    service.scan_repo.list_for_order.return_value = [
        make_scan(item, skid_number="002", skid_side="A", scanned_at=NOW),
        make_scan(item, skid_number="001", skid_side="B", scanned_at=NOW + timedelta(minutes=5)),
        make_scan(item, skid_number="001", skid_side="B", scanned_at=NOW + timedelta(minutes=1)),
        make_scan(item, skid_number="001", skid_side="A", scanned_at=NOW),
    ]

    result = await service.get_order_skids("2024011501AB", "FL")

    assert [s.skid_id for s in result.skids] == ["001A", "001B", "002A"]
    assert result.skids[1].scanned_at == NOW + timedelta(minutes=1)
    assert result.total_skids == 3


async def test_order_skids_for_unknown_order_is_not_found(service):
    service.order_repo.get_by_number_and_dock.return_value = None

    with pytest.raises(NotFoundError):
        await service.get_order_skids("2024011501AB", "FL")
    service.scan_repo.list_for_order.assert_not_called()


@pytest.fixture
def reports(db_session):
    svc = ReportService(db_session)
    svc.order_repo = AsyncMock()
    svc.item_repo = AsyncMock()
    svc.scan_repo = AsyncMock()
    svc.upload_repo = AsyncMock()
    return svc


async def test_order_status_frame_filters_by_status_label(reports):
    built = make_order(status=int(OrderStatus.SKID_BUILT), trailer="TR-42")
    planned = make_order(real_order_number="2024011502AB")
    reports.order_repo.list_orders.return_value = [built, planned]
    reports.item_repo.count_by_order.return_value = {built.id: 2}
    reports.scan_repo.count_by_order.return_value = {built.id: 6}

    frame = await reports.order_status_frame(status="skidbuilt")

    assert list(frame.columns) == ORDER_COLUMNS
    assert len(frame) == 1
    row = frame.iloc[0]
    assert row["order_number"] == "2024011501AB"
    assert row["status"] == "SkidBuilt"
    assert row["planned_items"] == 2
    assert row["skid_scans"] == 6
    assert row["trailer"] == "TR-42"
    # exported datetimes drop their timezone for Excel
    assert row["planned_pickup"].tzinfo is None
    reports.item_repo.count_by_order.assert_awaited_once_with([built.id])


async def test_upload_history_frame(reports):
    reports.upload_repo.list_uploads.return_value = [
        OrderUpload(
            file_name="orders.xlsx",
            file_size=2048,
            file_path="uploads/orders/x.xlsx",
            status="warning",
            upload_date=datetime(2024, 1, 15, 8, 30, tzinfo=timezone.utc),
            orders_created=0,
            total_items_created=0,
            total_manifests_created=0,
            supplier_code="22806",
        )
    ]

    frame = await reports.upload_history_frame(from_date=date(2024, 1, 1))

    reports.upload_repo.list_uploads.assert_awaited_once_with(from_date=date(2024, 1, 1), to_date=None)
    assert list(frame.columns) == UPLOAD_COLUMNS
    assert frame.iloc[0]["status"] == "warning"
    assert frame.iloc[0]["upload_date"] == datetime(2024, 1, 15, 8, 30)


async def test_empty_reports_keep_their_columns(reports):
    reports.order_repo.list_orders.return_value = []
    reports.item_repo.count_by_order.return_value = {}
    reports.scan_repo.count_by_order.return_value = {}

    frame = await reports.order_status_frame()

    assert frame.empty
    assert list(frame.columns) == ORDER_COLUMNS
