from unittest.mock import AsyncMock

import pytest

from scanner_api.services.base import ServiceError
from scanner_api.services.order_upload import XLSX_CONTENT_TYPE, OrderUploadService, validate_upload_file

from factories import make_order, order_workbook_bytes


@pytest.fixture
def service(db_session, tmp_path):
    svc = OrderUploadService(db_session, upload_dir=str(tmp_path))
    svc.order_repo = AsyncMock()
    svc.upload_repo = AsyncMock()
    svc.order_repo.get_by_number_and_dock.return_value = None
    return svc


@pytest.mark.parametrize(
    "file_name,content_type,size,expected",
    [
        ("orders.xlsx", XLSX_CONTENT_TYPE, 100, None),
        ("ORDERS.XLSX", XLSX_CONTENT_TYPE, 100, None),
        (None, XLSX_CONTENT_TYPE, 100, "File is required"),
        ("orders.xlsx", XLSX_CONTENT_TYPE, 0, "File is required"),
        ("orders.xlsx", XLSX_CONTENT_TYPE, 11 * 1024 * 1024, "File size must be less than 10MB"),
        ("orders.xls", XLSX_CONTENT_TYPE, 100, "Only Excel (.xlsx) files are allowed"),
        ("orders.xlsx", "text/csv", 100, "Only Excel (.xlsx) files are allowed"),
    ],
)
def test_validate_upload_file(file_name, content_type, size, expected):
    assert validate_upload_file(file_name, content_type, size) == expected


async def test_rejected_file_is_not_stored(service, tmp_path):
    with pytest.raises(ServiceError) as exc_info:
        await service.upload("orders.csv", "text/csv", b"a,b")

    assert exc_info.value.message == "Only Excel (.xlsx) files are allowed"
    assert list(tmp_path.iterdir()) == []
    service.upload_repo.add.assert_not_called()


async def test_upload_creates_orders_and_items(service, tmp_path):
    resp = await service.upload("orders.xlsx", XLSX_CONTENT_TYPE, order_workbook_bytes(), username="admin")

    upload = service.upload_repo.add.await_args.args[0]
    order = service.order_repo.add.await_args.args[0]
    items = service.order_repo.add_all.await_args.args[0]
    assert upload.status == "success"
    assert upload.supplier_code == "22806"
    assert upload.total_planned == 10
    assert order.real_order_number == "2024011501AB"
    assert order.planned_pickup.tzinfo is not None
    assert order.created_by == "admin"
    assert len(items) == 2
    assert resp.data.orders_created == 1
    assert resp.data.total_items_created == 2
    assert resp.message.startswith("Successfully uploaded and processed orders.xlsx")
    assert len(list(tmp_path.iterdir())) == 1


async def test_existing_orders_are_skipped_with_warning(service):
    service.order_repo.get_by_number_and_dock.return_value = make_order()

    resp = await service.upload("orders.xlsx", XLSX_CONTENT_TYPE, order_workbook_bytes())

    upload = service.upload_repo.add.await_args.args[0]
    assert upload.status == "warning"
    assert resp.data.orders_skipped == 1
    assert resp.data.skipped_order_numbers == ["2024011501AB"]
    assert resp.data.extracted_orders[0].skipped is True
    assert resp.message.startswith("All 1 order(s) already exist in the system.")
    service.order_repo.add.assert_not_called()


async def test_unparseable_workbook_marks_upload_failed(service, db_session):
    stored = {}

    async def remember(upload):
        stored["upload"] = upload

    async def lookup(upload_id):
        return stored["upload"]

    service.upload_repo.add.side_effect = remember
    service.upload_repo.get.side_effect = lookup

    with pytest.raises(ServiceError) as exc_info:
        await service.upload("orders.xlsx", XLSX_CONTENT_TYPE, b"not a workbook")

    assert exc_info.value.status_code == 500
    assert exc_info.value.message.startswith("Error processing file:")
    assert stored["upload"].status == "error"
    db_session.rollback.assert_awaited()
