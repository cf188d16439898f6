from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from scanner_api.db.models.orders import OrderStatus
from scanner_api.schemas.skid_build import SkidBuildExceptionRequest, SkidScanRequest
from scanner_api.schemas.toyota import ScsSubmissionResult
from scanner_api.services.base import NotFoundError, ServiceError
from scanner_api.services.skid_build import (
    SkidBuildService,
    build_skid_build_submission,
    skid_id_for_manifest,
)

from factories import make_order, make_planned_item, make_scan, make_skid_session


@pytest.fixture
def toyota():
    client = MagicMock()
    client.environment = "QA"
    client.submit_skid_build = AsyncMock()
    return client


@pytest.fixture
def order():
    return make_order()


@pytest.fixture
def item(order):
    return make_planned_item(order)


@pytest.fixture
def service(db_session, toyota, order, item):
    svc = SkidBuildService(db_session, toyota_client=toyota)
    for name in ("order_repo", "item_repo", "session_repo", "scan_repo", "exception_repo", "settings_repo"):
        setattr(svc, name, AsyncMock())
    svc.session_repo.get.return_value = make_skid_session(order)
    svc.order_repo.get.return_value = order
    svc.item_repo.get.return_value = item
    svc.scan_repo.box_already_scanned.return_value = False
    svc.scan_repo.serial_scanned_since.return_value = False
    svc.settings_repo.get_site_settings.return_value = SimpleNamespace(
        kanban_allow_duplicates=False, kanban_duplicate_window_hours=24
    )
    return svc


def _scan(item, **overrides):
    values = dict(
        session_id=uuid4(),
        planned_item_id=item.id,
        skid_number="001",
        skid_side="A",
        raw_skid_id="001A",
        box_number=1,
        palletization_code="A1",
    )
    values.update(overrides)
    return SkidScanRequest(**values)


@pytest.mark.parametrize(
    "manifest_no,expected",
    [(12345678, "678A"), (42, "042A"), (100, "100A")],
)
def test_skid_id_for_manifest(manifest_no, expected):
    assert skid_id_for_manifest(manifest_no) == expected


def test_submission_groups_scans_into_skids(order, item):
    scans = [
        make_scan(item, skid_number="002", skid_side="B", box_number=2),
        make_scan(item, skid_number="001", box_number=3),
        make_scan(item, skid_number="001", box_number=1),
    ]
    submission = build_skid_build_submission(order, [item], scans, [])
    wire = submission.to_wire()

    assert wire["order"] == "2024011501AB"
    assert "exceptions" not in wire
    assert [s["skidId"] for s in wire["skids"]] == ["001A", "002B"]
    kanbans = wire["skids"][0]["kanbans"]
    assert [k["boxNumber"] for k in kanbans] == [1, 3]
    assert kanbans[0]["partNumber"] == "68101-0E250-00"
    assert kanbans[0]["manifestNumber"] == "12345678"
    assert wire["skids"][0]["rfidDetails"] == [{"rfid": "", "type": ""}]


async def test_scan_requires_active_session(service):
    service.session_repo.get.return_value.status = "completed"

    with pytest.raises(ServiceError) as exc_info:
        await service.record_scan(_scan(service.item_repo.get.return_value))
    assert exc_info.value.message == "Invalid session state"


@pytest.mark.parametrize(
    "overrides,message",
    [
        ({"skid_number": "01"}, "Invalid Skid ID"),
        ({"box_number": 0}, "Invalid Box Number"),
        ({"skid_side": "C"}, "Invalid Skid Side"),
        ({"palletization_code": "B2"}, "Palletization Code Mismatch"),
        ({"internal_kanban": "681010E25000"}, "Invalid Internal Kanban Format"),
        ({"internal_kanban": "999990E25000 KB01 00042"}, "Part Number Mismatch"),
        ({"internal_kanban": "681010E25000 ZZ99 00042"}, "Kanban Code Mismatch"),
    ],
)
async def test_scan_rejections(service, item, overrides, message):
    with pytest.raises(ServiceError) as exc_info:
        await service.record_scan(_scan(item, **overrides))
    assert exc_info.value.message == message
    service.scan_repo.add.assert_not_called()


async def test_scan_blocks_serial_inside_window(service, item):
    service.scan_repo.serial_scanned_since.return_value = True

    with pytest.raises(ServiceError) as exc_info:
        await service.record_scan(_scan(item, internal_kanban="681010E25000 KB01 00042"))

    assert exc_info.value.message == "Duplicate Serial Number"
    assert "within the last 24 hours" in exc_info.value.errors[0]


async def test_scan_allows_serial_when_duplicates_enabled(service, item):
    service.settings_repo.get_site_settings.return_value.kanban_allow_duplicates = True
    service.scan_repo.serial_scanned_since.return_value = True

    resp = await service.record_scan(_scan(item, internal_kanban="681010E25000 KB01 00042"))

    assert resp.success is True
    service.scan_repo.serial_scanned_since.assert_not_called()


async def test_scan_blocks_duplicate_toyota_kanban(service, item):
    service.scan_repo.box_already_scanned.return_value = True

    with pytest.raises(ServiceError) as exc_info:
        await service.record_scan(_scan(item))
    assert exc_info.value.message == "Duplicate Toyota Kanban"


async def test_first_scan_moves_order_to_skid_building(service, item, order, db_session):
    resp = await service.record_scan(_scan(item, internal_kanban="681010E25000 KB01 00042"))

    scan = service.scan_repo.add.await_args.args[0]
    assert scan.internal_kanban_serial == "00042"
    assert order.status == OrderStatus.SKID_BUILDING
    assert resp.message == "Scan recorded successfully for skid #001, box #1"
    db_session.commit.assert_awaited()


async def test_exception_code_must_be_order_level(service):
    with pytest.raises(ServiceError) as exc_info:
        await service.record_exception(SkidBuildExceptionRequest(session_id=uuid4(), exception_code="99"))
    assert exc_info.value.message == "Invalid Exception Code"
    service.exception_repo.add.assert_not_called()


async def test_complete_confirms_order(service, order, item, toyota):
    service.item_repo.list_for_order.return_value = [item]
    service.scan_repo.list_for_order.return_value = [make_scan(item)]
    service.exception_repo.list_for_session.return_value = []
    toyota.submit_skid_build.return_value = ScsSubmissionResult(
        success=True, status_code=200, confirmation_number="SKB-CONF"
    )

    resp = await service.complete_session(uuid4())

    assert order.status == OrderStatus.SKID_BUILT
    assert order.toyota_skid_build_confirmation_number == "SKB-CONF"
    assert resp.data.confirmation_number == "SKB-CONF"
    assert resp.data.total_scanned == 1
    assert resp.message == "Skid build completed successfully. Toyota Confirmation: SKB-CONF"


async def test_complete_keeps_session_when_toyota_fails(service, order, toyota):
    service.item_repo.list_for_order.return_value = []
    service.scan_repo.list_for_order.return_value = []
    service.exception_repo.list_for_session.return_value = []
    toyota.submit_skid_build.return_value = ScsSubmissionResult(
        success=False, status_code=400, error_message="Bad order"
    )

    resp = await service.complete_session(uuid4())

    session = service.session_repo.get.return_value
    assert order.status == OrderStatus.SKID_BUILD_ERROR
    assert order.toyota_skid_build_error_message == "Bad order"
    assert session.status == "completed"
    assert session.confirmation_number.startswith("SKB-")
    assert resp.data.toyota_submission_status == "error"
    assert "Toyota API submission failed: Bad order" in resp.message


async def test_restart_blocked_after_toyota_confirmation(service, order):
    order.toyota_skid_build_status = "confirmed"
    order.toyota_skid_build_confirmation_number = "SKB-CONF"

    with pytest.raises(ServiceError) as exc_info:
        await service.restart_session(uuid4())

    assert exc_info.value.message == "Cannot restart - already confirmed by Toyota"
    service.scan_repo.delete_for_order.assert_not_called()


async def test_restart_resets_order(service, order):
    order.status = int(OrderStatus.SKID_BUILD_ERROR)
    order.toyota_skid_build_status = "error"

    resp = await service.restart_session(uuid4())

    assert order.status == OrderStatus.PLANNED
    assert order.toyota_skid_build_status is None
    assert service.session_repo.get.return_value.status == "cancelled"
    service.scan_repo.delete_for_order.assert_awaited_once_with(order.id)
    service.exception_repo.delete_for_order.assert_awaited_once_with(order.id)
    assert resp.data.success is True


async def test_get_session_not_found(service):
    service.session_repo.get.return_value = None
    with pytest.raises(NotFoundError):
        await service.get_session(uuid4())
