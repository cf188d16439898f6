from unittest.mock import AsyncMock, MagicMock

import pytest

from scanner_api.db.models.orders import OrderStatus
from scanner_api.repositories.shipment_load import PRE_SHIPMENT
from scanner_api.services.base import NotFoundError, ServiceError
from scanner_api.services.pre_shipment import ManifestBarcodeError, PreShipmentService, parse_manifest_barcode

from factories import make_order, make_planned_item, make_scan, make_shipment_session

MANIFEST = "02TMI" + "22806" + "FL" + "2024011501AB" + "LOAD00000001" + "A1" + "03" + "001A"


@pytest.fixture
def service(db_session):
    svc = PreShipmentService(db_session, toyota_client=MagicMock(environment="QA"))
    svc.order_repo = AsyncMock()
    svc.session_repo = AsyncMock()
    svc.exception_repo = AsyncMock()
    svc.scan_repo = AsyncMock()
    svc.session_repo.get_open_pre_shipment_by_route.return_value = None
    return svc


def test_parse_manifest_barcode():
    manifest = parse_manifest_barcode(MANIFEST)

    assert manifest.plant_code == "02TMI"
    assert manifest.supplier_code == "22806"
    assert manifest.dock_code == "FL"
    assert manifest.order_number == "2024011501AB"
    assert manifest.load_id == "LOAD00000001"
    assert manifest.palletization_code == "A1"
    assert manifest.mros == "03"
    assert manifest.skid_id == "001A"


def test_parse_manifest_barcode_trims_padded_fields():
    manifest = parse_manifest_barcode("02TM " + "2280 " + "FL" + "2024011501  " + "LOAD1       " + "A103001A")
    assert manifest.plant_code == "02TM"
    assert manifest.order_number == "2024011501"
    assert manifest.load_id == "LOAD1"


def test_parse_manifest_barcode_too_short():
    with pytest.raises(ManifestBarcodeError, match="Received: 43 bytes"):
        parse_manifest_barcode(MANIFEST[:43])


async def test_create_rejects_short_barcode(service):
    with pytest.raises(ServiceError) as exc_info:
        await service.create_from_manifest("TOO-SHORT")
    assert exc_info.value.message == "Invalid manifest barcode"


async def test_create_requires_known_order(service):
    service.order_repo.get_by_number_and_dock.return_value = None

    with pytest.raises(NotFoundError):
        await service.create_from_manifest(MANIFEST)
    service.order_repo.get_by_number_and_dock.assert_awaited_once_with("2024011501AB", "FL")


async def test_create_requires_every_route_order_built(service):
    built = make_order(status=int(OrderStatus.SKID_BUILT))
    pending = make_order(real_order_number="2024011502AB", status=int(OrderStatus.PLANNED))
    service.order_repo.get_by_number_and_dock.return_value = built
    service.order_repo.list_by_route.return_value = [built, pending]

    with pytest.raises(ServiceError) as exc_info:
        await service.create_from_manifest(MANIFEST)

    assert exc_info.value.message == "Orders not ready"
    assert "2024011502AB (Status: Planned)" in exc_info.value.errors[0]
    service.session_repo.add.assert_not_called()


async def test_create_opens_session_with_planned_skids(service, db_session):
    order = make_order(status=int(OrderStatus.SKID_BUILT))
    item = make_planned_item(order)
    service.order_repo.get_by_number_and_dock.return_value = order
    service.order_repo.list_by_route.return_value = [order]
    service.scan_repo.list_for_order.return_value = [
        make_scan(item, raw_skid_id="001A"),
        make_scan(item, skid_number="002", raw_skid_id="002B", box_number=2),
    ]

    resp = await service.create_from_manifest(MANIFEST, username="operator1")

    created = service.session_repo.add.await_args.args[0]
    assert created.created_via == PRE_SHIPMENT
    assert created.route_number == "GA11-01"
    assert created.run == "01"
    assert created.supplier_code == "22806"
    assert resp.data.route == "GA11"
    assert resp.data.total_orders == 1
    assert resp.data.total_skids == 2
    assert [s.skid_side for s in resp.data.planned_skids] == ["A", "B"]
    assert resp.message.endswith("1 orders, 2 planned skids.")
    db_session.commit.assert_awaited()


async def test_create_resumes_open_session(service):
    order = make_order(status=int(OrderStatus.SKID_BUILT))
    existing = make_shipment_session(route_number="GA11-01", created_via=PRE_SHIPMENT)
    service.order_repo.get_by_number_and_dock.return_value = order
    service.order_repo.list_by_route.return_value = [order]
    service.session_repo.get_open_pre_shipment_by_route.return_value = existing
    service.scan_repo.list_for_order.return_value = []

    resp = await service.create_from_manifest(MANIFEST)

    assert resp.data.is_resumed is True
    assert resp.data.session_id == existing.id
    service.session_repo.add.assert_not_called()


async def test_operations_reject_shipment_load_sessions(service):
    service.session_repo.get.return_value = make_shipment_session(created_via="ShipmentLoad")

    with pytest.raises(ServiceError) as exc_info:
        await service.cancel(make_shipment_session().id)
    assert exc_info.value.message == "Not a Pre-Shipment session"


async def test_cancel_completed_session_is_refused(service, db_session):
    session = make_shipment_session(created_via=PRE_SHIPMENT, status="completed")
    service.session_repo.get.return_value = session

    with pytest.raises(ServiceError) as exc_info:
        await service.cancel(session.id)

    assert exc_info.value.message == "Cannot delete completed session"
    assert session.status == "completed"
    db_session.commit.assert_not_called()


async def test_cancel_marks_session_cancelled(service):
    session = make_shipment_session(created_via=PRE_SHIPMENT)
    service.session_repo.get.return_value = session

    resp = await service.cancel(session.id)

    assert resp.data is True
    assert session.status == "cancelled"
