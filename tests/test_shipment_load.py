from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from scanner_api.db.models.orders import OrderStatus
from scanner_api.schemas.shipment_load import ShipmentScanRequest, StartShipmentRequest
from scanner_api.schemas.toyota import ScsSubmissionResult
from scanner_api.services.base import NotFoundError, ServiceError, ToyotaSubmissionError
from scanner_api.services.shipment_load import (
    ShipmentLoadService,
    build_trailer_submission,
    order_is_built,
    split_route_run,
)

from factories import (
    make_order,
    make_planned_item,
    make_scan,
    make_shipment_exception,
    make_shipment_session,
)


@pytest.fixture
def toyota():
    client = MagicMock()
    client.environment = "QA"
    client.submit_trailer = AsyncMock()
    return client


@pytest.fixture
def service(db_session, toyota):
    svc = ShipmentLoadService(db_session, toyota_client=toyota)
    svc.order_repo = AsyncMock()
    svc.session_repo = AsyncMock()
    svc.exception_repo = AsyncMock()
    svc.scan_repo = AsyncMock()
    svc.exception_repo.list_for_session.return_value = []
    svc.scan_repo.count_by_order.return_value = {}
    return svc


@pytest.mark.parametrize(
    "status,expected",
    [
        (OrderStatus.PLANNED, False),
        (OrderStatus.SKID_BUILDING, False),
        (OrderStatus.SKID_BUILT, True),
        (OrderStatus.SKID_BUILD_ERROR, True),
        (OrderStatus.SHIPMENT_LOADING, True),
        (OrderStatus.SHIPPED, True),
        (OrderStatus.SHIPMENT_ERROR, True),
    ],
)
def test_order_is_built(status, expected):
    assert order_is_built(int(status)) is expected


@pytest.mark.parametrize(
    "route_number,strip,expected",
    [
        ("GA1101", False, ("GA11", "01")),
        ("JAAJ-01", True, ("JAAJ", "01")),
        ("JAAJ-01", False, ("JAAJ-", "01")),
        ("7", False, ("7", "")),
        ("", False, ("", "")),
    ],
)
def test_split_route_run(route_number, strip, expected):
    assert split_route_run(route_number, strip_hyphen=strip) == expected


def test_trailer_submission_dedupes_skids_and_places_exceptions():
    session = make_shipment_session()
    order = make_order()
    item = make_planned_item(order)
    scans = [
        make_scan(item, skid_number="001", box_number=1),
        make_scan(item, skid_number="001", box_number=2),
        make_scan(item, skid_number="002", box_number=3, is_skid_cut=True),
    ]
    exceptions = [
        make_shipment_exception(session, exception_type="13", comments="Late trailer"),
        make_shipment_exception(session, exception_type="24", comments="Damaged", related_skid_id="002"),
    ]

    submission = build_trailer_submission(session, [order], {order.id: scans}, exceptions)
    wire = submission.to_wire()

    assert wire["route"] == "GA11"
    assert wire["run"] == "01"
    assert wire["dropHook"] is False
    assert wire["lpCode"] == "LP01"
    assert wire["exceptions"] == [{"exceptionCode": "13", "comments": "Late trailer"}]
    skids = wire["orders"][0]["skids"]
    assert [s["skidId"] for s in skids] == ["001", "002"]
    assert skids[1]["skidCut"] is True
    assert skids[1]["exceptions"] == [{"exceptionCode": "24", "comments": "Damaged"}]
    assert wire["orders"][0]["pickUp"] == "2024-01-16T14:00"


async def test_start_session_resumes_active_route(service):
    existing = make_shipment_session()
    service.session_repo.get_active_by_route.return_value = existing
    service.order_repo.list_for_shipment_session.return_value = []

    resp = await service.start_session(StartShipmentRequest(route_number="GA1101"))

    assert resp.message == "Session resumed successfully"
    assert resp.data.is_resumed is True
    assert resp.data.session_id == existing.id
    service.session_repo.add.assert_not_called()


async def test_start_session_rejects_unbuilt_order(service):
    service.order_repo.get_by_number_and_dock.return_value = make_order(status=int(OrderStatus.SKID_BUILDING))

    with pytest.raises(ServiceError) as exc_info:
        await service.start_session(
            StartShipmentRequest(route_number="GA1101", order_number="2024011501AB", dock_code="FL")
        )
    assert exc_info.value.message == "Order not ready"


async def test_scan_order_missing_session_is_not_found(service):
    service.session_repo.get.return_value = None

    with pytest.raises(NotFoundError):
        await service.scan_order(ShipmentScanRequest(session_id=uuid4(), order_number="2024011501AB", dock_code="FL"))
    service.order_repo.get_by_number_and_dock.assert_not_called()


@pytest.mark.parametrize(
    "status,skid_count,message",
    [
        (OrderStatus.SKID_BUILDING, 3, "Order not ready"),
        (OrderStatus.SHIPPED, 3, "Already shipped"),
        (OrderStatus.SKID_BUILT, 0, "No skid scans found"),
    ],
)
async def test_scan_order_rejections(service, status, skid_count, message):
    session = make_shipment_session()
    service.session_repo.get.return_value = session
    service.order_repo.get_by_number_and_dock.return_value = make_order(status=int(status))
    service.scan_repo.count_for_order.return_value = skid_count

    with pytest.raises(ServiceError) as exc_info:
        await service.scan_order(ShipmentScanRequest(session_id=session.id, order_number="2024011501AB", dock_code="FL"))

    assert exc_info.value.message == message
    service.scan_repo.assign_order_to_shipment_session.assert_not_called()


async def test_scan_order_links_order_to_session(service, db_session):
    session = make_shipment_session()
    order = make_order(status=int(OrderStatus.SKID_BUILT))
    service.session_repo.get.return_value = session
    service.order_repo.get_by_number_and_dock.return_value = order
    service.scan_repo.count_for_order.return_value = 2

    resp = await service.scan_order(
        ShipmentScanRequest(session_id=session.id, order_number="2024011501AB", dock_code="FL")
    )

    assert resp.success is True
    assert order.status == OrderStatus.SHIPMENT_LOADING
    assert order.shipment_load_session_id == session.id
    assert "2 skid(s) confirmed" in resp.data.validation_message
    service.scan_repo.assign_order_to_shipment_session.assert_awaited_once_with(order.id, session.id)
    db_session.commit.assert_awaited()


async def test_scan_order_accepts_order_after_skid_build_error(service):
    session = make_shipment_session()
    order = make_order(status=int(OrderStatus.SKID_BUILD_ERROR))
    service.session_repo.get.return_value = session
    service.order_repo.get_by_number_and_dock.return_value = order
    service.scan_repo.count_for_order.return_value = 1

    resp = await service.scan_order(
        ShipmentScanRequest(session_id=session.id, order_number="2024011501AB", dock_code="FL")
    )

    assert resp.success is True
    assert order.status == OrderStatus.SHIPMENT_LOADING


async def test_complete_without_orders(service, toyota):
    service.session_repo.get.return_value = make_shipment_session()
    service.order_repo.list_for_shipment_session.return_value = []

    with pytest.raises(ServiceError) as exc_info:
        await service.complete(uuid4())

    assert exc_info.value.message == "No orders to ship"
    toyota.submit_trailer.assert_not_called()


async def test_complete_ships_orders(service, toyota):
    session = make_shipment_session()
    orders = [make_order(status=int(OrderStatus.SHIPMENT_LOADING)), make_order(real_order_number="2024011502AB")]
    item = make_planned_item(orders[0])
    service.session_repo.get.return_value = session
    service.order_repo.list_for_shipment_session.return_value = orders
    service.scan_repo.list_for_order.side_effect = [[make_scan(item)], []]
    toyota.submit_trailer.return_value = ScsSubmissionResult(
        success=True, status_code=200, confirmation_number="CONF-9"
    )

    resp = await service.complete(session.id)

    assert resp.message == "Shipment completed successfully. 2 orders shipped. Toyota Confirmation: CONF-9"
    assert resp.data.total_orders_shipped == 2
    assert resp.data.total_skids_shipped == 1
    assert session.status == "completed"
    for order in orders:
        assert order.status == OrderStatus.SHIPPED
        assert order.trailer == "TR-42"
        assert order.driver_name == "Sam Driver"
        assert order.toyota_shipment_confirmation_number == "CONF-9"


async def test_complete_records_toyota_failure(service, toyota, db_session):
    session = make_shipment_session()
    order = make_order(status=int(OrderStatus.SHIPMENT_LOADING))
    service.session_repo.get.return_value = session
    service.order_repo.list_for_shipment_session.return_value = [order]
    service.scan_repo.list_for_order.return_value = []
    toyota.submit_trailer.return_value = ScsSubmissionResult(
        success=False, status_code=400, error_message="Invalid trailer"
    )

    with pytest.raises(ToyotaSubmissionError) as exc_info:
        await service.complete(session.id)

    assert exc_info.value.status_code == 502
    assert exc_info.value.errors == ["Invalid trailer"]
    assert session.status == "error"
    assert session.toyota_error_message == "Invalid trailer"
    assert order.status == OrderStatus.SHIPMENT_LOADING
    db_session.commit.assert_awaited()
