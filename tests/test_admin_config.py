"""Toyota API configuration and internal kanban exclusion services."""

import io
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from openpyxl import Workbook

from scanner_api.db.base import utcnow
from scanner_api.db.models.toyota import ToyotaApiConfig
from scanner_api.schemas.kanban_exclusions import KanbanExclusionCreate
from scanner_api.schemas.toyota import SECRET_MASK, ToyotaConfigCreate, ToyotaConfigUpdate
from scanner_api.services.base import ConflictError, ServiceError
from scanner_api.services.kanban_exclusions import KanbanExclusionService
from scanner_api.services.toyota_api import ToyotaApiClient, ToyotaTokenError
from scanner_api.services.toyota_config import ToyotaConfigService


def _stored_config():
    now = utcnow()
    return ToyotaApiConfig(
        id=uuid4(),
        environment="QA",
        application_name="Scanner",
        client_id="client-1",
        client_secret="real-secret",
        token_url="https://login.example.test/token",
        api_base_url="https://scs.example.test/api",
        is_active=True,
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def config_service(db_session):
    client = AsyncMock(spec=ToyotaApiClient)
    svc = ToyotaConfigService(db_session, client=client)
    svc.repo = AsyncMock()
    return svc


def _stamp(objects):
    now = utcnow()
    for obj in objects:
        obj.id = obj.id or uuid4()
        obj.created_at = obj.created_at or now
        obj.updated_at = obj.updated_at or now


async def test_create_config_rejects_unknown_environment(config_service):
    payload = ToyotaConfigCreate(
        environment="staging",
        application_name="Scanner",
        client_id="c",
        client_secret="s",
        token_url="https://t",
        api_base_url="https://a",
    )
    with pytest.raises(ServiceError) as exc_info:
        await config_service.create_config(payload)
    assert exc_info.value.errors == ["Environment must be one of QA, PROD, DEV"]


async def test_update_ignores_masked_secret_and_blank_fields(config_service):
    config = _stored_config()
    config_service.repo.get.return_value = config
    ToyotaApiClient._token_cache["QA"] = ("cached", utcnow())

    result = await config_service.update_config(
        config.id,
        ToyotaConfigUpdate(client_secret=SECRET_MASK, application_name="  ", environment="prod"),
        user="admin",
    )

    assert config.client_secret == "real-secret"
    assert config.application_name == "Scanner"
    assert config.environment == "PROD"
    assert result.client_secret == SECRET_MASK
    assert ToyotaApiClient._token_cache == {}


async def test_connection_failure_is_reported_in_result(config_service):
    config_service.repo.get.return_value = _stored_config()
    config_service.client.request_token.side_effect = ToyotaTokenError("Token endpoint returned 401: invalid_client")

    resp = await config_service.test_connection(uuid4())

    assert resp.success is True
    assert resp.message == "Connection test failed"
    assert resp.data.success is False
    assert "invalid_client" in resp.data.error


@pytest.fixture
def exclusion_service(db_session):
    svc = KanbanExclusionService(db_session)
    svc.repo = AsyncMock()
    svc.repo.get_by_part_number.return_value = None
    svc.repo.existing_part_numbers.return_value = {"681050E25000"}
    svc.repo.add.side_effect = lambda obj: _stamp([obj])
    svc.repo.add_all.side_effect = _stamp
    return svc


async def test_duplicate_exclusion_conflicts(exclusion_service):
    exclusion_service.repo.get_by_part_number.return_value = object()

    with pytest.raises(ConflictError):
        await exclusion_service.create_exclusion(KanbanExclusionCreate(part_number=" 681010E25000 "))


async def test_create_exclusion_trims_part_number(exclusion_service):
    result = await exclusion_service.create_exclusion(KanbanExclusionCreate(part_number=" 681010E25000 "), user="admin")

    assert result.part_number == "681010E25000"
    assert result.mode == "single"
    assert result.created_by == "admin"


def _sheet(*part_numbers) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.append(["PartNumber"])
    for part in part_numbers:
        ws.append([part])
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


async def test_bulk_upload_reports_row_errors(exclusion_service):
    content = _sheet("681010E25000", None, "681010E25000", "681050E25000", "X" * 101, "681020E25000")

    resp = await exclusion_service.bulk_upload("exclusions.xlsx", content, user="admin")

    result = resp.data
    assert result.total_processed == 6
    assert result.success_count == 2
    assert result.failed_count == 4
    assert result.errors == [
        "Row 3: Part number is empty",
        "Row 4: Duplicate part number '681010E25000' in file",
        "Row 5: Part number '681050E25000' already exists in database",
        f"Row 6: Part number '{'X' * 101}' exceeds 100 characters",
    ]
    assert [e.mode for e in result.created_exclusions] == ["bulk", "bulk"]


async def test_bulk_upload_requires_part_number_header(exclusion_service):
    wb = Workbook()
    wb.active.append(["Part"])
    buffer = io.BytesIO()
    wb.save(buffer)

    with pytest.raises(ServiceError) as exc_info:
        await exclusion_service.bulk_upload("exclusions.xlsx", buffer.getvalue())
    assert exc_info.value.message == "Invalid Excel format"


@pytest.mark.parametrize(
    "file_name,content",
    [
        ("exclusions.csv", b"PartNumber\n1"),
        # legacy BIFF header; only .xlsx workbooks are read
        ("exclusions.xls", b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\0" * 600),
    ],
)
async def test_bulk_upload_rejects_other_file_types(exclusion_service, file_name, content):
    with pytest.raises(ServiceError) as exc_info:
        await exclusion_service.bulk_upload(file_name, content)
    assert exc_info.value.message == "Invalid file format"
    assert exc_info.value.errors == ["Only Excel files (.xlsx) are supported"]
    exclusion_service.repo.add_all.assert_not_called()
