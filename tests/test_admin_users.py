"""User administration and warehouse/office master data services."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from pydantic import ValidationError

from scanner_api.core.security import verify_password
from scanner_api.db.base import utcnow
from scanner_api.db.models.master_data import Warehouse
from scanner_api.schemas.auth import UserCreate, UserUpdate
from scanner_api.schemas.master_data import OfficeCreate, WarehouseCreate, WarehouseUpdate
from scanner_api.services.base import ConflictError, NotFoundError
from scanner_api.services.master_data import OfficeService, WarehouseService
from scanner_api.services.users import UserService

from factories import make_user


def _stamp(obj):
    now = utcnow()
    obj.id = obj.id or uuid4()
    obj.created_at = obj.created_at or now
    obj.updated_at = obj.updated_at or now


@pytest.fixture
def user_service(db_session):
    svc = UserService(db_session)
    svc.user_repo = AsyncMock()
    svc.user_repo.get_user_by_username.return_value = None
    svc.user_repo.add.side_effect = _stamp
    return svc


async def test_create_user_hashes_password_and_defaults_name(user_service, db_session):
    result = await user_service.create_user(UserCreate(username=" picker2 ", password="secret9"), created_by="admin")

    stored = user_service.user_repo.add.await_args.args[0]
    assert stored.username == "picker2"
    assert stored.name == "picker2"
    assert verify_password("secret9", stored.password_hash)
    assert result.username == "picker2"
    assert result.role == "Operator"
    db_session.commit.assert_awaited()


async def test_create_user_with_taken_username_conflicts(user_service):
    user_service.user_repo.get_user_by_username.return_value = make_user()

    with pytest.raises(ConflictError) as exc_info:
        await user_service.create_user(UserCreate(username="operator1", password="secret9"))

    assert exc_info.value.status_code == 409
    assert exc_info.value.message == "Username already exists"
    user_service.user_repo.add.assert_not_called()


@pytest.mark.parametrize("model", [UserCreate, UserUpdate])
def test_password_must_be_at_least_six_characters(model):
    with pytest.raises(ValidationError):
        model(username="operator1", password="12345")
    assert model(username="operator1", password="123456").password == "123456"


async def test_rename_to_another_users_name_conflicts(user_service):
    user = make_user()
    user_service.user_repo.get_user_by_id.return_value = user
    user_service.user_repo.get_user_by_username.return_value = make_user(username="supervisor1")

    with pytest.raises(ConflictError):
        await user_service.update_user(user.id, UserUpdate(username="supervisor1"))
    assert user.username == "operator1"


async def test_deactivate_user_closes_sessions(user_service, db_session):
    user = make_user()
    user_service.user_repo.get_user_by_id.return_value = user

    await user_service.deactivate_user(user.id)

    assert user.is_active is False
    user_service.user_repo.deactivate_user_sessions.assert_awaited_once_with(user.id)
    db_session.commit.assert_awaited()


async def test_deactivate_unknown_user_is_not_found(user_service):
    user_service.user_repo.get_user_by_id.return_value = None

    with pytest.raises(NotFoundError):
        await user_service.deactivate_user(uuid4())
    user_service.user_repo.deactivate_user_sessions.assert_not_called()


@pytest.fixture(params=[(WarehouseService, WarehouseCreate), (OfficeService, OfficeCreate)], ids=["warehouse", "office"])
def coded(request, db_session):
    service_cls, create_cls = request.param
    svc = service_cls(db_session)
    svc.repo = AsyncMock()
    svc.repo.get_by_code.return_value = None
    svc.repo.add.side_effect = _stamp
    return svc, create_cls


async def test_code_is_trimmed_and_upper_cased(coded):
    svc, create_cls = coded

    entity = await svc.create(create_cls(code=" ky01 ", name="Georgetown"), user="admin")

    assert entity.code == "KY01"
    assert entity.created_by == "admin"
    svc.repo.get_by_code.assert_awaited_once_with("KY01")


async def test_duplicate_code_conflicts(coded):
    svc, create_cls = coded
    svc.repo.get_by_code.return_value = svc.model(id=uuid4(), code="KY01", name="Existing")

    with pytest.raises(ConflictError) as exc_info:
        await svc.create(create_cls(code="ky01", name="Georgetown"))

    assert exc_info.value.status_code == 409
    svc.repo.add.assert_not_called()


async def test_update_keeps_own_code(db_session):
    svc = WarehouseService(db_session)
    svc.repo = AsyncMock()
    warehouse = Warehouse(id=uuid4(), code="KY01", name="Georgetown")
    svc.repo.get.return_value = warehouse
    svc.repo.get_by_code.return_value = warehouse

    await svc.update(warehouse.id, WarehouseUpdate(code="ky01", name="Georgetown North"), user="admin")

    assert warehouse.code == "KY01"
    assert warehouse.name == "Georgetown North"
    assert warehouse.updated_by == "admin"


async def test_delete_missing_office_is_not_found(db_session):
    svc = OfficeService(db_session)
    svc.repo = AsyncMock()
    svc.repo.get.return_value = None

    with pytest.raises(NotFoundError) as exc_info:
        await svc.delete(uuid4())
    assert exc_info.value.message == "Office not found"
