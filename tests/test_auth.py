from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from jose import JWTError, jwt

from scanner_api.core.security import (
    access_token_lifetime,
    create_access_token,
    create_refresh_token,
    decode_token,
    get_password_hash,
    get_token_subject,
    verify_password,
)
from scanner_api.services.auth import INVALID_CREDENTIALS, AuthService
from scanner_api.services.base import AuthenticationError

from factories import make_user


@pytest.fixture
def service(db_session):
    svc = AuthService(db_session)
    svc.user_repo = AsyncMock()
    return svc


def test_password_hash_roundtrip():
    hashed = get_password_hash("secret1")
    assert hashed != "secret1"
    assert verify_password("secret1", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("secret1", "not-a-bcrypt-hash")


@pytest.mark.parametrize(
    "role,minutes",
    [("SUPERVISOR", 720), ("Supervisor", 720), ("Operator", 480), ("Admin", 480), (None, 480)],
)
def test_access_token_lifetime_by_role(role, minutes):
    assert access_token_lifetime(role) == timedelta(minutes=minutes)


def test_access_token_claims():
    user = make_user(role="Supervisor", is_supervisor=True)
    before = datetime.now(tz=timezone.utc)

    token, expires_at = create_access_token(user)
    claims = decode_token(token)

    assert claims["sub"] == str(user.id)
    assert claims["unique_name"] == "operator1"
    assert claims["name"] == "Operator One"
    assert claims["role"] == "Supervisor"
    assert claims["location_id"] == "LOC1"
    assert claims["is_supervisor"] is True
    assert claims["type"] == "access"
    assert claims["jti"]
    assert expires_at - before >= timedelta(minutes=719)


def test_refresh_token_subject():
    token, _ = create_refresh_token("user-42")
    assert decode_token(token)["type"] == "refresh"
    assert get_token_subject(token) == "user-42"


def test_token_signed_with_another_key_is_rejected():
    forged = jwt.encode({"sub": "someone", "type": "access"}, "another-secret", algorithm="HS256")
    with pytest.raises(JWTError):
        decode_token(forged)
    assert get_token_subject("garbage") is None


@pytest.mark.parametrize(
    "user",
    [None, make_user(is_active=False), make_user(password_hash=get_password_hash("other"))],
    ids=["unknown", "inactive", "wrong-password"],
)
async def test_login_failures_share_one_message(service, user):
    service.user_repo.get_user_by_username.return_value = user

    with pytest.raises(AuthenticationError) as exc_info:
        await service.login("operator1", "secret1")

    assert exc_info.value.status_code == 401
    assert exc_info.value.message == INVALID_CREDENTIALS
    service.user_repo.add.assert_not_called()


async def test_login_opens_session(service, db_session):
    user = make_user()
    service.user_repo.get_user_by_username.return_value = user

    result = await service.login(" operator1 ", "secret1", ip_address="10.0.0.5", user_agent="scanner/1.0")

    service.user_repo.get_user_by_username.assert_awaited_once_with("operator1")
    stored = service.user_repo.add.await_args.args[0]
    assert stored.token == result.access_token
    assert stored.refresh_token == result.refresh_token
    assert stored.ip_address == "10.0.0.5"
    assert result.user.username == "operator1"
    assert user.last_login_at is not None
    db_session.commit.assert_awaited()


async def test_refresh_rejects_access_token(service):
    access, _ = create_access_token(make_user())
    with pytest.raises(AuthenticationError) as exc_info:
        await service.refresh(access)
    assert exc_info.value.message == "Invalid token type"


async def test_refresh_closes_previous_session(service):
    user = make_user()
    refresh, _ = create_refresh_token(str(user.id))
    current = SimpleNamespace(is_active=True, ip_address="10.0.0.5", user_agent="scanner/1.0")
    service.user_repo.get_active_session_by_refresh_token.return_value = current
    service.user_repo.get_user_by_id.return_value = user

    result = await service.refresh(refresh)

    assert current.is_active is False
    assert result.user.id == user.id
    service.user_repo.add.assert_awaited_once()


async def test_logout_without_active_session(service):
    service.user_repo.get_active_session_by_token.return_value = None
    assert await service.logout("token") is False


async def test_validate_session(service):
    user = make_user()
    token, _ = create_access_token(user)
    current = SimpleNamespace(is_active=True, last_activity_at=None)
    service.user_repo.get_active_session_by_token.return_value = current
    service.user_repo.get_user_by_id.return_value = user

    result = await service.validate_session(token)

    assert result.valid is True
    assert result.user.username == "operator1"
    assert current.last_activity_at is not None

    service.user_repo.get_active_session_by_token.return_value = None
    result = await service.validate_session(token)
    assert result.valid is False
    assert result.error == "Session expired or logged out"

    assert (await service.validate_session("garbage")).error == "Invalid or expired token"
