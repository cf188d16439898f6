from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from scanner_api.api.main import app
from scanner_api.core.deps import get_current_active_user
from scanner_api.db.session import get_async_session
from scanner_api.schemas.auth import AuthUser, LoginResult
from scanner_api.services.base import AuthenticationError

from factories import make_user


async def _fake_session():
    session = MagicMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    yield session


@pytest.fixture
def client():
    app.dependency_overrides[get_async_session] = _fake_session
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def as_user():
    def _login_as(**overrides):
        user = make_user(**overrides)
        app.dependency_overrides[get_current_active_user] = lambda: user
        return user

    return _login_as


@pytest.mark.parametrize("path", ["/health", "/api/v1/health"])
def test_health(client, path):
    response = client.get(path)

    assert response.status_code == 200
    assert response.json()["status"] == "Healthy"
    assert response.headers["X-Correlation-ID"]


def test_correlation_id_is_echoed(client):
    response = client.get("/health", headers={"X-Correlation-ID": "abc-123"})
    assert response.headers["X-Correlation-ID"] == "abc-123"


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/v1/does-not-exist", headers={"X-Request-ID": "req-9"})

    body = response.json()
    assert response.status_code == 404
    assert body["success"] is False
    assert body["status"] == 404
    assert body["correlation_id"] == "req-9"
    assert body["path"] == "/api/v1/does-not-exist"
    assert body["method"] == "GET"


def test_validation_errors_are_flattened(client):
    response = client.post("/api/v1/auth/login", json={"username": "operator1"})

    body = response.json()
    assert response.status_code == 422
    assert body["message"] == "Request validation failed"
    assert any(e.startswith("body.password:") for e in body["errors"])


def test_login_failure_returns_401_envelope(client):
    with patch("scanner_api.api.routes.auth.AuthService") as service_cls:
        service_cls.return_value.login = AsyncMock(
            side_effect=AuthenticationError("Invalid username or password", ["Invalid username or password"])
        )
        response = client.post("/api/v1/auth/login", json={"username": "operator1", "password": "nope"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid username or password"


def test_login_success(client):
    result = LoginResult(
        access_token="access",
        refresh_token="refresh",
        expires_at=datetime(2024, 1, 16, 20, 0, tzinfo=timezone.utc),
        user=AuthUser(id=uuid4(), username="operator1", name="Operator One", role="Operator"),
    )
    with patch("scanner_api.api.routes.auth.AuthService") as service_cls:
        service_cls.return_value.login = AsyncMock(return_value=result)
        response = client.post(
            "/api/v1/auth/login",
            json={"username": "operator1", "password": "secret1"},
            headers={"User-Agent": "scanner/1.0"},
        )

    body = response.json()
    assert response.status_code == 200
    assert body["success"] is True
    assert body["message"] == "Login successful"
    assert body["data"]["access_token"] == "access"
    _, kwargs = service_cls.return_value.login.await_args
    assert kwargs["user_agent"] == "scanner/1.0"


def test_protected_route_requires_token(client):
    response = client.get("/api/v1/dock-monitor/data")

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert response.json()["success"] is False


def test_admin_routes_reject_operators(client, as_user):
    as_user(role="Operator")

    response = client.get("/api/v1/admin/users")

    assert response.status_code == 403
    assert response.json()["errors"] == ["Insufficient role"]


def test_me_returns_current_user(client, as_user):
    user = as_user(role="Admin")

    response = client.get("/api/v1/auth/me")

    assert response.status_code == 200
    assert response.json()["data"]["user_id"] == str(user.id)


def test_unhandled_errors_are_enveloped(client, as_user):
    as_user()
    with patch("scanner_api.api.routes.dock_monitor.DockMonitorService") as service_cls:
        service_cls.return_value.get_data = AsyncMock(side_effect=RuntimeError("boom"))
        response = client.get("/api/v1/dock-monitor/data")

    body = response.json()
    assert response.status_code == 500
    assert body["message"] == "An internal server error occurred. Please try again later."
    assert body["errors"][0] == "boom"


def test_shutdown_disposes_database_engine():
    with patch("scanner_api.api.main.dispose_engine", new=AsyncMock()) as dispose:
        with TestClient(app):
            dispose.assert_not_awaited()
        dispose.assert_awaited_once()
