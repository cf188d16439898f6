import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import httpx
import pytest

from scanner_api.db.models.toyota import ToyotaApiConfig
from scanner_api.schemas.toyota import TrailerOrder, TrailerSubmission
from scanner_api.services.toyota_api import (
    AUTH_FAILED_MESSAGE,
    ToyotaApiClient,
    ToyotaTokenError,
    parse_submission_response,
    parse_token_response,
)

TOKEN_URL = "https://login.example.test/oauth2/token"
API_BASE = "https://scs.example.test/api/v1/"


@pytest.fixture(autouse=True)
def clear_cache():
    ToyotaApiClient.clear_token_cache()
    yield
    ToyotaApiClient.clear_token_cache()


def _config(**overrides):
    values = dict(
        id=uuid4(),
        environment="QA",
        application_name="Scanner",
        client_id="client-1",
        client_secret="s3cret",
        token_url=TOKEN_URL,
        api_base_url=API_BASE,
        x_client_id="x-123",
        is_active=True,
    )
    values.update(overrides)
    return ToyotaApiConfig(**values)


def _client(handler, config=None):
    client = ToyotaApiClient(AsyncMock(), environment="qa", transport=httpx.MockTransport(handler))
    client.config_repo = AsyncMock()
    client.config_repo.get_active_by_environment.return_value = config if config is not None else _config()
    return client


def _submission():
    return TrailerSubmission(
        supplier="22806",
        route="GA11",
        run="01",
        trailer_number="TR-42",
        orders=[TrailerOrder(order="2024011501AB", dock="FL", pick_up="2024-01-16T14:00")],
    )


def test_token_response_prefers_expires_on():
    now = datetime(2024, 1, 16, 12, 0, tzinfo=timezone.utc)
    token = parse_token_response(
        {"access_token": "abc", "expires_in": "3599", "expires_on": "1705413600", "not_before": "1705410000"},
        now=now,
    )
    assert token.expires_in == 3599
    assert token.expires_at == datetime(2024, 1, 16, 14, 0, tzinfo=timezone.utc)
    assert token.not_before == datetime(2024, 1, 16, 13, 0, tzinfo=timezone.utc)


def test_token_response_without_access_token():
    with pytest.raises(ToyotaTokenError):
        parse_token_response({"expires_in": 3600})


@pytest.mark.parametrize(
    "status,body,success,error",
    [
        (200, {"code": 200, "confirmationNumber": "C1", "messages": []}, True, None),
        (200, {"code": "200", "confirmationNumber": "C1"}, True, None),
        (400, {"code": 400, "messages": [{"message": ["Order not found", "x"]}]}, False, "Order not found"),
        (200, {"code": 200, "messages": [{"message": "Skid mismatch"}]}, False, "Skid mismatch"),
        (500, {}, False, "Toyota API returned status 500"),
        (502, None, False, "Failed to parse Toyota API response"),
    ],
)
def test_parse_submission_response(status, body, success, error):
    result = parse_submission_response(status, body)
    assert result.success is success
    assert result.error_message == error


async def test_submit_trailer_posts_camel_case_payload():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if request.url == TOKEN_URL:
            assert b"grant_type=client_credentials" in request.content
            return httpx.Response(200, json={"access_token": "tok-1", "expires_in": "3600"})
        return httpx.Response(200, json={"code": 200, "confirmationNumber": "TRL-77", "messages": []})

    client = _client(handler)
    result = await client.submit_trailer(_submission())

    assert client.environment == "QA"
    assert result.success is True
    assert result.confirmation_number == "TRL-77"
    post = calls[-1]
    assert str(post.url) == "https://scs.example.test/api/v1/trailer"
    assert post.headers["Authorization"] == "Bearer tok-1"
    assert post.headers["x-client-id"] == "x-123"
    payload = json.loads(post.content)
    assert payload["trailerNumber"] == "TR-42"
    assert payload["orders"][0]["pickUp"] == "2024-01-16T14:00"
    assert "sealNumber" not in payload


async def test_token_is_cached_per_environment():
    token_requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url == TOKEN_URL:
            token_requests.append(request)
            return httpx.Response(200, json={"access_token": "tok-1", "expires_in": 3600})
        return httpx.Response(200, json={"code": 200, "confirmationNumber": "SKB-1"})

    client = _client(handler)
    await client.submit_skid_build([])
    await client.submit_skid_build([])

    assert len(token_requests) == 1


async def test_token_failure_is_reported_as_auth_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, text="invalid_client")

    result = await _client(handler).submit_trailer(_submission())

    assert result.success is False
    assert result.status_code == 401
    assert result.error_message == AUTH_FAILED_MESSAGE


async def test_transport_errors_never_raise():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url == TOKEN_URL:
            return httpx.Response(200, json={"access_token": "tok-1"})
        raise httpx.ConnectError("connection refused")

    result = await _client(handler).submit_trailer(_submission())

    assert result.success is False
    assert result.status_code == 500
    assert result.error_message.startswith("Internal error:")
