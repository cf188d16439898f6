"""
Toyota SCS (Supplier Communication System) HTTP client.

Authenticates with OAuth2 client credentials per environment and posts
skid build confirmations to `{api_base_url}/skid` and trailer (shipment load)
confirmations to `{api_base_url}/trailer`.

Submission failures never raise: they are normalised into a
ScsSubmissionResult so callers can record the Toyota status on their rows.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.core.settings import get_app_settings
from scanner_api.db.models.toyota import ToyotaApiConfig
from scanner_api.repositories.toyota import ToyotaConfigRepository
from scanner_api.schemas.toyota import (
    ScsSubmissionResult,
    SkidBuildSubmission,
    TrailerSubmission,
)

logger = logging.getLogger(__name__)

# Cached tokens are refreshed this long before they expire
TOKEN_REFRESH_MARGIN = timedelta(minutes=5)
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600

AUTH_FAILED_MESSAGE = "Failed to authenticate with Toyota API"
CONFIG_NOT_FOUND_MESSAGE = "Toyota API configuration not found"


class ToyotaTokenError(Exception):
    """Raised when the OAuth token endpoint rejects a request."""


class ScsToken:
    """Access token issued by the Toyota OAuth endpoint."""

    def __init__(
        self,
        access_token: str,
        expires_at: datetime,
        expires_in: int,
        expires_on: Optional[datetime] = None,
        not_before: Optional[datetime] = None,
    ) -> None:
        self.access_token = access_token
        self.expires_at = expires_at
        self.expires_in = expires_in
        self.expires_on = expires_on
        self.not_before = not_before

    @property
    def preview(self) -> str:
        return f"{self.access_token[:20]}..." if len(self.access_token) > 20 else self.access_token


def _as_int(value: Any) -> Optional[int]:
    # The token endpoint returns numbers as strings ("3599")
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _from_unix(value: Any) -> Optional[datetime]:
    seconds = _as_int(value)
    if seconds is None:
        return None
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


# PUBLIC_INTERFACE
def parse_token_response(body: Dict[str, Any], now: Optional[datetime] = None) -> ScsToken:
    """
    Build a ScsToken from an OAuth token response body.

    The absolute `expires_on` timestamp is preferred over `expires_in`.
    """
    access_token = body.get("access_token")
    if not access_token:
        raise ToyotaTokenError("Token response did not contain an access_token")

    now = now or datetime.now(tz=timezone.utc)
    expires_in = _as_int(body.get("expires_in")) or DEFAULT_TOKEN_LIFETIME_SECONDS
    expires_on = _from_unix(body.get("expires_on"))
    expires_at = expires_on or now + timedelta(seconds=expires_in)
    return ScsToken(
        access_token=access_token,
        expires_at=expires_at,
        expires_in=expires_in,
        expires_on=expires_on,
        not_before=_from_unix(body.get("not_before")),
    )


# PUBLIC_INTERFACE
def parse_submission_response(status_code: int, body: Any) -> ScsSubmissionResult:
    """
    Normalise a Toyota SCS response.

    Success means `code` 200 and no messages; the error message is the first
    text of the first message.
    """
    if not isinstance(body, dict):
        return ScsSubmissionResult(
            success=False,
            status_code=status_code,
            error_message="Failed to parse Toyota API response",
        )

    code = _as_int(body.get("code"))
    if code is None:
        code = status_code
    messages = body.get("messages") or []
    error_message = None
    if messages:
        first = messages[0] if isinstance(messages[0], dict) else {}
        texts = first.get("message") or []
        if isinstance(texts, str):
            texts = [texts]
        error_message = texts[0] if texts else None

    success = code == 200 and not messages
    return ScsSubmissionResult(
        success=success,
        status_code=code,
        confirmation_number=body.get("confirmationNumber"),
        error_message=None if success else (error_message or f"Toyota API returned status {code}"),
        raw=body,
    )


def _failure(status_code: int, message: str) -> ScsSubmissionResult:
    return ScsSubmissionResult(success=False, status_code=status_code, error_message=message)


class ToyotaApiClient:
    """
    Client for the Toyota SCS API of one environment (QA, PROD or DEV).

    Tokens are cached per environment at class level so every request-scoped
    client shares them.
    """

    _token_cache: Dict[str, Tuple[str, datetime]] = {}

    def __init__(
        self,
        session: AsyncSession,
        environment: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ) -> None:
        settings = get_app_settings()
        self.config_repo = ToyotaConfigRepository(session)
        self.environment = (environment or settings.TOYOTA_ENVIRONMENT).upper()
        self.timeout = timeout or settings.TOYOTA_HTTP_TIMEOUT_SECONDS
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    @classmethod
    def clear_token_cache(cls) -> None:
        cls._token_cache.clear()

    # PUBLIC_INTERFACE
    async def request_token(self, config: ToyotaApiConfig) -> ScsToken:
        """
        Request a new client-credentials token for a configuration.

        Raises:
            ToyotaTokenError: when the endpoint answers with a non-2xx status or
            an unusable body.
            httpx.HTTPError: on transport failures.
        """
        data = {
            "grant_type": "client_credentials",
            "client_id": config.client_id,
            "client_secret": config.client_secret,
        }
        async with self._client() as client:
            response = await client.post(config.token_url, data=data)
        if response.is_error:
            logger.error(
                "Toyota OAuth token request failed: status=%s body=%s",
                response.status_code,
                response.text,
            )
            raise ToyotaTokenError(f"Token endpoint returned {response.status_code}: {response.text}")
        try:
            body = response.json()
        except json.JSONDecodeError as exc:
            raise ToyotaTokenError("Token endpoint returned invalid JSON") from exc
        return parse_token_response(body)

    # PUBLIC_INTERFACE
    async def get_access_token(self) -> Optional[str]:
        """Return a cached token or request a new one; None when authentication fails."""
        now = datetime.now(tz=timezone.utc)
        cached = self._token_cache.get(self.environment)
        if cached and cached[1] > now + TOKEN_REFRESH_MARGIN:
            logger.debug("Using cached Toyota token for %s", self.environment)
            return cached[0]

        config = await self.config_repo.get_active_by_environment(self.environment)
        if not config:
            logger.error("No active Toyota API config for environment %s", self.environment)
            return None

        try:
            token = await self.request_token(config)
        except (ToyotaTokenError, httpx.HTTPError):
            logger.exception("Failed to obtain Toyota token for %s", self.environment)
            return None

        self._token_cache[self.environment] = (token.access_token, token.expires_at)
        logger.info("Cached Toyota token for %s until %s", self.environment, token.expires_at.isoformat())
        return token.access_token

    async def _post(self, path: str, payload: Any, label: str) -> ScsSubmissionResult:
        try:
            token = await self.get_access_token()
            if not token:
                return _failure(401, AUTH_FAILED_MESSAGE)

            config = await self.config_repo.get_active_by_environment(self.environment)
            if not config:
                return _failure(500, CONFIG_NOT_FOUND_MESSAGE)

            headers = {"Authorization": f"Bearer {token}"}
            if config.x_client_id:
                headers["x-client-id"] = config.x_client_id

            endpoint = f"{config.api_base_url.rstrip('/')}/{path}"
            logger.info("Posting %s to Toyota SCS: %s", label, endpoint)
            logger.debug("Toyota %s payload: %s", label, json.dumps(payload))

            async with self._client() as client:
                response = await client.post(endpoint, json=payload, headers=headers)
            logger.info("Toyota %s response: status=%s body=%s", label, response.status_code, response.text)

            try:
                body = response.json()
            except json.JSONDecodeError:
                body = None
            return parse_submission_response(response.status_code, body)
        except Exception as exc:
            logger.exception("Error submitting %s to Toyota SCS", label)
            return _failure(500, f"Internal error: {exc}")

    # PUBLIC_INTERFACE
    async def submit_skid_build(self, submissions: List[SkidBuildSubmission]) -> ScsSubmissionResult:
        """POST skid build confirmations (one entry per order) to /skid."""
        payload = [s.to_wire() for s in submissions]
        return await self._post("skid", payload, "skid build")

    # PUBLIC_INTERFACE
    async def submit_trailer(self, submission: TrailerSubmission) -> ScsSubmissionResult:
        """POST a trailer (shipment load) confirmation to /trailer."""
        return await self._post("trailer", submission.to_wire(), "trailer")

