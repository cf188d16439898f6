from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.db.models.toyota import ToyotaApiConfig
from scanner_api.repositories.toyota import ToyotaConfigRepository
from scanner_api.schemas.common import ApiResponse
from scanner_api.schemas.toyota import (
    SECRET_MASK,
    ConnectionTestResult,
    ToyotaConfigCreate,
    ToyotaConfigRead,
    ToyotaConfigUpdate,
)
from scanner_api.services.base import BaseService, NotFoundError, ServiceError
from scanner_api.services.toyota_api import ToyotaApiClient, ToyotaTokenError

logger = logging.getLogger(__name__)

ENVIRONMENTS = ("QA", "PROD", "DEV")


def _environment(value: str) -> str:
    env = (value or "").strip().upper()
    if env not in ENVIRONMENTS:
        raise ServiceError("Invalid environment", [f"Environment must be one of {', '.join(ENVIRONMENTS)}"])
    return env


def _read(config: ToyotaApiConfig) -> ToyotaConfigRead:
    return ToyotaConfigRead(
        id=config.id,
        environment=config.environment,
        application_name=config.application_name,
        client_id=config.client_id,
        client_secret=SECRET_MASK,
        token_url=config.token_url,
        api_base_url=config.api_base_url,
        resource_url=config.resource_url,
        x_client_id=config.x_client_id,
        is_active=config.is_active,
        created_at=config.created_at,
        updated_at=config.updated_at,
    )


class ToyotaConfigService(BaseService):
    """Toyota SCS API configurations; secrets never leave the service unmasked."""

    def __init__(self, session: AsyncSession, client: Optional[ToyotaApiClient] = None) -> None:
        super().__init__(session)
        self.repo = ToyotaConfigRepository(session)
        self.client = client or ToyotaApiClient(session)

    async def _get(self, config_id: UUID) -> ToyotaApiConfig:
        config = await self.repo.get(config_id)
        if not config:
            raise NotFoundError("Toyota API configuration not found", [f"No configuration found with ID {config_id}"])
        return config

    async def list_configs(self) -> List[ToyotaConfigRead]:
        return [_read(c) for c in await self.repo.list_all()]

    async def get_config(self, config_id: UUID) -> ToyotaConfigRead:
        return _read(await self._get(config_id))

    # PUBLIC_INTERFACE
    async def get_active_for_environment(self, environment: str) -> ToyotaConfigRead:
        config = await self.repo.get_active_by_environment(environment)
        if not config:
            raise NotFoundError(
                "Toyota API configuration not found",
                [f"No active configuration found for environment: {environment}"],
            )
        return _read(config)

    # PUBLIC_INTERFACE
    async def create_config(self, payload: ToyotaConfigCreate, user: Optional[str] = None) -> ToyotaConfigRead:
        data = payload.model_dump()
        data["environment"] = _environment(payload.environment)
        config = ToyotaApiConfig(**data, created_by=user, updated_by=user)
        await self.repo.add(config)
        await self.repo.flush()
        await self.commit()
        logger.info("Toyota API configuration created for %s by %s", config.environment, user or "-")
        return _read(config)

    # PUBLIC_INTERFACE
    async def update_config(
        self, config_id: UUID, payload: ToyotaConfigUpdate, user: Optional[str] = None
    ) -> ToyotaConfigRead:
        """Apply the non-empty fields of the payload; a masked secret is left unchanged."""
        config = await self._get(config_id)
        for field, value in payload.model_dump(exclude_unset=True).items():
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            if field == "environment":
                value = _environment(value)
            if field == "client_secret" and value == SECRET_MASK:
                continue
            setattr(config, field, value)
        config.updated_by = user
        await self.repo.flush()
        await self.commit()
        ToyotaApiClient.clear_token_cache()
        logger.info("Toyota API configuration %s updated by %s", config_id, user or "-")
        return _read(config)

    # PUBLIC_INTERFACE
    async def delete_config(self, config_id: UUID) -> None:
        config = await self._get(config_id)
        await self.repo.delete(config)
        await self.commit()
        ToyotaApiClient.clear_token_cache()
        logger.info("Toyota API configuration %s deleted", config_id)

    # PUBLIC_INTERFACE
    async def test_connection(self, config_id: UUID) -> ApiResponse[ConnectionTestResult]:
        """
        Request an OAuth token with the configuration.

        A rejected request is still a successful call; the outcome is carried
        in the result's `success` flag and `error`.
        """
        config = await self._get(config_id)
        logger.info("Testing Toyota API connection for config %s (%s)", config_id, config.environment)
        try:
            token = await self.client.request_token(config)
        except (ToyotaTokenError, httpx.HTTPError) as exc:
            logger.warning("Toyota API connection test failed for config %s: %s", config_id, exc)
            result = ConnectionTestResult(
                success=False,
                message="Failed to obtain OAuth token from Toyota API",
                error=str(exc),
            )
            return ApiResponse.ok(result, "Connection test failed")

        details = f"Token expires at: {token.expires_at:%Y-%m-%d %H:%M:%S} UTC"
        if token.not_before:
            details += f" | Valid from: {token.not_before:%Y-%m-%d %H:%M:%S} UTC"
        result = ConnectionTestResult(
            success=True,
            message=f"Successfully connected to Toyota API and obtained OAuth token. {details}",
            token_preview=token.preview,
            expires_in=token.expires_in,
            expires_on=token.expires_on,
            not_before=token.not_before,
        )
        logger.info("Toyota API connection test successful for config %s", config_id)
        return ApiResponse.ok(result, "Connection test successful")
