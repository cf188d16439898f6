from __future__ import annotations

import asyncio
import logging
import traceback
from datetime import datetime, timezone
from typing import List
from uuid import uuid4

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from scanner_api.core.logging import configure_logging, correlation_id_var, user_id_var
from scanner_api.core.settings import get_app_settings
from scanner_api.db.run_migrations import main as run_alembic
from scanner_api.db.seed import seed_all
from scanner_api.db.session import dispose_engine
from scanner_api.schemas.common import ErrorResponse, HealthStatus
from scanner_api.services.base import ServiceError

# Routers
from scanner_api.api.routes.auth import router as auth_router
from scanner_api.api.routes.users import router as users_router
from scanner_api.api.routes.master_data import router as masterdata_router
from scanner_api.api.routes.orders import router as orders_router
from scanner_api.api.routes.skid_build import router as skid_build_router
from scanner_api.api.routes.shipment_load import router as shipment_load_router
from scanner_api.api.routes.pre_shipment import router as pre_shipment_router
from scanner_api.api.routes.dock_monitor import router as dock_monitor_router
from scanner_api.api.routes.settings import router as settings_router, site_router as site_settings_router
from scanner_api.api.routes.kanban_exclusions import router as kanban_exclusions_router
from scanner_api.api.routes.toyota_config import router as toyota_config_router
from scanner_api.api.routes.reports import router as reports_router

settings = get_app_settings()

# Configure structured logging once at import
configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "An internal server error occurred. Please try again later."

openapi_tags = [
    {"name": "Health", "description": "Liveness probes."},
    {"name": "Auth", "description": "Login, token refresh, logout and session validation."},
    {"name": "Users", "description": "User administration endpoints."},
    {"name": "Master Data", "description": "Warehouses and offices."},
    {"name": "Orders", "description": "Order workbook uploads, orders and planned items."},
    {"name": "Skid Build", "description": "Skid build sessions, box scans and Toyota skid confirmation."},
    {"name": "Shipment Load", "description": "Trailer loading sessions and Toyota trailer confirmation."},
    {"name": "Pre-Shipment", "description": "Manifest-driven pre-shipment sessions."},
    {"name": "Dock Monitor", "description": "Dock board with on-time status per order."},
    {"name": "Settings", "description": "Internal kanban, dock monitor and site settings."},
    {"name": "Internal Kanban Exclusions", "description": "Part numbers excluded from internal kanban scanning."},
    {"name": "Toyota Config", "description": "Toyota SCS API configurations and connection tests."},
    {"name": "Reports", "description": "Exportable reports (CSV/Excel/PDF)."},
]

app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    openapi_tags=openapi_tags,
)

# CORS - avoid wildcard with credentials
cors_allow_credentials = settings.CORS_ALLOW_CREDENTIALS
if settings.CORS_ORIGINS == ["*"] and cors_allow_credentials:
    logger.warning("CORS_ALLOW_CREDENTIALS=True with '*' origins is not permitted; disabling credentials.")
    cors_allow_credentials = False

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=cors_allow_credentials,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """
    Enrich request context with a correlation id for logging and error responses.
    Adds 'X-Correlation-ID' to every response.
    """
    corr = request.headers.get("X-Correlation-ID") or request.headers.get("X-Request-ID") or str(uuid4())
    token_corr = correlation_id_var.set(corr)
    token_user = user_id_var.set(None)
    request.state.correlation_id = corr

    logger.info("Incoming request %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
    finally:
        correlation_id_var.reset(token_corr)
        user_id_var.reset(token_user)

    response.headers["X-Correlation-ID"] = corr
    return response


def _build_error_response(
    request: Request,
    status_code: int,
    message: str,
    errors: List[str] | None = None,
    headers: dict | None = None,
) -> JSONResponse:
    """Build a standardized ErrorResponse JSONResponse."""
    corr = getattr(request.state, "correlation_id", None)
    err = ErrorResponse(
        message=message,
        errors=errors or [],
        status=status_code,
        correlation_id=corr,
        path=request.url.path,
        method=request.method,
        timestamp=datetime.now(tz=timezone.utc),
    )
    response = JSONResponse(status_code=status_code, content=err.model_dump(mode="json"), headers=headers)
    if corr:
        response.headers["X-Correlation-ID"] = corr
    return response


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    """Business rule failures raised by services."""
    level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(level, "%s %s failed: %s %s", request.method, request.url.path, exc.message, exc.errors)
    return _build_error_response(request, exc.status_code, exc.message, exc.errors)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Global handler for HTTPException to produce a standardized error envelope.
    """
    if isinstance(exc.detail, str):
        message, errors = exc.detail, [exc.detail]
    else:
        message, errors = "HTTP Error", [str(exc.detail)]
    return _build_error_response(request, exc.status_code, message, errors, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Global handler for request validation errors with a standard structure.
    """
    errors = [
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    ]
    return _build_error_response(request, 422, "Request validation failed", errors)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler; the traceback is only included in development.
    """
    logger.exception("Unhandled error processing request")
    errors = [str(exc)]
    if settings.is_development:
        errors.append("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    return _build_error_response(request, 500, INTERNAL_ERROR_MESSAGE, errors)


@app.on_event("startup")
async def on_startup() -> None:
    """
    Run migrations and optional seeding on service startup.

    Alembic's env.py drives its own event loop, so the upgrade runs in a worker thread.
    """
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        try:
            logger.info("Running Alembic migrations: upgrade head")
            await asyncio.to_thread(run_alembic, ["upgrade", "head"])
            logger.info("Migrations completed.")
        except Exception as exc:
            logger.exception("Migration step failed: %s", exc)
            # Do not crash the app in case of transient DB issues; rely on retries or later readiness probes.

    if settings.AUTO_SEED:
        try:
            logger.info("Running database seeding...")
            await seed_all()
            logger.info("Seeding completed.")
        except Exception as exc:
            logger.exception("Seeding step failed: %s", exc)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    """Close the database connection pool."""
    await dispose_engine()


def _health() -> HealthStatus:
    return HealthStatus(status="Healthy", timestamp=datetime.now(tz=timezone.utc))


# PUBLIC_INTERFACE
@app.get(
    "/health",
    response_model=HealthStatus,
    summary="Health Check",
    tags=["Health"],
)
def root_health_check() -> HealthStatus:
    """Liveness probe outside the versioned prefix."""
    return _health()


# Build API v1 router and include sub-routers
api_v1 = APIRouter(prefix="/api/v1")


# PUBLIC_INTERFACE
@api_v1.get(
    "/health",
    response_model=HealthStatus,
    summary="Health Check",
    tags=["Health"],
)
def health_check() -> HealthStatus:
    """
    Basic liveness health check endpoint.

    Returns:
        HealthStatus: "Healthy" and the current server time.
    """
    return _health()


# Include all routers under /api/v1
api_v1.include_router(auth_router)
api_v1.include_router(users_router)
api_v1.include_router(masterdata_router)
api_v1.include_router(orders_router)
api_v1.include_router(skid_build_router)
api_v1.include_router(shipment_load_router)
api_v1.include_router(pre_shipment_router)
api_v1.include_router(dock_monitor_router)
api_v1.include_router(settings_router)
api_v1.include_router(site_settings_router)
api_v1.include_router(kanban_exclusions_router)
api_v1.include_router(toyota_config_router)
api_v1.include_router(reports_router)

# Attach api_v1 to app
app.include_router(api_v1)
