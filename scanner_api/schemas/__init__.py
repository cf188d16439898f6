"""
Public Pydantic schemas used by FastAPI routes, services, and tests.

Schemas are grouped by workflow module (orders, skid build, shipment load,
etc.); `common` holds the response envelope shared by every endpoint.
"""

from .common import ApiResponse, ErrorResponse  # noqa: F401
