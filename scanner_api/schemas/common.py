from __future__ import annotations

from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


# PUBLIC_INTERFACE
class ApiResponse(BaseModel, Generic[T]):
    """Uniform response envelope used by every endpoint."""
    success: bool = Field(..., description="True when the operation succeeded")
    message: str = Field("", description="Human readable message")
    data: Optional[T] = Field(default=None, description="Operation payload")
    errors: List[str] = Field(default_factory=list, description="Error details, empty on success")

    @classmethod
    def ok(cls, data: Optional[T] = None, message: str = "") -> "ApiResponse[T]":
        return cls(success=True, message=message, data=data, errors=[])

    @classmethod
    def fail(cls, message: str, errors: Optional[List[str]] = None, data: Optional[T] = None) -> "ApiResponse[T]":
        return cls(success=False, message=message, data=data, errors=errors or [])


class HealthStatus(BaseModel):
    """Liveness probe payload."""
    status: str = Field("Healthy", description="Service health")
    timestamp: datetime = Field(..., description="Server time (UTC)")


# PUBLIC_INTERFACE
class ErrorResponse(BaseModel):
    """Error envelope returned by the global exception handlers."""
    success: bool = Field(False, description="Always false for errors")
    message: str = Field(..., description="Human readable error summary")
    data: Optional[dict] = Field(default=None, description="Always null for errors")
    errors: List[str] = Field(default_factory=list, description="Error details")
    status: int = Field(..., description="HTTP status code")
    correlation_id: Optional[str] = Field(default=None, description="Request correlation ID")
    path: Optional[str] = Field(default=None, description="Request path")
    method: Optional[str] = Field(default=None, description="HTTP method")
    timestamp: datetime = Field(..., description="Error timestamp (UTC)")
