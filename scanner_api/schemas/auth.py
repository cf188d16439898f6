from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class LoginRequest(BaseModel):
    """Username/password credentials."""
    username: str = Field(..., min_length=1, max_length=50, description="Username")
    password: str = Field(..., min_length=1, description="Password")


class RefreshRequest(BaseModel):
    """Request to refresh an access token."""
    refresh_token: str = Field(..., description="Refresh token")


class AuthUser(BaseModel):
    """Identity summary embedded in login responses."""
    id: UUID = Field(..., description="User ID")
    username: str = Field(...)
    name: str = Field(...)
    role: str = Field(..., description="Role name, e.g. Admin, Supervisor, Operator")
    location_id: Optional[str] = Field(None)
    is_supervisor: bool = Field(False)

    class Config:
        from_attributes = True


class LoginResult(BaseModel):
    """Issued token pair and the authenticated user."""
    token_type: str = Field("bearer", description="Token type, typically 'bearer'")
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    expires_at: datetime = Field(..., description="Access token expiry (UTC)")
    user: AuthUser


class OAuthToken(BaseModel):
    """Bare OAuth2 token response used by the password-form endpoint."""
    access_token: str
    token_type: str = "bearer"


class SessionValidation(BaseModel):
    """Result of validating a bearer token against its login session."""
    valid: bool
    user: Optional[AuthUser] = None
    error: Optional[str] = None


class UserRead(BaseModel):
    """User read model."""
    user_id: UUID = Field(..., validation_alias="id", description="User ID")
    username: str
    name: str
    nick_name: Optional[str] = None
    email: Optional[str] = None
    notification_name: Optional[str] = None
    notification_email: Optional[str] = None
    supervisor: Optional[str] = None
    menu_level: Optional[str] = None
    operation: Optional[str] = None
    code: Optional[str] = None
    role: str
    location_id: Optional[str] = None
    is_supervisor: bool = False
    is_active: bool = Field(..., description="Active flag")
    last_login_at: Optional[datetime] = None
    created_at: datetime = Field(..., description="Created timestamp")
    updated_at: datetime = Field(..., description="Updated timestamp")

    class Config:
        from_attributes = True
        populate_by_name = True


class UserCreate(BaseModel):
    """Admin create user payload."""
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=6, max_length=100, description="Password")
    name: Optional[str] = Field(None, max_length=100, description="Defaults to the username")
    nick_name: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = Field(None)
    notification_name: Optional[str] = Field(None, max_length=100)
    notification_email: Optional[EmailStr] = Field(None)
    supervisor: Optional[str] = Field(None, max_length=100)
    menu_level: Optional[str] = Field(None, max_length=50)
    operation: Optional[str] = Field(None, max_length=50)
    code: Optional[str] = Field(None, max_length=50)
    role: str = Field("Operator", max_length=50)
    location_id: Optional[str] = Field(None, max_length=50)
    is_supervisor: bool = Field(False)
    is_active: bool = Field(True)


class UserUpdate(BaseModel):
    """Admin update user payload; omitted fields are left unchanged."""
    username: Optional[str] = Field(None, min_length=1, max_length=50)
    password: Optional[str] = Field(None, min_length=6, max_length=100)
    name: Optional[str] = Field(None, max_length=100)
    nick_name: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = Field(None)
    notification_name: Optional[str] = Field(None, max_length=100)
    notification_email: Optional[EmailStr] = Field(None)
    supervisor: Optional[str] = Field(None, max_length=100)
    menu_level: Optional[str] = Field(None, max_length=50)
    operation: Optional[str] = Field(None, max_length=50)
    code: Optional[str] = Field(None, max_length=50)
    role: Optional[str] = Field(None, max_length=50)
    location_id: Optional[str] = Field(None, max_length=50)
    is_supervisor: Optional[bool] = Field(None)
    is_active: Optional[bool] = Field(None)
