from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from jose import JWTError, jwt
from passlib.context import CryptContext

from scanner_api.core.settings import get_app_settings

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

SUPERVISOR_ROLE = "SUPERVISOR"


# PUBLIC_INTERFACE
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password using bcrypt."""
    if not hashed_password:
        return False
    try:
        return _pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Stored value is not a recognised hash
        return False


# PUBLIC_INTERFACE
def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt."""
    return _pwd_context.hash(password)


def _create_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta],
    token_type: str,
) -> Tuple[str, datetime]:
    settings = get_app_settings()
    to_encode = data.copy()
    now = datetime.now(tz=timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=15))
    to_encode.update(
        {
            "exp": expire,
            "iat": now,
            "type": token_type,
            "jti": str(uuid.uuid4()),
            "iss": settings.JWT_ISSUER,
            "aud": settings.JWT_AUDIENCE,
        }
    )
    encoded_jwt = jwt.encode(
        to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM
    )
    return encoded_jwt, expire


# PUBLIC_INTERFACE
def access_token_lifetime(role: Optional[str]) -> timedelta:
    """Supervisors get a longer shift-length token than other roles."""
    settings = get_app_settings()
    if (role or "").upper() == SUPERVISOR_ROLE:
        return timedelta(minutes=settings.SUPERVISOR_TOKEN_EXPIRE_MINUTES)
    return timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)


# PUBLIC_INTERFACE
def create_access_token(user: Any, expires_minutes: Optional[int] = None) -> Tuple[str, datetime]:
    """
    Create a signed access token for a user.

    The token carries the user id as `sub` plus the claims the scanning clients
    read: unique_name, name, role, location_id and is_supervisor.

    Returns:
        (token, expires_at)
    """
    exp = (
        timedelta(minutes=expires_minutes)
        if expires_minutes
        else access_token_lifetime(getattr(user, "role", None))
    )
    payload: Dict[str, Any] = {
        "sub": str(user.id),
        "unique_name": user.username,
        "name": user.name or user.username,
        "role": user.role or "",
        "location_id": user.location_id or "",
        "is_supervisor": bool(user.is_supervisor),
    }
    return _create_token(payload, exp, token_type="access")


# PUBLIC_INTERFACE
def create_refresh_token(subject: str, expires_minutes: Optional[int] = None) -> Tuple[str, datetime]:
    """Create a signed refresh token with the user id as subject."""
    settings = get_app_settings()
    exp = timedelta(minutes=expires_minutes or settings.REFRESH_TOKEN_EXPIRE_MINUTES)
    return _create_token({"sub": subject}, exp, token_type="refresh")


# PUBLIC_INTERFACE
def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT; raises JWTError if invalid/expired."""
    settings = get_app_settings()
    return jwt.decode(
        token,
        settings.JWT_SECRET_KEY,
        algorithms=[settings.JWT_ALGORITHM],
        audience=settings.JWT_AUDIENCE,
        issuer=settings.JWT_ISSUER,
    )


# PUBLIC_INTERFACE
def get_token_subject(token: str) -> Optional[str]:
    """Return 'sub' from a token or None when token is invalid."""
    try:
        payload = decode_token(token)
        return payload.get("sub")
    except JWTError:
        return None
