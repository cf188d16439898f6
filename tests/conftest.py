"""
Shared fixtures.

Services are exercised with their repositories replaced by AsyncMocks so no
database is needed.
"""

import os
from unittest.mock import AsyncMock, MagicMock

import pytest

# Keep the app from touching a database at import/startup.
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")
os.environ.setdefault("AUTO_SEED", "false")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-the-scanner-api-suite")


@pytest.fixture
def db_session():
    """AsyncSession stand-in; commit/rollback are awaitable."""
    session = MagicMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.execute = AsyncMock(return_value=MagicMock())
    return session
