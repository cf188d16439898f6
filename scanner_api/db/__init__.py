"""
Persistence layer for the scanning API.

Importing the package registers every ORM model on ``Base.metadata`` so
Alembic autogenerate and the seeder see the full schema.
"""

from . import models  # noqa: F401
from .base import Base
from .config import Settings, get_settings
from .session import dispose_engine, get_async_session, get_engine

__all__ = [
    "Base",
    "Settings",
    "dispose_engine",
    "get_async_session",
    "get_engine",
    "get_settings",
    "models",
]
