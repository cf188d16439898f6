"""Alembic environment; configured in code by scanner_api.db.run_migrations."""

from __future__ import annotations

import asyncio

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from scanner_api.db import models  # noqa: F401
from scanner_api.db.base import Base
from scanner_api.db.config import get_settings

config = context.config
target_metadata = Base.metadata

_COMPARE = {"compare_type": True, "compare_server_default": True}


def _offline() -> None:
    url = config.get_main_option("sqlalchemy.url") or get_settings().sync_database_url
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_COMPARE,
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata, **_COMPARE)
    with context.begin_transaction():
        context.run_migrations()


async def _online() -> None:
    # short lived engine; the application pool is not touched
    engine = create_async_engine(get_settings().async_database_url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    _offline()
else:
    asyncio.run(_online())
