"""
Database seeding utilities for minimal reference data.

Seeds:
- Administrator account (credentials from SEED_ADMIN_USERNAME / SEED_ADMIN_PASSWORD)
- Default site settings row
- Default dock monitor settings row
- Default internal kanban settings row

Usage:
  python -m scanner_api.db.run_migrations upgrade head
  python -m scanner_api.db.seed
"""

from __future__ import annotations

import asyncio
import logging
from uuid import uuid4

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from scanner_api.core.security import get_password_hash
from scanner_api.core.settings import get_app_settings
from scanner_api.db.session import get_async_session

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
async def seed_all() -> None:
    """
    Seed the database with minimal reference data.

    Every step is idempotent so the function may run on each startup.
    """
    async for session in get_async_session():
        await _seed_admin_user(session)
        await _seed_single_row(session, "site_settings")
        await _seed_single_row(session, "dock_monitor_settings")
        await _seed_single_row(session, "internal_kanban_settings")
        await session.commit()


async def _seed_admin_user(session: AsyncSession) -> None:
    """Create the administrator account when no user with that username exists."""
    settings = get_app_settings()
    res = await session.execute(
        text("SELECT id FROM users WHERE username = :username"),
        {"username": settings.SEED_ADMIN_USERNAME},
    )
    if res.first():
        return

    await session.execute(
        text(
            """
            INSERT INTO users (id, username, password_hash, name, role, is_supervisor, is_active)
            VALUES (:id, :username, :password_hash, :name, 'Admin', true, true)
            ON CONFLICT ON CONSTRAINT uq_users_username DO NOTHING
            """
        ),
        {
            "id": str(uuid4()),
            "username": settings.SEED_ADMIN_USERNAME,
            "password_hash": get_password_hash(settings.SEED_ADMIN_PASSWORD),
            "name": "System Administrator",
        },
    )
    logger.info("Seeded administrator account '%s'", settings.SEED_ADMIN_USERNAME)


async def _seed_single_row(session: AsyncSession, table: str) -> None:
    """Insert a defaults-only row into a single-row settings table when it is empty."""
    res = await session.execute(text(f"SELECT id FROM {table} LIMIT 1"))
    if res.first():
        return
    await session.execute(
        text(f"INSERT INTO {table} (id) VALUES (:id)"),
        {"id": str(uuid4())},
    )
    logger.info("Seeded default row in %s", table)


# PUBLIC_INTERFACE
def main() -> None:
    """Entrypoint to run the asynchronous seeding."""
    asyncio.run(seed_all())


if __name__ == "__main__":
    main()
