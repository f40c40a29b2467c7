import asyncio

from propertyhub.db import session as db_session
from propertyhub.db.base import Base
from propertyhub.db.migrations import run_migrations

# Registers every table on Base.metadata
import propertyhub.models  # noqa: F401


async def ensure_tables_exist() -> None:
    """Create missing tables (called on startup)"""
    async with db_session.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db() -> None:
    """Create tables and seed packages plus the first admin"""
    await ensure_tables_exist()
    async with db_session.SessionLocal() as db:
        await run_migrations(db)


if __name__ == "__main__":
    asyncio.run(init_db())
