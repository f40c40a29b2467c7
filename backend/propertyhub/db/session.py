import os
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from propertyhub.core.config import settings


def get_async_database_url() -> str:
    return settings.SQLITE_DATABASE_URI.replace("sqlite:///", "sqlite+aiosqlite:///")


# SQL echo only when SQL_DEBUG=true
engine = create_async_engine(
    get_async_database_url(),
    echo=os.getenv("SQL_DEBUG", "false").lower() == "true",
    future=True,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
