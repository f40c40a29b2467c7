"""
Pytest configuration and fixtures

Every test gets a fresh SQLite file database with the startup migrations
applied (system_config, seeded packages and the first admin).
"""
import os
import tempfile
from pathlib import Path

_tmp_dir = tempfile.mkdtemp(prefix="propertyhub-tests-")
os.environ["SQLITE_DATABASE_URI"] = f"sqlite:///{Path(_tmp_dir) / 'test.db'}"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["EMAIL_BACKEND"] = "console"
os.environ["LOG_TO_FILE"] = "false"

from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text

from propertyhub.core.security import create_access_token, hash_password
from propertyhub.db import session as db_session
from propertyhub.db.base import Base
from propertyhub.db.migrations import run_migrations
from propertyhub.main import app
from propertyhub.models.user import User
from propertyhub.services import email as email_service

TEST_PASSWORD = "secret123"
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest.fixture
async def db():
    async with db_session.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with db_session.SessionLocal() as session:
        await run_migrations(session)
        yield session

    async with db_session.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.execute(text("DROP TABLE IF EXISTS system_config"))
    await db_session.engine.dispose()


@pytest.fixture
async def client(db):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture(autouse=True)
def clear_outbox():
    email_service.outbox.clear()
    yield
    email_service.outbox.clear()


@pytest.fixture
def make_user(db):
    async def _make(role: str, email: str = None, **kwargs) -> User:
        user = User(
            email=email or f"{role.lower()}-{uuid4().hex[:8]}@propertyhub.co.za",
            password=TEST_PASSWORD_HASH,
            first_name=kwargs.pop("first_name", role.title()),
            last_name=kwargs.pop("last_name", "Tester"),
            role=role,
            is_active=kwargs.pop("is_active", True),
            **kwargs,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user
    return _make


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, extra={'role': user.role})}"}
