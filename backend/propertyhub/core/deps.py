"""Request dependencies: database session and the authenticated user"""
from typing import AsyncGenerator, List, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.errors import UnauthorizedError
from propertyhub.core.permissions import is_tenant_scoped
from propertyhub.core.security import decode_access_token
from propertyhub.db import session as db_session
from propertyhub.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with db_session.SessionLocal() as session:
        yield session


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    if not credentials:
        raise UnauthorizedError("Authentication required")

    payload = decode_access_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        raise UnauthorizedError("Invalid or expired token")

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise UnauthorizedError("Invalid or expired token")

    user = await db.get(User, user_id)
    if not user or not user.is_active:
        raise UnauthorizedError("User not found or inactive")
    return user


def owner_conditions(model, user: User) -> List:
    """Restrict tenant-scoped roles to rows they created"""
    if is_tenant_scoped(user.role):
        return [model.created_by == user.id]
    return []


def is_visible_to(row, user: User) -> bool:
    return not is_tenant_scoped(user.role) or row.created_by == user.id
