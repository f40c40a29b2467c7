"""Login, current user and user administration"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import select, func, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.api.api_v1.endpoints.audit_logs import create_audit_log
from propertyhub.core.deps import get_db, get_current_user
from propertyhub.core.errors import ConflictError, UnauthorizedError
from propertyhub.core.permissions import get_permissions, require_admin
from propertyhub.core.security import create_access_token, hash_password, verify_password
from propertyhub.models.user import User
from propertyhub.schemas.user import (
    LoginRequest, TokenResponse, UserCreate, UserListResponse, UserResponse
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def login(
    *,
    db: AsyncSession = Depends(get_db),
    request: Request,
    login_in: LoginRequest) -> Any:
    result = await db.execute(select(User).where(func.lower(User.email) == login_in.email.lower()))
    user = result.scalar_one_or_none()

    if not user or not verify_password(login_in.password, user.password):
        logger.warning(f"Failed login for {login_in.email}")
        raise UnauthorizedError("Invalid email or password")
    if not user.is_active:
        raise UnauthorizedError("This account has been deactivated")

    token = create_access_token(user.id, extra={"role": user.role})

    await create_audit_log(
        db, user.id, "login", "user", user.id, user.email,
        ip_address=request.client.host if request.client else None
    )
    await db.commit()

    return TokenResponse(
        access_token=token,
        user=UserResponse.model_validate(user),
        permissions=sorted(get_permissions(user.role))
    )


@router.get("/me", response_model=TokenResponse)
async def me(*, current_user: User = Depends(get_current_user)) -> Any:
    """Current user with a refreshed token"""
    return TokenResponse(
        access_token=create_access_token(current_user.id, extra={"role": current_user.role}),
        user=UserResponse.model_validate(current_user),
        permissions=sorted(get_permissions(current_user.role))
    )


@router.get("/users", response_model=UserListResponse)
async def list_users(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    role: Optional[str] = Query(None),
    search: Optional[str] = Query(None)) -> Any:
    require_admin(current_user)

    conditions = []
    if role:
        conditions.append(User.role == role)
    if search:
        pattern = f"%{search}%"
        conditions.append(or_(
            User.email.ilike(pattern),
            User.first_name.ilike(pattern),
            User.last_name.ilike(pattern),
        ))

    query = select(User)
    count_query = select(func.count(User.id))
    if conditions:
        query = query.where(and_(*conditions))
        count_query = count_query.where(and_(*conditions))

    total = (await db.execute(count_query)).scalar() or 0
    result = await db.execute(query.order_by(User.id).offset((page - 1) * limit).limit(limit))

    return UserListResponse(
        data=[UserResponse.model_validate(u) for u in result.scalars().all()],
        total=total,
        page=page,
        limit=limit
    )


@router.post("/users", response_model=UserResponse)
async def create_user(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    user_in: UserCreate) -> Any:
    require_admin(current_user)

    existing = await db.execute(select(User.id).where(func.lower(User.email) == user_in.email.lower()))
    if existing.scalar():
        raise ConflictError(f"A user with email {user_in.email} already exists")

    data = user_in.model_dump(exclude={"password"})
    user = User(**data, password=hash_password(user_in.password))
    db.add(user)
    await db.flush()

    await create_audit_log(
        db, current_user.id, "create", "user", user.id, user.email,
        description=f"Created {user.role_display} account"
    )
    await db.commit()
    await db.refresh(user)

    logger.info(f"✅ User {user.email} created by {current_user.email}")
    return UserResponse.model_validate(user)
