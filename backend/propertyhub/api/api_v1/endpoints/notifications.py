"""In-app notification API"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func, and_, update
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.deps import get_db, get_current_user
from propertyhub.core.errors import NotFoundError
from propertyhub.models.notification import Notification
from propertyhub.models.user import User
from propertyhub.schemas.notification import NotificationResponse, NotificationListResponse

router = APIRouter()


@router.get("/", response_model=NotificationListResponse)
async def list_notifications(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = Query(False)) -> Any:
    conditions = [Notification.recipient_id == current_user.id]
    if unread_only:
        conditions.append(Notification.is_read == False)  # noqa: E712

    total = (await db.execute(
        select(func.count(Notification.id)).where(and_(*conditions))
    )).scalar() or 0
    unread = (await db.execute(
        select(func.count(Notification.id)).where(
            Notification.recipient_id == current_user.id,
            Notification.is_read == False  # noqa: E712
        )
    )).scalar() or 0

    result = await db.execute(
        select(Notification)
        .where(and_(*conditions))
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )

    return NotificationListResponse(
        data=[NotificationResponse.model_validate(n) for n in result.scalars().all()],
        total=total,
        unread=unread,
        page=page,
        limit=limit
    )


@router.put("/read-all")
async def mark_all_read(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)) -> Any:
    result = await db.execute(
        update(Notification)
        .where(Notification.recipient_id == current_user.id, Notification.is_read == False)  # noqa: E712
        .values(is_read=True)
    )
    await db.commit()
    return {"updated": result.rowcount or 0}


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    notification_id: int,
    is_read: Optional[bool] = Query(True)) -> Any:
    notification = await db.get(Notification, notification_id)
    if not notification or notification.recipient_id != current_user.id:
        raise NotFoundError("Notification not found")

    notification.is_read = is_read
    await db.commit()
    await db.refresh(notification)
    return NotificationResponse.model_validate(notification)
