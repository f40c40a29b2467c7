"""In-app notifications"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.permissions import (
    CONTRACTOR_SENIOR_MANAGER, SENIOR_ADMIN, is_admin, is_contractor
)
from propertyhub.models.notification import Notification
from propertyhub.models.user import User

logger = logging.getLogger(__name__)


def create_notification(
    db: AsyncSession,
    recipient: User,
    message: str,
    type: str,
    related_entity_type: Optional[str] = None,
    related_entity_id: Optional[int] = None) -> Notification:
    """Adds the notification to the session; the caller commits"""
    notification = Notification(
        recipient_id=recipient.id,
        recipient_role=recipient.role,
        message=message,
        type=type,
        related_entity_type=related_entity_type,
        related_entity_id=related_entity_id,
    )
    db.add(notification)
    return notification


async def notify_roles(
    db: AsyncSession,
    roles: Iterable[str],
    message: str,
    type: str,
    related_entity_type: Optional[str] = None,
    related_entity_id: Optional[int] = None,
    exclude_user_id: Optional[int] = None) -> List[Notification]:
    """Notify every active user holding one of the roles"""
    result = await db.execute(
        select(User).where(User.role.in_(list(roles)), User.is_active == True)  # noqa: E712
    )
    created = []
    for user in result.scalars().all():
        if user.id == exclude_user_id:
            continue
        created.append(create_notification(
            db, user, message, type, related_entity_type, related_entity_id
        ))
    logger.debug(f"🔔 {type}: notified {len(created)} user(s)")
    return created


def senior_roles_for(role: str) -> List[str]:
    """Who signs off on records created by a user with this role"""
    if is_admin(role):
        return [SENIOR_ADMIN]
    if is_contractor(role):
        return [CONTRACTOR_SENIOR_MANAGER]
    return []


async def notify_senior_users(
    db: AsyncSession,
    author: User,
    message: str,
    type: str,
    related_entity_type: Optional[str] = None,
    related_entity_id: Optional[int] = None) -> List[Notification]:
    roles = senior_roles_for(author.role)
    if not roles:
        return []
    return await notify_roles(
        db, roles, message, type, related_entity_type, related_entity_id,
        exclude_user_id=author.id
    )
