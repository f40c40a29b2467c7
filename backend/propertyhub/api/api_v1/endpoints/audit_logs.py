"""
Audit trail

Every money or status mutation calls create_audit_log inside its own
transaction, so a row only exists when the change it records was committed.
"""

from typing import Any, List, Optional
from datetime import datetime
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from propertyhub.core.deps import get_db, get_current_user
from propertyhub.core.errors import BadRequestError
from propertyhub.core.permissions import VIEW_AUDIT_LOGS, is_tenant_scoped, require_permission
from propertyhub.models.audit_log import AuditLog, RESOURCE_TYPE_DISPLAY
from propertyhub.models.user import User
from propertyhub.schemas.audit_log import AuditLogResponse, AuditLogListResponse
from propertyhub.services.financial_statements import day_end, day_start

router = APIRouter()

RESOURCE_NAME_MAX = 100


def build_log_response(log: AuditLog) -> AuditLogResponse:
    return AuditLogResponse(
        id=log.id,
        user_id=log.user_id,
        user_name=log.user.full_name if log.user else "",
        action=log.action,
        action_display=log.action_display,
        resource_type=log.resource_type,
        resource_type_display=log.resource_type_display,
        resource_id=log.resource_id,
        resource_name=log.resource_name,
        description=log.description,
        old_value=log.old_value,
        new_value=log.new_value,
        ip_address=log.ip_address,
        created_at=log.created_at
    )


def visibility_conditions(user: User) -> List:
    # Contractor and property-manager accounts only see their own actions
    if is_tenant_scoped(user.role):
        return [AuditLog.user_id == user.id]
    return []


def parse_day(value: str, field: str) -> datetime:
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise BadRequestError(f"{field} must be YYYY-MM-DD")


@router.get("/", response_model=AuditLogListResponse)
async def list_logs(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    action: Optional[str] = Query(None),
    resource_type: Optional[str] = Query(None),
    resource_id: Optional[int] = Query(None),
    user_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None)) -> Any:
    """Audit trail, newest first; both date bounds are inclusive"""
    require_permission(current_user, VIEW_AUDIT_LOGS)

    conditions = visibility_conditions(current_user)
    if action:
        conditions.append(AuditLog.action == action)
    if resource_type:
        conditions.append(AuditLog.resource_type == resource_type)
    if resource_id:
        conditions.append(AuditLog.resource_id == resource_id)
    if user_id:
        conditions.append(AuditLog.user_id == user_id)
    if search:
        pattern = f"%{search}%"
        conditions.append(or_(
            AuditLog.resource_name.ilike(pattern),
            AuditLog.description.ilike(pattern)
        ))
    if start_date:
        conditions.append(AuditLog.created_at >= day_start(parse_day(start_date, "start_date").date()))
    if end_date:
        conditions.append(AuditLog.created_at <= day_end(parse_day(end_date, "end_date").date()))

    query = select(AuditLog).options(selectinload(AuditLog.user))
    count_query = select(func.count(AuditLog.id))
    if conditions:
        query = query.where(and_(*conditions))
        count_query = count_query.where(and_(*conditions))
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))

    return AuditLogListResponse(
        data=[build_log_response(log) for log in result.scalars().all()],
        total=total,
        page=page,
        limit=limit
    )


@router.get("/history/{resource_type}/{resource_id}", response_model=List[AuditLogResponse])
async def get_record_history(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    resource_type: str,
    resource_id: int) -> Any:
    """Timeline of one record, oldest first"""
    require_permission(current_user, VIEW_AUDIT_LOGS)
    if resource_type not in RESOURCE_TYPE_DISPLAY:
        raise BadRequestError(f"Unknown resource type: {resource_type}")

    conditions = visibility_conditions(current_user) + [
        AuditLog.resource_type == resource_type,
        AuditLog.resource_id == resource_id,
    ]
    result = await db.execute(
        select(AuditLog).options(selectinload(AuditLog.user))
        .where(and_(*conditions))
        .order_by(AuditLog.created_at, AuditLog.id)
    )
    return [build_log_response(log) for log in result.scalars().all()]


async def create_audit_log(
    db: AsyncSession,
    user_id: int,
    action: str,
    resource_type: str,
    resource_id: Optional[int] = None,
    resource_name: Optional[str] = None,
    description: Optional[str] = None,
    old_value: Optional[dict] = None,
    new_value: Optional[dict] = None,
    ip_address: Optional[str] = None) -> AuditLog:
    """Add an audit row to the session; the caller commits it with the change"""
    log = AuditLog(
        user_id=user_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        resource_name=(resource_name or "")[:RESOURCE_NAME_MAX] or None,
        description=description,
        old_value=old_value,
        new_value=new_value,
        ip_address=ip_address
    )
    db.add(log)
    return log
