"""Alternative revenue API"""

import logging
from typing import Any, Optional
from datetime import datetime
from decimal import Decimal
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from propertyhub.api.api_v1.endpoints.audit_logs import create_audit_log
from propertyhub.core.deps import get_db, get_current_user, owner_conditions, is_visible_to
from propertyhub.core.errors import BadRequestError, NotFoundError
from propertyhub.core.permissions import (
    APPROVE_EXPENSES, MANAGE_REVENUES, has_permission, require_permission
)
from propertyhub.models.operational_expense import AlternativeRevenue
from propertyhub.models.user import User
from propertyhub.schemas.operational_expense import (
    RevenueCreate, RevenueUpdate, RevenueResponse, RevenueListResponse, RejectRequest
)
from propertyhub.services.notifications import notify_senior_users

logger = logging.getLogger(__name__)

router = APIRouter()

DECIMAL_FIELDS = ("amount", "vat_rate", "output_vat_amount")


def build_revenue_response(revenue: AlternativeRevenue) -> RevenueResponse:
    return RevenueResponse(
        id=revenue.id,
        date=revenue.date,
        category=revenue.category,
        category_display=revenue.category_display,
        description=revenue.description,
        amount=float(revenue.amount or 0),
        source=revenue.source,
        reference_number=revenue.reference_number,
        notes=revenue.notes,
        document_url=revenue.document_url,
        is_recurring=bool(revenue.is_recurring),
        recurring_period=revenue.recurring_period,
        status=revenue.status,
        rejection_reason=revenue.rejection_reason,
        supply_type=revenue.supply_type or "STANDARD",
        vat_rate=float(revenue.vat_rate) if revenue.vat_rate is not None else None,
        output_vat_amount=float(revenue.output_vat_amount) if revenue.output_vat_amount is not None else None,
        created_by=revenue.created_by,
        creator_name=revenue.creator.full_name if revenue.creator else "",
        approved_by=revenue.approved_by,
        approved_at=revenue.approved_at,
        created_at=revenue.created_at
    )


def to_decimals(data: dict) -> dict:
    for field in DECIMAL_FIELDS:
        if data.get(field) is not None:
            data[field] = Decimal(str(data[field]))
    return data


async def get_visible_revenue(db: AsyncSession, revenue_id: int, user: User) -> AlternativeRevenue:
    result = await db.execute(
        select(AlternativeRevenue).options(selectinload(AlternativeRevenue.creator))
        .where(AlternativeRevenue.id == revenue_id)
    )
    revenue = result.scalar_one_or_none()
    if not revenue or not is_visible_to(revenue, user):
        raise NotFoundError("Revenue not found")
    return revenue


@router.get("/", response_model=RevenueListResponse)
async def list_revenues(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None)) -> Any:
    require_permission(current_user, MANAGE_REVENUES)

    conditions = owner_conditions(AlternativeRevenue, current_user)
    if status:
        conditions.append(AlternativeRevenue.status == status)
    if category:
        conditions.append(AlternativeRevenue.category == category)
    if start_date:
        conditions.append(AlternativeRevenue.date >= datetime.strptime(start_date, "%Y-%m-%d"))
    if end_date:
        conditions.append(AlternativeRevenue.date <= datetime.strptime(end_date, "%Y-%m-%d").replace(
            hour=23, minute=59, second=59))

    query = select(AlternativeRevenue).options(selectinload(AlternativeRevenue.creator))
    count_query = select(func.count(AlternativeRevenue.id))
    sum_query = select(func.coalesce(func.sum(AlternativeRevenue.amount), 0))
    if conditions:
        query = query.where(and_(*conditions))
        count_query = count_query.where(and_(*conditions))
        sum_query = sum_query.where(and_(*conditions))

    total = (await db.execute(count_query)).scalar() or 0
    total_amount = float((await db.execute(sum_query)).scalar() or 0)

    query = query.order_by(AlternativeRevenue.date.desc(), AlternativeRevenue.id.desc())
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))

    return RevenueListResponse(
        data=[build_revenue_response(e) for e in result.scalars().all()],
        total=total,
        page=page,
        limit=limit,
        total_amount=total_amount
    )


@router.post("/", response_model=RevenueResponse)
async def create_revenue(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    revenue_in: RevenueCreate) -> Any:
    require_permission(current_user, MANAGE_REVENUES)

    revenue = AlternativeRevenue(
        **to_decimals(revenue_in.model_dump()),
        status="PENDING",
        created_by=current_user.id
    )
    db.add(revenue)
    await db.flush()

    await notify_senior_users(
        db, current_user,
        f"{current_user.full_name} recorded alternative revenue: "
        f"{revenue_in.description} (R {revenue_in.amount:,.2f})",
        "ALTERNATIVE_REVENUE_ADDED", "alternative_revenue", revenue.id
    )
    await create_audit_log(
        db, current_user.id, "create", "revenue", revenue.id, revenue.description[:100],
        description=f"R{revenue_in.amount:,.2f} {revenue.category}"
    )
    await db.commit()

    logger.info(f"💾 Revenue {revenue.id} ({revenue.category}) R{revenue_in.amount:,.2f}")
    return build_revenue_response(await get_visible_revenue(db, revenue.id, current_user))


@router.get("/{revenue_id}", response_model=RevenueResponse)
async def get_revenue(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    revenue_id: int) -> Any:
    require_permission(current_user, MANAGE_REVENUES)
    return build_revenue_response(await get_visible_revenue(db, revenue_id, current_user))


@router.put("/{revenue_id}", response_model=RevenueResponse)
async def update_revenue(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    revenue_id: int,
    revenue_in: RevenueUpdate) -> Any:
    require_permission(current_user, MANAGE_REVENUES)
    revenue = await get_visible_revenue(db, revenue_id, current_user)

    if revenue.status == "APPROVED" and not has_permission(current_user.role, APPROVE_EXPENSES):
        raise BadRequestError("Approved revenues can only be changed by an approver")

    for field, value in to_decimals(revenue_in.model_dump(exclude_unset=True)).items():
        setattr(revenue, field, value)
    # Edited after rejection: back into the approval queue
    if revenue.status == "REJECTED":
        revenue.status = "PENDING"
        revenue.rejection_reason = None

    await create_audit_log(
        db, current_user.id, "update", "revenue", revenue.id, revenue.description[:100],
        new_value=revenue_in.model_dump(exclude_unset=True, mode="json")
    )
    await db.commit()
    return build_revenue_response(await get_visible_revenue(db, revenue.id, current_user))


@router.post("/{revenue_id}/approve", response_model=RevenueResponse)
async def approve_revenue(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    revenue_id: int) -> Any:
    require_permission(current_user, APPROVE_EXPENSES)
    revenue = await get_visible_revenue(db, revenue_id, current_user)

    revenue.status = "APPROVED"
    revenue.approved_by = current_user.id
    revenue.approved_at = datetime.utcnow()
    revenue.rejection_reason = None

    await create_audit_log(db, current_user.id, "approve", "revenue", revenue.id, revenue.description[:100])
    await db.commit()
    return build_revenue_response(await get_visible_revenue(db, revenue.id, current_user))


@router.post("/{revenue_id}/reject", response_model=RevenueResponse)
async def reject_revenue(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    revenue_id: int,
    reject_in: RejectRequest) -> Any:
    require_permission(current_user, APPROVE_EXPENSES)
    revenue = await get_visible_revenue(db, revenue_id, current_user)

    revenue.status = "REJECTED"
    revenue.rejection_reason = reject_in.reason
    revenue.approved_by = None
    revenue.approved_at = None

    await create_audit_log(
        db, current_user.id, "reject", "revenue", revenue.id, revenue.description[:100],
        description=reject_in.reason
    )
    await db.commit()
    return build_revenue_response(await get_visible_revenue(db, revenue.id, current_user))
