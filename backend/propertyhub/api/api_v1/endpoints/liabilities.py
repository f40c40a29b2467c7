"""Liability API"""

from typing import Any, Optional
from datetime import datetime
from decimal import Decimal
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.api.api_v1.endpoints.audit_logs import create_audit_log
from propertyhub.core.deps import get_db, get_current_user, owner_conditions, is_visible_to
from propertyhub.core.errors import NotFoundError
from propertyhub.core.permissions import MANAGE_LIABILITIES, require_permission
from propertyhub.models.liability import Liability
from propertyhub.models.user import User
from propertyhub.schemas.liability import (
    LiabilityCreate, LiabilityUpdate, LiabilityResponse, LiabilityListResponse
)

router = APIRouter()


def build_liability_response(liability: Liability) -> LiabilityResponse:
    return LiabilityResponse(
        id=liability.id,
        name=liability.name,
        description=liability.description,
        category=liability.category,
        category_display=liability.category_display,
        amount=float(liability.amount or 0),
        due_date=liability.due_date,
        is_paid=liability.is_paid,
        is_overdue=liability.is_overdue,
        paid_date=liability.paid_date,
        creditor=liability.creditor,
        reference_number=liability.reference_number,
        notes=liability.notes,
        created_by=liability.created_by,
        created_at=liability.created_at
    )


async def get_visible_liability(db: AsyncSession, liability_id: int, user: User) -> Liability:
    liability = await db.get(Liability, liability_id)
    if not liability or not is_visible_to(liability, user):
        raise NotFoundError("Liability not found")
    return liability


@router.get("/", response_model=LiabilityListResponse)
async def list_liabilities(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    category: Optional[str] = Query(None),
    is_paid: Optional[bool] = Query(None)) -> Any:
    require_permission(current_user, MANAGE_LIABILITIES)

    conditions = owner_conditions(Liability, current_user)
    if category:
        conditions.append(Liability.category == category)
    if is_paid is not None:
        conditions.append(Liability.is_paid == is_paid)

    query = select(Liability)
    count_query = select(func.count(Liability.id))
    if conditions:
        query = query.where(and_(*conditions))
        count_query = count_query.where(and_(*conditions))
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(Liability.due_date.is_(None), Liability.due_date, Liability.id)
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))

    return LiabilityListResponse(
        data=[build_liability_response(item) for item in result.scalars().all()],
        total=total,
        page=page,
        limit=limit
    )


@router.post("/", response_model=LiabilityResponse)
async def create_liability(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    liability_in: LiabilityCreate) -> Any:
    require_permission(current_user, MANAGE_LIABILITIES)

    data = liability_in.model_dump()
    data["amount"] = Decimal(str(data["amount"]))
    liability = Liability(**data, is_paid=False, created_by=current_user.id)
    db.add(liability)
    await db.flush()

    await create_audit_log(db, current_user.id, "create", "liability", liability.id, liability.name)
    await db.commit()
    await db.refresh(liability)
    return build_liability_response(liability)


@router.get("/{liability_id}", response_model=LiabilityResponse)
async def get_liability(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    liability_id: int) -> Any:
    require_permission(current_user, MANAGE_LIABILITIES)
    return build_liability_response(await get_visible_liability(db, liability_id, current_user))


@router.put("/{liability_id}", response_model=LiabilityResponse)
async def update_liability(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    liability_id: int,
    liability_in: LiabilityUpdate) -> Any:
    require_permission(current_user, MANAGE_LIABILITIES)
    liability = await get_visible_liability(db, liability_id, current_user)

    update_data = liability_in.model_dump(exclude_unset=True)
    if "amount" in update_data and update_data["amount"] is not None:
        update_data["amount"] = Decimal(str(update_data["amount"]))
    for field, value in update_data.items():
        setattr(liability, field, value)

    if liability.is_paid and not liability.paid_date:
        liability.paid_date = datetime.utcnow()
    elif liability_in.is_paid is False:
        liability.paid_date = None

    await create_audit_log(
        db, current_user.id, "update", "liability", liability.id, liability.name,
        new_value=liability_in.model_dump(exclude_unset=True, mode="json")
    )
    await db.commit()
    await db.refresh(liability)
    return build_liability_response(liability)


@router.delete("/{liability_id}")
async def delete_liability(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    liability_id: int) -> Any:
    require_permission(current_user, MANAGE_LIABILITIES)
    liability = await get_visible_liability(db, liability_id, current_user)

    await create_audit_log(db, current_user.id, "delete", "liability", liability.id, liability.name)
    await db.delete(liability)
    await db.commit()
    return {"message": "Liability deleted"}
