"""Quotation API"""

import logging
from typing import Any, Optional
from decimal import Decimal
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.api.api_v1.endpoints.audit_logs import create_audit_log
from propertyhub.core.deps import get_db, get_current_user, owner_conditions, is_visible_to
from propertyhub.core.errors import BadRequestError, NotFoundError
from propertyhub.core.permissions import MANAGE_QUOTATIONS, require_permission
from propertyhub.models.lead import Lead
from propertyhub.models.quotation import Quotation
from propertyhub.models.user import User
from propertyhub.schemas.quotation import (
    QuotationCreate, QuotationStatusUpdate, QuotationResponse, QuotationListResponse
)
from propertyhub.services.numbering import next_number

logger = logging.getLogger(__name__)

router = APIRouter()

MONEY_FIELDS = ("subtotal", "tax", "total", "company_material_cost",
                "company_labour_cost", "estimated_profit")


def build_quotation_response(quotation: Quotation) -> QuotationResponse:
    return QuotationResponse(
        id=quotation.id,
        quote_number=quotation.quote_number,
        customer_name=quotation.customer_name,
        customer_email=quotation.customer_email,
        customer_phone=quotation.customer_phone,
        address=quotation.address,
        items=quotation.items or [],
        status=quotation.status,
        status_display=quotation.status_display,
        valid_until=quotation.valid_until,
        rejection_reason=quotation.rejection_reason,
        notes=quotation.notes,
        created_by=quotation.created_by,
        created_at=quotation.created_at,
        **{f: float(getattr(quotation, f) or 0) for f in MONEY_FIELDS}
    )


async def get_visible_quotation(db: AsyncSession, quotation_id: int, user: User) -> Quotation:
    quotation = await db.get(Quotation, quotation_id)
    if not quotation or not is_visible_to(quotation, user):
        raise NotFoundError("Quotation not found")
    return quotation


@router.get("/", response_model=QuotationListResponse)
async def list_quotations(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None)) -> Any:
    require_permission(current_user, MANAGE_QUOTATIONS)

    conditions = owner_conditions(Quotation, current_user)
    if status:
        conditions.append(Quotation.status == status)
    if search:
        pattern = f"%{search}%"
        conditions.append(or_(
            Quotation.quote_number.ilike(pattern),
            Quotation.customer_name.ilike(pattern)
        ))

    query = select(Quotation)
    count_query = select(func.count(Quotation.id))
    if conditions:
        query = query.where(and_(*conditions))
        count_query = count_query.where(and_(*conditions))
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(Quotation.created_at.desc(), Quotation.id.desc())
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))

    return QuotationListResponse(
        data=[build_quotation_response(q) for q in result.scalars().all()],
        total=total,
        page=page,
        limit=limit
    )


@router.post("/", response_model=QuotationResponse)
async def create_quotation(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    quotation_in: QuotationCreate) -> Any:
    require_permission(current_user, MANAGE_QUOTATIONS)

    if quotation_in.lead_id and not await db.get(Lead, quotation_in.lead_id):
        raise BadRequestError("Lead does not exist")

    data = quotation_in.model_dump(exclude={"items"})
    for field in MONEY_FIELDS:
        data[field] = Decimal(str(data[field]))

    quotation = Quotation(
        **data,
        quote_number=await next_number(db, Quotation.quote_number, "QUO-", 5),
        items=[item.model_dump() for item in quotation_in.items],
        status="DRAFT",
        created_by=current_user.id
    )
    db.add(quotation)
    await db.flush()

    await create_audit_log(db, current_user.id, "create", "quotation", quotation.id, quotation.quote_number)
    await db.commit()
    await db.refresh(quotation)

    logger.info(f"✅ Quotation {quotation.quote_number} created")
    return build_quotation_response(quotation)


@router.get("/{quotation_id}", response_model=QuotationResponse)
async def get_quotation(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    quotation_id: int) -> Any:
    require_permission(current_user, MANAGE_QUOTATIONS)
    return build_quotation_response(await get_visible_quotation(db, quotation_id, current_user))


@router.put("/{quotation_id}/status", response_model=QuotationResponse)
async def update_quotation_status(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    quotation_id: int,
    status_in: QuotationStatusUpdate) -> Any:
    require_permission(current_user, MANAGE_QUOTATIONS)
    quotation = await get_visible_quotation(db, quotation_id, current_user)

    old_status = quotation.status
    quotation.status = status_in.status
    if status_in.status == "REJECTED":
        quotation.rejection_reason = status_in.rejection_reason

    await create_audit_log(
        db, current_user.id, "status", "quotation", quotation.id, quotation.quote_number,
        old_value={"status": old_status}, new_value={"status": quotation.status}
    )
    await db.commit()
    await db.refresh(quotation)
    return build_quotation_response(quotation)


@router.delete("/{quotation_id}")
async def delete_quotation(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    quotation_id: int) -> Any:
    require_permission(current_user, MANAGE_QUOTATIONS)
    quotation = await get_visible_quotation(db, quotation_id, current_user)

    if quotation.status == "APPROVED":
        raise BadRequestError("Approved quotations cannot be deleted")

    await create_audit_log(db, current_user.id, "delete", "quotation", quotation.id, quotation.quote_number)
    await db.delete(quotation)
    await db.commit()
    return {"message": "Quotation deleted"}
