"""CRM lead API"""

from typing import Any, Optional
from decimal import Decimal
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.api.api_v1.endpoints.audit_logs import create_audit_log
from propertyhub.core.deps import get_db, get_current_user, owner_conditions, is_visible_to
from propertyhub.core.errors import NotFoundError
from propertyhub.core.permissions import MANAGE_LEADS, require_permission
from propertyhub.models.lead import Lead
from propertyhub.models.user import User
from propertyhub.schemas.crm import LeadCreate, LeadStatusUpdate, LeadResponse, LeadListResponse

router = APIRouter()


def build_lead_response(lead: Lead) -> LeadResponse:
    return LeadResponse(
        id=lead.id,
        customer_name=lead.customer_name,
        customer_email=lead.customer_email,
        customer_phone=lead.customer_phone,
        address=lead.address,
        service_type=lead.service_type,
        description=lead.description,
        estimated_value=float(lead.estimated_value) if lead.estimated_value is not None else None,
        status=lead.status,
        status_display=lead.status_display,
        notes=lead.notes,
        created_by=lead.created_by,
        created_at=lead.created_at
    )


@router.get("/", response_model=LeadListResponse)
async def list_leads(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    service_type: Optional[str] = Query(None),
    search: Optional[str] = Query(None)) -> Any:
    require_permission(current_user, MANAGE_LEADS)

    conditions = owner_conditions(Lead, current_user)
    if status:
        conditions.append(Lead.status == status)
    if service_type:
        conditions.append(Lead.service_type == service_type)
    if search:
        conditions.append(or_(
            Lead.customer_name.ilike(f"%{search}%"),
            Lead.customer_email.ilike(f"%{search}%")
        ))

    query = select(Lead)
    count_query = select(func.count(Lead.id))
    if conditions:
        query = query.where(and_(*conditions))
        count_query = count_query.where(and_(*conditions))
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(Lead.created_at.desc())
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))

    return LeadListResponse(
        data=[build_lead_response(lead) for lead in result.scalars().all()],
        total=total,
        page=page,
        limit=limit
    )


@router.post("/", response_model=LeadResponse)
async def create_lead(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    lead_in: LeadCreate) -> Any:
    require_permission(current_user, MANAGE_LEADS)

    data = lead_in.model_dump()
    if data["estimated_value"] is not None:
        data["estimated_value"] = Decimal(str(data["estimated_value"]))
    lead = Lead(**data, status="NEW", created_by=current_user.id)
    db.add(lead)
    await db.flush()

    await create_audit_log(db, current_user.id, "create", "lead", lead.id, lead.customer_name)
    await db.commit()
    await db.refresh(lead)
    return build_lead_response(lead)


@router.put("/{lead_id}/status", response_model=LeadResponse)
async def update_lead_status(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    lead_id: int,
    status_in: LeadStatusUpdate) -> Any:
    require_permission(current_user, MANAGE_LEADS)

    lead = await db.get(Lead, lead_id)
    if not lead or not is_visible_to(lead, current_user):
        raise NotFoundError("Lead not found")

    old_status = lead.status
    lead.status = status_in.status
    if status_in.notes is not None:
        lead.notes = status_in.notes

    await create_audit_log(
        db, current_user.id, "update_status", "lead", lead.id, lead.customer_name,
        old_value={"status": old_status}, new_value={"status": lead.status}
    )
    await db.commit()
    await db.refresh(lead)
    return build_lead_response(lead)
