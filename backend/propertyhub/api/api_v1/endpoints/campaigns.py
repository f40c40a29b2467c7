"""Email campaign API"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.api.api_v1.endpoints.audit_logs import create_audit_log
from propertyhub.core.deps import get_db, get_current_user
from propertyhub.core.errors import BadRequestError, NotFoundError
from propertyhub.core.permissions import MANAGE_CAMPAIGNS, require_permission
from propertyhub.models.campaign import Campaign
from propertyhub.models.user import User
from propertyhub.schemas.crm import (
    CampaignCreate, CampaignUpdate, CampaignResponse, CampaignListResponse,
    RecipientPreview, CampaignSendResult
)
from propertyhub.services import campaigns as campaign_service

router = APIRouter()

# Fields that cannot change once a campaign has gone out
CONTENT_FIELDS = {"subject", "html_body", "target_criteria", "scheduled_for"}


def build_campaign_response(campaign: Campaign) -> CampaignResponse:
    return CampaignResponse(
        id=campaign.id,
        name=campaign.name,
        description=campaign.description,
        subject=campaign.subject,
        html_body=campaign.html_body,
        target_criteria=campaign.target_criteria or {},
        status=campaign.status,
        status_display=campaign.status_display,
        scheduled_for=campaign.scheduled_for,
        sent_at=campaign.sent_at,
        total_recipients=campaign.total_recipients or 0,
        total_sent=campaign.total_sent or 0,
        total_failed=campaign.total_failed or 0,
        last_error=campaign.last_error,
        created_by=campaign.created_by,
        created_at=campaign.created_at
    )


async def get_campaign_or_404(db: AsyncSession, campaign_id: int) -> Campaign:
    campaign = await db.get(Campaign, campaign_id)
    if not campaign:
        raise NotFoundError("Campaign not found")
    return campaign


@router.get("/", response_model=CampaignListResponse)
async def list_campaigns(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None)) -> Any:
    require_permission(current_user, MANAGE_CAMPAIGNS)

    query = select(Campaign)
    count_query = select(func.count(Campaign.id))
    if status:
        query = query.where(Campaign.status == status)
        count_query = count_query.where(Campaign.status == status)
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(Campaign.created_at.desc())
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))

    return CampaignListResponse(
        data=[build_campaign_response(c) for c in result.scalars().all()],
        total=total,
        page=page,
        limit=limit
    )


@router.post("/", response_model=CampaignResponse)
async def create_campaign(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    campaign_in: CampaignCreate) -> Any:
    require_permission(current_user, MANAGE_CAMPAIGNS)

    campaign = Campaign(
        name=campaign_in.name,
        description=campaign_in.description,
        subject=campaign_in.subject,
        html_body=campaign_in.html_body,
        target_criteria=campaign_in.target_criteria.model_dump(),
        scheduled_for=campaign_in.scheduled_for,
        status="SCHEDULED" if campaign_in.scheduled_for else "DRAFT",
        created_by=current_user.id,
    )
    db.add(campaign)
    await db.flush()

    await create_audit_log(db, current_user.id, "create", "campaign", campaign.id, campaign.name)
    await db.commit()
    await db.refresh(campaign)
    return build_campaign_response(campaign)


@router.get("/{campaign_id}", response_model=CampaignResponse)
async def get_campaign(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    campaign_id: int) -> Any:
    require_permission(current_user, MANAGE_CAMPAIGNS)
    return build_campaign_response(await get_campaign_or_404(db, campaign_id))


@router.put("/{campaign_id}", response_model=CampaignResponse)
async def update_campaign(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    campaign_id: int,
    campaign_in: CampaignUpdate) -> Any:
    require_permission(current_user, MANAGE_CAMPAIGNS)
    campaign = await get_campaign_or_404(db, campaign_id)

    update_data = campaign_in.model_dump(exclude_unset=True)
    if campaign.status in ("SENT", "SENDING") and CONTENT_FIELDS & update_data.keys():
        raise BadRequestError("A campaign that has been sent cannot be changed")

    for field, value in update_data.items():
        setattr(campaign, field, value)

    if "scheduled_for" in update_data and campaign.status in ("DRAFT", "SCHEDULED"):
        campaign.status = "SCHEDULED" if campaign.scheduled_for else "DRAFT"

    await create_audit_log(
        db, current_user.id, "update", "campaign", campaign.id, campaign.name,
        new_value=campaign_in.model_dump(exclude_unset=True, mode="json")
    )
    await db.commit()
    await db.refresh(campaign)
    return build_campaign_response(campaign)


@router.get("/{campaign_id}/recipients", response_model=RecipientPreview)
async def preview_recipients(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    campaign_id: int) -> Any:
    """Leads the campaign would go to right now"""
    require_permission(current_user, MANAGE_CAMPAIGNS)
    campaign = await get_campaign_or_404(db, campaign_id)

    leads = await campaign_service.select_recipients(db, campaign.target_criteria)
    return RecipientPreview(
        total=len(leads),
        recipients=[
            {"lead_id": lead.id, "email": lead.customer_email, "name": lead.customer_name,
             "status": lead.status, "service_type": lead.service_type}
            for lead in leads
        ]
    )


@router.post("/{campaign_id}/send", response_model=CampaignSendResult)
async def send_campaign(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    campaign_id: int) -> Any:
    require_permission(current_user, MANAGE_CAMPAIGNS)
    campaign = await get_campaign_or_404(db, campaign_id)

    result = await campaign_service.send_campaign(db, campaign.id)

    await create_audit_log(
        db, current_user.id, "send", "campaign", campaign.id, campaign.name,
        new_value={"total_sent": result["total_sent"], "total_failed": result["total_failed"]}
    )
    await db.commit()
    return result
