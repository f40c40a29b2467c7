"""
Campaign targeting, personalisation and delivery

Used by the campaign endpoints and by the scheduler for campaigns with a
scheduled_for time.
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, List

from markupsafe import escape
from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.errors import BadRequestError, NotFoundError
from propertyhub.models.campaign import Campaign
from propertyhub.models.lead import Lead
from propertyhub.models.user import User
from propertyhub.services.email import EmailDeliveryError, send_campaign_email
from propertyhub.services.notifications import create_notification

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"\{\{(\w+)\}\}")

PERSONALIZATION_TOKENS = [
    "customerName", "customerEmail", "customerPhone", "address",
    "serviceType", "description", "estimatedValue",
]


def format_estimated_value(value: Any) -> str:
    if not value:
        return "N/A"
    value = float(value)
    if value.is_integer():
        return f"R{int(value):,}"
    return f"R{value:,.2f}"


def lead_tokens(lead: Any) -> Dict[str, str]:
    return {
        "customerName": lead.customer_name or "",
        "customerEmail": lead.customer_email or "",
        "customerPhone": lead.customer_phone or "",
        "address": lead.address or "N/A",
        "serviceType": lead.service_type or "",
        "description": lead.description or "",
        "estimatedValue": format_estimated_value(lead.estimated_value),
    }


def personalize(text: str, lead: Any, html: bool = False) -> str:
    """
    Replace {{token}} placeholders; unknown tokens are left untouched.

    With html=True the lead values are HTML-escaped.
    """
    tokens = lead_tokens(lead)
    if html:
        tokens = {k: str(escape(v)) for k, v in tokens.items()}
    return TOKEN_PATTERN.sub(lambda m: tokens.get(m.group(1), m.group(0)), text)


def lead_conditions(criteria: Dict[str, Any]) -> List[Any]:
    conditions = []
    if criteria.get("statuses"):
        conditions.append(Lead.status.in_(criteria["statuses"]))
    if criteria.get("service_types"):
        conditions.append(Lead.service_type.in_(criteria["service_types"]))
    if criteria.get("estimated_value_min") is not None:
        conditions.append(Lead.estimated_value >= criteria["estimated_value_min"])
    if criteria.get("estimated_value_max") is not None:
        conditions.append(Lead.estimated_value <= criteria["estimated_value_max"])
    return conditions


async def _customer_emails(db: AsyncSession, customer_ids: List[int]) -> set:
    result = await db.execute(
        select(User.email).where(User.id.in_(customer_ids), User.role == "CUSTOMER")
    )
    return set(result.scalars().all())


async def select_recipients(db: AsyncSession, criteria: Dict[str, Any]) -> List[Lead]:
    """
    Leads matching the campaign's target criteria.

    When specific customers are targeted only leads with one of their
    emails are kept, minus excluded customers.
    """
    criteria = criteria or {}
    query = select(Lead)
    conditions = lead_conditions(criteria)
    if conditions:
        query = query.where(and_(*conditions))
    result = await db.execute(query.order_by(Lead.id))
    leads = list(result.scalars().all())

    if criteria.get("target_customer_ids"):
        targeted = await _customer_emails(db, criteria["target_customer_ids"])
        leads = [lead for lead in leads if lead.customer_email in targeted]

        if criteria.get("excluded_customer_ids"):
            excluded = await _customer_emails(db, criteria["excluded_customer_ids"])
            leads = [lead for lead in leads if lead.customer_email not in excluded]

    return leads


async def send_campaign(db: AsyncSession, campaign_id: int) -> Dict[str, Any]:
    """Send a campaign to every matching lead and record the outcome"""
    campaign = await db.get(Campaign, campaign_id)
    if not campaign:
        raise NotFoundError("Campaign not found")
    if campaign.status == "SENT":
        raise BadRequestError("Campaign has already been sent")

    campaign.status = "SENDING"
    await db.commit()

    leads = await select_recipients(db, campaign.target_criteria)
    if not leads:
        campaign.status = "FAILED"
        campaign.total_recipients = 0
        campaign.total_sent = 0
        campaign.total_failed = 0
        campaign.last_error = "No leads match the target criteria"
        await db.commit()
        raise BadRequestError("No leads match the target criteria")

    successful = []
    failed = []
    for lead in leads:
        try:
            await send_campaign_email(
                lead.customer_email,
                personalize(campaign.subject, lead),
                personalize(campaign.html_body, lead, html=True),
            )
            successful.append({"email": lead.customer_email, "name": lead.customer_name})
        except EmailDeliveryError as e:
            logger.error(f"❌ Campaign {campaign.id}: {e}")
            failed.append({"email": lead.customer_email, "name": lead.customer_name, "error": str(e)})

    campaign.status = "FAILED" if not successful else "SENT"
    campaign.sent_at = datetime.utcnow()
    campaign.total_recipients = len(leads)
    campaign.total_sent = len(successful)
    campaign.total_failed = len(failed)
    campaign.last_error = failed[-1]["error"] if failed else None

    creator = await db.get(User, campaign.created_by)
    if creator:
        create_notification(
            db, creator,
            f"Campaign \"{campaign.name}\" sent to {len(successful)} of {len(leads)} recipient(s)",
            "CAMPAIGN_SENT", "campaign", campaign.id,
        )
    await db.commit()

    logger.info(f"📣 Campaign {campaign.id} {campaign.status}: {len(successful)} sent, {len(failed)} failed")
    return {
        "campaign_id": campaign.id,
        "status": campaign.status,
        "total_recipients": len(leads),
        "total_sent": len(successful),
        "total_failed": len(failed),
        "successful": successful,
        "failed": failed,
    }


async def dispatch_due_campaigns(db: AsyncSession, now: datetime = None) -> int:
    """Send SCHEDULED campaigns whose time has come; returns how many were attempted"""
    now = now or datetime.utcnow()
    result = await db.execute(
        select(Campaign.id).where(
            Campaign.status == "SCHEDULED",
            Campaign.scheduled_for <= now,
        )
    )
    campaign_ids = list(result.scalars().all())
    for campaign_id in campaign_ids:
        try:
            await send_campaign(db, campaign_id)
        except BadRequestError as e:
            logger.warning(f"Scheduled campaign {campaign_id} not sent: {e.message}")
    return len(campaign_ids)
