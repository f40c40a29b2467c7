"""AI-assisted accounting insights"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.api.api_v1.endpoints.reports import parse_period
from propertyhub.core.deps import get_db, get_current_user
from propertyhub.core.permissions import VIEW_FINANCIAL_REPORTS, require_permission
from propertyhub.models.user import User
from propertyhub.schemas.report import InsightsResponse
from propertyhub.services import reporting
from propertyhub.services.insights import summarize

router = APIRouter()


@router.get("/accounts", response_model=InsightsResponse)
async def get_account_insights(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    period: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None)) -> Any:
    """Tax deadlines, VAT position, margins and record-keeping advice"""
    require_permission(current_user, VIEW_FINANCIAL_REPORTS)
    start, end = parse_period(period, start_date, end_date)

    report = await reporting.sars_report(db, current_user, start, end)
    insights = report["insights"]

    return InsightsResponse(
        period_start=start,
        period_end=end,
        insights=insights,
        **summarize(insights)
    )
