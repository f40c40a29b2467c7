"""
Financial statements and SARS compliance API

Statements are computed on request from the rows the caller can see;
generated reports are stored as FinancialReport snapshots.
"""

import logging
from typing import Any, Optional, Tuple
from datetime import datetime
from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import Response
from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.api.api_v1.endpoints.audit_logs import create_audit_log
from propertyhub.core.deps import get_db, get_current_user
from propertyhub.core.errors import BadRequestError, NotFoundError
from propertyhub.core.permissions import VIEW_FINANCIAL_REPORTS, is_tenant_scoped, require_admin, require_permission
from propertyhub.models.financial_report import FinancialReport
from propertyhub.models.user import User
from propertyhub.schemas.report import (
    BalanceSheet, CashFlowStatement, EMP201SummaryRequest, FinancialReportCreate, FinancialReportListResponse,
    FinancialReportResponse, ProfitAndLoss, SARSRates, SARSRatesUpdate, SARSReport,
    TaxCalculationResponse
)
from propertyhub.services import reporting
from propertyhub.services.financial_statements import day_end, day_start, report_period, resolve_period
from propertyhub.services.sars_tax import (
    INCOME_SOURCE_CODES, IRP5_CODES, SARS_DEDUCTION_SECTIONS, TAX_YEAR, VAT_RATES,
    calculate_annual_paye, calculate_depreciation, calculate_monthly_paye,
    calculate_provisional_tax, calculate_uif, calculate_vat, generate_emp201_summary,
    rebates_from_rates, tax_threshold_for_age
)
from propertyhub.services.tax_settings import get_rates, reset_rates, save_rates

logger = logging.getLogger(__name__)

router = APIRouter()


def parse_period(period: Optional[str], start_date: Optional[str],
                 end_date: Optional[str]) -> Tuple[datetime, datetime]:
    """Explicit dates win over a named period; defaults to the current month"""
    try:
        if start_date or end_date:
            if not (start_date and end_date):
                raise ValueError("start_date and end_date must be given together")
            start = day_start(datetime.strptime(start_date, "%Y-%m-%d").date())
            end = day_end(datetime.strptime(end_date, "%Y-%m-%d").date())
            if end < start:
                raise ValueError("end_date must not be before start_date")
            return start, end
        return resolve_period(period or "current_month")
    except ValueError as e:
        raise BadRequestError(str(e))


def build_report_response(report: FinancialReport) -> FinancialReportResponse:
    return FinancialReportResponse(
        id=report.id,
        report_type=report.report_type,
        type_display=report.type_display,
        report_name=report.report_name,
        period_start=report.period_start,
        period_end=report.period_end,
        status=report.status,
        data=report.data or {},
        generated_by=report.generated_by,
        created_at=report.created_at
    )


@router.get("/profit-loss", response_model=ProfitAndLoss)
async def get_profit_and_loss(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    period: Optional[str] = Query(None, description="current_month, last_month, current_quarter or ytd"),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None)) -> Any:
    require_permission(current_user, VIEW_FINANCIAL_REPORTS)
    start, end = parse_period(period, start_date, end_date)
    return await reporting.profit_and_loss(db, current_user, start, end)


@router.get("/balance-sheet", response_model=BalanceSheet)
async def get_balance_sheet(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)) -> Any:
    require_permission(current_user, VIEW_FINANCIAL_REPORTS)
    return await reporting.balance_sheet(db, current_user)


@router.get("/cash-flow", response_model=CashFlowStatement)
async def get_cash_flow(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    period: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None)) -> Any:
    require_permission(current_user, VIEW_FINANCIAL_REPORTS)
    start, end = parse_period(period, start_date, end_date)
    return await reporting.cash_flow(db, current_user, start, end)


@router.get("/export.csv")
async def export_profit_and_loss_csv(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    period: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None)) -> Any:
    """P&L summary as CSV"""
    require_permission(current_user, VIEW_FINANCIAL_REPORTS)
    start, end = parse_period(period, start_date, end_date)
    pnl = await reporting.profit_and_loss(db, current_user, start, end)

    filename = f"profit_loss_{start:%Y%m%d}_{end:%Y%m%d}.csv"
    return Response(
        content=reporting.profit_and_loss_csv(pnl),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


@router.post("/financial", response_model=FinancialReportResponse)
async def generate_financial_report(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    report_in: FinancialReportCreate) -> Any:
    require_permission(current_user, VIEW_FINANCIAL_REPORTS)

    try:
        start, end = report_period(report_in.report_type, report_in.year,
                                   report_in.month, report_in.quarter)
    except ValueError as e:
        raise BadRequestError(str(e))

    data = await reporting.report_data(db, current_user, report_in.report_type, start, end)

    report = FinancialReport(
        report_type=report_in.report_type,
        report_name=f"{report_in.report_type} {start:%Y-%m-%d} to {end:%Y-%m-%d}",
        period_start=start,
        period_end=end,
        status="COMPLETED",
        data=jsonable_encoder(data),
        generated_by=current_user.id
    )
    db.add(report)
    await db.flush()

    await create_audit_log(db, current_user.id, "create", "report", report.id, report.report_name)
    await db.commit()
    await db.refresh(report)

    logger.info(f"📊 Generated {report.report_name}")
    return build_report_response(report)


@router.get("/financial", response_model=FinancialReportListResponse)
async def list_financial_reports(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    report_type: Optional[str] = Query(None)) -> Any:
    require_permission(current_user, VIEW_FINANCIAL_REPORTS)

    conditions = []
    if is_tenant_scoped(current_user.role):
        conditions.append(FinancialReport.generated_by == current_user.id)
    if report_type:
        conditions.append(FinancialReport.report_type == report_type)

    query = select(FinancialReport)
    count_query = select(func.count(FinancialReport.id))
    if conditions:
        query = query.where(and_(*conditions))
        count_query = count_query.where(and_(*conditions))
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(FinancialReport.created_at.desc(), FinancialReport.id.desc())
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))

    return FinancialReportListResponse(
        data=[build_report_response(r) for r in result.scalars().all()],
        total=total,
        page=page,
        limit=limit
    )


@router.get("/financial/{report_id}", response_model=FinancialReportResponse)
async def get_financial_report(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    report_id: int) -> Any:
    require_permission(current_user, VIEW_FINANCIAL_REPORTS)

    report = await db.get(FinancialReport, report_id)
    if not report or (is_tenant_scoped(current_user.role) and report.generated_by != current_user.id):
        raise NotFoundError("Report not found")
    return build_report_response(report)


@router.get("/sars", response_model=SARSReport)
async def get_sars_report(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    period: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None)) -> Any:
    """VAT201, EMP201, IT14, provisional tax, depreciation and insights"""
    require_permission(current_user, VIEW_FINANCIAL_REPORTS)
    start, end = parse_period(period, start_date, end_date)
    return await reporting.sars_report(db, current_user, start, end)


@router.get("/sars/rates", response_model=SARSRates)
async def get_sars_rates(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)) -> Any:
    require_permission(current_user, VIEW_FINANCIAL_REPORTS)
    return await get_rates(db)


@router.put("/sars/rates", response_model=SARSRates)
async def update_sars_rates(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    rates_in: SARSRatesUpdate) -> Any:
    require_admin(current_user)
    rates = await save_rates(db, rates_in.model_dump(exclude_none=True))
    await create_audit_log(
        db, current_user.id, "update", "report", None, "SARS rates",
        new_value=rates_in.model_dump(exclude_none=True)
    )
    await db.commit()
    return rates


@router.delete("/sars/rates", response_model=SARSRates)
async def reset_sars_rates(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)) -> Any:
    """Back to the published SARS defaults"""
    require_admin(current_user)
    rates = await reset_rates(db)
    await create_audit_log(
        db, current_user.id, "reset", "report", None, "SARS rates",
        description="SARS rates reset to the published defaults"
    )
    await db.commit()
    logger.info(f"💾 SARS rates reset to defaults by {current_user.email}")
    return rates


@router.get("/sars/paye", response_model=TaxCalculationResponse)
async def calculate_paye(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    monthly_gross: float = Query(..., ge=0),
    age: int = Query(30, ge=0, le=130)) -> Any:
    """PAYE and UIF for a monthly salary at the rates in effect"""
    require_permission(current_user, VIEW_FINANCIAL_REPORTS)
    rates = await get_rates(db)
    rebates = rebates_from_rates(rates)
    monthly = calculate_monthly_paye(monthly_gross, age, rebates)
    return TaxCalculationResponse(
        annual_paye=calculate_annual_paye(monthly_gross * 12, age, rebates),
        monthly_paye=monthly["monthly_paye"],
        uif=calculate_uif(monthly_gross, rates),
        tax_threshold=tax_threshold_for_age(age)
    )


@router.get("/sars/vat")
async def calculate_vat_split(
    *,
    current_user: User = Depends(get_current_user),
    amount: float = Query(..., ge=0),
    is_inclusive: bool = Query(True),
    vat_rate: float = Query(VAT_RATES["standard"], ge=0, le=100)) -> Any:
    require_permission(current_user, VIEW_FINANCIAL_REPORTS)
    return calculate_vat(amount, is_inclusive, vat_rate)


@router.get("/sars/depreciation")
async def calculate_asset_depreciation(
    *,
    current_user: User = Depends(get_current_user),
    purchase_price: float = Query(..., gt=0),
    residual_value: float = Query(0, ge=0),
    useful_life_years: int = Query(5, ge=1, le=100),
    method: str = Query("STRAIGHT_LINE", pattern="^(STRAIGHT_LINE|REDUCING_BALANCE)$"),
    year_number: int = Query(1, ge=1)) -> Any:
    require_permission(current_user, VIEW_FINANCIAL_REPORTS)
    if residual_value > purchase_price:
        raise BadRequestError("residual_value cannot exceed purchase_price")
    return calculate_depreciation(purchase_price, residual_value, useful_life_years, method, year_number)


@router.get("/sars/provisional")
async def calculate_irp6(
    *,
    current_user: User = Depends(get_current_user),
    estimated_annual_profit: float = Query(...),
    payment_number: int = Query(1, ge=1, le=3),
    previous_payments: float = Query(0, ge=0)) -> Any:
    """IRP6 provisional tax payment"""
    require_permission(current_user, VIEW_FINANCIAL_REPORTS)
    return calculate_provisional_tax(estimated_annual_profit, payment_number, previous_payments)


@router.post("/sars/emp201")
async def summarize_emp201(
    *,
    current_user: User = Depends(get_current_user),
    summary_in: EMP201SummaryRequest) -> Any:
    """EMP201 totals for payslip amounts entered by hand"""
    require_permission(current_user, VIEW_FINANCIAL_REPORTS)
    return generate_emp201_summary(
        [p.model_dump() for p in summary_in.payslips], summary_in.monthly_payroll
    )


@router.get("/sars/codes")
async def get_sars_codes(*, current_user: User = Depends(get_current_user)) -> Any:
    """Deduction sections, income source and IRP5 codes for the tax forms"""
    require_permission(current_user, VIEW_FINANCIAL_REPORTS)
    return {
        "tax_year": TAX_YEAR,
        "deduction_sections": SARS_DEDUCTION_SECTIONS,
        "income_source_codes": INCOME_SOURCE_CODES,
        "irp5_codes": IRP5_CODES,
    }
