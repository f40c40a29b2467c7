"""Payslip API"""

import logging
from typing import Any, Optional
from datetime import datetime
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from propertyhub.api.api_v1.endpoints.audit_logs import create_audit_log
from propertyhub.core.deps import get_db, get_current_user, owner_conditions
from propertyhub.core.errors import BadRequestError, NotFoundError
from propertyhub.core.permissions import MANAGE_PAYSLIPS, has_permission, require_permission, is_tenant_scoped
from propertyhub.models.payslip import Payslip
from propertyhub.models.user import User
from propertyhub.schemas.payslip import PayslipCreate, PayslipResponse, PayslipListResponse
from propertyhub.services.payroll import (
    EARNING_FIELDS, calculate_payslip_amounts, generate_payslip_number, resolve_basic_salary
)
from propertyhub.services.tax_settings import get_rates

logger = logging.getLogger(__name__)

router = APIRouter()

AMOUNT_FIELDS = (
    "basic_salary", "overtime_pay", "bonus", "allowances", "commission", "other_earnings",
    "gross_pay", "income_tax", "uif", "employer_uif", "pension_fund", "medical_aid",
    "other_deductions", "total_deductions", "net_pay",
)


def build_payslip_response(payslip: Payslip) -> PayslipResponse:
    return PayslipResponse(
        id=payslip.id,
        payslip_number=payslip.payslip_number,
        employee_id=payslip.employee_id,
        employee_name=payslip.employee.full_name if payslip.employee else "",
        payment_request_id=payslip.payment_request_id,
        pay_period_start=payslip.pay_period_start,
        pay_period_end=payslip.pay_period_end,
        payment_date=payslip.payment_date,
        tax_number=payslip.tax_number,
        uif_number=payslip.uif_number,
        notes=payslip.notes,
        status=payslip.status,
        created_at=payslip.created_at,
        **{f: float(getattr(payslip, f) or 0) for f in AMOUNT_FIELDS}
    )


def can_view(payslip: Payslip, user: User) -> bool:
    if payslip.employee_id == user.id:
        return True
    if not has_permission(user.role, MANAGE_PAYSLIPS):
        return False
    return not is_tenant_scoped(user.role) or payslip.created_by == user.id


async def load_payslip(db: AsyncSession, payslip_id: int) -> Optional[Payslip]:
    result = await db.execute(
        select(Payslip).options(selectinload(Payslip.employee)).where(Payslip.id == payslip_id)
    )
    return result.scalar_one_or_none()


@router.get("/", response_model=PayslipListResponse)
async def list_payslips(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    employee_id: Optional[int] = Query(None),
    period_start: Optional[str] = Query(None),
    period_end: Optional[str] = Query(None)) -> Any:
    """Payslips; employees without MANAGE_PAYSLIPS only see their own"""
    if has_permission(current_user.role, MANAGE_PAYSLIPS):
        conditions = owner_conditions(Payslip, current_user)
        if employee_id:
            conditions.append(Payslip.employee_id == employee_id)
    else:
        conditions = [Payslip.employee_id == current_user.id]

    if period_start:
        conditions.append(Payslip.pay_period_start >= datetime.strptime(period_start, "%Y-%m-%d"))
    if period_end:
        conditions.append(Payslip.pay_period_end <= datetime.strptime(period_end, "%Y-%m-%d").replace(
            hour=23, minute=59, second=59, microsecond=999999))

    query = select(Payslip).options(selectinload(Payslip.employee))
    count_query = select(func.count(Payslip.id))
    if conditions:
        query = query.where(and_(*conditions))
        count_query = count_query.where(and_(*conditions))
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(Payslip.pay_period_start.desc(), Payslip.id.desc())
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))

    return PayslipListResponse(
        data=[build_payslip_response(p) for p in result.scalars().all()],
        total=total,
        page=page,
        limit=limit
    )


@router.post("/", response_model=PayslipResponse)
async def create_payslip(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    payslip_in: PayslipCreate) -> Any:
    require_permission(current_user, MANAGE_PAYSLIPS)

    employee = await db.get(User, payslip_in.employee_id)
    if not employee:
        raise BadRequestError("Employee does not exist")

    basic_salary, calculation_note = await resolve_basic_salary(
        db, employee,
        payslip_in.pay_period_start, payslip_in.pay_period_end,
        basic_salary=payslip_in.basic_salary,
        hours_worked=payslip_in.hours_worked,
        hourly_rate=payslip_in.hourly_rate,
        days_worked=payslip_in.days_worked,
        daily_rate=payslip_in.daily_rate,
    )

    payment_date = payslip_in.payment_date or datetime.utcnow()
    amounts = calculate_payslip_amounts(
        basic_salary,
        earnings={f: getattr(payslip_in, f) for f in EARNING_FIELDS},
        age=employee.age_on(payment_date) or 30,
        income_tax=payslip_in.income_tax,
        uif=payslip_in.uif,
        pension_fund=payslip_in.pension_fund,
        medical_aid=payslip_in.medical_aid,
        other_deductions=payslip_in.other_deductions,
        rates=await get_rates(db),
    )

    notes = calculation_note if not payslip_in.notes else f"{payslip_in.notes}\n{calculation_note}"
    payslip = Payslip(
        payslip_number=await generate_payslip_number(db),
        employee_id=employee.id,
        pay_period_start=payslip_in.pay_period_start,
        pay_period_end=payslip_in.pay_period_end,
        payment_date=payment_date,
        hours_worked=payslip_in.hours_worked,
        days_worked=payslip_in.days_worked,
        hourly_rate=payslip_in.hourly_rate,
        daily_rate=payslip_in.daily_rate,
        tax_number=employee.tax_number,
        uif_number=employee.uif_number,
        notes=notes,
        status="GENERATED",
        created_by=current_user.id,
        **amounts
    )
    db.add(payslip)
    await db.flush()

    await create_audit_log(
        db, current_user.id, "create", "payslip", payslip.id, payslip.payslip_number,
        description=f"{employee.full_name}: net R{amounts['net_pay']:,.2f}"
    )
    await db.commit()

    logger.info(f"🧾 Payslip {payslip.payslip_number} for {employee.email}")
    return build_payslip_response(await load_payslip(db, payslip.id))


@router.get("/{payslip_id}", response_model=PayslipResponse)
async def get_payslip(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    payslip_id: int) -> Any:
    payslip = await load_payslip(db, payslip_id)
    if not payslip or not can_view(payslip, current_user):
        raise NotFoundError("Payslip not found")
    return build_payslip_response(payslip)
