"""
Payslip generation

Amounts follow the SARS tables in sars_tax; the basic salary is taken
from the first available source:
explicit amount -> monthly salary -> hours x rate -> days x rate
-> paid payment requests in the period.
"""

import logging
from calendar import monthrange
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.models.payment_request import PaymentRequest
from propertyhub.models.payslip import Payslip
from propertyhub.models.user import User
from propertyhub.services.numbering import next_number
from propertyhub.services.sars_tax import calculate_monthly_paye, calculate_uif, rebates_from_rates, round2
from propertyhub.services.tax_settings import get_rates

logger = logging.getLogger(__name__)

EARNING_FIELDS = ("overtime_pay", "bonus", "allowances", "commission", "other_earnings")


async def generate_payslip_number(db: AsyncSession, period: Optional[datetime] = None) -> str:
    """PS-000001, or PS-YYYY-MM-00001 for payslips tied to a pay month"""
    if period:
        return await next_number(db, Payslip.payslip_number, f"PS-{period:%Y-%m}-", 5)
    return await next_number(db, Payslip.payslip_number, "PS-", 6)


def month_bounds(when: datetime) -> Tuple[datetime, datetime]:
    start = when.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    end = when.replace(day=monthrange(when.year, when.month)[1],
                       hour=23, minute=59, second=59, microsecond=999999)
    return start, end


def calculate_payslip_amounts(
    basic_salary: float,
    earnings: Optional[Dict[str, float]] = None,
    age: int = 30,
    income_tax: Optional[float] = None,
    uif: Optional[float] = None,
    pension_fund: float = 0,
    medical_aid: float = 0,
    other_deductions: float = 0,
    rates: Optional[Dict[str, float]] = None) -> Dict[str, float]:
    """
    Gross, deductions and net pay for one month.

    income_tax and uif override the calculated PAYE/UIF when given. rates
    are the SARS rates in effect (rebates and UIF); None uses the published
    tables.
    """
    earnings = earnings or {}
    gross = basic_salary + sum(float(earnings.get(f) or 0) for f in EARNING_FIELDS)

    uif_calc = calculate_uif(gross, rates)
    if income_tax is not None:
        paye = income_tax
    else:
        paye = calculate_monthly_paye(gross, age, rebates_from_rates(rates))["monthly_paye"]
    employee_uif = uif if uif is not None else uif_calc["employee_contribution"]

    total_deductions = paye + employee_uif + pension_fund + medical_aid + other_deductions

    return {
        "basic_salary": round2(basic_salary),
        **{f: round2(earnings.get(f) or 0) for f in EARNING_FIELDS},
        "gross_pay": round2(gross),
        "income_tax": round2(paye),
        "uif": round2(employee_uif),
        "employer_uif": uif_calc["employer_contribution"],
        "pension_fund": round2(pension_fund),
        "medical_aid": round2(medical_aid),
        "other_deductions": round2(other_deductions),
        "total_deductions": round2(total_deductions),
        "net_pay": round2(gross - total_deductions),
    }


async def resolve_basic_salary(
    db: AsyncSession,
    employee: User,
    period_start: datetime,
    period_end: datetime,
    basic_salary: Optional[float] = None,
    hours_worked: Optional[float] = None,
    hourly_rate: Optional[float] = None,
    days_worked: Optional[float] = None,
    daily_rate: Optional[float] = None) -> Tuple[float, str]:
    """Basic salary and a note on how it was derived"""
    if basic_salary is not None:
        return float(basic_salary), "Basic salary entered manually"

    if employee.monthly_salary:
        return float(employee.monthly_salary), "Monthly salary from employee profile"

    rate = hourly_rate if hourly_rate is not None else employee.hourly_rate
    if hours_worked and rate:
        return float(hours_worked) * float(rate), f"{hours_worked} hours at R{float(rate):,.2f}"

    rate = daily_rate if daily_rate is not None else employee.daily_rate
    if days_worked and rate:
        return float(days_worked) * float(rate), f"{days_worked} days at R{float(rate):,.2f}"

    result = await db.execute(
        select(func.coalesce(func.sum(PaymentRequest.calculated_amount), 0)).where(
            and_(
                PaymentRequest.artisan_id == employee.id,
                PaymentRequest.status == "PAID",
                PaymentRequest.paid_date >= period_start,
                PaymentRequest.paid_date <= period_end,
            )
        )
    )
    paid_total = float(result.scalar() or 0)
    if paid_total > 0:
        return paid_total, "Sum of paid payment requests in the pay period"

    return 0.0, "No salary, rate or paid payment requests found for this period"


async def create_payslip_for_payment_request(db: AsyncSession, payment_request: PaymentRequest,
                                             created_by: int) -> Payslip:
    """Payslip issued automatically when a payment request is paid"""
    artisan = payment_request.artisan or await db.get(User, payment_request.artisan_id)
    paid_date = payment_request.paid_date or datetime.utcnow()
    period_start, period_end = month_bounds(paid_date)

    amounts = calculate_payslip_amounts(
        float(payment_request.calculated_amount or 0),
        age=(artisan.age_on(paid_date) if artisan else 0) or 30,
        rates=await get_rates(db),
    )

    payslip = Payslip(
        payslip_number=await generate_payslip_number(db, period_start),
        employee_id=payment_request.artisan_id,
        payment_request_id=payment_request.id,
        pay_period_start=period_start,
        pay_period_end=period_end,
        payment_date=paid_date,
        hours_worked=payment_request.hours_worked,
        days_worked=payment_request.days_worked,
        hourly_rate=payment_request.hourly_rate,
        daily_rate=payment_request.daily_rate,
        tax_number=artisan.tax_number if artisan else None,
        uif_number=artisan.uif_number if artisan else None,
        notes=f"Generated from payment request {payment_request.request_number}",
        status="GENERATED",
        created_by=created_by,
        **amounts,
    )
    db.add(payslip)
    logger.info(f"🧾 Payslip {payslip.payslip_number} for payment request {payment_request.request_number}")
    return payslip
