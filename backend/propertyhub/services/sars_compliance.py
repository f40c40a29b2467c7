"""
SARS compliance figures for a reporting period

VAT201, EMP201, IT14, provisional tax (IRP6) and the wear-and-tear
schedule, computed from the same rows as the financial statements.
"""

import math
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from propertyhub.services.financial_statements import amount, in_range
from propertyhub.services.insights import generate_tax_insights
from propertyhub.services.sars_tax import (
    DEFAULT_RATES, SARS_DEDUCTION_SECTIONS, WEAR_AND_TEAR_RATES, round2, vat_fraction,
)

DEFAULT_USEFUL_LIFE = 5


def merge_rates(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, float]:
    rates = dict(DEFAULT_RATES)
    for key, value in (overrides or {}).items():
        if key in rates and value is not None:
            rates[key] = float(value)
    return rates


def _supply_rate(row: Any, default_rate: float) -> float:
    if getattr(row, "vat_rate", None):
        return float(row.vat_rate)
    if row.supply_type == "ZERO_RATED":
        return 0.0
    return default_rate


def compute_vat201(*, invoices: Iterable[Any], revenues: Iterable[Any], expenses: Iterable[Any],
                   material_costs: float, rates: Dict[str, float]) -> Dict[str, Any]:
    """
    VAT201 return.

    invoices are the period's invoices; SENT and PAID ones count as supplies.
    Stored VAT amounts win over the amount extracted from the inclusive total.
    """
    vat_rate = rates["vat_rate"]
    supplied = [i for i in invoices if i.status in ("PAID", "SENT")]

    invoice_output_vat = sum(
        amount(i, "tax") or vat_fraction(amount(i, "total"), vat_rate) for i in supplied
    )

    revenues = list(revenues)
    revenue_output_vat = sum(
        amount(r, "output_vat_amount") or vat_fraction(amount(r, "amount"), _supply_rate(r, vat_rate))
        for r in revenues if r.supply_type != "EXEMPT"
    )

    expenses = list(expenses)
    expense_input_vat = sum(
        amount(e, "input_vat_amount") or vat_fraction(amount(e, "amount"), _supply_rate(e, vat_rate))
        for e in expenses if e.supply_type != "EXEMPT"
    )
    material_input_vat = vat_fraction(material_costs, vat_rate)

    output_vat = invoice_output_vat + revenue_output_vat
    input_vat = expense_input_vat + material_input_vat

    standard_rated = sum(amount(i, "total") - amount(i, "tax") for i in supplied)
    zero_rated = sum(amount(r, "amount") for r in revenues if r.supply_type == "ZERO_RATED")
    exempt = sum(amount(r, "amount") for r in revenues if r.supply_type == "EXEMPT")

    return {
        "output_vat": round2(output_vat),
        "input_vat": round2(input_vat),
        "vat_payable": round2(output_vat - input_vat),
        "standard_rated_supplies": round2(standard_rated),
        "zero_rated_supplies": round2(zero_rated),
        "exempt_supplies": round2(exempt),
        "invoice_count": len(supplied),
        "expense_count": len(expenses),
    }


def compute_emp201(payslips: Iterable[Any], rates: Dict[str, float]) -> Dict[str, Any]:
    payslips = list(payslips)
    monthly_payroll = sum(amount(p, "gross_pay") for p in payslips)
    total_paye = sum(amount(p, "income_tax") for p in payslips)
    employee_uif = sum(amount(p, "uif") for p in payslips)
    employer_uif = sum(amount(p, "employer_uif") or amount(p, "uif") for p in payslips)
    total_uif = employee_uif + employer_uif

    sdl_applicable = monthly_payroll * 12 > rates["sdl_threshold"]
    total_sdl = round2(monthly_payroll * rates["sdl_rate"] / 100) if sdl_applicable else 0.0

    return {
        "monthly_payroll": round2(monthly_payroll),
        "total_paye": round2(total_paye),
        "total_employee_uif": round2(employee_uif),
        "total_employer_uif": round2(employer_uif),
        "total_uif": round2(total_uif),
        "sdl_applicable": sdl_applicable,
        "total_sdl": total_sdl,
        "total_liability": round2(total_paye + total_uif + total_sdl),
        "employee_count": len(payslips),
    }


def annual_depreciation(asset: Any) -> float:
    life = asset.useful_life_years or DEFAULT_USEFUL_LIFE
    return (amount(asset, "purchase_price") - amount(asset, "residual_value")) / life


def compute_it14(*, pnl: Dict[str, Any], invoices: Iterable[Any], revenues: Iterable[Any],
                 expenses: Iterable[Any], assets: Iterable[Any],
                 rates: Dict[str, float]) -> Dict[str, Any]:
    """IT14 company income tax return figures"""
    revenues = list(revenues)
    total_revenue = pnl["total_revenue"]
    taxable_income = pnl["net_profit"]
    company_tax = max(0.0, round2(taxable_income * rates["company_tax_rate"] / 100))

    invoice_revenue = sum(
        amount(i, "total") - amount(i, "tax") for i in invoices if i.status == "PAID"
    )
    rental_income = sum(amount(r, "amount") for r in revenues if r.category == "RENTAL_INCOME")
    interest_income = sum(amount(r, "amount") for r in revenues if r.category == "INTEREST")
    other_income = sum(
        amount(r, "amount") for r in revenues if r.category not in ("RENTAL_INCOME", "INTEREST")
    )

    by_section: Dict[str, float] = defaultdict(float)
    for expense in expenses:
        by_section[expense.sars_deduction_section or "S11a_GENERAL"] += amount(expense, "amount")

    total_depreciation = sum(
        annual_depreciation(a) for a in assets
        if a.useful_life_years and amount(a, "purchase_price")
    )
    by_section["S11e_DEPRECIATION"] += total_depreciation

    return {
        "gross_income": round2(total_revenue),
        "income_by_source": {
            "4001": round2(invoice_revenue),
            "4007": round2(rental_income),
            "4012": round2(interest_income),
            "4026": round2(other_income),
        },
        "invoice_revenue": round2(invoice_revenue),
        "rental_income": round2(rental_income),
        "interest_income": round2(interest_income),
        "other_income": round2(other_income),
        "total_deductions": round2(pnl["total_expenses"]),
        "deductions_by_section": [
            {"section": section, "label": SARS_DEDUCTION_SECTIONS.get(section, section),
             "amount": round2(value)}
            for section, value in sorted(by_section.items())
        ],
        "total_depreciation": round2(total_depreciation),
        "taxable_income": round2(taxable_income),
        "company_tax": company_tax,
        "effective_rate": round2(company_tax / total_revenue * 100) if total_revenue > 0 else 0.0,
    }


def compute_provisional(net_profit: float, start: datetime, end: datetime,
                        rates: Dict[str, float]) -> Dict[str, Any]:
    """Annualise the period's profit and split the estimated tax into two IRP6 payments"""
    days = (end - start).total_seconds() / 86400
    months = max(1, math.ceil(days / 30))
    annualized = net_profit * 12 / months
    estimated_tax = max(0.0, annualized * rates["company_tax_rate"] / 100)
    return {
        "period_months": months,
        "annualized_profit": round2(annualized),
        "estimated_tax": round2(estimated_tax),
        "first_payment": round2(estimated_tax * 0.5),
        "second_payment": round2(estimated_tax * 0.5),
    }


def compute_depreciation_schedule(assets: Iterable[Any]) -> List[Dict[str, Any]]:
    schedule = []
    for asset in assets:
        cost = amount(asset, "purchase_price")
        if cost <= 0:
            continue
        residual = amount(asset, "residual_value")
        life = asset.useful_life_years or DEFAULT_USEFUL_LIFE
        category = WEAR_AND_TEAR_RATES.get(asset.sars_wear_and_tear_category or "")
        rate = category["rate"] if category else 100 / life
        accumulated = amount(asset, "accumulated_depreciation")
        schedule.append({
            "id": asset.id,
            "name": asset.name,
            "category": asset.category,
            "cost": round2(cost),
            "residual": round2(residual),
            "useful_life": life,
            "rate": round2(rate),
            "annual_depreciation": round2((cost - residual) / life),
            "accumulated": round2(accumulated),
            "book_value": round2(max(residual, cost - accumulated)),
        })
    return schedule


def build_sars_report(*, pnl: Dict[str, Any], invoices: Iterable[Any], revenues: Iterable[Any],
                      expenses: Iterable[Any], payslips: Iterable[Any], assets: Iterable[Any],
                      liabilities: Iterable[Any], start: datetime, end: datetime,
                      rate_overrides: Optional[Dict[str, Any]] = None,
                      now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Everything the compliance dashboard shows for [start, end].

    invoices/revenues/expenses/payslips may be unfiltered; they are reduced
    to the period (approved rows only for revenue and expenses) here.
    """

    rates = merge_rates(rate_overrides)
    assets = list(assets)

    period_invoices = [i for i in invoices if in_range(i.created_at, start, end)]
    period_revenues = [
        r for r in revenues if r.status == "APPROVED" and in_range(r.date, start, end)
    ]
    period_expenses = [
        e for e in expenses if e.status == "APPROVED" and in_range(e.date, start, end)
    ]
    period_payslips = [p for p in payslips if in_range(p.pay_period_start, start, end)]

    vat201 = compute_vat201(
        invoices=period_invoices, revenues=period_revenues, expenses=period_expenses,
        material_costs=pnl["material_costs"], rates=rates,
    )
    emp201 = compute_emp201(period_payslips, rates)
    it14 = compute_it14(
        pnl=pnl, invoices=period_invoices, revenues=period_revenues,
        expenses=period_expenses, assets=assets, rates=rates,
    )
    provisional = compute_provisional(pnl["net_profit"], start, end, rates)
    depreciation = compute_depreciation_schedule(assets)

    insights = generate_tax_insights(
        vat201=vat201, emp201=emp201, provisional=provisional, depreciation=depreciation,
        assets=assets, liabilities=liabilities, payslip_count=len(period_payslips),
        total_revenue=pnl["total_revenue"], net_profit=pnl["net_profit"], rates=rates,
        now=now,
    )

    return {
        "period_start": start,
        "period_end": end,
        "rates": rates,
        "vat201": vat201,
        "emp201": emp201,
        "it14": it14,
        "provisional_tax": provisional,
        "depreciation": {
            "assets": depreciation,
            "total_annual_depreciation": round2(sum(a["annual_depreciation"] for a in depreciation)),
            "total_book_value": round2(sum(a["book_value"] for a in depreciation)),
        },
        "insights": insights,
    }
