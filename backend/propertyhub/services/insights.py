"""
Accounting insights

Rule-based advisor that turns the period's tax and statement figures into
short, actionable notes for the accounts dashboard.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from propertyhub.services.sars_tax import format_rand, round2

URGENT = "urgent"
WARNING = "warning"
INFO = "info"
SUCCESS = "success"

LARGE_VAT_LIABILITY = 50000
LARGE_VAT_REFUND = 10000
LOW_MARGIN = 10
STRONG_MARGIN = 30
SDL_WARNING_FRACTION = 0.8
DEPRECIABLE_ASSET_FLOOR = 5000


def _item(type_: str, title: str, detail: str, action: Optional[str] = None) -> Dict[str, Any]:
    insight = {"type": type_, "title": title, "detail": detail}
    if action:
        insight["action"] = action
    return insight


def _deadline_insights(now: datetime, vat201: Dict[str, Any], emp201: Dict[str, Any],
                       provisional: Dict[str, Any]) -> List[Dict[str, Any]]:
    items = []
    day = now.day
    month = now.month

    if 20 <= day <= 25:
        payable = vat201["vat_payable"]
        if payable >= 0:
            position = f"owe SARS {format_rand(payable)}"
        else:
            position = f"are due a refund of {format_rand(abs(payable))}"
        items.append(_item(
            URGENT, "VAT201 Due Soon",
            f"Your VAT return is due by the 25th of this month. You {position}.",
            "Submit via SARS eFiling before the 25th",
        ))
    elif day > 25:
        items.append(_item(
            SUCCESS, "VAT201 Period Closed",
            "The VAT submission deadline for this period has passed. Ensure your return was submitted.",
        ))

    if day <= 7:
        items.append(_item(
            URGENT, "EMP201 Due by the 7th",
            f"Monthly PAYE/UIF/SDL payment of {format_rand(emp201['total_liability'])} is due to SARS by the 7th.",
            "Pay via SARS eFiling or EFT",
        ))

    if month in (7, 8):
        items.append(_item(
            WARNING, "1st Provisional Tax Payment",
            f"Your first IRP6 payment of approximately {format_rand(provisional['first_payment'])} is due by 31 August.",
            "Calculate and submit IRP6 via eFiling",
        ))
    if month in (1, 2):
        items.append(_item(
            WARNING, "2nd Provisional Tax Payment",
            f"Your second IRP6 payment of approximately {format_rand(provisional['second_payment'])} is due by 28 February.",
            "Calculate and submit IRP6 via eFiling",
        ))
    return items


def generate_tax_insights(*, vat201: Dict[str, Any], emp201: Dict[str, Any],
                          provisional: Dict[str, Any], depreciation: List[Dict[str, Any]],
                          assets: Iterable[Any], liabilities: Iterable[Any], payslip_count: int,
                          total_revenue: float, net_profit: float, rates: Dict[str, float],
                          now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    now = now or datetime.utcnow()
    items = _deadline_insights(now, vat201, emp201, provisional)

    payable = vat201["vat_payable"]
    if payable > LARGE_VAT_LIABILITY:
        items.append(_item(
            WARNING, "Large VAT Liability",
            f"You owe {format_rand(payable)} in VAT. Ensure you have sufficient cash reserves set aside for this payment.",
            "Set aside funds before the 25th",
        ))
    if payable < 0 and abs(payable) > LARGE_VAT_REFUND:
        items.append(_item(
            INFO, "VAT Refund Expected",
            f"You are expecting a VAT refund of {format_rand(abs(payable))}. SARS refunds can take "
            "21 business days. Ensure supporting documents are in order.",
        ))

    margin = net_profit / total_revenue * 100 if total_revenue > 0 else 0.0
    if total_revenue > 0 and margin < LOW_MARGIN:
        items.append(_item(
            WARNING, "Low Profit Margin",
            f"Your profit margin is only {margin:.1f}%. This means very little is left after expenses. "
            "Review your costs or increase pricing.",
            "Review expense categories in your P&L statement",
        ))
    elif margin > STRONG_MARGIN:
        items.append(_item(
            SUCCESS, "Strong Profit Margin",
            f"Your profit margin of {margin:.1f}% is healthy. This puts you in a good position for "
            "tax obligations and business growth.",
        ))

    if emp201["monthly_payroll"] > 0 and not emp201["sdl_applicable"]:
        annual_payroll = emp201["monthly_payroll"] * 12
        if annual_payroll > rates["sdl_threshold"] * SDL_WARNING_FRACTION:
            items.append(_item(
                INFO, "Approaching SDL Threshold",
                f"Your annual payroll ({format_rand(annual_payroll)}) is approaching the "
                f"R{rates['sdl_threshold']:,.0f} SDL threshold. If it exceeds this, you'll need to pay "
                "an additional 1% Skills Development Levy.",
            ))

    missing = [
        a for a in assets
        if float(a.purchase_price or 0) > DEPRECIABLE_ASSET_FLOOR and not a.useful_life_years
    ]
    if missing:
        items.append(_item(
            INFO, "Assets Missing Depreciation",
            f"{len(missing)} asset(s) worth over R5,000 don't have depreciation set up. "
            "You could be missing out on tax deductions.",
            "Go to Assets page and add useful life years",
        ))

    total_annual_depreciation = sum(a["annual_depreciation"] for a in depreciation)
    if total_annual_depreciation > 0:
        savings = round2(total_annual_depreciation * rates["company_tax_rate"] / 100)
        items.append(_item(
            SUCCESS, "Depreciation Tax Savings",
            f"Your {len(depreciation)} depreciable asset(s) save you {format_rand(savings)} in "
            "company tax this year through wear & tear deductions.",
        ))

    if payslip_count == 0:
        items.append(_item(
            INFO, "No Payroll Data",
            "No payslips found for this period. If you have employees, ensure their payslips are "
            "captured so PAYE and UIF calculations are accurate.",
        ))

    overdue = [l for l in liabilities if l.due_date and not l.is_paid and l.due_date < now]
    if overdue:
        overdue_total = sum(float(l.amount or 0) for l in overdue)
        items.append(_item(
            URGENT, f"{len(overdue)} Overdue Liability/ies",
            f"You have {format_rand(overdue_total)} in overdue payments. Late payments can attract "
            "interest and damage supplier relationships.",
            "Check Liabilities page to settle overdue accounts",
        ))

    if total_revenue == 0:
        items.append(_item(
            INFO, "No Revenue This Period",
            "No paid invoices recorded for this period. If you had sales, ensure invoices are marked as PAID.",
        ))

    items.append(_item(
        INFO, "Record Keeping Reminder",
        "SARS requires you to keep all financial records for at least 5 years. This includes "
        "invoices, receipts, bank statements, and contracts. Digital copies are accepted.",
    ))
    return items


def summarize(items: List[Dict[str, Any]]) -> Dict[str, int]:
    return {
        "total": len(items),
        "urgent": sum(1 for i in items if i["type"] == URGENT),
        "warning": sum(1 for i in items if i["type"] == WARNING),
    }
