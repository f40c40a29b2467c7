from datetime import datetime
from types import SimpleNamespace

from propertyhub.services.insights import summarize
from propertyhub.services.sars_compliance import (
    build_sars_report, compute_emp201, compute_vat201, merge_rates,
)

MARCH_START = datetime(2025, 3, 1)
MARCH_END = datetime(2025, 3, 31, 23, 59, 59, 999999)


def row(**fields):
    return SimpleNamespace(**fields)


def invoices():
    return [
        row(status="PAID", total=11500, tax=1500, created_at=datetime(2025, 3, 5)),
        row(status="SENT", total=2300, tax=0, created_at=datetime(2025, 3, 6)),
        row(status="DRAFT", total=9999, tax=0, created_at=datetime(2025, 3, 6)),
    ]


def revenues():
    return [
        row(status="APPROVED", amount=2000, category="RENTAL_INCOME", date=datetime(2025, 3, 15),
            supply_type="STANDARD", vat_rate=None, output_vat_amount=None),
        row(status="APPROVED", amount=500, category="INTEREST", date=datetime(2025, 3, 16),
            supply_type="EXEMPT", vat_rate=None, output_vat_amount=None),
    ]


def expenses():
    return [
        row(status="APPROVED", amount=1150, category="UTILITIES", date=datetime(2025, 3, 12),
            supply_type="STANDARD", vat_rate=None, input_vat_amount=150,
            sars_deduction_section="S11a_GENERAL"),
        row(status="PENDING", amount=5000, category="FUEL", date=datetime(2025, 3, 12),
            supply_type="STANDARD", vat_rate=None, input_vat_amount=None,
            sars_deduction_section=None),
    ]


def payslips():
    return [
        row(gross_pay=20000, income_tax=2500, uif=177.12, employer_uif=177.12,
            pay_period_start=datetime(2025, 3, 1)),
    ]


def test_merge_rates_ignores_unknown_keys():
    rates = merge_rates({"vat_rate": 16, "made_up": 1, "sdl_rate": None})
    assert rates["vat_rate"] == 16.0
    assert rates["sdl_rate"] == 1.0
    assert "made_up" not in rates


def test_vat201():
    approved = [e for e in expenses() if e.status == "APPROVED"]
    vat = compute_vat201(
        invoices=invoices(), revenues=revenues(), expenses=approved,
        material_costs=1150, rates=merge_rates(),
    )
    # 1500 stored + 300 extracted from the SENT invoice + 260.87 on rental income
    assert vat["output_vat"] == 2060.87
    # 150 stored on the expense + 150 extracted from material costs
    assert vat["input_vat"] == 300.0
    assert vat["vat_payable"] == 1760.87
    assert vat["standard_rated_supplies"] == 12300.0
    assert vat["exempt_supplies"] == 500.0
    assert vat["invoice_count"] == 2


def test_emp201_without_sdl():
    emp = compute_emp201(payslips(), merge_rates())
    assert emp["monthly_payroll"] == 20000.0
    assert emp["total_uif"] == 354.24
    assert emp["sdl_applicable"] is False
    assert emp["total_liability"] == 2854.24


def test_emp201_with_sdl():
    big_payroll = [row(gross_pay=50000, income_tax=12000, uif=177.12, employer_uif=177.12)]
    emp = compute_emp201(big_payroll, merge_rates())
    assert emp["sdl_applicable"] is True
    assert emp["total_sdl"] == 500.0


def test_build_sars_report():
    pnl = {
        "total_revenue": 13500.0, "net_profit": 9750.0, "total_expenses": 3750.0,
        "material_costs": 1200.0,
    }
    assets = [
        row(id=1, name="Laptop", category="EQUIPMENT", purchase_price=15000, residual_value=0,
            useful_life_years=3, sars_wear_and_tear_category="COMPUTER_EQUIPMENT",
            accumulated_depreciation=0),
        row(id=2, name="Generator", category="EQUIPMENT", purchase_price=8000, residual_value=0,
            useful_life_years=None, sars_wear_and_tear_category=None, accumulated_depreciation=0),
    ]
    liabilities = [
        row(amount=1200, is_paid=False, due_date=datetime(2025, 3, 1)),
    ]

    report = build_sars_report(
        pnl=pnl, invoices=invoices(), revenues=revenues(), expenses=expenses(),
        payslips=payslips(), assets=assets, liabilities=liabilities,
        start=MARCH_START, end=MARCH_END, now=datetime(2025, 3, 22),
    )

    assert report["it14"]["company_tax"] == 2632.5
    assert report["it14"]["rental_income"] == 2000.0
    assert report["it14"]["interest_income"] == 500.0
    sections = {d["section"]: d["amount"] for d in report["it14"]["deductions_by_section"]}
    assert sections["S11a_GENERAL"] == 1150.0
    assert sections["S11e_DEPRECIATION"] == 5000.0

    provisional = report["provisional_tax"]
    assert provisional["first_payment"] == provisional["second_payment"]

    titles = [i["title"] for i in report["insights"]]
    assert "VAT201 Due Soon" in titles
    assert "Strong Profit Margin" in titles
    assert "Assets Missing Depreciation" in titles
    assert "1 Overdue Liability/ies" in titles
    assert titles[-1] == "Record Keeping Reminder"

    counts = summarize(report["insights"])
    assert counts["urgent"] == 2
    assert counts["total"] == len(report["insights"])
