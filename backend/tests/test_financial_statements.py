from datetime import date, datetime
from types import SimpleNamespace

import pytest

from propertyhub.services.financial_statements import (
    compute_balance_sheet, compute_cash_flow, compute_profit_and_loss, report_period,
    resolve_period,
)
from propertyhub.services.reporting import profit_and_loss_csv

MARCH_START = datetime(2025, 3, 1)
MARCH_END = datetime(2025, 3, 31, 23, 59, 59, 999999)


def row(**fields):
    return SimpleNamespace(**fields)


@pytest.fixture
def ledger():
    return {
        "invoices": [
            row(status="PAID", total=11500, tax=1500, created_at=datetime(2025, 3, 5),
                paid_date=datetime(2025, 3, 10)),
            row(status="SENT", total=2300, tax=0, created_at=datetime(2025, 3, 6), paid_date=None),
            # Raised in February, paid in March
            row(status="PAID", total=1000, tax=0, created_at=datetime(2025, 2, 20),
                paid_date=datetime(2025, 3, 2)),
        ],
        "orders": [
            row(material_cost=1000, labour_cost=500, created_at=datetime(2025, 3, 3)),
        ],
        "quotations": [
            row(status="APPROVED", company_material_cost=200, company_labour_cost=100,
                created_at=datetime(2025, 3, 4)),
            row(status="PENDING", company_material_cost=999, company_labour_cost=999,
                created_at=datetime(2025, 3, 4)),
        ],
        "payment_requests": [
            row(status="PAID", calculated_amount=800, created_at=datetime(2025, 3, 8),
                paid_date=datetime(2025, 3, 9)),
            row(status="PENDING", calculated_amount=400, created_at=datetime(2025, 3, 8),
                paid_date=None),
        ],
        "expenses": [
            row(status="APPROVED", amount=1150, category="UTILITIES", date=datetime(2025, 3, 12),
                supply_type="STANDARD", vat_rate=None, input_vat_amount=150,
                sars_deduction_section=None),
            row(status="PENDING", amount=500, category="FUEL", date=datetime(2025, 3, 12),
                supply_type="STANDARD", vat_rate=None, input_vat_amount=None,
                sars_deduction_section=None),
        ],
        "revenues": [
            row(status="APPROVED", amount=2000, category="RENTAL_INCOME", date=datetime(2025, 3, 15),
                supply_type="STANDARD", vat_rate=None, output_vat_amount=None),
        ],
        "assets": [
            row(id=1, name="Bakkie", category="VEHICLE", current_value=4000, purchase_price=5000,
                purchase_date=datetime(2025, 3, 20), residual_value=0, useful_life_years=5,
                sars_wear_and_tear_category="MOTOR_VEHICLES", accumulated_depreciation=1000),
        ],
        "liabilities": [
            row(category="LOAN", amount=3000, is_paid=False, created_at=datetime(2025, 3, 1),
                paid_date=None, due_date=None),
            row(category="ACCOUNTS_PAYABLE", amount=1000, is_paid=True,
                created_at=datetime(2025, 1, 10), paid_date=datetime(2025, 3, 25), due_date=None),
        ],
    }


def pnl_for(ledger):
    return compute_profit_and_loss(
        invoices=ledger["invoices"], orders=ledger["orders"], quotations=ledger["quotations"],
        payment_requests=ledger["payment_requests"], expenses=ledger["expenses"],
        revenues=ledger["revenues"], start=MARCH_START, end=MARCH_END,
    )


def test_profit_and_loss(ledger):
    pnl = pnl_for(ledger)
    assert pnl["invoice_revenue"] == 11500.0
    assert pnl["paid_invoice_count"] == 1
    assert pnl["alternative_revenue"] == 2000.0
    assert pnl["total_revenue"] == 13500.0
    assert pnl["material_costs"] == 1200.0
    assert pnl["labour_costs"] == 600.0
    assert pnl["artisan_payments"] == 800.0
    assert pnl["operational_expenses"] == 1150.0
    assert pnl["operational_expense_breakdown"] == {"UTILITIES": 1150.0}
    assert pnl["total_expenses"] == 3750.0
    assert pnl["net_profit"] == 9750.0
    assert pnl["profit_margin"] == 72.22


def test_profit_margin_is_zero_without_revenue():
    pnl = compute_profit_and_loss(
        invoices=[], orders=[], quotations=[], payment_requests=[], expenses=[], revenues=[],
        start=MARCH_START, end=MARCH_END,
    )
    assert pnl["profit_margin"] == 0.0
    assert pnl["net_profit"] == 0.0


def test_balance_sheet(ledger):
    sheet = compute_balance_sheet(
        assets=ledger["assets"], liabilities=ledger["liabilities"],
        payment_requests=ledger["payment_requests"],
    )
    assert sheet["total_assets"] == 4000.0
    assert sheet["loans"] == 3000.0
    assert sheet["accounts_payable"] == 0.0
    assert sheet["pending_payments"] == 400.0
    assert sheet["total_liabilities"] == 3400.0
    assert sheet["equity"] == 600.0
    assert sheet["top_assets"][0]["name"] == "Bakkie"


def test_cash_flow(ledger):
    flow = compute_cash_flow(**ledger, start=MARCH_START, end=MARCH_END)
    assert flow["operating"]["cash_from_customers"] == 12500.0
    assert flow["operating"]["total_inflows"] == 14500.0
    assert flow["operating"]["total_outflows"] == 3750.0
    assert flow["operating"]["net"] == 10750.0
    assert flow["investing"]["net"] == -5000.0
    assert flow["financing"]["new_liabilities"] == 3000.0
    assert flow["financing"]["liability_payments"] == 1000.0
    assert flow["net_change"] == 7750.0
    assert flow["beginning_cash"] == 0.0
    assert flow["ending_cash"] == 7750.0


def test_resolve_period():
    start, end = resolve_period("last_month", today=date(2025, 3, 14))
    assert start == datetime(2025, 2, 1)
    assert end.date() == date(2025, 2, 28)

    start, end = resolve_period("current_quarter", today=date(2025, 5, 2))
    assert start == datetime(2025, 4, 1)
    assert end.date() == date(2025, 6, 30)

    with pytest.raises(ValueError):
        resolve_period("fortnight")


def test_report_period():
    start, end = report_period("QUARTERLY_PL", 2024, quarter=4)
    assert start == datetime(2024, 10, 1)
    assert end.date() == date(2024, 12, 31)

    with pytest.raises(ValueError):
        report_period("MONTHLY_PL", 2024)


def test_profit_and_loss_csv(ledger):
    csv_text = profit_and_loss_csv(pnl_for(ledger))
    lines = csv_text.strip().splitlines()
    assert lines[0].startswith("Line")
    assert any(line.startswith("Net profit") and "9750" in line for line in lines)
