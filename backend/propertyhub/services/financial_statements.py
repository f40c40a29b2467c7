"""
Financial statements

Profit & loss, balance sheet and cash flow as pure functions over ORM
rows (or anything with the same attributes). The report endpoints load the
tenant's rows and pass them in together with the period; every filter on
status and date happens here so the arithmetic can be tested without a
database.
"""

from calendar import monthrange
from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from propertyhub.services.sars_tax import round2

PERIODS = ("current_month", "last_month", "current_quarter", "ytd")


def amount(row: Any, attr: str) -> float:
    return float(getattr(row, attr, None) or 0)


def in_range(value: Optional[datetime], start: datetime, end: datetime) -> bool:
    """Inclusive on both ends; rows without the date never match"""
    if value is None:
        return False
    return start <= value <= end


def day_start(d: date) -> datetime:
    return datetime.combine(d, time.min)


def day_end(d: date) -> datetime:
    return datetime.combine(d, time.max)


def resolve_period(period: str, today: Optional[date] = None) -> Tuple[datetime, datetime]:
    """Start and end of one of the named dashboard periods"""
    today = today or datetime.utcnow().date()

    if period == "current_month":
        start = today.replace(day=1)
        end = today.replace(day=monthrange(today.year, today.month)[1])
    elif period == "last_month":
        end = today.replace(day=1) - timedelta(days=1)
        start = end.replace(day=1)
    elif period == "current_quarter":
        first_month = (today.month - 1) // 3 * 3 + 1
        last_month = first_month + 2
        start = date(today.year, first_month, 1)
        end = date(today.year, last_month, monthrange(today.year, last_month)[1])
    elif period == "ytd":
        start = date(today.year, 1, 1)
        end = today
    else:
        raise ValueError(f"Unknown period: {period}")

    return day_start(start), day_end(end)


def report_period(report_type: str, year: int, month: Optional[int] = None,
                  quarter: Optional[int] = None) -> Tuple[datetime, datetime]:
    """Period covered by a generated report"""
    if report_type in ("MONTHLY_PL", "VAT201", "EMP201"):
        if not month:
            raise ValueError("month is required for monthly reports")
        start = date(year, month, 1)
        end = date(year, month, monthrange(year, month)[1])
    elif report_type == "QUARTERLY_PL":
        if not quarter:
            raise ValueError("quarter is required for quarterly reports")
        first_month = (quarter - 1) * 3 + 1
        start = date(year, first_month, 1)
        end = date(year, first_month + 2, monthrange(year, first_month + 2)[1])
    elif report_type == "ANNUAL_PL":
        start = date(year, 1, 1)
        end = date(year, 12, 31)
    else:
        raise ValueError(f"Unknown report type: {report_type}")
    return day_start(start), day_end(end)


def _breakdown(rows: Iterable[Any], key: str = "category") -> Dict[str, float]:
    totals: Dict[str, float] = defaultdict(float)
    for row in rows:
        totals[getattr(row, key) or "OTHER"] += amount(row, "amount")
    return {k: round2(v) for k, v in sorted(totals.items())}


def _approved(rows: Iterable[Any]) -> List[Any]:
    return [r for r in rows if r.status == "APPROVED"]


def job_costs(orders: Iterable[Any], quotations: Iterable[Any],
              start: datetime, end: datetime) -> Dict[str, float]:
    """Material and labour from orders plus approved quotations created in the period"""
    period_orders = [o for o in orders if in_range(o.created_at, start, end)]
    approved_quotes = [
        q for q in quotations
        if q.status == "APPROVED" and in_range(q.created_at, start, end)
    ]
    material = (
        sum(amount(o, "material_cost") for o in period_orders)
        + sum(amount(q, "company_material_cost") for q in approved_quotes)
    )
    labour = (
        sum(amount(o, "labour_cost") for o in period_orders)
        + sum(amount(q, "company_labour_cost") for q in approved_quotes)
    )
    return {"material_costs": round2(material), "labour_costs": round2(labour)}


def compute_profit_and_loss(*, invoices: Iterable[Any], orders: Iterable[Any],
                            quotations: Iterable[Any], payment_requests: Iterable[Any],
                            expenses: Iterable[Any], revenues: Iterable[Any],
                            start: datetime, end: datetime) -> Dict[str, Any]:
    """
    Profit & loss for [start, end].

    Invoices, orders, quotations and payment requests are matched on
    created_at; expenses and alternative revenue on their own date and
    only once approved.
    """
    paid_invoices = [
        i for i in invoices
        if i.status == "PAID" and in_range(i.created_at, start, end)
    ]
    invoice_revenue = sum(amount(i, "total") for i in paid_invoices)

    period_revenues = [r for r in _approved(revenues) if in_range(r.date, start, end)]
    alternative_revenue = sum(amount(r, "amount") for r in period_revenues)
    total_revenue = invoice_revenue + alternative_revenue

    costs = job_costs(orders, quotations, start, end)

    artisan_payments = sum(
        amount(p, "calculated_amount") for p in payment_requests
        if p.status == "PAID" and in_range(p.created_at, start, end)
    )

    period_expenses = [e for e in _approved(expenses) if in_range(e.date, start, end)]
    operational_expenses = sum(amount(e, "amount") for e in period_expenses)

    total_expenses = (
        artisan_payments + costs["material_costs"] + costs["labour_costs"] + operational_expenses
    )
    net_profit = total_revenue - total_expenses
    profit_margin = net_profit / total_revenue * 100 if total_revenue > 0 else 0.0

    return {
        "period_start": start,
        "period_end": end,
        "invoice_revenue": round2(invoice_revenue),
        "paid_invoice_count": len(paid_invoices),
        "alternative_revenue": round2(alternative_revenue),
        "alternative_revenue_breakdown": _breakdown(period_revenues),
        "total_revenue": round2(total_revenue),
        "material_costs": costs["material_costs"],
        "labour_costs": costs["labour_costs"],
        "artisan_payments": round2(artisan_payments),
        "operational_expenses": round2(operational_expenses),
        "operational_expense_breakdown": _breakdown(period_expenses),
        "total_expenses": round2(total_expenses),
        "net_profit": round2(net_profit),
        "profit_margin": round2(profit_margin),
    }


def compute_balance_sheet(*, assets: Iterable[Any], liabilities: Iterable[Any],
                          payment_requests: Iterable[Any]) -> Dict[str, Any]:
    """Balance sheet as of now"""
    assets = list(assets)
    total_assets = sum(amount(a, "current_value") for a in assets)

    unpaid = [l for l in liabilities if not l.is_paid]
    accounts_payable = sum(amount(l, "amount") for l in unpaid if l.category == "ACCOUNTS_PAYABLE")
    loans = sum(amount(l, "amount") for l in unpaid if l.category == "LOAN")
    credit_lines = sum(amount(l, "amount") for l in unpaid if l.category == "CREDIT_LINE")
    other = sum(
        amount(l, "amount") for l in unpaid
        if l.category not in ("ACCOUNTS_PAYABLE", "LOAN", "CREDIT_LINE")
    )

    pending_payments = sum(
        amount(p, "calculated_amount") for p in payment_requests
        if p.status in ("PENDING", "APPROVED")
    )

    total_liabilities = accounts_payable + loans + credit_lines + other + pending_payments

    top_assets = sorted(assets, key=lambda a: amount(a, "current_value"), reverse=True)[:5]

    return {
        "total_assets": round2(total_assets),
        "asset_count": len(assets),
        "top_assets": [
            {"id": a.id, "name": a.name, "category": a.category,
             "current_value": round2(amount(a, "current_value"))}
            for a in top_assets
        ],
        "accounts_payable": round2(accounts_payable),
        "loans": round2(loans),
        "credit_lines": round2(credit_lines),
        "other_liabilities": round2(other),
        "pending_payments": round2(pending_payments),
        "total_liabilities": round2(total_liabilities),
        "equity": round2(total_assets - total_liabilities),
    }


def compute_cash_flow(*, invoices: Iterable[Any], orders: Iterable[Any],
                      quotations: Iterable[Any], payment_requests: Iterable[Any],
                      expenses: Iterable[Any], revenues: Iterable[Any],
                      assets: Iterable[Any], liabilities: Iterable[Any],
                      start: datetime, end: datetime) -> Dict[str, Any]:
    """
    Direct-method cash flow for [start, end].

    Opening cash is not tracked, so beginning cash is zero and ending cash
    equals the net change.
    """
    liabilities = list(liabilities)

    cash_from_customers = sum(
        amount(i, "total") for i in invoices
        if i.status == "PAID" and in_range(i.paid_date, start, end)
    )
    alternative_inflows = sum(
        amount(r, "amount") for r in _approved(revenues) if in_range(r.date, start, end)
    )

    costs = job_costs(orders, quotations, start, end)
    payments_to_artisans = sum(
        amount(p, "calculated_amount") for p in payment_requests
        if p.status == "PAID" and in_range(p.paid_date, start, end)
    )
    operational_outflows = sum(
        amount(e, "amount") for e in _approved(expenses) if in_range(e.date, start, end)
    )

    operating_inflows = cash_from_customers + alternative_inflows
    operating_outflows = (
        costs["material_costs"] + costs["labour_costs"] + payments_to_artisans + operational_outflows
    )
    net_operating = operating_inflows - operating_outflows

    asset_purchases = sum(
        amount(a, "purchase_price") for a in assets if in_range(a.purchase_date, start, end)
    )
    asset_sales = 0.0
    net_investing = asset_sales - asset_purchases

    new_liabilities = sum(
        amount(l, "amount") for l in liabilities if in_range(l.created_at, start, end)
    )
    liability_payments = sum(
        amount(l, "amount") for l in liabilities
        if l.is_paid and in_range(l.paid_date, start, end)
    )
    net_financing = new_liabilities - liability_payments

    net_change = net_operating + net_investing + net_financing
    beginning_cash = 0.0

    return {
        "period_start": start,
        "period_end": end,
        "operating": {
            "cash_from_customers": round2(cash_from_customers),
            "alternative_revenue": round2(alternative_inflows),
            "total_inflows": round2(operating_inflows),
            "payments_to_suppliers": costs["material_costs"],
            "payments_for_labour": costs["labour_costs"],
            "payments_to_artisans": round2(payments_to_artisans),
            "operational_expenses": round2(operational_outflows),
            "total_outflows": round2(operating_outflows),
            "net": round2(net_operating),
        },
        "investing": {
            "asset_purchases": round2(asset_purchases),
            "asset_sales": asset_sales,
            "net": round2(net_investing),
        },
        "financing": {
            "new_liabilities": round2(new_liabilities),
            "liability_payments": round2(liability_payments),
            "net": round2(net_financing),
        },
        "net_change": round2(net_change),
        "beginning_cash": beginning_cash,
        "ending_cash": round2(beginning_cash + net_change),
    }
