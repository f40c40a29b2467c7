"""
Report loaders

Fetch the rows a user may see and hand them to the pure statement and
SARS functions. Tenant-scoped roles only get rows they created.
"""

import csv
import io
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.deps import owner_conditions
from propertyhub.models.asset import Asset
from propertyhub.models.invoice import Invoice
from propertyhub.models.liability import Liability
from propertyhub.models.operational_expense import AlternativeRevenue, OperationalExpense
from propertyhub.models.order import Order
from propertyhub.models.payment_request import PaymentRequest
from propertyhub.models.payslip import Payslip
from propertyhub.models.quotation import Quotation
from propertyhub.models.user import User
from propertyhub.services.financial_statements import (
    compute_balance_sheet, compute_cash_flow, compute_profit_and_loss
)
from propertyhub.services.sars_compliance import build_sars_report
from propertyhub.services.tax_settings import get_rate_overrides

LEDGER_MODELS = {
    "invoices": Invoice,
    "orders": Order,
    "quotations": Quotation,
    "payment_requests": PaymentRequest,
    "expenses": OperationalExpense,
    "revenues": AlternativeRevenue,
    "assets": Asset,
    "liabilities": Liability,
    "payslips": Payslip,
}


async def load_rows(db: AsyncSession, model, user: User) -> List[Any]:
    query = select(model)
    conditions = owner_conditions(model, user)
    if conditions:
        query = query.where(and_(*conditions))
    result = await db.execute(query)
    return list(result.scalars().all())


async def load_ledger(db: AsyncSession, user: User) -> Dict[str, List[Any]]:
    return {name: await load_rows(db, model, user) for name, model in LEDGER_MODELS.items()}


def profit_and_loss_from(ledger: Dict[str, List[Any]], start: datetime, end: datetime) -> Dict[str, Any]:
    return compute_profit_and_loss(
        invoices=ledger["invoices"],
        orders=ledger["orders"],
        quotations=ledger["quotations"],
        payment_requests=ledger["payment_requests"],
        expenses=ledger["expenses"],
        revenues=ledger["revenues"],
        start=start,
        end=end,
    )


async def profit_and_loss(db: AsyncSession, user: User, start: datetime, end: datetime) -> Dict[str, Any]:
    return profit_and_loss_from(await load_ledger(db, user), start, end)


async def balance_sheet(db: AsyncSession, user: User) -> Dict[str, Any]:
    ledger = await load_ledger(db, user)
    report = compute_balance_sheet(
        assets=ledger["assets"],
        liabilities=ledger["liabilities"],
        payment_requests=ledger["payment_requests"],
    )
    return {"as_of": datetime.utcnow(), **report}


async def cash_flow(db: AsyncSession, user: User, start: datetime, end: datetime) -> Dict[str, Any]:
    ledger = await load_ledger(db, user)
    return compute_cash_flow(
        invoices=ledger["invoices"],
        orders=ledger["orders"],
        quotations=ledger["quotations"],
        payment_requests=ledger["payment_requests"],
        expenses=ledger["expenses"],
        revenues=ledger["revenues"],
        assets=ledger["assets"],
        liabilities=ledger["liabilities"],
        start=start,
        end=end,
    )


async def sars_report(db: AsyncSession, user: User, start: datetime, end: datetime,
                      now: Optional[datetime] = None) -> Dict[str, Any]:
    ledger = await load_ledger(db, user)
    return build_sars_report(
        pnl=profit_and_loss_from(ledger, start, end),
        invoices=ledger["invoices"],
        revenues=ledger["revenues"],
        expenses=ledger["expenses"],
        payslips=ledger["payslips"],
        assets=ledger["assets"],
        liabilities=ledger["liabilities"],
        start=start,
        end=end,
        rate_overrides=await get_rate_overrides(db),
        now=now,
    )


async def report_data(db: AsyncSession, user: User, report_type: str,
                      start: datetime, end: datetime) -> Dict[str, Any]:
    """Payload stored on a generated FinancialReport"""
    if report_type in ("VAT201", "EMP201"):
        report = await sars_report(db, user, start, end)
        return report[report_type.lower()]
    return await profit_and_loss(db, user, start, end)


def profit_and_loss_csv(pnl: Dict[str, Any]) -> str:
    """Line, amount rows for spreadsheet import"""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["Line", "Amount"])
    writer.writerow(["Period start", pnl["period_start"].date().isoformat()])
    writer.writerow(["Period end", pnl["period_end"].date().isoformat()])
    writer.writerow(["Invoice revenue", f"{pnl['invoice_revenue']:.2f}"])
    for category, value in pnl["alternative_revenue_breakdown"].items():
        writer.writerow([f"Alternative revenue - {category}", f"{value:.2f}"])
    writer.writerow(["Total revenue", f"{pnl['total_revenue']:.2f}"])
    writer.writerow(["Material costs", f"{pnl['material_costs']:.2f}"])
    writer.writerow(["Labour costs", f"{pnl['labour_costs']:.2f}"])
    writer.writerow(["Artisan payments", f"{pnl['artisan_payments']:.2f}"])
    for category, value in pnl["operational_expense_breakdown"].items():
        writer.writerow([f"Operational expense - {category}", f"{value:.2f}"])
    writer.writerow(["Total expenses", f"{pnl['total_expenses']:.2f}"])
    writer.writerow(["Net profit", f"{pnl['net_profit']:.2f}"])
    writer.writerow(["Profit margin %", f"{pnl['profit_margin']:.2f}"])
    return output.getvalue()
