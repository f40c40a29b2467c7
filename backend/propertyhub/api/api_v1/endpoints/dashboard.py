"""Dashboard API"""

from typing import Any
from datetime import datetime
from fastapi import APIRouter, Depends
from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.deps import get_db, get_current_user, owner_conditions
from propertyhub.core.permissions import VIEW_DASHBOARD, is_admin, require_permission
from propertyhub.models.invoice import Invoice
from propertyhub.models.liability import Liability
from propertyhub.models.maintenance_request import MaintenanceRequest
from propertyhub.models.payment_request import PaymentRequest
from propertyhub.models.registration import PendingRegistration
from propertyhub.models.user import User
from propertyhub.schemas.dashboard import AdminDashboard

router = APIRouter()

OUTSTANDING_INVOICE_STATUSES = ("SENT", "OVERDUE")
OPEN_MAINTENANCE_STATUSES = ("SUBMITTED", "REVIEWED", "APPROVED", "IN_PROGRESS")


async def sum_and_count(db: AsyncSession, amount_column, id_column, conditions: list):
    row = (await db.execute(
        select(func.coalesce(func.sum(amount_column), 0), func.count(id_column))
        .where(and_(*conditions))
    )).first()
    return (float(row[0]), int(row[1])) if row else (0.0, 0)


@router.get("/admin", response_model=AdminDashboard)
async def get_admin_dashboard(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)) -> Any:
    """Headline figures; tenant-scoped roles only see their own records"""
    require_permission(current_user, VIEW_DASHBOARD)

    now = datetime.utcnow()
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    # Revenue this month
    month_revenue, _ = await sum_and_count(db, Invoice.total, Invoice.id, [
        *owner_conditions(Invoice, current_user),
        Invoice.status == "PAID",
        Invoice.paid_date >= month_start,
    ])

    outstanding, _ = await sum_and_count(db, Invoice.total, Invoice.id, [
        *owner_conditions(Invoice, current_user),
        Invoice.status.in_(OUTSTANDING_INVOICE_STATUSES),
    ])
    _, overdue_count = await sum_and_count(db, Invoice.total, Invoice.id, [
        *owner_conditions(Invoice, current_user),
        Invoice.status.in_(OUTSTANDING_INVOICE_STATUSES),
        Invoice.due_date < now,
    ])

    pending_pr_total, pending_pr_count = await sum_and_count(
        db, PaymentRequest.calculated_amount, PaymentRequest.id, [
            *owner_conditions(PaymentRequest, current_user),
            PaymentRequest.status.in_(("PENDING", "APPROVED")),
        ]
    )

    maintenance_conditions = [MaintenanceRequest.status.in_(OPEN_MAINTENANCE_STATUSES)]
    if not is_admin(current_user.role):
        maintenance_conditions.append(MaintenanceRequest.property_manager_id == current_user.id)
    open_maintenance = (await db.execute(
        select(func.count(MaintenanceRequest.id)).where(and_(*maintenance_conditions))
    )).scalar() or 0

    pending_registrations = 0
    if is_admin(current_user.role):
        pending_registrations = (await db.execute(
            select(func.count(PendingRegistration.id)).where(
                PendingRegistration.is_approved == False,  # noqa: E712
                PendingRegistration.rejected_at.is_(None),
            )
        )).scalar() or 0

    unpaid_liabilities, unpaid_liability_count = await sum_and_count(db, Liability.amount, Liability.id, [
        *owner_conditions(Liability, current_user),
        Liability.is_paid == False,  # noqa: E712
    ])

    return AdminDashboard(
        generated_at=now,
        month_revenue=month_revenue,
        outstanding_invoice_balance=outstanding,
        overdue_invoice_count=overdue_count,
        pending_payment_requests_total=pending_pr_total,
        pending_payment_request_count=pending_pr_count,
        open_maintenance_requests=open_maintenance,
        pending_registrations=pending_registrations,
        unpaid_liabilities=unpaid_liabilities,
        unpaid_liability_count=unpaid_liability_count
    )
