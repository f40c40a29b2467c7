"""Invoice API"""

import logging
from typing import Any, Optional
from datetime import datetime
from decimal import Decimal
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from propertyhub.api.api_v1.endpoints.audit_logs import create_audit_log
from propertyhub.core.config import settings
from propertyhub.core.deps import get_db, get_current_user
from propertyhub.core.errors import BadRequestError, ForbiddenError, NotFoundError
from propertyhub.core.permissions import (
    ADMIN_ROLES, CONTRACTOR_JUNIOR_MANAGER, MANAGE_INVOICES, PROPERTY_MANAGER,
    is_contractor, is_tenant_scoped, require_permission
)
from propertyhub.models.invoice import Invoice
from propertyhub.models.user import User
from propertyhub.schemas.invoice import (
    InvoiceCreate, InvoiceStatusUpdate, InvoiceResponse, InvoiceListResponse
)
from propertyhub.services.email import EmailDeliveryError, send_invoice_email
from propertyhub.services.notifications import create_notification, notify_roles
from propertyhub.services.numbering import next_number

logger = logging.getLogger(__name__)

router = APIRouter()

DELETABLE_STATUSES = ("DRAFT", "CANCELLED", "REJECTED")


async def generate_invoice_number(db: AsyncSession) -> str:
    return await next_number(db, Invoice.invoice_number, f"{settings.INVOICE_PREFIX}-", 5)


def visibility_conditions(user: User) -> list:
    """Property managers also see invoices addressed to them"""
    if user.role == PROPERTY_MANAGER:
        return [or_(Invoice.created_by == user.id, Invoice.customer_email == user.email)]
    if is_tenant_scoped(user.role):
        return [Invoice.created_by == user.id]
    return []


def can_view(invoice: Invoice, user: User) -> bool:
    if user.role == PROPERTY_MANAGER:
        return invoice.created_by == user.id or invoice.customer_email == user.email
    if is_tenant_scoped(user.role):
        return invoice.created_by == user.id
    return True


def resolve_status_change(invoice: Invoice, user: User, requested: str,
                          now: Optional[datetime] = None) -> str:
    """
    Apply the role rules for an invoice status change and return the
    status that will actually be stored.
    """
    now = now or datetime.utcnow()

    if user.role == PROPERTY_MANAGER and invoice.created_by != user.id:
        if invoice.customer_email != user.email:
            raise ForbiddenError("Property managers can only update invoices addressed to them")
        if requested not in ("PAID", "REJECTED"):
            raise ForbiddenError("Property managers can only mark invoices as PAID or reject them")

    created_by_contractor = invoice.creator is not None and is_contractor(invoice.creator.role)
    if created_by_contractor and user.role == CONTRACTOR_JUNIOR_MANAGER:
        moving_to_approval = invoice.status == "DRAFT" and requested == "PENDING_APPROVAL"
        if not moving_to_approval and requested not in ("REJECTED", "DRAFT"):
            raise ForbiddenError("Junior managers can only move invoices from DRAFT to PENDING_APPROVAL")

    if invoice.status == "PENDING_APPROVAL" and requested in ("SENT", "OVERDUE"):
        if invoice.due_date and invoice.due_date < now:
            return "OVERDUE"
        return "SENT"
    return requested


def build_invoice_response(invoice: Invoice) -> InvoiceResponse:
    return InvoiceResponse(
        id=invoice.id,
        invoice_number=invoice.invoice_number,
        customer_name=invoice.customer_name,
        customer_email=invoice.customer_email,
        customer_phone=invoice.customer_phone,
        address=invoice.address,
        items=invoice.items or [],
        subtotal=float(invoice.subtotal or 0),
        tax=float(invoice.tax or 0),
        total=float(invoice.total or 0),
        company_material_cost=float(invoice.company_material_cost or 0),
        company_labour_cost=float(invoice.company_labour_cost or 0),
        estimated_profit=float(invoice.estimated_profit or 0),
        status=invoice.status,
        status_display=invoice.status_display,
        due_date=invoice.due_date,
        paid_date=invoice.paid_date,
        rejection_reason=invoice.rejection_reason,
        notes=invoice.notes,
        order_id=invoice.order_id,
        order_number=invoice.order.order_number if invoice.order else "",
        created_by=invoice.created_by,
        creator_name=invoice.creator.full_name if invoice.creator else "",
        created_at=invoice.created_at,
        updated_at=invoice.updated_at
    )


async def load_invoice(db: AsyncSession, invoice_id: int) -> Optional[Invoice]:
    result = await db.execute(
        select(Invoice).options(
            selectinload(Invoice.order),
            selectinload(Invoice.creator)
        ).where(Invoice.id == invoice_id)
    )
    return result.scalar_one_or_none()


@router.get("/", response_model=InvoiceListResponse)
async def list_invoices(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Invoice number, customer name or email")) -> Any:
    query = select(Invoice).options(
        selectinload(Invoice.order),
        selectinload(Invoice.creator)
    )

    conditions = visibility_conditions(current_user)
    if status:
        conditions.append(Invoice.status == status)
    if start_date:
        conditions.append(Invoice.created_at >= datetime.strptime(start_date, "%Y-%m-%d"))
    if end_date:
        conditions.append(Invoice.created_at <= datetime.strptime(end_date, "%Y-%m-%d").replace(
            hour=23, minute=59, second=59))
    if search:
        pattern = f"%{search}%"
        conditions.append(or_(
            Invoice.invoice_number.ilike(pattern),
            Invoice.customer_name.ilike(pattern),
            Invoice.customer_email.ilike(pattern)
        ))

    if conditions:
        query = query.where(and_(*conditions))

    count_query = select(func.count(Invoice.id))
    if conditions:
        count_query = count_query.where(and_(*conditions))
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    query = query.order_by(Invoice.created_at.desc(), Invoice.id.desc())
    query = query.offset((page - 1) * limit).limit(limit)

    result = await db.execute(query)
    invoices = result.scalars().all()

    return InvoiceListResponse(
        data=[build_invoice_response(i) for i in invoices],
        total=total,
        page=page,
        limit=limit
    )


@router.post("/", response_model=InvoiceResponse)
async def create_invoice(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    invoice_in: InvoiceCreate) -> Any:
    require_permission(current_user, MANAGE_INVOICES)

    if invoice_in.invoice_number:
        existing = await db.execute(
            select(Invoice.id).where(Invoice.invoice_number == invoice_in.invoice_number)
        )
        if existing.scalar():
            raise BadRequestError(f"Invoice number {invoice_in.invoice_number} is already in use")
        invoice_number = invoice_in.invoice_number
    else:
        invoice_number = await generate_invoice_number(db)

    status = "DRAFT" if is_contractor(current_user.role) else "PENDING_REVIEW"

    data = invoice_in.model_dump(exclude={"invoice_number", "items"})
    for field in ("subtotal", "tax", "total", "company_material_cost",
                  "company_labour_cost", "estimated_profit"):
        data[field] = Decimal(str(data[field]))

    invoice = Invoice(
        **data,
        invoice_number=invoice_number,
        items=[item.model_dump() for item in invoice_in.items],
        status=status,
        created_by=current_user.id
    )
    db.add(invoice)
    await db.flush()

    await create_audit_log(
        db, current_user.id, "create", "invoice", invoice.id, invoice.invoice_number,
        description=f"Invoice for {invoice.customer_name}, R{invoice_in.total:,.2f}"
    )
    await db.commit()

    logger.info(f"🧾 Invoice {invoice_number} created ({status}) by {current_user.email}")
    return build_invoice_response(await load_invoice(db, invoice.id))


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    invoice_id: int) -> Any:
    invoice = await load_invoice(db, invoice_id)
    if not invoice or not can_view(invoice, current_user):
        raise NotFoundError("Invoice not found")
    return build_invoice_response(invoice)


@router.put("/{invoice_id}/status", response_model=InvoiceResponse)
async def update_invoice_status(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    invoice_id: int,
    status_in: InvoiceStatusUpdate) -> Any:
    invoice = await load_invoice(db, invoice_id)
    if not invoice:
        raise NotFoundError("Invoice not found")

    if current_user.role != PROPERTY_MANAGER:
        require_permission(current_user, MANAGE_INVOICES)
        if not can_view(invoice, current_user):
            raise NotFoundError("Invoice not found")

    old_status = invoice.status
    final_status = resolve_status_change(invoice, current_user, status_in.status)

    invoice.status = final_status
    if final_status == "PAID":
        invoice.paid_date = datetime.utcnow()
    if final_status == "REJECTED":
        invoice.rejection_reason = status_in.rejection_reason

    if final_status != old_status:
        if final_status in ("SENT", "OVERDUE"):
            result = await db.execute(select(User).where(User.email == invoice.customer_email))
            customer = result.scalar_one_or_none()
            if customer:
                create_notification(
                    db, customer,
                    f"Invoice {invoice.invoice_number} for R{float(invoice.total):,.2f} is {final_status.lower()}",
                    "INVOICE_STATUS", "invoice", invoice.id
                )
        elif final_status == "PAID":
            await notify_roles(
                db, ADMIN_ROLES,
                f"Invoice {invoice.invoice_number} from {invoice.customer_name} was paid",
                "INVOICE_PAID", "invoice", invoice.id,
                exclude_user_id=current_user.id
            )

    await create_audit_log(
        db, current_user.id, "status", "invoice", invoice.id, invoice.invoice_number,
        old_value={"status": old_status}, new_value={"status": final_status}
    )
    await db.commit()

    if final_status == "SENT" and old_status != "SENT":
        try:
            await send_invoice_email(invoice)
        except EmailDeliveryError as e:
            logger.error(f"❌ Invoice {invoice.invoice_number} email failed: {e}")

    logger.info(f"🧾 Invoice {invoice.invoice_number}: {old_status} -> {final_status}")
    return build_invoice_response(await load_invoice(db, invoice.id))


@router.delete("/{invoice_id}")
async def delete_invoice(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    invoice_id: int) -> Any:
    require_permission(current_user, MANAGE_INVOICES)

    invoice = await db.get(Invoice, invoice_id)
    if not invoice or not can_view(invoice, current_user):
        raise NotFoundError("Invoice not found")
    if invoice.status not in DELETABLE_STATUSES:
        raise BadRequestError(f"Only {', '.join(DELETABLE_STATUSES)} invoices can be deleted")

    await create_audit_log(
        db, current_user.id, "delete", "invoice", invoice.id, invoice.invoice_number,
        old_value={"status": invoice.status, "total": float(invoice.total or 0)}
    )
    await db.delete(invoice)
    await db.commit()

    return {"message": "Invoice deleted"}
