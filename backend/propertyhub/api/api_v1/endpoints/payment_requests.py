"""Artisan payment request API"""

import logging
from typing import Any, List, Optional
from datetime import datetime
from decimal import Decimal
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from propertyhub.api.api_v1.endpoints.audit_logs import create_audit_log
from propertyhub.core.deps import get_db, get_current_user, owner_conditions, is_visible_to
from propertyhub.core.errors import BadRequestError, ForbiddenError, NotFoundError
from propertyhub.core.permissions import (
    CREATE_PAYMENT_REQUESTS, MANAGE_PAYMENT_REQUESTS, has_permission, require_permission
)
from propertyhub.models.order import Order
from propertyhub.models.payment_request import PaymentRequest
from propertyhub.models.payslip import Payslip
from propertyhub.models.user import User
from propertyhub.schemas.payment_request import (
    PaymentRequestCreate, PaymentRequestStatusUpdate, PaymentRequestResponse,
    PaymentRequestListResponse
)
from propertyhub.services.numbering import next_number
from propertyhub.services.payroll import create_payslip_for_payment_request

logger = logging.getLogger(__name__)

router = APIRouter()


def build_payment_request_response(pr: PaymentRequest,
                                   payslip_number: Optional[str] = None) -> PaymentRequestResponse:
    return PaymentRequestResponse(
        id=pr.id,
        request_number=pr.request_number,
        artisan_id=pr.artisan_id,
        artisan_name=pr.artisan.full_name if pr.artisan else "",
        order_id=pr.order_id,
        order_number=pr.order.order_number if pr.order else "",
        hours_worked=float(pr.hours_worked or 0),
        days_worked=float(pr.days_worked or 0),
        hourly_rate=float(pr.hourly_rate or 0),
        daily_rate=float(pr.daily_rate or 0),
        calculated_amount=float(pr.calculated_amount or 0),
        status=pr.status,
        status_display=pr.status_display,
        approved_date=pr.approved_date,
        paid_date=pr.paid_date,
        rejection_reason=pr.rejection_reason,
        notes=pr.notes,
        payslip_number=payslip_number,
        created_at=pr.created_at
    )


def visibility_conditions(user: User) -> List:
    """Managers see their tenant's requests, artisans only their own"""
    if has_permission(user.role, MANAGE_PAYMENT_REQUESTS):
        return owner_conditions(PaymentRequest, user)
    return [PaymentRequest.artisan_id == user.id]


def can_view(pr: PaymentRequest, user: User) -> bool:
    if has_permission(user.role, MANAGE_PAYMENT_REQUESTS):
        return is_visible_to(pr, user)
    return pr.artisan_id == user.id


async def load_payment_request(db: AsyncSession, request_id: int) -> Optional[PaymentRequest]:
    result = await db.execute(
        select(PaymentRequest).options(
            selectinload(PaymentRequest.artisan),
            selectinload(PaymentRequest.order)
        ).where(PaymentRequest.id == request_id)
    )
    return result.scalar_one_or_none()


async def payslip_number_for(db: AsyncSession, request_id: int) -> Optional[str]:
    result = await db.execute(
        select(Payslip.payslip_number).where(Payslip.payment_request_id == request_id)
    )
    return result.scalars().first()


@router.get("/", response_model=PaymentRequestListResponse)
async def list_payment_requests(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    artisan_id: Optional[int] = Query(None)) -> Any:
    if not (has_permission(current_user.role, MANAGE_PAYMENT_REQUESTS)
            or has_permission(current_user.role, CREATE_PAYMENT_REQUESTS)):
        raise ForbiddenError("You do not have access to payment requests")

    query = select(PaymentRequest).options(
        selectinload(PaymentRequest.artisan),
        selectinload(PaymentRequest.order)
    )

    conditions = visibility_conditions(current_user)
    if status:
        conditions.append(PaymentRequest.status == status)
    if artisan_id:
        conditions.append(PaymentRequest.artisan_id == artisan_id)

    if conditions:
        query = query.where(and_(*conditions))

    count_query = select(func.count(PaymentRequest.id))
    if conditions:
        count_query = count_query.where(and_(*conditions))
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(PaymentRequest.created_at.desc(), PaymentRequest.id.desc())
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))
    requests = result.scalars().all()

    payslips = {}
    if requests:
        payslip_result = await db.execute(
            select(Payslip.payment_request_id, Payslip.payslip_number).where(
                Payslip.payment_request_id.in_([r.id for r in requests])
            )
        )
        payslips = dict(payslip_result.all())

    return PaymentRequestListResponse(
        data=[build_payment_request_response(r, payslips.get(r.id)) for r in requests],
        total=total,
        page=page,
        limit=limit
    )


@router.post("/", response_model=PaymentRequestResponse)
async def create_payment_request(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    request_in: PaymentRequestCreate) -> Any:
    require_permission(current_user, CREATE_PAYMENT_REQUESTS)

    artisan_id = request_in.artisan_id or current_user.id
    if artisan_id != current_user.id and not has_permission(current_user.role, MANAGE_PAYMENT_REQUESTS):
        raise ForbiddenError("You can only submit payment requests for yourself")
    if not await db.get(User, artisan_id):
        raise BadRequestError("Artisan does not exist")
    if request_in.order_id and not await db.get(Order, request_in.order_id):
        raise BadRequestError("Order does not exist")

    pr = PaymentRequest(
        request_number=await next_number(db, PaymentRequest.request_number, "PR-", 5),
        artisan_id=artisan_id,
        order_id=request_in.order_id,
        hours_worked=Decimal(str(request_in.hours_worked)),
        days_worked=Decimal(str(request_in.days_worked)),
        hourly_rate=Decimal(str(request_in.hourly_rate)),
        daily_rate=Decimal(str(request_in.daily_rate)),
        status="PENDING",
        notes=request_in.notes,
        created_by=current_user.id
    )
    if request_in.amount is not None:
        pr.calculated_amount = Decimal(str(request_in.amount))
    else:
        pr.recalculate()

    if pr.calculated_amount <= 0:
        raise BadRequestError("Payment request amount must be greater than zero")

    db.add(pr)
    await db.flush()
    await create_audit_log(
        db, current_user.id, "create", "payment_request", pr.id, pr.request_number,
        description=f"R{float(pr.calculated_amount):,.2f}"
    )
    await db.commit()

    logger.info(f"✅ Payment request {pr.request_number} for R{float(pr.calculated_amount):,.2f}")
    return build_payment_request_response(await load_payment_request(db, pr.id))


@router.get("/{request_id}", response_model=PaymentRequestResponse)
async def get_payment_request(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    request_id: int) -> Any:
    pr = await load_payment_request(db, request_id)
    if not pr or not can_view(pr, current_user):
        raise NotFoundError("Payment request not found")
    return build_payment_request_response(pr, await payslip_number_for(db, pr.id))


@router.put("/{request_id}/status", response_model=PaymentRequestResponse)
async def update_payment_request_status(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    request_id: int,
    status_in: PaymentRequestStatusUpdate) -> Any:
    require_permission(current_user, MANAGE_PAYMENT_REQUESTS)

    pr = await load_payment_request(db, request_id)
    if not pr or not is_visible_to(pr, current_user):
        raise NotFoundError("Payment request not found")
    if pr.status == "PAID" and status_in.status != "PAID":
        raise BadRequestError("A paid payment request cannot change status")

    old_status = pr.status
    now = datetime.utcnow()
    pr.status = status_in.status

    if status_in.status == "APPROVED":
        pr.approved_date = now
    elif status_in.status == "REJECTED":
        pr.rejection_reason = status_in.rejection_reason
    elif status_in.status == "PAID" and old_status != "PAID":
        pr.approved_date = pr.approved_date or now
        pr.paid_date = now
        if not await payslip_number_for(db, pr.id):
            await create_payslip_for_payment_request(db, pr, current_user.id)

    await create_audit_log(
        db, current_user.id, "status", "payment_request", pr.id, pr.request_number,
        old_value={"status": old_status}, new_value={"status": pr.status}
    )
    await db.commit()

    return build_payment_request_response(
        await load_payment_request(db, pr.id), await payslip_number_for(db, pr.id)
    )
