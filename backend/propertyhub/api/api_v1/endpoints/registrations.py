"""
Public sign-up and the admin approval queue

A registration is created without an account. Once paid (or with the
payment check skipped) an admin approves it, which creates the user and
their subscription in one go.
"""

import logging
from typing import Any, Optional
from datetime import datetime, timedelta
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from propertyhub.api.api_v1.endpoints.audit_logs import create_audit_log
from propertyhub.core.config import settings
from propertyhub.core.deps import get_db, get_current_user
from propertyhub.core.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from propertyhub.core.permissions import CONTRACTOR, PROPERTY_MANAGER, is_admin
from propertyhub.core.security import hash_password
from propertyhub.models.package import Package, Subscription
from propertyhub.models.registration import PendingRegistration
from propertyhub.models.user import User
from propertyhub.schemas.registration import (
    PendingRegistrationCreate, PendingRegistrationResponse, PendingRegistrationListResponse,
    RegistrationApprove, RegistrationReject, RegistrationMarkPaid,
    SubscriptionResponse, ApprovalResponse
)
from propertyhub.services.email import EmailDeliveryError, send_registration_approved_email

logger = logging.getLogger(__name__)

router = APIRouter()

BILLING_CYCLE_DAYS = 30


def can_manage_registrations(user: User) -> bool:
    """Admins, except the shared demo account"""
    if not is_admin(user.role):
        return False
    return user.email.lower() != settings.DEMO_ADMIN_EMAIL.lower()


def require_registration_manager(user: User) -> None:
    if not can_manage_registrations(user):
        raise ForbiddenError("Only administrators can manage registrations")


def build_registration_response(registration: PendingRegistration) -> PendingRegistrationResponse:
    package = registration.package
    return PendingRegistrationResponse(
        id=registration.id,
        email=registration.email,
        first_name=registration.first_name,
        last_name=registration.last_name,
        phone=registration.phone,
        company_name=registration.company_name,
        account_type=registration.account_type,
        package_id=registration.package_id,
        package_name=package.name if package else "",
        package_display_name=package.display_name if package else "",
        base_price=float(package.base_price or 0) if package else 0,
        additional_users=registration.additional_users or 0,
        additional_tenants=registration.additional_tenants or 0,
        additional_contractors=registration.additional_contractors or 0,
        has_paid=registration.has_paid,
        payment_id=registration.payment_id,
        is_approved=registration.is_approved,
        approved_at=registration.approved_at,
        user_id=registration.user_id,
        rejected_at=registration.rejected_at,
        rejection_reason=registration.rejection_reason,
        status_display=registration.status_display,
        created_at=registration.created_at
    )


async def load_registration(db: AsyncSession, registration_id: int) -> PendingRegistration:
    result = await db.execute(
        select(PendingRegistration)
        .options(selectinload(PendingRegistration.package))
        .where(PendingRegistration.id == registration_id)
    )
    registration = result.scalar_one_or_none()
    if not registration:
        raise NotFoundError("Registration not found")
    return registration


def build_subscription(registration: PendingRegistration, package: Package, user_id: int,
                       now: Optional[datetime] = None) -> Subscription:
    """TRIAL while the package has trial days, billing starts when the trial ends"""
    now = now or datetime.utcnow()
    trial_days = package.trial_days or 0
    trial_ends_at = now + timedelta(days=trial_days) if trial_days > 0 else None

    return Subscription(
        user_id=user_id,
        package_id=package.id,
        status="TRIAL" if trial_ends_at else "ACTIVE",
        start_date=now,
        trial_ends_at=trial_ends_at,
        next_billing_date=trial_ends_at or now + timedelta(days=BILLING_CYCLE_DAYS),
        max_users=1 + (registration.additional_users or 0),
        max_tenants=registration.additional_tenants or 0,
        max_contractors=registration.additional_contractors or 0,
        current_users=1,
    )


@router.post("/", response_model=PendingRegistrationResponse)
async def create_registration(
    *,
    db: AsyncSession = Depends(get_db),
    registration_in: PendingRegistrationCreate) -> Any:
    """Public sign-up, no authentication"""
    email = registration_in.email.lower()

    existing_user = await db.execute(select(User.id).where(func.lower(User.email) == email))
    if existing_user.scalar():
        raise ConflictError("An account with this email already exists")

    pending = await db.execute(
        select(PendingRegistration.id).where(
            func.lower(PendingRegistration.email) == email,
            PendingRegistration.is_approved == False,  # noqa: E712
            PendingRegistration.rejected_at.is_(None),
        )
    )
    if pending.scalar():
        raise ConflictError("A registration with this email is already pending")

    package = await db.get(Package, registration_in.package_id)
    if not package or not package.is_active:
        raise BadRequestError("Package not found")
    if package.type != registration_in.account_type:
        raise BadRequestError(f"Package {package.display_name} is not available for this account type")

    registration = PendingRegistration(
        **registration_in.model_dump(exclude={"email"}),
        email=email,
        has_paid=False,
        is_approved=False,
    )
    db.add(registration)
    await db.commit()

    logger.info(f"📝 New registration {email} for package {package.name}")
    return build_registration_response(await load_registration(db, registration.id))


@router.get("/", response_model=PendingRegistrationListResponse)
async def list_registrations(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    is_approved: Optional[bool] = Query(None),
    has_paid: Optional[bool] = Query(None)) -> Any:
    require_registration_manager(current_user)

    conditions = []
    if is_approved is not None:
        conditions.append(PendingRegistration.is_approved == is_approved)
    if has_paid is not None:
        conditions.append(PendingRegistration.has_paid == has_paid)

    query = select(PendingRegistration).options(selectinload(PendingRegistration.package))
    count_query = select(func.count(PendingRegistration.id))
    if conditions:
        query = query.where(and_(*conditions))
        count_query = count_query.where(and_(*conditions))
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(PendingRegistration.created_at.desc())
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))

    return PendingRegistrationListResponse(
        data=[build_registration_response(r) for r in result.scalars().all()],
        total=total,
        page=page,
        limit=limit
    )


@router.post("/{registration_id}/approve", response_model=ApprovalResponse)
async def approve_registration(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    registration_id: int,
    approve_in: RegistrationApprove) -> Any:
    require_registration_manager(current_user)
    registration = await load_registration(db, registration_id)

    if registration.is_approved:
        raise BadRequestError("Registration has already been approved")
    if not registration.has_paid and not approve_in.skip_payment_check:
        raise BadRequestError("Registration has not been paid")

    existing_user = await db.execute(
        select(User.id).where(func.lower(User.email) == registration.email.lower())
    )
    if existing_user.scalar():
        raise ConflictError("An account with this email already exists")

    user = User(
        email=registration.email,
        password=hash_password(approve_in.password),
        first_name=registration.first_name,
        last_name=registration.last_name,
        phone=registration.phone,
        company_name=registration.company_name,
        role=CONTRACTOR if registration.account_type == "CONTRACTOR" else PROPERTY_MANAGER,
        is_active=True,
    )
    db.add(user)
    await db.flush()

    now = datetime.utcnow()
    subscription = build_subscription(registration, registration.package, user.id, now)
    db.add(subscription)

    registration.is_approved = True
    registration.approved_at = now
    registration.approved_by = current_user.id
    registration.user_id = user.id
    await db.flush()

    await create_audit_log(
        db, current_user.id, "approve", "registration", registration.id, registration.email,
        description=f"Approved as {user.role} on {registration.package.display_name}"
    )
    await db.commit()
    await db.refresh(subscription)
    logger.info(f"✅ Registration {registration.email} approved, user {user.id} ({subscription.status})")

    try:
        await send_registration_approved_email(
            user.email, user.first_name, registration.package.display_name,
            subscription.trial_ends_at
        )
    except EmailDeliveryError as e:
        logger.warning(f"⚠️ Welcome email not sent: {e}")

    registration = await load_registration(db, registration.id)
    return ApprovalResponse(
        registration=build_registration_response(registration),
        user_id=user.id,
        subscription=SubscriptionResponse.model_validate(subscription)
    )


@router.post("/{registration_id}/reject", response_model=PendingRegistrationResponse)
async def reject_registration(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    registration_id: int,
    reject_in: RegistrationReject) -> Any:
    require_registration_manager(current_user)
    registration = await load_registration(db, registration_id)
    if registration.is_approved:
        raise BadRequestError("Registration has already been approved")

    registration.rejected_at = datetime.utcnow()
    registration.rejection_reason = reject_in.reason

    await create_audit_log(
        db, current_user.id, "reject", "registration", registration.id, registration.email,
        description=reject_in.reason
    )
    await db.commit()
    return build_registration_response(await load_registration(db, registration.id))


@router.post("/{registration_id}/mark-paid", response_model=PendingRegistrationResponse)
async def mark_registration_paid(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    registration_id: int,
    paid_in: RegistrationMarkPaid) -> Any:
    require_registration_manager(current_user)
    registration = await load_registration(db, registration_id)

    registration.has_paid = True
    registration.payment_id = paid_in.payment_id

    await create_audit_log(
        db, current_user.id, "mark_paid", "registration", registration.id, registration.email,
        new_value={"payment_id": paid_in.payment_id}
    )
    await db.commit()
    return build_registration_response(await load_registration(db, registration.id))
