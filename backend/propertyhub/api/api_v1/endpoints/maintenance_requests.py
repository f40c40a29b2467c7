"""
Maintenance request API

Customers log requests against their customer record; the property manager
who owns that record reviews them and moves them through
SUBMITTED -> REVIEWED -> APPROVED -> IN_PROGRESS -> COMPLETED (or REJECTED).
"""

import logging
from typing import Any, Optional
from datetime import datetime
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from propertyhub.api.api_v1.endpoints.audit_logs import create_audit_log
from propertyhub.core.deps import get_db, get_current_user
from propertyhub.core.errors import ForbiddenError, NotFoundError
from propertyhub.core.permissions import CUSTOMER, PROPERTY_MANAGER, is_admin
from propertyhub.models.customer import Customer
from propertyhub.models.maintenance_request import MaintenanceRequest
from propertyhub.models.user import User
from propertyhub.schemas.maintenance import (
    MaintenanceRequestCreate, MaintenanceStatusUpdate,
    MaintenanceRequestResponse, MaintenanceRequestListResponse
)
from propertyhub.services.email import EmailDeliveryError, send_maintenance_status_email
from propertyhub.services.notifications import create_notification
from propertyhub.services.numbering import next_monthly_number

logger = logging.getLogger(__name__)

router = APIRouter()

STATUS_DATE_FIELDS = {
    "REVIEWED": "reviewed_date",
    "APPROVED": "approved_date",
    "COMPLETED": "completed_date",
}

NOTIFICATION_TYPES = {
    "APPROVED": "MAINTENANCE_REQUEST_APPROVED",
    "COMPLETED": "MAINTENANCE_REQUEST_COMPLETED",
    "REJECTED": "MAINTENANCE_REQUEST_REJECTED",
}


def build_request_response(request: MaintenanceRequest) -> MaintenanceRequestResponse:
    return MaintenanceRequestResponse(
        id=request.id,
        request_number=request.request_number,
        customer_id=request.customer_id,
        customer_name=request.customer.full_name if request.customer else "",
        property_manager_id=request.property_manager_id,
        title=request.title,
        description=request.description,
        category=request.category,
        urgency=request.urgency,
        urgency_display=request.urgency_display,
        photos=request.photos or [],
        building_name=request.building_name,
        unit_number=request.unit_number,
        address=request.address,
        status=request.status,
        status_display=request.status_display,
        submitted_date=request.submitted_date,
        reviewed_date=request.reviewed_date,
        approved_date=request.approved_date,
        completed_date=request.completed_date,
        response_notes=request.response_notes,
        rejection_reason=request.rejection_reason,
        created_at=request.created_at
    )


def status_message(request: MaintenanceRequest, rejection_reason: Optional[str] = None) -> str:
    if request.status == "APPROVED":
        return f"Your maintenance request \"{request.title}\" has been approved."
    if request.status == "COMPLETED":
        return f"Your maintenance request \"{request.title}\" has been completed."
    if request.status == "REJECTED":
        suffix = f": {rejection_reason}" if rejection_reason else "."
        return f"Your maintenance request \"{request.title}\" has been rejected{suffix}"
    return f"Your maintenance request \"{request.title}\" status has been updated to {request.status}."


def visibility_conditions(user: User) -> list:
    """PMs see requests they own, customers the ones logged on their record"""
    if is_admin(user.role):
        return []
    if user.role == PROPERTY_MANAGER:
        return [MaintenanceRequest.property_manager_id == user.id]
    return [MaintenanceRequest.customer.has(Customer.user_id == user.id)]


def can_view(request: MaintenanceRequest, user: User) -> bool:
    if is_admin(user.role):
        return True
    if user.role == PROPERTY_MANAGER:
        return request.property_manager_id == user.id
    return request.customer is not None and request.customer.user_id == user.id


async def load_request(db: AsyncSession, request_id: int) -> Optional[MaintenanceRequest]:
    result = await db.execute(
        select(MaintenanceRequest)
        .options(selectinload(MaintenanceRequest.customer))
        .where(MaintenanceRequest.id == request_id)
    )
    return result.scalar_one_or_none()


@router.get("/", response_model=MaintenanceRequestListResponse)
async def list_maintenance_requests(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    urgency: Optional[str] = Query(None),
    customer_id: Optional[int] = Query(None)) -> Any:
    conditions = visibility_conditions(current_user)
    if status:
        conditions.append(MaintenanceRequest.status == status)
    if urgency:
        conditions.append(MaintenanceRequest.urgency == urgency)
    if customer_id:
        conditions.append(MaintenanceRequest.customer_id == customer_id)

    query = select(MaintenanceRequest).options(selectinload(MaintenanceRequest.customer))
    count_query = select(func.count(MaintenanceRequest.id))
    if conditions:
        query = query.where(and_(*conditions))
        count_query = count_query.where(and_(*conditions))
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(MaintenanceRequest.created_at.desc(), MaintenanceRequest.id.desc())
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))

    return MaintenanceRequestListResponse(
        data=[build_request_response(r) for r in result.scalars().all()],
        total=total,
        page=page,
        limit=limit
    )


@router.post("/", response_model=MaintenanceRequestResponse)
async def create_maintenance_request(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    request_in: MaintenanceRequestCreate) -> Any:
    customer = await db.get(Customer, request_in.customer_id)
    if not customer:
        raise NotFoundError("Customer not found")

    if current_user.role == CUSTOMER and customer.user_id != current_user.id:
        raise ForbiddenError("You can only log requests for your own unit")
    if current_user.role == PROPERTY_MANAGER and customer.property_manager_id != current_user.id:
        raise ForbiddenError("You can only log requests for your own customers")
    if current_user.role not in (CUSTOMER, PROPERTY_MANAGER) and not is_admin(current_user.role):
        raise ForbiddenError("You do not have access to this resource")

    request = MaintenanceRequest(
        request_number=await next_monthly_number(db, MaintenanceRequest.request_number, "MR", 4),
        customer_id=customer.id,
        property_manager_id=customer.property_manager_id,
        title=request_in.title,
        description=request_in.description,
        category=request_in.category,
        urgency=request_in.urgency,
        photos=request_in.photos,
        building_name=customer.building_name,
        unit_number=customer.unit_number,
        address=customer.address,
        status="SUBMITTED",
        submitted_date=datetime.utcnow(),
    )
    db.add(request)
    await db.flush()

    property_manager = await db.get(User, customer.property_manager_id)
    if property_manager:
        create_notification(
            db, property_manager,
            f"New {request.urgency.lower()} maintenance request from {customer.full_name}: {request.title}",
            "MAINTENANCE_REQUEST_SUBMITTED", "MAINTENANCE_REQUEST", request.id
        )

    await create_audit_log(db, current_user.id, "create", "maintenance_request", request.id, request.request_number)
    await db.commit()
    logger.info(f"🔧 Maintenance request {request.request_number} logged for customer {customer.id}")

    return build_request_response(await load_request(db, request.id))


@router.get("/{request_id}", response_model=MaintenanceRequestResponse)
async def get_maintenance_request(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    request_id: int) -> Any:
    request = await load_request(db, request_id)
    if not request or not can_view(request, current_user):
        raise NotFoundError("Maintenance request not found")
    return build_request_response(request)


@router.put("/{request_id}/status", response_model=MaintenanceRequestResponse)
async def update_maintenance_status(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    request_id: int,
    status_in: MaintenanceStatusUpdate) -> Any:
    if current_user.role != PROPERTY_MANAGER:
        raise ForbiddenError("Only property managers can update maintenance request status")

    request = await load_request(db, request_id)
    if not request:
        raise NotFoundError("Maintenance request not found")
    if request.property_manager_id != current_user.id:
        raise ForbiddenError("You can only update your own maintenance requests")

    old_status = request.status
    request.status = status_in.status
    request.response_notes = status_in.response_notes
    if status_in.status in STATUS_DATE_FIELDS:
        setattr(request, STATUS_DATE_FIELDS[status_in.status], datetime.utcnow())
    elif status_in.status == "REJECTED":
        request.rejection_reason = status_in.rejection_reason

    customer = request.customer
    if customer.user_id:
        customer_user = await db.get(User, customer.user_id)
        if customer_user:
            create_notification(
                db, customer_user,
                status_message(request, status_in.rejection_reason),
                NOTIFICATION_TYPES.get(request.status, "MAINTENANCE_REQUEST_UPDATED"),
                "MAINTENANCE_REQUEST", request.id
            )

    await create_audit_log(
        db, current_user.id, "update_status", "maintenance_request", request.id, request.request_number,
        old_value={"status": old_status}, new_value={"status": request.status}
    )
    await db.commit()

    try:
        await send_maintenance_status_email(customer.email, customer.full_name, request)
    except EmailDeliveryError as e:
        logger.warning(f"⚠️ Maintenance status email not sent: {e}")

    return build_request_response(request)
