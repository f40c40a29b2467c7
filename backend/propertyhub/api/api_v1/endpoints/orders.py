"""Work order API"""

import logging
from typing import Any, Optional
from datetime import datetime
from decimal import Decimal
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from propertyhub.api.api_v1.endpoints.audit_logs import create_audit_log
from propertyhub.core.deps import get_db, get_current_user, owner_conditions, is_visible_to
from propertyhub.core.errors import BadRequestError, NotFoundError
from propertyhub.core.permissions import MANAGE_ORDERS, require_permission
from propertyhub.models.order import Order
from propertyhub.models.user import User
from propertyhub.schemas.order import (
    OrderCreate, OrderStatusUpdate, OrderCostsUpdate, OrderResponse, OrderListResponse
)
from propertyhub.services.numbering import next_number

logger = logging.getLogger(__name__)

router = APIRouter()


def build_order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        order_number=order.order_number,
        customer_name=order.customer_name,
        customer_email=order.customer_email,
        customer_phone=order.customer_phone,
        address=order.address,
        service_type=order.service_type,
        description=order.description,
        status=order.status,
        status_display=order.status_display,
        material_cost=float(order.material_cost or 0),
        labour_cost=float(order.labour_cost or 0),
        total_cost=float(order.total_cost or 0),
        assigned_to_id=order.assigned_to_id,
        assigned_to_name=order.assigned_to.full_name if order.assigned_to else "",
        started_at=order.started_at,
        completed_at=order.completed_at,
        created_by=order.created_by,
        created_at=order.created_at
    )


async def load_order(db: AsyncSession, order_id: int) -> Optional[Order]:
    result = await db.execute(
        select(Order).options(selectinload(Order.assigned_to)).where(Order.id == order_id)
    )
    return result.scalar_one_or_none()


async def get_visible_order(db: AsyncSession, order_id: int, user: User) -> Order:
    order = await load_order(db, order_id)
    if not order or not is_visible_to(order, user):
        raise NotFoundError("Order not found")
    return order


@router.get("/", response_model=OrderListResponse)
async def list_orders(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    assigned_to_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None)) -> Any:
    require_permission(current_user, MANAGE_ORDERS)

    query = select(Order).options(selectinload(Order.assigned_to))

    conditions = owner_conditions(Order, current_user)
    if status:
        conditions.append(Order.status == status)
    if assigned_to_id:
        conditions.append(Order.assigned_to_id == assigned_to_id)
    if search:
        pattern = f"%{search}%"
        conditions.append(or_(
            Order.order_number.ilike(pattern),
            Order.customer_name.ilike(pattern),
            Order.service_type.ilike(pattern)
        ))

    if conditions:
        query = query.where(and_(*conditions))

    count_query = select(func.count(Order.id))
    if conditions:
        count_query = count_query.where(and_(*conditions))
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(Order.created_at.desc(), Order.id.desc())
    query = query.offset((page - 1) * limit).limit(limit)
    result = await db.execute(query)

    return OrderListResponse(
        data=[build_order_response(o) for o in result.scalars().all()],
        total=total,
        page=page,
        limit=limit
    )


@router.post("/", response_model=OrderResponse)
async def create_order(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    order_in: OrderCreate) -> Any:
    require_permission(current_user, MANAGE_ORDERS)

    if order_in.assigned_to_id and not await db.get(User, order_in.assigned_to_id):
        raise BadRequestError("Assigned artisan does not exist")

    order = Order(
        order_number=await next_number(db, Order.order_number, "ORD-", 5),
        customer_name=order_in.customer_name,
        customer_email=order_in.customer_email,
        customer_phone=order_in.customer_phone,
        address=order_in.address,
        service_type=order_in.service_type,
        description=order_in.description,
        assigned_to_id=order_in.assigned_to_id,
        status="ASSIGNED" if order_in.assigned_to_id else "PENDING",
        material_cost=Decimal(str(order_in.material_cost)),
        labour_cost=Decimal(str(order_in.labour_cost)),
        created_by=current_user.id
    )
    order.recalculate_total()
    db.add(order)
    await db.flush()

    await create_audit_log(db, current_user.id, "create", "order", order.id, order.order_number)
    await db.commit()

    logger.info(f"✅ Order {order.order_number} created")
    return build_order_response(await load_order(db, order.id))


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    order_id: int) -> Any:
    require_permission(current_user, MANAGE_ORDERS)
    return build_order_response(await get_visible_order(db, order_id, current_user))


@router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    order_id: int,
    status_in: OrderStatusUpdate) -> Any:
    require_permission(current_user, MANAGE_ORDERS)
    order = await get_visible_order(db, order_id, current_user)

    old_status = order.status
    now = datetime.utcnow()
    order.status = status_in.status
    if status_in.assigned_to_id is not None:
        artisan = await db.get(User, status_in.assigned_to_id)
        if not artisan:
            raise BadRequestError("Assigned artisan does not exist")
        order.assigned_to = artisan
    if status_in.status == "IN_PROGRESS" and not order.started_at:
        order.started_at = now
    if status_in.status == "COMPLETED":
        order.started_at = order.started_at or now
        order.completed_at = now

    await create_audit_log(
        db, current_user.id, "status", "order", order.id, order.order_number,
        old_value={"status": old_status}, new_value={"status": order.status}
    )
    await db.commit()
    return build_order_response(await load_order(db, order.id))


@router.put("/{order_id}/costs", response_model=OrderResponse)
async def update_order_costs(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    order_id: int,
    costs_in: OrderCostsUpdate) -> Any:
    require_permission(current_user, MANAGE_ORDERS)
    order = await get_visible_order(db, order_id, current_user)

    old_value = {"material_cost": float(order.material_cost or 0),
                 "labour_cost": float(order.labour_cost or 0)}
    order.material_cost = Decimal(str(costs_in.material_cost))
    order.labour_cost = Decimal(str(costs_in.labour_cost))
    order.recalculate_total()

    await create_audit_log(
        db, current_user.id, "update", "order", order.id, order.order_number,
        old_value=old_value, new_value=costs_in.model_dump()
    )
    await db.commit()
    return build_order_response(await load_order(db, order.id))
