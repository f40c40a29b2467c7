"""Tenants and owners managed by a property manager"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.api.api_v1.endpoints.audit_logs import create_audit_log
from propertyhub.core.deps import get_db, get_current_user
from propertyhub.core.errors import BadRequestError
from propertyhub.core.permissions import MANAGE_CUSTOMERS, PROPERTY_MANAGER, require_permission
from propertyhub.models.customer import Customer
from propertyhub.models.user import User
from propertyhub.schemas.maintenance import CustomerCreate, CustomerResponse, CustomerListResponse

router = APIRouter()


@router.get("/", response_model=CustomerListResponse)
async def list_customers(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    building_name: Optional[str] = Query(None),
    search: Optional[str] = Query(None)) -> Any:
    require_permission(current_user, MANAGE_CUSTOMERS)

    conditions = []
    if current_user.role == PROPERTY_MANAGER:
        conditions.append(Customer.property_manager_id == current_user.id)
    if building_name:
        conditions.append(Customer.building_name == building_name)
    if search:
        conditions.append(or_(
            Customer.first_name.ilike(f"%{search}%"),
            Customer.last_name.ilike(f"%{search}%"),
            Customer.email.ilike(f"%{search}%")
        ))

    query = select(Customer)
    count_query = select(func.count(Customer.id))
    if conditions:
        query = query.where(and_(*conditions))
        count_query = count_query.where(and_(*conditions))
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(Customer.last_name, Customer.first_name)
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))

    return CustomerListResponse(
        data=[CustomerResponse.model_validate(c) for c in result.scalars().all()],
        total=total,
        page=page,
        limit=limit
    )


@router.post("/", response_model=CustomerResponse)
async def create_customer(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    customer_in: CustomerCreate) -> Any:
    require_permission(current_user, MANAGE_CUSTOMERS)

    if customer_in.user_id is not None and not await db.get(User, customer_in.user_id):
        raise BadRequestError("Portal user not found")

    customer = Customer(
        **customer_in.model_dump(),
        property_manager_id=current_user.id,
        status="ACTIVE",
    )
    db.add(customer)
    await db.flush()

    await create_audit_log(db, current_user.id, "create", "customer", customer.id, customer.full_name)
    await db.commit()
    await db.refresh(customer)
    return CustomerResponse.model_validate(customer)
