"""Operational expense API"""

import logging
from typing import Any, Optional
from datetime import datetime
from decimal import Decimal
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from propertyhub.api.api_v1.endpoints.audit_logs import create_audit_log
from propertyhub.core.deps import get_db, get_current_user, owner_conditions, is_visible_to
from propertyhub.core.errors import BadRequestError, NotFoundError
from propertyhub.core.permissions import (
    APPROVE_EXPENSES, MANAGE_EXPENSES, has_permission, require_permission
)
from propertyhub.models.operational_expense import OperationalExpense
from propertyhub.models.user import User
from propertyhub.schemas.operational_expense import (
    ExpenseCreate, ExpenseUpdate, ExpenseResponse, ExpenseListResponse, RejectRequest
)
from propertyhub.services.notifications import notify_senior_users

logger = logging.getLogger(__name__)

router = APIRouter()

DECIMAL_FIELDS = ("amount", "vat_rate", "input_vat_amount")


def build_expense_response(expense: OperationalExpense) -> ExpenseResponse:
    return ExpenseResponse(
        id=expense.id,
        date=expense.date,
        category=expense.category,
        category_display=expense.category_display,
        description=expense.description,
        amount=float(expense.amount or 0),
        vendor=expense.vendor,
        reference_number=expense.reference_number,
        notes=expense.notes,
        document_url=expense.document_url,
        is_recurring=bool(expense.is_recurring),
        recurring_period=expense.recurring_period,
        status=expense.status,
        rejection_reason=expense.rejection_reason,
        supply_type=expense.supply_type or "STANDARD",
        vat_rate=float(expense.vat_rate) if expense.vat_rate is not None else None,
        input_vat_amount=float(expense.input_vat_amount) if expense.input_vat_amount is not None else None,
        sars_deduction_section=expense.sars_deduction_section,
        created_by=expense.created_by,
        creator_name=expense.creator.full_name if expense.creator else "",
        approved_by=expense.approved_by,
        approved_at=expense.approved_at,
        created_at=expense.created_at
    )


def to_decimals(data: dict) -> dict:
    for field in DECIMAL_FIELDS:
        if data.get(field) is not None:
            data[field] = Decimal(str(data[field]))
    return data


async def get_visible_expense(db: AsyncSession, expense_id: int, user: User) -> OperationalExpense:
    result = await db.execute(
        select(OperationalExpense).options(selectinload(OperationalExpense.creator))
        .where(OperationalExpense.id == expense_id)
    )
    expense = result.scalar_one_or_none()
    if not expense or not is_visible_to(expense, user):
        raise NotFoundError("Expense not found")
    return expense


@router.get("/", response_model=ExpenseListResponse)
async def list_expenses(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None)) -> Any:
    require_permission(current_user, MANAGE_EXPENSES)

    conditions = owner_conditions(OperationalExpense, current_user)
    if status:
        conditions.append(OperationalExpense.status == status)
    if category:
        conditions.append(OperationalExpense.category == category)
    if start_date:
        conditions.append(OperationalExpense.date >= datetime.strptime(start_date, "%Y-%m-%d"))
    if end_date:
        conditions.append(OperationalExpense.date <= datetime.strptime(end_date, "%Y-%m-%d").replace(
            hour=23, minute=59, second=59))

    query = select(OperationalExpense).options(selectinload(OperationalExpense.creator))
    count_query = select(func.count(OperationalExpense.id))
    sum_query = select(func.coalesce(func.sum(OperationalExpense.amount), 0))
    if conditions:
        query = query.where(and_(*conditions))
        count_query = count_query.where(and_(*conditions))
        sum_query = sum_query.where(and_(*conditions))

    total = (await db.execute(count_query)).scalar() or 0
    total_amount = float((await db.execute(sum_query)).scalar() or 0)

    query = query.order_by(OperationalExpense.date.desc(), OperationalExpense.id.desc())
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))

    return ExpenseListResponse(
        data=[build_expense_response(e) for e in result.scalars().all()],
        total=total,
        page=page,
        limit=limit,
        total_amount=total_amount
    )


@router.post("/", response_model=ExpenseResponse)
async def create_expense(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    expense_in: ExpenseCreate) -> Any:
    require_permission(current_user, MANAGE_EXPENSES)

    expense = OperationalExpense(
        **to_decimals(expense_in.model_dump()),
        status="PENDING",
        created_by=current_user.id
    )
    db.add(expense)
    await db.flush()

    await notify_senior_users(
        db, current_user,
        f"{current_user.full_name} added a new operational expense: "
        f"{expense_in.description} (R {expense_in.amount:,.2f})",
        "OPERATIONAL_EXPENSE_ADDED", "operational_expense", expense.id
    )
    await create_audit_log(
        db, current_user.id, "create", "expense", expense.id, expense.description[:100],
        description=f"R{expense_in.amount:,.2f} {expense.category}"
    )
    await db.commit()

    logger.info(f"💾 Expense {expense.id} ({expense.category}) R{expense_in.amount:,.2f}")
    return build_expense_response(await get_visible_expense(db, expense.id, current_user))


@router.get("/{expense_id}", response_model=ExpenseResponse)
async def get_expense(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    expense_id: int) -> Any:
    require_permission(current_user, MANAGE_EXPENSES)
    return build_expense_response(await get_visible_expense(db, expense_id, current_user))


@router.put("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    expense_id: int,
    expense_in: ExpenseUpdate) -> Any:
    require_permission(current_user, MANAGE_EXPENSES)
    expense = await get_visible_expense(db, expense_id, current_user)

    if expense.status == "APPROVED" and not has_permission(current_user.role, APPROVE_EXPENSES):
        raise BadRequestError("Approved expenses can only be changed by an approver")

    for field, value in to_decimals(expense_in.model_dump(exclude_unset=True)).items():
        setattr(expense, field, value)
    # An edited rejection goes back into the approval queue
    if expense.status == "REJECTED":
        expense.status = "PENDING"
        expense.rejection_reason = None

    await create_audit_log(
        db, current_user.id, "update", "expense", expense.id, expense.description[:100],
        new_value=expense_in.model_dump(exclude_unset=True, mode="json")
    )
    await db.commit()
    return build_expense_response(await get_visible_expense(db, expense.id, current_user))


@router.post("/{expense_id}/approve", response_model=ExpenseResponse)
async def approve_expense(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    expense_id: int) -> Any:
    require_permission(current_user, APPROVE_EXPENSES)
    expense = await get_visible_expense(db, expense_id, current_user)

    expense.status = "APPROVED"
    expense.approved_by = current_user.id
    expense.approved_at = datetime.utcnow()
    expense.rejection_reason = None

    await create_audit_log(db, current_user.id, "approve", "expense", expense.id, expense.description[:100])
    await db.commit()
    return build_expense_response(await get_visible_expense(db, expense.id, current_user))


@router.post("/{expense_id}/reject", response_model=ExpenseResponse)
async def reject_expense(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    expense_id: int,
    reject_in: RejectRequest) -> Any:
    require_permission(current_user, APPROVE_EXPENSES)
    expense = await get_visible_expense(db, expense_id, current_user)

    expense.status = "REJECTED"
    expense.rejection_reason = reject_in.reason
    expense.approved_by = None
    expense.approved_at = None

    await create_audit_log(
        db, current_user.id, "reject", "expense", expense.id, expense.description[:100],
        description=reject_in.reason
    )
    await db.commit()
    return build_expense_response(await get_visible_expense(db, expense.id, current_user))
