"""Fixed asset register API"""

import logging
from typing import Any, Optional
from decimal import Decimal
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, func, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.api.api_v1.endpoints.audit_logs import create_audit_log
from propertyhub.core.deps import get_db, get_current_user, owner_conditions, is_visible_to
from propertyhub.core.errors import NotFoundError
from propertyhub.core.permissions import MANAGE_ASSETS, require_permission
from propertyhub.models.asset import Asset
from propertyhub.models.user import User
from propertyhub.schemas.asset import AssetCreate, AssetUpdate, AssetResponse, AssetListResponse
from propertyhub.services.sars_compliance import annual_depreciation
from propertyhub.services.sars_tax import WEAR_AND_TEAR_RATES, round2, wear_and_tear_categories

logger = logging.getLogger(__name__)

router = APIRouter()

MONEY_FIELDS = ("purchase_price", "current_value", "residual_value", "accumulated_depreciation")


def build_asset_response(asset: Asset) -> AssetResponse:
    return AssetResponse(
        id=asset.id,
        name=asset.name,
        description=asset.description,
        category=asset.category,
        serial_number=asset.serial_number,
        purchase_date=asset.purchase_date,
        condition=asset.condition,
        condition_display=asset.condition_display,
        location=asset.location,
        notes=asset.notes,
        images=asset.images or [],
        useful_life_years=asset.useful_life_years,
        sars_wear_and_tear_category=asset.sars_wear_and_tear_category,
        annual_depreciation=round2(annual_depreciation(asset)),
        created_by=asset.created_by,
        created_at=asset.created_at,
        **{f: float(getattr(asset, f) or 0) for f in MONEY_FIELDS}
    )


def apply_sars_useful_life(asset: Asset) -> None:
    """A wear-and-tear class without an explicit life takes the SARS life"""
    category = asset.sars_wear_and_tear_category
    if category and not asset.useful_life_years:
        asset.useful_life_years = WEAR_AND_TEAR_RATES[category]["useful_life"]


async def get_visible_asset(db: AsyncSession, asset_id: int, user: User) -> Asset:
    asset = await db.get(Asset, asset_id)
    if not asset or not is_visible_to(asset, user):
        raise NotFoundError("Asset not found")
    return asset


@router.get("/wear-and-tear-categories")
async def list_wear_and_tear_categories() -> Any:
    """SARS wear-and-tear classes with rate and useful life"""
    return wear_and_tear_categories()


@router.get("/", response_model=AssetListResponse)
async def list_assets(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None)) -> Any:
    require_permission(current_user, MANAGE_ASSETS)

    conditions = owner_conditions(Asset, current_user)
    if category:
        conditions.append(Asset.category == category)
    if search:
        pattern = f"%{search}%"
        conditions.append(or_(
            Asset.name.ilike(pattern),
            Asset.serial_number.ilike(pattern),
            Asset.location.ilike(pattern)
        ))

    query = select(Asset)
    count_query = select(func.count(Asset.id))
    if conditions:
        query = query.where(and_(*conditions))
        count_query = count_query.where(and_(*conditions))
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(Asset.purchase_date.desc(), Asset.id.desc())
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))

    return AssetListResponse(
        data=[build_asset_response(a) for a in result.scalars().all()],
        total=total,
        page=page,
        limit=limit
    )


@router.post("/", response_model=AssetResponse)
async def create_asset(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    asset_in: AssetCreate) -> Any:
    require_permission(current_user, MANAGE_ASSETS)

    data = asset_in.model_dump()
    for field in MONEY_FIELDS:
        data[field] = Decimal(str(data[field]))

    asset = Asset(**data, created_by=current_user.id)
    apply_sars_useful_life(asset)
    db.add(asset)
    await db.flush()

    await create_audit_log(db, current_user.id, "create", "asset", asset.id, asset.name)
    await db.commit()
    await db.refresh(asset)

    logger.info(f"✅ Asset {asset.name} registered (R{float(asset.purchase_price):,.2f})")
    return build_asset_response(asset)


@router.get("/{asset_id}", response_model=AssetResponse)
async def get_asset(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    asset_id: int) -> Any:
    require_permission(current_user, MANAGE_ASSETS)
    return build_asset_response(await get_visible_asset(db, asset_id, current_user))


@router.put("/{asset_id}", response_model=AssetResponse)
async def update_asset(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    asset_id: int,
    asset_in: AssetUpdate) -> Any:
    require_permission(current_user, MANAGE_ASSETS)
    asset = await get_visible_asset(db, asset_id, current_user)

    update_data = asset_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if field in MONEY_FIELDS and value is not None:
            value = Decimal(str(value))
        setattr(asset, field, value)
    apply_sars_useful_life(asset)

    await create_audit_log(
        db, current_user.id, "update", "asset", asset.id, asset.name,
        new_value=asset_in.model_dump(exclude_unset=True, mode="json")
    )
    await db.commit()
    await db.refresh(asset)
    return build_asset_response(asset)


@router.delete("/{asset_id}")
async def delete_asset(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    asset_id: int) -> Any:
    require_permission(current_user, MANAGE_ASSETS)
    asset = await get_visible_asset(db, asset_id, current_user)

    await create_audit_log(db, current_user.id, "delete", "asset", asset.id, asset.name)
    await db.delete(asset)
    await db.commit()
    return {"message": "Asset deleted"}
