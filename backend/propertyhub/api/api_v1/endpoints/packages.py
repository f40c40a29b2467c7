"""Subscription packages shown on the public sign-up page"""

from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.deps import get_db
from propertyhub.models.package import Package
from propertyhub.schemas.registration import PackageResponse

router = APIRouter()


def build_package_response(package: Package) -> PackageResponse:
    return PackageResponse(
        id=package.id,
        name=package.name,
        display_name=package.display_name,
        description=package.description,
        type=package.type,
        base_price=float(package.base_price or 0),
        additional_user_price=float(package.additional_user_price or 0),
        additional_tenant_price=float(package.additional_tenant_price or 0),
        additional_contractor_price=float(package.additional_contractor_price or 0),
        trial_days=package.trial_days or 0,
        features=package.features,
        is_active=package.is_active
    )


@router.get("/", response_model=List[PackageResponse])
async def list_packages(
    *,
    db: AsyncSession = Depends(get_db),
    type: Optional[str] = Query(None, pattern="^(CONTRACTOR|PROPERTY_MANAGER)$")) -> Any:
    query = select(Package).where(Package.is_active == True)  # noqa: E712
    if type:
        query = query.where(Package.type == type)
    result = await db.execute(query.order_by(Package.type, Package.base_price))
    return [build_package_response(p) for p in result.scalars().all()]
