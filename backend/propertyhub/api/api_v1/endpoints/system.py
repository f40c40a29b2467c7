"""System status and maintenance for administrators"""

from typing import Any
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.api.api_v1.endpoints.audit_logs import create_audit_log
from propertyhub.core.deps import get_db, get_current_user
from propertyhub.core.permissions import require_admin
from propertyhub.db.migrations import CURRENT_DB_VERSION, get_db_version, run_migrations
from propertyhub.models.user import User
from propertyhub.services.scheduler import get_scheduler_status

router = APIRouter()


@router.get("/status")
async def get_system_status(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)) -> Any:
    require_admin(current_user)
    return {
        "db_version": await get_db_version(db),
        "code_version": CURRENT_DB_VERSION,
        "scheduler": get_scheduler_status(),
    }


@router.get("/scheduler")
async def get_scheduler(
    *,
    current_user: User = Depends(get_current_user)) -> Any:
    require_admin(current_user)
    return get_scheduler_status()


@router.post("/upgrade-database")
async def upgrade_database(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    confirm: bool = Query(False)) -> Any:
    """
    Run the startup migrations on demand.

    Adds missing columns and seeds packages; business data is untouched.
    Without confirm=true only the current version is reported.
    """
    require_admin(current_user)
    if not confirm:
        return {
            "preview": True,
            "message": "Preview only, add ?confirm=true to upgrade",
            "current_version": await get_db_version(db),
            "new_version": CURRENT_DB_VERSION,
        }

    result = await run_migrations(db)
    await create_audit_log(
        db, current_user.id, "upgrade", "system", None, "database",
        new_value={"version": result["new_version"], "columns_added": result["columns_added"]}
    )
    await db.commit()
    return {
        "success": True,
        "old_version": result["old_version"],
        "new_version": result["new_version"],
        "columns_added": len(result["columns_added"]),
        "columns_detail": result["columns_added"],
        "packages_created": result["packages_created"],
    }
