"""
Scheduled jobs

APScheduler runs inside the API process:
- nightly sweep that flags SENT invoices past their due date as OVERDUE
- periodic dispatch of campaigns scheduled for sending
"""

import logging
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.config import settings
from propertyhub.db import session as db_session
from propertyhub.models.invoice import Invoice
from propertyhub.models.liability import Liability
from propertyhub.services.campaigns import dispatch_due_campaigns

logger = logging.getLogger(__name__)

scheduler: Optional[AsyncIOScheduler] = None


async def mark_overdue_invoices(db: AsyncSession, now: Optional[datetime] = None) -> int:
    """SENT invoices past their due date become OVERDUE; returns the number changed"""
    now = now or datetime.utcnow()
    result = await db.execute(
        update(Invoice)
        .where(Invoice.status == "SENT", Invoice.due_date.is_not(None), Invoice.due_date < now)
        .values(status="OVERDUE", updated_at=now)
    )
    await db.commit()
    return result.rowcount or 0


async def count_overdue_liabilities(db: AsyncSession, now: Optional[datetime] = None) -> int:
    now = now or datetime.utcnow()
    result = await db.execute(
        select(func.count(Liability.id)).where(
            Liability.is_paid == False,  # noqa: E712
            Liability.due_date.is_not(None),
            Liability.due_date < now,
        )
    )
    return result.scalar() or 0


async def overdue_sweep():
    try:
        async with db_session.SessionLocal() as db:
            changed = await mark_overdue_invoices(db)
            overdue_liabilities = await count_overdue_liabilities(db)
        logger.info(f"✅ Overdue sweep: {changed} invoice(s) marked OVERDUE, "
                    f"{overdue_liabilities} unpaid liability(ies) past due")
    except Exception as e:
        logger.error(f"❌ Overdue sweep failed: {str(e)}")


async def campaign_dispatch():
    try:
        async with db_session.SessionLocal() as db:
            attempted = await dispatch_due_campaigns(db)
        if attempted:
            logger.info(f"📣 Dispatched {attempted} scheduled campaign(s)")
    except Exception as e:
        logger.error(f"❌ Campaign dispatch failed: {str(e)}")


def init_scheduler():
    """Create and start the scheduler"""
    global scheduler

    if not settings.SCHEDULER_ENABLED:
        logger.info("⏰ Scheduler disabled")
        return

    scheduler = AsyncIOScheduler()

    scheduler.add_job(
        overdue_sweep,
        trigger=CronTrigger(
            hour=settings.OVERDUE_SWEEP_HOUR,
            minute=settings.OVERDUE_SWEEP_MINUTE
        ),
        id="overdue_sweep",
        name="Overdue invoice sweep",
        replace_existing=True
    )
    scheduler.add_job(
        campaign_dispatch,
        trigger=IntervalTrigger(minutes=settings.CAMPAIGN_DISPATCH_MINUTES),
        id="campaign_dispatch",
        name="Scheduled campaign dispatch",
        replace_existing=True
    )

    scheduler.start()
    logger.info(f"⏰ Scheduler started - overdue sweep daily at "
                f"{settings.OVERDUE_SWEEP_HOUR:02d}:{settings.OVERDUE_SWEEP_MINUTE:02d}, "
                f"campaign dispatch every {settings.CAMPAIGN_DISPATCH_MINUTES} min")


def shutdown_scheduler():
    global scheduler
    if scheduler:
        scheduler.shutdown()
        scheduler = None
        logger.info("⏰ Scheduler stopped")


def get_scheduler_status() -> dict:
    if not scheduler:
        return {
            "enabled": settings.SCHEDULER_ENABLED,
            "running": False,
            "jobs": []
        }

    jobs = []
    for job in scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None
        })

    return {
        "enabled": settings.SCHEDULER_ENABLED,
        "running": scheduler.running,
        "jobs": jobs
    }
