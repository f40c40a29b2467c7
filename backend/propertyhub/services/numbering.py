"""Document numbers: <prefix><zero-padded sequence>, next after the current maximum"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession


def sequence_pattern(prefix: str, width: int) -> str:
    """GLOB pattern matching the prefix followed by exactly `width` digits"""
    return prefix + "[0-9]" * width


async def next_number(db: AsyncSession, column, prefix: str, width: int) -> str:
    """
    Next number for `column` with the given prefix.

    Only values whose suffix is exactly `width` digits count, so manually
    entered numbers such as INV-A1234 or INV-2024-A never become the maximum.
    """
    result = await db.execute(
        select(func.max(column)).where(column.op("GLOB")(sequence_pattern(prefix, width)))
    )
    max_no = result.scalar()
    seq = int(max_no[len(prefix):]) + 1 if max_no else 1
    return f"{prefix}{seq:0{width}d}"


async def next_monthly_number(db: AsyncSession, column, prefix: str, width: int,
                              when: Optional[datetime] = None) -> str:
    """<prefix>-YYYYMM-<seq>, sequence restarting every month"""
    when = when or datetime.utcnow()
    return await next_number(db, column, f"{prefix}-{when:%Y%m}-", width)
