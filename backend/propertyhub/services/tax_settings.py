"""
SARS rates in effect

Published defaults, then the SARS_* settings from the environment, then
overrides saved through the API in system_config.
"""

import json
import logging
from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.config import settings
from propertyhub.db.migrations import delete_config_value, get_config_value, set_config_value
from propertyhub.services.sars_compliance import merge_rates
from propertyhub.services.sars_tax import DEFAULT_RATES

logger = logging.getLogger(__name__)

CONFIG_KEY = "sars_tax_rates"


def configured_rates() -> Dict[str, float]:
    return {
        "company_tax_rate": settings.SARS_COMPANY_TAX_RATE,
        "vat_rate": settings.SARS_VAT_RATE,
        "uif_employee_rate": settings.SARS_UIF_EMPLOYEE_RATE,
        "uif_employer_rate": settings.SARS_UIF_EMPLOYER_RATE,
        "uif_max_monthly": settings.SARS_UIF_MAX_EARNINGS,
        "sdl_rate": settings.SARS_SDL_RATE,
        "sdl_threshold": settings.SARS_SDL_THRESHOLD,
    }


async def get_saved_rates(db: AsyncSession) -> Dict[str, Any]:
    raw = await get_config_value(db, CONFIG_KEY)
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        logger.warning(f"Ignoring unreadable {CONFIG_KEY} value in system_config")
        return {}
    return {k: v for k, v in data.items() if k in DEFAULT_RATES}


async def get_rate_overrides(db: AsyncSession) -> Dict[str, Any]:
    """Everything that differs from the published defaults"""
    return {**configured_rates(), **await get_saved_rates(db)}


async def get_rates(db: AsyncSession) -> Dict[str, float]:
    return merge_rates(await get_rate_overrides(db))


async def save_rates(db: AsyncSession, rates: Dict[str, Any]) -> Dict[str, float]:
    saved = await get_saved_rates(db)
    saved.update({k: float(v) for k, v in rates.items() if k in DEFAULT_RATES and v is not None})
    await set_config_value(db, CONFIG_KEY, json.dumps(saved))
    logger.info(f"💾 SARS rates updated: {saved}")
    return merge_rates({**configured_rates(), **saved})


async def reset_rates(db: AsyncSession) -> Dict[str, float]:
    await delete_config_value(db, CONFIG_KEY)
    return merge_rates(configured_rates())
