"""
Startup migrations

Run on every start:
1. make sure system_config exists and record the schema version
2. add columns introduced after a database was first created
3. seed the subscription packages and the first admin account
"""

import logging
from typing import Optional

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from propertyhub.core.config import settings
from propertyhub.core.permissions import SENIOR_ADMIN
from propertyhub.core.security import hash_password
from propertyhub.models.package import Package
from propertyhub.models.user import User

logger = logging.getLogger(__name__)

CURRENT_DB_VERSION = "1.3.0"


async def ensure_system_config_table(db: AsyncSession) -> None:
    await db.execute(text("""
        CREATE TABLE IF NOT EXISTS system_config (
            key TEXT PRIMARY KEY,
            value TEXT,
            updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
        )
    """))
    await db.commit()


async def get_config_value(db: AsyncSession, key: str) -> Optional[str]:
    result = await db.execute(text(
        "SELECT value FROM system_config WHERE key = :key"
    ), {"key": key})
    row = result.fetchone()
    return row[0] if row else None


async def set_config_value(db: AsyncSession, key: str, value: str) -> None:
    await db.execute(text(
        "INSERT OR REPLACE INTO system_config (key, value, updated_at) "
        "VALUES (:key, :value, CURRENT_TIMESTAMP)"
    ), {"key": key, "value": value})
    await db.commit()


async def delete_config_value(db: AsyncSession, key: str) -> None:
    await db.execute(text("DELETE FROM system_config WHERE key = :key"), {"key": key})
    await db.commit()


async def check_column_exists(db: AsyncSession, table: str, column: str) -> bool:
    result = await db.execute(text(f"PRAGMA table_info({table})"))
    return column in [row[1] for row in result.fetchall()]


async def add_column_if_not_exists(db: AsyncSession, table: str, column: str,
                                   column_type: str, default: Optional[str] = None) -> bool:
    if await check_column_exists(db, table, column):
        return False
    sql = f"ALTER TABLE {table} ADD COLUMN {column} {column_type}"
    if default is not None:
        sql += f" DEFAULT {default}"
    await db.execute(text(sql))
    await db.commit()
    logger.info(f"[+] Added column {table}.{column}")
    return True


# (table, column, type, default) for columns added after 1.0
REQUIRED_COLUMNS = [
    # 1.1 depreciation
    ("assets", "useful_life_years", "INTEGER", None),
    ("assets", "residual_value", "DECIMAL(12,2)", "0"),
    ("assets", "sars_wear_and_tear_category", "VARCHAR(50)", None),
    ("assets", "accumulated_depreciation", "DECIMAL(12,2)", "0"),
    # 1.2 VAT on expenses and revenue
    ("operational_expenses", "supply_type", "VARCHAR(20)", "'STANDARD'"),
    ("operational_expenses", "vat_rate", "DECIMAL(5,2)", None),
    ("operational_expenses", "input_vat_amount", "DECIMAL(12,2)", None),
    ("operational_expenses", "sars_deduction_section", "VARCHAR(30)", None),
    ("alternative_revenues", "supply_type", "VARCHAR(20)", "'STANDARD'"),
    ("alternative_revenues", "vat_rate", "DECIMAL(5,2)", None),
    ("alternative_revenues", "output_vat_amount", "DECIMAL(12,2)", None),
    # 1.3 payroll
    ("payslips", "employer_uif", "DECIMAL(12,2)", "0"),
    ("users", "date_of_birth", "DATETIME", None),
]


async def ensure_all_columns(db: AsyncSession) -> list:
    added = []
    for table, column, column_type, default in REQUIRED_COLUMNS:
        if await add_column_if_not_exists(db, table, column, column_type, default):
            added.append(f"{table}.{column}")
    return added


DEFAULT_PACKAGES = [
    {
        "name": "CONTRACTOR_STARTER", "display_name": "Contractor Starter", "type": "CONTRACTOR",
        "description": "Quotations, invoices and payments for small teams",
        "base_price": 499, "additional_user_price": 99, "trial_days": 14,
        "has_quotations": True, "has_invoices": True, "has_payments": True,
        "has_operations": True,
    },
    {
        "name": "CONTRACTOR_PRO", "display_name": "Contractor Pro", "type": "CONTRACTOR",
        "description": "Everything in Starter plus CRM, statements, HR and AI insights",
        "base_price": 1299, "additional_user_price": 99, "trial_days": 14,
        "has_crm": True, "has_quotations": True, "has_invoices": True, "has_statements": True,
        "has_operations": True, "has_payments": True, "has_projects": True, "has_hr": True,
        "has_messages": True, "has_ai_agent": True, "has_ai_insights": True,
        "has_customer_portal": True,
    },
    {
        "name": "PM_STANDARD", "display_name": "Property Manager", "type": "PROPERTY_MANAGER",
        "description": "Tenant portal, maintenance requests and building finances",
        "base_price": 899, "additional_user_price": 99, "additional_tenant_price": 10,
        "additional_contractor_price": 49, "trial_days": 0,
        "has_invoices": True, "has_statements": True, "has_operations": True,
        "has_payments": True, "has_messages": True, "has_ai_insights": True,
        "has_tenant_portal": True,
    },
]


async def ensure_packages(db: AsyncSession) -> int:
    result = await db.execute(select(Package.name))
    existing = set(result.scalars().all())
    created = 0
    for data in DEFAULT_PACKAGES:
        if data["name"] in existing:
            continue
        db.add(Package(**data))
        created += 1
    if created:
        await db.commit()
    return created


async def ensure_admin(db: AsyncSession) -> bool:
    result = await db.execute(select(User.id).where(User.role == SENIOR_ADMIN).limit(1))
    if result.scalar():
        return False
    db.add(User(
        email=settings.FIRST_ADMIN_EMAIL,
        password=hash_password(settings.FIRST_ADMIN_PASSWORD),
        first_name="System",
        last_name="Administrator",
        role=SENIOR_ADMIN,
    ))
    await db.commit()
    logger.warning(f"⚠️ Created default admin {settings.FIRST_ADMIN_EMAIL}, change the password")
    return True


async def run_migrations(db: AsyncSession) -> dict:
    await ensure_system_config_table(db)
    old_version = await get_db_version(db)

    result = {
        "old_version": old_version,
        "new_version": CURRENT_DB_VERSION,
        "columns_added": await ensure_all_columns(db),
        "packages_created": await ensure_packages(db),
        "admin_created": await ensure_admin(db),
    }

    if old_version != CURRENT_DB_VERSION:
        await set_config_value(db, "db_version", CURRENT_DB_VERSION)
    return result


async def get_db_version(db: AsyncSession) -> Optional[str]:
    return await get_config_value(db, "db_version")
